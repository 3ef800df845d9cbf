"""Core de check-rsat: modelos de dominio, configuración y servicios de evaluación."""

__version__ = "0.1.0"
