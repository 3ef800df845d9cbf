"""Modelos y tipos de valor del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2) para
  los payloads de la API de Satellite.
- El dominio no conoce HTTP ni la CLI.
"""
