"""Interfaces del core.

Por qué:
- Los adapters concretos implementan estos Protocols, así los servicios
  dependen de abstracciones y no de detalles de httpx.
"""
