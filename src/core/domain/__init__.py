"""Modelos y reglas del dominio.

Por qué:
- Aquí viven las estructuras de datos puras y estrictas (Pydantic v2), la
  clasificación de fallos y la máquina de estados de la cascada.
- El dominio no hace I/O ni conoce la CLI: solo conceptos del problema.
"""
