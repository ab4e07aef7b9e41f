"""Contratos del Core.

Por qué:
- Las etapas de sondeo (DNS/HTTP) se describen con `Protocol`; los
  adaptadores las implementan y el resolver solo depende del contrato.
"""
