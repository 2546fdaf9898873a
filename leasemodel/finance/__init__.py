"""Decimal arithmetic layer.

- money.py: Decimal coercion, monetary quantization and the simulation context
- growth.py: step-function growth factors
- discount.py: NPV, IRR, discount and annuity factors
"""
