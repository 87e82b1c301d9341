"""
Payroll Kernel

Shared foundation for the compensation and KPI engines:
- Immutable Money / Currency value objects (Decimal only, never float)
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
- SQLAlchemy declarative base and session management for record stores
"""

__version__ = "0.1.0"
