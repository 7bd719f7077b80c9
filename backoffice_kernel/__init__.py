"""
Backoffice Kernel

Shared foundations for the financial document and apportionment engine:
- Typed exception hierarchy with machine-readable codes
- Structured JSON logging with request-scoped context
- SQLAlchemy declarative base, engine and transaction scope
- Pure domain primitives (clock, workflow, exact money splitting)
"""

__version__ = "0.1.0"
