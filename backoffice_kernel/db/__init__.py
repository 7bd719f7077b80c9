"""Database infrastructure: declarative base, engine, money column helpers."""

from backoffice_kernel.db.base import Base, TrackedBase, UTCDateTime, UUIDString
from backoffice_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
    transaction_scope,
)
from backoffice_kernel.db.types import cents_from_decimal, decimal_from_cents

__all__ = [
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session_factory",
    "init_engine_from_url",
    "reset_engine",
    "transaction_scope",
    "cents_from_decimal",
    "decimal_from_cents",
]
