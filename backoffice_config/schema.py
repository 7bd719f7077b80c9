"""
Engine Configuration Schema (``backoffice_config.schema``).

Responsibility
--------------
Typed, validated runtime settings for the document engine: settlement
tolerance, unit-cost precision, default document kind, sweep interval and
database connection.

Architecture position
---------------------
**Config layer** -- no dependency on kernel services, modules, or engines.
Loaded via ``backoffice_config.get_active_config()``.

Failure modes
-------------
* ``ValueError`` at construction if any constraint is violated.
"""

from dataclasses import asdict, dataclass

from backoffice_kernel.logging_config import get_logger

logger = get_logger("config.schema")

DOCUMENT_KINDS = ("invoice", "duplicate", "bill", "fiscal_note")


@dataclass(frozen=True)
class EngineConfig:
    """Runtime settings.

    Contract: frozen; validated in ``__post_init__``.
    Guarantees: tolerance >= 0, precision >= 0, interval > 0, known kind.
    """
    settlement_tolerance_cents: int = 1
    unit_cost_places: int = 4
    default_document_kind: str = "invoice"
    overdue_sweep_interval_seconds: int = 3600
    database_url: str = "sqlite:///backoffice.db"
    pool_pre_ping: bool = True
    echo: bool = False

    def __post_init__(self):
        if self.settlement_tolerance_cents < 0:
            raise ValueError("settlement_tolerance_cents cannot be negative")
        if self.unit_cost_places < 0:
            raise ValueError("unit_cost_places cannot be negative")
        if self.default_document_kind not in DOCUMENT_KINDS:
            raise ValueError(
                f"default_document_kind must be one of {DOCUMENT_KINDS}, "
                f"got {self.default_document_kind!r}"
            )
        if self.overdue_sweep_interval_seconds <= 0:
            raise ValueError("overdue_sweep_interval_seconds must be positive")
        if not self.database_url:
            raise ValueError("database_url is required")
        logger.debug("engine_config_initialized", extra=self.as_log_dict())

    def as_log_dict(self) -> dict:
        """Settings safe to log (credentials stripped from the URL)."""
        values = asdict(self)
        url = values["database_url"]
        if "@" in url:
            scheme, _, rest = url.partition("://")
            values["database_url"] = f"{scheme}://***@{rest.split('@', 1)[1]}"
        return values
