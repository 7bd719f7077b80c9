"""
Configuration entry point (``backoffice_config``).

``get_active_config()`` is the single public way to obtain runtime
settings.  No other component reads configuration files directly.
"""

from pathlib import Path

from backoffice_config.loader import compute_checksum, load_config
from backoffice_config.schema import EngineConfig
from backoffice_kernel.logging_config import get_logger

logger = get_logger("config")

__all__ = ["EngineConfig", "get_active_config"]


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """Load the effective configuration.

    Args:
        path: Optional YAML settings file overriding the packaged
            defaults.  Omitted keys keep their default value.

    Raises:
        FileNotFoundError: ``path`` does not exist.
        ValueError: Unknown key or invalid value.
    """
    config = load_config(Path(path) if path is not None else None)
    logger.info(
        "BACKOFFICE_CONFIG_TRACE",
        extra={
            "source": str(path) if path is not None else "defaults",
            "checksum": compute_checksum(config),
            **config.as_log_dict(),
        },
    )
    return config
