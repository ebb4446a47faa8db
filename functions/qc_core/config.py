"""
Runtime configuration.

Values come from environment variables, with a local ``.env`` file loaded
first when present. Business policy (tier table, workflow graphs) is not
configuration and lives in ``policy_config``.

Environment Variables
---------------------
QC_LOG_LEVEL                          Logging level (default INFO)
QC_DEFAULT_SAMPLE_SIZE                Sample size for plans without one (default 5)
QC_DEFAULT_CALIBRATION_INTERVAL_DAYS  Gage interval when none is given (default 365)
QC_AUTO_QUARANTINE_ON_FAIL            Spawn a quarantine batch on a failed inspection (default true)
"""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache

from dotenv import load_dotenv

from .helpers import parse_int_safe

logger = logging.getLogger(__name__)

_TRUE_VALUES = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    log_level: str = "INFO"
    default_sample_size: int = 5
    default_calibration_interval_days: int = 365
    auto_quarantine_on_fail: bool = True


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process."""
    load_dotenv()
    settings = Settings(
        log_level=os.getenv("QC_LOG_LEVEL", "INFO").upper(),
        default_sample_size=parse_int_safe(os.getenv("QC_DEFAULT_SAMPLE_SIZE"), 5),
        default_calibration_interval_days=parse_int_safe(
            os.getenv("QC_DEFAULT_CALIBRATION_INTERVAL_DAYS"), 365
        ),
        auto_quarantine_on_fail=os.getenv("QC_AUTO_QUARANTINE_ON_FAIL", "true").strip().lower() in _TRUE_VALUES,
    )
    logger.debug(f"Settings loaded: {settings}")
    return settings


def reset_settings():
    """Drop cached settings so the next call re-reads the environment."""
    get_settings.cache_clear()


def configure_logging() -> None:
    """Apply QC_LOG_LEVEL to the root logger."""
    level = getattr(logging, get_settings().log_level, logging.INFO)
    logging.getLogger().setLevel(level)
