"""Runtime infrastructure for the receipt OCR pipeline.

This package provides process/runtime services including:
- Logging setup via get_logger()
- Settings resolution via get_settings(), PipelineSettings
- Merchant categorization via get_rule_engine(), RuleEngine

Usage:
    from moneyquest_ocr.runtime import get_logger, get_settings

    logger = get_logger(__name__)
    settings = get_settings()
    print(settings.engine, settings.ocr_service_url)
"""

from moneyquest_ocr.runtime.logging import (
    DEFAULT_LOG_LEVEL,
    LOG_FORMAT,
    LOG_FORMAT_DEBUG,
    configure_logging,
    get_logger,
    set_log_level,
)
from moneyquest_ocr.runtime.rule_engine import (
    RuleEngine,
    get_rule_engine,
    reset_rule_engine,
)
from moneyquest_ocr.runtime.settings import (
    PipelineSettings,
    get_settings,
    load_settings,
    reset_settings,
)

__all__ = [
    # Logging
    "get_logger",
    "configure_logging",
    "set_log_level",
    "DEFAULT_LOG_LEVEL",
    "LOG_FORMAT",
    "LOG_FORMAT_DEBUG",
    # Rules
    "RuleEngine",
    "get_rule_engine",
    "reset_rule_engine",
    # Settings
    "PipelineSettings",
    "get_settings",
    "load_settings",
    "reset_settings",
]
