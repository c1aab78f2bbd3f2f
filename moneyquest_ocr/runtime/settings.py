"""Centralized runtime settings for the receipt OCR pipeline.

Settings resolve in three layers: built-in defaults, an optional TOML file
(``[ocr]`` table at the path named by MONEYQUEST_OCR_CONFIG), then environment
variables. Later layers win.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any

from moneyquest_ocr.runtime.logging import get_logger

logger = get_logger(__name__)

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024
SUPPORTED_ENGINES = ("tesseract", "remote")

# setting name -> environment variable
ENV_OVERRIDES = {
    "engine": "MONEYQUEST_OCR_ENGINE",
    "ocr_service_url": "OCR_SERVICE_URL",
    "tesseract_cmd": "TESSERACT_CMD",
    "max_upload_bytes": "MONEYQUEST_MAX_UPLOAD_BYTES",
    "merchant_rules": "MONEYQUEST_MERCHANT_RULES",
}


def _package_root() -> Path:
    # moneyquest_ocr/runtime/settings.py -> moneyquest_ocr/
    return Path(__file__).parent.parent


@dataclass
class PipelineSettings:
    """Container for all runtime-tunable pipeline settings."""

    engine: str = "tesseract"
    ocr_service_url: str = "http://localhost:8001"
    tesseract_cmd: str | None = None
    max_upload_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    merchant_rules: Path | None = None
    config_file: Path | None = field(default=None, compare=False)

    def __post_init__(self) -> None:
        self.engine = self.engine.strip().lower()
        if self.engine not in SUPPORTED_ENGINES:
            raise ValueError(f"Unknown OCR engine {self.engine!r}; expected one of {', '.join(SUPPORTED_ENGINES)}")
        self.ocr_service_url = self.ocr_service_url.rstrip("/")
        self.max_upload_bytes = int(self.max_upload_bytes)
        if self.max_upload_bytes <= 0:
            raise ValueError("max_upload_bytes must be positive")
        if self.merchant_rules is not None:
            self.merchant_rules = Path(self.merchant_rules).expanduser()

    @property
    def default_merchant_rules(self) -> Path:
        """Bundled merchant categorization rules TOML file."""
        return _package_root() / "receipt" / "rules" / "default_merchant_rules.toml"

    @property
    def effective_merchant_rules(self) -> Path:
        """Merchant rules file actually in use (project override or bundled default)."""
        return self.merchant_rules if self.merchant_rules is not None else self.default_merchant_rules


def _load_toml(config_path: Path) -> dict[str, Any]:
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not config_path.exists():
        logger.warning("Config file not found: %s", config_path)
        return {}

    with open(config_path, "rb") as f:
        data = tomllib.load(f)
    return dict(data.get("ocr", {}))


def load_settings(config_path: Path | None = None, environ: dict[str, str] | None = None) -> PipelineSettings:
    """Build settings from defaults, an optional TOML file and environment variables.

    Args:
        config_path: TOML file to read. If None, uses MONEYQUEST_OCR_CONFIG when set.
        environ: Environment mapping (defaults to os.environ).
    """
    env = os.environ if environ is None else environ
    if config_path is None and env.get("MONEYQUEST_OCR_CONFIG"):
        config_path = Path(env["MONEYQUEST_OCR_CONFIG"]).expanduser()

    known = {f.name for f in fields(PipelineSettings)} - {"config_file"}
    values: dict[str, Any] = {}
    if config_path is not None:
        for key, value in _load_toml(config_path).items():
            if key in known:
                values[key] = value
            else:
                logger.warning("Ignoring unknown setting %r in %s", key, config_path)

    for name, env_var in ENV_OVERRIDES.items():
        raw = env.get(env_var)
        if raw:
            values[name] = raw

    settings = PipelineSettings(**values, config_file=config_path)
    logger.debug("Loaded settings: engine=%s, config_file=%s", settings.engine, config_path)
    return settings


_settings: PipelineSettings | None = None


def get_settings() -> PipelineSettings:
    """Get the singleton PipelineSettings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Clear the singleton so the next get_settings() call reloads. Useful for testing."""
    global _settings
    _settings = None
