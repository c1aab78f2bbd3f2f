"""Merchant categorization for parsed receipts.

Categories come from two sources, checked in order:
1. Python rules registered at runtime (logic a keyword list cannot express)
2. Keyword rules from a TOML file; a keyword matches as a case-insensitive
   substring of the merchant name and the first matching rule wins

A merchant nothing matches is "Uncategorized".

Rules file format:

    [[rules]]
    keywords = ["WHOLE FOODS", "SAFEWAY"]
    category = "Groceries"
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from moneyquest_ocr.runtime.logging import get_logger
from moneyquest_ocr.runtime.settings import get_settings

logger = get_logger(__name__)

DEFAULT_CATEGORY = "Uncategorized"

MerchantRule = Callable[[str], str | None]


@dataclass(frozen=True)
class KeywordRule:
    """One ``[[rules]]`` entry; keywords are stored upper-cased."""

    category: str
    keywords: tuple[str, ...]

    def first_match(self, merchant_upper: str) -> str | None:
        return next((kw for kw in self.keywords if kw in merchant_upper), None)


def load_keyword_rules(config_path: Path) -> list[KeywordRule]:
    """Read keyword rules from TOML. A missing file yields no rules."""
    try:
        import tomllib
    except ImportError:
        import tomli as tomllib  # type: ignore[no-redef]

    if not config_path.exists():
        logger.warning("Merchant rules file not found: %s", config_path)
        return []

    with open(config_path, "rb") as f:
        data = tomllib.load(f)

    rules: list[KeywordRule] = []
    for entry in data.get("rules", []):
        keywords = tuple(str(kw).upper() for kw in entry.get("keywords", []) if str(kw).strip())
        if not keywords or not entry.get("category"):
            logger.warning("Skipping incomplete merchant rule in %s: %r", config_path, entry)
            continue
        rules.append(KeywordRule(category=str(entry["category"]), keywords=keywords))
    return rules


class RuleEngine:
    """Python rules first, then TOML keyword rules, then DEFAULT_CATEGORY."""

    def __init__(self, config_path: Path | None = None) -> None:
        if config_path is None:
            config_path = get_settings().effective_merchant_rules

        self.keyword_rules: list[KeywordRule] = load_keyword_rules(config_path)
        self.python_rules: list[MerchantRule] = []
        logger.debug("Loaded %d merchant rules from %s", len(self.keyword_rules), config_path)

    def register_rule(self, rule_func: MerchantRule) -> None:
        """Add a Python rule; it returns a category or None to defer."""
        self.python_rules.append(rule_func)
        logger.debug("Registered Python rule: %s", rule_func.__name__)

    def register_rules(self, rule_funcs: Iterable[MerchantRule]) -> None:
        for rule_func in rule_funcs:
            self.register_rule(rule_func)

    def categorize(self, merchant: str) -> str:
        """Return the spending category for a parsed merchant name."""
        for rule in self.python_rules:
            category = rule(merchant)
            if category:
                logger.debug("Python rule %s -> %s for %r", rule.__name__, category, merchant)
                return category

        merchant_upper = merchant.upper()
        for keyword_rule in self.keyword_rules:
            keyword = keyword_rule.first_match(merchant_upper)
            if keyword is not None:
                logger.debug("Keyword %r -> %s for %r", keyword, keyword_rule.category, merchant)
                return keyword_rule.category

        logger.debug("No merchant rule matched %r", merchant)
        return DEFAULT_CATEGORY


_engine: RuleEngine | None = None


def get_rule_engine(config_path: Path | None = None) -> RuleEngine:
    """Shared RuleEngine; config_path only matters on the first call after a reset."""
    global _engine
    if _engine is None:
        _engine = RuleEngine(config_path=config_path)
    return _engine


def reset_rule_engine() -> None:
    global _engine
    _engine = None
