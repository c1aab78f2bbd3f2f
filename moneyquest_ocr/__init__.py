"""Receipt photo to transaction extraction for MoneyQuest."""

__version__ = "0.1.0"
