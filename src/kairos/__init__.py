"""kairos - a confusion state engine with a safety net."""

__version__ = "0.1.0"
