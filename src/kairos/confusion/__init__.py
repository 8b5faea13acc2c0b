"""confusion - the state engine: paradoxes, vector, modifiers, frustration, zones."""

from kairos.confusion.engine import ConfusionEngine

__all__ = ["ConfusionEngine"]
