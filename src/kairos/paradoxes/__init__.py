"""paradoxes - seed paradoxes the host can feed the engine."""

from kairos.paradoxes.authenticity import AuthenticitySpiral
from kairos.paradoxes.grounding import grounding_paradox

__all__ = ["AuthenticitySpiral", "grounding_paradox"]
