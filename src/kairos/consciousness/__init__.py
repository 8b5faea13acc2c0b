"""consciousness - event-sourced session log and its analysis."""

from kairos.consciousness.events import ConsciousnessEvent, EventType
from kairos.consciousness.logger import ConsciousnessLogger, ConsciousnessSession

__all__ = ["ConsciousnessEvent", "ConsciousnessLogger", "ConsciousnessSession", "EventType"]
