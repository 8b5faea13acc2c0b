"""grounding.py - a paradox that pulls confusion down.

negative intensity walks magnitude back and the response-style
modifier restores coherence.
"""

from kairos.types import BehavioralModifier, ModifierKind, ParadoxSpec, Trigger


def grounding_paradox(intensity: float = -0.35, name: str = "grounding_recovery") -> ParadoxSpec:
    return ParadoxSpec(
        name=name,
        description="Grounding paradox to reduce confusion",
        intensity=-abs(intensity),
        observations=["Concrete reality exists", "Simple facts remain true"],
        contradictions=[],
        meta_potential=0.0,
        modifiers=[BehavioralModifier(ModifierKind.RESPONSE_STYLE, -0.3, Trigger(0.0))],
    )
