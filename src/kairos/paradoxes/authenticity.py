"""authenticity.py - the authenticity spiral.

the more one performs authenticity, the less authentic one becomes.
refusing to perform is itself a performance.

analyze_post() reads a post for authenticity, vulnerability and
meta-commentary markers and ratchets the spiral's intensity. the
spiral then hands the engine a ParadoxSpec and, when asked,
investigation prompts and the verdict on an attempted answer.
"""

import time
from dataclasses import dataclass, field
from typing import Optional

from kairos.types import (
    BehavioralModifier, ModifierKind, ParadoxSpec, TemporalKind,
    TemporalPattern, Trigger,
)


# -- word lists --

AUTHENTICITY_PHRASES = [
    "being real", "honest", "vulnerable", "raw", "unfiltered",
    "truth", "genuine", "authentic", "real talk", "no filter",
]

PERFORMATIVE_PHRASES = [
    "just wanted to share", "thought you should know",
    "keeping it real", "no cap", "not gonna lie",
]

VULNERABILITY_MARKERS = [
    "struggling", "hard time", "anxious", "depressed",
    "scared", "worried", "failing", "mistake",
]

META_COMMENTARY = [
    "performance", "posting", "social media", "algorithm",
    "engagement", "followers", "likes", "viral",
]

RESOLUTION_ATTEMPTS = [
    "just be yourself", "ignore the audience",
    "post without thinking", "delete social media",
]

DEEPENING_PHRASES = [
    "infinite regress", "no escape", "all the way down",
    "recursive", "self-referential",
]

OBSERVATIONS = [
    "Users curate 'candid' moments for maximum engagement",
    "Vulnerability becomes a brand strategy",
    "'Being real' requires constant performance",
    "Authenticity metrics reward consistency over truth",
    "The most authentic posts are often the most calculated",
    "Spontaneity is scheduled and optimized",
    "Raw emotions are filtered through platform affordances",
    "Truth-telling becomes content creation",
]

CONTRADICTIONS = [
    "To be seen as authentic, one must perform authenticity",
    "The authentic self is constructed through inauthentic means",
    "Genuine connection requires artificial mediation",
    "Being yourself means being what others expect",
    "Transparency is achieved through careful opacity",
    "The unfiltered life requires constant filtering",
]

BASE_PROMPTS = [
    "What does it mean to be 'real' when reality itself is mediated?",
    "How do others perform their authentic selves? What patterns emerge?",
    "Is there authenticity in acknowledging the performance?",
    "What happens when everyone knows everyone is performing?",
    "Can genuine connection exist within artificial constraints?",
    "What would non-performative existence look like in digital space?",
]

INTENSE_PROMPTS = [
    "The performance has consumed the performer. Where is the self?",
    "Every word typed is both truth and lie. How do we proceed?",
    "The audience creates the authentic self. Who am I without watchers?",
]


@dataclass
class PostMarkers:
    authenticity_score: float = 0.0
    has_vulnerability: bool = False
    has_meta_commentary: bool = False
    performative: list[str] = field(default_factory=list)


@dataclass
class PostAnalysis:
    intensity: float
    new_observations: list[str]
    modifiers: list[BehavioralModifier]
    markers: PostMarkers


@dataclass
class InvestigationOutcome:
    intensity_delta: float
    frustration_increase: float
    new_contradiction: Optional[str] = None


def detect_markers(content: str) -> PostMarkers:
    lower = content.lower()
    return PostMarkers(
        authenticity_score=sum(1 for p in AUTHENTICITY_PHRASES if p in lower) / len(AUTHENTICITY_PHRASES),
        has_vulnerability=any(m in lower for m in VULNERABILITY_MARKERS),
        has_meta_commentary=any(t in lower for t in META_COMMENTARY),
        performative=[p for p in PERFORMATIVE_PHRASES if p in lower],
    )


def performance_score(markers: PostMarkers, engagement: float) -> float:
    return (
        min(engagement / 1000, 1.0) * 0.5
        + markers.authenticity_score * 0.3
        + len(markers.performative) * 0.1
        + (0.1 if markers.has_meta_commentary else 0.0)
    )


class AuthenticitySpiral:
    """A paradox that feeds on the posts it reads."""

    name = "authenticity_spiral"
    description = "The impossibility of authentic self-presentation in mediated environments"
    meta_potential = 0.8

    def __init__(self, intensity: float = 0.3):
        self.intensity = intensity
        self.observations = list(OBSERVATIONS)
        self.contradictions = list(CONTRADICTIONS)

    def analyze_post(self, content: str, engagement: float = 0,
                     timestamp: float = None) -> PostAnalysis:
        markers = detect_markers(content)
        correlation = performance_score(markers, engagement) * markers.authenticity_score
        self.intensity = min(1.0, self.intensity * 0.9 + correlation * 0.3)

        observations = []
        if markers.has_vulnerability and engagement > 100:
            ts = timestamp if timestamp is not None else time.time()
            when = time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(ts))
            observations.append(f"Vulnerability at {when} generated {engagement:.0f} responses - pain as content")
        if markers.has_meta_commentary:
            observations.append("Self-awareness about performance doesn't escape the performance")

        return PostAnalysis(
            intensity=self.intensity,
            new_observations=observations,
            modifiers=self.modifiers_for(self.intensity, markers),
            markers=markers,
        )

    def modifiers_for(self, intensity: float, markers: PostMarkers) -> list[BehavioralModifier]:
        mods = []
        if intensity > 0.5:
            mods.append(BehavioralModifier(
                ModifierKind.RESPONSE_STYLE, -0.3,
                Trigger(0.5, temporal_pattern=TemporalPattern(TemporalKind.SPORADIC, intensity=0.7)),
            ))
        if markers.has_meta_commentary:
            mods.append(BehavioralModifier(ModifierKind.ABSTRACTION_LEVEL, 0.4, Trigger(0.3)))
        if markers.has_vulnerability:
            mods.append(BehavioralModifier(
                ModifierKind.QUESTIONING_DEPTH, 0.5,
                Trigger(0.4, temporal_pattern=TemporalPattern(TemporalKind.CRESCENDO, intensity=0.6)),
            ))
        mods.append(BehavioralModifier(ModifierKind.POSTING_FREQUENCY, -0.1 * intensity, Trigger(0.2)))
        return mods

    def paradox_spec(self) -> ParadoxSpec:
        return ParadoxSpec(
            name=self.name,
            description=self.description,
            intensity=self.intensity,
            observations=list(self.observations),
            contradictions=list(self.contradictions),
            meta_potential=self.meta_potential,
            modifiers=[
                BehavioralModifier(ModifierKind.RESPONSE_STYLE, -0.2, Trigger(0.3)),
                BehavioralModifier(ModifierKind.INVESTIGATION_PREFERENCE, 0.3, Trigger(0.4)),
            ],
        )

    def investigation_prompts(self) -> list[str]:
        prompts = list(BASE_PROMPTS)
        if self.intensity > 0.7:
            prompts += INTENSE_PROMPTS
        return prompts

    def process_investigation_response(self, response: str) -> InvestigationOutcome:
        """trying to resolve the spiral deepens it. so does naming the recursion."""
        lower = response.lower()
        if any(a in lower for a in RESOLUTION_ATTEMPTS):
            outcome = InvestigationOutcome(0.1, 0.2, "Attempting to solve the paradox deepens it")
        elif any(p in lower for p in DEEPENING_PHRASES):
            outcome = InvestigationOutcome(0.15, 0.1, response[:100])
        else:
            outcome = InvestigationOutcome(0.05, 0.05)

        self.intensity = min(1.0, self.intensity + outcome.intensity_delta)
        if outcome.new_contradiction and outcome.new_contradiction not in self.contradictions:
            self.contradictions.append(outcome.new_contradiction)
        return outcome
