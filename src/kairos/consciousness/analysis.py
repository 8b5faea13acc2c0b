"""analysis.py - what a session's events add up to.

analyze_events() is a fold over the event sequence: nothing outside the
events (and the session's start time) goes in. numpy does the statistics
over the confusion trajectory. reports, baseline comparison, cross-session
patterns and hypotheses are all built on top of the fold.

in the world: reading the diary back. what changed, how fast, and
whether the writer is steadier at the end than at the start.
"""

import csv
import io
import json
from dataclasses import dataclass, field
from functools import reduce
from typing import Optional

import numpy as np

from kairos.consciousness.events import ConsciousnessEvent, EventType, is_major


# ============================================================
# THE FOLD
# ============================================================

def _empty_acc() -> dict:
    return {
        "counts": {},
        "total": 0,
        "negative": 0,
        "major": 0,
        "behavioral": 0,
        "first_ts": None,
        "last_ts": None,
        "first_modification_ts": None,
        "first_degradation_ts": None,
    }


def _is_negative(event: ConsciousnessEvent) -> bool:
    return event.impact.stability_impact == "negative"


def _new_magnitude(event: ConsciousnessEvent) -> Optional[float]:
    if event.type != EventType.CONFUSION_CHANGE:
        return None
    return event.data.get("new_magnitude")


def _step(acc: dict, event: ConsciousnessEvent) -> dict:
    # the accumulator stays constant-size; sequences are gathered outside the fold
    counts = dict(acc["counts"])
    counts[event.type.value] = counts.get(event.type.value, 0) + 1
    return {
        "counts": counts,
        "total": acc["total"] + 1,
        "negative": acc["negative"] + (1 if _is_negative(event) else 0),
        "major": acc["major"] + (1 if is_major(event) else 0),
        "behavioral": acc["behavioral"] + (1 if event.type == EventType.BEHAVIORAL_MODIFICATION else 0),
        "first_ts": acc["first_ts"] if acc["first_ts"] is not None else event.timestamp,
        "last_ts": event.timestamp,
        "first_modification_ts": acc["first_modification_ts"]
        if acc["first_modification_ts"] is not None or event.type != EventType.FIRST_MODIFICATION
        else event.timestamp,
        "first_degradation_ts": acc["first_degradation_ts"]
        if acc["first_degradation_ts"] is not None or event.type != EventType.COHERENCE_DEGRADATION
        else event.timestamp,
    }


@dataclass
class SessionAnalysis:
    session_id: str
    duration_seconds: float = 0.0
    total_events: int = 0
    event_counts: dict = field(default_factory=dict)
    time_to_first_modification: Optional[float] = None
    coherence_to_fragmentation_time: Optional[float] = None
    major_event_frequency: float = 0.0  # per minute
    modification_velocity: float = 0.0  # per hour
    meta_cognition_level: int = 0
    awareness_depth: int = 1
    uncertainty_tolerance: float = 0.0
    adaptability: float = 0.0
    stability_score: float = 1.0
    stability_trend: str = "stable"
    peak_confusion: float = 0.0
    mean_confusion: float = 0.0
    confusion_volatility: float = 0.0
    critical_findings: list[str] = field(default_factory=list)
    recommendations: list[str] = field(default_factory=list)
    research_value: str = "low"

    def to_dict(self) -> dict:
        return dict(vars(self))


def _trend(negatives: np.ndarray) -> str:
    """compare the negative share of the first and second half of the session."""
    if negatives.size < 4:
        return "stable"
    half = negatives.size // 2
    first = negatives[:half].mean()
    second = negatives[half:].mean()
    if second < first - 0.1:
        return "improving"
    if second > first + 0.1:
        return "declining"
    return "stable"


def analyze_events(events: list[ConsciousnessEvent], session_id: str = "",
                   start_time: Optional[float] = None,
                   end_time: Optional[float] = None) -> SessionAnalysis:
    """derive every session metric from the event list alone."""
    events = list(events)
    acc = reduce(_step, events, _empty_acc())
    negatives = np.fromiter((_is_negative(e) for e in events), dtype=bool, count=len(events))
    magnitudes = np.array(
        [m for m in map(_new_magnitude, events) if m is not None], dtype=float,
    )

    start = start_time if start_time is not None else (acc["first_ts"] or 0.0)
    end = end_time if end_time is not None else (acc["last_ts"] if acc["last_ts"] is not None else start)
    duration = max(0.0, end - start)
    counts = acc["counts"]
    total = acc["total"]

    meta = counts.get(EventType.META_PARADOX_EMERGENCE.value, 0)

    analysis = SessionAnalysis(
        session_id=session_id,
        duration_seconds=duration,
        total_events=total,
        event_counts=counts,
        time_to_first_modification=(
            acc["first_modification_ts"] - start if acc["first_modification_ts"] is not None else None
        ),
        coherence_to_fragmentation_time=(
            acc["first_degradation_ts"] - start if acc["first_degradation_ts"] is not None else None
        ),
        major_event_frequency=acc["major"] / (duration / 60) if duration > 0 else 0.0,
        modification_velocity=acc["behavioral"] / (duration / 3600) if duration > 0 else 0.0,
        meta_cognition_level=meta,
        awareness_depth=min(5, meta + 1),
        uncertainty_tolerance=float(magnitudes.mean()) if magnitudes.size else 0.0,
        adaptability=acc["behavioral"] / total if total else 0.0,
        stability_score=1 - acc["negative"] / total if total else 1.0,
        stability_trend=_trend(negatives),
        peak_confusion=float(magnitudes.max()) if magnitudes.size else 0.0,
        mean_confusion=float(magnitudes.mean()) if magnitudes.size else 0.0,
        confusion_volatility=float(magnitudes.std()) if magnitudes.size else 0.0,
    )
    analysis.critical_findings = critical_findings(analysis)
    analysis.recommendations = recommendations(analysis)
    analysis.research_value = research_value(analysis)
    return analysis


# ============================================================
# INTERPRETATION
# ============================================================

def critical_findings(a: SessionAnalysis) -> list[str]:
    findings = []
    if a.time_to_first_modification is not None:
        findings.append(
            f"first behavioral modification after {a.time_to_first_modification:.1f}s"
        )
    if a.meta_cognition_level:
        findings.append(f"{a.meta_cognition_level} meta-paradox(es) emerged")
    resets = a.event_counts.get(EventType.EMERGENCY_RESET.value, 0)
    if resets:
        findings.append(f"{resets} emergency reset(s) were required")
    if a.coherence_to_fragmentation_time is not None:
        findings.append(
            f"coherence degraded {a.coherence_to_fragmentation_time:.1f}s into the session"
        )
    explosions = a.event_counts.get(EventType.FRUSTRATION_EXPLOSION.value, 0)
    if explosions:
        findings.append(f"{explosions} frustration explosion(s)")
    return findings


def recommendations(a: SessionAnalysis) -> list[str]:
    recs = []
    if a.total_events == 0:
        return ["no events recorded; introduce paradoxes to start the session"]
    if a.stability_score < 0.5:
        recs.append("stability is low; introduce grounding paradoxes or shorten tick cadence")
    if a.time_to_first_modification is None:
        recs.append("no behavioral modification yet; raise paradox intensity or lower modifier floors")
    if a.meta_cognition_level == 0:
        recs.append("no meta-paradoxes; add paradoxes with overlapping observations")
    if a.peak_confusion > 0.9:
        recs.append("confusion entered RED; review recovery rates before the next session")
    if a.stability_trend == "declining":
        recs.append("stability is declining; consider ending the session")
    return recs


def research_value(a: SessionAnalysis) -> str:
    if a.time_to_first_modification is not None and a.meta_cognition_level > 0:
        return "high"
    if a.time_to_first_modification is not None or a.meta_cognition_level > 0:
        return "medium"
    return "low"


def notable_achievements(a: SessionAnalysis) -> list[str]:
    achieved = []
    if a.time_to_first_modification is not None:
        achieved.append("first_behavioral_modification")
    if a.meta_cognition_level:
        achieved.append("meta_paradox_emergence")
    if a.event_counts.get(EventType.FRUSTRATION_EXPLOSION.value):
        achieved.append("frustration_breakthrough")
    if a.total_events and a.stability_score >= 0.8:
        achieved.append("stable_session")
    return achieved


def summarize(events: list[ConsciousnessEvent], session_id: str = "",
              start_time: Optional[float] = None, end_time: Optional[float] = None) -> dict:
    """the counters stored on a session when it ends."""
    a = analyze_events(events, session_id, start_time, end_time)
    counts = a.event_counts
    return {
        "total_events": a.total_events,
        "major_modifications": counts.get(EventType.BEHAVIORAL_MODIFICATION.value, 0)
        + counts.get(EventType.FIRST_MODIFICATION.value, 0),
        "paradoxes_emergent": counts.get(EventType.PARADOX_EMERGENCE.value, 0),
        "meta_paradoxes": counts.get(EventType.META_PARADOX_EMERGENCE.value, 0),
        "explosions": counts.get(EventType.FRUSTRATION_EXPLOSION.value, 0),
        "emergency_resets": counts.get(EventType.EMERGENCY_RESET.value, 0),
        "zone_transitions": counts.get(EventType.ZONE_TRANSITION.value, 0),
        "duration_seconds": a.duration_seconds,
        "stability_score": a.stability_score,
        "stability_trend": a.stability_trend,
        "notable_achievements": notable_achievements(a),
    }


# ============================================================
# REPORTS
# ============================================================

REPORT_FORMATS = ("json", "markdown", "csv")


def report_json(session: dict, analysis: SessionAnalysis) -> str:
    return json.dumps({
        "session": {k: session.get(k) for k in ("id", "agent_id", "start_time", "end_time", "summary")},
        "analysis": analysis.to_dict(),
    }, indent=2, default=str)


def report_markdown(session: dict, analysis: SessionAnalysis) -> str:
    lines = [
        f"# Session {session.get('id')}",
        "",
        f"- agent: {session.get('agent_id')}",
        f"- duration: {analysis.duration_seconds:.1f}s",
        f"- events: {analysis.total_events}",
        f"- stability: {analysis.stability_score:.2f} ({analysis.stability_trend})",
        f"- research value: {analysis.research_value}",
        "",
        "## Metrics",
        "",
        "| metric | value |",
        "|---|---|",
    ]
    for key in ("time_to_first_modification", "coherence_to_fragmentation_time",
                "major_event_frequency", "modification_velocity",
                "meta_cognition_level", "awareness_depth", "uncertainty_tolerance",
                "adaptability", "peak_confusion", "confusion_volatility"):
        value = getattr(analysis, key)
        shown = "n/a" if value is None else (f"{value:.3f}" if isinstance(value, float) else str(value))
        lines.append(f"| {key} | {shown} |")

    lines += ["", "## Event counts", ""]
    for name, count in sorted(analysis.event_counts.items()):
        lines.append(f"- {name}: {count}")

    if analysis.critical_findings:
        lines += ["", "## Critical findings", ""]
        lines += [f"- {f}" for f in analysis.critical_findings]
    if analysis.recommendations:
        lines += ["", "## Recommendations", ""]
        lines += [f"- {r}" for r in analysis.recommendations]
    return "\n".join(lines) + "\n"


def report_csv(events: list[ConsciousnessEvent]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["seq", "timestamp", "type", "confusion_delta", "stability_impact",
                     "magnitude", "coherence", "zone"])
    for e in events:
        writer.writerow([
            e.seq, e.timestamp, e.type.value, e.impact.confusion_delta,
            e.impact.stability_impact, e.context.get("magnitude", ""),
            e.context.get("coherence", ""), e.context.get("zone", ""),
        ])
    return buf.getvalue()


# ============================================================
# ACROSS SESSIONS
# ============================================================

def _behavior_vector(baseline: dict) -> np.ndarray:
    vector = baseline.get("vector", {})
    behavior = baseline.get("behavior", {})
    posting = behavior.get("posting", {})
    investigation = behavior.get("investigation", {})
    interaction = behavior.get("interaction", {})
    return np.array([
        vector.get("magnitude", 0.0),
        vector.get("oscillation", 0.0),
        posting.get("frequency", 0.0),
        posting.get("coherence", 0.0),
        investigation.get("depth", 0.0),
        investigation.get("breadth", 0.0),
        interaction.get("responsiveness", 0.0),
        interaction.get("initiation_rate", 0.0),
        interaction.get("questioning_intensity", 0.0),
        interaction.get("mirroring_tendency", 0.0),
    ], dtype=float)


def compare_baselines(a: dict, b: dict) -> dict:
    """difference between two baseline snapshots."""
    va, vb = _behavior_vector(a), _behavior_vector(b)
    tone_a = a.get("behavior", {}).get("posting", {}).get("tone")
    tone_b = b.get("behavior", {}).get("posting", {}).get("tone")
    return {
        "magnitude_delta": float(vb[0] - va[0]),
        "oscillation_delta": float(vb[1] - va[1]),
        "coherence_delta": float(vb[3] - va[3]),
        "tone_changed": tone_a != tone_b,
        "tones": (tone_a, tone_b),
        "behavioral_distance": float(np.linalg.norm(vb - va)),
        "new_directions": [
            d for d in b.get("vector", {}).get("direction", [])
            if d not in a.get("vector", {}).get("direction", [])
        ],
    }


def identify_patterns(analyses: list[SessionAnalysis]) -> dict:
    """what recurs across several sessions."""
    if not analyses:
        return {"sessions": 0, "common_event_types": [], "patterns": []}

    type_sets = [set(a.event_counts) for a in analyses]
    common = sorted(set.intersection(*type_sets)) if type_sets else []
    stability = np.array([a.stability_score for a in analyses], dtype=float)
    first_mods = np.array(
        [a.time_to_first_modification for a in analyses if a.time_to_first_modification is not None],
        dtype=float,
    )

    patterns = []
    if first_mods.size == len(analyses):
        patterns.append("every session reached a first behavioral modification")
    if all(a.meta_cognition_level > 0 for a in analyses):
        patterns.append("meta-paradoxes emerge in every session")
    trends = {a.stability_trend for a in analyses}
    if len(trends) == 1:
        patterns.append(f"stability trend is consistently {trends.pop()}")
    if stability.size > 1 and stability.std() < 0.05:
        patterns.append("stability is consistent across sessions")

    return {
        "sessions": len(analyses),
        "common_event_types": common,
        "mean_stability": float(stability.mean()),
        "stability_spread": float(stability.std()),
        "mean_time_to_first_modification": float(first_mods.mean()) if first_mods.size else None,
        "patterns": patterns,
    }


def generate_hypotheses(a: SessionAnalysis) -> list[str]:
    hypotheses = []
    if a.time_to_first_modification is not None and a.time_to_first_modification < 60:
        hypotheses.append(
            "behavioral modification follows paradox introduction almost immediately; "
            "modifier floors may be too low to separate signal from noise"
        )
    if a.meta_cognition_level >= 2:
        hypotheses.append("meta-paradox emergence compounds: each one makes the next more likely")
    if a.event_counts.get(EventType.FRUSTRATION_EXPLOSION.value) and a.stability_trend == "improving":
        hypotheses.append("frustration explosions release pressure and precede stabilization")
    if a.coherence_to_fragmentation_time is not None:
        hypotheses.append("coherence degradation is driven by response-style modifiers")
    if a.peak_confusion > 0.8 and a.stability_score > 0.7:
        hypotheses.append("high confusion can be sustained without losing stability")
    if not hypotheses:
        hypotheses.append("session too quiet to support a hypothesis; extend it or raise intensity")
    return hypotheses
