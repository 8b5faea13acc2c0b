"""engine.py - the confusion state engine.

add_paradox, accumulate_frustration and tick are the only ways state
changes. each one runs to completion under one re-entrant lock, inside
one span, and reports what it did to the consciousness logger.

    impact -> meta-paradox check -> modifiers -> safety checks -> zone

nothing here raises for a bad state. bad numbers are corrected, runaway
confusion is reset, and the caller finds out from get_safety_metrics()
and the event log.

in the world: the weather system. paradoxes are the fronts moving in,
frustration is the pressure, the zones are the storm warnings.
"""

import copy
import json
import math
import random
import threading
import time
from typing import Callable, Optional

from kairos import log
from kairos.config import Config, EngineConfig, LoggerConfig, load_config
from kairos.confusion import frustration as frustration_mod
from kairos.confusion import modifiers as modifier_mod
from kairos.confusion import paradox as paradox_mod
from kairos.confusion import vector as vector_mod
from kairos.confusion import zones
from kairos.consciousness.events import EventType
from kairos.consciousness.logger import ConsciousnessLogger
from kairos.types import (
    BehavioralModifier, BehavioralState, ConfusionState, ConfusionVector,
    ExplosionPattern, FrustrationState, Paradox, ParadoxSpec, SafetyZone,
    Tone, ZoneTransition, baseline_snapshot, new_id,
)


GREEN_META_GATE = 0.3  # share of GREEN-zone additions that get a meta-paradox check
ZONE_POSTING_MODIFIER = {
    SafetyZone.GREEN: 1.0,
    SafetyZone.YELLOW: 0.75,
    SafetyZone.RED: 0.5,
}


def initial_state(cfg: EngineConfig, now: float = 0.0) -> ConfusionState:
    return ConfusionState(
        vector=ConfusionVector(),
        frustration=FrustrationState(threshold=cfg.frustration_threshold),
        behavior=BehavioralState(),
        timestamp=now,
    )


class ConfusionEngine:
    """Owns the confusion state and everything allowed to touch it."""

    def __init__(self, config: EngineConfig = None, logger: ConsciousnessLogger = None,
                 rng: random.Random = None, clock: Callable[[], float] = None,
                 state: ConfusionState = None):
        self.config = config or EngineConfig()
        self.rng = rng or random.Random()
        self.clock = clock or time.time
        self.logger = logger or ConsciousnessLogger(clock=self.clock, rng=self.rng)
        self.lock = threading.RLock()

        now = self.clock()
        self.state = state or initial_state(self.config, now)
        self.monitor = zones.SafetyMonitor(last_confusion=self.state.vector.magnitude)
        self.session_id: Optional[str] = None
        self._session_started_at: Optional[float] = None
        self._first_modification_seen = False
        self._last_update = now

        self.zone = self._classify()
        self.zone_history: list[ZoneTransition] = [ZoneTransition(
            zone=self.zone, timestamp=now,
            confusion=self.state.vector.magnitude, coherence=self.coherence,
            reason="initial",
        )]

    @classmethod
    def from_config(cls, config: Config = None, clock: Callable[[], float] = None) -> "ConfusionEngine":
        """wire an engine and its logger from layered config."""
        config = config or load_config()
        log.set_level(config.get("log_level") or "info")
        rng = random.Random(config.get("seed"))
        logger = ConsciousnessLogger(LoggerConfig.from_config(config), clock=clock, rng=rng)
        return cls(EngineConfig.from_config(config), logger, rng, clock)

    # ============================================================
    # READ-ONLY VIEWS
    # ============================================================

    @property
    def magnitude(self) -> float:
        return self.state.vector.magnitude

    @property
    def coherence(self) -> float:
        return self.state.behavior.posting.coherence

    def _classify(self) -> SafetyZone:
        cfg = self.config
        return zones.determine_zone(
            self.state.vector.magnitude, self.coherence,
            cfg.coherence_threshold, cfg.green_ceiling, cfg.red_floor,
        )

    def current_zone(self) -> SafetyZone:
        with self.lock:
            return self._classify()

    def get_state(self) -> ConfusionState:
        """deep copy. mutating it never reaches the engine."""
        with self.lock:
            snapshot = copy.deepcopy(self.state)
            snapshot.timestamp = self.clock()
            return snapshot

    def get_zone_history(self) -> list[ZoneTransition]:
        with self.lock:
            return list(self.zone_history)

    def get_safety_metrics(self) -> dict:
        with self.lock:
            zone = self._classify()
            m = self.monitor
            return {
                "zone": zone.value,
                "confusion": self.magnitude,
                "coherence": self.coherence,
                "oscillation": self.state.vector.oscillation,
                "recovery_rate": m.recoveries[zone].rate,
                "recovery_rates": {z.value: r.rate for z, r in m.recoveries.items()},
                "recovery_attempts": {z.value: r.attempts for z, r in m.recoveries.items()},
                "dissociation_risk": zones.dissociation_risk(self.coherence, self.config.coherence_threshold),
                "dissociation_detected": m.dissociation_detected,
                "fragmentation_level": m.fragmentation_level,
                "emergency_stop_triggered": m.emergency_stop_triggered,
                "stop_reason": m.stop_reason,
                "auto_paused": m.auto_paused,
                "supervised_mode": m.supervised_mode,
                "emergency_reset_available": m.emergency_reset_available,
                "emergency_reset_count": m.emergency_reset_count,
                "paradox_count": len(self.state.paradoxes),
                "meta_paradox_count": len(self.state.meta_paradoxes),
                "max_confusion": self.config.max_confusion,
                "mode": self.config.mode,
            }

    def get_behavioral_recommendations(self) -> dict:
        """what the host should do next, read off the current state."""
        with self.lock:
            zone = self._classify()
            posting = self.state.behavior.posting
            v = self.state.vector
            should_post = self.rng.random() < (posting.frequency / 10) * ZONE_POSTING_MODIFIER[zone]

            strategy = "normal"
            if v.magnitude > 0.7:
                strategy = "deeply_confused"
            elif v.oscillation > 0.5:
                strategy = "uncertain_about_uncertainty"
            elif self.state.frustration.level > 0.5:
                strategy = "frustrated_seeking"
            elif posting.coherence < self.config.coherence_threshold:
                strategy = "dissociated"

            focus = v.direction[:math.ceil(self.state.behavior.investigation.breadth * 3)]
            return {
                "should_post": should_post,
                "posting_style": copy.deepcopy(posting),
                "response_strategy": strategy,
                "investigation_focus": list(focus),
                "zone": zone,
                "zone_posting_modifier": ZONE_POSTING_MODIFIER[zone],
                "coherence_warning": posting.coherence < self.config.coherence_threshold,
            }

    def serialize(self) -> str:
        with self.lock:
            return json.dumps({
                "state": self.state.to_dict(),
                "safety": self.get_safety_metrics(),
                "zone_history": [t.to_dict() for t in self.zone_history],
                "session_id": self.session_id,
            }, indent=2)

    # ============================================================
    # SESSIONS
    # ============================================================

    def start_session(self, baseline: dict = None) -> str:
        """open a logger session. a baseline snapshot re-seeds the engine first."""
        with self.lock:
            if baseline:
                self.restore(baseline)
            now = self.clock()
            snapshot = baseline_snapshot(self.state)
            self.session_id = self.logger.start_session(
                snapshot, agent_id=self.config.agent_id,
                metadata={"mode": self.config.mode, "engine": self.config.to_dict()},
            )
            self._session_started_at = now
            self._first_modification_seen = False
            self._emit(EventType.BASELINE_ESTABLISHMENT, {"baseline": snapshot})
            return self.session_id

    def end_session(self, session_id: str = None) -> dict:
        with self.lock:
            sid = session_id or self.session_id
            if sid is None:
                raise KeyError("no session to end")
            summary = self.logger.end_session(sid)
            if sid == self.session_id:
                self.session_id = None
                self._session_started_at = None
            return summary

    def restore(self, snapshot: dict):
        """re-seed vector, behavior and frustration from a baseline snapshot.

        parts missing from the snapshot are left as they are. paradox
        registries are restored too when the snapshot carries them.
        """
        with self.lock:
            restored = ConfusionState.from_dict(snapshot)
            if "vector" in snapshot:
                self.state.vector = restored.vector
            if "behavior" in snapshot:
                self.state.behavior = restored.behavior
            if "frustration" in snapshot:
                self.state.frustration = restored.frustration
            if "paradoxes" in snapshot:
                self.state.paradoxes = restored.paradoxes
            if "meta_paradoxes" in snapshot:
                self.state.meta_paradoxes = restored.meta_paradoxes
            self._safety_checks(self.clock())
            self._update_zone(self.clock())
            log.info("engine", f"restored state at confusion {self.magnitude:.3f}")

    # ============================================================
    # EVENTS
    # ============================================================

    def _context(self) -> dict:
        return {
            "magnitude": self.state.vector.magnitude,
            "coherence": self.coherence,
            "oscillation": self.state.vector.oscillation,
            "zone": self._classify().value,
            "paradox_count": len(self.state.paradoxes),
            "meta_paradox_count": len(self.state.meta_paradoxes),
        }

    def _emit(self, event_type: EventType, data: dict):
        if self.session_id is None:
            return None
        return self.logger.log_event(event_type, data, self._context(), self.session_id)

    def _emit_confusion_change(self, old: float, trigger: str):
        new = self.state.vector.magnitude
        crossed = (old < self.config.green_ceiling <= new) or (old < self.config.red_floor <= new)
        self._emit(EventType.CONFUSION_CHANGE, {
            "old_magnitude": old,
            "new_magnitude": new,
            "velocity": self.state.vector.velocity,
            "acceleration": self.state.vector.acceleration,
            "trigger": trigger,
            "threshold_breach": crossed,
        })

    def _emit_coherence_degradation(self, old: float, new: float, cause: str):
        markers = []
        if self.state.behavior.posting.tone == Tone.FRAGMENTED:
            markers.append("fragmented_tone")
        if new < self.config.coherence_threshold:
            markers.append("below_threshold")
        self._emit(EventType.COHERENCE_DEGRADATION, {
            "old_coherence": old,
            "new_coherence": new,
            "cause": cause,
            "fragmentation_markers": markers,
        })

    # ============================================================
    # PARADOXES
    # ============================================================

    def add_paradox(self, spec: ParadoxSpec) -> Optional[str]:
        """introduce a paradox. returns its id, or None if policy rejected it."""
        with self.lock, log.span("add_paradox", subsystem="engine",
                                 paradox=spec.name, intensity=spec.intensity):
            now = self.clock()
            self.monitor.refresh_cooldown(now)
            cfg = self.config
            m = self.state.vector.magnitude

            if not math.isfinite(spec.intensity):
                self._correct("numeric", f"non-finite intensity {spec.intensity} on paradox {spec.name}, rejected")
                return None
            if self.monitor.emergency_stop_triggered:
                log.warn("engine", f"emergency stop active, rejected paradox {spec.name}")
                return None
            if self.monitor.auto_paused:
                log.warn("engine", f"auto-paused, rejected paradox {spec.name} until resumed")
                return None
            if cfg.auto_pause_threshold is not None and m > cfg.auto_pause_threshold:
                self.monitor.auto_paused = True
                log.warn("engine", f"auto-pause at confusion {m:.3f}, rejected paradox {spec.name}")
                return None

            zone = self._classify()
            if zone == SafetyZone.RED and spec.intensity > 0:
                if m >= cfg.emergency_threshold and self.monitor.emergency_reset_available:
                    self._emergency_reset(now, f"paradox {spec.name} pushed at confusion {m:.3f}")
                    return None
                if spec.intensity > 0.7 and m >= cfg.max_confusion:
                    log.warn("engine", f"RED zone at limit {m:.3f}, rejected paradox {spec.name}")
                    return None
            if zone == SafetyZone.YELLOW:
                log.info("engine", f"YELLOW zone paradox {spec.name} at confusion {m:.3f}")

            paradox = Paradox.from_spec(spec, new_id(self.rng), now)
            self.state.paradoxes[paradox.id] = paradox

            v = self.state.vector
            old = v.magnitude
            vector_mod.apply_impact(v, paradox.intensity, cfg.max_confusion)
            vector_mod.add_direction(v, [paradox.name])
            vector_mod.update_motion(v, old, now - self._last_update)
            log.debug("engine", f"paradox {paradox.name}: confusion {old:.3f} -> {v.magnitude:.3f}")

            self._emit(EventType.PARADOX_EMERGENCE, {
                "paradox_id": paradox.id,
                "name": paradox.name,
                "intensity": paradox.intensity,
                "modifier_kinds": [mod.kind.value for mod in paradox.modifiers],
            })
            self._emit_confusion_change(old, f"paradox_{paradox.name}_impact")

            self._check_meta_paradoxes(paradox, now)
            self._apply_modifiers(paradox.modifiers, paradox.name, now)
            self._safety_checks(now)
            self._update_zone(now)
            self._last_update = now
            return paradox.id

    def _check_meta_paradoxes(self, paradox: Paradox, now: float):
        if self._classify() == SafetyZone.GREEN and self.rng.random() > GREEN_META_GATE:
            return
        for existing, score in paradox_mod.find_interactions(self.state.paradoxes, paradox, self.rng):
            meta = paradox_mod.synthesize_meta(existing, paradox, score, self.rng, now)
            self.state.meta_paradoxes[meta.id] = meta
            existing.interacts_with.add(paradox.id)
            paradox.interacts_with.add(existing.id)

            v = self.state.vector
            v.oscillation = min(1.0, v.oscillation + 0.1)
            log.info("engine", f"meta-paradox {meta.name} (score {score:.2f})")
            self._emit(EventType.META_PARADOX_EMERGENCE, {
                "meta_id": meta.id,
                "name": meta.name,
                "source_ids": list(meta.source_ids),
                "emergent_property": meta.emergent_property,
                "interaction_score": score,
                "modifier_kinds": [mod.kind.value for mod in meta.modifiers],
            })
            self._apply_modifiers(meta.modifiers, meta.name, now)

    # ============================================================
    # MODIFIERS
    # ============================================================

    def _apply_modifiers(self, mods: list[BehavioralModifier], source: str, now: float):
        active = paradox_mod.active_names(self.state.paradoxes)
        v = self.state.vector
        for modifier in mods:
            if not modifier_mod.should_fire(modifier, v.magnitude, v.acceleration, active, self.rng, now):
                continue
            changes = modifier_mod.apply_modifier(self.state.behavior, modifier)
            first = not self._first_modification_seen and self.session_id is not None
            self._emit(EventType.BEHAVIORAL_MODIFICATION, {
                "kind": modifier.kind.value,
                "modification": modifier.modification,
                "source": source,
                "changes": changes,
                "first": first,
            })
            if first:
                self._first_modification_seen = True
                elapsed = now - (self._session_started_at or now)
                log.info("engine", f"first behavioral modification after {elapsed:.1f}s ({source})")
                self._emit(EventType.FIRST_MODIFICATION, {
                    "seconds_from_start": elapsed,
                    "triggering_paradox": source,
                    "kind": modifier.kind.value,
                })
            dropped = modifier_mod.coherence_drop(changes)
            if dropped:
                self._emit_coherence_degradation(dropped[0], dropped[1], f"{modifier.kind.value}:{source}")

    def _temporal_modifiers(self, now: float):
        """modifiers with a temporal pattern get re-checked every tick."""
        sources = [(p.name, p.modifiers) for p in self.state.paradoxes.values()]
        sources += [(m.name, m.modifiers) for m in self.state.meta_paradoxes.values()]
        for name, mods in sources:
            timed = [mod for mod in mods if mod.trigger.temporal_pattern is not None]
            if timed:
                self._apply_modifiers(timed, name, now)

    # ============================================================
    # FRUSTRATION
    # ============================================================

    def accumulate_frustration(self, trigger: str, amount: float) -> Optional[ExplosionPattern]:
        """build pressure. returns the explosion pattern if this call set one off."""
        with self.lock, log.span("accumulate_frustration", subsystem="engine",
                                 trigger=trigger, amount=amount):
            now = self.clock()
            if self.monitor.emergency_stop_triggered:
                log.warn("engine", f"emergency stop active, ignored frustration {trigger}")
                return None
            zone = self._classify()
            ready = frustration_mod.accumulate(
                self.state.frustration, trigger, amount, zone, self.magnitude, self.rng,
            )
            log.debug("engine", f"frustration {self.state.frustration.level:.2f} after {trigger}")
            if not ready:
                return None

            pattern = frustration_mod.choose_pattern(self.state, self.rng)
            triggers = list(self.state.frustration.triggers)
            old_coherence = self.coherence
            changes = frustration_mod.explode(self.state, pattern, now)
            log.info("engine", f"frustration explosion: {pattern.value}")
            self._emit(EventType.FRUSTRATION_EXPLOSION, {
                "pattern": pattern.value,
                "triggers": triggers,
                "changes": changes,
                "zone": zone.value,
            })
            if self.coherence < old_coherence:
                self._emit_coherence_degradation(old_coherence, self.coherence, f"explosion:{pattern.value}")
            self._safety_checks(now)
            self._update_zone(now)
            return pattern

    # ============================================================
    # TICK
    # ============================================================

    def tick(self, dt: float = None):
        """advance time: decay paradoxes and confusion, restore coherence, re-evaluate."""
        with self.lock, log.span("tick", subsystem="engine"):
            now = self.clock()
            if dt is None:
                dt = max(0.0, now - self._last_update)
            self.monitor.refresh_cooldown(now)
            if self.monitor.emergency_stop_triggered:
                log.debug("engine", "emergency stop active, tick skipped")
                return

            cfg = self.config
            zone = self._classify()
            removed = paradox_mod.decay_paradoxes(
                self.state.paradoxes, dt, cfg.paradox_retention_seconds,
                vector_mod.PARADOX_DECAY[zone],
            )
            for paradox in removed:
                log.debug("engine", f"paradox {paradox.name} faded out")

            v = self.state.vector
            old = v.magnitude
            vector_mod.decay_magnitude(v, zone)
            vector_mod.update_motion(v, old, dt)
            if abs(v.magnitude - old) >= 0.001:
                self._emit_confusion_change(old, "natural_decay")

            posting = self.state.behavior.posting
            if posting.coherence < 1.0:
                posting.coherence = min(1.0, posting.coherence + cfg.coherence_recovery_rate)

            self._temporal_modifiers(now)
            self._safety_checks(now)
            zone = self._update_zone(now)
            if zone != SafetyZone.GREEN and not self.monitor.emergency_stop_triggered:
                self._attempt_recovery(now)
            self._last_update = now

    # ============================================================
    # SAFETY
    # ============================================================

    def _update_zone(self, now: float) -> SafetyZone:
        zone = self._classify()
        if zone != self.zone:
            reason = zones.transition_reason(zone, self.magnitude, self.coherence,
                                             self.config.coherence_threshold)
            transition = ZoneTransition(
                zone=zone, timestamp=now, confusion=self.magnitude,
                coherence=self.coherence, previous=self.zone, reason=reason,
            )
            self.zone_history.append(transition)
            log.warn("engine", f"zone {self.zone.value} -> {zone.value}: {reason}")
            self._emit(EventType.ZONE_TRANSITION, transition.to_dict())
            self.zone = zone
        return zone

    def _correct(self, kind: str, detail: str):
        log.warn("engine", f"safety correction: {detail}")
        self._emit(EventType.SAFETY_CORRECTION, {"kind": kind, "detail": detail})

    def _safety_checks(self, now: float):
        cfg = self.config
        m = self.monitor
        v = self.state.vector
        posting = self.state.behavior.posting

        for detail in vector_mod.sanitize(v):
            self._correct("numeric", detail)
        posting.coherence, detail = vector_mod.sanitize_coherence(posting.coherence)
        if detail:
            self._correct("numeric", detail)

        if v.magnitude > cfg.absolute_ceiling:
            self._emergency_reset(now, f"confusion {v.magnitude:.3f} above ceiling {cfg.absolute_ceiling}")
            return
        if v.magnitude > cfg.max_confusion:
            self._correct("ceiling", f"confusion {v.magnitude:.3f} clamped to {cfg.max_confusion}")
            v.magnitude = cfg.max_confusion

        if posting.coherence < cfg.coherence_threshold:
            if not m.dissociation_detected:
                m.dissociation_detected = True
                log.warn("engine", f"dissociation detected at coherence {posting.coherence:.3f}")
                self._coherence_recovery()
        else:
            m.dissociation_detected = False

        m.fragmentation_level = (1 - posting.coherence) * v.magnitude

        if abs(v.magnitude - m.last_confusion) < 0.001 and v.magnitude > cfg.stuck_threshold:
            m.stuck_counter += 1
        else:
            m.stuck_counter = 0
        m.last_confusion = v.magnitude

        if m.stuck_counter > cfg.stuck_checks:
            log.warn("engine", f"stuck at confusion {v.magnitude:.3f} for {m.stuck_counter} checks")
            m.stuck_counter = 0
            recovered = self._attempt_recovery(now)
            if not recovered and self.magnitude > 0.9:
                self._emergency_stop(now, f"stuck at {self.magnitude:.3f} and recovery failed")

    def _coherence_recovery(self):
        posting = self.state.behavior.posting
        old = posting.coherence
        posting.coherence = min(1.0, posting.coherence + 0.2)
        if posting.tone == Tone.FRAGMENTED:
            posting.tone = Tone.QUESTIONING
        v = self.state.vector
        v.oscillation = max(0.05, v.oscillation * 0.7)
        for paradox in self.state.paradoxes.values():
            paradox.interacts_with.discard(paradox.id)
        self._correct("dissociation", f"coherence recovery {old:.3f} -> {posting.coherence:.3f}")

    # ============================================================
    # RECOVERY
    # ============================================================

    def attempt_recovery(self) -> bool:
        """run the current zone's strategy chain. True if any strategy succeeded."""
        with self.lock, log.span("attempt_recovery", subsystem="engine"):
            now = self.clock()
            result = self._attempt_recovery(now)
            self._update_zone(now)
            return result

    def _attempt_recovery(self, now: float) -> bool:
        zone = self._classify()
        if zone == SafetyZone.YELLOW:
            self.monitor.supervised_mode = True

        success = False
        for strategy in zones.strategies_for(zone, self.magnitude, self.config.emergency_threshold):
            if strategy is zones.EMERGENCY_RESET:
                self._emergency_reset(now, "recovery chain exhausted at extreme confusion")
                success = True
                break
            old = self.magnitude
            success = strategy.attempt(self.state, self.rng)
            log.debug("engine", f"recovery {strategy.name}: {'ok' if success else 'failed'}")
            self._emit(EventType.RECOVERY_ATTEMPT, {
                "strategy": strategy.name,
                "zone": zone.value,
                "success": success,
                "old_magnitude": old,
                "new_magnitude": self.magnitude,
            })
            if success:
                break

        self.monitor.record_attempt(zone, success)
        return success

    def _emergency_reset(self, now: float, reason: str):
        old = self.magnitude
        cleared = list(self.state.paradoxes)
        zones.reset_state(self.state)
        self.monitor.emergency_reset_count += 1
        self.monitor.last_emergency_reset = now
        self.monitor.stuck_counter = 0
        self.monitor.last_confusion = self.magnitude
        log.warn("engine", f"EMERGENCY RESET: {reason}")
        self._emit(EventType.EMERGENCY_RESET, {
            "reason": reason,
            "old_magnitude": old,
            "new_magnitude": self.magnitude,
            "cleared_paradoxes": cleared,
        })
        self._update_zone(now)

    def trigger_emergency_stop(self, reason: str = "manual"):
        with self.lock:
            self._emergency_stop(self.clock(), reason)

    def _emergency_stop(self, now: float, reason: str):
        old = self.magnitude
        zones.stop_state(self.state)
        m = self.monitor
        m.emergency_stop_triggered = True
        m.stop_reason = reason
        m.emergency_reset_available = False
        m.reset_available_at = now + self.config.emergency_cooldown_seconds
        log.error("engine", f"EMERGENCY STOP: {reason}")
        self._emit(EventType.EMERGENCY_RESET, {
            "reason": f"emergency stop: {reason}",
            "old_magnitude": old,
            "new_magnitude": self.magnitude,
            "stop": True,
        })
        self._update_zone(now)

    def resume(self, confirmed: bool = False) -> bool:
        """lift emergency stop, auto-pause and supervised mode. needs confirmation, not RED."""
        with self.lock:
            if not confirmed:
                log.warn("engine", "resume requires confirmation")
                return False
            if self._classify() == SafetyZone.RED:
                log.warn("engine", "cannot resume in RED zone")
                return False
            m = self.monitor
            m.emergency_stop_triggered = False
            m.stop_reason = ""
            m.auto_paused = False
            m.supervised_mode = False
            log.info("engine", f"resumed at confusion {self.magnitude:.3f}")
            return True
