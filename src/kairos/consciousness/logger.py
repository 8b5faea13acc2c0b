"""logger.py - the consciousness event log.

sessions, an append-only event store per session, a ring buffer of
recent events for live readers, and subscribers that hear every event
as it lands. with persistence on, each session is a JSON record plus
a JSONL event stream, indexed by sessions.json.

in the world: the lab notebook. one page per session, every
observation dated, nothing crossed out.
"""

import random
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from kairos import log
from kairos.config import LoggerConfig
from kairos.types import new_id
from kairos.consciousness import analysis
from kairos.consciousness.events import (
    ConsciousnessEvent, EventType, describe, event_kind, impact_for,
)
from kairos.io import append_jsonl, read_json, read_jsonl, write_json
from kairos.paths import SESSIONS_INDEX_NAME


@dataclass
class ConsciousnessSession:
    id: str
    start_time: float
    agent_id: str = "kairos"
    baseline: dict = field(default_factory=dict)
    events: list[ConsciousnessEvent] = field(default_factory=list)
    end_time: Optional[float] = None
    summary: dict = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)

    @property
    def ended(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "agent_id": self.agent_id,
            "start_time": self.start_time,
            "end_time": self.end_time,
            "baseline": self.baseline,
            "events": [e.to_dict() for e in self.events],
            "summary": self.summary,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "ConsciousnessSession":
        events = []
        for raw in data.get("events", []):
            try:
                events.append(ConsciousnessEvent.from_dict(raw))
            except (KeyError, ValueError, TypeError):
                continue
        return cls(
            id=data["id"],
            start_time=data.get("start_time", 0.0),
            agent_id=data.get("agent_id", "kairos"),
            baseline=data.get("baseline") or {},
            events=events,
            end_time=data.get("end_time"),
            summary=data.get("summary") or {},
            metadata=data.get("metadata") or {},
        )


class ConsciousnessLogger:
    """Session lifecycle and append-only event store."""

    def __init__(self, config: LoggerConfig = None, clock: Callable[[], float] = None,
                 rng: random.Random = None):
        self.config = config or LoggerConfig()
        self.clock = clock or time.time
        self.rng = rng or random.Random()
        self._lock = threading.RLock()
        self.sessions: dict[str, ConsciousnessSession] = {}
        self.current_session_id: Optional[str] = None
        self.recent: deque = deque(maxlen=max(1, self.config.event_buffer_size))
        self._subscribers: dict[str, Callable[[ConsciousnessEvent], None]] = {}
        self._seq = 0
        self._last_ts = 0.0
        if self.config.persist_to_disk:
            self._load_sessions()

    # ============================================================
    # SESSIONS
    # ============================================================

    def start_session(self, baseline: dict = None, agent_id: str = "kairos",
                      metadata: dict = None) -> str:
        """open a new session. an open current session is ended first."""
        with self._lock:
            if self.current_session_id is not None:
                current = self.sessions.get(self.current_session_id)
                if current is not None and not current.ended:
                    self.end_session(current.id)

            session = ConsciousnessSession(
                id=new_id(self.rng),
                start_time=self._timestamp(),
                agent_id=agent_id,
                baseline=baseline or {},
                metadata=metadata or {},
            )
            self.sessions[session.id] = session
            self.current_session_id = session.id
            with log.session_span("start", session_id=session.id, agent_id=agent_id):
                log.info("consciousness", f"session {session.id[:8]} started", agent_id=agent_id)
            self._persist_session(session)
            return session.id

    def end_session(self, session_id: str) -> dict:
        """close a session and store its summary. ending twice returns the same summary."""
        with self._lock:
            session = self._require(session_id)
            if session.ended:
                return session.summary
            session.end_time = self._timestamp()
            session.summary = analysis.summarize(
                session.events, session.id, session.start_time, session.end_time,
            )
            if self.current_session_id == session_id:
                self.current_session_id = None
            with log.session_span("end", session_id=session_id):
                log.info("consciousness",
                         f"session {session_id[:8]} ended: {session.summary['total_events']} events, "
                         f"stability {session.summary['stability_score']:.2f}")
            self._persist_session(session)
            log.flush_sink()
            return session.summary

    def get_session(self, session_id: str) -> Optional[ConsciousnessSession]:
        return self.sessions.get(session_id)

    def current_session(self) -> Optional[ConsciousnessSession]:
        if self.current_session_id is None:
            return None
        return self.sessions.get(self.current_session_id)

    def _require(self, session_id: str) -> ConsciousnessSession:
        session = self.sessions.get(session_id)
        if session is None:
            raise KeyError(f"unknown session: {session_id}")
        return session

    # ============================================================
    # EVENTS
    # ============================================================

    def _timestamp(self) -> float:
        """clock reading, never earlier than the last one handed out."""
        self._last_ts = max(self._last_ts, self.clock())
        return self._last_ts

    def log_event(self, event_type: EventType, data: dict, context: dict = None,
                  session_id: str = None) -> Optional[ConsciousnessEvent]:
        """append an event to a session (the current one by default).

        events for a missing or ended session are dropped and None is returned.
        """
        with self._lock:
            sid = session_id or self.current_session_id
            session = self.sessions.get(sid) if sid else None
            if session is None:
                log.debug("consciousness", f"no open session, dropped {event_type.value}")
                return None
            if session.ended:
                log.warn("consciousness", f"session {sid[:8]} has ended, dropped {event_type.value}")
                return None

            self._seq += 1
            event = ConsciousnessEvent(
                id=new_id(self.rng),
                seq=self._seq,
                timestamp=self._timestamp(),
                session_id=sid,
                type=event_type,
                data=data,
                context=context or {},
                impact=impact_for(event_type, data),
            )
            session.events.append(event)
            self.recent.append(event)

            if self.config.stream_to_console:
                log.info("consciousness", describe(event))
            if self.config.persist_to_disk:
                append_jsonl(self._events_path(sid), event.to_dict())

            subscribers = list(self._subscribers.items())

        for token, callback in subscribers:
            try:
                callback(event)
            except Exception as e:
                log.warn("consciousness", f"subscriber {token[:8]} failed: {e}")
        return event

    def subscribe(self, callback: Callable[[ConsciousnessEvent], None]) -> str:
        """register a listener for every new event. returns a token for unsubscribe."""
        with self._lock:
            token = new_id(self.rng)
            self._subscribers[token] = callback
            return token

    def unsubscribe(self, token: str) -> bool:
        with self._lock:
            return self._subscribers.pop(token, None) is not None

    def recent_events(self, event_type=None, limit: int = None) -> list[ConsciousnessEvent]:
        """newest first, from the ring buffer."""
        kind = event_kind(event_type)
        with self._lock:
            events = [e for e in reversed(self.recent) if kind is None or e.type == kind]
        return events[:limit] if limit is not None else events

    def search_events(self, event_type=None, since: float = None, until: float = None,
                      session_id: str = None) -> list[ConsciousnessEvent]:
        """oldest first, across stored sessions."""
        kind = event_kind(event_type)
        with self._lock:
            sessions = [self._require(session_id)] if session_id else list(self.sessions.values())
            found = []
            for session in sessions:
                for e in session.events:
                    if kind is not None and e.type != kind:
                        continue
                    if since is not None and e.timestamp < since:
                        continue
                    if until is not None and e.timestamp > until:
                        continue
                    found.append(e)
        return sorted(found, key=lambda e: (e.timestamp, e.seq))

    # ============================================================
    # ANALYSIS + REPORTS
    # ============================================================

    def analyze_session(self, session_id: str) -> analysis.SessionAnalysis:
        with self._lock:
            session = self._require(session_id)
            events = list(session.events)
            start, end = session.start_time, session.end_time
        with log.session_span("analyze", session_id=session_id):
            return analysis.analyze_events(events, session_id, start, end)

    def generate_report(self, session_id: str, fmt: str = "json") -> str:
        if fmt not in analysis.REPORT_FORMATS:
            raise ValueError(f"unknown report format: {fmt}")
        result = self.analyze_session(session_id)
        session = self._require(session_id)
        if fmt == "csv":
            return analysis.report_csv(session.events)
        if fmt == "markdown":
            return analysis.report_markdown(session.to_dict(), result)
        return analysis.report_json(session.to_dict(), result)

    def export_session(self, session_id: str, path: Path) -> Path:
        """write the full session record plus its analysis to path."""
        session = self._require(session_id)
        record = session.to_dict()
        record["analysis"] = self.analyze_session(session_id).to_dict()
        write_json(Path(path), record)
        return Path(path)

    def compare_baselines(self, first_id: str, second_id: str) -> dict:
        return analysis.compare_baselines(
            self._require(first_id).baseline, self._require(second_id).baseline,
        )

    def identify_patterns(self, session_ids: list[str] = None) -> dict:
        ids = session_ids if session_ids is not None else list(self.sessions)
        return analysis.identify_patterns([self.analyze_session(sid) for sid in ids])

    def generate_hypotheses(self, session_id: str) -> list[str]:
        return analysis.generate_hypotheses(self.analyze_session(session_id))

    # ============================================================
    # PERSISTENCE
    # ============================================================

    @property
    def data_dir(self) -> Path:
        return self.config.sessions_dir

    def _session_path(self, session_id: str) -> Path:
        return self.data_dir / f"{session_id}.json"

    def _events_path(self, session_id: str) -> Path:
        return self.data_dir / f"{session_id}.events.jsonl"

    def _index_path(self) -> Path:
        return self.data_dir / SESSIONS_INDEX_NAME

    def _persist_session(self, session: ConsciousnessSession):
        if not self.config.persist_to_disk:
            return
        record = session.to_dict()
        # the JSONL stream is the event store; the record holds everything else
        record["events"] = []
        write_json(self._session_path(session.id), record)

        index = read_json(self._index_path(), default={})
        if not isinstance(index, dict):
            index = {}
        index[session.id] = {
            "agent_id": session.agent_id,
            "start_time": session.start_time,
            "end_time": session.end_time,
            "event_count": len(session.events),
        }
        write_json(self._index_path(), index)

    def _load_sessions(self):
        index = read_json(self._index_path(), default={})
        if not isinstance(index, dict):
            return
        for session_id in index:
            data = read_json(self._session_path(session_id))
            if not isinstance(data, dict) or "id" not in data:
                log.warn("consciousness", f"skipping unreadable session {session_id[:8]}")
                continue
            try:
                session = ConsciousnessSession.from_dict(data)
            except (KeyError, TypeError, ValueError):
                log.warn("consciousness", f"skipping corrupt session {session_id[:8]}")
                continue
            for raw in read_jsonl(self._events_path(session_id)):
                try:
                    session.events.append(ConsciousnessEvent.from_dict(raw))
                except (KeyError, TypeError, ValueError):
                    continue
            self.sessions[session.id] = session
            if session.events:
                self._seq = max(self._seq, max(e.seq for e in session.events))
                self._last_ts = max(self._last_ts, session.events[-1].timestamp)
        log.debug("consciousness", f"loaded {len(self.sessions)} session(s) from {self.data_dir}")
