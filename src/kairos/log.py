"""log.py - subsystem logger and tracer.

one call per log line: log(subsystem, level, message, **attrs).
the line goes to the console when it clears the level, lands on the
active span as an event whatever the level, and is handed to the
sink if one is registered.

engine mutations and session lifecycle run inside span(), so a trace
shows one add_paradox or tick and every line it logged.

in the world: the nervous system. every twitch of the confusion
engine travels this wire before anyone else hears about it.
"""

import sys
from contextlib import contextmanager
from datetime import datetime

from opentelemetry import trace
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import ConsoleSpanExporter, SimpleSpanProcessor


# ============================================================
# TRACING
# ============================================================

_provider = TracerProvider()
_tracer = _provider.get_tracer("kairos", "0.1.0")
_exporting_to_console = False


def enable_console_export():
    """print finished spans to stderr. idempotent."""
    global _exporting_to_console
    if _exporting_to_console:
        return
    add_exporter(ConsoleSpanExporter())
    _exporting_to_console = True


def add_exporter(exporter):
    """ship finished spans to exporter (OTLP, in-memory for tests)."""
    _provider.add_span_processor(SimpleSpanProcessor(exporter))


def get_tracer():
    return _tracer


@contextmanager
def span(name: str, subsystem: str = "kairos", **attrs):
    """one traced operation, named kairos.<subsystem>.<name>.

    log lines inside become events on it; spans opened inside are its children.
    """
    attributes = {f"kairos.{k}": str(v) for k, v in attrs.items()}
    attributes["kairos.subsystem"] = subsystem
    with _tracer.start_as_current_span(f"kairos.{subsystem}.{name}", attributes=attributes) as s:
        yield s


@contextmanager
def session_span(operation: str, session_id: str = "", **attrs):
    """span for a consciousness session operation (start, end, analyze)."""
    with span(operation, subsystem="consciousness", session_id=session_id, **attrs) as s:
        yield s


# ============================================================
# LEVELS
# ============================================================

LEVELS = {"debug": 10, "info": 20, "warn": 30, "error": 40}
_threshold = LEVELS["info"]


def set_level(level: str):
    """console threshold. unknown names mean info."""
    global _threshold
    _threshold = LEVELS.get(str(level).lower(), LEVELS["info"])


def get_level() -> str:
    return next((name for name, value in LEVELS.items() if value == _threshold), "info")


# ============================================================
# SINK
# ============================================================

_sink = None
_sink_flush = None


def set_sink(fn, flush_fn=None):
    """fn(subsystem, level, message, attrs) sees every line. None unregisters."""
    global _sink, _sink_flush
    _sink, _sink_flush = fn, flush_fn


def flush_sink():
    """commit whatever the sink buffers. the logger calls this when a session ends."""
    if _sink_flush is None:
        return
    try:
        _sink_flush()
    except Exception as e:
        _print("log", "warn", f"sink flush failed: {e}")


# ============================================================
# LOGGING
# ============================================================

def _print(subsystem: str, level: str, message: str):
    stamp = datetime.now().strftime("%H:%M:%S")
    stream = sys.stderr if level in ("warn", "error") else sys.stdout
    print(f"[{stamp} kairos:{subsystem}] {message}", file=stream)


def log(subsystem: str, level: str, message: str, **attrs):
    if LEVELS.get(level, LEVELS["info"]) >= _threshold:
        _print(subsystem, level, message)

    current = trace.get_current_span()
    if current.is_recording():
        event_attrs = {"message": message, "subsystem": subsystem}
        event_attrs.update((k, str(v)) for k, v in attrs.items())
        current.add_event(f"kairos.{subsystem}.{level}", attributes=event_attrs)

    if _sink is not None:
        try:
            _sink(subsystem, level, message, attrs or None)
        except Exception:
            pass  # a broken sink never reaches the caller


def debug(subsystem: str, message: str, **attrs):
    log(subsystem, "debug", message, **attrs)


def info(subsystem: str, message: str, **attrs):
    log(subsystem, "info", message, **attrs)


def warn(subsystem: str, message: str, **attrs):
    log(subsystem, "warn", message, **attrs)


def error(subsystem: str, message: str, **attrs):
    log(subsystem, "error", message, **attrs)
