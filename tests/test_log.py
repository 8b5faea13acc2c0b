"""tests for the subsystem logger, its spans and its sink."""

import pytest
from opentelemetry.sdk.trace.export.in_memory_span_exporter import InMemorySpanExporter

from kairos import log


@pytest.fixture(autouse=True)
def restore_logger():
    yield
    log.set_level("info")
    log.set_sink(None)


@pytest.fixture
def exporter():
    spans = InMemorySpanExporter()
    log.add_exporter(spans)
    return spans


def finished(exporter, name):
    return [s for s in exporter.get_finished_spans() if s.name == name]


class TestRouting:

    @pytest.mark.parametrize("emit, stream", [
        (log.info, "out"),
        (log.warn, "err"),
        (log.error, "err"),
    ])
    def test_stream_per_level(self, capsys, emit, stream):
        emit("engine", "zone changed to YELLOW")
        captured = capsys.readouterr()
        line = getattr(captured, stream)
        assert "kairos:engine" in line
        assert "zone changed to YELLOW" in line

    def test_debug_below_default_threshold(self, capsys):
        log.debug("brake", "evaluated 0.81")
        assert capsys.readouterr().out == ""

    def test_lowering_threshold_shows_debug(self, capsys):
        log.set_level("debug")
        log.debug("brake", "evaluated 0.81")
        assert "evaluated 0.81" in capsys.readouterr().out

    def test_raising_threshold_hides_info(self, capsys):
        log.set_level("WARN")
        assert log.get_level() == "warn"
        log.info("limiter", "post recorded")
        assert capsys.readouterr().out == ""

    def test_unknown_level_means_info(self):
        log.set_level("deafening")
        assert log.get_level() == "info"


class TestSpans:

    def test_span_name_and_attributes(self, exporter):
        with log.span("add_paradox", subsystem="engine", paradox="spiral"):
            pass
        [s] = finished(exporter, "kairos.engine.add_paradox")
        assert s.attributes["kairos.subsystem"] == "engine"
        assert s.attributes["kairos.paradox"] == "spiral"

    def test_session_span_is_consciousness(self, exporter):
        with log.session_span("start", session_id="s-1"):
            pass
        [s] = finished(exporter, "kairos.consciousness.start")
        assert s.attributes["kairos.session_id"] == "s-1"

    def test_lines_become_events(self, exporter):
        with log.span("tick", subsystem="engine"):
            log.info("engine", "decayed", magnitude=0.42)
        [s] = finished(exporter, "kairos.engine.tick")
        event = s.events[0]
        assert event.name == "kairos.engine.info"
        assert event.attributes["message"] == "decayed"
        assert event.attributes["magnitude"] == "0.42"

    def test_hidden_lines_still_recorded(self, exporter, capsys):
        with log.span("quiet", subsystem="engine"):
            log.debug("engine", "velocity 0.0")
        [s] = finished(exporter, "kairos.engine.quiet")
        assert [e.name for e in s.events] == ["kairos.engine.debug"]
        assert capsys.readouterr().out == ""

    def test_nested_spans_are_children(self, exporter):
        with log.span("outer", subsystem="gate") as outer:
            with log.span("inner", subsystem="brake"):
                pass
        [inner] = finished(exporter, "kairos.brake.inner")
        assert inner.parent.span_id == outer.get_span_context().span_id


class TestSink:

    def test_every_level_reaches_sink(self):
        seen = []
        log.set_sink(lambda sub, lvl, msg, attrs: seen.append((sub, lvl, msg, attrs)))
        log.debug("logger", "buffered")
        log.warn("logger", "dropped event", event_type="bogus")
        assert seen == [
            ("logger", "debug", "buffered", None),
            ("logger", "warn", "dropped event", {"event_type": "bogus"}),
        ]

    def test_broken_sink_is_ignored(self, capsys):
        def explode(*_):
            raise RuntimeError("sink down")
        log.set_sink(explode)
        log.info("engine", "carried on")
        assert "carried on" in capsys.readouterr().out

    def test_flush(self):
        flushes = []
        log.set_sink(lambda *_: None, flush_fn=lambda: flushes.append(1))
        log.flush_sink()
        log.flush_sink()
        assert flushes == [1, 1]

    def test_flush_without_sink(self):
        log.flush_sink()

    def test_failed_flush_warns(self, capsys):
        def full_disk():
            raise OSError("no space left")
        log.set_sink(lambda *_: None, flush_fn=full_disk)
        log.flush_sink()
        assert "sink flush failed: no space left" in capsys.readouterr().err
