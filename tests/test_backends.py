"""Tests for backend base class and built-in backends."""

import json

import pytest
import yaml

from unistt.backends.base import BaseSTTBackend
from unistt.backends.replay import ReplayBackend, load_transcript
from unistt.backends.scripted import ScriptedBackend
from unistt.exceptions import InvalidLocaleError, RecognitionError, TranscriptError
from unistt.models import Mode, Result, Segment, Status
from unistt.protocol import STTBackend


class ConcreteBackend(BaseSTTBackend):
    """Concrete implementation of BaseSTTBackend for testing."""

    @property
    def available(self):
        return True

    def start(self):
        self._publish_status(Status.RECORDING)

    def stop(self):
        self._publish_status(Status.IDLE)

    def done(self):
        self._publish_status(Status.IDLE)


def collect(stream):
    values = []
    stream.subscribe(values.append)
    return values


class TestBaseSTTBackend:
    """Tests for BaseSTTBackend plumbing."""

    def test_defaults(self):
        backend = ConcreteBackend()
        assert backend.locale == "en_US"
        assert backend.mode == Mode.UNSPECIFIED
        assert backend.contextual_strings == []
        assert backend.status == Status.IDLE
        assert backend.available_locales is None

    def test_satisfies_protocol(self):
        assert isinstance(ConcreteBackend(), STTBackend)

    def test_locale_is_canonicalised(self):
        backend = ConcreteBackend(locale="en-gb")
        assert backend.locale == "en_GB"
        backend.locale = "FR"
        assert backend.locale == "fr"

    def test_invalid_locale_rejected(self):
        with pytest.raises(InvalidLocaleError):
            ConcreteBackend(locale="nope nope")

    def test_initial_locales_canonicalised(self):
        backend = ConcreteBackend(available_locales=["en-US", "fr"])
        assert backend.available_locales == frozenset({"en_US", "fr"})

    def test_locale_snapshot_matches_stream(self):
        backend = ConcreteBackend()
        values = collect(backend.available_locales_stream)
        backend._publish_available_locales(["de-DE"])
        assert values == [None, frozenset({"de_DE"})]
        assert backend.available_locales == values[-1]

    def test_status_stream_replays_current(self):
        backend = ConcreteBackend()
        backend.start()
        assert collect(backend.status_stream) == [Status.RECORDING]

    def test_result_and_error_streams(self):
        backend = ConcreteBackend()
        results = collect(backend.result_stream)
        errors = collect(backend.error_stream)
        result = Result("x", confidence=1.0, locale="en")
        error = RecognitionError("bad")

        backend._publish_result(result)
        backend._publish_error(error)

        assert results == [result]
        assert errors == [error]

    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            BaseSTTBackend()  # type: ignore[abstract]


class TestScriptedBackend:
    """Tests for ScriptedBackend."""

    def test_start_plays_non_final_items(self):
        interim = Result("a", confidence=1.0, locale="en")
        error = RecognitionError("glitch")
        final = Result("a b", confidence=1.0, locale="en", is_final=True)
        backend = ScriptedBackend(script=[interim, error, final])
        results = collect(backend.result_stream)
        errors = collect(backend.error_stream)

        backend.start()

        assert results == [interim]
        assert errors == [error]
        assert backend.status == Status.RECORDING

    def test_done_publishes_final(self):
        final = Result("a b", confidence=1.0, locale="en", is_final=True)
        backend = ScriptedBackend(script=[final])
        results = collect(backend.result_stream)
        statuses = collect(backend.status_stream)

        backend.start()
        backend.done()

        assert results == [final]
        assert statuses[-2:] == [Status.PROCESSING, Status.IDLE]
        assert backend.done_count == 1

    def test_start_while_recording_is_noop(self):
        backend = ScriptedBackend(script=[Result("a", confidence=1.0, locale="en")])
        results = collect(backend.result_stream)
        backend.start()
        backend.start()
        assert len(results) == 1
        assert backend.start_count == 2

    def test_unavailable_status(self):
        backend = ScriptedBackend(available=False)
        assert backend.available is False
        assert backend.status == Status.UNAVAILABLE
        backend.set_available(True)
        assert backend.status == Status.IDLE

    def test_stop_keeps_unavailable_status(self):
        backend = ScriptedBackend(available=False)
        backend.stop()
        assert backend.status == Status.UNAVAILABLE
        assert backend.stop_count == 1

    def test_announce_locales(self):
        backend = ScriptedBackend(available_locales=["en"])
        backend.announce_locales(["fr", "fr-CA"])
        assert backend.available_locales == frozenset({"fr", "fr_CA"})


class TestLoadTranscript:
    """Tests for load_transcript."""

    def test_plain_text(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text("hello world\n\nsecond line\n")
        transcript = load_transcript(path)
        assert [[s.text for s in u] for u in transcript.utterances] == [
            ["hello", "world"],
            ["second", "line"],
        ]
        assert all(s.confidence == 1.0 for u in transcript.utterances for s in u)
        assert transcript.locales == []

    def test_json(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text(
            json.dumps(
                {
                    "locale": "en-us",
                    "locales": ["en-US", "en"],
                    "utterances": [[{"text": "hi", "confidence": 0.5}]],
                }
            )
        )
        transcript = load_transcript(path)
        assert transcript.locale == "en_US"
        assert transcript.locales == ["en", "en_US"]
        assert transcript.utterances[0][0].confidence == 0.5

    def test_yaml(self, tmp_path):
        path = tmp_path / "t.yml"
        path.write_text(yaml.dump({"locales": ["fr"], "utterances": [[{"text": "salut"}]]}))
        transcript = load_transcript(path)
        assert transcript.locales == ["fr"]
        assert transcript.utterances[0][0].text == "salut"

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "t.yaml"
        path.write_text("")
        assert load_transcript(path).utterances == []

    def test_missing_file(self, tmp_path):
        with pytest.raises(TranscriptError, match="not found"):
            load_transcript(tmp_path / "missing.txt")

    def test_malformed_json(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text("{not json")
        with pytest.raises(TranscriptError):
            load_transcript(path)

    def test_confidence_out_of_range(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text(json.dumps({"utterances": [[{"text": "x", "confidence": 2}]]}))
        with pytest.raises(TranscriptError):
            load_transcript(path)

    def test_invalid_locale(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text(json.dumps({"locales": ["not a locale"]}))
        with pytest.raises(TranscriptError, match="Invalid locale"):
            load_transcript(path)


class TestReplayBackend:
    """Tests for ReplayBackend."""

    def test_available_follows_file(self, tmp_path):
        path = tmp_path / "t.txt"
        backend = ReplayBackend(path)
        assert backend.available is False
        path.write_text("hi")
        assert backend.available is True
        assert backend.transcript_path == path

    def test_replays_to_final(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text(
            json.dumps(
                {
                    "locale": "fr",
                    "locales": ["fr", "fr_CA"],
                    "utterances": [
                        [{"text": "bonjour", "confidence": 0.8}],
                        [{"text": "monde", "confidence": 0.4}],
                    ],
                }
            )
        )
        backend = ReplayBackend(path, interval_s=0.0)
        results = collect(backend.result_stream)
        statuses = collect(backend.status_stream)

        backend.start()
        backend.join(timeout=5.0)

        assert [r.text for r in results] == ["bonjour", "bonjour monde", "bonjour monde"]
        assert results[-1].is_final
        assert results[-1].locale == "fr"
        assert results[-1].confidence == pytest.approx(0.6)
        assert results[-1].segments == (Segment("bonjour", 0.8), Segment("monde", 0.4))
        assert backend.available_locales == frozenset({"fr", "fr_CA"})
        assert statuses == [
            Status.IDLE,
            Status.PREPARING,
            Status.RECORDING,
            Status.PROCESSING,
            Status.IDLE,
        ]

    def test_uses_backend_locale_when_transcript_has_none(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text("ciao")
        backend = ReplayBackend(path, interval_s=0.0)
        backend.locale = "it_IT"
        results = collect(backend.result_stream)

        backend.start()
        backend.join(timeout=5.0)

        assert results[-1].locale == "it_IT"

    def test_stop_discards_final(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text(" ".join(["word"] * 200))
        backend = ReplayBackend(path, interval_s=0.01)
        results = collect(backend.result_stream)

        backend.start()
        backend.stop()
        backend.join(timeout=5.0)

        assert not backend.is_running
        assert not any(r.is_final for r in results)
        assert backend.status == Status.IDLE

    def test_done_publishes_partial_final(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text(" ".join(["word"] * 200))
        backend = ReplayBackend(path, interval_s=0.01)
        results = collect(backend.result_stream)

        backend.start()
        backend.done()
        backend.join(timeout=5.0)

        finals = [r for r in results if r.is_final]
        assert len(finals) <= 1
        if finals:
            assert len(finals[0].segments) < 200
        assert backend.status == Status.IDLE

    def test_broken_transcript_reports_error(self, tmp_path):
        path = tmp_path / "t.json"
        path.write_text("{broken")
        backend = ReplayBackend(path, interval_s=0.0)
        errors = collect(backend.error_stream)

        backend.start()
        backend.join(timeout=5.0)

        assert len(errors) == 1
        assert isinstance(errors[0], TranscriptError)
        assert backend.status == Status.UNAVAILABLE

    def test_commands_when_idle_are_noops(self, tmp_path):
        backend = ReplayBackend(tmp_path / "t.txt")
        backend.stop()
        backend.done()
        backend.join()
        assert backend.status == Status.IDLE

    def test_empty_transcript_publishes_no_results(self, tmp_path):
        path = tmp_path / "t.txt"
        path.write_text("\n")
        backend = ReplayBackend(path, interval_s=0.0)
        results = collect(backend.result_stream)

        backend.start()
        backend.join(timeout=5.0)

        assert results == []
        assert backend.status == Status.IDLE
