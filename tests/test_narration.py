"""Tests for the speech narrator."""

from talk_to_study.domain.speech import NarrationSnapshot, NarrationState
from talk_to_study.services.narration import SpeechNarrator
from tests.conftest import FakeSynthesizer


def _narrator() -> tuple[SpeechNarrator, FakeSynthesizer]:
    synthesizer = FakeSynthesizer()
    return SpeechNarrator(synthesizer=synthesizer), synthesizer


def test_progress_is_monotonic_and_reaches_100() -> None:
    narrator, synthesizer = _narrator()
    seen: list[NarrationSnapshot] = []
    narrator.add_listener(seen.append)

    narrator.start("Hello world", "en-US", 1.0)
    events = synthesizer.events
    events.on_boundary(0)
    events.on_boundary(6)
    events.on_boundary(3)
    events.on_end()

    progress = [snapshot.progress_percent for snapshot in seen]
    assert progress == sorted(progress)
    assert progress[-1] == 100.0
    assert narrator.state is NarrationState.ENDED


def test_utterance_uses_slower_rate_locale_and_volume() -> None:
    narrator, synthesizer = _narrator()

    narrator.start("Hola", "es-ES", 0.4)

    utterance = synthesizer.spoken[0]
    assert utterance.rate == 0.9
    assert utterance.locale_tag == "es-ES"
    assert utterance.volume == 0.4


def test_starting_again_stops_previous_session() -> None:
    narrator, synthesizer = _narrator()
    seen: list[NarrationSnapshot] = []
    narrator.start("First text here", "en-US")
    old_events = synthesizer.events
    old_events.on_boundary(6)
    narrator.add_listener(seen.append)

    narrator.start("Second", "en-US")
    old_events.on_boundary(12)
    old_events.on_end()

    assert synthesizer.calls == ["speak", "cancel", "speak"]
    assert seen[0].state is NarrationState.IDLE
    assert seen[0].progress_percent == 0.0
    assert narrator.state is NarrationState.SPEAKING
    assert narrator.progress == 0.0


def test_pause_and_resume_keep_progress() -> None:
    narrator, synthesizer = _narrator()
    narrator.start("Hello world", "en-US")
    synthesizer.events.on_boundary(6)
    before = narrator.progress

    narrator.pause()
    assert narrator.state is NarrationState.PAUSED
    narrator.resume()

    assert narrator.state is NarrationState.SPEAKING
    assert narrator.progress == before
    assert synthesizer.calls == ["speak", "pause", "resume"]


def test_pause_when_idle_and_resume_when_not_paused_are_noops() -> None:
    narrator, synthesizer = _narrator()

    narrator.pause()
    assert narrator.state is NarrationState.IDLE
    narrator.start("Hello", "en-US")
    narrator.resume()

    assert narrator.state is NarrationState.SPEAKING
    assert synthesizer.calls == ["speak"]


def test_toggle_pause_switches_between_states() -> None:
    narrator, _ = _narrator()
    narrator.start("Hello", "en-US")

    narrator.toggle_pause()
    assert narrator.state is NarrationState.PAUSED
    narrator.toggle_pause()
    assert narrator.state is NarrationState.SPEAKING


def test_stop_resets_progress() -> None:
    narrator, synthesizer = _narrator()
    narrator.start("Hello world", "en-US")
    synthesizer.events.on_boundary(6)

    narrator.stop()

    assert narrator.state is NarrationState.IDLE
    assert narrator.progress == 0.0
    assert synthesizer.calls[-1] == "cancel"


def test_set_volume_clamps_and_updates_active_session() -> None:
    narrator, synthesizer = _narrator()
    narrator.start("Hello", "en-US")

    narrator.set_volume(1.7)

    assert narrator.volume == 1.0
    assert synthesizer.volume == 1.0
    narrator.stop()
    narrator.set_volume(-0.5)
    narrator.start("Again", "en-US")
    assert synthesizer.spoken[-1].volume == 0.0


def test_backend_error_resets_to_idle_silently() -> None:
    narrator, synthesizer = _narrator()
    narrator.start("Hello world", "en-US")
    synthesizer.events.on_boundary(6)

    synthesizer.events.on_error(RuntimeError("audio device lost"))

    assert narrator.state is NarrationState.IDLE
    assert narrator.progress == 0.0


def test_speak_failure_is_absorbed() -> None:
    synthesizer = FakeSynthesizer(fail_on_speak=True)
    narrator = SpeechNarrator(synthesizer=synthesizer)

    narrator.start("Hello", "en-US")

    assert narrator.state is NarrationState.IDLE


def test_missing_synthesizer_leaves_narrator_idle() -> None:
    narrator = SpeechNarrator(synthesizer=None)

    narrator.start("Hello", "en-US")

    assert not narrator.available
    assert narrator.state is NarrationState.IDLE


def test_failing_listener_does_not_break_narration() -> None:
    narrator, _ = _narrator()

    def broken(_: NarrationSnapshot) -> None:
        raise ValueError("view crashed")

    narrator.add_listener(broken)
    narrator.start("Hello", "en-US")

    assert narrator.state is NarrationState.SPEAKING
