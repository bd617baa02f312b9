import logging

from tycoon import EngineSim, GameState
from tycoon.feedback import (
    CUE_DOWNSHIFT,
    CUE_PERFECT_SHIFT,
    CUE_UPSHIFT,
    CUE_VIBRATE,
    TONES,
    FeedbackSink,
    RecordingFeedback,
    emit,
    synth_tone,
)
from tycoon.formatting import format_hp, format_rate


class _ExplodingFeedback(FeedbackSink):
    def vibrate(self, duration_ms):
        raise OSError("no haptics on this device")

    def play_perfect_shift(self):
        raise RuntimeError("mixer closed")


def test_recording_feedback_collects_cue_names():
    sink = RecordingFeedback()
    for cue in (CUE_UPSHIFT, CUE_DOWNSHIFT, CUE_PERFECT_SHIFT):
        emit(sink, cue)
    emit(sink, CUE_VIBRATE, 10)

    assert sink.cues == ["upshift", "downshift", "perfect_shift", "vibrate"]


def test_failing_sink_never_aborts_a_rev(caplog):
    sim = EngineSim(GameState(current_rpm=7950, current_gear=2, last_click_time=0), _ExplodingFeedback())

    with caplog.at_level(logging.WARNING, logger="tycoon.feedback"):
        result = sim.rev(now=0)

    assert result.perfect
    assert sim.state.current_gear == 3
    assert sim.state.total_hp == 12
    assert "Feedback cue vibrate failed" in caplog.text
    assert "Feedback cue perfect_shift failed" in caplog.text


def test_base_sink_is_silent():
    sink = FeedbackSink()
    emit(sink, CUE_UPSHIFT)
    emit(sink, CUE_VIBRATE, 10)


def test_synth_tone_length_and_range():
    start, end, seconds, volume, kind = TONES[CUE_UPSHIFT]
    pcm = synth_tone(start, end, seconds, volume, kind, sample_rate=8000, channels=2)

    assert len(pcm) == int(8000 * seconds) * 2
    assert max(abs(v) for v in pcm) <= 32767
    assert any(pcm)


def test_format_hp():
    assert format_hp(0) == "0"
    assert format_hp(999_999) == "999,999"
    assert format_hp(1_500_000) == "1.50M"
    assert format_hp(2_250_000_000) == "2.25B"
    assert format_hp(7 * 10**12) == "7.00T"
    assert format_rate(1234.9) == "+1,234/s"
