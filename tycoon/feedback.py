"""Audio and haptic cues.

The simulation only ever *fires* cues; it never waits on them or looks at a
result.  :func:`emit` is the single call site used by the engine and swallows
collaborator failures after logging them, so a broken mixer can never abort a
state mutation.
"""
from __future__ import annotations

import logging
import math
from array import array
from typing import Dict, List, Optional

try:
    import pygame  # type: ignore
except Exception:
    pygame = None

logger = logging.getLogger(__name__)

CUE_UPSHIFT = "upshift"
CUE_DOWNSHIFT = "downshift"
CUE_PERFECT_SHIFT = "perfect_shift"
CUE_VIBRATE = "vibrate"


class FeedbackSink:
    """No-op base; subclasses override the cues they can produce."""

    def play_upshift(self) -> None:
        return None

    def play_downshift(self) -> None:
        return None

    def play_perfect_shift(self) -> None:
        return None

    def vibrate(self, duration_ms: int) -> None:
        return None


class NullFeedback(FeedbackSink):
    pass


class RecordingFeedback(FeedbackSink):
    """Collects cue names in order; used by headless runs and tests."""

    def __init__(self) -> None:
        self.cues: List[str] = []

    def play_upshift(self) -> None:
        self.cues.append(CUE_UPSHIFT)

    def play_downshift(self) -> None:
        self.cues.append(CUE_DOWNSHIFT)

    def play_perfect_shift(self) -> None:
        self.cues.append(CUE_PERFECT_SHIFT)

    def vibrate(self, duration_ms: int) -> None:
        self.cues.append(CUE_VIBRATE)


_CUE_METHODS: Dict[str, str] = {
    CUE_UPSHIFT: "play_upshift",
    CUE_DOWNSHIFT: "play_downshift",
    CUE_PERFECT_SHIFT: "play_perfect_shift",
    CUE_VIBRATE: "vibrate",
}


def emit(sink: FeedbackSink, cue: str, *args) -> None:
    try:
        getattr(sink, _CUE_METHODS[cue])(*args)
    except Exception:
        logger.warning("Feedback cue %s failed", cue, exc_info=True)


# ---------------------------------------------------------------------------
# pygame-backed implementation
# ---------------------------------------------------------------------------

SAMPLE_RATE = 22050

# cue → (start Hz, end Hz, seconds, volume, waveform)
TONES: Dict[str, tuple[float, float, float, float, str]] = {
    CUE_UPSHIFT: (400.0, 100.0, 0.25, 0.3, "saw"),        # falling clunk as the gear engages
    CUE_DOWNSHIFT: (100.0, 350.0, 0.35, 0.25, "triangle"),  # rev-match blip
    CUE_PERFECT_SHIFT: (880.0, 1760.0, 0.5, 0.1, "sine"),   # rising chime
}


def _wave(kind: str, phase: float) -> float:
    frac = phase % 1.0
    if kind == "saw":
        return 2.0 * frac - 1.0
    if kind == "triangle":
        return 4.0 * abs(frac - 0.5) - 1.0
    return math.sin(2.0 * math.pi * frac)


def synth_tone(start_hz: float, end_hz: float, seconds: float, volume: float, kind: str,
               sample_rate: int = SAMPLE_RATE, channels: int = 1) -> array:
    """Render an exponential frequency sweep with a decaying envelope as signed 16-bit PCM."""
    count = max(1, int(sample_rate * seconds))
    samples = array("h")
    phase = 0.0
    ratio = end_hz / start_hz
    for i in range(count):
        t = i / count
        freq = start_hz * ratio ** t
        phase += freq / sample_rate
        envelope = volume * (0.01 / volume) ** t if volume > 0.01 else volume
        value = int(32767 * envelope * _wave(kind, phase))
        samples.extend([value] * channels)
    return samples


class PygameFeedback(FeedbackSink):
    """Synthesised cues through ``pygame.mixer`` and joystick rumble for haptics."""

    def __init__(self) -> None:
        self._sounds: Dict[str, object] = {}
        self._joystick: Optional[object] = None
        if pygame is None:
            logger.warning("pygame unavailable; audio and haptics disabled")
            return
        self._init_mixer()
        self._init_joystick()

    def _init_mixer(self) -> None:
        try:
            pygame.mixer.init(frequency=SAMPLE_RATE, size=-16, channels=1)
        except pygame.error as exc:
            logger.warning("Audio init failed: %s", exc)
            return
        frequency, _size, channels = pygame.mixer.get_init()
        for cue, (start_hz, end_hz, seconds, volume, kind) in TONES.items():
            pcm = synth_tone(start_hz, end_hz, seconds, volume, kind, frequency, channels)
            self._sounds[cue] = pygame.mixer.Sound(buffer=pcm.tobytes())

    def _init_joystick(self) -> None:
        try:
            pygame.joystick.init()
            if pygame.joystick.get_count() > 0:
                self._joystick = pygame.joystick.Joystick(0)
        except pygame.error as exc:
            logger.info("No haptic device: %s", exc)

    def _play(self, cue: str) -> None:
        sound = self._sounds.get(cue)
        if sound is not None:
            sound.play()

    def play_upshift(self) -> None:
        self._play(CUE_UPSHIFT)

    def play_downshift(self) -> None:
        self._play(CUE_DOWNSHIFT)

    def play_perfect_shift(self) -> None:
        self._play(CUE_PERFECT_SHIFT)

    def vibrate(self, duration_ms: int) -> None:
        if self._joystick is not None:
            self._joystick.rumble(0.3, 0.6, duration_ms)
