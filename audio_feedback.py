# -*- coding: utf-8 -*-
########################
# audio_feedback.py
########################
# Purpose:
# - Short feedback sounds: the answered pitch on a correct answer, a low buzz on a miss, an arpeggio on level up.
# - Implements the session controller's AudioFeedback protocol.
#
# Design notes:
# - Tones are synthesized with numpy, written once as 16-bit mono WAV files into the cache dir, then played
#   through QSoundEffect. Files are reused across runs.
# - Playback is fire-and-forget. Any failure to write or play is logged and the sound is skipped.
# - QtMultimedia is imported only when QtAudioFeedback is built so the synthesis helpers work headless.
#
########################
# Interfaces:
# Public functions:
# - generate_tone(frequency_hz: float, duration_seconds: float, volume: float) -> numpy.ndarray
# - generate_sequence(frequencies: Sequence[float], step_seconds: float, volume: float) -> numpy.ndarray
# - write_wav(path: pathlib.Path, samples: numpy.ndarray) -> None
# - create_audio_feedback(config: AudioConfig, *, directory: pathlib.Path, parent=None) -> AudioFeedback
#
# Public classes:
# - class SilentAudio
# - class QtAudioFeedback
#   - play_correct(note: Note) -> None
#   - play_incorrect() -> None
#   - play_level_up() -> None
#
# Inputs:
# - AudioConfig (enabled, volume), tones directory from paths.tones_dir().
#
# Outputs:
# - Cached WAV files and audible feedback.
#
########################

from __future__ import annotations

import logging
import wave
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Sequence

import numpy as np

from config import AudioConfig
from note_catalog import Note

logger = logging.getLogger(__name__)

SAMPLE_RATE = 44100
CORRECT_TONE_SECONDS = 0.45
INCORRECT_TONE_SECONDS = 0.30
INCORRECT_FREQUENCY_HZ = 110.0
LEVEL_UP_STEP_SECONDS = 0.12
# C5 E5 G5 C6
LEVEL_UP_FREQUENCIES = (523.25, 659.25, 783.99, 1046.50)


def generate_tone(frequency_hz: float, duration_seconds: float, volume: float = 0.5) -> np.ndarray:
    """Sine tone with a short attack and exponential decay, float32 in [-volume, volume]."""
    sample_count = max(1, int(SAMPLE_RATE * float(duration_seconds)))
    t = np.arange(sample_count) / SAMPLE_RATE

    envelope = np.exp(-t * 6.0)
    attack = int(0.005 * SAMPLE_RATE)
    if 0 < attack < sample_count:
        envelope[:attack] *= np.linspace(0, 1, attack)

    signal = float(volume) * np.sin(2 * np.pi * float(frequency_hz) * t) * envelope
    return signal.astype(np.float32)


def generate_sequence(frequencies: Sequence[float], step_seconds: float, volume: float = 0.5) -> np.ndarray:
    parts = [generate_tone(frequency, step_seconds, volume) for frequency in frequencies]
    if not parts:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(parts)


def write_wav(path: Path, samples: np.ndarray) -> None:
    clipped = np.clip(samples, -1.0, 1.0)
    pcm = (clipped * 32767.0).astype("<i2")
    path.parent.mkdir(parents=True, exist_ok=True)
    with wave.open(str(path), "wb") as wav_file:
        wav_file.setnchannels(1)
        wav_file.setsampwidth(2)
        wav_file.setframerate(SAMPLE_RATE)
        wav_file.writeframes(pcm.tobytes())


class SilentAudio:
    def play_correct(self, note: Note) -> None:
        return

    def play_incorrect(self) -> None:
        return

    def play_level_up(self) -> None:
        return


class QtAudioFeedback:
    def __init__(self, directory: Path, *, volume: float = 0.5, parent: Any = None) -> None:
        from PyQt6.QtCore import QUrl
        from PyQt6.QtMultimedia import QSoundEffect

        self._sound_effect_type = QSoundEffect
        self._url_type = QUrl
        self._directory = Path(directory)
        self._volume = min(1.0, max(0.0, float(volume)))
        self._parent = parent
        self._effects: Dict[str, Any] = {}

    def _tone_path(self, key: str, samples_factory: Callable[[], np.ndarray]) -> Optional[Path]:
        path = self._directory / f"{key}.wav"
        if path.exists():
            return path
        try:
            write_wav(path, samples_factory())
        except OSError as exception:
            logger.warning("Could not write tone %s: %s", path, exception)
            return None
        return path

    def _play(self, key: str, samples_factory: Callable[[], np.ndarray]) -> None:
        effect = self._effects.get(key)
        if effect is None:
            path = self._tone_path(key, samples_factory)
            if path is None:
                return
            effect = self._sound_effect_type(self._parent)
            effect.setSource(self._url_type.fromLocalFile(str(path)))
            effect.setVolume(self._volume)
            self._effects[key] = effect
        effect.play()

    def play_correct(self, note: Note) -> None:
        frequency = note.frequency_hz
        self._play(f"note_{note.note_id}", lambda: generate_tone(frequency, CORRECT_TONE_SECONDS))

    def play_incorrect(self) -> None:
        self._play("incorrect", lambda: generate_tone(INCORRECT_FREQUENCY_HZ, INCORRECT_TONE_SECONDS))

    def play_level_up(self) -> None:
        self._play("level_up", lambda: generate_sequence(LEVEL_UP_FREQUENCIES, LEVEL_UP_STEP_SECONDS))


def create_audio_feedback(config: AudioConfig, *, directory: Path, parent: Any = None) -> Any:
    if not config.enabled:
        return SilentAudio()
    try:
        return QtAudioFeedback(directory, volume=config.volume, parent=parent)
    except ImportError as exception:
        logger.warning("Qt multimedia is unavailable, sounds are off: %s", exception)
        return SilentAudio()
