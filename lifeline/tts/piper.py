"""Text-to-speech using Piper, played through sounddevice.

speak() interrupts anything already playing, like a browser's
speechSynthesis.cancel(), so a new confirmation never queues behind an
old one. By default it returns once playback has started; pass wait=True
to block until it finishes.

Usage (standalone check):
    python -m lifeline.tts.piper
"""

import re
import time

import numpy as np
import sounddevice as sd
from piper import PiperVoice, SynthesisConfig

from lifeline.config import settings

# Piper's length_scale at rate 1.0 (< 1.0 = faster speech)
BASE_LENGTH_SCALE = 0.85

# Words that TTS mispronounces: {pattern: replacement}
_PRONUNCIATION_FIXES = {
    r"\bCPR\b": "C P R",
    r"\b911\b": "nine one one",
    r"\b112\b": "one one two",
}

_voice = None
_output_rate = None


def _fix_pronunciation(text):
    for pattern, replacement in _PRONUNCIATION_FIXES.items():
        text = re.sub(pattern, replacement, text, flags=re.IGNORECASE)
    return text


def load_voice(voice_name=None):
    """Load a Piper voice. Caches on first call."""
    global _voice
    if _voice is None:
        name = voice_name or settings.piper_voice
        model_path = f"{settings.piper_models_dir}/{name}.onnx"
        _voice = PiperVoice.load(model_path, f"{model_path}.json")
    return _voice


def synthesize(text, voice=None, rate=1.0):
    """Synthesize text to (int16 array, sample_rate)."""
    if voice is None:
        voice = load_voice()
    cfg = SynthesisConfig(length_scale=BASE_LENGTH_SCALE / max(rate, 0.1))
    chunks = list(voice.synthesize(_fix_pronunciation(text), syn_config=cfg))
    if not chunks:
        return np.array([], dtype=np.int16), voice.config.sample_rate
    audio = np.concatenate([c.audio_int16_array for c in chunks])
    return audio, chunks[0].sample_rate


def _get_output_rate():
    """Default output device's sample rate (cached)."""
    global _output_rate
    if _output_rate is None:
        dev = sd.query_devices(kind="output")
        _output_rate = int(dev["default_samplerate"])
    return _output_rate


def _resample(audio, from_rate, to_rate):
    """Resample int16 audio using linear interpolation."""
    if from_rate == to_rate or len(audio) == 0:
        return audio
    n_out = int(len(audio) * to_rate / from_rate)
    x_old = np.linspace(0, 1, len(audio))
    x_new = np.linspace(0, 1, n_out)
    return np.interp(x_new, x_old, audio.astype(np.float64)).astype(np.int16)


def _apply_volume(audio, volume):
    if volume >= 1.0:
        return audio
    return (audio.astype(np.float32) * max(volume, 0.0)).astype(np.int16)


class PiperSynthesizer:
    """Speech output collaborator: speak(text, rate=, pitch=, volume=, wait=) and stop()."""

    def __init__(self, voice=None, echo_tail_ms=None, clock=time.monotonic):
        self.voice = voice
        if echo_tail_ms is None:
            echo_tail_ms = settings.echo_tail_ms
        self.echo_tail = echo_tail_ms / 1000
        self.clock = clock
        self._busy_until = 0.0

    @property
    def speaking(self):
        """True while playback (plus the echo tail) is in progress."""
        return self.clock() < self._busy_until

    def speak(self, text, rate=1.0, pitch=1.0, volume=1.0, wait=False):
        text = text.strip()
        if not text:
            return
        if pitch != 1.0:
            print(f"[tts] pitch={pitch} not supported by Piper, ignoring", flush=True)

        audio, sample_rate = synthesize(text, self.voice, rate=rate)
        audio = _apply_volume(audio, volume)
        target_rate = _get_output_rate()
        audio = _resample(audio, sample_rate, target_rate)

        sd.stop()
        self._busy_until = self.clock() + len(audio) / target_rate + self.echo_tail
        sd.play(audio, samplerate=target_rate)
        if wait:
            sd.wait()

    def stop(self):
        sd.stop()
        self._busy_until = min(self._busy_until, self.clock() + self.echo_tail)


if __name__ == "__main__":
    print("Loading Piper voice...")
    t0 = time.time()
    synth = PiperSynthesizer(load_voice())
    print(f"Loaded in {time.time() - t0:.1f}s")

    for phrase, rate in [("Voice commands activated", 1.2),
                         ("Opening CPR first aid guide", 1.0),
                         ("Step 1 of 9: Check for responsiveness", 0.9)]:
        print(f'Saying: "{phrase}" (rate {rate})')
        synth.speak(phrase, rate=rate, wait=True)
