"""Continuous speech recognizer: mic -> Silero VAD -> faster-whisper.

The mic callback only segments audio; finished utterances are queued and
transcribed one at a time on a single worker thread, which calls
on_result(text, confidence). Results are therefore never delivered
concurrently.

Usage (standalone check, prints each transcript):
    python -m lifeline.stt.whisper
"""

import math
import os
import queue
import threading

import numpy as np

# Workaround for OpenMP duplicate library conflict (torch + ctranslate2 on macOS)
os.environ.setdefault("KMP_DUPLICATE_LIB_OK", "TRUE")

import sounddevice as sd
from faster_whisper import WhisperModel

from lifeline.audio.mic import open_mic_stream, has_input_device
from lifeline.commands.errors import (
    RecognizerError, PERMISSION_DENIED, NO_SPEECH, AUDIO_CAPTURE_UNAVAILABLE,
    NETWORK, OTHER,
)
from lifeline.config import settings
from lifeline.vad.silero import load_vad_model, UtteranceSegmenter

MIN_UTTERANCE_SAMPLES = 1600  # 100ms; shorter blips are ignored

_model = None


def load_model(model_size=None, compute_type=None):
    """Load the Whisper model. Caches on first call."""
    global _model
    if _model is None:
        _model = WhisperModel(model_size or settings.whisper_model, device="cpu",
                              compute_type=compute_type or settings.whisper_compute_type)
    return _model


def error_kind(exc):
    """Map an exception to a recognizer error kind."""
    if isinstance(exc, PermissionError):
        return PERMISSION_DENIED
    if isinstance(exc, sd.PortAudioError):
        return AUDIO_CAPTURE_UNAVAILABLE
    if isinstance(exc, ConnectionError):
        return NETWORK
    return OTHER


def transcribe(audio, model=None):
    """Transcribe int16 audio (16 kHz mono).

    Returns:
        (text, confidence): stripped text ("" if nothing detected) and the
        mean per-segment probability, exp(avg_logprob), in [0, 1].
    """
    if model is None:
        model = load_model()

    # faster-whisper expects float32 normalized to [-1, 1]
    audio_f32 = audio.astype(np.float32) / 32768.0
    segments, _ = model.transcribe(audio_f32, language=settings.language, vad_filter=True)
    segments = list(segments)
    text = " ".join(s.text for s in segments).strip()
    if not segments:
        return text, 0.0
    confidence = sum(math.exp(s.avg_logprob) for s in segments) / len(segments)
    return text, min(1.0, max(0.0, confidence))


class WhisperRecognizer:
    """Always-on recognizer implementing start(on_result, on_error) / stop()."""

    def __init__(self, model=None, device=None, vad_session=None, muted=None):
        """muted: callable, True while our own speech is playing (mic is ignored)."""
        self.model = model
        self.device = device
        self.vad_session = vad_session
        self.muted = muted
        self._stream = None
        self._queue = None
        self._worker = None
        self._on_result = None
        self._on_error = None

    @property
    def listening(self):
        return self._stream is not None

    def is_supported(self):
        return has_input_device()

    def start(self, on_result, on_error):
        """Open the mic and begin delivering transcripts.

        Raises:
            RecognizerError if the models or the mic cannot be opened.
        """
        if self._stream is not None:
            return
        try:
            if self.model is None:
                self.model = load_model()
            if self.vad_session is None:
                self.vad_session = load_vad_model()
        except Exception as e:
            raise RecognizerError(error_kind(e), f"Failed to load speech models: {e}") from e

        self._on_result = on_result
        self._on_error = on_error
        self._queue = queue.Queue()
        segmenter = UtteranceSegmenter(self.vad_session, self._queue.put, muted=self.muted)

        def on_audio(data, overflow):
            segmenter.process(data)

        try:
            self._stream, self.device = open_mic_stream(on_audio, device=self.device)
        except Exception as e:
            raise RecognizerError(error_kind(e), f"Failed to start voice recognition: {e}") from e

        self._worker = threading.Thread(target=self._run, args=(self._queue,), daemon=True)
        self._worker.start()

    def stop(self):
        if self._stream is None:
            return
        stream, self._stream = self._stream, None
        try:
            stream.stop()
            stream.close()
        except Exception as e:
            raise RecognizerError(error_kind(e), f"Failed to stop voice recognition: {e}") from e
        finally:
            self._queue.put(None)
            if self._worker is not threading.current_thread():
                self._worker.join(timeout=5)
            self._worker = None

    def _run(self, q):
        while True:
            audio = q.get()
            if audio is None:
                return
            if self._stream is None:
                continue  # stopped; drain without delivering
            if len(audio) < MIN_UTTERANCE_SAMPLES:
                continue
            try:
                text, confidence = transcribe(audio, self.model)
            except Exception as e:
                print(f"[stt] Transcription failed: {e!r}", flush=True)
                self._on_error(RecognizerError(error_kind(e), str(e)))
                continue
            if not text:
                self._on_error(RecognizerError(NO_SPEECH))
                continue
            self._on_result(text, confidence)


if __name__ == "__main__":
    import time

    print("Loading models...")
    recognizer = WhisperRecognizer(model=load_model(), vad_session=load_vad_model())
    print("Speak commands; Ctrl+C to quit.\n")

    recognizer.start(
        lambda text, conf: print(f'  "{text}" (confidence {conf:.2f})'),
        lambda err: print(f"  error: {err}"),
    )
    try:
        while True:
            time.sleep(0.1)
    except KeyboardInterrupt:
        pass
    finally:
        recognizer.stop()
