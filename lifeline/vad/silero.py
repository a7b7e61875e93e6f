"""Utterance segmentation using Silero VAD (direct ONNX, no torch).

There is no wake word: the microphone is always open, and the segmenter
cuts the stream into utterances. Audio is buffered into 512-sample frames
(required by Silero at 16 kHz); an utterance starts on the first speech
frame and ends after a run of silent frames, or at the length cap.
"""

import os

import numpy as np
import onnxruntime as ort

from lifeline.config import settings

# Silero requires exactly 512 samples per call at 16 kHz
SILERO_CHUNK_SIZE = 512

# Cap on a single utterance; voice commands are short
MAX_UTTERANCE_SECONDS = 8

# Audio kept from before speech onset so the first syllable is not clipped
PRE_ROLL_FRAMES = 8

_session = None


def _find_model():
    """Locate silero_vad.onnx (SILERO_VAD_MODEL, else the copy bundled with openwakeword)."""
    path = os.getenv("SILERO_VAD_MODEL")
    if path:
        return path
    import openwakeword
    pkg_dir = os.path.dirname(openwakeword.__file__)
    path = os.path.join(pkg_dir, "resources", "models", "silero_vad.onnx")
    if os.path.exists(path):
        return path
    raise FileNotFoundError(f"silero_vad.onnx not found at {path}")


def load_vad_model():
    """Load the Silero VAD ONNX session. Caches on first call."""
    global _session
    if _session is None:
        opts = ort.SessionOptions()
        opts.inter_op_num_threads = 1
        opts.intra_op_num_threads = 1
        _session = ort.InferenceSession(_find_model(), sess_options=opts)
    return _session


class SileroVAD:
    """Stateful wrapper around the Silero ONNX model."""

    def __init__(self, session, sample_rate=16000):
        self.session = session
        self.sr = np.array(sample_rate, dtype=np.int64)
        self.reset()

    def reset(self):
        self.h = np.zeros((2, 1, 64), dtype=np.float32)
        self.c = np.zeros((2, 1, 64), dtype=np.float32)

    def __call__(self, audio_frame):
        """Speech probability (0.0–1.0) for one 512-sample float32 frame."""
        x = audio_frame.reshape(1, -1).astype(np.float32)
        output, self.h, self.c = self.session.run(
            None, {"input": x, "sr": self.sr, "h": self.h, "c": self.c}
        )
        return float(output[0][0])


class UtteranceSegmenter:
    """Cuts a continuous int16 stream into utterances.

    Feed mic chunks to process(); each finished utterance is passed to
    on_utterance as a numpy int16 array, and the segmenter rearms itself.

    While muted() returns True (our own speaker is playing), incoming audio
    is discarded and any utterance in progress is abandoned.
    """

    def __init__(self, session, on_utterance, threshold=0.5, silence_ms=None,
                 max_seconds=MAX_UTTERANCE_SECONDS, sample_rate=16000, muted=None):
        if silence_ms is None:
            silence_ms = settings.vad_silence_ms
        self.on_utterance = on_utterance
        self.muted = muted
        self.threshold = threshold
        self.max_samples = int(max_seconds * sample_rate)
        frame_ms = (SILERO_CHUNK_SIZE / sample_rate) * 1000  # 32ms
        self._silence_frames_needed = max(1, int(silence_ms / frame_ms))
        self._vad = SileroVAD(session, sample_rate)
        self._buffer = np.array([], dtype=np.int16)
        self.reset()

    def reset(self):
        self._pre_roll = []
        self._frames = []
        self._in_speech = False
        self._silence_frames = 0
        self._vad.reset()

    @property
    def in_speech(self):
        return self._in_speech

    def process(self, audio_chunk):
        """Feed an int16 chunk (16 kHz mono)."""
        if self.muted is not None and self.muted():
            self._buffer = np.array([], dtype=np.int16)
            self.reset()
            return
        self._buffer = np.concatenate([self._buffer, audio_chunk])
        while len(self._buffer) >= SILERO_CHUNK_SIZE:
            frame = self._buffer[:SILERO_CHUNK_SIZE]
            self._buffer = self._buffer[SILERO_CHUNK_SIZE:]
            self._process_frame(frame)

    def _process_frame(self, frame):
        prob = self._vad(frame.astype(np.float32) / 32768.0)

        if not self._in_speech:
            self._pre_roll.append(frame)
            if len(self._pre_roll) > PRE_ROLL_FRAMES:
                self._pre_roll.pop(0)
            if prob >= self.threshold:
                self._in_speech = True
                self._frames = list(self._pre_roll)
                self._silence_frames = 0
            return

        self._frames.append(frame)
        if prob >= self.threshold:
            self._silence_frames = 0
        else:
            self._silence_frames += 1

        total = len(self._frames) * SILERO_CHUNK_SIZE
        if self._silence_frames >= self._silence_frames_needed or total >= self.max_samples:
            audio = np.concatenate(self._frames)
            self.reset()
            self.on_utterance(audio)
