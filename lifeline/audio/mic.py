"""Microphone input stream for the continuous recognizer.

Provides a 16 kHz mono int16 audio stream from the preferred input device.

Usage (standalone check):
    python -m lifeline.audio.mic
"""

import numpy as np
import sounddevice as sd

from lifeline.config import settings

SAMPLE_RATE = 16000
CHANNELS = 1
DTYPE = "int16"
BLOCK_SIZE = 1600  # 100ms chunks at 16 kHz


def input_devices():
    """Return [(index, device_info)] for every device with input channels."""
    return [(i, d) for i, d in enumerate(sd.query_devices())
            if d["max_input_channels"] > 0]


def has_input_device():
    """True if at least one input device is available."""
    try:
        return bool(input_devices())
    except sd.PortAudioError as e:
        print(f"[mic] Cannot query devices: {e}", flush=True)
        return False


def find_preferred_device(preferred=None):
    """Find the first available input device whose name contains a preferred name.

    Returns the device index, or None to use the system default.
    """
    if preferred is None:
        preferred = settings.preferred_devices
    devices = input_devices()
    for name in preferred:
        for i, d in devices:
            if name in d["name"]:
                return i
    return None


def open_mic_stream(callback, device=None, block_size=BLOCK_SIZE):
    """Open and start a mic input stream.

    Args:
        callback: Called with (audio_data, overflow) for each block.
                  audio_data is a numpy int16 array of shape (block_size,).
        device: Input device index, or None for the preferred/default one.

    Returns:
        (stream, device): the started sounddevice.InputStream and the device
        index used (None if system default).

    Raises:
        sounddevice.PortAudioError if the device cannot be opened.
    """
    def _sd_callback(indata, frames, time_info, status):
        if status:
            print(f"[mic] {status}", flush=True)
        callback(indata[:, 0].copy(), bool(status.input_overflow if status else False))

    if device is None:
        device = find_preferred_device()

    stream = sd.InputStream(
        samplerate=SAMPLE_RATE,
        channels=CHANNELS,
        dtype=DTYPE,
        blocksize=block_size,
        device=device,
        callback=_sd_callback,
    )
    stream.start()
    return stream, device


if __name__ == "__main__":
    import time

    for i, d in input_devices():
        print(f"  [{i}] {d['name']} (inputs: {d['max_input_channels']})")

    chunks = []
    stream, dev = open_mic_stream(lambda data, overflow: chunks.append(data))
    print(f"Recording 3 seconds from device {dev if dev is not None else 'default'}...")
    try:
        time.sleep(3)
    finally:
        stream.stop()
        stream.close()

    audio = np.concatenate(chunks)
    peak = np.max(np.abs(audio))
    print(f"Captured {len(audio) / SAMPLE_RATE:.2f}s, peak amplitude {peak}")
    if peak < 100:
        print("Very low signal: check that the mic is enabled and not muted.")
