"""Runtime settings, read from the environment (and a .env file if present)."""

from __future__ import annotations
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()

# Request log: lives next to the lifeline package directory
_DEFAULT_LOG_PATH = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "lifeline.log")


def _split(value: str) -> list:
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass
class Settings:
    threshold: float = float(os.getenv("LIFELINE_THRESHOLD", "0.6"))
    cooldown: float = float(os.getenv("LIFELINE_COOLDOWN", "1.0"))  # seconds
    log_path: str = os.getenv("LIFELINE_LOG", _DEFAULT_LOG_PATH)
    whisper_model: str = os.getenv("WHISPER_MODEL", "small")
    whisper_compute_type: str = os.getenv("WHISPER_COMPUTE_TYPE", "int8")
    language: str = os.getenv("LIFELINE_LANGUAGE", "en")
    piper_models_dir: str = os.getenv("PIPER_MODELS_DIR", "./models/piper")
    piper_voice: str = os.getenv("PIPER_VOICE", "en_US-amy-medium")
    vad_silence_ms: int = int(os.getenv("VAD_SILENCE_MS", "800"))
    # Mic stays ignored this long after our own speech ends (room echo)
    echo_tail_ms: int = int(os.getenv("LIFELINE_ECHO_TAIL_MS", "300"))
    preferred_devices: list = field(
        default_factory=lambda: _split(os.getenv("LIFELINE_INPUT_DEVICES", "")))


settings = Settings()
