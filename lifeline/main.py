"""Lifeline main loop.

Loads the speech models, starts the always-on recognizer, and dispatches
recognized commands until interrupted or told to stop listening.

Usage:
    python -m lifeline
"""

import time

from lifeline.commands import Dispatcher, DispatcherCallbacks, build_default_handlers
from lifeline.commands.catalog import Action
from lifeline.commands.guides import get_guide
from lifeline.config import settings


def log(msg):
    print(msg, flush=True)


def main():
    from lifeline.stt.whisper import WhisperRecognizer, load_model as load_whisper
    from lifeline.tts.piper import PiperSynthesizer, load_voice
    from lifeline.vad.silero import load_vad_model

    log("Loading VAD model...")
    t0 = time.time()
    vad_session = load_vad_model()
    log(f"  VAD ready ({time.time() - t0:.1f}s)")

    log("Loading whisper model...")
    t1 = time.time()
    whisper = load_whisper()
    log(f"  whisper ready ({time.time() - t1:.1f}s)")

    log("Loading TTS voice...")
    t1 = time.time()
    voice = load_voice()
    log(f"  TTS ready ({time.time() - t1:.1f}s)")

    synthesizer = PiperSynthesizer(voice)
    recognizer = WhisperRecognizer(model=whisper, vad_session=vad_session,
                                   muted=lambda: synthesizer.speaking)
    callbacks = DispatcherCallbacks(
        on_recognized=lambda m: log(f"  -> {m.action.value} "
                                    f"(confidence={m.confidence:.2f}, phrase={m.matched_phrase!r})"),
        on_executed=lambda action, ok: log(f"  {action.value}: {'done' if ok else 'FAILED'}"),
        on_error=lambda e: log(f"  [error] {e}"),
        on_listening_stop=lambda: log("Voice commands deactivated."),
    )
    dispatcher = Dispatcher(recognizer, synthesizer, callbacks=callbacks)

    def read_guide(parameters):
        guide = get_guide(parameters["scenario_name"])
        if guide is None:
            return False
        for n, step in enumerate(guide.steps, 1):
            log(f"  step {n}: {step}")
            dispatcher.speak_first_aid_step(step, n, len(guide.steps), wait=True)
        return True

    dispatcher.handlers = build_default_handlers(
        dispatcher, hooks={Action.OPEN_FIRST_AID: read_guide})

    log(f"All models loaded in {time.time() - t0:.1f}s")
    if not dispatcher.start():
        log("Could not start voice recognition.")
        return
    log(f"Listening (threshold={dispatcher.matcher.threshold}, "
        f"cooldown={dispatcher.cooldown}s). Say \"help\" for commands.\n")

    try:
        while dispatcher.listening:
            time.sleep(0.1)
    except KeyboardInterrupt:
        log("\nShutting down.")
    finally:
        dispatcher.destroy()
        log(f"Request log: {settings.log_path}")


if __name__ == "__main__":
    main()
