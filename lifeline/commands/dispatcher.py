"""Dispatcher: turns recognizer transcripts into at most one action each.

Owns the listening on/off state and the cooldown gate. A continuous
recognizer can re-emit one utterance several times, so anything arriving
within `cooldown` seconds of the last accepted command is dropped.

Collaborators are injected:
    recognizer:  is_supported() -> bool, start(on_result, on_error), stop()
    synthesizer: speak(text, rate=, pitch=, volume=, wait=), stop()
    handlers:    {Action: callable(parameters) -> result}; a result of
                 False means the action failed, anything else succeeded.
"""

import threading
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from lifeline.commands.errors import (
    HandlerExecutionFailed, RecognizerError, RecognizerUnsupported,
    NO_SPEECH, PERMISSION_DENIED, AUDIO_CAPTURE_UNAVAILABLE, NETWORK, OTHER,
)
from lifeline.commands.matcher import Matcher
from lifeline.config import settings

ACTIVATED = "Voice commands activated"
DEACTIVATED = "Voice commands deactivated"
NOT_RECOGNIZED = 'Command not recognized. Say "help" for available commands.'
FEEDBACK_RATE = 1.2

HELP_TEXT = (
    "Available voice commands: "
    'Say "emergency" to trigger an alert. '
    'Say "C P R" or "choking" for first aid guides. '
    'Say "where am I" to hear your location. '
    'Say "call contact" to alert your contacts. '
    'Say "stop" to deactivate voice commands.'
)

ERROR_PROMPTS = {
    NO_SPEECH: "I didn't hear anything.",
    PERMISSION_DENIED: "Microphone permission denied.",
    AUDIO_CAPTURE_UNAVAILABLE: "No microphone found.",
    NETWORK: "Voice recognition network error.",
    OTHER: "Voice recognition error.",
}


def log(msg):
    print(f"[voice] {msg}", flush=True)


def as_recognizer_error(exc):
    """Wrap anything outside the recognizer error taxonomy as kind 'other'."""
    if isinstance(exc, (RecognizerError, RecognizerUnsupported)):
        return exc
    if isinstance(exc, PermissionError):
        return RecognizerError(PERMISSION_DENIED, str(exc))
    return RecognizerError(OTHER, str(exc))


@dataclass
class DispatcherCallbacks:
    on_recognized: Optional[Callable] = None       # (CommandMatch)
    on_executed: Optional[Callable] = None         # (Action, success: bool)
    on_error: Optional[Callable] = None            # (LifelineError)
    on_listening_start: Optional[Callable] = None  # ()
    on_listening_stop: Optional[Callable] = None   # ()


@dataclass(frozen=True)
class DispatcherState:
    listening: bool
    last_dispatch: Optional[float]


class Dispatcher:
    """Listening state machine: Idle <-> Listening, then destroyed."""

    def __init__(self, recognizer, synthesizer=None, handlers=None, matcher=None,
                 cooldown=None, callbacks=None, clock=time.monotonic,
                 log_path=None, source="[voice]"):
        self.recognizer = recognizer
        self.synthesizer = synthesizer
        self.handlers = dict(handlers or {})
        self.matcher = matcher or Matcher(threshold=settings.threshold)
        self.callbacks = callbacks or DispatcherCallbacks()
        self.clock = clock
        self.log_path = settings.log_path if log_path is None else log_path
        self.source = source
        self._cooldown = 0.0
        self.set_cooldown(settings.cooldown if cooldown is None else cooldown)
        self._listening = False
        self._last_dispatch = None
        self._destroyed = False
        self._stop_timer = None
        # Guards listening/last_dispatch: stop() may run on a timer thread
        # while the recognizer worker is delivering a transcript.
        self._lock = threading.Lock()

    # --- State ---

    @property
    def listening(self):
        return self._listening

    @property
    def destroyed(self):
        return self._destroyed

    @property
    def stop_pending(self):
        return self._stop_timer is not None

    @property
    def state(self):
        return DispatcherState(self._listening, self._last_dispatch)

    @property
    def cooldown(self):
        return self._cooldown

    def set_cooldown(self, seconds):
        self._cooldown = max(0.0, float(seconds))

    # --- Lifecycle ---

    def start(self):
        """Begin listening. Returns True if listening afterwards."""
        if self._listening:
            return True
        if self._destroyed:
            log("start() on a destroyed dispatcher ignored")
            return False

        if self.recognizer is None or not self.recognizer.is_supported():
            self._report(RecognizerUnsupported())
            return False

        try:
            self.recognizer.start(self.handle_transcript, self.handle_error)
        except Exception as e:
            log(f"Recognizer start failed: {e!r}")
            self._report(as_recognizer_error(e))
            return False

        with self._lock:
            self._listening = True
        self._fire("on_listening_start")
        self.speak(ACTIVATED, rate=FEEDBACK_RATE)
        return True

    def stop(self):
        """Stop listening. No-op when already idle.

        A recognizer that fails to stop is reported on on_error; the
        dispatcher is Idle afterwards either way.
        """
        self._cancel_stop_timer()
        with self._lock:
            if not self._listening:
                return
            self._listening = False
        try:
            self.recognizer.stop()
        except Exception as e:
            log(f"Recognizer stop failed: {e!r}")
            self._report(as_recognizer_error(e))
        self._fire("on_listening_stop")
        self.speak(DEACTIVATED, rate=FEEDBACK_RATE)

    def stop_later(self, delay):
        """Stop after `delay` seconds, unless stopped or destroyed first."""
        if delay <= 0:
            self.stop()
            return
        timer = threading.Timer(delay, self.stop)
        timer.daemon = True
        self._cancel_stop_timer()
        self._stop_timer = timer
        timer.start()

    def destroy(self):
        """Stop and release callbacks and handlers. The instance is done after this."""
        try:
            self.stop()
            self.stop_speaking()
        finally:
            self.callbacks = DispatcherCallbacks()
            self.handlers = {}
            self._destroyed = True

    # --- Recognizer events ---

    def handle_transcript(self, transcript, confidence=1.0):
        """Process one (transcript, confidence) event from the recognizer."""
        with self._lock:
            if not self._listening:
                return
            now = self.clock()
            cooling = self._last_dispatch is not None and now - self._last_dispatch < self._cooldown
        log(f'Received: "{transcript}" (confidence: {confidence:.2f})')
        if cooling:
            log("Command ignored - cooldown active")
            return

        result = self.matcher.match(transcript)
        self._log_request(transcript, result.match)
        if not result.accepted:
            log(f'No match found for: "{transcript}"')
            self._report(result.error)
            self.speak(NOT_RECOGNIZED)
            return

        match = result.match
        log(f"Matched action: {match.action.value} (confidence: {match.confidence:.2f})")
        with self._lock:
            self._last_dispatch = now if self._last_dispatch is None else max(self._last_dispatch, now)
        self._fire("on_recognized", match)
        success = self._execute(match)
        self._fire("on_executed", match.action, success)

    def handle_error(self, error):
        """Process a recognizer error. Listening state is left alone."""
        error = as_recognizer_error(error)
        log(f"Recognizer error: {error}")
        self._report(error)
        prompt = ERROR_PROMPTS.get(getattr(error, "kind", None))
        if prompt and self._listening:
            self.speak(prompt)

    def _execute(self, match):
        handler = self.handlers.get(match.action)
        if handler is None:
            self._report(HandlerExecutionFailed(match.action, "no handler registered"))
            return False
        try:
            result = handler(match.parameters or None)
        except Exception as e:
            log(f"Command execution error: {e!r}")
            self._report(HandlerExecutionFailed(match.action, e))
            return False
        if result is False:
            self._report(HandlerExecutionFailed(match.action))
            return False
        return True

    # --- Spoken output ---

    def speak(self, text, rate=1.0, pitch=1.0, volume=1.0, wait=False):
        if self.synthesizer is None:
            log(f"Speech synthesis not supported, skipping: {text!r}")
            return
        self.synthesizer.speak(text, rate=rate, pitch=pitch, volume=volume, wait=wait)

    def stop_speaking(self):
        if self.synthesizer is not None:
            self.synthesizer.stop()

    def speak_help(self):
        self.speak(HELP_TEXT, rate=0.9)

    def speak_location(self, latitude, longitude, address=None):
        text = f"Your location is: latitude {latitude:.4f}, longitude {longitude:.4f}"
        if address:
            text += f". Address: {address}"
        self.speak(text, rate=0.9)

    def speak_first_aid_step(self, step, number, total, wait=False):
        self.speak(f"Step {number} of {total}: {step}", rate=0.9, wait=wait)

    # --- Internals ---

    def _fire(self, name, *args):
        cb = getattr(self.callbacks, name)
        if cb is not None:
            cb(*args)

    def _report(self, error):
        self._fire("on_error", error)

    def _cancel_stop_timer(self):
        timer, self._stop_timer = self._stop_timer, None
        if timer is not None:
            timer.cancel()

    def _log_request(self, text, match):
        """Append a compact 2-line entry to the request log."""
        if not self.log_path:
            return
        ts = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
        if match is None:
            match_line = "  -> none"
        else:
            parts = [match.action.value, f"confidence={match.confidence:.2f}",
                     f"phrase={match.matched_phrase!r}"]
            for k, v in match.parameters.items():
                parts.append(f"{k}={v!r}")
            match_line = f"  -> {', '.join(parts)}"
        try:
            with open(self.log_path, "a", encoding="utf-8") as f:
                f.write(f"{ts} {self.source}  {text}\n{match_line}\n")
        except OSError:
            pass
