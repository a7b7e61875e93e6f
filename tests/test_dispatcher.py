"""Dispatcher state machine tests, with fake speech collaborators and clock."""

import time

import pytest

from lifeline.commands.catalog import Action
from lifeline.commands.dispatcher import (
    Dispatcher, DispatcherCallbacks, ACTIVATED, DEACTIVATED, NOT_RECOGNIZED,
)
from lifeline.commands.errors import (
    HandlerExecutionFailed, NoMatch, RecognizerError, RecognizerUnsupported,
    NO_SPEECH, PERMISSION_DENIED,
)


class FakeRecognizer:
    def __init__(self, supported=True, fail_with=None):
        self.supported = supported
        self.fail_with = fail_with
        self.starts = 0
        self.stops = 0
        self.on_result = None
        self.on_error = None

    def is_supported(self):
        return self.supported

    def start(self, on_result, on_error):
        if self.fail_with is not None:
            raise self.fail_with
        self.starts += 1
        self.on_result = on_result
        self.on_error = on_error

    def stop(self):
        self.stops += 1

    def emit(self, text, confidence=0.9):
        self.on_result(text, confidence)


class FakeSynthesizer:
    def __init__(self):
        self.spoken = []
        self.stops = 0

    def speak(self, text, rate=1.0, pitch=1.0, volume=1.0, wait=False):
        self.spoken.append(text)

    def stop(self):
        self.stops += 1


class FakeClock:
    def __init__(self, t=0.0):
        self.t = t

    def __call__(self):
        return self.t


class Recorder:
    """Collects every callback the dispatcher fires."""

    def __init__(self):
        self.recognized = []
        self.executed = []
        self.errors = []
        self.starts = 0
        self.stops = 0

    def callbacks(self):
        def on_start():
            self.starts += 1

        def on_stop():
            self.stops += 1

        return DispatcherCallbacks(
            on_recognized=self.recognized.append,
            on_executed=lambda action, ok: self.executed.append((action, ok)),
            on_error=self.errors.append,
            on_listening_start=on_start,
            on_listening_stop=on_stop,
        )


@pytest.fixture
def rec():
    return Recorder()


@pytest.fixture
def calls():
    return []


@pytest.fixture
def make(rec, calls, tmp_path):
    def _make(recognizer=None, handlers=None, **kw):
        if recognizer is None:
            recognizer = FakeRecognizer()
        if handlers is None:
            handlers = {action: (lambda p, a=action: calls.append((a, p))) for action in Action}
        kw.setdefault("clock", FakeClock())
        kw.setdefault("log_path", str(tmp_path / "requests.log"))
        return Dispatcher(recognizer, FakeSynthesizer(), handlers,
                          callbacks=rec.callbacks(), cooldown=1.0, **kw)
    return _make


# --- Lifecycle ---

def test_start_and_stop(make, rec):
    d = make()
    assert not d.listening
    assert d.start()
    assert d.listening
    assert d.recognizer.starts == 1
    assert d.synthesizer.spoken == [ACTIVATED]
    assert rec.starts == 1

    d.stop()
    assert not d.listening
    assert d.recognizer.stops == 1
    assert d.synthesizer.spoken == [ACTIVATED, DEACTIVATED]
    assert rec.stops == 1


def test_start_when_listening_is_noop(make, rec):
    d = make()
    d.start()
    assert d.start()
    assert d.recognizer.starts == 1
    assert d.synthesizer.spoken == [ACTIVATED]
    assert rec.starts == 1


def test_stop_when_idle_is_noop(make, rec):
    d = make()
    d.stop()
    assert d.recognizer.stops == 0
    assert d.synthesizer.spoken == []
    assert rec.stops == 0

    d.start()
    d.stop()
    d.stop()
    assert d.synthesizer.spoken.count(DEACTIVATED) == 1


def test_unsupported_recognizer(make, rec):
    d = make(recognizer=FakeRecognizer(supported=False))
    assert not d.start()
    assert not d.listening
    assert len(rec.errors) == 1
    assert isinstance(rec.errors[0], RecognizerUnsupported)
    assert d.synthesizer.spoken == []


def test_missing_recognizer(rec, tmp_path):
    d = Dispatcher(None, FakeSynthesizer(), {}, callbacks=rec.callbacks(),
                   log_path=str(tmp_path / "requests.log"))
    assert not d.start()
    assert isinstance(rec.errors[0], RecognizerUnsupported)


def test_recognizer_start_failure_is_reported(make, rec):
    d = make(recognizer=FakeRecognizer(fail_with=RecognizerError(PERMISSION_DENIED)))
    assert not d.start()
    assert not d.listening
    assert rec.errors[0].kind == PERMISSION_DENIED


def test_destroy_is_terminal(make, rec):
    d = make()
    d.start()
    d.destroy()
    assert not d.listening
    assert d.destroyed
    assert d.synthesizer.stops == 1
    assert d.handlers == {}
    assert rec.stops == 1

    assert not d.start()
    assert d.recognizer.starts == 1


# --- Dispatch ---

def test_accepted_transcript_is_dispatched(make, rec, calls):
    d = make()
    d.start()
    d.recognizer.emit("I think someone is bleeding")

    assert len(rec.recognized) == 1
    match = rec.recognized[0]
    assert match.action == Action.OPEN_FIRST_AID
    assert match.matched_phrase == "bleeding"
    assert calls == [(Action.OPEN_FIRST_AID, {"scenario_name": "severe-bleeding"})]
    assert rec.executed == [(Action.OPEN_FIRST_AID, True)]
    assert rec.errors == []


def test_handler_without_parameters_gets_none(make, calls):
    d = make()
    d.start()
    d.recognizer.emit("where am i")
    assert calls == [(Action.SPEAK_LOCATION, None)]


def test_rejected_transcript(make, rec, calls):
    d = make()
    d.start()
    d.recognizer.emit("purple elephant banana")

    assert calls == []
    assert rec.executed == []
    assert isinstance(rec.errors[0], NoMatch)
    assert d.synthesizer.spoken[-1] == NOT_RECOGNIZED
    assert d.listening
    assert d.state.last_dispatch is None


def test_empty_transcript_is_reported(make, rec):
    d = make()
    d.start()
    d.recognizer.emit("   ")
    assert type(rec.errors[0]).__name__ == "EmptyTranscript"
    assert rec.executed == []


def test_events_while_idle_are_ignored(make, rec):
    d = make()
    d.start()
    on_result = d.recognizer.on_result
    d.stop()
    on_result("start cpr", 1.0)
    assert rec.recognized == []
    assert rec.executed == []


# --- Cooldown ---

def test_repeat_inside_cooldown_is_dropped(make, rec):
    clock = FakeClock(10.0)
    d = make(clock=clock)
    d.start()
    d.recognizer.emit("start cpr")
    clock.t = 10.5
    d.recognizer.emit("start cpr")
    assert len(rec.executed) == 1
    assert len(rec.recognized) == 1
    assert rec.errors == []


def test_repeat_after_cooldown_is_dispatched(make, rec):
    clock = FakeClock(10.0)
    d = make(clock=clock)
    d.start()
    d.recognizer.emit("start cpr")
    clock.t = 11.0
    d.recognizer.emit("start cpr")
    assert len(rec.executed) == 2


def test_cooldown_drops_unrecognized_input_too(make, rec):
    clock = FakeClock(10.0)
    d = make(clock=clock)
    d.start()
    d.recognizer.emit("emergency")
    clock.t = 10.2
    d.recognizer.emit("purple elephant banana")
    assert rec.errors == []
    assert NOT_RECOGNIZED not in d.synthesizer.spoken


def test_rejection_does_not_start_cooldown(make, rec):
    clock = FakeClock(10.0)
    d = make(clock=clock)
    d.start()
    d.recognizer.emit("purple elephant banana")
    clock.t = 10.1
    d.recognizer.emit("emergency")
    assert rec.executed == [(Action.TRIGGER_ALERT, True)]


def test_last_dispatch_never_moves_backward(make):
    clock = FakeClock(5.0)
    d = make(clock=clock)
    d.start()
    d.recognizer.emit("emergency")
    assert d.state.last_dispatch == 5.0
    clock.t = 2.0
    d.recognizer.emit("emergency")
    assert d.state.last_dispatch == 5.0


def test_set_cooldown(make, rec):
    clock = FakeClock(0.0)
    d = make(clock=clock)
    d.set_cooldown(-3)
    assert d.cooldown == 0.0
    d.start()
    d.recognizer.emit("emergency")
    d.recognizer.emit("emergency")
    assert len(rec.executed) == 2


# --- Handler failures ---

def test_handler_exception_is_reported(make, rec):
    def broken(parameters):
        raise RuntimeError("no network")

    d = make(handlers={Action.TRIGGER_ALERT: broken})
    d.start()
    d.recognizer.emit("emergency")

    assert rec.executed == [(Action.TRIGGER_ALERT, False)]
    err = rec.errors[0]
    assert isinstance(err, HandlerExecutionFailed)
    assert err.action == Action.TRIGGER_ALERT
    assert isinstance(err.cause, RuntimeError)
    assert d.listening


def test_handler_returning_false_fails(make, rec):
    d = make(handlers={Action.TRIGGER_ALERT: lambda p: False})
    d.start()
    d.recognizer.emit("emergency")
    assert rec.executed == [(Action.TRIGGER_ALERT, False)]


def test_missing_handler_fails(make, rec):
    d = make(handlers={})
    d.start()
    d.recognizer.emit("emergency")
    assert rec.executed == [(Action.TRIGGER_ALERT, False)]
    assert isinstance(rec.errors[0], HandlerExecutionFailed)


def test_failed_handler_is_not_retried(make, rec):
    attempts = []

    def flaky(parameters):
        attempts.append(parameters)
        raise RuntimeError("boom")

    clock = FakeClock(0.0)
    d = make(handlers={Action.TRIGGER_ALERT: flaky}, clock=clock)
    d.start()
    d.recognizer.emit("emergency")
    clock.t = 0.5
    d.recognizer.emit("emergency")
    assert len(attempts) == 1


# --- Recognizer errors ---

def test_recognizer_error_keeps_listening(make, rec):
    d = make()
    d.start()
    d.recognizer.on_error(RecognizerError(NO_SPEECH))
    assert d.listening
    assert rec.errors[0].kind == NO_SPEECH
    assert len(d.synthesizer.spoken) == 2


def test_unknown_recognizer_error_becomes_other(make, rec):
    d = make()
    d.start()
    d.handle_error(OSError("device went away"))
    assert rec.errors[0].kind == "other"
    assert d.listening


# --- Speech helpers and request log ---

def test_speech_without_synthesizer_is_noop(rec, tmp_path):
    d = Dispatcher(FakeRecognizer(), None, {}, callbacks=rec.callbacks(),
                   log_path=str(tmp_path / "requests.log"))
    assert d.start()
    d.speak_help()
    d.stop_speaking()
    d.stop()


def test_speech_helpers(make):
    d = make()
    d.speak_location(51.50741, -0.12776, "Westminster, London")
    d.speak_first_aid_step("Call for help", 2, 9)
    assert d.synthesizer.spoken == [
        "Your location is: latitude 51.5074, longitude -0.1278. Address: Westminster, London",
        "Step 2 of 9: Call for help",
    ]


def test_request_log(make, tmp_path):
    clock = FakeClock(0.0)
    d = make(clock=clock)
    d.start()
    d.recognizer.emit("start cpr")
    clock.t = 2.0
    d.recognizer.emit("purple elephant banana")
    lines = (tmp_path / "requests.log").read_text().splitlines()
    assert len(lines) == 4
    assert lines[0].endswith("start cpr")
    assert "open_first_aid" in lines[1]
    assert "scenario_name='cpr'" in lines[1]
    assert lines[3] == "  -> none"


def test_request_log_is_utf8(make, tmp_path):
    d = make()
    d.start()
    d.recognizer.emit("¿dónde estoy? señal de ayuda")
    text = (tmp_path / "requests.log").read_text(encoding="utf-8")
    assert "¿dónde estoy? señal de ayuda" in text


# --- Recognizer teardown failures ---

class BrokenStopRecognizer(FakeRecognizer):
    def stop(self):
        super().stop()
        raise OSError("PortAudio: device unplugged")


def test_recognizer_stop_failure_still_stops(make, rec):
    d = make(recognizer=BrokenStopRecognizer())
    d.start()
    d.stop()

    assert not d.listening
    assert rec.stops == 1
    assert isinstance(rec.errors[0], RecognizerError)
    assert rec.errors[0].kind == "other"
    assert d.synthesizer.spoken == [ACTIVATED, DEACTIVATED]

    assert d.start()
    assert d.listening


def test_destroy_completes_when_recognizer_stop_fails(make, rec):
    d = make(recognizer=BrokenStopRecognizer())
    d.start()
    d.destroy()

    assert d.destroyed
    assert not d.listening
    assert d.handlers == {}
    assert d.synthesizer.stops == 1
    assert len(rec.errors) == 1


def test_unexpected_start_exception_is_reported(make, rec):
    d = make(recognizer=FakeRecognizer(fail_with=RuntimeError("model file missing")))
    assert not d.start()
    assert not d.listening
    assert rec.errors[0].kind == "other"


# --- Delayed stop ---

def test_stop_later_stops_after_delay(make, rec):
    d = make()
    d.start()
    d.stop_later(0.01)
    assert d.stop_pending
    for _ in range(200):
        if not d.listening:
            break
        time.sleep(0.01)
    assert not d.listening
    assert not d.stop_pending
    assert rec.stops == 1


def test_destroy_cancels_pending_stop(make, rec):
    d = make()
    d.start()
    d.stop_later(60)
    timer = d._stop_timer
    d.destroy()
    assert not d.stop_pending
    timer.join(timeout=1)
    assert not timer.is_alive()
    assert rec.stops == 1


def test_manual_stop_cancels_pending_stop(make, rec):
    d = make()
    d.start()
    d.stop_later(60)
    d.stop()
    assert not d.stop_pending
    d.start()
    assert d.listening
