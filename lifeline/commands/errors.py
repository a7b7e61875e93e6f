"""Error taxonomy for voice command handling.

These are reported as values through the dispatcher's on_error callback.
The dispatcher itself never raises them at its caller.
"""

PERMISSION_DENIED = "permission-denied"
NO_SPEECH = "no-speech"
AUDIO_CAPTURE_UNAVAILABLE = "audio-capture-unavailable"
NETWORK = "network"
OTHER = "other"

RECOGNIZER_ERROR_KINDS = (
    PERMISSION_DENIED, NO_SPEECH, AUDIO_CAPTURE_UNAVAILABLE, NETWORK, OTHER,
)


class LifelineError(Exception):
    """Base class for everything reported on the error channel."""


class EmptyTranscript(LifelineError):
    def __init__(self):
        super().__init__("Empty transcript")


class NoMatch(LifelineError):
    def __init__(self, transcript):
        self.transcript = transcript
        super().__init__(f"Command not recognized: {transcript}")


class RecognizerUnsupported(LifelineError):
    def __init__(self, message="Voice recognition not supported on this system"):
        super().__init__(message)


class RecognizerError(LifelineError):
    _MESSAGES = {
        PERMISSION_DENIED: "Microphone permission denied",
        NO_SPEECH: "No speech detected",
        AUDIO_CAPTURE_UNAVAILABLE: "No microphone found",
        NETWORK: "Network error",
    }

    def __init__(self, kind, message=None):
        if kind not in RECOGNIZER_ERROR_KINDS:
            kind = OTHER
        self.kind = kind
        if message is None:
            message = self._MESSAGES.get(kind, "Voice recognition error")
        super().__init__(message)


class HandlerExecutionFailed(LifelineError):
    def __init__(self, action, cause=None):
        self.action = action
        self.cause = cause
        name = getattr(action, "value", action)
        msg = f"Failed to execute command: {name}"
        if cause is not None:
            msg += f" ({cause})"
        super().__init__(msg)
