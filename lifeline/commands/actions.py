"""Default action handlers: spoken confirmations for each catalog action.

The real side effects (sending the alert, opening a page, looking up GPS)
live outside this package. Pass them in as hooks keyed by Action; each hook
is called with the match parameters and its return value becomes the
handler's result (False marks the action as failed).
"""

from lifeline.commands.catalog import Action, DEFAULT_GUIDE

STOP_DELAY = 1.0  # seconds between "Stopping voice commands" and stop()


def _guide_name(parameters):
    guide_id = (parameters or {}).get("scenario_name") or DEFAULT_GUIDE
    return guide_id.replace("-", " ")


def build_default_handlers(dispatcher, hooks=None, stop_delay=STOP_DELAY):
    """Return {Action: handler} that speaks a confirmation, then runs the hook."""
    hooks = hooks or {}

    def run_hook(action, parameters):
        hook = hooks.get(action)
        if hook is None:
            return True
        return hook(parameters)

    def trigger_alert(parameters):
        dispatcher.speak("Triggering emergency alert")
        return run_hook(Action.TRIGGER_ALERT, parameters)

    def open_first_aid(parameters):
        dispatcher.speak(f"Opening {_guide_name(parameters)} first aid guide")
        return run_hook(Action.OPEN_FIRST_AID, parameters)

    def call_contact(parameters):
        dispatcher.speak("Opening emergency contacts")
        return run_hook(Action.CALL_CONTACT, parameters)

    def speak_location(parameters):
        dispatcher.speak("Getting your current location")
        return run_hook(Action.SPEAK_LOCATION, parameters)

    def stop_listening(parameters):
        dispatcher.speak("Stopping voice commands")
        result = run_hook(Action.STOP_LISTENING, parameters)
        dispatcher.stop_later(stop_delay)
        return result

    def open_profile(parameters):
        dispatcher.speak("Opening your profile")
        return run_hook(Action.OPEN_PROFILE, parameters)

    def show_help(parameters):
        dispatcher.speak_help()
        return run_hook(Action.HELP, parameters)

    return {
        Action.TRIGGER_ALERT: trigger_alert,
        Action.OPEN_FIRST_AID: open_first_aid,
        Action.CALL_CONTACT: call_contact,
        Action.SPEAK_LOCATION: speak_location,
        Action.STOP_LISTENING: stop_listening,
        Action.OPEN_PROFILE: open_profile,
        Action.HELP: show_help,
    }
