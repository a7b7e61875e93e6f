"""Command catalog: the fixed set of voice actions and their trigger phrases.

Declaration order matters. When two phrases score the same for a transcript,
the matcher keeps whichever it saw first, so "help" (listed under both
trigger_alert and help) resolves to trigger_alert.
"""

from dataclasses import dataclass
from enum import Enum


class Action(str, Enum):
    TRIGGER_ALERT = "trigger_alert"
    OPEN_FIRST_AID = "open_first_aid"
    CALL_CONTACT = "call_contact"
    SPEAK_LOCATION = "speak_location"
    STOP_LISTENING = "stop_listening"
    OPEN_PROFILE = "open_profile"
    HELP = "help"


@dataclass(frozen=True)
class CommandDefinition:
    action: Action
    phrases: tuple            # canonical trigger phrases, in priority order
    description: str
    parameter_keys: tuple = ()

    def __post_init__(self):
        if not self.phrases:
            raise ValueError(f"{self.action.value} has no trigger phrases")


CATALOG = (
    CommandDefinition(
        Action.TRIGGER_ALERT,
        ("emergency", "help", "help me", "i need help", "call for help",
         "send alert", "emergency alert", "alert", "911", "danger"),
        "Trigger emergency alert to all contacts",
    ),
    CommandDefinition(
        Action.OPEN_FIRST_AID,
        ("start cpr", "cpr", "choking", "bleeding", "burns", "fracture",
         "broken bone", "heart attack", "seizure", "shock", "first aid",
         "show me cpr", "how to do cpr", "help with cpr"),
        "Open specific first aid guide",
        parameter_keys=("scenario_name",),
    ),
    CommandDefinition(
        Action.CALL_CONTACT,
        ("call contact", "contact", "call emergency contact",
         "notify contact", "message contact"),
        "Initiate contact alert",
    ),
    CommandDefinition(
        Action.SPEAK_LOCATION,
        ("where am i", "my location", "current location", "where is this",
         "what is my location", "tell me my location"),
        "Speak current GPS location",
    ),
    CommandDefinition(
        Action.STOP_LISTENING,
        ("stop listening", "stop", "cancel", "turn off", "deactivate",
         "disable voice", "stop voice"),
        "Deactivate voice control",
    ),
    CommandDefinition(
        Action.OPEN_PROFILE,
        ("open profile", "my profile", "show profile", "profile",
         "medical info", "medical information"),
        "Open user profile page",
    ),
    CommandDefinition(
        Action.HELP,
        ("help", "what can you do", "commands", "voice commands",
         "how do i use this", "what can i say"),
        "Show available voice commands",
    ),
)

# First-aid keyword -> guide id. Scanned in order; first keyword found wins.
GUIDE_KEYWORDS = {
    "cpr": "cpr",
    "cardiopulmonary resuscitation": "cpr",
    "choking": "choking",
    "heimlich maneuver": "choking",
    "bleeding": "severe-bleeding",
    "severe bleeding": "severe-bleeding",
    "blood": "severe-bleeding",
    "burns": "burns",
    "burn": "burns",
    "fire": "burns",
    "fracture": "fracture",
    "broken bone": "fracture",
    "shock": "shock",
    "heart attack": "heart-attack",
    "chest pain": "heart-attack",
    "seizure": "seizure",
    "convulsion": "seizure",
}

DEFAULT_GUIDE = "cpr"


def get_definition(action, catalog=CATALOG):
    """Return the CommandDefinition for action, or None."""
    for definition in catalog:
        if definition.action == action:
            return definition
    return None


def all_phrases(catalog=CATALOG):
    """Every trigger phrase, in catalog order."""
    return [phrase for definition in catalog for phrase in definition.phrases]


def command_descriptions(catalog=CATALOG, examples=3):
    """(example phrases, description) pairs for help output."""
    return [(list(d.phrases[:examples]), d.description) for d in catalog]
