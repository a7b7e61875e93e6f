from lifeline.commands.catalog import (
    Action, CommandDefinition, CATALOG, GUIDE_KEYWORDS, DEFAULT_GUIDE,
)
from lifeline.commands.matcher import Matcher, CommandMatch, MatchResult
from lifeline.commands.dispatcher import Dispatcher, DispatcherCallbacks
from lifeline.commands.actions import build_default_handlers
