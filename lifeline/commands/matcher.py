"""Matcher: picks the catalog action a transcript most likely expresses.

Every (action, phrase) pair in the catalog is scored; the single best pair
wins, with catalog order breaking ties. The match is only accepted if its
confidence reaches the threshold. Nothing here dispatches or speaks.
"""

from dataclasses import dataclass, field

from lifeline.commands.catalog import (
    CATALOG, GUIDE_KEYWORDS, DEFAULT_GUIDE, Action,
)
from lifeline.commands.errors import EmptyTranscript, NoMatch
from lifeline.commands.normalize import normalize
from lifeline.commands.similarity import score

DEFAULT_THRESHOLD = 0.6


@dataclass
class CommandMatch:
    action: Action
    confidence: float       # 0.0–1.0
    matched_phrase: str     # catalog phrase as declared
    parameters: dict = field(default_factory=dict)


@dataclass
class MatchResult:
    accepted: bool
    match: CommandMatch = None
    error: Exception = None


class Matcher:
    """Scores transcripts against a command catalog."""

    def __init__(self, catalog=CATALOG, threshold=DEFAULT_THRESHOLD,
                 guide_keywords=None, default_guide=DEFAULT_GUIDE):
        self.catalog = catalog
        self.guide_keywords = GUIDE_KEYWORDS if guide_keywords is None else guide_keywords
        self.default_guide = default_guide
        self._threshold = DEFAULT_THRESHOLD
        self.set_threshold(threshold)
        # (definition, declared phrase, normalized phrase), in catalog order
        self._entries = [
            (definition, phrase, normalize(phrase))
            for definition in catalog
            for phrase in definition.phrases
        ]

    @property
    def threshold(self):
        return self._threshold

    def set_threshold(self, threshold):
        """Set the acceptance threshold. Values outside [0, 1] are ignored.

        Returns:
            True if the threshold was changed.
        """
        if 0.0 <= threshold <= 1.0:
            self._threshold = float(threshold)
            return True
        return False

    def match(self, transcript):
        """Match a raw transcript.

        Returns:
            MatchResult: accepted with a CommandMatch, or rejected with an
            EmptyTranscript or NoMatch error.
        """
        t = normalize(transcript)
        if not t:
            return MatchResult(accepted=False, error=EmptyTranscript())

        best = None
        best_phrase = None
        best_score = 0.0
        for definition, phrase, normalized_phrase in self._entries:
            s = score(t, normalized_phrase)
            if s > best_score:   # strictly greater: first seen wins ties
                best, best_phrase, best_score = definition, phrase, s

        if best is None or best_score < self._threshold:
            return MatchResult(accepted=False, error=NoMatch(transcript))

        parameters = {}
        if best.parameter_keys:
            parameters = self.extract_parameters(t, best.action) or {}
        m = CommandMatch(action=best.action, confidence=best_score,
                         matched_phrase=best_phrase, parameters=parameters)
        return MatchResult(accepted=True, match=m)

    def extract_parameters(self, transcript, action):
        """Pull secondary values out of a transcript for actions that take them.

        For open_first_aid, returns the guide id of the first keyword (in
        keyword-table order) found in the transcript, or the default guide.
        Returns None for actions without parameters.
        """
        if action != Action.OPEN_FIRST_AID:
            return None
        t = normalize(transcript)
        for keyword, guide_id in self.guide_keywords.items():
            if keyword in t:
                return {"scenario_name": guide_id}
        return {"scenario_name": self.default_guide}

    def action_for_phrase(self, phrase):
        """Return the action a canonical phrase belongs to, or None."""
        p = normalize(phrase)
        for definition, _, normalized_phrase in self._entries:
            if normalized_phrase == p:
                return definition.action
        return None

    def all_phrases(self):
        return [phrase for _, phrase, _ in self._entries]
