"""Similarity scoring between a normalized transcript and a canonical phrase.

Scoring is a chain of strategies tried in order. Each one either returns a
score or None (not applicable); the first score returned wins:

    exact          a == b                            -> 1.0
    containment    phrase inside transcript          -> 0.95
                   transcript inside phrase          -> 0.90
    word_overlap   > 70% of words roughly match      -> 0.85
    edit_distance  max(1 - lev/maxlen, overlap*0.7)  (always applies)

The cheap checks run first so the common cases never pay for the
edit-distance table, and so every score can be traced back to one rule.

Examples:
    >>> score("start cpr", "start cpr")
    1.0
    >>> score("please start cpr now", "start cpr")
    0.95
"""

from rapidfuzz.distance import Levenshtein

WORD_MATCH_THRESHOLD = 0.8   # word_similarity above this counts as a match
OVERLAP_THRESHOLD = 0.7      # overlap ratio above this scores OVERLAP_SCORE

EXACT_SCORE = 1.0
CONTAINS_PHRASE_SCORE = 0.95
CONTAINED_IN_PHRASE_SCORE = 0.90
OVERLAP_SCORE = 0.85
OVERLAP_FALLBACK_WEIGHT = 0.7


def levenshtein(a, b):
    """Classic edit distance; insert, delete and substitute all cost 1."""
    return Levenshtein.distance(a, b)


def _edit_similarity(a, b):
    longest = max(len(a), len(b))
    if longest == 0:
        return 1.0
    return 1.0 - levenshtein(a, b) / longest


def word_similarity(w1, w2):
    if w1 == w2:
        return 1.0
    if w1 in w2 or w2 in w1:
        return 0.9
    return _edit_similarity(w1, w2)


def overlap_ratio(a, b):
    """Fraction of words in a with a close counterpart in b.

    Divided by the longer word count, so extra words on either side lower it.
    """
    words_a = a.split()
    words_b = b.split()
    longest = max(len(words_a), len(words_b))
    if longest == 0:
        return 0.0
    matched = [w for w in words_a
               if any(word_similarity(w, other) > WORD_MATCH_THRESHOLD
                      for other in words_b)]
    return len(matched) / longest


# --- Strategies: (a, b) -> float or None ---

def exact(a, b):
    if a == b:
        return EXACT_SCORE
    return None


def containment(a, b):
    # A transcript that wraps the phrase ("please start cpr now") is a
    # stronger signal than a transcript that is only a piece of it.
    if b in a:
        return CONTAINS_PHRASE_SCORE
    if a in b:
        return CONTAINED_IN_PHRASE_SCORE
    return None


def word_overlap(a, b):
    if overlap_ratio(a, b) > OVERLAP_THRESHOLD:
        return OVERLAP_SCORE
    return None


def edit_distance(a, b):
    return max(_edit_similarity(a, b), overlap_ratio(a, b) * OVERLAP_FALLBACK_WEIGHT)


STRATEGIES = (exact, containment, word_overlap, edit_distance)


def score(a, b, strategies=STRATEGIES):
    """Confidence in [0, 1] that transcript a expresses phrase b.

    Both arguments must already be normalized.
    """
    for strategy in strategies:
        result = strategy(a, b)
        if result is not None:
            return min(1.0, max(0.0, result))
    return 0.0
