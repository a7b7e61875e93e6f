"""Transcript normalization shared by the matcher and the catalog lookups."""

import re

_PUNCTUATION = re.compile(r"[.,!?;:]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text):
    """Lower-case, trim, drop . , ! ? ; : and collapse runs of whitespace."""
    if not text:
        return ""
    t = _PUNCTUATION.sub("", text.lower().strip())
    return _WHITESPACE.sub(" ", t).strip()
