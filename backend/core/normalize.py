import re


_SEPARATORS = re.compile(r"[-_/]")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def normalize(text: str) -> str:
    """
    Canonical comparison key for an exercise name.

    Lower-cases, turns separators (hyphen, underscore, slash) into spaces,
    strips remaining punctuation and collapses whitespace, so "EZ-Bar Curl",
    "ez bar curl" and "  Ez-Bar   Curl " share one key. Idempotent.
    """
    if not text:
        return ""
    t = text.lower()
    t = _SEPARATORS.sub(" ", t)
    t = _PUNCTUATION.sub("", t)
    return _WHITESPACE.sub(" ", t).strip()


# Cache keys for the media engine are normalized names.
normalize_name = normalize
