"""
Ranking of media index search results against a query name.

Two policies, both pure functions over (query, candidates):

- match_strict: for text-search results, which the index already ranked by
  relevance. Prefers name matches and otherwise accepts the index's top hit.
- match_lenient: for muscle-filtered results, which are every exercise for a
  muscle group regardless of name. Name-token overlap does the filtering, and
  no match is better than an unrelated exercise.
"""
from typing import List, Optional, Sequence, Set, TypeVar

from backend.core.normalize import normalize
from domain.models.exercise_media import ExerciseRecord

R = TypeVar("R", bound=ExerciseRecord)

# Equipment, stance and grip words that say little about the movement itself.
MODIFIER_TOKENS: Set[str] = {
    "standing", "seated", "sitting", "incline", "decline", "flat",
    "barbell", "dumbbell", "cable", "machine", "smith", "kettlebell",
    "band", "banded", "ez", "bar", "weighted", "assisted", "bodyweight",
    "single", "one", "two", "arm", "leg", "alternating", "unilateral",
    "lying", "bent", "over", "wide", "close", "narrow", "grip",
    "reverse", "neutral", "with", "the", "and", "on", "of",
}

# Canonical movement types; a shared one is strong evidence of the same lift.
MOVEMENT_TOKENS: Set[str] = {
    "press", "row", "curl", "pulldown", "pullup", "pushup", "extension",
    "raise", "fly", "flye", "squat", "deadlift", "lunge", "dip", "shrug",
    "crunch", "plank", "thrust", "bridge", "pushdown", "kickback",
    "pullover", "calf",
}


def core_words(query: str) -> List[str]:
    """Query words left after removing modifier tokens, in query order."""
    words = []
    for word in normalize(query).split():
        if word not in MODIFIER_TOKENS and word not in words:
            words.append(word)
    return words


def match_strict(query: str, candidates: Sequence[R]) -> Optional[R]:
    """
    Pick the best text-search result for a query.

    Priority: exact normalized name, name starts with query, query starts
    with name, name contains query, then the first candidate.

    Args:
        query: The search term that produced the candidates
        candidates: Search results in the index's ranking order

    Returns:
        The chosen record, or None only if there are no candidates
    """
    if not candidates:
        return None

    q = normalize(query)
    names = [normalize(c.name) for c in candidates]

    for candidate, name in zip(candidates, names):
        if name == q:
            return candidate
    for candidate, name in zip(candidates, names):
        if name.startswith(q):
            return candidate
    for candidate, name in zip(candidates, names):
        if name and q.startswith(name):
            return candidate
    for candidate, name in zip(candidates, names):
        if q in name:
            return candidate

    return candidates[0]


def match_lenient(query: str, candidates: Sequence[R]) -> Optional[R]:
    """
    Pick a muscle-filtered result that plausibly names the same exercise.

    Core words are the query's words minus modifier tokens. Distinctive
    words are core words that are not movement tokens either ("zercher" in
    "Zercher Squat"). When the query has distinctive words, every step after
    the exact match requires a candidate to contain at least one of them.

    Priority:
        1. exact normalized name
        2. name contains every core word
        3. name shares a movement token with the query
        4. most core-word hits (at least one; ties keep input order)
        5. one name is a prefix or suffix of the other
        6. None

    Args:
        query: The exercise name being resolved
        candidates: Exercises returned by a muscle-filtered search

    Returns:
        The chosen record, or None when no candidate is close enough
    """
    if not candidates:
        return None

    q = normalize(query)
    names = [normalize(c.name) for c in candidates]

    for candidate, name in zip(candidates, names):
        if name == q:
            return candidate

    # Whole words only, so "t" in "T-Bar Row" does not hit "seated".
    words = [set(name.split()) for name in names]
    core = core_words(q)
    distinctive = [w for w in core if w not in MOVEMENT_TOKENS]
    gate = distinctive or core

    def passes_gate(tokens: Set[str]) -> bool:
        return not distinctive or any(w in tokens for w in distinctive)

    if core:
        for candidate, tokens in zip(candidates, words):
            if all(w in tokens for w in core):
                return candidate

    query_movements = set(q.split()) & MOVEMENT_TOKENS
    if query_movements:
        for candidate, tokens in zip(candidates, words):
            if query_movements & tokens and passes_gate(tokens):
                return candidate

    best = None
    best_hits = 0
    for candidate, tokens in zip(candidates, words):
        hits = sum(1 for w in gate if w in tokens)
        if hits > best_hits:
            best, best_hits = candidate, hits
    if best is not None:
        return best

    for candidate, name, tokens in zip(candidates, names, words):
        if not name or not passes_gate(tokens):
            continue
        if (
            q.startswith(name)
            or q.endswith(name)
            or name.startswith(q)
            or name.endswith(q)
        ):
            return candidate

    return None
