"""
Muscle group inference for the muscle-filtered fallback search.

When no search term finds an exercise, the resolver guesses the primary
muscle group from keywords in the name and searches the index by muscle. The
internal muscle keys map to one or more muscle names as the external index
spells them, tried in order.
"""
import re
from typing import Dict, List, Optional

from backend.core.normalize import normalize


# Keyword -> internal muscle key. Longer keywords are checked first so
# "leg press" beats "press" and "lateral" beats "lat".
EXERCISE_PATTERNS: Dict[str, str] = {
    # Chest
    "bench": "chest",
    "press": "chest",
    "fly": "chest",
    "flye": "chest",
    "pec": "chest",
    "chest": "chest",
    # Shoulders
    "shoulder": "shoulders",
    "overhead": "shoulders",
    "military": "shoulders",
    "lateral": "shoulders",
    "rear delt": "shoulders",
    "face pull": "shoulders",
    # Triceps
    "tricep": "triceps",
    "pushdown": "triceps",
    "dip": "triceps",
    "skull crusher": "triceps",
    # Back
    "row": "back",
    "pull": "back",
    "lat": "lats",
    "pulldown": "lats",
    "chin up": "lats",
    "deadlift": "back",
    "trap": "traps",
    "shrug": "traps",
    # Biceps
    "curl": "biceps",
    "bicep": "biceps",
    # Forearms
    "wrist": "forearms",
    "forearm": "forearms",
    # Legs
    "squat": "quads",
    "leg press": "quads",
    "lunge": "quads",
    "quad": "quads",
    "leg extension": "quads",
    "leg curl": "hamstrings",
    "hamstring": "hamstrings",
    "romanian": "hamstrings",
    "glute": "glutes",
    "hip thrust": "glutes",
    "calf": "calves",
    # Core
    "crunch": "abs",
    "plank": "abs",
    "ab": "abs",
    "sit up": "abs",
    "situp": "abs",
}

# Weak hints used only when no pattern above matched.
FALLBACK_PATTERNS: Dict[str, str] = {
    "push": "chest",
    "leg": "quads",
}

# Internal muscle key -> muscle names understood by the media index.
EXTERNAL_MUSCLE_NAMES: Dict[str, List[str]] = {
    "chest": ["Chest"],
    "shoulders": ["Shoulders", "Front Shoulders", "Rear Shoulders"],
    "triceps": ["Triceps"],
    "back": ["Lats", "Mid back", "Lower back"],
    "lats": ["Lats"],
    "traps": ["Traps", "Traps (mid-back)"],
    "biceps": ["Biceps"],
    "forearms": ["Forearms"],
    "quads": ["Quads"],
    "hamstrings": ["Hamstrings"],
    "glutes": ["Glutes"],
    "calves": ["Calves"],
    "abs": ["Abdominals", "Obliques"],
}


def _compile(patterns: Dict[str, str]) -> List[tuple]:
    ordered = sorted(patterns.items(), key=lambda item: len(item[0]), reverse=True)
    return [(re.compile(rf"\b{re.escape(keyword)}"), muscle) for keyword, muscle in ordered]


class MuscleGroupMapper:
    """Derives a probable primary muscle group from an exercise name."""

    def __init__(
        self,
        patterns: Optional[Dict[str, str]] = None,
        external_names: Optional[Dict[str, List[str]]] = None,
    ):
        self._patterns = _compile(patterns or EXERCISE_PATTERNS)
        self._fallbacks = _compile(FALLBACK_PATTERNS)
        self._external_names = external_names or EXTERNAL_MUSCLE_NAMES

    def infer_primary_muscle(self, exercise_name: str) -> Optional[str]:
        """
        Guess the primary muscle key for an exercise name.

        Args:
            exercise_name: Free-text exercise name

        Returns:
            Internal muscle key (e.g. "quads"), or None if nothing matched
        """
        name = normalize(exercise_name)
        if not name:
            return None
        for pattern, muscle in self._patterns:
            if pattern.search(name):
                return muscle
        for pattern, muscle in self._fallbacks:
            if pattern.search(name):
                return muscle
        return None

    def external_muscle_names(self, muscle_key: str) -> List[str]:
        """External muscle names to search for a muscle key, in order."""
        return list(self._external_names.get(muscle_key, []))
