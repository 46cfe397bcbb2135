"""
Search-term expansion for exercise names.

Exercise names arrive as user- or AI-written free text, while the media index
often only recognizes a simplified label. AliasExpander turns one name into an
ordered list of search terms, most precise first, so the resolver can stop at
the first term the index knows:

1. the raw name
2. curated aliases registered for the normalized name
3. the name without its parenthetical suffix ("Lat Pulldown (Medium Grip)")
4. the name with hyphens replaced by spaces
"""
import logging
import pathlib
import re
from typing import Dict, List, Optional

import yaml

from backend.core.normalize import normalize

logger = logging.getLogger(__name__)

ROOT = pathlib.Path(__file__).resolve().parents[2]
DEFAULT_ALIAS_FILE = ROOT / "shared/dictionaries/exercise_aliases.yaml"

# Stripped forms this short are too generic to search for.
MIN_STRIPPED_LENGTH = 3

_PARENTHETICAL = re.compile(r"\s*\([^)]*\)\s*$")


def load_alias_table(path: pathlib.Path = DEFAULT_ALIAS_FILE) -> Dict[str, List[str]]:
    """
    Load the alias dictionary, keyed by normalized exercise name.

    Args:
        path: YAML file mapping exercise names to lists of search terms

    Returns:
        Mapping of normalized name -> ordered alias terms
    """
    raw = yaml.safe_load(path.read_text()) or {}
    table: Dict[str, List[str]] = {}
    for name, terms in raw.items():
        if isinstance(terms, str):
            terms = [terms]
        key = normalize(str(name))
        existing = table.setdefault(key, [])
        for term in terms or []:
            if term not in existing:
                existing.append(term)
    logger.debug(f"Loaded {len(table)} exercise alias entries from {path.name}")
    return table


class AliasExpander:
    """Expands an exercise name into an ordered list of distinct search terms."""

    def __init__(self, alias_table: Optional[Dict[str, List[str]]] = None):
        """
        Args:
            alias_table: Custom name -> aliases map (keys are normalized on
                load). Uses the bundled dictionary if not provided.
        """
        if alias_table is None:
            self._aliases = load_alias_table()
        else:
            self._aliases = {}
            for name, terms in alias_table.items():
                self._aliases.setdefault(normalize(name), []).extend(terms)

    def aliases_for(self, raw_name: str) -> List[str]:
        """Registered alias terms for a name (empty if none)."""
        return list(self._aliases.get(normalize(raw_name), []))

    def expand(self, raw_name: str) -> List[str]:
        """
        Ordered, distinct search terms for a name; the raw name comes first.

        Args:
            raw_name: Exercise name as written

        Returns:
            Search terms to try in order
        """
        terms: List[str] = []

        def add(term: str) -> None:
            if term and term not in terms:
                terms.append(term)

        add(raw_name)
        for alias in self.aliases_for(raw_name):
            add(alias)

        stripped = _PARENTHETICAL.sub("", raw_name).strip()
        if stripped != raw_name.strip() and len(stripped) > MIN_STRIPPED_LENGTH:
            add(stripped)

        if "-" in raw_name:
            add(re.sub(r"\s+", " ", raw_name.replace("-", " ")).strip())

        return terms

    def __len__(self) -> int:
        return len(self._aliases)
