"""
Binding Cache

Memoizes parsed bindings per template string for the lifetime of an engine.
"""

import copy
import logging
from typing import Dict, List, Optional

from .binding import Binding

logger = logging.getLogger(__name__)


class BindingCache:
    """
    Template -> bindings store.

    Entries are copied on the way in and on the way out, so callers may
    mutate what they get without touching the cached master copy.
    """

    def __init__(self):
        self._entries: Dict[str, List[Binding]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, template: str) -> bool:
        return template in self._entries

    def get(self, template: str) -> Optional[List[Binding]]:
        """Return a copy of the cached bindings, or None on a miss."""
        entry = self._entries.get(template)
        if entry is None:
            logger.debug(f"Binding cache miss: {template}")
            return None
        logger.debug(f"Binding cache hit: {template}")
        return copy.deepcopy(entry)

    def put(self, template: str, bindings: List[Binding]) -> None:
        """Store a copy of the bindings parsed from template."""
        self._entries[template] = copy.deepcopy(bindings)

    def clear(self) -> None:
        self._entries.clear()
