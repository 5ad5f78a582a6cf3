"""Registry of live companions keyed by their owner's identifier."""

import logging
from typing import Dict, Iterator, List, Optional

from .companion import Companion

_log = logging.getLogger(__name__)


class CompanionRegistry:
    """Strong-reference registry; entries leave only through :meth:`remove`."""

    def __init__(self):
        self._companions: Dict[str, Companion] = {}

    def register(self, owner_id: str, companion: Companion) -> None:
        previous = self._companions.get(owner_id)
        if previous is not None and previous is not companion:
            _log.info("Replacing companion %s for owner %s", previous.name, owner_id)
            previous.task_manager.cancel_all()
        companion.owner_id = owner_id
        self._companions[owner_id] = companion

    def get(self, owner_id: str) -> Optional[Companion]:
        return self._companions.get(owner_id)

    def remove(self, owner_id: str) -> Optional[Companion]:
        """Despawn: cancel the companion's work and drop it from the registry."""
        companion = self._companions.pop(owner_id, None)
        if companion is not None:
            companion.task_manager.cancel_all()
            _log.info("Removed companion %s for owner %s", companion.name, owner_id)
        return companion

    def tick_all(self) -> None:
        for companion in list(self._companions.values()):
            companion.tick()

    def owners(self) -> List[str]:
        return list(self._companions)

    def __contains__(self, owner_id: str) -> bool:
        return owner_id in self._companions

    def __iter__(self) -> Iterator[Companion]:
        return iter(list(self._companions.values()))

    def __len__(self) -> int:
        return len(self._companions)
