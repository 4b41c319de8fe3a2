"""
In-memory entity collection shared by the request handlers.

The collection is held as an immutable tuple. A load builds the next tuple
off to the side and publishes it with one assignment, so a reader that took
a snapshot keeps scanning a complete collection while a load happens.
"""

import threading
from typing import Dict, Iterable, Optional, Tuple

from .logging_config import get_logger
from .reconcile_record import Entity

logger = get_logger(__name__)


class EntityStore:
    def __init__(self) -> None:
        #(entities, index by id, version), always replaced as one value
        self._state: Tuple[Tuple[Entity, ...], Dict[str, Entity], int] = ((), {}, 0)
        #serialises loads, never held while scanning
        self._swap_lock = threading.Lock()

    def replace_entities(self, entities: Iterable[Entity]) -> int:
        """
        Replace the whole collection and return the new entity count.

        The previous collection stays visible until the new one is complete.
        """
        new_entities = tuple(entities)

        #first entity wins when a dataset repeats an id
        new_by_id: Dict[str, Entity] = {}
        for entity in new_entities:
            new_by_id.setdefault(entity.id, entity)

        with self._swap_lock:
            version = self._state[2] + 1
            self._state = (new_entities, new_by_id, version)

        logger.info(f"Entity store replaced: {len(new_entities)} entities (version {version})")
        return len(new_entities)

    def snapshot(self) -> Tuple[Entity, ...]:
        return self._state[0]

    def get(self, entity_id: str) -> Optional[Entity]:
        return self._state[1].get(entity_id)

    @property
    def version(self) -> int:
        return self._state[2]

    def __len__(self) -> int:
        return len(self._state[0])
