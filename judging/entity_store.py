"""
Entity Store - screen-scoped entities plus one editable draft per entity.

Drafts are kept in an explicit ``dict[entity_id, draft]``. A draft is
created when its entity first appears, reseeded from the server value on
refetch, and discarded when its entity leaves the active set. A draft that
the user is editing, or that belongs to a submission still in flight, is not
reseeded by a refetch.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from contextlib import contextmanager
from typing import Generic, TypeVar

E = TypeVar("E")
D = TypeVar("D")

logger = logging.getLogger(__name__)


class EntityStore(Generic[E, D]):
    """
    Latest snapshot of one entity type with per-entity drafts.

    Args:
        seed: Draft value derived from a freshly fetched entity
        key: Stable id of an entity (defaults to its ``id`` attribute)
    """

    def __init__(self, seed: Callable[[E], D], key: Callable[[E], int] | None = None):
        self._seed = seed
        self._key: Callable[[E], int] = key or (lambda entity: entity.id)  # type: ignore[attr-defined]
        self._entities: dict[int, E] = {}
        self._drafts: dict[int, D] = {}
        self._dirty: set[int] = set()
        self._in_flight: set[int] = set()

    # ----- snapshot -----

    @property
    def entities(self) -> list[E]:
        return list(self._entities.values())

    def get(self, entity_id: int) -> E | None:
        return self._entities.get(entity_id)

    def __contains__(self, entity_id: object) -> bool:
        return entity_id in self._entities

    def __iter__(self) -> Iterator[E]:
        return iter(list(self._entities.values()))

    def __len__(self) -> int:
        return len(self._entities)

    def replace(self, entities: Sequence[E]) -> None:
        """Swap in a freshly fetched snapshot.

        Drafts are reseeded from the new entities, except those being edited
        or in flight; drafts of ids no longer present are dropped.
        """
        fresh = {self._key(entity): entity for entity in entities}
        preserved = self._dirty | self._in_flight

        for stale_id in set(self._drafts) - set(fresh):
            self._drop(stale_id)

        for entity_id, entity in fresh.items():
            if entity_id in preserved and entity_id in self._drafts:
                continue
            self._drafts[entity_id] = self._seed(entity)

        kept = len(preserved & set(fresh))
        if kept:
            logger.debug(f"Kept {kept} edited draft(s) across refetch of {len(fresh)} entities")
        self._entities = fresh

    def clear(self) -> None:
        self._entities.clear()
        self.discard_drafts()

    # ----- drafts -----

    def draft(self, entity_id: int) -> D | None:
        return self._drafts.get(entity_id)

    @property
    def drafts(self) -> dict[int, D]:
        return dict(self._drafts)

    def set_draft(self, entity_id: int, value: D) -> None:
        """Edit the draft of an active entity."""
        if entity_id not in self._entities:
            raise KeyError(f"No active entity with id {entity_id}")
        self._drafts[entity_id] = value
        self._dirty.add(entity_id)

    def is_dirty(self, entity_id: int) -> bool:
        return entity_id in self._dirty

    def reset_drafts(self, entity_ids: Iterable[int] | None = None) -> None:
        """Reseed drafts from the current snapshot (all when ids is None)."""
        ids = list(self._entities) if entity_ids is None else list(entity_ids)
        for entity_id in ids:
            entity = self._entities.get(entity_id)
            if entity is None:
                continue
            self._drafts[entity_id] = self._seed(entity)
            self._dirty.discard(entity_id)

    def discard_drafts(self) -> None:
        """Drop every draft (e.g. when the parent selection changes)."""
        self._drafts.clear()
        self._dirty.clear()

    def reseed(self, seed: Callable[[E], D]) -> None:
        """Switch the seeding function and reseed every draft from it."""
        self._seed = seed
        self.discard_drafts()
        self.reset_drafts()

    # ----- submissions -----

    def is_in_flight(self, entity_id: int) -> bool:
        return entity_id in self._in_flight

    @contextmanager
    def submitting(self, entity_ids: Iterable[int]) -> Iterator[SubmissionTicket]:
        """Mark drafts as in flight for the duration of a submission.

        Call ``ticket.succeeded()`` once the server confirms; the drafts then
        stop counting as edited so the following refetch reseeds them.
        """
        ids = set(entity_ids)
        self._in_flight |= ids
        ticket = SubmissionTicket()
        try:
            yield ticket
        finally:
            self._in_flight -= ids
            if ticket.confirmed:
                self._dirty -= ids

    def _drop(self, entity_id: int) -> None:
        self._drafts.pop(entity_id, None)
        self._dirty.discard(entity_id)


class SubmissionTicket:
    """Handle returned by ``EntityStore.submitting``."""

    def __init__(self) -> None:
        self.confirmed = False

    def succeeded(self) -> None:
        self.confirmed = True
