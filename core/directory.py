"""
Expert directory: stored experts merged with the demo experts, plus the snapshot
handed to the Title Hive matcher.

The matcher never reads ambient state. It receives an `ExpertSnapshot` whose age is
bounded by `max_age` seconds (0 means refetch from storage every time).
"""
from __future__ import annotations

import logging
import os
import threading
import time
from typing import Any, Callable, Dict, Iterable, List, NamedTuple, Optional

from core.errors import BookDockerError, ExpertNotFoundError, PersistenceError
from core.models import Expert, utcnow
from core.seed import example_experts

log = logging.getLogger(__name__)

SNAPSHOT_MAX_AGE_SECONDS = float(os.getenv("SNAPSHOT_MAX_AGE_SECONDS", "0") or 0)
SHOW_EXAMPLE_EXPERTS = os.getenv("SHOW_EXAMPLE_EXPERTS", "true").lower() in ("1", "true", "yes")


class ExpertSnapshot(NamedTuple):
    experts: List[Expert]
    taken_at: float

    def get(self, expert_id: str) -> Optional[Expert]:
        for expert in self.experts:
            if expert.id == expert_id:
                return expert
        return None

    def age(self, now: float) -> float:
        return now - self.taken_at


class ExpertDirectory:
    """
    `store` is anything exposing list_experts(), get_expert_by_id(id) and
    update_expert(id, changes); by default the Postgres expert store.
    Demo experts are kept in memory and edited there only.
    """

    def __init__(
        self,
        store: Any = None,
        include_examples: bool | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if store is None:
            from core.db.experts import expert_store as store
        self.store = store
        if include_examples is None:
            include_examples = SHOW_EXAMPLE_EXPERTS
        self._examples: Dict[str, Expert] = {e.id: e for e in example_experts()} if include_examples else {}
        self._clock = clock
        self._lock = threading.Lock()
        self._cached: Optional[ExpertSnapshot] = None

    # -------- reads --------

    def snapshot(self, max_age: float | None = None) -> ExpertSnapshot:
        """Return a snapshot no older than `max_age` seconds, refetching when needed."""
        if max_age is None:
            max_age = SNAPSHOT_MAX_AGE_SECONDS
        now = self._clock()
        with self._lock:
            cached = self._cached
            if cached is not None and max_age > 0 and cached.age(now) <= max_age:
                return cached

        experts = list(self.store.list_experts()) + list(self._examples.values())
        experts.sort(key=lambda e: e.created_at, reverse=True)
        snap = ExpertSnapshot(experts=experts, taken_at=now)
        with self._lock:
            self._cached = snap
        return snap

    def list(self, max_age: float | None = None) -> List[Expert]:
        return list(self.snapshot(max_age).experts)

    def get(self, expert_id: str) -> Optional[Expert]:
        if expert_id in self._examples:
            return self._examples[expert_id]
        return self.store.get_expert_by_id(expert_id)

    def require(self, expert_id: str) -> Expert:
        expert = self.get(expert_id)
        if expert is None:
            raise ExpertNotFoundError(expert_id)
        return expert

    def is_example(self, expert_id: str) -> bool:
        return expert_id in self._examples

    # -------- writes --------

    def save(self, expert_id: str, changes: Dict[str, Any]) -> Expert:
        """
        Persist a partial update and return the updated expert.
        Demo experts are updated in memory. Storage failures surface as PersistenceError
        and leave nothing changed.
        """
        if expert_id in self._examples:
            with self._lock:
                current = self._examples[expert_id]
                updated = current.model_copy(update={**changes, "updated_at": utcnow()})
                self._examples[expert_id] = updated
                self._cached = None
            return updated

        try:
            updated = self.store.update_expert(expert_id, changes)
        except BookDockerError:
            raise
        except Exception as exc:
            log.error("Expert update failed", extra={"expert_id": expert_id, "error": str(exc)})
            raise PersistenceError("Failed to save changes. Please try again.") from exc
        self.invalidate()
        return updated

    def delete(self, expert_ids: Iterable[str]) -> int:
        """Delete stored experts; demo experts are skipped."""
        ids = [i for i in expert_ids if i and i not in self._examples]
        if not ids:
            return 0
        removed = self.store.delete_experts(ids)
        self.invalidate()
        return removed

    def invalidate(self) -> None:
        with self._lock:
            self._cached = None


_directory: Optional[ExpertDirectory] = None


def get_directory() -> ExpertDirectory:
    global _directory
    if _directory is None:
        _directory = ExpertDirectory()
    return _directory


__all__ = [
    "SNAPSHOT_MAX_AGE_SECONDS",
    "SHOW_EXAMPLE_EXPERTS",
    "ExpertSnapshot",
    "ExpertDirectory",
    "get_directory",
]
