"""Fire-and-forget reinforcement of note energies and synapse weights.

Three events strengthen the neuron graph:

- **search**: notes returned together gain energy, and every ordered pair
  of them gains synapse weight (the synapse is created if absent).
- **commit**: notes linked to the committed files gain energy.
- **context**: notes placed in an assembled context window gain energy.

Each hook submits one task to a background thread pool and returns at once.
The task's failures are logged and swallowed; they never reach the code
that fired the hook.  Concurrent updates to the same record rely on the
store's atomic increments.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import Future, ThreadPoolExecutor

from synapse_graph.core.neurons.config import AutoReinforcementConfig
from synapse_graph.core.storage.base import GraphStore

logger = logging.getLogger(__name__)


def _unique(ids: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for nid in ids:
        if nid not in seen:
            seen.add(nid)
            result.append(nid)
    return result


class AutoReinforcementEngine:
    """Dispatches reinforcement updates onto a worker pool.

    Parameters
    ----------
    store:
        Store providing ``increment_energy``, ``upsert_synapse`` and
        ``get_notes_for_files``.
    config:
        Boost amounts and the ``enabled`` master switch.
    executor:
        Optional executor to submit tasks to.  When omitted the engine owns a
        :class:`ThreadPoolExecutor` with ``config.max_workers`` threads and
        shuts it down in :meth:`close`.
    """

    def __init__(
        self,
        store: GraphStore,
        config: AutoReinforcementConfig | None = None,
        executor: ThreadPoolExecutor | None = None,
    ) -> None:
        self._store = store
        self.config = config or AutoReinforcementConfig()
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=self.config.max_workers,
            thread_name_prefix="reinforcement",
        )

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    def on_search(self, note_ids: Sequence[str]) -> Future | None:
        """Reinforce the notes of a search result and the synapses between them."""
        if not self.config.enabled:
            return None
        notes = _unique(note_ids)[: self.config.max_search_notes]
        if not notes:
            return None
        return self._dispatch("search", self._reinforce_search, notes)

    def on_commit(self, project_id: str, file_paths: Sequence[str]) -> Future | None:
        """Boost notes linked to the files touched by a commit."""
        if not self.config.enabled or not file_paths:
            return None
        return self._dispatch(
            "commit", self._reinforce_commit, project_id, list(file_paths)
        )

    def on_context(self, note_ids: Sequence[str]) -> Future | None:
        """Boost notes that were included in an assembled context."""
        if not self.config.enabled:
            return None
        notes = _unique(note_ids)
        if not notes:
            return None
        return self._dispatch(
            "context", self._boost_energy, notes, self.config.context_energy_boost
        )

    def close(self, wait: bool = True) -> None:
        """Shut the worker pool down; dispatched tasks are allowed to finish."""
        if self._owns_executor:
            self._executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Workers
    # ------------------------------------------------------------------

    def _dispatch(self, event: str, fn: Callable[..., None], *args) -> Future | None:
        def _task() -> None:
            try:
                fn(*args)
            except Exception:
                logger.warning("Reinforcement on %s failed", event, exc_info=True)

        try:
            return self._executor.submit(_task)
        except RuntimeError:
            # Pool already shut down.
            logger.warning("Reinforcement on %s skipped: worker pool closed", event)
            return None

    # Every update is independent: one failed store call is logged and the
    # remaining updates of the event still run.

    def _boost_energy(self, note_ids: list[str], delta: float) -> None:
        boosted = 0
        for nid in note_ids:
            try:
                self._store.increment_energy(nid, delta)
            except Exception:
                logger.warning("Energy boost of note %s failed", nid, exc_info=True)
                continue
            boosted += 1
        logger.debug("Boosted energy of %d notes by %.3f", boosted, delta)

    def _boost_synapse(self, source_id: str, target_id: str, delta: float) -> bool:
        try:
            self._store.upsert_synapse(source_id, target_id, delta)
        except Exception:
            logger.warning(
                "Synapse boost %s -> %s failed", source_id, target_id, exc_info=True
            )
            return False
        return True

    def _reinforce_search(self, note_ids: list[str]) -> None:
        self._boost_energy(note_ids, self.config.search_energy_boost)

        boost = self.config.search_synapse_boost
        updated = 0
        for i, source in enumerate(note_ids):
            for target in note_ids[i + 1 :]:
                updated += self._boost_synapse(source, target, boost)
                updated += self._boost_synapse(target, source, boost)
        logger.debug("Reinforced %d synapses by %.3f", updated, boost)

    def _reinforce_commit(self, project_id: str, file_paths: list[str]) -> None:
        note_ids = _unique(self._store.get_notes_for_files(project_id, file_paths))
        if not note_ids:
            return
        self._boost_energy(note_ids, self.config.commit_energy_boost)
