"""Debounced analytics recomputation.

Coalesces rapid bursts of :meth:`AnalyticsDebouncer.trigger` calls (e.g. one
per synced file) into a single :meth:`GraphAnalyticsEngine.analyze_project`
run per project once the triggers have been quiet for ``debounce_seconds``.

Runs are sequential: the background task never computes two projects at the
same time.  The synchronous engine call happens in a worker thread so the
event loop stays responsive.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable

from synapse_graph.core.analytics.engine import GraphAnalyticsEngine
from synapse_graph.core.analytics.models import ProjectAnalytics

logger = logging.getLogger(__name__)

# Pending triggers beyond this are dropped; the queued ones still fire.
QUEUE_SIZE = 64


class AnalyticsDebouncer:
    """Background task that debounces analytics triggers.

    Parameters
    ----------
    engine:
        The analytics engine whose ``analyze_project`` is called.
    debounce_seconds:
        Quiet period after the last trigger before computing.
    on_complete:
        Optional callback invoked with each successful
        :class:`ProjectAnalytics`.
    """

    def __init__(
        self,
        engine: GraphAnalyticsEngine,
        debounce_seconds: float = 2.0,
        on_complete: Callable[[ProjectAnalytics], None] | None = None,
    ) -> None:
        self._engine = engine
        self.debounce_seconds = debounce_seconds
        self._on_complete = on_complete
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=QUEUE_SIZE)
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Spawn the background loop on the running event loop."""
        if self.running:
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def stop(self) -> None:
        """Cancel the background loop and wait for it to exit.

        Pending, not yet computed triggers are discarded.
        """
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    def trigger(self, project_id: str) -> bool:
        """Request a recomputation for *project_id* without blocking.

        Returns:
            ``False`` if the queue was full and the trigger was dropped.
        """
        try:
            self._queue.put_nowait(project_id)
        except asyncio.QueueFull:
            logger.debug("Analytics trigger queue full, dropping %s", project_id)
            return False
        return True

    async def _collect(self) -> list[str]:
        """Wait for a first trigger, then drain until the quiet period elapses."""
        pending: list[str] = [await self._queue.get()]
        while True:
            try:
                project_id = await asyncio.wait_for(
                    self._queue.get(), timeout=self.debounce_seconds
                )
            except asyncio.TimeoutError:
                return pending
            if project_id not in pending:
                pending.append(project_id)

    async def _run(self) -> None:
        while True:
            pending = await self._collect()
            for project_id in pending:
                start = time.monotonic()
                try:
                    result = await asyncio.to_thread(
                        self._engine.analyze_project, project_id
                    )
                except Exception:
                    logger.warning(
                        "Debounced analytics failed for project %s",
                        project_id,
                        exc_info=True,
                    )
                    continue

                logger.info(
                    "Debounced analytics computed for project %s in %.2fs "
                    "(files: %d nodes, functions: %d nodes)",
                    project_id,
                    time.monotonic() - start,
                    result.file_analytics.node_count,
                    result.function_analytics.node_count,
                )
                if self._on_complete is not None:
                    try:
                        self._on_complete(result)
                    except Exception:
                        logger.warning(
                            "on_complete callback failed for project %s",
                            project_id,
                            exc_info=True,
                        )
