"""
Histogram render task

Self-contained unit of work submitted to the TaskManager. Holds the
immutable request context and the stores it needs; reports its outcome
only through its TaskStatus.

Body:
1. List differences on the base witness (sorted by start, end)
2. Bin them off the event loop
3. Serialize to a temp file (released on every exit path)
4. Write the bytes to the cache under (set_id, fingerprint)

Outcomes:
- success                         -> FINISHED, histogram cached
- OSError / TaskIOError           -> FAILED(message), nothing cached
- cancellation                    -> CANCELED, nothing cached
- anything else                   -> logged with traceback, FAILED(message)

run() never raises into the worker that hosts it.
"""
import asyncio
import logging
import tempfile
from typing import Optional

from models.domain.histogram import DifferenceRecord, HistogramContext, HistogramResult
from models.domain.task import TaskState, TaskStatus
from repositories.alignment_repository import AlignmentConstraint
from services.binning import render_histogram
from services.exceptions import TaskCanceledError, TaskIOError

logger = logging.getLogger(__name__)


class RenderTask:
    """Renders and caches one histogram"""

    def __init__(self, task_id: str, context: HistogramContext, fingerprint: int, differences, cache):
        self.id = task_id
        self.context = context
        self.fingerprint = fingerprint
        self.differences = differences
        self.cache = cache
        self.status = TaskStatus.pending()
        self.result: Optional[HistogramResult] = None

    def __repr__(self):
        return f"RenderTask({self.id}, {self.status.state.value})"

    # =========================================================================
    # LIFECYCLE CALLBACKS
    # =========================================================================

    @property
    def state(self) -> TaskState:
        return self.status.state

    def begin(self):
        self.status = self.status.transition(TaskState.RUNNING)

    def finish(self):
        self.status = self.status.transition(TaskState.FINISHED)

    def fail(self, message: str):
        self.status = self.status.transition(TaskState.FAILED, message)

    def cancel(self):
        """Mark canceled; no-op once the task has ended"""
        if not self.status.is_terminal:
            self.status = self.status.transition(TaskState.CANCELED)

    # =========================================================================
    # BODY
    # =========================================================================

    async def run(self) -> TaskStatus:
        """
        Execute the render and record the terminal state.

        Returns:
            Terminal TaskStatus
        """
        if self.status.is_terminal:
            logger.info(f"[{self.id}] Skipping, already {self.state.value}")
            return self.status
        if self.state is TaskState.PENDING:
            self.begin()

        logger.info(f"[{self.id}] Begin task")
        try:
            self.result = await self._render()
            self.finish()
            logger.info(f"[{self.id}] Task COMPLETE")
        except (asyncio.CancelledError, TaskCanceledError):
            logger.info(f"[{self.id}] Task was canceled")
            self.cancel()
        except (OSError, TaskIOError) as e:
            logger.error(f"[{self.id}] Task failed: {e}")
            self.fail(f"{type(e).__name__}: {e}")
        except Exception as e:
            logger.error(f"[{self.id}] Task failed", exc_info=True)
            self.fail(f"{type(e).__name__}: {e}")

        return self.status

    async def _render(self) -> HistogramResult:
        request = self.context.request
        base = self.context.base

        differences = await self.differences.list(AlignmentConstraint.differences_for(request))
        differences = sorted(differences, key=DifferenceRecord.sort_key)

        result = await asyncio.to_thread(render_histogram, base.name, base.text_length, differences)

        with tempfile.TemporaryFile(prefix="histo", suffix="data") as tmp:
            tmp.write(result.to_bytes())
            tmp.seek(0)
            body = tmp.read()

            logger.info(f"[{self.id}] Cache histogram set={request.set_id} key={self.fingerprint}")
            await self.cache.put(request.set_id, self.fingerprint, body)

        return result
