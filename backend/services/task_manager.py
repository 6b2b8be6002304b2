"""
In-process background task manager

Runs render tasks on a small pool of asyncio worker coroutines and keeps
a registry of tasks queryable by id for status polling.

- submit():  register a PENDING task and queue it
- exists():  True while a task with that id is in flight (not terminal)
- get():     task by id, including terminal ones until retention expires
- cancel():  PENDING -> CANCELED at once; RUNNING tasks get their asyncio task canceled

Each task runs in its own asyncio.Task so it can be canceled without
stopping the worker. Terminal tasks stay in the registry for
retention_seconds and are purged lazily on access.
"""
import asyncio
import logging
import time
from typing import Dict, List, Optional

from models.domain.task import TaskState, TaskStatus

logger = logging.getLogger(__name__)


class TaskManager:
    """Worker pool + task registry"""

    def __init__(self, workers: int = 2, retention_seconds: int = 600):
        self.worker_count = max(1, workers)
        self.retention_seconds = retention_seconds
        self.queue: asyncio.Queue = asyncio.Queue()
        self.tasks: Dict[str, object] = {}
        self.running = False
        self.jobs_processed = 0
        self.jobs_failed = 0
        self._ended: Dict[str, float] = {}
        self._active: Dict[str, asyncio.Task] = {}
        self._workers: List[asyncio.Task] = []

    # =========================================================================
    # WORKER POOL
    # =========================================================================

    async def start(self):
        """Spawn the worker coroutines"""
        if self.running:
            return
        self.running = True
        for i in range(self.worker_count):
            name = f"histogram-worker-{i}"
            self._workers.append(asyncio.create_task(self._worker_loop(name), name=name))
        logger.info(f"[task-manager] Started {self.worker_count} workers")

    async def stop(self):
        """Cancel running tasks and workers"""
        self.running = False
        runners = list(self._active.values())
        for runner in runners:
            runner.cancel()
        await asyncio.gather(*runners, return_exceptions=True)

        for worker in self._workers:
            worker.cancel()
        await asyncio.gather(*self._workers, return_exceptions=True)
        self._workers = []

        # anything still queued or never started ends as canceled
        for task in self.tasks.values():
            task.cancel()
        logger.info(
            f"[task-manager] Shutting down. "
            f"Processed: {self.jobs_processed}, Failed: {self.jobs_failed}"
        )

    async def join(self):
        """Wait until every queued task has been handled"""
        await self.queue.join()

    async def _worker_loop(self, worker_name: str):
        logger.info(f"[{worker_name}] Started")

        while self.running:
            try:
                task = await self.queue.get()
            except asyncio.CancelledError:
                break

            try:
                if task.status.is_terminal:
                    logger.info(f"[{worker_name}] Skipping {task.id} ({task.status.state.value})")
                    continue

                task.begin()
                runner = asyncio.create_task(task.run(), name=task.id)
                self._active[task.id] = runner
                try:
                    await asyncio.wait({runner})
                finally:
                    self._active.pop(task.id, None)

                if runner.cancelled():
                    # canceled before the task body got to run
                    task.cancel()

                if task.status.state is TaskState.FAILED:
                    self.jobs_failed += 1
                else:
                    self.jobs_processed += 1

            except asyncio.CancelledError:
                logger.info(f"[{worker_name}] Received cancellation signal")
                break
            except Exception as e:
                self.jobs_failed += 1
                logger.error(f"[{worker_name}] Task {task.id} errored: {e}", exc_info=True)
            finally:
                if task.status.is_terminal and self.tasks.get(task.id) is task:
                    self._ended[task.id] = time.monotonic()
                self.queue.task_done()

        logger.info(f"[{worker_name}] Stopped")

    # =========================================================================
    # REGISTRY
    # =========================================================================

    def submit(self, task):
        """
        Register and queue a task.

        A terminal task with the same id is replaced; callers should check
        exists() first to avoid queueing a duplicate of an in-flight task.
        """
        self._purge_expired()
        self.tasks[task.id] = task
        self._ended.pop(task.id, None)
        self.queue.put_nowait(task)
        logger.info(f"[task-manager] Submitted {task.id}")

    def exists(self, task_id: str) -> bool:
        """True while a task with this id is pending or running"""
        task = self.get(task_id)
        return task is not None and not task.status.is_terminal

    def get(self, task_id: str):
        self._purge_expired()
        return self.tasks.get(task_id)

    def status(self, task_id: str) -> Optional[TaskStatus]:
        task = self.get(task_id)
        return task.status if task else None

    def cancel(self, task_id: str) -> Optional[TaskStatus]:
        """
        Request cancellation.

        Returns:
            Status after the request, or None when the task is unknown
        """
        task = self.get(task_id)
        if task is None:
            return None

        runner = self._active.get(task_id)
        if runner is not None:
            logger.info(f"[task-manager] Canceling running task {task_id}")
            runner.cancel()
        elif not task.status.is_terminal:
            logger.info(f"[task-manager] Canceling pending task {task_id}")
            task.cancel()
            self._ended[task_id] = time.monotonic()
        return task.status

    def _purge_expired(self):
        now = time.monotonic()
        expired = [tid for tid, ended in self._ended.items() if now - ended >= self.retention_seconds]
        for tid in expired:
            self._ended.pop(tid, None)
            self.tasks.pop(tid, None)
