"""
Histogram Service - cache-first, admission-controlled histogram requests

handle(request):
1. Fingerprint the request and look in the cache -> hit returns cached bytes
2. Count matching differences
3. Admission: count * average_alignment_size + base length vs available memory
4. Submit a RenderTask unless one with the same task key is in flight
5. Acknowledge with the task key so the caller can poll

Never awaits the render itself.

Known weak spots (tolerated):
- exists() and submit() are not atomic; two concurrent misses can both
  submit. Worst case is duplicate computation of identical bytes.
- The task key ignores the witness filter, so a differently filtered
  request for the same (set, base) joins the in-flight task instead of
  starting its own; its own render happens on a later request.
"""
import logging
from typing import Optional

from models.domain.histogram import (
    CachedHistogram,
    HistogramContext,
    HistogramRequest,
    HistogramResponse,
    RenderingAck,
)
from repositories.alignment_repository import AlignmentConstraint
from services.exceptions import ClientInputError, NotFoundError, ResourceExhaustionError
from services.render_task import RenderTask
from services.resources import MemoryProbe, available_memory, estimate_render_bytes
from utils.fingerprint import fingerprint, task_key

logger = logging.getLogger(__name__)


class HistogramService:
    """
    Orchestrates histogram requests

    Dependencies are passed in; the service holds no per-request state.
    """

    def __init__(
        self,
        differences,
        witnesses,
        comparison_sets,
        cache,
        tasks,
        average_alignment_size: int,
        memory_probe: Optional[MemoryProbe] = None,
    ):
        self.differences = differences
        self.witnesses = witnesses
        self.comparison_sets = comparison_sets
        self.cache = cache
        self.tasks = tasks
        self.average_alignment_size = average_alignment_size
        self.memory_probe = memory_probe or available_memory

    async def resolve(self, request: HistogramRequest) -> HistogramContext:
        """
        Load the comparison set and base witness a request refers to.

        Raises:
            NotFoundError: unknown set or witness
            ClientInputError: base witness is not part of the set
        """
        comparison_set = await self.comparison_sets.get_by_id(request.set_id)
        if comparison_set is None:
            raise NotFoundError(f"Comparison set {request.set_id} does not exist")

        if not comparison_set.contains(request.base_id):
            raise ClientInputError(
                f"Witness {request.base_id} is not a member of comparison set {request.set_id}"
            )

        base = await self.witnesses.get_by_id(request.base_id)
        if base is None:
            raise NotFoundError(f"Witness {request.base_id} does not exist")

        return HistogramContext(request=request, base=base)

    async def handle(self, request: HistogramRequest) -> HistogramResponse:
        """
        Answer a histogram request without waiting for a render.

        Returns:
            CachedHistogram on a cache hit, RenderingAck otherwise

        Raises:
            NotFoundError, ClientInputError: see resolve()
            ResourceExhaustionError: rendering would likely exhaust memory
        """
        context = await self.resolve(request)
        key = fingerprint(request)

        logger.info(f"Is histogram cached: set={request.set_id} base={request.base_id} "
                    f"docs={list(request.witness_ids)} key={key}")
        cached = await self.cache.get(request.set_id, key)
        if cached is not None:
            logger.info("Retrieving cached histogram")
            return CachedHistogram(body=cached)

        count = await self.differences.count(AlignmentConstraint.differences_for(request))
        self.check_admission(context, count)

        task_id = task_key(request.set_id, request.base_id)
        if not self.tasks.exists(task_id):
            task = RenderTask(task_id, context, key, self.differences, self.cache)
            self.tasks.submit(task)
        else:
            logger.info(f"Histogram task {task_id} already in flight")

        return RenderingAck(task_id=task_id)

    def check_admission(self, context: HistogramContext, difference_count: int):
        """
        Reject renders whose estimated memory use exceeds what is available.

        Raises:
            ResourceExhaustionError
        """
        estimated = estimate_render_bytes(
            difference_count, self.average_alignment_size, context.base.text_length
        )
        available = self.memory_probe()
        logger.info(f"HISTOGRAM [{estimated}] ESTIMATED USAGE")
        logger.info(f"HISTOGRAM [{available}] ESTIMATED FREE")
        if estimated > available:
            logger.warning(
                f"Rejecting histogram set={context.set_id} base={context.base.id}: "
                f"needs ~{estimated} bytes, {available} available"
            )
            raise ResourceExhaustionError(estimated, available)

    async def invalidate(self, set_id: int) -> int:
        """Drop cached histograms of a comparison set"""
        comparison_set = await self.comparison_sets.get_by_id(set_id)
        if comparison_set is None:
            raise NotFoundError(f"Comparison set {set_id} does not exist")
        return await self.cache.invalidate(set_id)
