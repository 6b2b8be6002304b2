"""
Histogram API router

Endpoints:
- GET    /histogram/{set_id}?base={id}&docs={id,id,...}   cached histogram or RENDERING ack
- DELETE /histogram/{set_id}/cache                       drop cached histograms of a set
- GET    /task/{task_id}/status                          poll a render task
- POST   /task/{task_id}/cancel                          cancel a render task
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from models.domain.histogram import CachedHistogram, HistogramRequest
from services.exceptions import ClientInputError, NotFoundError, ResourceExhaustionError
from services.histogram_service import HistogramService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["histogram"])

HTTP_INSUFFICIENT_STORAGE = 507

# Ids are int64 in the collation store
MAX_ID = 2 ** 63 - 1

# Globals (initialized on startup)
histogram_service: Optional[HistogramService] = None


def init_services(service: HistogramService):
    """Install the service instance used by the endpoints"""
    global histogram_service
    histogram_service = service


async def get_histogram_service() -> HistogramService:
    if histogram_service is None:
        raise HTTPException(status_code=503, detail="Histogram service not initialized")
    return histogram_service


def parse_id(raw: str) -> Optional[int]:
    """Strict positive int64 id: ASCII digits only, no sign or whitespace"""
    if not (raw.isascii() and raw.isdigit()):
        return None
    value = int(raw)
    if value <= 0 or value > MAX_ID:
        return None
    return value


def parse_base(raw: Optional[str]) -> int:
    """Required positive base witness id"""
    if raw is None:
        raise ClientInputError("Missing base parameter")
    base_id = parse_id(raw)
    if base_id is None:
        raise ClientInputError("Invalid base witness id")
    return base_id


def parse_docs(raw: Optional[str]) -> List[int]:
    """
    Optional comma separated list of positive witness ids

    Trailing empty segments are dropped ("3,4," is [3, 4]); any other
    empty segment is invalid.
    """
    if raw is None:
        return []
    parts = raw.split(",")
    while len(parts) > 1 and parts[-1] == "":
        parts.pop()
    ids = []
    for part in parts:
        witness_id = parse_id(part)
        if witness_id is None:
            raise ClientInputError("Invalid document id specified")
        ids.append(witness_id)
    return ids


@router.get("/histogram/{set_id}")
async def get_histogram(
    set_id: int = Path(gt=0, le=MAX_ID),
    base: Optional[str] = None,
    docs: Optional[str] = None,
    service: HistogramService = Depends(get_histogram_service),
):
    """
    Get the difference histogram of a base witness

    Query params:
        base: Base witness id (required)
        docs: Comma separated witness ids to include (default: all)

    Returns:
        Cached histogram JSON, or {"status": "RENDERING", "taskId": ...}
        while it is being rendered. 507 when the server cannot afford the render.
    """
    try:
        request = HistogramRequest.create(set_id, parse_base(base), parse_docs(docs))
        response = await service.handle(request)
    except ClientInputError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ResourceExhaustionError as e:
        return PlainTextResponse(str(e), status_code=HTTP_INSUFFICIENT_STORAGE)

    if isinstance(response, CachedHistogram):
        return Response(content=response.body, media_type="application/json")
    return JSONResponse(response.to_dict())


@router.delete("/histogram/{set_id}/cache")
async def delete_histogram_cache(
    set_id: int = Path(gt=0, le=MAX_ID),
    service: HistogramService = Depends(get_histogram_service),
):
    """Drop every cached histogram of a comparison set"""
    try:
        deleted = await service.invalidate(set_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"setId": set_id, "deleted": deleted}


@router.get("/task/{task_id}/status")
async def get_task_status(
    task_id: str,
    service: HistogramService = Depends(get_histogram_service),
):
    """Poll a render task"""
    status = service.tasks.status(task_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return {"taskId": task_id, **status.to_dict()}


@router.post("/task/{task_id}/cancel")
async def cancel_task(
    task_id: str,
    service: HistogramService = Depends(get_histogram_service),
):
    """Request cancellation of a render task"""
    status = service.tasks.cancel(task_id)
    if status is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    logger.info(f"Cancel requested for {task_id}: {status.state.value}")
    return {"taskId": task_id, **status.to_dict()}
