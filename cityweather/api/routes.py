"""Root API routers."""

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

health_router = APIRouter(tags=["system"])


@health_router.get("/health", summary="Service health probe")
async def healthcheck() -> dict[str, str]:
    """Return a simple heartbeat for orchestration layers."""

    return {"status": "ok"}


@health_router.get("/metrics", include_in_schema=False)
def metrics() -> Response:
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
