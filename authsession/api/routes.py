from fastapi import APIRouter

from authsession.api.v1.deps.auth import ServicesDep
from authsession.api.v1.router import api_v1_router
from authsession.schemas import HealthCheckResponse

api_router = APIRouter()


@api_router.get(
    "/health",
    response_model=HealthCheckResponse,
    tags=["Health"],
    summary="Health Check",
)
async def health_check(services: ServicesDep):
    is_healthy = await services.store.health_check()
    return HealthCheckResponse(
        status="healthy" if is_healthy else "degraded",
        key_value_store=is_healthy,
    )


api_router.include_router(
    api_v1_router,
)
