from fastapi import APIRouter, status

from authsession.api.v1.endpoints import auth
from authsession.core import responses

api_v1_router = APIRouter(prefix="/api/v1")


api_v1_router.include_router(
    auth.router,
    prefix="/auth",
    tags=["Auth"],
    responses={
        status.HTTP_500_INTERNAL_SERVER_ERROR: {
            "model": responses.InternalServerErrorResponse,
        },
    },
)
