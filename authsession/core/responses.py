from pydantic import BaseModel


class MessageResponse(BaseModel):
    detail: str


class ForbiddenResponse(BaseModel):
    detail: str = "CSRF token validation failed."


class InternalServerErrorResponse(BaseModel):
    detail: str = "Session backend unavailable"


class TooManyRequestsResponse(BaseModel):
    detail: str = "Too many attempts. Please try again in 60 seconds."


class UnauthorizedResponse(BaseModel):
    detail: str = "Not authenticated"
