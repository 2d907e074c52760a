from typing import Annotated

from pydantic import Field, SecretStr

from authsession.core.constants import FieldSizes
from authsession.schemas.base import BaseSchema


class User(BaseSchema):
    """
    User as returned by the ``UserLookup`` collaborator.

    Persistence of users lives outside this package.
    """

    id: int
    email: str
    hashed_password: str | None = None
    is_active: bool = True


class UserLogin(BaseSchema):
    """User login form"""

    email: Annotated[
        str,
        Field(
            min_length=1,
            max_length=FieldSizes.EMAIL,
        ),
    ]
    password: Annotated[
        SecretStr,
        Field(
            min_length=1,
            max_length=FieldSizes.PASSWORD,
        ),
    ]

