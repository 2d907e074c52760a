from typing import Protocol, runtime_checkable

from authsession.schemas.user import User


@runtime_checkable
class UserLookup(Protocol):
    """
    Read access to users, provided by the surrounding application.

    Returning None means the user does not exist; raising means the lookup
    itself failed.
    """

    async def first_by_id(self, user_id: int) -> User | None: ...

    async def first_by_email(self, email: str) -> User | None: ...
