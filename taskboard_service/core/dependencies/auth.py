"""Caller identity dependency.

Authentication happens upstream (API gateway); the authenticated user id
arrives in the ``X-User-Id`` header.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Header

from taskboard_service.core.exceptions import UnauthorizedException
from taskboard_service.infra.logging import set_log_context


async def get_current_user_id(
    x_user_id: Annotated[str | None, Header(max_length=64)] = None,
) -> str:
    """Return the authenticated user id.

    Raises:
        UnauthorizedException: If the header is missing or blank.
    """
    if x_user_id is None or not x_user_id.strip():
        raise UnauthorizedException(
            detail="Missing X-User-Id header",
            type="missing-user-id",
        )
    user_id = x_user_id.strip()
    set_log_context(user_id=user_id)
    return user_id


CurrentUserIdDep = Annotated[str, Depends(get_current_user_id)]
