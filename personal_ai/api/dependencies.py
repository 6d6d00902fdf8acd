"""Request-scoped dependencies shared by the HTTP routers."""
from __future__ import annotations

from typing import Optional

from fastapi import Depends, Header

from personal_ai.core.logging import logger
from personal_ai.runtime import get_user_service
from personal_ai.services.users import UserService


def get_user_id(
    x_user_id: Optional[str] = Header(default=None),
    users: UserService = Depends(get_user_service),
) -> str:
    """Caller identity from ``x-user-id``; an anonymous user is minted when absent."""
    if x_user_id:
        return x_user_id
    user = users.create_anonymous_user()
    logger.info(f"Created new anonymous user: {user.id}")
    return user.id
