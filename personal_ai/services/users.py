"""Opaque user identities. No authentication is performed."""
from __future__ import annotations

import threading
import uuid
from typing import Any, Dict, Optional

from personal_ai.core.models import UserIdentity


class UserService:
    def __init__(self) -> None:
        self._users: Dict[str, UserIdentity] = {}
        self._lock = threading.Lock()

    def create_anonymous_user(self) -> UserIdentity:
        user = UserIdentity(id=str(uuid.uuid4()))
        with self._lock:
            self._users[user.id] = user
        return user

    def get_user(self, user_id: str) -> Optional[UserIdentity]:
        return self._users.get(user_id)

    def update_preferences(self, user_id: str, preferences: Dict[str, Any]) -> Optional[UserIdentity]:
        with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return None
            user.preferences.update(preferences)
        return user
