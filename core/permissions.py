"""Permission source collaborator backed by static grants from config."""
import logging
from typing import Any, Dict, Iterable, Mapping, Set

from core.actions import Permission

logger = logging.getLogger(__name__)

ANY_CHANNEL = "*"


class PermissionSource:
    """
    Source of truth for permission grants.
    """

    async def has_permission(
        self, channel_id: str, user_id: str, permission: Permission
    ) -> bool:
        raise NotImplementedError


class StaticPermissionSource(PermissionSource):
    """Grants keyed by channel id (or ``*`` for every channel), then user id.

    Example config::

        permissions:
          "*":
            bot-user-id: [Redact]
          channel-1:
            moderator-id: [Redact, Ban]
    """

    def __init__(self, grants: Mapping[str, Mapping[str, Iterable[Any]]]) -> None:
        self._grants: Dict[str, Dict[str, Set[Permission]]] = {}
        for channel_id, users in grants.items():
            for user_id, perms in (users or {}).items():
                for p in perms or []:
                    self.grant(str(channel_id), str(user_id), p)

    def grant(self, channel_id: str, user_id: str, permission: Any) -> None:
        try:
            perm = permission if isinstance(permission, Permission) else Permission(permission)
        except ValueError:
            logger.warning(
                "Ignoring unknown permission %r for user %s in channel %s",
                permission,
                user_id,
                channel_id,
            )
            return
        self._grants.setdefault(channel_id, {}).setdefault(user_id, set()).add(perm)

    async def has_permission(
        self, channel_id: str, user_id: str, permission: Permission
    ) -> bool:
        for key in (channel_id, ANY_CHANNEL):
            if permission in self._grants.get(key, {}).get(user_id, set()):
                return True
        return False
