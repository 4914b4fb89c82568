"""In-process implementation of the ActionClient contract.

Used for local runs and tests in place of the real protocol transport:
every outbound call is logged and recorded instead of being sent over
the network. Ownership and permission rules are enforced the same way a
real transport enforces them:

1. ``remove_event`` and ``edit_message`` only accept events this client
   authored.
2. ``admin_remove_event`` requires a Permission.REDACT grant for the
   acting identity, verified through the PermissionSource.
3. While ``online`` is False, every call raises TransportUnavailable.
   Nothing is retried.
"""
import itertools
import logging
from dataclasses import dataclass
from typing import List, Optional, Set

import trio

from core.actions import ActionClient, MessageOptions, Permission, SentMessage
from core.errors import ActionRejected, TransportUnavailable
from core.identity import BotIdentity
from core.permissions import PermissionSource, StaticPermissionSource

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OutboundAction:
    """A recorded outbound call.

    Attributes:
        action: Name of the ActionClient method
        channel_id: Channel the action targeted
        event_id: Event created or targeted by the action
        text: Message text, for send/edit
        reaction: Reaction, for send_reaction
        opts: Message options, for send_message
    """
    action: str
    channel_id: str
    event_id: str
    text: Optional[str] = None
    reaction: Optional[str] = None
    opts: Optional[MessageOptions] = None


class LocalActionClient(ActionClient):
    """
    ActionClient that records actions in memory.
    """

    def __init__(
        self,
        identity: BotIdentity,
        permissions: Optional[PermissionSource] = None,
    ) -> None:
        self.identity = identity
        self.permissions = permissions or StaticPermissionSource({})
        self.online = True
        self.actions: List[OutboundAction] = []
        self._authored: Set[str] = set()
        self._removed: Set[str] = set()
        self._ids = itertools.count(1)

    def _new_event_id(self) -> str:
        return f"{self.identity.bot_id}:{next(self._ids)}"

    async def _enter(self, action: str) -> None:
        await trio.lowlevel.checkpoint()
        if not self.online:
            raise TransportUnavailable(action, "local client is offline")

    def _record(self, entry: OutboundAction) -> None:
        self.actions.append(entry)
        logger.info(
            "%s channel_id=%s event_id=%s",
            entry.action,
            entry.channel_id,
            entry.event_id,
        )

    def actions_of(self, action: str) -> List[OutboundAction]:
        """Return the recorded actions with the given method name."""
        return [a for a in self.actions if a.action == action]

    async def send_message(
        self, channel_id: str, text: str, opts: Optional[MessageOptions] = None
    ) -> SentMessage:
        await self._enter("send_message")
        event_id = self._new_event_id()
        self._authored.add(event_id)
        self._record(
            OutboundAction("send_message", channel_id, event_id, text=text, opts=opts)
        )
        return SentMessage(event_id=event_id)

    async def edit_message(self, channel_id: str, event_id: str, text: str) -> None:
        await self._enter("edit_message")
        if event_id not in self._authored:
            raise ActionRejected(
                "edit_message", f"event {event_id} was not authored by {self.identity.bot_id}"
            )
        if event_id in self._removed:
            raise ActionRejected("edit_message", f"event {event_id} was removed")
        self._record(OutboundAction("edit_message", channel_id, event_id, text=text))

    async def send_reaction(
        self, channel_id: str, event_id: str, reaction: str
    ) -> SentMessage:
        await self._enter("send_reaction")
        reaction_id = self._new_event_id()
        self._authored.add(reaction_id)
        self._record(
            OutboundAction("send_reaction", channel_id, event_id, reaction=reaction)
        )
        return SentMessage(event_id=reaction_id)

    async def remove_event(self, channel_id: str, event_id: str) -> None:
        await self._enter("remove_event")
        if event_id not in self._authored:
            raise ActionRejected(
                "remove_event", f"event {event_id} was not authored by {self.identity.bot_id}"
            )
        self._remove("remove_event", channel_id, event_id)

    async def admin_remove_event(self, channel_id: str, event_id: str) -> None:
        await self._enter("admin_remove_event")
        allowed = await self.permissions.has_permission(
            channel_id, self.identity.bot_id, Permission.REDACT
        )
        if not allowed:
            raise ActionRejected(
                "admin_remove_event",
                f"{self.identity.bot_id} lacks {Permission.REDACT.value} in {channel_id}",
            )
        self._remove("admin_remove_event", channel_id, event_id)

    def _remove(self, action: str, channel_id: str, event_id: str) -> None:
        if event_id in self._removed:
            raise ActionRejected(action, f"event {event_id} already removed")
        self._removed.add(event_id)
        self._record(OutboundAction(action, channel_id, event_id))

    async def check_permission(
        self, channel_id: str, user_id: str, permission: Permission
    ) -> bool:
        await self._enter("check_permission")
        return await self.permissions.has_permission(channel_id, user_id, permission)
