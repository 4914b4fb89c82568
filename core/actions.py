"""Outbound action contract exposed to handler code.

The concrete transport lives outside this package. Implementations must
raise ActionRejected for refused calls (never silently do nothing) and
TransportUnavailable when the transport cannot be reached.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from core.models import Mention


class Permission(str, Enum):
    """Channel/space permissions understood by the permission collaborator."""
    READ = "Read"
    WRITE = "Write"
    REACT = "React"
    REDACT = "Redact"
    BAN = "Ban"
    MODIFY_BANNING = "ModifyBanning"
    PIN_MESSAGE = "PinMessage"
    ADD_REMOVE_CHANNELS = "AddRemoveChannels"
    MODIFY_SPACE_SETTINGS = "ModifySpaceSettings"


@dataclass(frozen=True)
class MessageOptions:
    reply_id: Optional[str] = None
    thread_id: Optional[str] = None
    mentions: Tuple[Mention, ...] = ()


@dataclass(frozen=True)
class SentMessage:
    """Result of an outbound call that created a new event."""
    event_id: str


class ActionClient:
    """
    Interface handlers use to cause outbound effects.
    """

    async def send_message(
        self, channel_id: str, text: str, opts: Optional[MessageOptions] = None
    ) -> SentMessage:
        """Send a message to a channel.

        Args:
            channel_id: Target channel
            text: Message body
            opts: Reply/thread/mention options

        Returns:
            The event id of the new message
        """
        raise NotImplementedError

    async def edit_message(self, channel_id: str, event_id: str, text: str) -> None:
        """Replace the text of a message the acting identity sent."""
        raise NotImplementedError

    async def send_reaction(
        self, channel_id: str, event_id: str, reaction: str
    ) -> SentMessage:
        """React to an event."""
        raise NotImplementedError

    async def remove_event(self, channel_id: str, event_id: str) -> None:
        """Delete an event the acting identity authored.

        Raises:
            ActionRejected: The event was authored by someone else
        """
        raise NotImplementedError

    async def admin_remove_event(self, channel_id: str, event_id: str) -> None:
        """Delete any event, given a verified Permission.REDACT grant.

        Raises:
            ActionRejected: The acting identity lacks the permission
        """
        raise NotImplementedError

    async def check_permission(
        self, channel_id: str, user_id: str, permission: Permission
    ) -> bool:
        raise NotImplementedError
