"""Data models for decoded protocol events.

Defines the closed set of event dataclasses and the decoder that turns a
decrypted envelope mapping into exactly one of them.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, Mapping, Optional, Tuple, Union

from core.errors import DecodeError


class EventCategory(str, Enum):
    """Dispatch category; handlers are registered per category."""
    MESSAGE = "message"
    SLASH_COMMAND = "slash_command"
    REACTION = "reaction"
    EDIT = "edit"
    REDACTION = "redaction"
    TIP = "tip"
    MEMBERSHIP_CHANGE = "membership_change"
    RAW_STREAM = "raw_stream"


class MembershipKind(str, Enum):
    JOIN = "join"
    LEAVE = "leave"


@dataclass(frozen=True)
class Mention:
    """A mentioned user. ``display_name`` is a presentation hint only."""
    user_id: str
    display_name: str = ""


@dataclass(frozen=True)
class BaseEvent:
    """Fields shared by every event.

    Attributes:
        user_id: Actor that produced the event
        space_id: Space the channel belongs to
        channel_id: Channel the event was posted in
        event_id: Unique id within the channel stream
        created_at: Creation time (UTC); None only on raw stream events
    """
    user_id: str
    space_id: str
    channel_id: str
    event_id: str
    created_at: Optional[datetime]

    category: ClassVar[EventCategory]


@dataclass(frozen=True)
class MessageEvent(BaseEvent):
    text: str
    is_mentioned: bool = False
    mentions: Tuple[Mention, ...] = ()
    reply_id: Optional[str] = None
    thread_id: Optional[str] = None

    category: ClassVar[EventCategory] = EventCategory.MESSAGE


@dataclass(frozen=True)
class SlashCommandEvent(BaseEvent):
    command: str
    args: Tuple[str, ...] = ()
    mentions: Tuple[Mention, ...] = ()
    reply_id: Optional[str] = None
    thread_id: Optional[str] = None

    category: ClassVar[EventCategory] = EventCategory.SLASH_COMMAND


@dataclass(frozen=True)
class ReactionEvent(BaseEvent):
    reaction: str
    target_event_id: str

    category: ClassVar[EventCategory] = EventCategory.REACTION


@dataclass(frozen=True)
class EditEvent(BaseEvent):
    target_event_id: str
    text: str
    is_mentioned: bool = False
    mentions: Tuple[Mention, ...] = ()
    reply_id: Optional[str] = None
    thread_id: Optional[str] = None

    category: ClassVar[EventCategory] = EventCategory.EDIT


@dataclass(frozen=True)
class RedactionEvent(BaseEvent):
    target_event_id: str

    category: ClassVar[EventCategory] = EventCategory.REDACTION


@dataclass(frozen=True)
class TipEvent(BaseEvent):
    """A tip sent on a message. ``amount`` is in the currency's smallest unit."""
    target_event_id: str
    sender_address: str
    receiver_address: str
    amount: int
    currency_address: str

    category: ClassVar[EventCategory] = EventCategory.TIP


@dataclass(frozen=True)
class MembershipChangeEvent(BaseEvent):
    kind: MembershipKind

    category: ClassVar[EventCategory] = EventCategory.MEMBERSHIP_CHANGE


@dataclass(frozen=True)
class RawStreamEvent(BaseEvent):
    """Catch-all for envelopes that could not be classified."""
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    category: ClassVar[EventCategory] = EventCategory.RAW_STREAM


Event = Union[
    MessageEvent,
    SlashCommandEvent,
    ReactionEvent,
    EditEvent,
    RedactionEvent,
    TipEvent,
    MembershipChangeEvent,
    RawStreamEvent,
]


def _require_str(envelope: Mapping[str, Any], *keys: str) -> str:
    for key in keys:
        value = envelope.get(key)
        if value is None:
            continue
        if not isinstance(value, str) or not value:
            raise DecodeError(f"field {key!r} must be a non-empty string")
        return value
    raise DecodeError(f"missing required field {keys[0]!r}")


def _optional_str(envelope: Mapping[str, Any], key: str) -> Optional[str]:
    value = envelope.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise DecodeError(f"field {key!r} must be a string")
    return value


def _text(envelope: Mapping[str, Any]) -> str:
    value = envelope.get("message", envelope.get("text"))
    if value is None:
        return ""
    if not isinstance(value, str):
        raise DecodeError("message text must be a string")
    return value


def parse_timestamp(value: Any) -> datetime:
    """Parse ``createdAt``: epoch milliseconds, ISO 8601 string or datetime."""
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, bool):
        raise DecodeError("createdAt must be a timestamp")
    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise DecodeError(f"createdAt out of range: {value!r}") from e
    if isinstance(value, str) and value:
        text = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError as e:
            raise DecodeError(f"createdAt is not ISO 8601: {value!r}") from e
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    raise DecodeError("missing required field 'createdAt'")


def _parse_mentions(envelope: Mapping[str, Any]) -> Tuple[Mention, ...]:
    raw = envelope.get("mentions") or []
    if not isinstance(raw, (list, tuple)):
        raise DecodeError("mentions must be a list")
    mentions = []
    for entry in raw:
        if not isinstance(entry, Mapping) or not isinstance(entry.get("userId"), str):
            raise DecodeError(f"invalid mention entry: {entry!r}")
        mentions.append(
            Mention(
                user_id=entry["userId"],
                display_name=str(entry.get("displayName") or ""),
            )
        )
    return tuple(mentions)


def _is_mentioned(
    envelope: Mapping[str, Any],
    mentions: Tuple[Mention, ...],
    bot_id: Optional[str],
) -> bool:
    flag = envelope.get("isMentioned")
    if flag is not None:
        return bool(flag)
    return bot_id is not None and any(m.user_id == bot_id for m in mentions)


def _parse_args(envelope: Mapping[str, Any]) -> Tuple[str, ...]:
    raw = envelope.get("args") or []
    if isinstance(raw, str):
        return tuple(raw.split())
    if not isinstance(raw, (list, tuple)) or not all(isinstance(a, str) for a in raw):
        raise DecodeError("args must be a list of strings")
    return tuple(raw)


def _parse_amount(value: Any) -> int:
    if isinstance(value, bool):
        raise DecodeError("tip amount must be an integer")
    if isinstance(value, str) and value.isdigit():
        return int(value)
    if isinstance(value, int) and value >= 0:
        return value
    raise DecodeError(f"tip amount must be a non-negative integer: {value!r}")


def base_fields(envelope: Mapping[str, Any]) -> Dict[str, Any]:
    """Extract the shared fields, raising DecodeError if any is missing."""
    return {
        "user_id": _require_str(envelope, "userId"),
        "space_id": _require_str(envelope, "spaceId"),
        "channel_id": _require_str(envelope, "channelId"),
        "event_id": _require_str(envelope, "eventId"),
        "created_at": parse_timestamp(envelope.get("createdAt")),
    }


def _parse_slash_command(
    envelope: Mapping[str, Any], base: Dict[str, Any]
) -> SlashCommandEvent:
    command = _require_str(envelope, "command").lstrip("/").lower()
    if not command:
        raise DecodeError("command must not be empty")
    return SlashCommandEvent(
        command=command,
        args=_parse_args(envelope),
        mentions=_parse_mentions(envelope),
        reply_id=_optional_str(envelope, "replyId"),
        thread_id=_optional_str(envelope, "threadId"),
        **base,
    )


def parse_event(envelope: Any, bot_id: Optional[str] = None) -> Event:
    """Decode an envelope mapping into exactly one event variant.

    A message-shaped envelope that carries a ``command`` field becomes a
    SlashCommandEvent and never a MessageEvent.

    Args:
        envelope: Decrypted envelope mapping
        bot_id: Bot identifier, used to derive ``is_mentioned``

    Returns:
        The decoded event

    Raises:
        DecodeError: The envelope is malformed or of an unknown type
    """
    if not isinstance(envelope, Mapping):
        raise DecodeError(f"envelope must be a mapping, got {type(envelope).__name__}")

    event_type = envelope.get("type")
    if not isinstance(event_type, str):
        raise DecodeError("envelope has no 'type' discriminant")

    base = base_fields(envelope)

    if event_type == "slash_command" or (
        event_type == "message" and envelope.get("command") is not None
    ):
        return _parse_slash_command(envelope, base)

    if event_type == "message":
        mentions = _parse_mentions(envelope)
        return MessageEvent(
            text=_text(envelope),
            is_mentioned=_is_mentioned(envelope, mentions, bot_id),
            mentions=mentions,
            reply_id=_optional_str(envelope, "replyId"),
            thread_id=_optional_str(envelope, "threadId"),
            **base,
        )

    if event_type == "reaction":
        return ReactionEvent(
            reaction=_require_str(envelope, "reaction"),
            target_event_id=_require_str(envelope, "targetEventId", "refEventId"),
            **base,
        )

    if event_type == "edit":
        mentions = _parse_mentions(envelope)
        return EditEvent(
            target_event_id=_require_str(envelope, "targetEventId", "refEventId"),
            text=_text(envelope),
            is_mentioned=_is_mentioned(envelope, mentions, bot_id),
            mentions=mentions,
            reply_id=_optional_str(envelope, "replyId"),
            thread_id=_optional_str(envelope, "threadId"),
            **base,
        )

    if event_type == "redaction":
        return RedactionEvent(
            target_event_id=_require_str(envelope, "targetEventId", "refEventId"),
            **base,
        )

    if event_type == "tip":
        return TipEvent(
            target_event_id=_require_str(envelope, "targetEventId", "messageId"),
            sender_address=_require_str(envelope, "senderAddress"),
            receiver_address=_require_str(envelope, "receiverAddress"),
            amount=_parse_amount(envelope.get("amount")),
            currency_address=_require_str(envelope, "currency", "currencyAddress"),
            **base,
        )

    if event_type in ("channel_join", "channel_leave"):
        kind = MembershipKind.JOIN if event_type == "channel_join" else MembershipKind.LEAVE
        return MembershipChangeEvent(kind=kind, **base)

    raise DecodeError(f"unrecognized envelope type {event_type!r}")


def raw_event(envelope: Any) -> RawStreamEvent:
    """Wrap an undecodable envelope, keeping whatever base fields it has."""
    data: Mapping[str, Any] = envelope if isinstance(envelope, Mapping) else {"value": envelope}

    def _field(key: str) -> str:
        value = data.get(key)
        return value if isinstance(value, str) else ""

    try:
        created_at: Optional[datetime] = parse_timestamp(data.get("createdAt"))
    except DecodeError:
        created_at = None

    return RawStreamEvent(
        user_id=_field("userId"),
        space_id=_field("spaceId"),
        channel_id=_field("channelId"),
        event_id=_field("eventId"),
        created_at=created_at,
        payload=dict(data),
    )
