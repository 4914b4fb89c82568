"""Envelope classification: self-filter, decode, raw fallback."""
import logging
from typing import Any, Mapping, Optional

from core.errors import DecodeError
from core.identity import BotIdentity
from core.models import Event, parse_event, raw_event

logger = logging.getLogger(__name__)


class EventRouter:
    """Turns decoded envelopes into events, or drops them.

    Classification is total: anything that is not a recognizable envelope
    becomes a RawStreamEvent. Returns None only for the bot's own events.
    """

    def __init__(self, identity: BotIdentity) -> None:
        self.identity = identity

    def classify(self, envelope: Any) -> Optional[Event]:
        if isinstance(envelope, Mapping) and self.identity.is_self(envelope.get("userId")):
            logger.debug(
                "Dropping self-originated event_id=%s type=%s",
                envelope.get("eventId"),
                envelope.get("type"),
            )
            return None

        try:
            return parse_event(envelope, bot_id=self.identity.bot_id)
        except DecodeError as e:
            logger.debug("Envelope not decodable, classifying as raw: %s", e)
            return raw_event(envelope)
