"""Error taxonomy for the event-dispatch core.

None of these errors is meant to terminate the hosting process: the
failure boundary is a single inbound event.
"""
from typing import Optional


class BotCoreError(Exception):
    """Base class for all errors raised by the core."""


class DecodeError(BotCoreError):
    """An envelope was malformed or carried an unrecognized discriminant."""


class HandlerError(BotCoreError):
    """A registered handler raised while processing an event.

    The original exception is attached as ``__cause__``.
    """

    def __init__(self, handler_index: int, handler_name: str, message: str) -> None:
        super().__init__(f"handler #{handler_index} ({handler_name}) failed: {message}")
        self.handler_index = handler_index
        self.handler_name = handler_name


class ActionRejected(BotCoreError):
    """An outbound action was refused, e.g. for a missing permission."""

    def __init__(self, action: str, reason: str) -> None:
        super().__init__(f"{action} rejected: {reason}")
        self.action = action
        self.reason = reason


class TransportUnavailable(BotCoreError):
    """The outbound transport could not be reached. Never retried here."""

    def __init__(self, action: str, detail: Optional[str] = None) -> None:
        msg = f"transport unavailable for {action}"
        if detail:
            msg = f"{msg}: {detail}"
        super().__init__(msg)
        self.action = action


class RegistryFrozenError(BotCoreError):
    """Registration was attempted after the setup phase ended."""
