"""Event dispatching: fan an event out to every handler of its category.

All handlers registered for an event's category are started together in
a trio nursery and awaited as a group. Errors in individual handlers are
isolated, logged and reported back in the DispatchResult.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import trio

from core.actions import ActionClient
from core.errors import HandlerError
from core.models import Event
from core.registry import Handler, HandlerRegistry
from core.router import EventRouter

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HandlerFailure:
    """A failed handler invocation.

    Attributes:
        handler_index: Position of the handler in its category's list
        name: Registration name of the handler
        error: HandlerError wrapping the original exception
    """
    handler_index: int
    name: str
    error: HandlerError


@dataclass
class DispatchResult:
    invoked: int = 0
    failures: List[HandlerFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def failed_indices(self) -> List[int]:
        return [f.handler_index for f in self.failures]

    def raise_for_failures(self) -> None:
        """Raise the first HandlerError, if any handler failed."""
        if self.failures:
            raise self.failures[0].error


class Dispatcher:
    """Routes classified events to registered handlers.

    The registry is frozen on the first dispatch; registration belongs to
    the setup phase.
    """
    def __init__(
        self,
        registry: HandlerRegistry,
        client: ActionClient,
        router: Optional[EventRouter] = None,
        handler_timeout: Optional[float] = None,
    ) -> None:
        self.registry = registry
        self.client = client
        self.router = router
        self.handler_timeout = handler_timeout

    async def dispatch(self, event: Event) -> DispatchResult:
        """Invoke every handler registered for the event's category.

        Args:
            event: Classified event

        Returns:
            Number of handlers invoked and the failures among them
        """
        self.registry.freeze()
        names = [h.name for h in self.registry.registrations_for(event.category)]
        handlers = self.registry.handlers_for(event.category)
        result = DispatchResult(invoked=len(handlers))
        if not handlers:
            logger.debug("No handlers for %s event_id=%s", event.category.value, event.event_id)
            return result

        async with trio.open_nursery() as nursery:
            for index, handler in enumerate(handlers):
                nursery.start_soon(self._invoke, index, names[index], handler, event, result)

        result.failures.sort(key=lambda f: f.handler_index)
        return result

    async def _invoke(
        self,
        index: int,
        name: str,
        handler: Handler,
        event: Event,
        result: DispatchResult,
    ) -> None:
        try:
            if self.handler_timeout is None:
                await handler(self.client, event)
            else:
                with trio.fail_after(self.handler_timeout):
                    await handler(self.client, event)
        except Exception as e:  # pylint: disable=broad-exception-caught
            # Intentionally catch all exceptions so one handler cannot
            # cancel its siblings or stop future events. trio.Cancelled is
            # a BaseException and still propagates on shutdown.
            error = HandlerError(index, name, f"{type(e).__name__}: {e}")
            error.__cause__ = e
            logger.exception(
                "Error in handler %s for %s event_id=%s",
                name,
                event.category.value,
                event.event_id,
            )
            result.failures.append(HandlerFailure(handler_index=index, name=name, error=error))

    async def dispatch_envelope(self, envelope: Any) -> Optional[DispatchResult]:
        """Classify an envelope and dispatch it.

        Returns:
            The dispatch result, or None when the router dropped the envelope
        """
        if self.router is None:
            raise RuntimeError("dispatch_envelope requires an EventRouter")
        event = self.router.classify(envelope)
        if event is None:
            return None
        result = await self.dispatch(event)
        if result.failures:
            logger.warning(
                "%s of %s handlers failed for %s event_id=%s",
                len(result.failures),
                result.invoked,
                event.category.value,
                event.event_id,
            )
        return result
