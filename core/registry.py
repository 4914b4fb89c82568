"""Handler registration, grouped by event category.

Registration happens during bot setup. Once the registry is frozen
(the dispatcher freezes it on the first dispatch) it is read-only.
"""
import inspect
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from core.actions import ActionClient
from core.errors import RegistryFrozenError
from core.models import Event, EventCategory

logger = logging.getLogger(__name__)

Handler = Callable[[ActionClient, Any], Awaitable[None]]


class FeatureHandler:
    """
    Interface for feature modules bound to one event category.
    """

    category: EventCategory

    async def handles(self, event: Event) -> bool:  # pylint: disable=unused-argument
        """Check if this feature should process the given event.

        Args:
            event: The classified event

        Returns:
            True if this feature should process the event
        """
        return True

    async def handle(self, client: ActionClient, event: Event) -> None:
        """Process the given event.

        Args:
            client: Outbound action client
            event: The classified event
        """
        raise NotImplementedError


@dataclass(frozen=True)
class RegistrationHandle:
    """Identifies one registration.

    Attributes:
        category: Category the handler listens to
        index: Process-wide registration counter value
        name: Name used in logs and failure reports
    """
    category: EventCategory
    index: int
    name: str


@dataclass(frozen=True)
class _Registration:
    handle: RegistrationHandle
    callback: Handler


def _handler_name(handler: Any) -> str:
    return getattr(handler, "__qualname__", None) or handler.__class__.__name__


def _is_async_callable(handler: Any) -> bool:
    if inspect.iscoroutinefunction(handler):
        return True
    call = getattr(handler, "__call__", None)
    return call is not None and inspect.iscoroutinefunction(call)


class HandlerRegistry:
    """Holds an ordered list of handlers per event category."""

    def __init__(self) -> None:
        self._handlers: Dict[EventCategory, List[_Registration]] = {}
        self._counter = itertools.count()
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        """End the setup phase; further registration raises."""
        if not self._frozen:
            logger.debug("Handler registry frozen with %s registrations", len(self))
        self._frozen = True

    def _check_mutable(self) -> None:
        if self._frozen:
            raise RegistryFrozenError("handler registry is frozen; register during setup")

    def register(
        self,
        category: EventCategory,
        handler: Handler,
        name: Optional[str] = None,
    ) -> RegistrationHandle:
        """Register an async handler for a category.

        Args:
            category: Event category to listen to
            handler: Async callable taking ``(client, event)``
            name: Name for logs; defaults to the handler's qualified name

        Returns:
            Handle identifying the registration
        """
        self._check_mutable()
        category = EventCategory(category)
        if not _is_async_callable(handler):
            raise TypeError(f"handler {handler!r} must be an async callable")

        handle = RegistrationHandle(
            category=category,
            index=next(self._counter),
            name=name or _handler_name(handler),
        )
        self._handlers.setdefault(category, []).append(_Registration(handle, handler))
        logger.debug("Registered handler %s for %s", handle.name, category.value)
        return handle

    def register_feature(self, feature: FeatureHandler) -> RegistrationHandle:
        """Register a FeatureHandler; ``handle`` only runs when ``handles`` agrees."""

        async def _run(client: ActionClient, event: Event) -> None:
            if await feature.handles(event):
                await feature.handle(client, event)

        return self.register(feature.category, _run, name=feature.__class__.__name__)

    def unregister(self, handle: RegistrationHandle) -> bool:
        """Remove a registration made during setup. Returns False if unknown."""
        self._check_mutable()
        regs = self._handlers.get(handle.category, [])
        for i, reg in enumerate(regs):
            if reg.handle == handle:
                del regs[i]
                return True
        return False

    def handlers_for(self, category: EventCategory) -> Tuple[Handler, ...]:
        """Return handlers for a category in registration order."""
        return tuple(r.callback for r in self._handlers.get(category, []))

    def registrations_for(self, category: EventCategory) -> Tuple[RegistrationHandle, ...]:
        return tuple(r.handle for r in self._handlers.get(category, []))

    def categories(self) -> List[EventCategory]:
        """Categories with at least one registered handler."""
        return [c for c, regs in self._handlers.items() if regs]

    def __len__(self) -> int:
        return sum(len(regs) for regs in self._handlers.values())
