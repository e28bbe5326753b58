"""
Single-writer event bus.

One inbound event fans out to several independent consumers (state
machine, transcript, function calls, level monitor). Handlers run in
registration order and each completes before the next one starts.
"""

import inspect
import logging
from typing import Any, Awaitable, Callable, List, Optional, Type, Union

logger = logging.getLogger(__name__)

Handler = Callable[[Any], Union[None, Awaitable[None]]]


async def invoke(callback: Optional[Callable], *args: Any) -> Any:
    """Call a sync or async callback, awaiting it if needed."""
    if callback is None:
        return None
    result = callback(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class EventBus:
    """Ordered, awaitable fan-out of typed events."""

    def __init__(self):
        self._handlers: List[tuple] = []

    def subscribe(self, handler: Handler, event_type: Optional[Type] = None) -> None:
        """
        Register a handler.

        Args:
            handler: Sync or async callable taking the event
            event_type: Only deliver events that are instances of this type
        """
        self._handlers.append((event_type, handler))

    async def publish(self, event: Any) -> None:
        """Deliver an event to every matching handler, in order."""
        for event_type, handler in list(self._handlers):
            if event_type is not None and not isinstance(event, event_type):
                continue
            try:
                result = handler(event)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"❌ Event handler {getattr(handler, '__qualname__', handler)} failed "
                    f"for {type(event).__name__}: {e}",
                    exc_info=True,
                )

    def __len__(self) -> int:
        return len(self._handlers)
