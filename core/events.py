"""
Typed in-process publish/subscribe bus.

Handlers subscribe to an event class (``RefreshEvent``, ``FundingEvent``) and
receive every published instance of it. A failing handler is logged and does
not affect other handlers or the publisher.
"""

from typing import Callable, Dict, List, Type, TypeVar
import logging

logger = logging.getLogger(__name__)

E = TypeVar("E")


class EventBus:
    """Synchronous fan-out keyed by event type"""
    
    def __init__(self):
        self._handlers: Dict[type, List[Callable]] = {}
    
    def subscribe(self, event_type: Type[E], handler: Callable[[E], None]) -> Callable[[], None]:
        """Register a handler; returns a function that removes it"""
        self._handlers.setdefault(event_type, []).append(handler)
        
        def unsubscribe():
            handlers = self._handlers.get(event_type, [])
            if handler in handlers:
                handlers.remove(handler)
        
        return unsubscribe
    
    def publish(self, event) -> int:
        """Deliver an event to its subscribers; returns how many handled it"""
        handled = 0
        for handler in list(self._handlers.get(type(event), [])):
            try:
                handler(event)
                handled += 1
            except Exception as e:
                logger.error(
                    f"Event handler {getattr(handler, '__qualname__', handler)} failed "
                    f"for {type(event).__name__}: {e}"
                )
        return handled
    
    def subscriber_count(self, event_type: type) -> int:
        return len(self._handlers.get(event_type, []))
