"""
Event Bus - Decoupled Module Communication
Modules emit events, other modules listen. No direct imports between modules.
"""

from typing import Callable, Dict, List, Any
import logging

logger = logging.getLogger(__name__)


class EventBus:
    """
    Simple event bus for decoupled module communication.
    Modules emit events, other modules register handlers to listen.
    """

    def __init__(self):
        self._handlers: Dict[str, List[Callable]] = {}

    def on(self, event_name: str, handler: Callable):
        """
        Register a handler for an event.

        Args:
            event_name: Name of the event to listen for
            handler: Callable that receives event_data dict
        """
        self._handlers.setdefault(event_name, []).append(handler)
        logger.debug(f"Registered handler for event '{event_name}': {getattr(handler, '__name__', handler)}")

    def off(self, event_name: str, handler: Callable):
        """Unregister a handler. Unknown handlers are ignored."""
        handlers = self._handlers.get(event_name, [])
        if handler in handlers:
            handlers.remove(handler)

    def emit(self, event_name: str, event_data: Dict[str, Any] = None):
        """
        Emit an event to all registered handlers.
        A failing handler is logged and does not stop the others.

        Args:
            event_name: Name of the event
            event_data: Optional dict of data to pass to handlers
        """
        if event_data is None:
            event_data = {}

        logger.debug(f"Emitting event '{event_name}' with keys: {sorted(event_data)}")

        for handler in list(self._handlers.get(event_name, [])):
            try:
                handler(event_data)
            except Exception as e:
                logger.error(f"Error in handler {getattr(handler, '__name__', handler)} for event '{event_name}': {e}")

    def clear(self):
        """Clear all handlers (useful for testing)."""
        self._handlers.clear()


# Singleton instance
bus = EventBus()


# =============================================================================
# STANDARD EVENTS
# =============================================================================

# Auth
EVENT_LOGGED_IN = 'logged_in'
EVENT_LOGGED_OUT = 'logged_out'
EVENT_PASSWORD_RESET = 'password_reset'
EVENT_MEMBER_NAME_CHANGED = 'member_name_changed'

# Shows
EVENT_SHOW_CREATED = 'show_created'
EVENT_SHOW_UPDATED = 'show_updated'
EVENT_SHOW_PAID_TOGGLED = 'show_paid_toggled'
EVENT_EXPENSE_ADDED = 'expense_added'
EVENT_EXPENSE_DELETED = 'expense_deleted'
EVENT_SHOW_MEMBER_ADDED = 'show_member_added'
EVENT_SHOW_MEMBER_UPDATED = 'show_member_updated'
EVENT_SHOW_MEMBER_REMOVED = 'show_member_removed'
