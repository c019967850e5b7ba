"""
Metrics Gate - In-Process Message Bus
Publish/subscribe dispatch with immediate retries using tenacity.

Handlers run synchronously in publish order. A handler that keeps raising
after `immediate_retries` extra attempts is recorded as a delivery fault;
the remaining handlers still receive the message and publish() returns.
"""

import threading
from dataclasses import dataclass
from typing import Any, Callable, Dict, List

from tenacity import Retrying, RetryError, stop_after_attempt

from utils.config import MESSAGE_IMMEDIATE_RETRIES
from utils.logger import logger, log_delivery_fault

Handler = Callable[[Any], None]


@dataclass(frozen=True)
class DeliveryFault:
    """A message one handler could not process."""
    message: Any
    handler: str
    attempts: int
    error: BaseException


def _handler_name(handler: Handler) -> str:
    name = getattr(handler, '__qualname__', None)
    if name is None:
        name = type(handler).__name__
    return name


class MessageBus:
    """
    Minimal in-process stand-in for a message broker.

    Usage:
        bus = MessageBus(immediate_retries=2)
        bus.subscribe(SaveRequested, consumer)
        bus.publish(SaveRequested(...))
    """

    def __init__(self, immediate_retries: int = MESSAGE_IMMEDIATE_RETRIES):
        if immediate_retries < 0:
            raise ValueError("immediate_retries must be >= 0")
        self.immediate_retries = immediate_retries
        self._subscribers: Dict[type, List[Handler]] = {}
        self._lock = threading.Lock()
        self.faults: List[DeliveryFault] = []
        self.published: List[Any] = []

    def subscribe(self, message_type: type, handler: Handler) -> None:
        """Register a handler for an exact message type."""
        if not callable(handler):
            raise TypeError("handler must be callable")
        with self._lock:
            self._subscribers.setdefault(message_type, []).append(handler)

    def publish(self, message: Any) -> None:
        """Deliver a message to every handler subscribed to its type."""
        if message is None:
            raise TypeError("message must not be None")

        with self._lock:
            self.published.append(message)
            handlers = list(self._subscribers.get(type(message), []))

        logger.debug(f"Publishing {type(message).__name__} to {len(handlers)} handler(s)")

        for handler in handlers:
            self._deliver(handler, message)

    def published_of(self, message_type: type) -> List[Any]:
        """Messages of one type published so far, in order."""
        with self._lock:
            return [m for m in self.published if isinstance(m, message_type)]

    def _deliver(self, handler: Handler, message: Any) -> None:
        attempts = self.immediate_retries + 1
        retrying = Retrying(stop=stop_after_attempt(attempts))
        try:
            retrying(handler, message)
        except RetryError as e:
            error = e.last_attempt.exception()
            name = _handler_name(handler)
            log_delivery_fault(type(message).__name__, name, attempts, error)
            with self._lock:
                self.faults.append(DeliveryFault(message, name, attempts, error))
