from collections import defaultdict
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Dict, List, Callable, Any
import logging

logger = logging.getLogger(__name__)

class EventBus:
    """In-process fan-out for side effects such as emails.

    Handlers run on a worker pool so publishers never wait on them. Handler
    failures are logged and never reach the publisher.
    """

    def __init__(self, max_workers: int = 4):
        self._handlers: Dict[str, List[Callable]] = defaultdict(list)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="event-bus")

    def subscribe(self, event_type: str, handler: Callable):
        if handler not in self._handlers[event_type]:
            self._handlers[event_type].append(handler)

    def handlers_for(self, event_type: str) -> List[Callable]:
        return list(self._handlers.get(event_type, []))

    def _log_failure(self, handler: Callable, event_type: str, future: Future):
        error = future.exception()
        if error is not None:
            logger.error(f"Error in event handler {handler.__name__} for {event_type}: {error}")

    def publish(self, event_type: str, data: Dict[str, Any]) -> List[Future]:
        handlers = self.handlers_for(event_type)
        if not handlers:
            logger.debug(f"No handlers registered for {event_type}")
            return []

        futures = []
        for handler in handlers:
            future = self._executor.submit(handler, data)
            future.add_done_callback(partial(self._log_failure, handler, event_type))
            futures.append(future)
        return futures

event_bus = EventBus()
