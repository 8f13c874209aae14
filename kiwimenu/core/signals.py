import itertools
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Set

_handle_ids = itertools.count(1)


@dataclass(frozen=True)
class Handle:
    """Opaque token returned by ``subscribe``; revoke it exactly once."""

    event_kind: str
    hub_id: int
    id: int = field(default_factory=lambda: next(_handle_ids))


class SignalHub:
    """
    Keeps subscribers per event kind and dispatches events to them.

    Subscribers are stored as ``{event_kind: {handle_id: callback}}`` so a
    callback registered twice gets two independent handles.
    """

    def __init__(self, logger: Any, kinds: Optional[List[str]] = None):
        self.logger = logger
        self._kinds = set(kinds) if kinds else None
        self._subscribers: Dict[str, Dict[int, Callable[..., Any]]] = {}
        self._hub_id = id(self)

    def subscribe(self, event_kind: str, handler: Callable[..., Any]) -> Handle:
        if self._kinds is not None and event_kind not in self._kinds:
            raise ValueError(f"Unknown event kind: {event_kind}")
        handle = Handle(event_kind, self._hub_id)
        self._subscribers.setdefault(event_kind, {})[handle.id] = handler
        return handle

    def revoke(self, handle: Handle) -> bool:
        """Removes a subscriber. Returns False if it was already revoked."""
        if handle.hub_id != self._hub_id:
            return False
        subscribers = self._subscribers.get(handle.event_kind, {})
        return subscribers.pop(handle.id, None) is not None

    def emit(self, event_kind: str, *args: Any) -> None:
        for callback in list(self._subscribers.get(event_kind, {}).values()):
            try:
                callback(event_kind, *args)
            except Exception as e:
                self.logger.error(
                    f"Error executing callback for event '{event_kind}': {e}",
                    exc_info=True,
                )

    def subscriber_count(self, event_kind: Optional[str] = None) -> int:
        if event_kind is not None:
            return len(self._subscribers.get(event_kind, {}))
        return sum(len(s) for s in self._subscribers.values())

    def clear(self) -> None:
        self._subscribers.clear()


class SubscriptionSet:
    """Owned set of handles, each revoked exactly once on ``revoke_all``."""

    def __init__(self):
        self._handles: Set[tuple] = set()

    def add(self, revoke: Callable[[Handle], Any], handle: Handle) -> Handle:
        self._handles.add((revoke, handle))
        return handle

    def extend(self, revoke: Callable[[Handle], Any], handles: List[Handle]) -> None:
        for handle in handles:
            self.add(revoke, handle)

    def revoke_all(self) -> None:
        while self._handles:
            revoke, handle = self._handles.pop()
            revoke(handle)

    def __len__(self) -> int:
        return len(self._handles)
