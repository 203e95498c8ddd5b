"""
Events - structured notifications emitted by the auction engine.

Consumers subscribe for auditing. Delivery is best-effort: the engine has
already committed its state when an event is emitted, and a failing
subscriber never rolls that state back.
"""

from dataclasses import asdict, dataclass, field
from typing import Callable, List, Optional, Union

from sealbid.utils.logger import get_logger

logger = get_logger("events")


@dataclass(frozen=True)
class BidPlaced:
    auction_id: int
    bidder: str
    timestamp: int

    name = "BidPlaced"

    def to_dict(self) -> dict:
        return {"event": self.name, **asdict(self)}


@dataclass(frozen=True)
class AuctionEnded:
    auction_id: int
    winner: str
    highest_value: int
    asset_id: int

    name = "AuctionEnded"

    def to_dict(self) -> dict:
        return {"event": self.name, **asdict(self)}


@dataclass(frozen=True)
class FundsWithdrawn:
    auction_id: int
    operator: str
    amount: int

    name = "FundsWithdrawn"

    def to_dict(self) -> dict:
        return {"event": self.name, **asdict(self)}


AuctionEvent = Union[BidPlaced, AuctionEnded, FundsWithdrawn]

EVENT_TYPES = {cls.name: cls for cls in (BidPlaced, AuctionEnded, FundsWithdrawn)}


def event_from_dict(data: dict) -> AuctionEvent:
    """Rebuild an event from its to_dict() form."""
    payload = dict(data)
    cls = EVENT_TYPES[payload.pop("event")]
    return cls(**payload)


@dataclass
class EventBus:
    """
    Fan-out of auction events to subscribers.

    Keeps the most recent `max_history` events in memory (None keeps all).
    The durable log is the storage event table.
    """
    history: List[AuctionEvent] = field(default_factory=list)
    max_history: Optional[int] = 1000
    _subscribers: List[Callable[[AuctionEvent], None]] = field(default_factory=list)

    def subscribe(self, handler: Callable[[AuctionEvent], None]) -> None:
        self._subscribers.append(handler)

    def unsubscribe(self, handler: Callable[[AuctionEvent], None]) -> None:
        if handler in self._subscribers:
            self._subscribers.remove(handler)

    def emit(self, event: AuctionEvent) -> None:
        self.history.append(event)
        if self.max_history is not None and len(self.history) > self.max_history:
            del self.history[:len(self.history) - self.max_history]
        logger.debug(f"Event {event.name}: {event.to_dict()}")

        for handler in list(self._subscribers):
            try:
                handler(event)
            except Exception as e:
                logger.warning(f"Subscriber {handler!r} failed on {event.name}: {e}")

    def events_for(self, auction_id: int, name: Optional[str] = None) -> List[AuctionEvent]:
        """History filtered by auction (and optionally event name)."""
        return [
            e for e in self.history
            if e.auction_id == auction_id and (name is None or e.name == name)
        ]


__all__ = [
    "BidPlaced",
    "AuctionEnded",
    "FundsWithdrawn",
    "AuctionEvent",
    "EventBus",
    "event_from_dict",
]
