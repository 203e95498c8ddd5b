"""
Tests for auction events and the event bus.
"""

import logging

from sealbid.core.events import (
    AuctionEnded,
    BidPlaced,
    EventBus,
    FundsWithdrawn,
    event_from_dict,
)


ALICE = "0x" + "a1" * 20
OPERATOR = "0x" + "0f" * 20


class TestEvents:
    """Tests for event payloads."""

    def test_to_dict_includes_name(self):
        event = AuctionEnded(auction_id=1, winner=ALICE, highest_value=50, asset_id=3)
        assert event.to_dict() == {
            "event": "AuctionEnded",
            "auction_id": 1,
            "winner": ALICE,
            "highest_value": 50,
            "asset_id": 3,
        }

    def test_from_dict(self):
        event = FundsWithdrawn(auction_id=2, operator=OPERATOR, amount=200)
        assert event_from_dict(event.to_dict()) == event


class TestEventBus:
    """Tests for EventBus delivery."""

    def test_emit_records_history_and_notifies(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)

        event = BidPlaced(auction_id=1, bidder=ALICE, timestamp=100)
        bus.emit(event)

        assert bus.history == [event]
        assert received == [event]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)
        bus.unsubscribe(received.append)

        bus.emit(BidPlaced(auction_id=1, bidder=ALICE, timestamp=100))

        assert received == []

    def test_failing_subscriber_is_isolated(self, caplog):
        """A subscriber error is logged and later subscribers still run."""
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(received.append)

        with caplog.at_level(logging.WARNING, logger="sealbid.events"):
            bus.emit(BidPlaced(auction_id=1, bidder=ALICE, timestamp=100))

        assert len(received) == 1
        assert "boom" in caplog.text

    def test_history_is_bounded(self):
        bus = EventBus(max_history=2)
        received = []
        bus.subscribe(received.append)

        for timestamp in range(5):
            bus.emit(BidPlaced(auction_id=1, bidder=ALICE, timestamp=timestamp))

        assert [e.timestamp for e in bus.history] == [3, 4]
        assert len(received) == 5

    def test_history_can_be_disabled(self):
        bus = EventBus(max_history=0)
        bus.emit(BidPlaced(auction_id=1, bidder=ALICE, timestamp=1))
        assert bus.history == []

    def test_events_for_filters(self):
        bus = EventBus()
        bus.emit(BidPlaced(auction_id=1, bidder=ALICE, timestamp=1))
        bus.emit(BidPlaced(auction_id=2, bidder=ALICE, timestamp=2))
        bus.emit(FundsWithdrawn(auction_id=1, operator=OPERATOR, amount=10))

        assert len(bus.events_for(1)) == 2
        assert bus.events_for(1, "FundsWithdrawn") == [
            FundsWithdrawn(auction_id=1, operator=OPERATOR, amount=10)
        ]
