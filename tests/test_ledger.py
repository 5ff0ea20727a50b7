"""
tests/test_ledger.py — Ledger Store Tests
==========================================

Append validation, durability and per-user ordering.
"""

from __future__ import annotations

import json
from dataclasses import replace
from datetime import datetime, timezone

import pytest

from scaleplus.constants import TRANSACTIONS_KEY
from scaleplus.engine.records import TransactionType
from scaleplus.exceptions import InvalidTransaction
from scaleplus.services.gateway import InMemoryGateway
from scaleplus.services.ledger_service import LedgerStore


@pytest.fixture
def gateway():
    return InMemoryGateway({TRANSACTIONS_KEY: []})


@pytest.fixture
def ledger(gateway):
    return LedgerStore(gateway)


class TestAppend:
    def test_append_persists_full_log(self, ledger, gateway):
        tx = ledger.new_transaction("u1", TransactionType.EARN, 50, "bonus")
        ledger.append(tx)

        stored = gateway.load(TRANSACTIONS_KEY)
        assert len(stored) == 1
        assert stored[0]["id"] == tx.id
        assert stored[0]["type"] == "earn"
        assert "rewardId" not in stored[0]

    @pytest.mark.parametrize("points", [0, -5])
    def test_non_positive_points_rejected(self, ledger, gateway, points):
        tx = ledger.new_transaction("u1", TransactionType.EARN, points, "bad")
        with pytest.raises(InvalidTransaction):
            ledger.append(tx)
        assert gateway.load(TRANSACTIONS_KEY) == []
        assert len(ledger) == 0

    def test_redeem_requires_reward_id(self, ledger):
        tx = ledger.new_transaction("u1", TransactionType.REDEEM, 100, "Redeemed: ?")
        with pytest.raises(InvalidTransaction):
            ledger.append(tx)

    def test_earn_cannot_carry_reward_id(self, ledger):
        tx = ledger.new_transaction("u1", TransactionType.EARN, 100, "odd", reward_id="r1")
        with pytest.raises(InvalidTransaction):
            ledger.append(tx)

    def test_duplicate_id_rejected(self, ledger):
        tx = ledger.append(ledger.new_transaction("u1", TransactionType.EARN, 10, "a"))
        with pytest.raises(InvalidTransaction):
            ledger.append(tx)
        assert len(ledger) == 1

    def test_naive_timestamp_rejected(self, ledger):
        tx = ledger.new_transaction("u1", TransactionType.EARN, 10, "a")
        with pytest.raises(InvalidTransaction):
            ledger.append(replace(tx, timestamp=datetime(2024, 1, 1)))


class TestOrdering:
    def test_timestamps_strictly_increase(self, ledger):
        txs = [ledger.new_transaction("u1", TransactionType.EARN, 1, str(i)) for i in range(50)]
        stamps = [tx.timestamp for tx in txs]
        assert all(a < b for a, b in zip(stamps, stamps[1:]))

    def test_for_user_most_recent_first(self, ledger):
        for i in range(5):
            ledger.append(ledger.new_transaction("u1", TransactionType.EARN, i + 1, f"e{i}"))
            ledger.append(ledger.new_transaction("u2", TransactionType.EARN, 1, "other"))

        history = ledger.for_user("u1")
        assert [tx.description for tx in history] == ["e4", "e3", "e2", "e1", "e0"]
        assert all(a.timestamp >= b.timestamp for a, b in zip(history, history[1:]))
        assert len(ledger.for_user("u1", limit=2)) == 2
        assert ledger.for_user("nobody") == []

    def test_loaded_log_is_sorted_on_query(self):
        """Stored order does not matter; queries sort by timestamp."""
        gateway = InMemoryGateway({
            TRANSACTIONS_KEY: [
                {"id": "tx_a", "userId": "u1", "type": "earn", "points": 5,
                 "description": "old", "timestamp": "2024-01-01T10:00:00Z"},
                {"id": "tx_b", "userId": "u1", "type": "redeem", "points": 3,
                 "description": "new", "timestamp": "2024-03-01T10:00:00+00:00",
                 "rewardId": "r1"},
                {"id": "tx_c", "userId": "u1", "type": "earn", "points": 1,
                 "description": "naive", "timestamp": "2024-02-01T10:00:00"},
            ]
        })
        ledger = LedgerStore(gateway)
        assert [tx.id for tx in ledger.for_user("u1")] == ["tx_b", "tx_c", "tx_a"]

        # New entries are issued after everything already on file.
        tx = ledger.new_transaction("u1", TransactionType.EARN, 1, "later")
        assert tx.timestamp > datetime(2024, 3, 1, 10, tzinfo=timezone.utc)

    def test_timestamps_stored_as_iso_text(self, ledger, gateway):
        tx = ledger.append(ledger.new_transaction("u1", TransactionType.EARN, 7, "iso"))
        raw = json.loads(gateway.raw(TRANSACTIONS_KEY))
        assert raw[0]["timestamp"] == tx.timestamp.isoformat()
        assert LedgerStore(gateway).get(tx.id) == tx
