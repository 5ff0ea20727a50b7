"""
tests/test_gateway.py — Persistence Gateway Round-Trip Tests
=============================================================
Serializing and reloading the four collections must reproduce identical
records, dates included.  Runs against both gateways; the SQLAlchemy one
uses the in-memory SQLite engine from conftest.
"""

from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy.orm import Session

from scaleplus.constants import REWARDS_KEY, STORAGE_KEYS, TRANSACTIONS_KEY, USERS_KEY
from scaleplus.database.engine import get_session
from scaleplus.database.models import KeyValue
from scaleplus.engine.records import Mechanic, Reward, Transaction, TransactionType, User
from scaleplus.exceptions import StorageError
from scaleplus.services.gateway import InMemoryGateway, SqlAlchemyGateway


@pytest.fixture(params=["memory", "sqlalchemy"])
def gateway(request, db_engine):
    if request.param == "memory":
        return InMemoryGateway()
    return SqlAlchemyGateway(db_engine)


USER = User(
    id="u1",
    name="Alice",
    email="alice@example.com",
    points=620,
    tier_id="silver",
    phone="555-0101",
    registration_date=datetime(2023, 1, 15, 10, 0, tzinfo=timezone.utc),
)
REWARD = Reward(id="r1", name="Coffee", description="Hot", points_required=250, stock=3)
UNLIMITED = Reward(id="r2", name="Pass", points_required=3500)
MECHANIC = Mechanic(id="m1", title="Visit", description="10 pts", is_active=False)
EARN = Transaction(
    id="tx_1",
    user_id="u1",
    type=TransactionType.EARN,
    points=110,
    description="bonus",
    timestamp=datetime(2024, 5, 1, 12, 30, 15, 123456, tzinfo=timezone.utc),
)
REDEEM = Transaction(
    id="tx_2",
    user_id="u1",
    type=TransactionType.REDEEM,
    points=250,
    description="Redeemed: Coffee",
    timestamp=datetime(2024, 5, 2, 9, 0, tzinfo=timezone.utc),
    reward_id="r1",
)


class TestRoundTrip:
    def test_missing_key_is_none(self, gateway):
        assert gateway.load("nothing-here") is None

    def test_records_survive_save_and_load(self, gateway):
        gateway.save_many({
            "users": [USER.to_dict()],
            "rewards": [REWARD.to_dict(), UNLIMITED.to_dict()],
            "mechanics": [MECHANIC.to_dict()],
            "transactions": [EARN.to_dict(), REDEEM.to_dict()],
        })

        assert [User.from_dict(d) for d in gateway.load("users")] == [USER]
        assert [Reward.from_dict(d) for d in gateway.load("rewards")] == [REWARD, UNLIMITED]
        assert [Mechanic.from_dict(d) for d in gateway.load("mechanics")] == [MECHANIC]
        assert [Transaction.from_dict(d) for d in gateway.load("transactions")] == [EARN, REDEEM]

    def test_dates_travel_as_iso_strings(self, gateway):
        gateway.save("users", [USER.to_dict()])
        stored = gateway.load("users")[0]
        assert stored["registrationDate"] == "2023-01-15T10:00:00+00:00"

    def test_save_overwrites(self, gateway):
        gateway.save("rewards", [REWARD.to_dict()])
        gateway.save("rewards", [])
        assert gateway.load("rewards") == []


class TestLegacyShapes:
    def test_z_suffix_and_missing_optionals(self):
        user = User.from_dict({
            "id": "user1",
            "name": "Alice",
            "email": "a@example.com",
            "points": 250,
            "tierId": "bronze",
            "registrationDate": "2023-01-15T10:00:00Z",
        })
        assert user.registration_date == datetime(2023, 1, 15, 10, tzinfo=timezone.utc)
        assert user.phone is None

        reward = Reward.from_dict({"id": "r9", "pointsRequired": None})
        assert reward.points_required == 0
        assert reward.stock is None


class TestSqlAlchemyGateway:
    def test_save_many_single_commit(self, db_engine):
        gateway = SqlAlchemyGateway(db_engine)
        gateway.save_many({key: [] for key in STORAGE_KEYS})

        with Session(db_engine) as session:
            keys = sorted(row.key for row in session.query(KeyValue).all())
        assert keys == sorted(STORAGE_KEYS)

    def test_corrupt_row_raises_storage_error(self, db_engine):
        with get_session(db_engine) as session:
            session.add(KeyValue(key=USERS_KEY, value_json="{not json"))

        with pytest.raises(StorageError) as exc_info:
            SqlAlchemyGateway(db_engine).load(USERS_KEY)
        assert exc_info.value.code == "STORAGE_ERROR"

    def test_get_session_rolls_back_on_error(self, db_engine):
        with pytest.raises(RuntimeError):
            with get_session(db_engine) as session:
                session.add(KeyValue(key="temp", value_json="[]"))
                session.flush()
                raise RuntimeError("boom")

        assert SqlAlchemyGateway(db_engine).load("temp") is None

    def test_save_many_failure_rolls_back_every_key(self, db_engine, monkeypatch):
        gateway = SqlAlchemyGateway(db_engine)
        gateway.save(REWARDS_KEY, [REWARD.to_dict()])
        original_add = Session.add

        def add(self, instance, *args, **kwargs):
            if getattr(instance, "key", None) == TRANSACTIONS_KEY:
                raise RuntimeError("disk full")
            return original_add(self, instance, *args, **kwargs)

        monkeypatch.setattr(Session, "add", add)
        with pytest.raises(RuntimeError):
            gateway.save_many({
                USERS_KEY: [USER.to_dict()],
                REWARDS_KEY: [],
                TRANSACTIONS_KEY: [EARN.to_dict()],
            })
        monkeypatch.undo()

        assert gateway.load(USERS_KEY) is None
        assert gateway.load(REWARDS_KEY) == [REWARD.to_dict()]
        assert gateway.load(TRANSACTIONS_KEY) is None
