"""
scaleplus.services.program — Service Wiring
============================================

Builds every loyalty service exactly once and hands them out together.
Callers receive the :class:`LoyaltyProgram` and reach each service by
attribute; nothing is looked up implicitly.

All services share one gateway and one re-entrant lock.  Collections are
written wholesale, so mutations are serialised program-wide.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from scaleplus.engine.tiers import TierResolver
from scaleplus.services.catalog_service import CatalogStore
from scaleplus.services.grant_service import GrantEngine
from scaleplus.services.ledger_service import LedgerStore
from scaleplus.services.redemption_service import RedemptionEngine
from scaleplus.services.roster_service import UserRoster
from scaleplus.services.seed import seed_missing

if TYPE_CHECKING:
    from scaleplus.engine.records import Tier
    from scaleplus.services.gateway import PersistenceGateway

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LoyaltyProgram:
    """The assembled loyalty core."""

    gateway: PersistenceGateway
    tiers: TierResolver
    roster: UserRoster
    ledger: LedgerStore
    catalog: CatalogStore
    grants: GrantEngine
    redemptions: RedemptionEngine


def build_program(
    gateway: PersistenceGateway,
    tiers: Iterable[Tier],
    *,
    seed_demo_data: bool = False,
) -> LoyaltyProgram:
    """Validate the tier table, seed absent keys and construct the services.

    Raises
    ------
    ConfigurationError
        If the tier table is malformed.
    """
    resolver = TierResolver(tiers)
    seed_missing(gateway, demo_users=seed_demo_data)

    lock = threading.RLock()
    roster = UserRoster(gateway, resolver, lock=lock)
    ledger = LedgerStore(gateway, lock=lock)
    catalog = CatalogStore(gateway, lock=lock)

    program = LoyaltyProgram(
        gateway=gateway,
        tiers=resolver,
        roster=roster,
        ledger=ledger,
        catalog=catalog,
        grants=GrantEngine(gateway, resolver, roster, ledger, lock=lock),
        redemptions=RedemptionEngine(gateway, roster, catalog, ledger, lock=lock),
    )
    logger.info(
        "Loyalty program ready: %d tiers, %d users, %d rewards, %d transactions",
        len(resolver.tiers), len(roster.users()), len(catalog.rewards()), len(ledger),
    )
    return program
