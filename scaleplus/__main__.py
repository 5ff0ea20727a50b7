"""
scaleplus.__main__ — Admin command line for ``python -m scaleplus``
====================================================================

Wiring:
1. Load .env (DATABASE_URL).
2. Load config.yaml (program name, tier table).
3. Create the SQLAlchemy engine and ensure the kv_store table exists.
4. Build the loyalty program (seeds absent keys).
5. Run one admin command.

Run with::

    python -m scaleplus grant user1 100 "Birthday bonus"
    python -m scaleplus redeem user1 reward2
    python -m scaleplus history user1
"""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from dotenv import load_dotenv

from scaleplus.config import load_config
from scaleplus.database.engine import create_db_engine, init_db
from scaleplus.engine.records import TransactionType
from scaleplus.exceptions import LoyaltyError
from scaleplus.services.gateway import SqlAlchemyGateway
from scaleplus.services.program import LoyaltyProgram, build_program

logger = logging.getLogger("scaleplus")


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="scaleplus",
        description="Administer the Scale+ loyalty ledger.",
    )
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to config.yaml (default: ./config.yaml).",
    )
    parser.add_argument(
        "--database-url",
        help="SQLAlchemy URL. Falls back to DATABASE_URL from the environment.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log at INFO instead of WARNING.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("tiers", help="List the tier table.")
    sub.add_parser("users", help="List members with balance and tier.")
    sub.add_parser("rewards", help="List the reward catalog.")
    sub.add_parser("mechanics", help="List active earning mechanics.")

    history = sub.add_parser("history", help="Show a member's transactions, newest first.")
    history.add_argument("user_id")
    history.add_argument("--limit", type=int, default=None)

    grant = sub.add_parser("grant", help="Grant points (tier multiplier applies).")
    grant.add_argument("user_id")
    grant.add_argument("points", type=int)
    grant.add_argument("description")

    set_points = sub.add_parser("set-points", help="Overwrite a balance (no ledger entry).")
    set_points.add_argument("user_id")
    set_points.add_argument("total", type=int)

    redeem = sub.add_parser("redeem", help="Redeem a reward for a member.")
    redeem.add_argument("user_id")
    redeem.add_argument("reward_id")

    register = sub.add_parser("register", help="Register a new member.")
    register.add_argument("name")
    register.add_argument("email")
    register.add_argument("--phone", default=None)

    return parser.parse_args(argv)


def _run(program: LoyaltyProgram, args: argparse.Namespace) -> None:
    if args.command == "tiers":
        for tier in program.tiers.tiers:
            multiplier = f"×{tier.point_multiplier}" if tier.point_multiplier else "—"
            print(f"{tier.id:<10} {tier.name:<12} {tier.min_points:>7} pts  {multiplier}")

    elif args.command == "users":
        for user in program.roster.users():
            print(f"{user.id:<12} {user.name:<24} {user.points:>7} pts  {user.tier_id}")

    elif args.command == "rewards":
        for reward in program.catalog.rewards():
            stock = "∞" if reward.stock is None else str(reward.stock)
            print(f"{reward.id:<12} {reward.name:<28} {reward.points_required:>6} pts  stock {stock}")

    elif args.command == "mechanics":
        for mechanic in program.catalog.mechanics(active_only=True):
            print(f"{mechanic.title}: {mechanic.description}")

    elif args.command == "history":
        program.roster.require(args.user_id)
        for tx in program.ledger.for_user(args.user_id, limit=args.limit):
            sign = "+" if tx.type == TransactionType.EARN else "-"
            print(f"{tx.timestamp.isoformat()}  {sign}{tx.points:<6} {tx.description}")

    elif args.command == "grant":
        applied = program.grants.grant(args.user_id, args.points, args.description)
        user = program.roster.require(args.user_id)
        print(f"Granted {applied} pts to {user.id} → {user.points} pts ({user.tier_id})")

    elif args.command == "set-points":
        user = program.grants.set_points(args.user_id, args.total)
        print(f"Set {user.id} to {user.points} pts ({user.tier_id})")

    elif args.command == "redeem":
        tx = program.redemptions.redeem(args.user_id, args.reward_id)
        user = program.roster.require(args.user_id)
        print(f"{tx.description} for {user.id} → {user.points} pts left ({tx.id})")

    elif args.command == "register":
        user = program.roster.register(args.name, args.email, args.phone)
        print(f"Registered {user.id} ({user.email})")


def main(argv: Sequence[str] | None = None) -> int:
    """Bootstrap the program and run one command.  Returns the exit code."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s │ %(levelname)-8s │ %(name)s │ %(message)s",
        datefmt="%H:%M:%S",
    )

    # 1. Environment variables.
    load_dotenv()

    # 2. Static configuration.
    cfg = load_config(args.config)
    logger.info("Config loaded — Program: %s", cfg.program_name)

    # 3. Database.
    engine = create_db_engine(args.database_url)
    init_db(engine)

    # 4. Services.
    program = build_program(
        SqlAlchemyGateway(engine), cfg.tiers, seed_demo_data=cfg.seed_demo_data
    )

    # 5. Command.
    try:
        _run(program, args)
    except LoyaltyError as exc:
        print(f"[scaleplus] ❌ {exc.code}: {exc}", file=sys.stderr)
        return 1
    finally:
        engine.dispose()
    return 0


if __name__ == "__main__":
    sys.exit(main())
