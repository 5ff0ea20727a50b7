"""
Scale+ Rewards — Loyalty Ledger & Tier/Redemption Engine
=========================================================
Members accumulate points, are placed into tiers, redeem points for catalog
rewards, and administrators grant points manually.  Balance, tier, reward
stock and the append-only transaction log always move together.

Package layout::

    scaleplus/
    ├── __main__.py        # Admin CLI (python -m scaleplus …)
    ├── config.py          # YAML → typed config (tier table)
    ├── constants.py       # Storage keys, default tiers, rounding
    ├── exceptions.py      # LoyaltyError taxonomy
    ├── database/
    │   ├── engine.py      # SQLAlchemy engine + async helper
    │   └── models.py      # kv_store table
    ├── engine/
    │   ├── records.py     # User / Tier / Reward / Mechanic / Transaction
    │   └── tiers.py       # Tier resolution + progress
    └── services/
        ├── gateway.py            # Key-value persistence gateway
        ├── roster_service.py     # Members, registration, profiles
        ├── ledger_service.py     # Append-only transaction log
        ├── grant_service.py      # Admin grants + point corrections
        ├── redemption_service.py # Reward redemption
        ├── catalog_service.py    # Reward & mechanic CRUD
        ├── seed.py               # First-start defaults
        └── program.py            # Service wiring
"""

__version__ = "0.1.0"
