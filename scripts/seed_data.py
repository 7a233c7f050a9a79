#!/usr/bin/env python3
"""
Seed the database with installations, equipment types and (optionally) a
short history of movements.

Creates the schema if needed, registers the immutability listeners, writes
reference data through the ledger and prints per-base metrics at the end.

Usage:
    python3 scripts/seed_data.py [--config inventory.yaml] [--database-url URL]
                                 [--reset] [--demo]
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from datetime import date
from decimal import Decimal
from uuid import uuid4

from inventory_kernel.config import load_settings
from inventory_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_settings,
)
from inventory_kernel.db.immutability import register_immutability_listeners
from inventory_kernel.domain.authority import Actor, Role
from inventory_kernel.domain.requests import (
    CreateAssignment,
    CreateTransfer,
    MetricsQuery,
    RecordExpenditure,
    RecordPurchase,
)
from inventory_kernel.exceptions import DuplicateNameError
from inventory_kernel.services.ledger import InventoryLedger

BASES = [
    ("Fort Bragg", "North Carolina, USA"),
    ("Camp Pendleton", "California, USA"),
    ("Fort Hood", "Texas, USA"),
    ("Joint Base Lewis-McChord", "Washington, USA"),
]

EQUIPMENT_TYPES = [
    ("M4 Carbine", "weapons"),
    ("M249 SAW", "weapons"),
    ("5.56mm Ammunition", "ammunition"),
    ("7.62mm Ammunition", "ammunition"),
    ("HMMWV", "vehicles"),
    ("M1A2 Abrams", "vehicles"),
    ("Body Armor", "protective"),
    ("Night Vision Goggles", "optics"),
    ("Radio Equipment", "communications"),
    ("Medical Supplies", "medical"),
]


def _parse_args(argv: list[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__.split("\n\n")[0])
    parser.add_argument("--config", help="YAML settings file (default: INVENTORY_CONFIG)")
    parser.add_argument("--database-url", help="Override the configured database URL")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    parser.add_argument(
        "--demo", action="store_true", help="Record sample purchases, transfers and issues"
    )
    return parser.parse_args(argv)


def _seed_reference(ledger: InventoryLedger, admin: Actor) -> tuple[dict, dict]:
    bases = {b.name: b.id for b in ledger.list_bases()}
    for name, location in BASES:
        if name not in bases:
            bases[name] = ledger.create_base(admin, name, location).id

    types = {t.name: t.id for t in ledger.list_equipment_types()}
    for name, category in EQUIPMENT_TYPES:
        if name in types:
            continue
        try:
            types[name] = ledger.create_equipment_type(admin, name, category).id
        except DuplicateNameError:
            continue
    return bases, types


def _seed_demo(ledger: InventoryLedger, admin: Actor, bases: dict, types: dict) -> None:
    bragg, pendleton = bases["Fort Bragg"], bases["Camp Pendleton"]
    m4, ammo, hmmwv = types["M4 Carbine"], types["5.56mm Ammunition"], types["HMMWV"]

    purchases = [
        (bragg, m4, 200, "1250.00", "Colt Defense"),
        (bragg, ammo, 50000, "0.45", "Lake City Army Ammunition Plant"),
        (pendleton, hmmwv, 12, "220000.00", "AM General"),
    ]
    for base_id, type_id, qty, price, supplier in purchases:
        ledger.record_purchase(
            RecordPurchase(base_id, type_id, qty, Decimal(price), supplier, date(2024, 1, 8)),
            admin,
        )

    transfer = ledger.create_transfer(
        CreateTransfer(bragg, pendleton, m4, 40, date(2024, 1, 15), notes="Rotation"), admin
    )
    ledger.approve_transfer(transfer.id, admin)
    ledger.complete_transfer(transfer.id, admin, completion_date=date(2024, 1, 18))

    ledger.create_assignment(
        CreateAssignment(bragg, m4, 30, "1st Battalion, Alpha Company", date(2024, 1, 22)),
        admin,
    )
    ledger.record_expenditure(
        RecordExpenditure(bragg, ammo, 12000, "Annual marksmanship qualification", date(2024, 2, 2)),
        admin,
    )


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    settings = load_settings(args.config)
    if args.database_url:
        settings = replace(settings, database_url=args.database_url)

    print()
    print(f"  [1/4] Connecting to {settings.database_url.rsplit('@', 1)[-1]}...")
    try:
        init_engine_from_settings(settings)
    except Exception as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    print("  [2/4] Preparing schema...")
    if args.reset:
        drop_tables()
    create_tables()
    register_immutability_listeners()

    ledger = InventoryLedger(get_session_factory(), settings=settings)
    admin = Actor(actor_id=uuid4(), role=Role.ADMIN)

    print(f"  [3/4] Seeding {len(BASES)} bases and {len(EQUIPMENT_TYPES)} equipment types...")
    bases, types = _seed_reference(ledger, admin)

    if args.demo:
        print("  [4/4] Recording demo movements...")
        _seed_demo(ledger, admin, bases, types)
    else:
        print("  [4/4] Skipping demo movements (use --demo)")

    print()
    print(f"  {'Base':<28}{'On hand':>10}{'Assigned':>10}{'Net':>10}")
    for name, base_id in sorted(bases.items()):
        m = ledger.get_metrics(MetricsQuery(base_ids=[base_id]), admin)
        print(f"  {name:<28}{m.on_hand:>10}{m.assigned_outstanding:>10}{m.net_movement:>10}")

    inconsistent = [r for r in ledger.reconcile_all() if not r.is_consistent]
    if inconsistent:
        print(f"  WARNING: {len(inconsistent)} balance(s) do not reconcile", file=sys.stderr)
        return 2
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
