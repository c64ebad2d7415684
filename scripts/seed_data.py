#!/usr/bin/env python3
"""
Seed a database with a demo shop, its catalog and a handful of items.

Creates the schema, inserts one tenant with categories, metals, stone
types and sizes, then drives item creation, stone attachment and status
changes through InventoryActions so every row passes the same checks a
real request would.

Usage:
    python3 scripts/seed_data.py [--config path/to/settings.yaml] [--reset]
"""

import argparse
import sys
from datetime import UTC, datetime
from decimal import Decimal
from pathlib import Path
from uuid import uuid4

# ---------------------------------------------------------------------------
# Project root on sys.path
# ---------------------------------------------------------------------------
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    parser.add_argument("--config", help="YAML settings overriding defaults.yaml")
    parser.add_argument("--reset", action="store_true", help="Drop all tables first")
    args = parser.parse_args()

    from jewelry_config import get_active_config
    from jewelry_kernel.db.engine import (
        create_tables,
        drop_tables,
        get_session_factory,
        init_engine_from_url,
        session_scope,
    )
    from jewelry_kernel.domain.clock import DeterministicClock
    from jewelry_kernel.logging_config import configure_logging
    from jewelry_kernel.models import (
        MetalPurity,
        MetalType,
        ProductCategory,
        ProductSize,
        StoneType,
        Tenant,
    )
    from jewelry_services import ActorContext, InventoryActions

    config = get_active_config(args.config)
    configure_logging(level=config.log_level)

    # -----------------------------------------------------------------
    # 1. Connect + schema
    # -----------------------------------------------------------------
    print()
    print(f"  [1/4] Connecting to {config.database_url} ...")
    init_engine_from_url(
        config.database_url,
        echo=config.echo_sql,
        pool_size=config.pool_size,
        max_overflow=config.max_overflow,
    )
    if args.reset:
        drop_tables()
    create_tables()

    # -----------------------------------------------------------------
    # 2. Tenant + catalog
    # -----------------------------------------------------------------
    print("  [2/4] Creating demo shop and catalog...")
    actor_id = uuid4()
    with session_scope() as session:
        tenant = Tenant(name="Golden Lotus Jewelers", created_by_id=actor_id)
        session.add(tenant)
        session.flush()

        def catalog(model, name, **extra):
            row = model(tenant_id=tenant.id, name=name, created_by_id=actor_id, **extra)
            session.add(row)
            session.flush()
            return row

        rings = catalog(ProductCategory, "Rings")
        necklaces = catalog(ProductCategory, "Necklaces")
        gold = catalog(MetalType, "Gold")
        k18 = catalog(MetalPurity, "18K", purity_percentage=Decimal("75.000"))
        diamond = catalog(StoneType, "Diamond")
        ruby = catalog(StoneType, "Ruby")
        size_7 = catalog(ProductSize, "7")

    # -----------------------------------------------------------------
    # 3. Items through the actions boundary
    # -----------------------------------------------------------------
    print("  [3/4] Creating items...")
    clock = DeterministicClock(datetime(2025, 6, 15, 12, 0, 0, tzinfo=UTC))
    actions = InventoryActions(get_session_factory(), config, clock=clock)
    actor = ActorContext(actor_id=actor_id, tenant_id=tenant.id)

    specs = [
        ("Solitaire engagement ring", rings.id, "3.450", "2450.00", [(diamond.id, "0.75", 1)]),
        ("Ruby halo ring", rings.id, "4.100", "1890.00", [(ruby.id, "1.2", 1), (diamond.id, "0.05", 10)]),
        ("Tennis necklace", necklaces.id, "12.800", "5200.00", [(diamond.id, "0.10", 40)]),
        ("Plain gold band", rings.id, "5.000", "640.00", []),
    ]
    created = []
    for name, category_id, weight, price, stones in specs:
        clock.advance_millis(7)
        result = actions.create_item(
            actor,
            {
                "name": name,
                "weight_grams": weight,
                "purchase_price": price,
                "currency": config.default_currency,
                "category_id": category_id,
                "metal_type_id": gold.id,
                "metal_purity_id": k18.id,
                "size_id": size_7.id if category_id == rings.id else None,
            },
        )
        if not result.success:
            print(f"  ERROR: {result.code}: {result.error}", file=sys.stderr)
            return 1
        item = result.data
        for stone_type_id, carats, count in stones:
            stone = actions.attach_stone(
                actor,
                item["id"],
                {"stone_type_id": stone_type_id, "weight_carats": carats, "stone_count": count},
            )
            if not stone.success:
                print(f"  ERROR: {stone.code}: {stone.error}", file=sys.stderr)
                return 1
        created.append(item)
        print(f"        {item['sku']}  {item['barcode']}  {name}")

    # -----------------------------------------------------------------
    # 4. A few lifecycle moves
    # -----------------------------------------------------------------
    print("  [4/4] Moving items through their lifecycle...")
    actions.update_item_status(actor, created[0]["id"], 1, "reserved", "Deposit taken")
    actions.update_item_status(actor, created[1]["id"], 1, "workshop", "Resize to 6.5")
    bulk = actions.bulk_update_status(
        actor, [created[2]["id"], created[3]["id"]], "sold", "Weekend sale"
    )
    print(f"        {bulk.message}")

    print()
    print(f"  Done. Tenant {tenant.id} seeded with {len(created)} items.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
