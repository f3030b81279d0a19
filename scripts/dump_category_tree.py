#!/usr/bin/env python3
from __future__ import annotations
import argparse, os, sys
from types import SimpleNamespace

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.integrations.bigcommerce import client_for_settings
from app.services.catalog.category_paths import CategoryIndex


'''
Print every reconstructed "A > B > C" category path of a store, one per line.
Handy to check which ids need to go into the missing-parent table.
    usage:
    PYTHONPATH=backend python scripts/dump_category_tree.py --store-hash abc123 --access-token xxx
    PYTHONPATH=backend python scripts/dump_category_tree.py --product 111 --product 112   # best path per product
'''
def main():
    ap = argparse.ArgumentParser(description="Dump reconstructed BigCommerce category paths.")
    ap.add_argument("--store-hash", default=os.getenv("BC_STORE_HASH"))
    ap.add_argument("--access-token", default=os.getenv("BC_ACCESS_TOKEN"))
    ap.add_argument("--client-id", default=os.getenv("BC_CLIENT_ID", ""))
    ap.add_argument("--product", type=int, action="append", default=[], help="also print the best path for this product id")
    args = ap.parse_args()

    if not args.store_hash or not args.access_token:
        print("ERROR: provide --store-hash and --access-token (or BC_STORE_HASH / BC_ACCESS_TOKEN)", file=sys.stderr)
        sys.exit(2)

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    creds = SimpleNamespace(store_hash=args.store_hash, access_token=args.access_token, client_id=args.client_id)
    catalog = client_for_settings(creds, settings)
    try:
        index = CategoryIndex(catalog.get_categories())
        for category_id, path in sorted(index.all_paths().items(), key=lambda kv: kv[1]):
            print(f"{category_id}\t{path}")
        for product_id in args.product:
            raw = catalog.get_product(product_id)
            if raw is None:
                print(f"product {product_id}: not found", file=sys.stderr)
                continue
            print(f"product {product_id}\t{index.best_path(raw.get('categories') or [])}")
    finally:
        catalog.close()


if __name__ == "__main__":
    main()
