#!/usr/bin/env python3
from __future__ import annotations
import argparse, json, os, sys
from types import SimpleNamespace

from app.core.config import get_settings
from app.core.logging import configure_logging
from app.db.session import make_engine, make_session_factory, session_scope
from app.integrations.bigcommerce import BigCommerceError, client_for_settings, friendly_message
from app.repository import api_settings_repo


'''
Connection check against a BigCommerce store
    - either a company's saved credentials (--company-id, read from DATABASE_URL)
    - or explicit credentials (--store-hash / --access-token / --client-id, or the BC_* env vars)
    usage:
    PYTHONPATH=backend python scripts/ping_bigcommerce.py --company-id <uuid>
    PYTHONPATH=backend python scripts/ping_bigcommerce.py --store-hash abc123 --access-token xxx --client-id yyy
'''
def _load_credentials(args, settings):
    if args.company_id:
        engine = make_engine(settings.DATABASE_URL)
        try:
            with session_scope(make_session_factory(engine)) as db:
                row = api_settings_repo.get(db, args.company_id)
        finally:
            engine.dispose()
        if row is None:
            print(f"ERROR: company {args.company_id} has no API settings", file=sys.stderr)
            sys.exit(2)
        return row
    creds = SimpleNamespace(
        store_hash=args.store_hash or os.getenv("BC_STORE_HASH"),
        access_token=args.access_token or os.getenv("BC_ACCESS_TOKEN"),
        client_id=args.client_id or os.getenv("BC_CLIENT_ID") or "",
    )
    if not creds.store_hash or not creds.access_token:
        print("ERROR: provide --company-id, or --store-hash and --access-token", file=sys.stderr)
        sys.exit(2)
    return creds


def main():
    ap = argparse.ArgumentParser(description="Check BigCommerce credentials and print store counts.")
    ap.add_argument("--company-id", help="use the credentials saved for this company")
    ap.add_argument("--store-hash")
    ap.add_argument("--access-token")
    ap.add_argument("--client-id")
    args = ap.parse_args()

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL)
    catalog = client_for_settings(_load_credentials(args, settings), settings)
    try:
        ok = catalog.test_connection()
        out = {"ok": ok}
        if ok:
            out["products"] = catalog.get_product_count()
            out["categories"] = len(catalog.get_categories())
    except BigCommerceError as e:
        out = {"ok": False, "error": friendly_message(e), "detail": str(e)}
    finally:
        catalog.close()
    print(json.dumps(out, ensure_ascii=False, indent=2))
    sys.exit(0 if out["ok"] else 1)


if __name__ == "__main__":
    main()
