"""Marketplace database management CLI.

Creates and drops the marketplace schema: the Protean aggregate tables and,
when STOCK_LEDGER_URI points at a database, the stock ledger table.

Usage:
    python src/manage.py setup-db   # Create all tables
    python src/manage.py drop-db    # Drop all tables
"""

import argparse
import sys


def _sql_ledger():
    from marketplace.inventory.ledger.sql_adapter import SQLStockLedger
    from marketplace.utils import settings

    if settings.STOCK_LEDGER_URI == "memory":
        return None
    return SQLStockLedger(settings.STOCK_LEDGER_URI)


def setup_databases(include_ledger=True):
    """Create database schemas for the marketplace domain."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import setup_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Creating marketplace database schema...")
    setup_db(marketplace)

    ledger = _sql_ledger() if include_ledger else None
    if ledger is not None:
        print("Creating stock ledger schema...")
        ledger.create_schema()

    print("Done.")


def drop_databases(include_ledger=True):
    """Drop database schemas for the marketplace domain."""
    from marketplace.domain import marketplace
    from marketplace.utils.db import drop_db

    print("Initializing marketplace domain...")
    marketplace.init()
    print("Dropping marketplace database schema...")
    drop_db(marketplace)

    ledger = _sql_ledger() if include_ledger else None
    if ledger is not None:
        print("Dropping stock ledger schema...")
        ledger.drop_schema()

    print("Done.")


def main():
    parser = argparse.ArgumentParser(description="Marketplace database management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    setup_parser = subparsers.add_parser("setup-db", help="Create all database tables")
    setup_parser.add_argument(
        "--skip-ledger",
        action="store_true",
        help="Leave the stock ledger table alone",
    )

    drop_parser = subparsers.add_parser("drop-db", help="Drop all database tables")
    drop_parser.add_argument(
        "--skip-ledger",
        action="store_true",
        help="Leave the stock ledger table alone",
    )

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_databases(include_ledger=not args.skip_ledger)
    elif args.command == "drop-db":
        drop_databases(include_ledger=not args.skip_ledger)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
