"""Storefront management CLI.

Creates and drops the database schema, and registers merchants (there is no
public endpoint for that).

Usage:
    python src/manage.py setup-db                           # Create all tables
    python src/manage.py drop-db                            # Drop all tables
    python src/manage.py register-merchant "Doce Lar" doce-lar [--timezone America/Recife]
"""

import argparse
import sys


def _initialized_domain():
    from storefront.domain import storefront

    storefront.init()
    return storefront


def setup_database():
    from storefront.utils.db import setup_db

    domain = _initialized_domain()
    print("Creating storefront database schema...")
    setup_db(domain)
    print("Done.")


def drop_database():
    from storefront.utils.db import drop_db

    domain = _initialized_domain()
    print("Dropping storefront database schema...")
    drop_db(domain)
    print("Done.")


def register_merchant(name, slug, timezone=None):
    domain = _initialized_domain()

    from storefront.merchant.merchant import Merchant

    with domain.domain_context():
        repo = domain.repository_for(Merchant)
        if repo.find_by_slug(slug) is not None:
            print(f"A merchant is already published under '{slug}'.")
            sys.exit(1)
        merchant = Merchant.register(name=name, slug=slug, timezone=timezone)
        repo.add(merchant)
    print(f"Merchant {merchant.slug} registered with id {merchant.id}.")


def main():
    parser = argparse.ArgumentParser(description="Storefront management")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("setup-db", help="Create all database tables")
    subparsers.add_parser("drop-db", help="Drop all database tables")

    merchant_parser = subparsers.add_parser("register-merchant", help="Register a merchant")
    merchant_parser.add_argument("name")
    merchant_parser.add_argument("slug")
    merchant_parser.add_argument("--timezone", default=None, help="IANA timezone (default: America/Sao_Paulo)")

    args = parser.parse_args()

    if args.command == "setup-db":
        setup_database()
    elif args.command == "drop-db":
        drop_database()
    elif args.command == "register-merchant":
        register_merchant(args.name, args.slug, timezone=args.timezone)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
