"""
Hosted apps admin CLI (SQLite)

Commands:
  init                Open the database, creating or upgrading the apps table
  upgrade             Drop and recreate the apps table (destroys all records)
  list                Print every hosted app, ordered by name
  add                 Insert one app and print its address
  remove              Delete one app by id
"""
from __future__ import annotations

import argparse
import logging
import sys

from .addressing import with_appended_id
from .errors import ProviderError
from .logs import ensure_log_schema
from .repository.apps_table import COLUMN_NAME
from .services.apps_provider import HostedAppsProvider, create_provider


def cmd_init(provider: HostedAppsProvider, args):
    provider.db.get_connection()
    ensure_log_schema(provider.db)
    print("DB initialized:", provider.db.path)


def cmd_upgrade(provider: HostedAppsProvider, args):
    provider.db.recreate()
    print("Apps table recreated, all records dropped.")


def cmd_list(provider: HostedAppsProvider, args):
    base = provider.content_uri
    with provider.query(base, sort_order=f"{COLUMN_NAME} ASC") as rows:
        if not rows.count:
            print("(empty)")
        for r in rows.as_dicts():
            print(f"{r['id']}\t{r['name']}\t{r['package']}\t{r['vendor']}\t{r['description']}")


def cmd_add(provider: HostedAppsProvider, args):
    uri = provider.insert(provider.content_uri, {
        "name": args.name,
        "package": args.package,
        "vendor": args.vendor,
        "description": args.description,
    })
    print(uri)


def cmd_remove(provider: HostedAppsProvider, args):
    n = provider.delete(with_appended_id(provider.content_uri, args.id))
    print(f"{n} row(s) deleted")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Hosted apps provider (SQLite)")
    parser.add_argument("--db", default=None, help="database path (default: HOSTED_APPS_DB_PATH / config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true")
    sub = parser.add_subparsers()

    p_init = sub.add_parser("init", help="create or upgrade the database")
    p_init.set_defaults(func=cmd_init)

    p_up = sub.add_parser("upgrade", help="drop and recreate the apps table")
    p_up.set_defaults(func=cmd_upgrade)

    p_list = sub.add_parser("list", help="list hosted apps")
    p_list.set_defaults(func=cmd_list)

    p_add = sub.add_parser("add", help="add a hosted app")
    p_add.add_argument("--name", required=True)
    p_add.add_argument("--package", required=True)
    p_add.add_argument("--vendor", required=True)
    p_add.add_argument("--description", required=True)
    p_add.set_defaults(func=cmd_add)

    p_rm = sub.add_parser("remove", help="remove a hosted app by id")
    p_rm.add_argument("--id", required=True, type=int)
    p_rm.set_defaults(func=cmd_remove)
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING)
    if not hasattr(args, "func"):
        parser.print_help()
        return 1
    provider = create_provider(args.db)
    try:
        args.func(provider, args)
    except ProviderError as e:
        print(f"[ERROR] {e}", file=sys.stderr)
        return 2
    finally:
        provider.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
