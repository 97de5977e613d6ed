"""Maintain the device registry the poller reads from.

Usage:
    python -m windowalert.devices list
    python -m windowalert.devices add <external-id> <name> [--alert]
    python -m windowalert.devices alert <external-id> on|off
"""

import argparse
import asyncio
import sys

from windowalert.lib.config import validate_database_config
from windowalert.lib.db import Store
from windowalert.lib.exceptions import DatabaseError, WindowAlertError
from windowalert.logging import configure, get_logger

logger = get_logger("devices")


async def _list(store: Store, _args: argparse.Namespace) -> int:
    for device in await store.list_devices():
        alert = "on" if device.alert_enabled else "off"
        print(f"{device.id}\t{device.external_id}\t{device.name}\talert={alert}")
    return 0


async def _add(store: Store, args: argparse.Namespace) -> int:
    device = await store.add_device(args.external_id, args.name, args.alert)
    print(f"Added {device.name} ({device.external_id}) as #{device.id}")
    return 0


async def _alert(store: Store, args: argparse.Namespace) -> int:
    enabled = args.state == "on"
    if not await store.set_alert(args.external_id, enabled):
        logger.error("No device registered as %s", args.external_id)
        return 1
    print(f"Alerts {args.state} for {args.external_id}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--db-path", help="SQLite database file (defaults to DB_PATH)"
    )
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="List registered devices").set_defaults(
        handler=_list
    )

    add = commands.add_parser("add", help="Register a device")
    add.add_argument("external_id", help="Device id used by the measurement API")
    add.add_argument("name", help="Room name used in notifications")
    add.add_argument(
        "--alert", action="store_true", help="Enable open-window alerts"
    )
    add.set_defaults(handler=_add)

    alert = commands.add_parser("alert", help="Toggle open-window alerts")
    alert.add_argument("external_id")
    alert.add_argument("state", choices=("on", "off"))
    alert.set_defaults(handler=_alert)

    return parser


async def run(args: argparse.Namespace) -> int:
    if args.db_path:
        store = Store.from_path(args.db_path)
    else:
        db = validate_database_config()
        store = Store.from_path(db.db_path, timeout_sec=db.db_timeout_sec)
    async with store:
        await store.initialize()
        return await args.handler(store, args)


def main(argv: list[str] | None = None) -> int:
    configure()
    args = build_parser().parse_args(argv)
    try:
        return asyncio.run(run(args))
    except DatabaseError as e:
        logger.error("Database error: %s", e)
        return 1
    except WindowAlertError as e:
        logger.critical("%s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
