"""CLI entry point for the pantry scanner."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import date

from dotenv import load_dotenv

from .config import load_config
from .db import SQLiteInventoryStore
from .dates import parse_first_date
from .ingest import ScanIngestPipeline
from .inventory import InventoryModel, ItemSummary
from .lookup import ProductLookupCache, create_catalog

_URGENCY_MARK = {"expired": "!!", "soon": "! ", "normal": "  "}


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="pantry-scan",
        description="Pantry inventory with barcode lookup and expiration tracking",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the config file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # list
    list_parser = sub.add_parser("list", help="List items, most recently updated first")
    list_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # search
    search_parser = sub.add_parser("search", help="Search by name, brand or barcode")
    search_parser.add_argument("query", type=str)
    search_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # parse-date
    date_parser = sub.add_parser("parse-date", help="Extract a date from label text")
    date_parser.add_argument("text", type=str)

    # lookup
    lookup_parser = sub.add_parser("lookup", help="Look up a barcode in the catalog")
    lookup_parser.add_argument("code", type=str)

    # ingest
    ingest_parser = sub.add_parser(
        "ingest", help="Build an item from JSON-line scan events and save it"
    )
    ingest_parser.add_argument(
        "file", nargs="?", default="-", help="Event file (default: stdin)"
    )
    ingest_parser.add_argument("--name", type=str, default=None)
    ingest_parser.add_argument("--brand", type=str, default=None)
    ingest_parser.add_argument("--size", type=str, default=None)
    ingest_parser.add_argument("--location", type=str, default=None)
    ingest_parser.add_argument("--quantity", type=int, default=None)
    ingest_parser.add_argument("--par", type=int, default=None, dest="par_level")

    # add-lot
    lot_parser = sub.add_parser("add-lot", help="Add a lot to an item")
    lot_parser.add_argument("item_id", type=str)
    lot_parser.add_argument(
        "--expires", type=str, default=None, help="Expiration date (any supported format)"
    )
    lot_parser.add_argument("--notes", type=str, default=None)

    # delete / delete-lot
    del_parser = sub.add_parser("delete", help="Delete an item and its lots")
    del_parser.add_argument("item_id", type=str)
    del_lot_parser = sub.add_parser("delete-lot", help="Delete a single lot")
    del_lot_parser.add_argument("lot_id", type=str)

    # watch
    sub.add_parser("watch", help="Run the scheduled expiry sweep")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    load_dotenv()
    config = load_config(args.config)

    match args.command:
        case "parse-date":
            _cmd_parse_date(args)
        case "lookup":
            asyncio.run(_cmd_lookup(config, args))
        case "watch":
            asyncio.run(_cmd_watch(config))
        case _:
            store = SQLiteInventoryStore(config.database.path)
            try:
                model = InventoryModel(store, soon_days=config.inventory.soon_days)
                model.load()
                match args.command:
                    case "list":
                        _print_items(model.snapshot(), args.json)
                    case "search":
                        matches = model.search(args.query)
                        _print_items([model.summarize(i) for i in matches], args.json)
                    case "ingest":
                        asyncio.run(_cmd_ingest(config, model, args))
                    case "add-lot":
                        _cmd_add_lot(model, args)
                    case "delete":
                        _cmd_delete(model, args)
                    case "delete-lot":
                        _cmd_delete_lot(model, args)
                _report_failed_writes(model)
            finally:
                store.close()


def _cmd_parse_date(args) -> None:
    found = parse_first_date(args.text)
    if found is None:
        print("No date found.", file=sys.stderr)
        sys.exit(1)
    print(found.isoformat())


async def _cmd_lookup(config, args) -> None:
    cache = ProductLookupCache(create_catalog(config))
    product = await cache.lookup(args.code)
    if product is None:
        print(f"No product found for {args.code}.", file=sys.stderr)
        sys.exit(1)
    print(
        json.dumps(
            {"name": product.name, "brand": product.brand, "size": product.size},
            ensure_ascii=False,
        )
    )


async def _cmd_ingest(config, model: InventoryModel, args) -> None:
    pipeline = ScanIngestPipeline(
        model,
        ProductLookupCache(create_catalog(config)),
        default_location=config.inventory.default_location,
    )

    stream = sys.stdin if args.file == "-" else open(args.file, encoding="utf-8")
    try:
        events = []
        for lineno, line in enumerate(stream, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError as e:
                print(f"Skipping line {lineno}: {e}", file=sys.stderr)
    finally:
        if stream is not sys.stdin:
            stream.close()

    await pipeline.run(events)

    edits = {
        k: getattr(args, k)
        for k in ("name", "brand", "size", "location", "quantity", "par_level")
        if getattr(args, k) is not None
    }
    try:
        if edits:
            pipeline.edit(**edits)
        item = pipeline.save()
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    print(f"Saved {item.id}: {model.summarize(item).name}")
    if item.lots:
        print(f"   Expires: {item.lots[0].expiration_date.isoformat()}")


def _cmd_add_lot(model: InventoryModel, args) -> None:
    item = model.get_item(args.item_id)
    if item is None:
        print(f"No item {args.item_id}.", file=sys.stderr)
        sys.exit(1)

    expires: date | None = None
    if args.expires:
        expires = parse_first_date(args.expires)
        if expires is None:
            print(f"Unrecognized date: {args.expires}", file=sys.stderr)
            sys.exit(1)

    lot = model.add_lot(item, expiration_date=expires, notes=args.notes)
    print(f"Added lot {lot.id}")


def _cmd_delete(model: InventoryModel, args) -> None:
    item = model.get_item(args.item_id)
    if item is None:
        print(f"No item {args.item_id}.", file=sys.stderr)
        sys.exit(1)
    model.delete_item(item)
    print(f"Deleted {args.item_id}")


def _cmd_delete_lot(model: InventoryModel, args) -> None:
    lot = model.find_lot(args.lot_id)
    if lot is None:
        print(f"No lot {args.lot_id}.", file=sys.stderr)
        sys.exit(1)
    model.delete_lot(lot)
    print(f"Deleted lot {args.lot_id}")


async def _cmd_watch(config) -> None:
    from .scheduler import ExpirySweepScheduler

    scheduler = ExpirySweepScheduler(config)
    scheduler.start()
    for job in scheduler.get_jobs():
        print(f"  {job['name']}: next run {job['next_run']}")
    try:
        await asyncio.Event().wait()
    finally:
        scheduler.stop()


def _report_failed_writes(model: InventoryModel) -> None:
    if model.failed_writes and model.retry_failed_writes():
        print(
            f"Warning: {len(model.failed_writes)} changes could not be saved.",
            file=sys.stderr,
        )


def _print_items(summaries: list[ItemSummary], as_json: bool) -> None:
    if as_json:
        data = [
            {
                "id": s.id,
                "name": s.name,
                "brand": s.brand,
                "size": s.size,
                "barcode": s.barcode,
                "location": s.location.value,
                "quantity": s.quantity,
                "par_level": s.par_level,
                "soonest_expiration": (
                    s.soonest_expiration.isoformat() if s.soonest_expiration else None
                ),
                "urgency": s.urgency.value if s.urgency else None,
                "low_stock": s.low_stock,
            }
            for s in summaries
        ]
        print(json.dumps(data, ensure_ascii=False, indent=2))
        return

    if not summaries:
        print("No items.")
        return
    for s in summaries:
        mark = _URGENCY_MARK[s.urgency.value] if s.urgency else "  "
        expires = (
            f"expires {s.soonest_expiration.isoformat()}"
            if s.soonest_expiration
            else "no expiration set"
        )
        low = "  [Low]" if s.low_stock else ""
        details = " ".join(x for x in (s.brand, s.size) if x)
        print(f"{mark} {s.name:<24} {details:<20} qty {s.quantity:<3} {expires}{low}")
        print(f"     {s.id}  {s.location.value}")

