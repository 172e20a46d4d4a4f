"""Command-line access to printer discovery and printing."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from .base_driver import PrintSettings
from .config import PipelineConfig
from .dispatcher import PrintDispatcher
from .logging_setup import setup_logging
from .products import ProductCatalog


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="printprep", description=__doc__)
    parser.add_argument("--products", help="product config JSON (paperSizes, defaultTrayMapping)")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("printers", help="list usable printers")
    sub.add_parser("default", help="show the default printer")

    caps = sub.add_parser("caps", help="show printer capabilities")
    caps.add_argument("printer")

    tray = sub.add_parser("tray", help="recommend a tray for a paper size in mm")
    tray.add_argument("width", type=float)
    tray.add_argument("height", type=float)

    job = sub.add_parser("print", help="crop and print a PDF")
    job.add_argument("file")
    job.add_argument("--printer")
    job.add_argument("--tray")
    job.add_argument("--copies", type=int, default=1)
    job.add_argument("--rotation", type=int, default=0, choices=(0, 90, 180, 270))
    job.add_argument("--duplex", default="", choices=("", "none", "long", "short"))
    job.add_argument("--color", default="color", choices=("color", "gray"))
    job.add_argument("--media-type")
    job.add_argument("--offset-x", type=float, default=0.0, help="mm")
    job.add_argument("--offset-y", type=float, default=0.0, help="mm")
    job.add_argument("--product")
    job.add_argument("--pages")
    return parser


async def _run(args: argparse.Namespace, dispatcher: PrintDispatcher) -> int:
    if args.command == "printers":
        printers = await dispatcher.list_printers()
        print(json.dumps([p.to_dict() for p in printers], indent=2))
        return 0
    if args.command == "default":
        print(json.dumps(await dispatcher.get_default_printer()))
        return 0
    if args.command == "caps":
        capabilities = await dispatcher.get_capabilities(args.printer)
        print(json.dumps(capabilities.to_dict(), indent=2))
        return 0
    if args.command == "tray":
        print(json.dumps(dispatcher.recommend_tray(args.width, args.height)))
        return 0

    settings = PrintSettings(
        printer_name=args.printer,
        tray=args.tray,
        copies=args.copies,
        rotation=args.rotation,
        duplex=args.duplex,
        color=args.color,
        media_type=args.media_type,
        offset_x=args.offset_x,
        offset_y=args.offset_y,
        product_key=args.product,
        pages=args.pages,
    )
    result = await dispatcher.print_pdf(args.file, settings)
    print(json.dumps(result.to_dict()))
    return 0 if result.success else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    products = ProductCatalog.from_json_file(args.products) if args.products else ProductCatalog()
    dispatcher = PrintDispatcher(products=products, config=PipelineConfig.from_env())
    return asyncio.run(_run(args, dispatcher))


if __name__ == "__main__":
    sys.exit(main())
