from __future__ import annotations

import argparse
import logging
import sys

from bistro.config import AIConfig, settings
from bistro.constants import LANGUAGES
from bistro.db import sqlite as db
from bistro.services import ai

logger = logging.getLogger("bistro.cli")


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(prog="bistro-translate", description="Translate menu products with the AI provider")
    parser.add_argument("--debug", help="Enable debug logging", action="store_true")
    sub = parser.add_subparsers(dest="command", required=True)

    one = sub.add_parser("product", help="Translate a single product")
    one.add_argument("product_id", type=int)
    one.add_argument("--to", dest="target", choices=sorted(LANGUAGES), default="he")

    every = sub.add_parser("all", help="Translate every product missing the target language")
    every.add_argument("--to", dest="target", choices=sorted(LANGUAGES), default="he")

    return parser.parse_args(argv)


def _translate_one(config: AIConfig, client, product_id: int, target: str) -> int:
    product = db.get_product(product_id)
    if not product:
        print(f"Error: product {product_id} not found", file=sys.stderr)
        return 1
    if product["language"] == target:
        print(f"Error: product is already in {target} language", file=sys.stderr)
        return 1

    res = ai.translate_product(config, client, product, target)
    if not res.success:
        print(f"Error: {res.error}", file=sys.stderr)
        return 1

    action = "created" if res.data["created"] else "updated"
    print(f"Successfully {action} {target} translation for product {product_id}")
    print(f'Original ({product["language"]}): "{res.data["original"]["name"]}"')
    print(f'Translated ({target}): "{res.data["translated"]["name"]}"')
    if res.data["original"]["description"]:
        print(f'\nOriginal description: "{res.data["original"]["description"]}"')
        print(f'Translated description: "{res.data["translated"]["description"]}"')
    return 0


def _translate_all(config: AIConfig, client, target: str) -> int:
    print(f"Generating {LANGUAGES[target]} translations for all products...")
    res = ai.generate_product_translations(config, client, target)
    if not res.success:
        print(f"Error: {res.error}", file=sys.stderr)
        return 1

    summary = res.data
    print(f"Total products: {summary['total']}")
    print(f"Successfully translated: {summary['translated']}")
    print(f"Failed: {summary['failed']}")
    for i, d in enumerate(summary["details"], start=1):
        print(f"\n[{i}] Product ID: {d['id']}")
        if d["success"]:
            print(f'  Original name: "{d["original"]["name"]}"')
            print(f'  Translated name: "{d["translated"]["name"]}"')
        else:
            print(f"  Error: {d['error']}")
    return 0 if summary["failed"] == 0 else 1


def main(argv=None, client=None) -> int:
    args = parse_arguments(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.debug else settings.log_level,
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )

    config = AIConfig.from_settings(settings)
    if not config.configured:
        print(f"Error: {ai.NOT_CONFIGURED}", file=sys.stderr)
        return 1

    db.init_db()
    client = client or ai.make_client(config)

    if args.command == "product":
        return _translate_one(config, client, args.product_id, args.target)
    return _translate_all(config, client, args.target)


if __name__ == "__main__":
    sys.exit(main())
