#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from laakhay.wiki import Wiki, WikiConfig


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="List the members of a category")
    p.add_argument("category", nargs="?", default="Category:Physics")
    p.add_argument("domain", nargs="?", default="en.wikipedia.org")
    p.add_argument("--namespace", type=int, action="append", help="Restrict to namespace (repeatable)")
    p.add_argument("--verbose", action="store_true")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    async with await Wiki.open(WikiConfig.for_domain(args.domain)) as wiki:
        members = await wiki.category_members(args.category, namespaces=args.namespace)
        print("=" * 65)
        print(f"Wiki      : {wiki}")
        print(f"Category  : {args.category}")
        print(f"Members   : {len(members)}")
        print("=" * 65)
        for title in members:
            print(title)


if __name__ == "__main__":
    asyncio.run(main())
