#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging

from laakhay.wiki import Wiki, WikiConfig


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Summarize one page: categories, links, templates")
    p.add_argument("title", nargs="?", default="Python (programming language)")
    p.add_argument("domain", nargs="?", default="en.wikipedia.org")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    async with await Wiki.open(WikiConfig.for_domain(args.domain)) as wiki:
        if not await wiki.exists(args.title):
            print(f"{args.title} does not exist on {args.domain}")
            return

        target = (await wiki.resolve_redirects([args.title]))[args.title]
        text = await wiki.page_text(target)
        categories = await wiki.categories_on_page(target)
        links = await wiki.links_on_page(target, namespaces=[0])
        used = await wiki.templates_on_page(target)

        print("=" * 65)
        print(f"Title      : {target}")
        print(f"Wikitext   : {len(text)} characters")
        print(f"Categories : {len(categories)}")
        print(f"Links      : {len(links)}")
        print(f"Templates  : {len(used)}")
        print("=" * 65)
        for category in categories:
            print(category)


if __name__ == "__main__":
    asyncio.run(main())
