#!/usr/bin/env python3
from __future__ import annotations

import argparse
import asyncio
import logging
import os

from laakhay.wiki import AuthenticationError, Wiki, WikiConfig


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Upload a local file in chunks")
    p.add_argument("path")
    p.add_argument("title", help="Target title, e.g. File:Example.png")
    p.add_argument("--domain", default="test.wikipedia.org")
    p.add_argument("--text", default="", help="Description page wikitext")
    p.add_argument("--summary", default="Uploaded with laakhay-wiki")
    return p.parse_args()


async def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    try:
        wiki = await Wiki.open(
            WikiConfig.for_domain(args.domain),
            username=os.environ["WIKI_USERNAME"],
            password=os.environ["WIKI_PASSWORD"],
        )
    except AuthenticationError as e:
        print(f"Login failed: {e}")
        return

    async with wiki:
        reply = await wiki.upload(args.path, args.title, args.text, args.summary)
        if reply.is_success:
            print(f"Uploaded {args.path} as {args.title}")
        elif reply.is_null_error:
            print("Upload abandoned, see log for details")
        else:
            print(f"Upload failed: {reply.raw()}")


if __name__ == "__main__":
    asyncio.run(main())
