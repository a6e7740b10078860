"""Shared fixtures for integration tests."""

import os

import pytest_asyncio

from laakhay.wiki import Wiki, WikiConfig

TEST_DOMAIN = os.environ.get("LAAKHAY_WIKI_DOMAIN", "test.wikipedia.org")


@pytest_asyncio.fixture
async def wiki():
    """Anonymous client against the public test wiki."""
    client = await Wiki.open(WikiConfig.for_domain(TEST_DOMAIN, user_agent="laakhay-wiki integration tests"))
    try:
        yield client
    finally:
        await client.close()
