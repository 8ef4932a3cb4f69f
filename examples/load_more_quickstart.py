#!/usr/bin/env python3
"""Quickstart for the LoadMore overlay against an in-process paginated service."""

from __future__ import annotations

import argparse
import asyncio
import logging
import random

from laakhay.query import OptionsScope, PageContext, create_load_more


def parse_args() -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Page through a fake search API with LoadMore")
    p.add_argument("query", nargs="?", default="btc")
    p.add_argument("--total", type=int, default=12, help="Items available on the server")
    p.add_argument("--page-size", type=int, default=5)
    p.add_argument("--debug", action="store_true", help="Show query lifecycle logs")
    return p.parse_args()


def make_service(total: int, page_size: int):
    items = [f"item-{i}" for i in range(total)]

    async def search(context: PageContext | None, query: str) -> dict:
        offset = context.data["next_offset"] if context else 0
        # Simulate network latency
        await asyncio.sleep(random.uniform(0.05, 0.2))
        rows = [f"{query}:{item}" for item in items[offset : offset + page_size]]
        next_offset = offset + len(rows)
        return {
            "page": {"rows": rows},
            "next_offset": next_offset,
            "has_more": next_offset < total,
        }

    return search


async def main() -> None:
    args = parse_args()
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s %(message)s")

    scope = OptionsScope(list_key="page.rows")

    feed = create_load_more(
        make_service(args.total, args.page_size),
        scope=scope,
        is_no_more=lambda data: data is not None and not data["has_more"],
        on_error=lambda error, params: print(f"ERROR {error!r}"),
        name="search",
    )
    feed.subscribe(
        lambda change: print(f"  {change.field}: {change.previous!r} -> {change.value!r}"),
        fields=["loading_more", "refreshing", "reloading", "no_more"],
    )

    # First page
    await feed.run_async(None, args.query)
    print(f"page 1: {len(feed.data_list)} items")

    # Page until the server reports no more rows
    while not feed.no_more:
        feed.load_more()
        while feed.loading:
            await asyncio.sleep(0.01)
        print(f"loaded: {len(feed.data_list)} items, no_more={feed.no_more}")

    # Refresh replaces the list once the new first page arrives
    await feed.refresh_async()
    print(f"after refresh: {feed.data_list}")

    # Reload clears immediately
    feed.reload()
    print(f"during reload: {feed.data_list}")
    while feed.loading:
        await asyncio.sleep(0.01)
    print(f"after reload: {len(feed.data_list)} items")


if __name__ == "__main__":
    asyncio.run(main())
