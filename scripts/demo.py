#!/usr/bin/env python3
"""
Demo script for the prompt catalog.

Runs a sync against the configured Feishu table, reads the catalog back
through the cache, and optionally replays a signed (and, if an encrypt key
is configured, encrypted) record-changed event against a running server.

Usage:
    python scripts/demo.py
    python scripts/demo.py --webhook http://localhost:8000/api/webhook/feishu
"""

import argparse
import asyncio
import json
import os
import time
import uuid

import httpx

from prompt_catalog import (
    BackgroundTaskRunner,
    CatalogService,
    FeishuBitableSource,
    MemoryCatalogRepository,
    SyncService,
    settings,
)
from prompt_catalog.services.webhook_crypto import (
    BITABLE_RECORD_CHANGED,
    compute_signature,
    encrypt_event,
)


def print_section(title: str) -> None:
    """Print a section header."""
    print("\n" + "=" * 70)
    print(f"  {title}")
    print("=" * 70)


async def demo_sync_and_read() -> None:
    """Sync into a memory store, then serve the catalog from it."""
    print_section("Sync and Read")

    source = FeishuBitableSource.create()
    store = MemoryCatalogRepository.create()
    runner = BackgroundTaskRunner()

    try:
        print(f"\n⏱  Stale before sync: {await store.is_stale()}")

        result = await SyncService(source=source, store=store).sync()
        if not result.success:
            print(f"  ✗ Sync failed: {result.error}")
            return
        print(f"  ✓ Synced {result.prompt_count} prompts, {result.category_count} categories")
        print(f"⏱  Stale after sync: {await store.is_stale()}")

        catalog = await CatalogService(source=source, store=store, runner=runner).get_prompts()
        print(f"\n📚 Served from cache: {catalog.from_cache}")
        print(f"  Categories: {', '.join(catalog.categories) or '(none)'}")
        for prompt in catalog.prompts[:5]:
            print(f"  • [{prompt.category or '-'}] {prompt.title}")
    finally:
        await runner.drain()
        await source.close()


async def demo_webhook(url: str) -> None:
    """Post a record-changed event to a running server."""
    print_section("Webhook Replay")

    event = {
        "schema": "2.0",
        "header": {
            "event_id": uuid.uuid4().hex,
            "event_type": BITABLE_RECORD_CHANGED,
            "create_time": str(int(time.time() * 1000)),
            "token": settings.feishu_verification_token,
        },
        "event": {"table_id": settings.feishu_webhook_table_id, "action_list": []},
    }
    body = json.dumps(event)
    if settings.feishu_encrypt_key:
        body = json.dumps({"encrypt": encrypt_event(body, settings.feishu_encrypt_key, os.urandom(16))})

    headers = {"Content-Type": "application/json"}
    if settings.feishu_encrypt_key:
        timestamp, nonce = str(int(time.time())), uuid.uuid4().hex
        headers.update(
            {
                "X-Lark-Request-Timestamp": timestamp,
                "X-Lark-Request-Nonce": nonce,
                "X-Lark-Signature": compute_signature(timestamp, nonce, settings.feishu_encrypt_key, body),
            }
        )

    async with httpx.AsyncClient(timeout=10) as client:
        for attempt in (1, 2):
            response = await client.post(url, content=body, headers=headers)
            print(f"  Delivery {attempt}: {response.status_code} {response.json()}")
    print("  (the second delivery is a replay and must not trigger another sync)")


async def main() -> None:
    """Run all demos."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--webhook", help="Webhook URL of a running server")
    args = parser.parse_args()

    print("\n🚀 Prompt Catalog Demo")
    print("=" * 70)

    try:
        await demo_sync_and_read()
        if args.webhook:
            await demo_webhook(args.webhook)

        print("\n" + "=" * 70)
        print("✅ Demo completed successfully!")
        print("=" * 70)

    except Exception as e:
        print(f"\n❌ Error: {e}")
        print("\nMake sure the FEISHU_* variables are set (see .env.example).")


if __name__ == "__main__":
    asyncio.run(main())
