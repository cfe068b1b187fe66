#!/usr/bin/env python3
"""
Interactive local chat harness (no HTTP server, no chat gateway).

Usage:
  python3 scripts/chat_local.py [--window-ms 3000] [--group demo@g.us]

What it does:
- Feeds typed lines through the real batcher and batch pipeline
- Uses the in-memory chat platform and prints what would be posted
- Talks to the orchestrator configured in .env (ORCHESTRATOR_PROVIDER=mock works offline)

Prefix a line with "name:" to speak as another member, e.g. "asha: goa in march?"
"""
from __future__ import annotations

import argparse
import asyncio
import sys
import time
import uuid
from pathlib import Path
from zoneinfo import ZoneInfo

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from triprelay.application.services.state_store import StateStore
from triprelay.application.use_cases.apply_response import ApplyResponseUseCase
from triprelay.application.use_cases.build_payload import PayloadBuilder
from triprelay.application.use_cases.handle_incoming_message import HandleIncomingMessageUseCase
from triprelay.application.use_cases.message_batcher import MessageBatcher
from triprelay.application.use_cases.process_batch import ProcessBatchUseCase
from triprelay.core.config import settings
from triprelay.domain.entities.message import ChatMessage
from triprelay.infrastructure.chat.mock_platform import MockChatPlatform
from triprelay.wiring.dependencies import get_orchestrator, get_record_store


def _print_header(group_id: str, window_ms: int) -> None:
    print("\nLocal Chat Harness")
    print("-" * 60)
    print(f"group_id: {group_id}   window: {window_ms} ms")
    print("Type messages and press Enter. Commands: /wait, /quit, /help")
    print("-" * 60)


def _parse_line(line: str, default_sender: str) -> tuple[str, str]:
    if ":" in line and not line.startswith("http"):
        name, text = line.split(":", 1)
        if name.strip() and " " not in name.strip():
            return name.strip(), text.strip()
    return default_sender, line


async def _read_line(prompt: str) -> str:
    return await asyncio.to_thread(input, prompt)


async def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument("--window-ms", type=int, default=settings.BATCH_WINDOW_MS)
    parser.add_argument("--group", default="local-demo@g.us")
    parser.add_argument("--me", default="you")
    args = parser.parse_args()

    platform = MockChatPlatform(self_id=settings.SELF_ID)
    store = StateStore(records=get_record_store(), name_overrides=settings.MEMBER_NAME_OVERRIDES)
    orchestrator = get_orchestrator()
    process_batch = ProcessBatchUseCase(
        store=store,
        platform=platform,
        builder=PayloadBuilder(timezone=ZoneInfo(settings.TIMEZONE), include_chat_id=settings.INCLUDE_CHAT_ID),
        orchestrator=orchestrator,
        apply_response=ApplyResponseUseCase(store=store, platform=platform),
    )

    async def on_batch(batch):
        print(f"\n[batch] {len(batch.messages)} message(s) -> orchestrator")
        sent_before = len(platform.sent)
        await process_batch.execute(batch)
        for chat_id, text in platform.sent[sent_before:]:
            print(f"[reply to {chat_id}] {text}")
        if len(platform.sent) == sent_before:
            print("[no reply]")

    batcher = MessageBatcher(on_batch=on_batch, window_ms=args.window_ms, scope="chat")
    handler = HandleIncomingMessageUseCase(batcher=batcher, name_overrides=settings.MEMBER_NAME_OVERRIDES)

    _print_header(args.group, args.window_ms)
    try:
        while True:
            try:
                line = (await _read_line("> ")).strip()
            except EOFError:
                break
            if not line:
                continue
            if line == "/quit":
                break
            if line == "/help":
                _print_header(args.group, args.window_ms)
                continue
            if line == "/wait":
                await batcher.join()
                continue

            sender, text = _parse_line(line, args.me)
            sender_id = f"{sender.lower()}@c.us"
            platform.ensure_participant(args.group, sender_id, username=sender)
            handler.handle(
                ChatMessage(
                    id=uuid.uuid4().hex,
                    chat_id=args.group,
                    sender_id=sender_id,
                    sender_name=sender,
                    text=text,
                    timestamp=int(time.time()),
                    is_group=True,
                )
            )
        await batcher.join()
    finally:
        await batcher.aclose()
        await orchestrator.aclose()


if __name__ == "__main__":
    asyncio.run(main())
