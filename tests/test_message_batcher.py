from __future__ import annotations

import asyncio
import logging

import pytest

from conftest import GROUP_ID, make_message
from triprelay.application.use_cases.message_batcher import GLOBAL_SESSION_KEY, BatchScope, MessageBatcher
from triprelay.domain.entities.batch import Batch


class Recorder:
    def __init__(self) -> None:
        self.batches: list[Batch] = []

    async def __call__(self, batch: Batch) -> None:
        self.batches.append(batch)


@pytest.mark.asyncio
async def test_messages_in_one_window_form_one_ordered_batch(timer):
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=10000, sleep=timer.sleep)

    sent = [make_message(text) for text in ("goa?", "or manali", "march works")]
    for message in sent:
        batcher.add(message)
    await timer.settle()

    assert batcher.is_collecting(GROUP_ID)
    assert batcher.pending(GROUP_ID) == 3
    assert recorder.batches == []

    await timer.fire()
    await batcher.join()

    assert len(recorder.batches) == 1
    assert recorder.batches[0].chat_id == GROUP_ID
    assert list(recorder.batches[0].messages) == sent
    assert not batcher.is_collecting(GROUP_ID)
    assert batcher.pending(GROUP_ID) == 0


@pytest.mark.asyncio
async def test_later_messages_do_not_restart_the_timer(timer):
    batcher = MessageBatcher(on_batch=Recorder(), window_ms=10000, sleep=timer.sleep)

    batcher.add(make_message("one"))
    await timer.settle()
    batcher.add(make_message("two"))
    await timer.settle()
    batcher.add(make_message("three"))
    await timer.settle()

    assert timer.requested == [10.0]
    assert timer.armed == 1

    await timer.fire()
    await batcher.join()


@pytest.mark.asyncio
async def test_each_window_is_delivered_once(timer):
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=10000, sleep=timer.sleep)

    batcher.add(make_message("first window"))
    await timer.fire()
    await batcher.join()

    batcher.add(make_message("second window"))
    await timer.fire()
    await batcher.join()

    assert [[m.text for m in b.messages] for b in recorder.batches] == [["first window"], ["second window"]]
    assert timer.requested == [10.0, 10.0]


@pytest.mark.asyncio
async def test_messages_during_a_cycle_wait_for_the_next_window(timer):
    release = asyncio.Event()
    batches: list[Batch] = []

    async def slow_handler(batch: Batch) -> None:
        batches.append(batch)
        await release.wait()

    batcher = MessageBatcher(on_batch=slow_handler, window_ms=10000, sleep=timer.sleep)
    batcher.add(make_message("a"))
    await timer.fire()

    assert len(batches) == 1
    batcher.add(make_message("b"))
    await timer.settle()

    # Cycle still in flight: no second timer yet.
    assert timer.armed == 0
    assert batcher.pending(GROUP_ID) == 1

    release.set()
    await timer.settle()
    assert timer.armed == 1

    await timer.fire()
    await batcher.join()
    assert [[m.text for m in b.messages] for b in batches] == [["a"], ["b"]]


@pytest.mark.asyncio
async def test_handler_failure_returns_session_to_idle(timer, caplog):
    async def failing_handler(batch: Batch) -> None:
        raise RuntimeError("boom")

    batcher = MessageBatcher(on_batch=failing_handler, window_ms=10000, sleep=timer.sleep)
    batcher.add(make_message("a"))

    with caplog.at_level(logging.ERROR):
        await timer.fire()
        await batcher.join()

    assert not batcher.is_collecting(GROUP_ID)
    assert any(getattr(r, "event", None) == "batch_failed" for r in caplog.records)


@pytest.mark.asyncio
async def test_chats_are_batched_independently(timer):
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=10000, sleep=timer.sleep)

    batcher.add(make_message("hi from a", chat_id="a@g.us"))
    batcher.add(make_message("hi from b", chat_id="b@g.us"))
    batcher.add(make_message("again a", chat_id="a@g.us"))
    await timer.settle()

    assert sorted(batcher.active_sessions()) == ["a@g.us", "b@g.us"]
    assert timer.armed == 2

    await timer.fire()
    await batcher.join()

    by_chat = {b.chat_id: [m.text for m in b.messages] for b in recorder.batches}
    assert by_chat == {"a@g.us": ["hi from a", "again a"], "b@g.us": ["hi from b"]}


@pytest.mark.asyncio
async def test_direct_messages_are_ignored_per_chat(timer):
    batcher = MessageBatcher(on_batch=Recorder(), window_ms=10000, sleep=timer.sleep)

    assert batcher.add(make_message("dm", chat_id="919000000001@c.us", is_group=False)) is False
    assert batcher.active_sessions() == []


@pytest.mark.asyncio
async def test_global_scope_shares_one_window_and_targets_last_group(timer):
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=10000, scope="global", sleep=timer.sleep)

    batcher.add(make_message("from a", chat_id="a@g.us"))
    batcher.add(make_message("dm", chat_id="x@c.us", is_group=False))
    batcher.add(make_message("from b", chat_id="b@g.us"))
    await timer.settle()

    assert batcher.scope is BatchScope.global_
    assert batcher.active_sessions() == [GLOBAL_SESSION_KEY]
    assert batcher.pending("anything") == 3
    assert timer.armed == 1

    await timer.fire()
    await batcher.join()

    assert len(recorder.batches) == 1
    assert recorder.batches[0].chat_id == "b@g.us"
    assert [m.text for m in recorder.batches[0].messages] == ["from a", "dm", "from b"]


@pytest.mark.asyncio
async def test_global_scope_without_group_skips_batch(timer, caplog):
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=10000, scope="global", sleep=timer.sleep)

    batcher.add(make_message("dm", chat_id="x@c.us", is_group=False))
    with caplog.at_level(logging.WARNING):
        await timer.fire()
        await batcher.join()

    assert recorder.batches == []
    assert any(getattr(r, "event", None) == "batch_without_target" for r in caplog.records)


@pytest.mark.asyncio
async def test_aclose_cancels_open_windows(timer):
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=10000, sleep=timer.sleep)

    batcher.add(make_message("never sent"))
    await timer.settle()
    await batcher.aclose()

    assert batcher.active_sessions() == []
    assert recorder.batches == []


@pytest.mark.asyncio
async def test_real_timer_fires_after_window():
    recorder = Recorder()
    batcher = MessageBatcher(on_batch=recorder, window_ms=20)

    batcher.add(make_message("a"))
    batcher.add(make_message("b"))
    await asyncio.wait_for(batcher.join(), timeout=2)

    assert [len(b) for b in recorder.batches] == [2]


def test_unknown_scope_is_rejected():
    with pytest.raises(ValueError):
        MessageBatcher(on_batch=Recorder(), scope="per-user")
