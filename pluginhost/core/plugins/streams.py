from __future__ import annotations

"""
Small asyncio stream toolkit used by plugin discovery.

- Channel: replayable, multicast async stream. Every subscriber sees every item
  from the start; the producer runs once.
- merge: interleave several async iterables as items arrive.
- distinct: drop items whose key was already seen (first arrival wins).
"""

import asyncio
import inspect
from typing import Any, AsyncIterable, AsyncIterator, Callable, Generic, Hashable, List, Optional, Set, TypeVar

T = TypeVar("T")

_ITEM = "item"
_DONE = "done"
_FAILED = "failed"


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class Channel(Generic[T]):
    """
    One output channel of a pipeline.

    `on_subscribe` is called every time someone starts iterating; the owner uses
    it to lazily start the shared producer.
    """

    def __init__(self, name: str, *, on_subscribe: Optional[Callable[[], None]] = None):
        self.name = str(name)
        self._on_subscribe = on_subscribe
        self._items: List[T] = []
        self._closed = False
        self._error: Optional[BaseException] = None
        self._waiters: List[asyncio.Future] = []

    def __repr__(self) -> str:
        state = "failed" if self._error is not None else ("closed" if self._closed else "open")
        return f"Channel({self.name!r}, items={len(self._items)}, {state})"

    # ---- producer side ----
    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, item: T) -> None:
        if self._closed:
            raise RuntimeError(f"channel {self.name} is closed")
        self._items.append(item)
        self._wake()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._wake()

    def fail(self, error: BaseException) -> None:
        if self._closed:
            return
        self._error = error
        self._closed = True
        self._wake()

    def _wake(self) -> None:
        waiters, self._waiters = self._waiters, []
        for fut in waiters:
            # a subscriber from an earlier, already closed event loop cannot be woken
            if not fut.done() and not fut.get_loop().is_closed():
                fut.set_result(None)

    # ---- consumer side ----
    def __aiter__(self) -> AsyncIterator[T]:
        if self._on_subscribe is not None:
            self._on_subscribe()
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[T]:
        index = 0
        while True:
            if index < len(self._items):
                item = self._items[index]
                index += 1
                yield item
                continue
            if self._error is not None:
                raise self._error
            if self._closed:
                return
            fut = asyncio.get_running_loop().create_future()
            self._waiters.append(fut)
            await fut

    async def collect(self) -> List[T]:
        return [item async for item in self]

    async def last(self) -> T:
        items = await self.collect()
        if not items:
            raise LookupError(f"channel {self.name} completed without emitting")
        return items[-1]


async def _pump(source: AsyncIterable[T], queue: asyncio.Queue) -> None:
    try:
        async for item in source:
            await queue.put((_ITEM, item))
    except Exception as e:  # noqa: BLE001
        await queue.put((_FAILED, e))
        return
    await queue.put((_DONE, None))


async def merge(*sources: AsyncIterable[T]) -> AsyncIterator[T]:
    if not sources:
        return
    queue: asyncio.Queue = asyncio.Queue()
    tasks = [asyncio.ensure_future(_pump(src, queue)) for src in sources]
    remaining = len(tasks)
    try:
        while remaining:
            kind, value = await queue.get()
            if kind == _DONE:
                remaining -= 1
            elif kind == _FAILED:
                raise value
            else:
                yield value
    finally:
        for task in tasks:
            task.cancel()


async def distinct(source: AsyncIterable[T], key_fn: Callable[[T], Any]) -> AsyncIterator[T]:
    seen: Set[Hashable] = set()
    async for item in source:
        key = await maybe_await(key_fn(item))
        if key in seen:
            continue
        seen.add(key)
        yield item
