"""Synchronous driver for the async database layer."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine, TypeVar

T = TypeVar("T")


class LoopRunner:
    """Owns a private event loop and runs coroutines on it to completion."""

    def __init__(self) -> None:
        self._loop = asyncio.new_event_loop()

    @property
    def closed(self) -> bool:
        return self._loop.is_closed()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        if self._loop.is_closed():
            coro.close()
            raise RuntimeError("LoopRunner is closed.")
        return self._loop.run_until_complete(coro)

    def close(self) -> None:
        """Shut down async generators and close the loop."""

        if self._loop.is_closed():
            return
        try:
            self._loop.run_until_complete(self._loop.shutdown_asyncgens())
        finally:
            self._loop.close()


__all__ = ["LoopRunner"]
