"""Shared fixtures for unit tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest

from laakhay.query import reset_global_options


class ControlledService:
    """Fake async service whose calls settle only when the test says so.

    Every call records its params and waits on a fresh future, so tests
    decide the completion order of overlapping runs explicitly.
    """

    def __init__(self) -> None:
        self.calls: list[tuple[Any, ...]] = []
        self.futures: list[asyncio.Future[Any]] = []

    async def __call__(self, *params: Any) -> Any:
        future = asyncio.get_running_loop().create_future()
        self.calls.append(params)
        self.futures.append(future)
        return await future

    def resolve(self, index: int, value: Any) -> None:
        self.futures[index].set_result(value)

    def reject(self, index: int, error: Exception) -> None:
        self.futures[index].set_exception(error)


async def _flush() -> None:
    # Let scheduled tasks start and resumed tasks run to completion
    for _ in range(10):
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def _reset_options():
    reset_global_options()
    yield
    reset_global_options()


@pytest.fixture
def service() -> ControlledService:
    return ControlledService()


@pytest.fixture
def flush():
    return _flush
