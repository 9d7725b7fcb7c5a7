"""Test helpers shared across workmode tests."""

import asyncio
from pathlib import Path

from workmode.core.workspace import Workspace


class FakeClock:
    """Manually advanced clock for stopwatch tests."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


async def idle_source():
    """Change source that never reports anything."""
    await asyncio.Event().wait()
    yield set()


def write_file(workspace: Workspace, rel: str, content: str | bytes) -> Path:
    """Create a file inside the workspace, parents included."""
    path = workspace.root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, str):
        path.write_text(content, encoding="utf-8")
    else:
        path.write_bytes(content)
    return path


async def wait_until(predicate, attempts=500, step=0.01):
    """Poll predicate until it holds, yielding to the event loop between tries."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(step)
    raise AssertionError("condition not reached")
