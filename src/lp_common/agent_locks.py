"""Per-agent in-process mutual exclusion.

Trading and graduation share one registry so a graduate() call and a trade on
the same agent can never interleave inside this process. Cross-process safety
comes from the ``SELECT … FOR UPDATE`` and version checks in the repositories.
"""

import asyncio
from collections import defaultdict


class AgentLockRegistry:
    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def get(self, agent_id: str) -> asyncio.Lock:
        return self._locks[agent_id]

    def __len__(self) -> int:
        return len(self._locks)


_registry: AgentLockRegistry | None = None


def get_agent_locks() -> AgentLockRegistry:
    global _registry  # noqa: PLW0603
    if _registry is None:
        _registry = AgentLockRegistry()
    return _registry
