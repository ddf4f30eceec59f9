"""Signals for views made stale by a committed mutation.

The services never refresh anything themselves; they describe which logical
views changed and hand that description to a hook owned by the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StaleViews:
    """Logical views that must be refreshed after a mutation."""

    modes: frozenset[str] = field(default_factory=frozenset)
    communities: frozenset[str] = field(default_factory=frozenset)
    post_ids: frozenset[int] = field(default_factory=frozenset)

    @classmethod
    def of(
        cls,
        *,
        modes: Iterable[str] = (),
        communities: Iterable[str] = (),
        post_ids: Iterable[int] = (),
    ) -> StaleViews:
        return cls(frozenset(modes), frozenset(communities), frozenset(post_ids))

    def __bool__(self) -> bool:
        return bool(self.modes or self.communities or self.post_ids)


InvalidationHook = Callable[[StaleViews], None]


def log_stale_views(stale: StaleViews) -> None:
    """Default hook: record the stale views and do nothing else."""
    logger.debug(
        "Stale views: modes=%s communities=%s posts=%s",
        sorted(stale.modes),
        sorted(stale.communities),
        sorted(stale.post_ids),
    )


def notify(hook: InvalidationHook | None, stale: StaleViews) -> None:
    """Deliver ``stale`` to ``hook`` if one is configured."""
    if hook is None or not stale:
        return
    hook(stale)
