"""Shared helpers."""

from __future__ import annotations

import inspect
from typing import Any


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Overlay override onto base and return a new dict.

    Nested dicts merge key by key. Everything else, lists included, is
    replaced, so a local ``cors.origin: []`` clears a global allow-list.
    Neither input is modified.
    """
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


async def maybe_await(value: Any) -> Any:
    """Await value if it is awaitable, otherwise return it unchanged.

    Authorizers and peer resources may be plain or coroutine functions.
    """
    if inspect.isawaitable(value):
        return await value
    return value
