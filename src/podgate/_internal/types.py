"""Shared type aliases used across podgate modules."""

from collections.abc import Callable
from typing import Any, TypeAlias

# Business handler, called as handler(ctx, request)
Handler: TypeAlias = Callable[..., Any]
