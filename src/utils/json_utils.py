"""JSON serialization helpers for tool payloads."""

from __future__ import annotations

import json

from collections.abc import Callable
from functools import partial

# Compact JSON with str() fallback for values json cannot encode.
# Used when tool arguments or outputs arrive as structured objects.
json_compact: Callable[..., str] = partial(json.dumps, separators=(",", ":"), default=str)
