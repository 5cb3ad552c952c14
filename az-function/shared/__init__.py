"""Shared utilities for the linkding CORS relay.

Currently exposes:
    handle - relay one request (method, url, headers) to its ``url`` target and
    wrap the upstream reply in a JSON envelope.

Both the Azure Function (``Fetch``) and the local dev server call into it.
"""

from .relay import InvalidParameter, RelayResponse, handle  # re-export for convenience

__all__ = ["InvalidParameter", "RelayResponse", "handle"]
