"""Refresh collaborator protocol.

A refresher produces a fresh value for a key from an external source. It is
supplied by whoever registers a handler and is opaque to the cache. Failure
is signalled by raising; any exception is wrapped in RefreshError.
"""

from typing import Any, Awaitable, Protocol


class Refresher(Protocol):
    """Callable that fetches a fresh value for a key.

    Coroutine functions are the normal case. A plain callable returning a
    value (or an awaitable) is accepted as well.

    Example:
        ```python
        async def fetch_user(key: str) -> dict:
            user_id = key.split(":", 1)[1]
            async with httpx.AsyncClient() as client:
                response = await client.get(f"https://api.example.com/users/{user_id}")
                response.raise_for_status()
                return response.json()
        ```
    """

    def __call__(self, key: str) -> Awaitable[Any] | Any: ...
