"""Transport port for a connected sync client."""

from typing import Protocol


class ClientConnection(Protocol):
    """Anything that can push a text frame to one client.

    Starlette's ``WebSocket`` satisfies this protocol directly.
    """

    async def send_text(self, data: str) -> None:
        ...
