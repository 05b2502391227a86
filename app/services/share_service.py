from typing import Optional, Protocol


class ShareTarget(Protocol):
    """Native share sheet of the client platform."""

    async def share(self, title: str, text: str) -> None:
        ...


class Clipboard(Protocol):
    async def write_text(self, text: str) -> None:
        ...


class ShareOutbox:
    """
    Share target and clipboard for HTTP clients.

    The server cannot reach the browser's share sheet or clipboard, so the
    payload is kept here and returned in the response for the browser to hand
    to navigator.share or navigator.clipboard.
    """

    def __init__(self):
        self.method: Optional[str] = None
        self.title: Optional[str] = None
        self.text: Optional[str] = None

    async def share(self, title: str, text: str) -> None:
        self.method = "share"
        self.title = title
        self.text = text

    async def write_text(self, text: str) -> None:
        self.method = "clipboard"
        self.text = text
