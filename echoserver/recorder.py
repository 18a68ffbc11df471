from __future__ import annotations

from starlette.types import Message, Send


class ResponseRecorder:
    """Wraps an ASGI ``send`` callable and remembers what went out.

    ``status`` stays 0 until the response starts; ``length`` is the size of
    the last body chunk written. Messages are always forwarded unchanged.
    """

    def __init__(self, send: Send) -> None:
        self.send = send
        self.status = 0
        self.length = 0

    async def __call__(self, message: Message) -> None:
        if message["type"] == "http.response.start":
            self.status = message["status"]
        elif message["type"] == "http.response.body":
            if self.status == 0:
                self.status = 200
            self.length = len(message.get("body", b""))
        await self.send(message)
