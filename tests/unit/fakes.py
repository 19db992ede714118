import asyncio
import json

from websockets.exceptions import ConnectionClosedError


class FakeWebSocket:
    """
    In-memory stand-in for a server side WebSocket connection

    Args:
        send_delay: seconds every send takes
        fail_after: number of frames accepted before sends raise ConnectionClosed
    """
    def __init__(self, send_delay: float = 0.0, fail_after: int | None = None):
        self.remote_address = ("127.0.0.1", 50000)
        self.send_delay = send_delay
        self.fail_after = fail_after
        self.sent: list = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.inbox: asyncio.Queue = asyncio.Queue()


    async def send(self, frame) -> None:
        if self.fail_after is not None and len(self.sent) >= self.fail_after:
            raise ConnectionClosedError(None, None)

        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.send_delay)
            self.sent.append(frame)
        finally:
            self.in_flight -= 1


    def feed(self, message) -> None:
        self.inbox.put_nowait(message)


    def disconnect(self) -> None:
        self.inbox.put_nowait(None)


    def __aiter__(self):
        return self._messages()


    async def _messages(self):
        while True:
            message = await self.inbox.get()
            if message is None:
                return
            yield message


    @property
    def statuses(self) -> list[str]:
        return [json.loads(frame)["data"] for frame in self.sent if isinstance(frame, str)]


    @property
    def chunks(self) -> list[bytes]:
        return [frame for frame in self.sent if isinstance(frame, bytes)]


    def chunks_after_status(self, status: str) -> list[bytes]:
        """Binary frames sent after the first status message equal to `status`."""
        for i, frame in enumerate(self.sent):
            if isinstance(frame, str) and json.loads(frame)["data"] == status:
                return [f for f in self.sent[i + 1:] if isinstance(f, bytes)]
        raise AssertionError(f"status {status!r} was never sent")


async def wait_until(predicate, timeout: float = 2.0) -> None:
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.005)
