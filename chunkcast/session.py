from __future__ import annotations

import asyncio
import logging
from typing import Any

import websockets

from chunkcast.config import ServerConfig
from chunkcast.library import AudioLibrary
from chunkcast.schemas import messages
from chunkcast.schemas.messages import MalformedMessage, StatusMessage, parse_control_message
from chunkcast.transfer import TransferWorker


logger = logging.getLogger(__name__)


class Session:
    """
    Streaming state of a single WebSocket connection.

    A session is Idle until a `start` message spawns a TransferWorker, and goes
    back to Idle on `stop`, when the worker finishes, or when the worker fails.
    Each transfer gets its own cancellation token (an asyncio.Event). Starting a
    new transfer or stopping fires the current token and replaces it, so a worker
    only ever has to check whether its own token has been set.

    Every outbound frame goes through `send_lock`, which is held for a single
    write and never across a read or the pacing delay.

    Args:
        websocket: the connected WebSocket
        library: where requested files are looked up
        config: chunk size, pacing and timeout settings

    Attributes:
        streaming: whether a transfer is currently active
        cancel: cancellation token of the current (or next) transfer
        send_lock: serializes all writes to the WebSocket
    """
    def __init__(self, websocket, library: AudioLibrary, config: ServerConfig) -> None:
        self.websocket = websocket
        self.library = library
        self.config = config
        self.remote = getattr(websocket, "remote_address", None)

        self.streaming: bool = False
        self.filename: str = ""
        self.cancel = asyncio.Event()
        self.send_lock = asyncio.Lock()
        self.worker_task: asyncio.Task | None = None
        self._tasks: set[asyncio.Task] = set()


    async def run(self) -> None:
        """
        Read control messages until the connection closes, then tear the session down.
        """
        logger.info("New WebSocket connection established from %s", self.remote)
        try:
            async for raw in self.websocket:
                await self.handle_message(raw)
        except websockets.ConnectionClosed as e:
            logger.info("Connection from %s lost: %s", self.remote, e)
        finally:
            await self.close()


    async def handle_message(self, raw: Any) -> None:
        """
        Parse one inbound frame and apply it

        Binary frames, malformed JSON and unknown actions are logged and dropped.
        """
        if not isinstance(raw, str):
            logger.warning("Ignoring binary frame from %s", self.remote)
            return

        try:
            msg = parse_control_message(raw)
        except MalformedMessage as e:
            logger.warning("Error parsing message from %s: %s", self.remote, e)
            return

        match msg.action:
            case messages.START:
                await self.start(msg.filename)
            case messages.STOP:
                await self.stop()
            case _:
                logger.warning("Unknown action %r from %s, ignoring", msg.action, self.remote)


    async def start(self, filename: str) -> None:
        """
        Start streaming `filename`, superseding any transfer already running

        Args:
            filename: name of the file in the library
        """
        if not filename:
            await self.send_status(messages.NO_FILENAME)
            return

        if self.streaming:
            logger.info("Superseding %s with %s for %s", self.filename, filename, self.remote)

        self.cancel.set()
        token = asyncio.Event()
        self.cancel = token
        self.streaming = True
        self.filename = filename

        worker = TransferWorker(self, filename, token)
        task = asyncio.create_task(worker.run(), name=f"transfer:{filename}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        self.worker_task = task


    async def stop(self) -> None:
        """
        Stop the active transfer. A no-op when the session is idle.
        """
        if not self.streaming:
            logger.debug("Stop from %s while idle, ignoring", self.remote)
            return

        self.cancel.set()
        self.streaming = False
        self.cancel = asyncio.Event()

        logger.info("Streaming of %s stopped by %s", self.filename, self.remote)
        await self.send_status(messages.STREAM_STOPPED)


    def finish(self, token: asyncio.Event) -> bool:
        """
        Return to Idle on behalf of the worker owning `token`

        Has no effect once the token has been fired or replaced, so a worker that
        was superseded can't clobber the state of its successor.

        Returns:
            whether the session was updated
        """
        if token is not self.cancel or token.is_set():
            return False

        self.streaming = False
        return True


    async def _send(self, frame: str | bytes, token: asyncio.Event | None = None) -> bool:
        async with self.send_lock:
            if token is not None and token.is_set():
                return False
            await asyncio.wait_for(self.websocket.send(frame), self.config.send_timeout)
        return True


    async def send_chunk(self, data: bytes, token: asyncio.Event) -> bool:
        """
        Send a binary frame for the transfer owning `token`

        Returns:
            False if the token was fired before the frame could be written

        Raises:
            websockets.ConnectionClosed: the connection is gone
            asyncio.TimeoutError: the write did not complete within the send timeout
        """
        return await self._send(data, token)


    async def send_status(self, text: str, token: asyncio.Event | None = None) -> bool:
        """
        Send a status message to the client

        Transport errors are logged rather than raised, the receive loop or the
        worker notices the dead connection on its own.

        Args:
            text: human readable status
            token: when given, the message is dropped if this token has been fired

        Returns:
            whether the message was written
        """
        frame = StatusMessage(text).to_json()
        try:
            return await self._send(frame, token)
        except (websockets.ConnectionClosed, asyncio.TimeoutError) as e:
            logger.warning("Error sending status %r to %s: %r", text, self.remote, e)
            return False


    async def close(self) -> None:
        """
        Cancel the active transfer and wait for every worker to exit

        Workers that don't reach a cancellation check within the shutdown grace
        period are cancelled outright.
        """
        self.cancel.set()
        self.streaming = False

        pending = [task for task in self._tasks if not task.done()]
        if pending:
            _, pending = await asyncio.wait(pending, timeout=self.config.shutdown_grace)
            for task in pending:
                task.cancel()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)

        logger.info("WebSocket connection from %s closed", self.remote)
