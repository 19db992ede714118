from __future__ import annotations

import asyncio
import logging
import time
from typing import TYPE_CHECKING, BinaryIO

import websockets

from chunkcast.schemas import messages

if TYPE_CHECKING:
    from chunkcast.session import Session


logger = logging.getLogger(__name__)


class TransferWorker:
    """
    Sends one file to a session as a sequence of binary frames.

    The worker checks its cancellation token before every read, and the session
    re-checks it before every write, so at most the chunk already being written
    reaches the client after a stop or a new start.

    Args:
        session: the session whose connection the file is sent over
        filename: name of the file in the session's library
        token: cancellation token of this transfer

    Attributes:
        bytes_sent: total payload bytes written so far
        chunks_sent: number of binary frames written so far
    """
    def __init__(self, session: Session, filename: str, token: asyncio.Event) -> None:
        self.session = session
        self.filename = filename
        self.token = token
        self.chunk_size = session.config.chunk_size
        self.pacing_delay = session.config.pacing_delay

        self.bytes_sent = 0
        self.chunks_sent = 0
        self.started_at: float | None = None


    @property
    def cancelled(self) -> bool:
        return self.token.is_set()


    async def _fail(self, status: str) -> None:
        self.session.finish(self.token)
        await self.session.send_status(status, self.token)


    async def run(self) -> None:
        """
        Resolve, announce and stream the file until it ends, fails or is cancelled
        """
        if self.cancelled:
            return

        try:
            path = self.session.library.resolve(self.filename)
        except OSError as e:
            logger.error("Error resolving file %s: %s", self.filename, e)
            path = None

        if path is None:
            logger.warning("File %s not found", self.filename)
            await self._fail(messages.FILE_NOT_FOUND.format(name=self.filename))
            return

        if not await self.session.send_status(messages.STREAM_STARTED.format(name=self.filename), self.token):
            self.session.finish(self.token)
            return

        try:
            reader = self.session.library.open(path)
        except OSError as e:
            logger.error("Error opening file %s: %s", path, e)
            await self._fail(messages.OPEN_ERROR)
            return

        with reader:
            try:
                logger.info("Streaming file: %s (size: %d bytes)", self.filename, self.session.library.size(path))
            except OSError:
                logger.info("Streaming file: %s", self.filename)

            self.started_at = time.monotonic()
            await self._pump(reader)


    async def _pump(self, reader: BinaryIO) -> None:
        while True:
            if self.cancelled:
                logger.info("Streaming stopped for file: %s (%d bytes sent)", self.filename, self.bytes_sent)
                return

            try:
                chunk = await asyncio.to_thread(reader.read, self.chunk_size)
            except OSError as e:
                logger.error("Error reading file %s: %s", self.filename, e)
                await self._fail(messages.READ_ERROR)
                return

            if not chunk:
                elapsed = time.monotonic() - (self.started_at or time.monotonic())
                logger.info(
                    "Finished streaming file: %s (%d bytes in %d chunks, %.1fs)",
                    self.filename, self.bytes_sent, self.chunks_sent, elapsed,
                )
                self.session.finish(self.token)
                await self.session.send_status(messages.STREAM_FINISHED, self.token)
                return

            try:
                sent = await self.session.send_chunk(chunk, self.token)
            except (websockets.ConnectionClosed, asyncio.TimeoutError) as e:
                logger.error("Error writing %s to WebSocket: %r", self.filename, e)
                await self._fail(messages.WRITE_ERROR)
                return

            if not sent:
                continue

            self.bytes_sent += len(chunk)
            self.chunks_sent += 1

            await asyncio.sleep(self.pacing_delay)
