"""
WebSocket transport — one `ws://` connection per instance.

Connection: ws://{hostname}:{port + 1}. Text frames only; binary frames are
decoded as UTF-8.

`send` returns before the frame is written: each write is a task on the
loop, started in call order. A frame sent just before a close may be lost;
the close event still follows.
"""

import asyncio
import logging
from typing import Optional

import websockets

from sharex_sdk.transport.base import Transport, TransportListener

logger = logging.getLogger(__name__)


class WebSocketTransport(Transport):
    def __init__(self, url: str, open_timeout: Optional[float] = 10.0):
        self._url = url
        self._open_timeout = open_timeout
        self._ws: Optional[websockets.ClientConnection] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._reader: Optional[asyncio.Task[None]] = None
        self._sends: set[asyncio.Task[None]] = set()

    @property
    def url(self) -> str:
        return self._url

    @property
    def is_open(self) -> bool:
        return self._ws is not None

    def open(self, listener: TransportListener) -> None:
        if self._reader is not None:
            raise RuntimeError("WebSocketTransport is single use")
        self._loop = asyncio.get_running_loop()
        self._reader = self._loop.create_task(self._run(listener))

    async def _run(self, listener: TransportListener) -> None:
        try:
            async with websockets.connect(self._url, open_timeout=self._open_timeout) as ws:
                self._ws = ws
                listener.on_open()
                async for message in ws:
                    if isinstance(message, bytes):
                        message = message.decode("utf-8", errors="replace")
                    listener.on_message(message)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.info("WebSocket %s failed: %s", self._url, e)
            listener.on_error(e)
        finally:
            self._ws = None
            listener.on_close()

    def send(self, text: str) -> None:
        """Schedule a write on the transport's loop.

        Writes are started in call order. Send errors are logged rather than
        raised, the following close event drives recovery.
        """
        ws = self._ws
        if ws is None or self._loop is None:
            logger.warning("Dropping frame, websocket %s is not open", self._url)
            return

        async def _do_send() -> None:
            try:
                await ws.send(text)
            except Exception as e:
                logger.warning("Send to %s failed: %s", self._url, e)

        task = self._loop.create_task(_do_send())
        self._sends.add(task)
        task.add_done_callback(self._sends.discard)

    async def close(self) -> None:
        ws = self._ws
        if ws is not None:
            await ws.close()
        reader = self._reader
        if reader is not None and not reader.done():
            if ws is None:
                reader.cancel()
            try:
                await reader
            except asyncio.CancelledError:
                pass
