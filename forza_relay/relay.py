import asyncio
import logging
import time
from typing import Optional, Tuple

from .broadcaster import Broadcaster
from .decoder import decode_packet
from .encoder import encode_message
from .players import PlayerRegistry


logger = logging.getLogger("forza_relay.relay")


def now_ms() -> int:
    return time.time_ns() // 1_000_000


class TelemetryProtocol(asyncio.DatagramProtocol):
    """Stamps each datagram with its receive time and hands it to the relay queue."""

    def __init__(self, queue: "asyncio.Queue[Tuple[int, bytes]]") -> None:
        self.queue = queue

    def datagram_received(self, data: bytes, addr) -> None:
        try:
            self.queue.put_nowait((now_ms(), data))
        except asyncio.QueueFull:
            logger.debug("Relay queue full, dropped datagram from %s", addr)

    def error_received(self, exc: Exception) -> None:
        logger.warning("UDP socket error: %s", exc)


class TelemetryRelay:
    """
    Sequential ingestion path: decode -> resolve player -> encode -> broadcast.

    One worker drains the queue, so packets are processed strictly in arrival
    order and never interleave with each other. A second task sweeps players
    that went quiet, the same way the web layer expires stale reports.
    """

    SWEEP_INTERVAL_SEC = 0.5

    def __init__(
        self,
        players: PlayerRegistry,
        broadcaster: Broadcaster,
        queue_size: int = 1024,
        sweep_interval_sec: float = SWEEP_INTERVAL_SEC,
    ) -> None:
        self.players = players
        self.broadcaster = broadcaster
        self.queue_size = queue_size
        self.sweep_interval_sec = sweep_interval_sec
        self.queue: Optional[asyncio.Queue] = None
        self.transport: Optional[asyncio.DatagramTransport] = None
        self.worker: Optional[asyncio.Task] = None
        self.sweeper: Optional[asyncio.Task] = None

    def process(self, data: bytes, receive_time_ms: int) -> Optional[bytes]:
        """Turn one datagram into an outgoing viewer message, or None if it is dropped."""
        frame = decode_packet(data)
        if frame is None:
            return None

        player = self.players.resolve(receive_time_ms, frame.timestamp_ms)
        if player is None:
            return None

        self.players.update_hue(player, frame)
        return encode_message(player, frame)

    async def handle(self, data: bytes, receive_time_ms: int) -> int:
        message = self.process(data, receive_time_ms)
        if message is None:
            return 0
        return await self.broadcaster.broadcast(message)

    async def run(self) -> None:
        if self.queue is None:
            raise RuntimeError("relay not started")
        while True:
            receive_time_ms, data = await self.queue.get()
            try:
                await self.handle(data, receive_time_ms)
            except Exception as e:
                logger.exception("Error relaying telemetry packet: %s", e)
            finally:
                self.queue.task_done()

    async def sweep(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval_sec)
            self.players.expire_stale(now_ms())

    async def start(self, host: str, port: int) -> None:
        loop = asyncio.get_running_loop()
        queue = asyncio.Queue(maxsize=self.queue_size)
        try:
            transport, _protocol = await loop.create_datagram_endpoint(
                lambda: TelemetryProtocol(queue),
                local_addr=(host, port),
            )
        except OSError as e:
            logger.error("Unable to bind UDP %s:%s: %s", host, port, e)
            raise
        self.queue = queue
        self.transport = transport
        self.worker = asyncio.create_task(self.run())
        self.sweeper = asyncio.create_task(self.sweep())
        logger.info("Listening for UDP on %s:%s", host, port)

    async def stop(self) -> None:
        if self.transport is not None:
            self.transport.close()
            self.transport = None
        for task in (self.worker, self.sweeper):
            if task is None:
                continue
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.worker = None
        self.sweeper = None
        self.players.clear()
