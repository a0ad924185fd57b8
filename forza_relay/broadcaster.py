import asyncio
import logging

from .clients import ClientRegistry


logger = logging.getLogger("forza_relay.broadcaster")


class Broadcaster:
    """
    Fan-out of encoded telemetry messages.

    Sends run concurrently and each one is bounded by SEND_TIMEOUT_SEC, so one
    slow or stalled viewer does not hold back the others or the ingestion
    worker. Failed or timed-out sends are only logged: a client leaves the
    registry when its own handler sees the connection close.
    """

    SEND_TIMEOUT_SEC = 1.0

    def __init__(self, clients: ClientRegistry, send_timeout_sec: float = SEND_TIMEOUT_SEC) -> None:
        self.clients = clients
        self.send_timeout_sec = send_timeout_sec

    async def _send(self, ws, message: bytes) -> None:
        await asyncio.wait_for(ws.send_bytes(message), timeout=self.send_timeout_sec)

    async def broadcast(self, message: bytes) -> int:
        """Send to every registered client and return the number of successful sends."""
        targets = self.clients.clients()
        if not targets:
            return 0

        results = await asyncio.gather(
            *(self._send(ws, message) for ws in targets),
            return_exceptions=True,
        )

        delivered = 0
        for ws, result in zip(targets, results):
            if isinstance(result, asyncio.TimeoutError):
                logger.warning(
                    "Timed out sending telemetry to client %s after %.2fs",
                    self.clients.describe(ws),
                    self.send_timeout_sec,
                )
                continue
            if isinstance(result, BaseException):
                if isinstance(result, asyncio.CancelledError):
                    raise result
                logger.warning("Error sending telemetry to client %s: %s", self.clients.describe(ws), result)
                continue
            delivered += 1
        return delivered
