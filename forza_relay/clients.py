import threading
from typing import List

from fastapi import WebSocket


class ClientRegistry:
    """Viewer sockets currently subscribed to the telemetry stream."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._clients: List[WebSocket] = []

    def add(self, client: WebSocket) -> None:
        with self._lock:
            if client not in self._clients:
                self._clients.append(client)

    def remove(self, client: WebSocket) -> bool:
        with self._lock:
            try:
                self._clients.remove(client)
            except ValueError:
                return False
            return True

    def clients(self) -> List[WebSocket]:
        with self._lock:
            return list(self._clients)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, client: WebSocket) -> bool:
        with self._lock:
            return client in self._clients

    @staticmethod
    def describe(client: WebSocket) -> str:
        address = getattr(client, "client", None)
        if address is None:
            return f"ws-{id(client):x}"
        return f"{address.host}:{address.port}"
