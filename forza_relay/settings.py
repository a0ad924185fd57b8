import os
from pathlib import Path

from pydantic import BaseModel, Field


PACKAGE_DIR = Path(__file__).resolve().parent
DEFAULT_PORT = 42069


class RelayConfigError(ValueError):
    pass


class RelaySettings(BaseModel):
    """
    Process configuration read from the environment.

    PORT is shared by the UDP listener and the HTTP server (TCP), matching
    how the game is pointed at a single "Data Out" port.
    """

    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    udp_host: str = "0.0.0.0"
    http_host: str = "0.0.0.0"
    match_tolerance_ms: int = Field(default=100, ge=1)
    player_timeout_sec: int = Field(default=5, ge=1)
    queue_size: int = Field(default=1024, ge=1)
    send_timeout_ms: int = Field(default=1000, ge=1)
    sweep_interval_ms: int = Field(default=500, ge=1)
    static_dir: Path = PACKAGE_DIR / "static"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "RelaySettings":
        raw_port = os.getenv("PORT")
        port = DEFAULT_PORT
        if raw_port:
            try:
                port = int(raw_port)
            except ValueError:
                raise RelayConfigError("PORT environment variable is not a number") from None
            if not 1 <= port <= 65535:
                raise RelayConfigError(f"PORT out of range: {port}")

        return cls(
            port=port,
            udp_host=os.getenv("RELAY_UDP_HOST", "0.0.0.0"),
            http_host=os.getenv("RELAY_HTTP_HOST", "0.0.0.0"),
            match_tolerance_ms=cls._get_env_int("RELAY_MATCH_TOLERANCE_MS", 100, 1, 60000),
            player_timeout_sec=cls._get_env_int("RELAY_PLAYER_TIMEOUT_SEC", 5, 1, 3600),
            queue_size=cls._get_env_int("RELAY_QUEUE_SIZE", 1024, 1, 65536),
            send_timeout_ms=cls._get_env_int("RELAY_SEND_TIMEOUT_MS", 1000, 10, 60000),
            sweep_interval_ms=cls._get_env_int("RELAY_SWEEP_INTERVAL_MS", 500, 50, 60000),
            static_dir=Path(os.getenv("RELAY_STATIC_DIR") or PACKAGE_DIR / "static"),
            log_level=os.getenv("RELAY_LOG_LEVEL", "INFO").upper(),
        )

    @staticmethod
    def _get_env_int(key: str, default: int, min_value: int, max_value: int) -> int:
        raw = os.getenv(key)
        if raw is None:
            return default
        try:
            value = int(raw)
        except ValueError:
            return default
        if value < min_value:
            return min_value
        if value > max_value:
            return max_value
        return value
