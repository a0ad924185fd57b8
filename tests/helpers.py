import asyncio
import struct


def build_packet(
    timestamp_ms: int = 1_000,
    is_race_on: int = 1,
    position=(10.0, 20.0, 30.0),
    yaw: float = 1.5,
    speed: float = 42.0,
    accelerator: int = 0,
    brake: int = 0,
    handbrake: int = 0,
    steer: int = 127,
    length: int = 324,
) -> bytes:
    data = bytearray(max(length, 324))
    struct.pack_into("<i", data, 0, is_race_on)
    struct.pack_into("<I", data, 4, timestamp_ms)
    struct.pack_into("<f", data, 56, yaw)
    struct.pack_into("<fff", data, 244, *position)
    struct.pack_into("<f", data, 256, speed)
    data[315] = accelerator
    data[316] = brake
    data[318] = handbrake
    data[320] = steer
    return bytes(data[:length])


class FakeWebSocket:
    def __init__(self, fail: bool = False) -> None:
        self.sent = []
        self.fail = fail
        self.client = None

    async def send_bytes(self, data: bytes) -> None:
        if self.fail:
            raise RuntimeError("connection reset")
        self.sent.append(data)


class StalledWebSocket(FakeWebSocket):
    """A viewer whose socket never drains, e.g. a peer stuck on TCP backpressure."""

    async def send_bytes(self, data: bytes) -> None:
        await asyncio.Event().wait()
