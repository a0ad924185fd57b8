import struct
from typing import Optional

from .models import TelemetryFrame


PACKET_LENGTH = 324

# (offset, struct format) per field, little-endian.
_FIELDS = {
    "is_race_on": (0, "<i"),
    "timestamp_ms": (4, "<I"),
    "yaw": (56, "<f"),
    "position_x": (244, "<f"),
    "position_y": (248, "<f"),
    "position_z": (252, "<f"),
    "speed": (256, "<f"),
    "accelerator": (315, "<B"),
    "brake": (316, "<B"),
    "handbrake": (318, "<B"),
    "steer": (320, "<B"),
}


def decode_packet(data: bytes) -> Optional[TelemetryFrame]:
    """Decode a Data Out datagram; anything but exactly 324 bytes yields None."""
    if len(data) != PACKET_LENGTH:
        return None

    values = {}
    for name, (offset, fmt) in _FIELDS.items():
        values[name] = struct.unpack_from(fmt, data, offset)[0]
    return TelemetryFrame(**values)
