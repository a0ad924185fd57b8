import struct

from .models import Player, TelemetryFrame


# id, race flag, position x/y/z, yaw, speed, hue
MESSAGE_FORMAT = struct.Struct("<Iifffff B")
MESSAGE_LENGTH = MESSAGE_FORMAT.size


def encode_message(player: Player, frame: TelemetryFrame) -> bytes:
    return MESSAGE_FORMAT.pack(
        player.id,
        frame.is_race_on,
        frame.position_x,
        frame.position_y,
        frame.position_z,
        frame.yaw,
        frame.speed,
        player.hue,
    )
