import struct

import pytest

from forza_relay.decoder import decode_packet
from forza_relay.encoder import MESSAGE_LENGTH, encode_message
from forza_relay.models import Player
from tests.helpers import build_packet


def test_message_layout():
    player = Player(id=3, correlation_key=0, hue=200)
    frame = decode_packet(build_packet(is_race_on=1, position=(1.0, -2.0, 3.5), yaw=0.25, speed=12.0))

    message = encode_message(player, frame)

    assert MESSAGE_LENGTH == 29
    assert len(message) == 29
    assert struct.unpack("<I", message[0:4])[0] == 3
    assert struct.unpack("<i", message[4:8])[0] == 1
    assert struct.unpack("<fffff", message[8:28]) == pytest.approx((1.0, -2.0, 3.5, 0.25, 12.0))
    assert message[28] == 200


def test_float_fields_are_copied_bit_exact():
    packet = build_packet(position=(0.1, 1e-3, -12345.678), yaw=3.14159, speed=99.99)
    frame = decode_packet(packet)

    message = encode_message(Player(id=0, correlation_key=0, hue=0), frame)

    assert message[4:8] == packet[0:4]
    assert message[8:20] == packet[244:256]
    assert message[20:24] == packet[56:60]
    assert message[24:28] == packet[256:260]
