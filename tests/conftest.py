import random

import pytest

from forza_relay.players import PlayerRegistry


@pytest.fixture
def registry():
    return PlayerRegistry(rng=random.Random(7))
