import itertools
import logging
import random
import threading
from typing import List, Optional

from .models import Player, TelemetryFrame


logger = logging.getLogger("forza_relay.players")

PEDAL_MAX = 255
HUE_RANGE = 254


def hue_from_steer(steer: int) -> int:
    """
    Map a steering byte onto a hue in [0, 254].

    The game reports left lock as 129..255 and right lock as 0..127; 128 is
    never sent. Flipping the halves joins both extremes into one cycle.
    """
    if steer > 128:
        return steer - 129
    return steer + 127


def is_hue_selector(frame: TelemetryFrame) -> bool:
    return frame.accelerator == PEDAL_MAX and frame.brake == PEDAL_MAX and frame.handbrake == PEDAL_MAX


class PlayerRegistry:
    """
    Live players keyed by the estimated source clock offset.

    Several game instances can feed the same UDP port. A packet belongs to the
    first player whose correlation key (receive time minus packet timestamp)
    lies within the tolerance window; otherwise a new player is created.
    Players with no accepted packet for PLAYER_TIMEOUT_SEC are dropped by
    ``expire_stale``, which the relay calls on a periodic sweep.

    All mutations happen under one lock so the sweep and the ingestion path
    never interleave a read-modify-write.
    """

    MATCH_TOLERANCE_MS = 100
    PLAYER_TIMEOUT_SEC = 5

    def __init__(
        self,
        match_tolerance_ms: int = MATCH_TOLERANCE_MS,
        player_timeout_sec: float = PLAYER_TIMEOUT_SEC,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.match_tolerance_ms = match_tolerance_ms
        self.player_timeout_sec = player_timeout_sec
        self._rng = rng or random.Random()
        self._lock = threading.Lock()
        # creation order matters for matching
        self._players: List[Player] = []

    def __len__(self) -> int:
        with self._lock:
            return len(self._players)

    def players(self) -> List[Player]:
        with self._lock:
            return list(self._players)

    def snapshot(self) -> List[dict]:
        with self._lock:
            return [player.to_dict() for player in self._players]

    def _find(self, key: int) -> Optional[Player]:
        for player in self._players:
            if abs(player.correlation_key - key) < self.match_tolerance_ms:
                return player
        return None

    def _next_id(self) -> int:
        used = {player.id for player in self._players}
        return next(i for i in itertools.count() if i not in used)

    def resolve(self, receive_time_ms: int, packet_timestamp_ms: int) -> Optional[Player]:
        """Return the player owning this packet, or None if it is out of order."""
        key = receive_time_ms - packet_timestamp_ms
        with self._lock:
            player = self._find(key)
            if player is None:
                player = Player(
                    id=self._next_id(),
                    correlation_key=key,
                    hue=self._rng.randrange(HUE_RANGE),
                )
                self._players.append(player)
                logger.info("Player %s joined (key=%s hue=%s)", player.id, key, player.hue)
            elif packet_timestamp_ms < player.last_timestamp_ms:
                logger.debug(
                    "Dropped out-of-order packet player=%s ts=%s last=%s",
                    player.id,
                    packet_timestamp_ms,
                    player.last_timestamp_ms,
                )
                return None

            player.last_seen_ms = receive_time_ms
            player.last_timestamp_ms = packet_timestamp_ms
            return player

    def update_hue(self, player: Player, frame: TelemetryFrame) -> bool:
        if not is_hue_selector(frame):
            return False
        with self._lock:
            player.hue = hue_from_steer(frame.steer)
        logger.debug("Player %s selected hue %s", player.id, player.hue)
        return True

    def expire_stale(self, now_ms: int) -> List[int]:
        """Drop players with no accepted packet for the inactivity window; returns their ids."""
        timeout_ms = self.player_timeout_sec * 1000
        with self._lock:
            expired = [p for p in self._players if now_ms - p.last_seen_ms >= timeout_ms]
            for player in expired:
                self._players.remove(player)

        for player in expired:
            logger.info("Player %s expired after %ss without data", player.id, self.player_timeout_sec)
        return [player.id for player in expired]

    def clear(self) -> None:
        with self._lock:
            self._players.clear()
