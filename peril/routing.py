"""Routing keys, exchange names and the messages exchanged between players."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

ARMY_MOVES_PREFIX = "army_moves"
WAR_RECOGNITIONS_PREFIX = "war"
PAUSE_KEY = "pause"
GAME_LOG_SLUG = "game_logs"

EXCHANGE_PERIL_DIRECT = "peril_direct"
EXCHANGE_PERIL_TOPIC = "peril_topic"


@dataclass(frozen=True)
class PlayingState:
    is_paused: bool = False

    def to_dict(self) -> dict:
        return {"IsPaused": self.is_paused}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "PlayingState":
        return cls(bool(data.get("IsPaused", False)))


@dataclass(frozen=True)
class GameLog:
    current_time: datetime
    message: str
    username: str