"""Players, units and the messages describing their moves."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping


class UnitRank(str, Enum):
    INFANTRY = "infantry"
    CAVALRY = "cavalry"
    ARTILLERY = "artillery"

    def __str__(self) -> str:
        return self.value


LOCATIONS = frozenset({"americas", "europe", "africa", "asia", "australia", "antarctica"})


def is_valid_location(name: str) -> bool:
    return name in LOCATIONS


def is_valid_rank(name: str) -> bool:
    return name in {rank.value for rank in UnitRank}


@dataclass(frozen=True)
class Unit:
    id: int
    rank: UnitRank
    location: str

    def to_dict(self) -> dict:
        return {"ID": self.id, "Rank": self.rank.value, "Location": self.location}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Unit":
        return cls(int(data["ID"]), UnitRank(data["Rank"]), str(data["Location"]))


@dataclass
class Player:
    username: str
    units: dict = field(default_factory=dict)

    def to_dict(self) -> dict:
        units = {str(uid): unit.to_dict() for uid, unit in self.units.items()}
        return {"Username": self.username, "Units": units}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Player":
        units = data.get("Units") or {}
        return cls(
            str(data.get("Username", "")),
            {int(uid): Unit.from_dict(unit) for uid, unit in units.items()},
        )


@dataclass
class ArmyMove:
    player: Player
    units: list
    to_location: str

    def to_dict(self) -> dict:
        return {
            "Player": self.player.to_dict(),
            "Units": [unit.to_dict() for unit in self.units],
            "ToLocation": self.to_location,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ArmyMove":
        return cls(
            Player.from_dict(data.get("Player") or {}),
            [Unit.from_dict(unit) for unit in data.get("Units") or []],
            str(data.get("ToLocation", "")),
        )


@dataclass
class RecognitionOfWar:
    attacker: Player
    defender: Player

    def to_dict(self) -> dict:
        return {"Attacker": self.attacker.to_dict(), "Defender": self.defender.to_dict()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "RecognitionOfWar":
        return cls(
            Player.from_dict(data.get("Attacker") or {}),
            Player.from_dict(data.get("Defender") or {}),
        )