"""Console interaction and the on-disk game log."""

import logging
import random
import sys
import time
from datetime import datetime, timedelta

from peril.gamestate import GameError
from peril.routing import GameLog

LOGS_FILE = "game.log"
WRITE_TO_DISK_SLEEP = 1.0

MALICIOUS_LOGS = (
    "Never interrupt your enemy when he is making a mistake.",
    "The hardest thing of all for a soldier is to retreat.",
    "A soldier will fight long and hard for a bit of colored ribbon.",
    "It is well that war is so terrible, otherwise we should grow too fond of it.",
    "The art of war is simple enough. Find out where your enemy is. Get at him as "
    "soon as you can. Strike him as hard as you can, and keep moving on.",
    "All warfare is based on deception.",
)

_CLIENT_HELP = """Possible commands:
* move <location> <unitID> <unitID> <unitID>...
    example:
    move asia 1
* spawn <location> <rank>
    example:
    spawn europe infantry
* status
* spam <n>
    example:
    spam 5
* quit
* help"""
_SERVER_HELP = "Possible commands:\n* pause\n* resume\n* quit\n* help"
_QUIT = "I hate this game! (╯°□°)╯︵ ┻━┻"

logger = logging.getLogger(__name__)


def print_client_help() -> str:
    print(_CLIENT_HELP)
    return _CLIENT_HELP


def print_server_help() -> str:
    print(_SERVER_HELP)
    return _SERVER_HELP


def print_quit() -> str:
    print(_QUIT)
    return _QUIT


def get_input(stream=None) -> list:
    """Prompt and read one line, returning its words (empty at end of input)."""
    print("> ", end="", flush=True)
    return (stream or sys.stdin).readline().split()


def client_welcome(stream=None) -> str:
    """Greet the player and ask for a username."""
    print("Welcome to the Peril client!")
    print("Please enter your username:")
    words = get_input(stream)
    if not words:
        raise GameError("you must enter a username. goodbye")
    print(f"Welcome, {words[0]}!")
    print_client_help()
    return words[0]


def get_malicious_log() -> str:
    return random.choice(MALICIOUS_LOGS)


def _rfc3339(moment: datetime) -> str:
    moment = (moment if moment.tzinfo else moment.astimezone()).replace(microsecond=0)
    if moment.utcoffset() == timedelta(0):
        return moment.strftime("%Y-%m-%dT%H:%M:%SZ")
    return moment.isoformat()


def write_log(game_log: GameLog, path: str = LOGS_FILE) -> None:
    """Append a game log entry to the log file after a simulated disk delay."""
    logger.info("received game log...")
    time.sleep(WRITE_TO_DISK_SLEEP)
    line = f"{_rfc3339(game_log.current_time)} {game_log.username}: {game_log.message}\n"
    try:
        with open(path, "a", encoding="utf-8") as handle:
            handle.write(line)
    except OSError as exc:
        raise OSError(f"could not write to logs file: {exc}") from exc