"""Message handlers used by the game client."""

from __future__ import annotations

import sys
from datetime import datetime
from typing import Callable

from peril.gamedata import ArmyMove, RecognitionOfWar
from peril.gamestate import GameState, MoveOutcome, WarOutcome
from peril.pubsub import AckType, PubSubError, publish_gob, publish_json
from peril.routing import (
    EXCHANGE_PERIL_TOPIC,
    GAME_LOG_SLUG,
    WAR_RECOGNITIONS_PREFIX,
    GameLog,
    PlayingState,
)

_PROMPT = "> "


def handler_pause(game_state: GameState) -> Callable[[PlayingState], AckType]:
    def handle(state: PlayingState) -> AckType:
        try:
            game_state.handle_pause(state)
            return AckType.ACK
        finally:
            sys.stdout.write(_PROMPT)
            sys.stdout.flush()

    return handle


def handler_move(game_state: GameState, channel) -> Callable[[ArmyMove], AckType]:
    def handle(move: ArmyMove) -> AckType:
        try:
            outcome = game_state.handle_move(move)
            if outcome == MoveOutcome.SAFE:
                return AckType.ACK
            if outcome == MoveOutcome.MAKE_WAR:
                try:
                    publish_json(
                        channel,
                        EXCHANGE_PERIL_TOPIC,
                        f"{WAR_RECOGNITIONS_PREFIX}.{game_state.username}",
                        RecognitionOfWar(
                            attacker=move.player,
                            defender=game_state.player_snapshot(),
                        ),
                    )
                except PubSubError as exc:
                    print(f"error: {exc}")
                    return AckType.NACK_REQUEUE
                return AckType.ACK
            if outcome == MoveOutcome.SAME_PLAYER:
                return AckType.NACK_DISCARD
            print("error: unknown move outcome")
            return AckType.NACK_DISCARD
        finally:
            sys.stdout.write(_PROMPT)
            sys.stdout.flush()

    return handle


def handler_war(game_state: GameState, channel) -> Callable[[RecognitionOfWar], AckType]:
    def publish(message: str) -> AckType:
        try:
            publish_gob(
                channel,
                EXCHANGE_PERIL_TOPIC,
                f"{GAME_LOG_SLUG}.{game_state.username}",
                GameLog(
                    current_time=datetime.now().astimezone(),
                    message=message,
                    username=game_state.username,
                ),
            )
        except PubSubError:
            return AckType.NACK_REQUEUE
        return AckType.ACK

    def handle(recognition: RecognitionOfWar) -> AckType:
        outcome, winner, loser = game_state.handle_war(recognition)
        if outcome == WarOutcome.NOT_INVOLVED:
            return AckType.NACK_REQUEUE
        if outcome == WarOutcome.NO_UNITS:
            return AckType.NACK_DISCARD
        if outcome in (WarOutcome.OPPONENT_WON, WarOutcome.YOU_WON):
            return publish(f"{winner} won a war against {loser}")
        if outcome == WarOutcome.DRAW:
            return publish(f"A war between {winner} and {loser} resulted in a draw")
        print("error: unknown war outcome")
        return AckType.NACK_DISCARD

    return handle