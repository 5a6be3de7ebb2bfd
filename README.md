# peril

Peril is a small multiplayer strategy game. Players never talk to each other
directly: moves, pauses and declarations of war travel through a RabbitMQ
broker. This package holds the game rules, the message types, the console
helpers and the broker plumbing a Peril client or server is built from.

## The game

A player owns units. Each unit has an id, a rank and a location.

* Ranks (`peril.gamedata.UnitRank`): `infantry` (power 1), `cavalry`
  (power 5), `artillery` (power 10).
* Locations: `americas`, `europe`, `africa`, `asia`, `australia`,
  `antarctica` (checked with `is_valid_location`; ranks with
  `is_valid_rank`).

When a player receives another player's move and has units in a location
where the mover also has units, a war is recognised. The war is resolved by
the client of the player named as its attacker: the side whose units in the
shared location add up to the greater power wins. If that player loses, or
the war is a draw, that player's units in the location are removed from
their `GameState`.

The server can pause and resume the game; while paused, units cannot move.

## Playing with a game state

`peril.gamestate.GameState` is a thread-safe view of one player's game.
Commands take the words a player typed, as they come from the prompt, and
raise `GameError` when they cannot be carried out:

```python
from peril.gamestate import GameError, GameState

state = GameState("alice")
state.command_spawn(["spawn", "europe", "infantry"])    # unit 1
state.command_spawn(["spawn", "europe", "artillery"])   # unit 2

move = state.command_move(["move", "asia", "1", "2"])
print(move.to_location, len(move.units))                # asia 2

state.command_status()

try:
    state.command_spawn(["spawn", "atlantis", "infantry"])
except GameError as exc:
    print(exc)  # error: atlantis is not a valid location
```

`command_spawn` returns the new `Unit` (ids count up from 1);
`command_move` returns the `ArmyMove` to publish.

Incoming events are handled with:

* `handle_pause(PlayingState)` — pauses or resumes the game.
* `handle_move(ArmyMove)` — returns a `MoveOutcome`: `SAME_PLAYER`, `SAFE`
  or `MAKE_WAR`.
* `handle_war(RecognitionOfWar)` — returns `(WarOutcome, winner, loser)`,
  with the outcome one of `NOT_INVOLVED`, `NO_UNITS`, `YOU_WON`,
  `OPPONENT_WON` or `DRAW`.

`units_to_power_level` and `overlapping_location` expose the rules used to
decide a war. All of these print a report of what happened to standard
output.

## Messages

`peril.gamedata` defines `Unit`, `Player`, `ArmyMove` and
`RecognitionOfWar`, and `peril.routing` defines `PlayingState` and
`GameLog`. The JSON messages have `to_dict` / `from_dict` methods using the
field names `ID`, `Rank`, `Location`, `Username`, `Units`, `Player`,
`ToLocation`, `Attacker`, `Defender` and `IsPaused`.

`peril.routing` also holds the exchange names (`EXCHANGE_PERIL_DIRECT`,
`EXCHANGE_PERIL_TOPIC`) and routing keys (`ARMY_MOVES_PREFIX`,
`WAR_RECOGNITIONS_PREFIX`, `PAUSE_KEY`, `GAME_LOG_SLUG`).

Game logs are sent in the binary gob format: `peril.gob.encode_game_log`
turns a `GameLog` into a complete gob stream and `decode_game_log` reads one
back, raising `GobError` (a `ValueError`) on malformed data.

## Talking to the broker

`peril.pubsub` works with a `pika` connection and channel:

* `declare_and_bind(connection, exchange, queue_name, key, queue_type)`
  opens a channel, declares a queue and binds it to the exchange, returning
  `(channel, queue_name)`. `SimpleQueueType.DURABLE` declares a durable
  queue; `SimpleQueueType.TRANSIENT` an exclusive, auto-deleting one. Every
  queue gets the dead-letter exchange `peril_dlx`.
* `publish_json(channel, exchange, key, value)` sends a value (or an object
  with `to_dict`) as `application/json`; `publish_gob(channel, exchange,
  key, game_log)` sends a `GameLog` as `application/gob`.
* `subscribe_json(connection, exchange, queue_name, key, queue_type,
  handler, parse)` consumes JSON messages with a prefetch of 10, calling
  `handler(parse(data))` (or `handler(data)` when `parse` is `None`).
  Messages that cannot be parsed are logged and left unacknowledged.
* `subscribe_gob(connection, exchange, queue_name, key, queue_type,
  handler)` consumes gob-encoded game logs.

A handler answers each message with an `AckType`: `ACK`, `NACK_REQUEUE` or
`NACK_DISCARD`. Both subscribe functions return the consuming channel;
nothing is delivered until the caller runs `channel.start_consuming()`.
Broker failures are raised as `PubSubError`.

`peril.handlers` builds the client-side handlers:

* `handler_pause(state)` applies pauses and acknowledges them.
* `handler_move(state, channel)` acknowledges safe moves, discards the
  player's own moves, and on a war publishes a `RecognitionOfWar` to
  `peril_topic` with key `war.<username>`.
* `handler_war(state, channel)` requeues wars the player is not involved
  in, discards wars with no shared location, and for a win or draw
  publishes a gob `GameLog` with key `game_logs.<username>`.

```python
import pika

from peril.gamedata import ArmyMove, RecognitionOfWar
from peril.gamestate import GameState
from peril.handlers import handler_move, handler_pause, handler_war
from peril.pubsub import SimpleQueueType, subscribe_json
from peril.routing import PlayingState

connection = pika.BlockingConnection(pika.ConnectionParameters("localhost"))
publish_channel = connection.channel()
state = GameState("alice")

pause_channel = subscribe_json(
    connection, "peril_direct", "pause.alice", "pause",
    SimpleQueueType.TRANSIENT, handler_pause(state), PlayingState.from_dict,
)
subscribe_json(
    connection, "peril_topic", "army_moves.alice", "army_moves.*",
    SimpleQueueType.TRANSIENT, handler_move(state, publish_channel), ArmyMove.from_dict,
)
subscribe_json(
    connection, "peril_topic", "war", "war.*",
    SimpleQueueType.DURABLE, handler_war(state, publish_channel),
    RecognitionOfWar.from_dict,
)
pause_channel.start_consuming()
```

## Console helpers

`peril.console` holds the prompt and text shared by client and server:

* `get_input(stream=None)` prints `> ` and returns the words of one line
  (an empty list at end of input); it reads standard input by default.
* `client_welcome(stream=None)` asks for a username and returns it, raising
  `GameError` if none is given.
* `print_client_help`, `print_server_help` and `print_quit` print their text
  and return it.
* `get_malicious_log` returns a random war quotation.
* `write_log(game_log, path="game.log")` waits one second, then appends
  `<RFC 3339 time> <username>: <message>` to the file.

## What this package does not do

There is no `peril` command, interactive client or server program here: no
loop that reads commands and dispatches them, no server that publishes
pauses or writes received game logs, and no implementation of the `spam`
command that the client help text lists. Those are left to the program that
uses these building blocks. No exchanges are declared by the package;
`peril_direct`, `peril_topic` and `peril_dlx` must already exist on the
broker.

## Installing and testing

```
pip install .
pip install ".[test]"
pytest
```