"""Game rules, message formats and RabbitMQ plumbing for the Peril strategy game."""

__version__ = "0.1.0"

__all__ = ["console", "gamedata", "gamestate", "gob", "handlers", "pubsub", "routing"]