"""Custom exceptions. Everything the worker raises on purpose derives from GameError."""


class GameError(Exception):
    """Top-level exception for anything related to the auto-resign worker."""


class InvalidFENError(GameError):
    """A stored position cannot be interpreted as FEN."""


class GameStateError(GameError):
    """A stored game is inconsistent (e.g. unknown side or result code)."""


class RepositoryError(GameError):
    """The store could not be queried or updated."""


class NotificationError(GameError):
    """A notification could not be built for a player."""


class ConfigurationError(GameError):
    """Required settings are missing or invalid. Fatal at startup."""
