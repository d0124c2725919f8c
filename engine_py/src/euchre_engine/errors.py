# engine_py/src/euchre_engine/errors.py

from .constants import ERROR_DECK_SIZE


class GameError(Exception):
    """Base exception for game-related errors."""
    def __init__(self, code: str, message: str):
        self.code = code
        self.message = message
        super().__init__(f"[{code}] {message}")


class DeckSizeError(GameError):
    """Raised when dealing a deck that does not hold exactly 24 cards."""
    def __init__(self, size: int):
        self.size = size
        super().__init__(ERROR_DECK_SIZE, f"Deck must have 24 cards, got {size}")

