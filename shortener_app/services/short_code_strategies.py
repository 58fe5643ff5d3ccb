"""
Short code generation strategies for URL shortener.
Uses Strategy Pattern to allow different generation algorithms.
"""

import logging
import secrets
import string
from abc import ABC, abstractmethod
from typing import Callable

from shortener_app.exceptions import CodeSpaceExhausted

logger = logging.getLogger(__name__)


class ShortCodeStrategy(ABC):
    """Abstract base class for short code generation strategies"""

    @abstractmethod
    def generate(self, is_taken: Callable[[str], bool]) -> str:
        """
        Generate a short code.

        Args:
            is_taken: Callback reporting whether a candidate code is already in use

        Returns:
            A short code string that was free when checked

        Raises:
            CodeSpaceExhausted: If no free code was found
        """
        pass


class RandomShortCodeStrategy(ShortCodeStrategy):
    """
    Random generation strategy.
    Draws random alphanumerics, upper-cases them and checks the store for uniqueness.

    With 36^6 (~2.2 billion) codes a collision is rare, so the retry budget
    exists to turn a pathological store state into an error instead of a hang.
    """

    def __init__(self, length: int = 6, max_retries: int = 100):
        self.length = length
        self.max_retries = max_retries
        self.characters = string.ascii_letters + string.digits

    def generate(self, is_taken: Callable[[str], bool]) -> str:
        """Generate random short code with collision checking"""
        for attempt in range(1, self.max_retries + 1):
            short_code = self._generate_random_string()

            if not is_taken(short_code):
                return short_code

            logger.debug("Short code collision on %s (attempt %d)", short_code, attempt)

        # If all retries failed
        raise CodeSpaceExhausted(self.max_retries)

    def _generate_random_string(self) -> str:
        """Generate an upper-cased random string of specified length"""
        return ''.join(secrets.choice(self.characters) for _ in range(self.length)).upper()
