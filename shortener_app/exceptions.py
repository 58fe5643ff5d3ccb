"""
Exceptions raised by the mapping store and key-value store layers.

The HTTP layer maps each of them to a status code:
- StoreUnavailable   -> 503 (client may retry)
- CodeSpaceExhausted -> 503 (client may retry)
- StoreError         -> 500 (details are logged, not returned)

"Not found" is not an exception: lookups return None.
"""


class ShortenerError(Exception):
    """Base class for all service errors"""


class StoreError(ShortenerError):
    """The key-value store failed (protocol error, corrupt payload, ...)"""


class StoreUnavailable(StoreError):
    """The key-value store could not be reached or refused the connection"""


class CodeSpaceExhausted(ShortenerError):
    """No free short code was found within the retry budget"""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(
            f"Could not generate unique short code after {attempts} attempts"
        )
