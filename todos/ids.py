import logging

from todos.exceptions import IdentifierSpaceExhausted

logger = logging.getLogger(__name__)

# Identifiers are 16-bit unsigned; 0 is never issued
MAX_IDENTIFIER = 65535


class IdentifierGenerator:
    """
    Issues strictly increasing record identifiers, starting at 1.

    Identifiers are never reused, even after the record they were issued for
    is deleted. The generator does no locking of its own: TodoStore only calls
    it while holding the store lock.
    """

    def __init__(self, max_value: int = MAX_IDENTIFIER):
        self.max_value = max_value
        self._current = 0

    @property
    def current(self) -> int:
        """Last identifier issued, or 0 if none has been issued yet."""
        return self._current

    def next_id(self) -> int:
        """
        Advance the counter and return the new value.

        Raises:
            IdentifierSpaceExhausted: If max_value has already been issued.
                The counter is left unchanged.
        """
        if self._current >= self.max_value:
            logger.error(f"Identifier space exhausted at {self.max_value}")
            raise IdentifierSpaceExhausted(self.max_value)

        self._current += 1
        return self._current
