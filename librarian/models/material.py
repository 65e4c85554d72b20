from enum import Enum

from ..exceptions import ConfigurationError


class MaterialType(str, Enum):
    """Kinds of library material. The type decides which fine policy applies."""

    BOOK = "BOOK"
    CD = "CD"
    JOURNAL = "JOURNAL"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value) -> "MaterialType":
        """Accept a MaterialType or its name in any case; raise ConfigurationError otherwise."""
        if isinstance(value, cls):
            return value
        name = str(value or "").strip().upper()
        try:
            return cls(name)
        except ValueError:
            raise ConfigurationError(f"Error: unknown material type {value!r}") from None
