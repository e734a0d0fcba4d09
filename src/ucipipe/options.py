"""Descriptors for configuration options advertised by an engine.

Only the shape is defined here. Turning ``option name ... type ...`` lines
into :class:`Option` values is left to a parser built on top; such a parser
should map unrecognised type tokens to :attr:`OptionType.UNKNOWN` rather than
fail, which :meth:`OptionType.from_token` does.
"""

from dataclasses import dataclass, field
from enum import Enum

from ucipipe.errors import InvalidOption


class OptionType(Enum):
    """Kinds of option a UCI engine can expose."""

    CHECK = "check"  # Boolean
    SPIN = "spin"  # Integer in [minimum, maximum]
    COMBO = "combo"  # One of allowed_values
    BUTTON = "button"  # Action without a value
    STRING = "string"  # Free text
    UNKNOWN = "unknown"

    @classmethod
    def from_token(cls, token: str) -> "OptionType":
        """Map a protocol type token to a member, falling back to UNKNOWN."""
        try:
            return cls(token.strip().lower())
        except ValueError:
            return cls.UNKNOWN


@dataclass(frozen=True)
class Option:
    """An engine configuration option.

    Values are kept as the strings the engine advertised.
    """

    name: str
    type: OptionType = OptionType.UNKNOWN
    default: str | None = None
    minimum: str | None = None
    maximum: str | None = None
    allowed_values: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        """Validate."""
        if not self.name:
            raise InvalidOption("Option name must not be empty")

        # Accept any iterable of values but store an immutable, ordered tuple
        object.__setattr__(self, "allowed_values", tuple(self.allowed_values))

        if self.type is OptionType.SPIN and self.minimum is not None and self.maximum is not None:
            try:
                low, high = int(self.minimum), int(self.maximum)
            except ValueError as e:
                raise InvalidOption(f"Option '{self.name}' has non-integer bounds: {e}") from e
            if low > high:
                raise InvalidOption(f"Option '{self.name}' minimum ({low}) exceeds maximum ({high})")

    def accepts(self, value: str) -> bool:
        """Whether ``value`` is a legal setting for this option."""
        if self.type is OptionType.CHECK:
            return value in ("true", "false")
        if self.type is OptionType.SPIN:
            try:
                number = int(value)
            except ValueError:
                return False
            if self.minimum is not None and number < int(self.minimum):
                return False
            return self.maximum is None or number <= int(self.maximum)
        if self.type is OptionType.COMBO:
            return value in self.allowed_values
        if self.type is OptionType.BUTTON:
            return value == ""
        return True
