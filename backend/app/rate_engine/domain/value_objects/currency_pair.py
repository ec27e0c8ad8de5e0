"""CurrencyPair value object for identifying what a rate prices."""

import re
from dataclasses import dataclass
from typing import Final, Optional, Self

# Matches any currency code in rule patterns (e.g. BTC_X)
WILDCARD: Final[str] = "X"

_CODE_PATTERN = re.compile(r"[A-Z0-9]+")


@dataclass(frozen=True)
class CurrencyPair:
    """Immutable ordered pair of currency codes.

    A pair ``(left, right)`` describes the price of ``left`` expressed in
    ``right``. Either side may be the wildcard ``X`` when the pair is used
    as a rule pattern.

    Attributes:
        left: The base currency code (e.g., "BTC").
        right: The quote currency code (e.g., "USD").
    """

    left: str
    right: str

    def __post_init__(self) -> None:
        """Validate both currency codes after initialization."""
        for code in (self.left, self.right):
            if not isinstance(code, str) or not _CODE_PATTERN.fullmatch(code):
                raise ValueError(f"Invalid currency code: {code!r}")

    @classmethod
    def parse(cls, value: str) -> Self:
        """Create a CurrencyPair from its ``LEFT_RIGHT`` text form.

        Codes are case-insensitive, so ``btc_usd`` parses as ``BTC_USD``.

        Args:
            value: The pair text (e.g., "BTC_USD").

        Returns:
            A new CurrencyPair instance.

        Raises:
            ValueError: If the text is not a valid currency pair.
        """
        pair = cls.try_parse(value)
        if pair is None:
            raise ValueError(f"Invalid currency pair: {value!r}")
        return pair

    @classmethod
    def try_parse(cls, value: str) -> Optional[Self]:
        """Parse a pair, returning None instead of raising."""
        parts = value.split("_")
        if len(parts) != 2:
            return None
        left, right = (part.upper() for part in parts)
        if not _CODE_PATTERN.fullmatch(left) or not _CODE_PATTERN.fullmatch(right):
            return None
        return cls(left, right)

    @property
    def has_wildcard(self) -> bool:
        return self.left == WILDCARD or self.right == WILDCARD

    def inverse(self) -> Self:
        """Return the pair with left and right swapped."""
        return type(self)(self.right, self.left)

    def with_wildcards_from(self, context: "CurrencyPair") -> Self:
        """Fill the wildcard sides of this pair from ``context``.

        Args:
            context: The pair currently being resolved.

        Returns:
            A pair where every ``X`` is replaced by the matching side of
            the context pair.
        """
        return type(self)(
            context.left if self.left == WILDCARD else self.left,
            context.right if self.right == WILDCARD else self.right,
        )

    def __str__(self) -> str:
        return f"{self.left}_{self.right}"
