"""Latest-quote holder shared between a feed callback and the decision loop."""

from crossarb.core.types import MarketQuote


class QuoteCell:
    """
    Single-slot quote snapshot.

    The feed replaces the whole frozen quote on every update, so a reader
    always sees bid and ask from the same push and never a torn pair.
    """

    __slots__ = ("_quote",)

    def __init__(self) -> None:
        self._quote = MarketQuote.EMPTY

    def store(self, quote: MarketQuote) -> None:
        """Publish a new snapshot."""
        self._quote = quote

    def load(self) -> MarketQuote:
        """Read the latest snapshot."""
        return self._quote

    def __repr__(self) -> str:
        q = self._quote
        return f"QuoteCell(bid={q.bid_price}, ask={q.ask_price})"
