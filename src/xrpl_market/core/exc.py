"""
Core exception types for xrpl_market.core.

These are dependency-free and may be imported by all modules.
"""

__all__ = [
    "MarketError",
    "InvalidAsset",
    "InvalidLength",
    "AmountDomainError",
    "UpstreamUnavailable",
    "RpcError",
]


class MarketError(Exception):
    """Base class for all xrpl_market errors."""
    pass


class InvalidAsset(MarketError):
    """Raised when a currency/issuer pairing is malformed (e.g. issued asset without issuer)."""
    pass


class InvalidLength(MarketError):
    """Raised when an encode target is empty or exceeds its fixed field width."""

    def __init__(self, what: str, length: int, max_length: int):
        super().__init__(f"{what} must be 1..{max_length} bytes, got {length}")
        self.what = what
        self.length = length
        self.max_length = max_length


class AmountDomainError(MarketError):
    """Raised when a numeric or amount payload cannot be interpreted."""
    pass


class UpstreamUnavailable(MarketError):
    """Raised when a collaborator fetch fails.

    Attributes
    ----------
    method : str | None
        The upstream method (e.g. ``book_offers``) that failed, for context.
    """

    def __init__(self, message: str, *, method=None):
        super().__init__(message)
        self.method = method


class RpcError(UpstreamUnavailable):
    """Raised when the ledger answers with an error result (not a transport failure).

    ``code`` carries the ledger error token, e.g. ``actNotFound``.
    """

    def __init__(self, code: str, message: str = "", *, method=None):
        super().__init__(f"{method or 'rpc'} failed: {code}{': ' + message if message else ''}", method=method)
        self.code = code
