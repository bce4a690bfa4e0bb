"""
Exception taxonomy for the Banker's Allocator.

Request outcomes (exceeds need, must wait, unsafe) are NOT exceptions - they
are returned as RequestOutcome values. Exceptions are reserved for malformed
input that should never reach the allocator in a correct caller.
"""


class BankerError(Exception):
    """Base class for all allocator errors."""
    pass


class MalformedConfigurationError(BankerError, ValueError):
    """
    Raised when an initial configuration cannot form a valid state.

    Covers mismatched vector/matrix dimensions, ragged rows, negative or
    non-integer entries, and Allocation exceeding Max for some entry.
    """
    pass


class InvalidRequestError(BankerError, ValueError):
    """Raised when an operation is called with an invalid pid or vector."""
    pass
