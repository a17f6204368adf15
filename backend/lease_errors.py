"""
Exceptions raised while reading a dhcpd.leases file
"""


class LeaseFileError(ValueError):
    """Base class for all lease file errors. The file could not be parsed."""


class LeaseLexError(LeaseFileError):
    """Raised when the raw text cannot be split into tokens"""


class LeaseDateError(LeaseFileError):
    """Raised when a lease timestamp has an invalid weekday, date or time"""


class LeaseParseError(LeaseFileError):
    """Raised when the token stream does not match the lease file grammar"""
