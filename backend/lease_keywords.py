"""
Keyword vocabularies for the ISC DHCP lease file format
Declaration keywords open a top-level section, lease keywords are only
recognized inside a lease block
"""

from enum import Enum
from typing import Optional


class DeclarationKeyword(Enum):
    """Top-level declarations supported in dhcpd.leases"""

    LEASE = "lease"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def lookup(cls, word: str) -> Optional["DeclarationKeyword"]:
        """Return the declaration keyword spelled exactly as word, or None"""
        return _DECLARATION_KEYWORDS.get(word)


class LeaseKeyword(Enum):
    """Statements recognized inside a lease { ... } block"""

    STARTS = "starts"
    ENDS = "ends"
    TSTP = "tstp"
    TSFP = "tsfp"
    ATSFP = "atsfp"
    CLTT = "cltt"
    HARDWARE = "hardware"
    UID = "uid"
    CLIENT_HOSTNAME = "client-hostname"
    HOSTNAME = "hostname"
    BINDING = "binding"
    STATE = "state"
    NEXT = "next"
    REWIND = "rewind"
    SET = "set"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def lookup(cls, word: str) -> Optional["LeaseKeyword"]:
        """Return the lease keyword spelled exactly as word, or None"""
        return _LEASE_KEYWORDS.get(word)


_DECLARATION_KEYWORDS = {kw.value: kw for kw in DeclarationKeyword}
_LEASE_KEYWORDS = {kw.value: kw for kw in LeaseKeyword}
