"""
DHCP Lease Data Model
Records produced by the lease file parser and queries over them
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterator, List, Optional, Set

from lease_date import Date

DEFAULT_LEASE_IP = "localhost"


class BindingState(Enum):
    """Lifecycle state the DHCP server assigned to a lease"""
    ACTIVE = "active"
    FREE = "free"
    ABANDONED = "abandoned"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class LeaseDates:
    """Timestamps of a lease, each None until its statement is seen"""
    starts: Optional[Date] = None
    ends: Optional[Date] = None
    tstp: Optional[Date] = None
    tsfp: Optional[Date] = None
    atsfp: Optional[Date] = None
    cltt: Optional[Date] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            'starts': _date_str(self.starts),
            'ends': _date_str(self.ends),
            'tstp': _date_str(self.tstp),
            'tsfp': _date_str(self.tsfp),
            'atsfp': _date_str(self.atsfp),
            'cltt': _date_str(self.cltt)
        }


@dataclass(frozen=True)
class Hardware:
    """Link-layer type and address from a 'hardware' statement"""
    h_type: str
    mac: str

    def to_dict(self) -> Dict[str, str]:
        return {
            'type': self.h_type,
            'mac': self.mac
        }


@dataclass(frozen=True)
class Lease:
    """Represents one lease <ip> { ... } block of dhcpd.leases"""
    ip: str = DEFAULT_LEASE_IP
    dates: LeaseDates = field(default_factory=LeaseDates)
    hardware: Optional[Hardware] = None
    uid: Optional[str] = None
    client_hostname: Optional[str] = None
    hostname: Optional[str] = None
    binding_state: BindingState = BindingState.FREE
    next_binding_state: Optional[BindingState] = None
    rewind_binding_state: Optional[BindingState] = None
    vendor_class_identifier: Optional[str] = None

    def is_active_at(self, when: Date) -> bool:
        """
        Check whether when falls inside the lease window

        Both bounds are inclusive, a missing bound does not restrict.
        """
        if self.dates.starts is not None and self.dates.starts > when:
            return False

        if self.dates.ends is not None and self.dates.ends < when:
            return False

        return True

    def to_dict(self) -> Dict:
        return {
            'ip': self.ip,
            'dates': self.dates.to_dict(),
            'hardware': self.hardware.to_dict() if self.hardware else None,
            'uid': self.uid,
            'client_hostname': self.client_hostname,
            'hostname': self.hostname,
            'binding_state': str(self.binding_state),
            'next_binding_state': _state_str(self.next_binding_state),
            'rewind_binding_state': _state_str(self.rewind_binding_state),
            'vendor_class_identifier': self.vendor_class_identifier
        }


@dataclass
class LeaseBuilder:
    """Mutable lease record filled in statement by statement while parsing"""
    ip: str = DEFAULT_LEASE_IP
    starts: Optional[Date] = None
    ends: Optional[Date] = None
    tstp: Optional[Date] = None
    tsfp: Optional[Date] = None
    atsfp: Optional[Date] = None
    cltt: Optional[Date] = None
    hardware: Optional[Hardware] = None
    uid: Optional[str] = None
    client_hostname: Optional[str] = None
    hostname: Optional[str] = None
    binding_state: BindingState = BindingState.FREE
    next_binding_state: Optional[BindingState] = None
    rewind_binding_state: Optional[BindingState] = None
    vendor_class_identifier: Optional[str] = None

    def build(self) -> Lease:
        """Freeze the accumulated statements into a Lease"""
        return Lease(
            ip=self.ip,
            dates=LeaseDates(
                starts=self.starts,
                ends=self.ends,
                tstp=self.tstp,
                tsfp=self.tsfp,
                atsfp=self.atsfp,
                cltt=self.cltt
            ),
            hardware=self.hardware,
            uid=self.uid,
            client_hostname=self.client_hostname,
            hostname=self.hostname,
            binding_state=self.binding_state,
            next_binding_state=self.next_binding_state,
            rewind_binding_state=self.rewind_binding_state,
            vendor_class_identifier=self.vendor_class_identifier
        )


def _mac_of(lease: Lease) -> Optional[str]:
    return lease.hardware.mac if lease.hardware else None


class LeasesField(Enum):
    """Lease attributes usable as lookup keys"""
    CLIENT_HOSTNAME = "client-hostname"
    HOSTNAME = "hostname"
    LEASED_IP = "ip"
    MAC = "mac"

    def value_of(self, lease: Lease) -> Optional[str]:
        return _FIELD_GETTERS[self](lease)


_FIELD_GETTERS: Dict[LeasesField, Callable[[Lease], Optional[str]]] = {
    LeasesField.CLIENT_HOSTNAME: lambda lease: lease.client_hostname,
    LeasesField.HOSTNAME: lambda lease: lease.hostname,
    LeasesField.LEASED_IP: lambda lease: lease.ip,
    LeasesField.MAC: _mac_of,
}


class Leases:
    """
    Ordered collection of leases in file declaration order

    dhcpd appends a new block every time a lease changes, so one IP address
    can appear many times. Later entries describe more recent grants.
    """

    def __init__(self, leases: Optional[List[Lease]] = None):
        self._leases: List[Lease] = list(leases) if leases else []

    def push(self, lease: Lease) -> None:
        self._leases.append(lease)

    def all(self) -> List[Lease]:
        return list(self._leases)

    def __len__(self) -> int:
        return len(self._leases)

    def __getitem__(self, index: int) -> Lease:
        return self._leases[index]

    def __iter__(self) -> Iterator[Lease]:
        return iter(self._leases)

    def __eq__(self, other) -> bool:
        if not isinstance(other, Leases):
            return NotImplemented
        return self._leases == other._leases

    def __repr__(self) -> str:
        return f"Leases({self._leases!r})"

    def active_by(self, lookup: LeasesField, value: str, active_at: Date) -> Optional[Lease]:
        """
        Find the lease currently holding value for the given field

        The lease has to be active: active_at lies between its starts and
        ends, it is not abandoned, and no later active lease matches.

        Args:
            lookup: Field to match on
            value: Expected field value
            active_at: Point in time to check

        Returns:
            Matching Lease, or None
        """
        for lease in reversed(self._leases):
            if lease.binding_state is BindingState.ABANDONED:
                continue
            if not lease.is_active_at(active_at):
                continue
            if lookup.value_of(lease) == value:
                return lease
        return None

    def active_per_ip(self, active_at: Date) -> List[Lease]:
        """
        Resolve the active lease of every address in one pass

        Gives the same lease per IP as active_by(LEASED_IP, ip, active_at),
        ordered by the first appearance of each IP in the file. Addresses
        with no active lease are left out.
        """
        first_seen: Dict[str, None] = {}
        for lease in self._leases:
            first_seen.setdefault(lease.ip, None)

        holders: Dict[str, Lease] = {}
        for lease in reversed(self._leases):
            if lease.ip in holders:
                continue
            if lease.binding_state is BindingState.ABANDONED:
                continue
            if lease.is_active_at(active_at):
                holders[lease.ip] = lease

        return [holders[ip] for ip in first_seen if ip in holders]

    def active_by_hostname(self, hostname: str, active_at: Date) -> Optional[Lease]:
        return self.active_by(LeasesField.HOSTNAME, hostname, active_at)

    def active_by_client_hostname(self, hostname: str, active_at: Date) -> Optional[Lease]:
        return self.active_by(LeasesField.CLIENT_HOSTNAME, hostname, active_at)

    def _latest(self, lookup: LeasesField, value: str) -> Optional[Lease]:
        for lease in reversed(self._leases):
            if lookup.value_of(lease) == value:
                return lease
        return None

    def _matching(self, lookup: LeasesField, value: str) -> List[Lease]:
        return [lease for lease in self._leases if lookup.value_of(lease) == value]

    def by_leased(self, ip: str) -> Optional[Lease]:
        """Most recently declared lease for ip, active or not"""
        return self._latest(LeasesField.LEASED_IP, ip)

    def by_leased_all(self, ip: str) -> List[Lease]:
        return self._matching(LeasesField.LEASED_IP, ip)

    def by_mac(self, mac: str) -> Optional[Lease]:
        """Most recently declared lease for a hardware address, active or not"""
        return self._latest(LeasesField.MAC, mac)

    def by_mac_all(self, mac: str) -> List[Lease]:
        return self._matching(LeasesField.MAC, mac)

    def by_hostname_all(self, hostname: str) -> List[Lease]:
        return self._matching(LeasesField.HOSTNAME, hostname)

    def by_client_hostname_all(self, hostname: str) -> List[Lease]:
        return self._matching(LeasesField.CLIENT_HOSTNAME, hostname)

    def hostnames(self) -> Set[str]:
        return {lease.hostname for lease in self._leases if lease.hostname is not None}

    def client_hostnames(self) -> Set[str]:
        return {lease.client_hostname for lease in self._leases if lease.client_hostname is not None}


def _date_str(date: Optional[Date]) -> Optional[str]:
    return str(date) if date is not None else None


def _state_str(state: Optional[BindingState]) -> Optional[str]:
    return str(state) if state is not None else None
