"""Tests for the lease data model and active lease resolution."""

import dataclasses

import pytest

from lease_date import Date
from lease_parser import parse
from leases import BindingState, Hardware, Lease, LeaseBuilder, LeaseDates, Leases, LeasesField


def _at(text: str) -> Date:
    return Date.parse(text)


def _window(starts=None, ends=None) -> Lease:
    return Lease(
        ip="10.0.0.1",
        dates=LeaseDates(
            starts=_at(starts) if starts else None,
            ends=_at(ends) if ends else None,
        ),
    )


class TestIsActiveAt:
    def test_inside_window(self):
        lease = _window("2019/01/01 22:00:00", "2019/01/01 23:00:00")
        assert lease.is_active_at(_at("2019/01/01 22:30:00"))

    def test_bounds_are_inclusive(self):
        lease = _window("2019/01/01 22:00:00", "2019/01/01 23:00:00")
        assert lease.is_active_at(_at("2019/01/01 22:00:00"))
        assert lease.is_active_at(_at("2019/01/01 23:00:00"))

    def test_outside_window(self):
        lease = _window("2019/01/01 22:00:00", "2019/01/01 23:00:00")
        assert not lease.is_active_at(_at("2019/01/01 21:59:00"))
        assert not lease.is_active_at(_at("2019/01/01 23:59:00"))

    def test_missing_ends_is_open(self):
        lease = _window(starts="1985/01/02 00:00:00")
        assert not lease.is_active_at(_at("1985/01/01 22:30:00"))
        assert lease.is_active_at(_at("2030/01/01 00:00:00"))

    def test_missing_starts_is_open(self):
        lease = _window(ends="1985/01/02 00:00:00")
        assert lease.is_active_at(_at("1970/01/01 00:00:00"))
        assert not lease.is_active_at(_at("1985/01/02 00:00:01"))

    def test_no_dates_always_active(self):
        assert Lease().is_active_at(_at("2019/01/01 00:00:00"))


class TestActiveBy:
    def test_later_lease_shadows_earlier(self, history_leases):
        leases = parse(history_leases).leases
        lease = leases.active_by(LeasesField.LEASED_IP, "192.168.0.3", _at("1986/06/01 00:00:00"))
        assert lease is leases[2]

    def test_earlier_lease_found_inside_its_window(self, history_leases):
        leases = parse(history_leases).leases
        lease = leases.active_by(LeasesField.LEASED_IP, "192.168.0.3", _at("1985/01/02 01:00:00"))
        assert lease is leases[1]

    def test_newest_active_lease_wins_when_windows_overlap(self):
        leases = parse(
            "lease 10.0.0.5 { starts 1 2024/01/01 00:00:00; ends 3 2024/01/31 00:00:00; uid old; }\n"
            "lease 10.0.0.5 { starts 1 2024/01/08 00:00:00; ends 3 2024/01/31 00:00:00; uid new; }\n"
        ).leases
        lease = leases.active_by(LeasesField.LEASED_IP, "10.0.0.5", _at("2024/01/10 00:00:00"))
        assert lease.uid == "new"

    def test_no_lease_outside_all_windows(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.active_by(LeasesField.LEASED_IP, "192.168.0.3", _at("1990/01/01 00:00:00")) is None

    def test_abandoned_lease_is_skipped(self):
        leases = parse(
            "lease 10.0.0.5 { starts 1 2024/01/01 00:00:00; uid first; binding state active; }\n"
            "lease 10.0.0.5 { starts 1 2024/01/01 00:00:00; uid second; binding state abandoned; }\n"
        ).leases
        lease = leases.active_by(LeasesField.LEASED_IP, "10.0.0.5", _at("2024/02/01 00:00:00"))
        assert lease.uid == "first"

    def test_free_lease_counts_as_active(self):
        leases = parse("lease 10.0.0.5 { binding state free; }").leases
        assert leases.active_by(LeasesField.LEASED_IP, "10.0.0.5", _at("2024/02/01 00:00:00")) is leases[0]

    def test_by_mac(self, history_leases):
        leases = parse(history_leases).leases
        lease = leases.active_by(LeasesField.MAC, "33:33:33:33:33:33", _at("1986/06/01 00:00:00"))
        assert lease.uid == "Client3"
        assert leases.active_by(LeasesField.MAC, "22:22:22:22:22:22", _at("1986/06/01 00:00:00")) is None

    def test_by_hostname(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.active_by_hostname("TESTHOSTNAME", _at("2019/01/01 22:30:00")) is leases[0]
        assert leases.active_by_hostname("TESTHOSTNAME", _at("1986/06/01 00:00:00")) is None

    def test_by_client_hostname(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.active_by_client_hostname("HN", _at("1986/06/01 00:00:00")) is leases[2]
        assert leases.active_by_client_hostname("HN", _at("1985/01/02 00:30:00")) is leases[1]

    def test_lease_without_field_never_matches(self):
        leases = Leases([Lease(ip="10.0.0.1")])
        assert leases.active_by(LeasesField.MAC, "", _at("2024/01/01 00:00:00")) is None


class TestActivePerIp:
    @pytest.mark.parametrize("moment", [
        "1985/01/02 00:30:00",
        "1986/06/01 00:00:00",
        "2019/01/01 22:30:00",
        "2000/01/01 00:00:00",
    ])
    def test_matches_active_by_for_every_address(self, history_leases, moment):
        leases = parse(history_leases).leases
        at = _at(moment)
        expected = []
        for ip in dict.fromkeys(lease.ip for lease in leases):
            lease = leases.active_by(LeasesField.LEASED_IP, ip, at)
            if lease is not None:
                expected.append(lease)
        assert leases.active_per_ip(at) == expected

    def test_ordered_by_first_appearance(self):
        leases = parse(
            "lease 10.0.0.2 { uid a; }\n"
            "lease 10.0.0.1 { uid b; }\n"
            "lease 10.0.0.2 { uid c; }\n"
        ).leases
        assert [lease.uid for lease in leases.active_per_ip(_at("2024/01/01 00:00:00"))] == ["c", "b"]

    def test_inactive_and_abandoned_later_leases_fall_through(self):
        leases = parse(
            "lease 10.0.0.5 { starts 1 2024/01/01 00:00:00; uid held; }\n"
            "lease 10.0.0.5 { starts 1 2024/01/01 00:00:00; uid lost; binding state abandoned; }\n"
            "lease 10.0.0.5 { starts 1 2030/01/01 00:00:00; uid future; }\n"
        ).leases
        assert [lease.uid for lease in leases.active_per_ip(_at("2024/02/01 00:00:00"))] == ["held"]

    def test_scales_with_many_addresses(self):
        blocks = []
        for round_ in range(4):
            for host in range(3000):
                blocks.append(
                    f"lease 10.{host // 250}.{host % 250}.1 {{ uid r{round_}; "
                    f"starts 1 2024/01/0{round_ + 1} 00:00:00; ends 1 2024/01/0{round_ + 2} 00:00:00; }}\n"
                )
        leases = parse("".join(blocks)).leases
        active = leases.active_per_ip(_at("2024/01/03 12:00:00"))
        assert len(active) == 3000
        assert {lease.uid for lease in active} == {"r2"}


class TestLookups:
    def test_by_leased_returns_latest(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.by_leased("192.168.0.3").uid == "Client3"
        assert leases.by_leased("10.9.9.9") is None

    def test_by_leased_all_keeps_order(self, history_leases):
        leases = parse(history_leases).leases
        assert [lease.uid for lease in leases.by_leased_all("192.168.0.3")] == ["Client2", "Client3"]

    def test_by_mac(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.by_mac("22:22:22:22:22:22").uid == "Client2"
        assert [lease.uid for lease in leases.by_mac_all("11:11:11:11:11:11")] == ["Client1"]

    def test_by_hostname_all(self, history_leases):
        leases = parse(history_leases).leases
        assert [lease.uid for lease in leases.by_hostname_all("TESTHOSTNAME")] == ["Client1", "Client2"]
        assert [lease.uid for lease in leases.by_client_hostname_all("HN")] == ["Client2", "Client3"]

    def test_hostnames(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.hostnames() == {"TESTHOSTNAME"}

    def test_client_hostnames(self, history_leases):
        leases = parse(history_leases).leases
        assert leases.client_hostnames() == {"CLIENTHOSTNAME", "HN"}


class TestModel:
    def test_builder_defaults_match_lease_defaults(self):
        assert LeaseBuilder().build() == Lease()
        assert Lease().ip == "localhost"

    def test_lease_is_frozen(self):
        with pytest.raises(dataclasses.FrozenInstanceError):
            Lease().ip = "10.0.0.1"

    def test_leases_collection(self):
        first, second = Lease(ip="10.0.0.1"), Lease(ip="10.0.0.2")
        leases = Leases()
        leases.push(first)
        leases.push(second)
        assert len(leases) == 2
        assert list(leases) == [first, second]
        assert leases.all() == [first, second]
        assert leases == Leases([first, second])
        assert leases != Leases([second, first])

    def test_to_dict(self, real_world_leases):
        data = parse(real_world_leases).leases[2].to_dict()
        assert data['ip'] == "10.11.4.52"
        assert data['binding_state'] == "active"
        assert data['next_binding_state'] == "free"
        assert data['rewind_binding_state'] == "free"
        assert data['hardware'] == {'type': 'ethernet', 'mac': '6c:6a:77:f9:cc:93'}
        assert data['dates']['starts'] == "Sunday 2023/02/26 07:52:20"
        assert data['dates']['tstp'] is None
        assert data['client_hostname'] == "mailbook"
        assert data['vendor_class_identifier'] is None

    def test_field_values(self):
        lease = Lease(ip="10.0.0.1", hardware=Hardware("ethernet", "aa:bb"), hostname="h", client_hostname="c")
        assert LeasesField.LEASED_IP.value_of(lease) == "10.0.0.1"
        assert LeasesField.MAC.value_of(lease) == "aa:bb"
        assert LeasesField.HOSTNAME.value_of(lease) == "h"
        assert LeasesField.CLIENT_HOSTNAME.value_of(lease) == "c"
        assert LeasesField.MAC.value_of(Lease()) is None

    def test_binding_state_strings(self):
        assert [str(state) for state in BindingState] == ["active", "free", "abandoned"]
