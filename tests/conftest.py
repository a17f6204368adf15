"""Shared pytest fixtures for lease parser and API tests."""

import pytest

# Excerpt of a lease file written by isc-dhcp-4.4.1
REAL_WORLD_LEASES = r'''
# The format of this file is documented in the dhcpd.leases(5) manual page.
# This lease file was written by isc-dhcp-4.4.1

# authoring-byte-order entry is generated, DO NOT DELETE
authoring-byte-order little-endian;

server-duid "\000\001\000\001+\216\012\330RT\000\022\064V";

lease 10.11.4.50 {
  starts 3 2023/02/22 21:15:36;
  ends 4 2023/02/23 09:15:36;
  tstp 4 2023/02/23 09:15:36;
  cltt 3 2023/02/22 21:23:36;
  binding state free;
  hardware ethernet 5a:64:bf:76:34:58;
  uid "\001Zd\277v4X";
  set vendor-class-identifier = "android-dhcp-13";
}
lease 10.11.4.57 {
  starts 5 2023/02/24 07:51:09;
  ends 5 2023/02/24 19:51:09;
  tstp 5 2023/02/24 19:51:09;
  cltt 5 2023/02/24 07:51:09;
  binding state free;
  hardware ethernet 1c:15:1f:aa:29:36;
  uid "\001\034\025\037\252)6";
  set vendor-class-identifier = "HUAWEI:android:ALP";
}
lease 10.11.4.52 {
  starts 0 2023/02/26 07:52:20;
  ends 0 2023/02/26 19:52:20;
  cltt 0 2023/02/26 07:52:20;
  binding state active;
  next binding state free;
  rewind binding state free;
  hardware ethernet 6c:6a:77:f9:cc:93;
  uid "\001ljw\371\314\223";
  client-hostname "mailbook";
}
'''

# Same address leased twice, the second grant is a year later
HISTORY_LEASES = '''
lease 192.168.0.2 {
    starts 2 2019/01/01 22:00:00 UTC;
    ends 2 2019/01/01 23:00:00 UTC;
    hardware type 11:11:11:11:11:11;
    uid Client1;
    client-hostname "CLIENTHOSTNAME";
    hostname "TESTHOSTNAME";
}

lease 192.168.0.3 {
    starts 3 1985/01/02 00:00:00 UTC;
    ends 3 1985/01/02 02:00:00 UTC;
    hardware type 22:22:22:22:22:22;
    uid Client2;
    hostname "TESTHOSTNAME";
    client-hostname "HN";
}

lease 192.168.0.3 {
    starts 4 1986/01/02 00:00:00 UTC;
    ends 2 1986/12/02 02:00:00 UTC;
    hardware type 33:33:33:33:33:33;
    uid Client3;
    client-hostname "HN";
}
'''


@pytest.fixture
def real_world_leases() -> str:
    return REAL_WORLD_LEASES


@pytest.fixture
def history_leases() -> str:
    return HISTORY_LEASES


@pytest.fixture
def leases_file(tmp_path):
    """Write HISTORY_LEASES to a temporary dhcpd.leases file."""
    path = tmp_path / "dhcpd.leases"
    path.write_text(HISTORY_LEASES)
    return path


@pytest.fixture
def config_file(tmp_path, leases_file):
    """Write an application config pointing at the temporary leases file."""
    path = tmp_path / "config.conf"
    path.write_text(
        "# ISC DHCP Lease Inspector test configuration\n"
        f"DHCP_LEASES_PATH={leases_file}\n"
        f"LOGGING_PATH={tmp_path / 'logs'}\n"
        "LOG_LEVEL=DEBUG\n"
        "CORS_ORIGINS=http://localhost:3000\n"
    )
    return path
