import pytest

from ctrkit.portmanager import PortSpec, RootlessCNIPortManager
from ctrkit.portutil import PortMapping


class FakeClient:
    def __init__(self, ports=None):
        self.ports = dict(ports or {})
        self.added = []
        self.removed = []
        self._next_id = max(self.ports, default=0) + 1

    def add_port(self, spec):
        self.added.append(spec)
        self.ports[self._next_id] = spec
        self._next_id += 1

    def list_ports(self):
        return list(self.ports.items())

    def remove_port(self, port_id):
        self.removed.append(port_id)
        del self.ports[port_id]


def mapping(host_ip="127.0.0.1", host_port=8080, container_port=80, protocol="tcp"):
    return PortMapping(
        host_port=host_port,
        container_port=container_port,
        protocol=protocol,
        host_ip=host_ip,
    )


def test_none_client_rejected():
    with pytest.raises(ValueError):
        RootlessCNIPortManager(None)


def test_expose_uses_host_port_for_child():
    client = FakeClient()
    pm = RootlessCNIPortManager(client)
    m = mapping()
    pm.expose_port(m)
    assert client.added == [
        PortSpec(proto=m.protocol, parent_ip=m.host_ip, parent_port=m.host_port, child_port=m.host_port)
    ]
    assert client.added[0].child_port != m.container_port


def test_expose_then_unexpose_round_trip():
    client = FakeClient()
    pm = RootlessCNIPortManager(client)
    m = mapping()
    pm.expose_port(m)
    assert len(client.ports) == 1
    pm.unexpose_port(m)
    assert client.ports == {}
    assert len(client.removed) == 1


def test_unexpose_picks_matching_entry():
    m = mapping()
    other_proto = PortSpec("udp", m.host_ip, m.host_port, m.host_port)
    other_port = PortSpec("tcp", m.host_ip, m.host_port + 1, m.host_port + 1)
    match = PortSpec("tcp", m.host_ip, m.host_port, m.host_port)
    client = FakeClient({1: other_proto, 2: other_port, 5: match})
    RootlessCNIPortManager(client).unexpose_port(m)
    assert client.removed == [5]
    assert set(client.ports) == {1, 2}


def test_unexpose_missing_is_idempotent():
    m = mapping()
    client = FakeClient({3: PortSpec("tcp", "10.0.0.1", m.host_port, m.host_port)})
    RootlessCNIPortManager(client).unexpose_port(m)
    assert client.removed == []
    assert set(client.ports) == {3}


def test_unexpose_skips_unparsable_parent_ip():
    m = mapping()
    client = FakeClient({4: PortSpec("tcp", "not-an-ip", m.host_port, m.host_port)})
    RootlessCNIPortManager(client).unexpose_port(m)
    assert client.removed == []


def test_unexpose_treats_ipv4_mapped_as_equal():
    m = mapping(host_ip="127.0.0.1")
    client = FakeClient({9: PortSpec("tcp", "::ffff:127.0.0.1", m.host_port, m.host_port)})
    RootlessCNIPortManager(client).unexpose_port(m)
    assert client.removed == [9]