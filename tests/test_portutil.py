import json

import pytest

from ctrkit.portutil import PortMapping, parse_flag_p, parse_port_range


def test_simple_mapping_defaults():
    assert parse_flag_p("8080:80") == [
        PortMapping(host_port=8080, container_port=80, protocol="tcp", host_ip="0.0.0.0")
    ]


def test_ip_and_protocol_are_kept():
    (mapping,) = parse_flag_p("127.0.0.1:8080:80/UDP")
    assert mapping.host_ip == "127.0.0.1"
    assert mapping.protocol == "udp"
    assert (mapping.host_port, mapping.container_port) == (8080, 80)


def test_ipv6_host_ip():
    (mapping,) = parse_flag_p("::1:8080:80")
    assert mapping.host_ip == "::1"
    assert mapping.host_port == 8080


def test_ranges_are_expanded_pairwise():
    mappings = parse_flag_p("8000-8002:80-82/sctp")
    assert len(mappings) == 3
    assert mappings[0].host_port == 8000
    assert mappings[-1].container_port == 82
    for m in mappings:
        assert m.host_port - m.container_port == 8000 - 80
        assert m.protocol == "sctp"


def test_host_range_with_single_container_port():
    mappings = parse_flag_p("8000-8001:80")
    assert [(m.host_port, m.container_port) for m in mappings] == [(8000, 80)]


@pytest.mark.parametrize(
    "flag, message",
    [
        ("80", "automatic host port"),
        ("8080:80/foo", "invalid protocol"),
        ("8080:80/tcp/x", "unexpected slashes"),
        ("8080:", "no port specified"),
        ("x:80", "invalid hostPort"),
        ("8080:y", "invalid containerPort"),
        ("8000-8001:80-82", "invalid ranges"),
        ("bad:8080:80", "invalid ip address"),
    ],
)
def test_invalid_flags(flag, message):
    with pytest.raises(ValueError, match=message):
        parse_flag_p(flag)


def test_parse_port_range():
    assert parse_port_range("10-20") == (10, 20)
    assert parse_port_range("443") == (443, 443)


@pytest.mark.parametrize("text", ["", "70000", "5-3", "-1", "+5", "a-b"])
def test_parse_port_range_errors(text):
    with pytest.raises(ValueError):
        parse_port_range(text)


def test_json_round_trip():
    mapping = PortMapping(host_port=8080, container_port=80, protocol="tcp", host_ip="0.0.0.0")
    data = json.loads(json.dumps(mapping.to_json()))
    assert set(data) == {"HostPort", "ContainerPort", "Protocol", "HostIP"}
    assert PortMapping.from_json(data) == mapping


def test_from_json_missing_fields_default():
    assert PortMapping.from_json({"HostPort": 1}) == PortMapping(host_port=1)