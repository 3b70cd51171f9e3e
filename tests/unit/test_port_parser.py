import pytest
from rcl.PARSERS.port_parser import PortParser


def pairs(mappings):
    return [(m.host, m.container) for m in mappings]


def test_single_port():
    assert pairs(PortParser.parse("7000")) == [(7000, 7000)]


def test_host_container_pair():
    assert pairs(PortParser.parse("17000:7000")) == [(17000, 7000)]


def test_range():
    assert pairs(PortParser.parse("7000-7005")) == [(p, p) for p in range(7000, 7006)]


def test_shifted_range():
    assert pairs(PortParser.parse("17000-17002:7000-7002")) == [(17000, 7000), (17001, 7001), (17002, 7002)]


def test_host_ip():
    mappings = PortParser.parse("127.0.0.1:7000:7000")
    assert mappings[0].host_ip == "127.0.0.1"
    assert mappings[0].publish_arg == "127.0.0.1:7000:7000"


def test_comma_list_keeps_order():
    assert pairs(PortParser.parse("7001, 7000")) == [(7001, 7001), (7000, 7000)]


def test_parse_all():
    assert pairs(PortParser.parse_all(["7000", 7001])) == [(7000, 7000), (7001, 7001)]


@pytest.mark.parametrize("expression", [
    "",
    "abc",
    "7000,",
    "7005-7000",
    "7000-7002:7000-7001",
    "1:2:3:4",
    ":7000:7000",
    "70000",
    "1-99999999999",
    "0-10",
    "65000-70000",
    "99999999999:7000",
])
def test_invalid_expressions(expression):
    with pytest.raises(ValueError):
        PortParser.parse(expression)
