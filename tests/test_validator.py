import pytest
from pydantic import ValidationError

from models.schemas import MALFORMED_ADDRESS, InvalidEntry, ValidEntry
from models.validation_model import EntryValidator, validate_line


@pytest.mark.parametrize("value", ["192.168.1.1", "0.0.0.0", "::1", "2001:db8::8a2e:370:7334", "fe80::1"])
def test_plain_ip_literals_are_valid(value):
    outcome = validate_line(value)

    assert isinstance(outcome, ValidEntry)
    assert outcome.entry.address == value
    assert outcome.entry.prefix is None
    assert outcome.entry.negated is False
    assert outcome.original == value


def test_ipv4_cidr():
    outcome = validate_line("10.0.0.0/24")

    assert outcome.valid
    assert outcome.entry.address == "10.0.0.0"
    assert outcome.entry.prefix == 24
    assert outcome.entry.is_cidr


def test_ipv6_cidr():
    outcome = validate_line("2001:db8::/32")

    assert outcome.valid
    assert outcome.entry.address == "2001:db8::"
    assert outcome.entry.prefix == 32


@pytest.mark.parametrize("value", ["10.0.0.0/0", "10.0.0.0/32", "::/0", "::1/128"])
def test_prefix_bounds_are_inclusive(value):
    assert validate_line(value).valid


def test_ipv4_prefix_out_of_range():
    outcome = validate_line("10.0.0.0/33")

    assert isinstance(outcome, InvalidEntry)
    assert "0-32" in outcome.reason
    assert outcome.reason == "invalid CIDR prefix (must be 0-32)"


def test_ipv6_prefix_out_of_range():
    outcome = validate_line("::1/129")

    assert not outcome.valid
    assert "0-128" in outcome.reason


@pytest.mark.parametrize("value", ["10.0.0.0/", "10.0.0.0/abc", "10.0.0.0/-1", "10.0.0.0/+8", "10.0.0.0/24/8"])
def test_unparsable_prefix(value):
    outcome = validate_line(value)

    assert not outcome.valid
    assert outcome.reason == "invalid CIDR prefix (must be 0-32)"
    assert outcome.original == value


def test_negated_entry_keeps_original():
    outcome = validate_line("!192.168.1.1")

    assert outcome.valid
    assert outcome.entry.negated is True
    assert outcome.entry.address == "192.168.1.1"
    assert outcome.entry.original == "!192.168.1.1"


def test_negated_cidr():
    outcome = validate_line("!10.1.0.0/16")

    assert outcome.valid
    assert outcome.entry.negated
    assert outcome.entry.prefix == 16


@pytest.mark.parametrize("value", ["not-an-ip", "256.1.1.1", "1.2.3", "!", "!!1.2.3.4", "example.com", "/24"])
def test_malformed_addresses(value):
    outcome = validate_line(value)

    assert isinstance(outcome, InvalidEntry)
    assert outcome.reason == MALFORMED_ADDRESS
    assert outcome.original == value


def test_malformed_address_reported_before_prefix():
    outcome = validate_line("!bogus/99")

    assert outcome.reason == MALFORMED_ADDRESS
    assert outcome.original == "!bogus/99"


def test_entry_spec_is_immutable():
    outcome = validate_line("1.2.3.4")

    with pytest.raises(ValidationError):
        outcome.entry.address = "5.6.7.8"


def test_validate_entries_preserves_order():
    validator = EntryValidator(log_level="ERROR")

    results = validator.validate_entries(["1.1.1.1", "nope", "2.2.2.0/24"])

    assert [r.valid for r in results] == [True, False, True]
    assert [r.original for r in results] == ["1.1.1.1", "nope", "2.2.2.0/24"]
