"""Tests for ULID helpers."""

from propertyflows.utils.ulid import generate_prefixed_ulid, generate_ulid, parse_ulid


def test_generate_ulid():
  value = generate_ulid()
  assert len(value) == 26


def test_prefixed_ulid_parses():
  value = generate_prefixed_ulid("org")

  assert value.startswith("org_")
  assert str(parse_ulid(value)) == value[4:]


def test_parse_invalid():
  assert parse_ulid("org_not-a-ulid") is None
