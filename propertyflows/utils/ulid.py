"""
ULID (Universally Unique Lexicographically Sortable Identifier) utilities.

ULIDs provide time-ordered unique identifiers that keep B-tree indexes compact
in PostgreSQL, which matters for append-only tables like the verification and
billing audit logs.
"""

from typing import Optional

from ulid import ULID


def generate_ulid() -> str:
  """Generate a time-ordered ULID string (26 characters)."""
  return str(ULID())


def generate_prefixed_ulid(prefix: str) -> str:
  """
  Generate a prefixed ULID for readability and type identification.

  Example: "org_01ARZ3NDEKTSV4RRFFQ69G5FAV"
  """
  return f"{prefix}_{ULID()}"


def parse_ulid(ulid_str: str) -> Optional[ULID]:
  """Parse a ULID string (with or without prefix), returning None if invalid."""
  try:
    if "_" in ulid_str:
      ulid_str = ulid_str.split("_", 1)[1]
    return ULID.from_str(ulid_str)
  except (ValueError, IndexError):
    return None
