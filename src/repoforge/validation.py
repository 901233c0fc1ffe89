"""Validation rules for repository names and GitHub handles."""

from __future__ import annotations

import re
from collections.abc import Container

SLUG_RE = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
HANDLE_RE = re.compile(r"^[a-z0-9][a-z0-9-]{0,38}$", re.IGNORECASE)
MAX_HANDLE_LENGTH = 39

# Modal block ids double as the keys of field-level errors.
NAME_FIELD = "repo_name"
DESCRIPTION_FIELD = "repo_description"
OWNER_FIELD = "repo_owner"

INVALID_NAME_MSG = (
    "Sorry, that repo name isn't valid! Use lowercase letters, numbers and single dashes."
)
DUPLICATE_NAME_MSG = (
    "Sorry, that repo name already exists! Are you sure you haven't already created it?"
)
INVALID_DESCRIPTION_MSG = "Sorry, that repo description isn't valid. Please try again."
INVALID_OWNER_MSG = "Sorry, that repo owner isn't valid. Please try again."
DESCRIPTION_TOO_LONG_MSG = (
    "Sorry, that repo description is too long. Please shorten it and try again."
)


def is_valid_slug(value: str | None) -> bool:
    return bool(value) and SLUG_RE.fullmatch(value) is not None


def is_valid_handle(value: str | None) -> bool:
    if not value or len(value) > MAX_HANDLE_LENGTH:
        return False
    return HANDLE_RE.fullmatch(value) is not None


def normalize_handle(value: str) -> str:
    """Strip the whitespace and leading ``@`` people paste along with a username."""
    return value.strip().lstrip("@")


def validate_submission(
    name: str | None,
    description: str | None,
    owner: str | None,
    known_names: Container[str],
) -> dict[str, str]:
    """Check a form submission. Returns at most one field error; the first failure wins."""
    if not is_valid_slug(name):
        return {NAME_FIELD: INVALID_NAME_MSG}
    if name in known_names:
        return {NAME_FIELD: DUPLICATE_NAME_MSG}
    if not description or not description.strip():
        return {DESCRIPTION_FIELD: INVALID_DESCRIPTION_MSG}
    if not is_valid_handle(owner):
        return {OWNER_FIELD: INVALID_OWNER_MSG}
    return {}
