"""
Public slug generation.

Slugs are the only key used for unauthenticated lookups (member profiles,
form assignments, form templates).  Shape: ``<name-parts>-<random>`` using
only ``[a-z0-9-]``.

    generate_public_slug("John Doe", user_id)          → john-doe-x7k9m2
    generate_form_assignment_slug("John", "Health")    → john-health-4fz0qa
    generate_form_template_slug("Health Assessment")   → health-assessment-b81mda

Member and assignment slugs are not retried on collision; the unique
constraint on the column surfaces a clash on commit.  Workspace slugs are
deduplicated by ``generate_workspace_slug``.
"""

from __future__ import annotations

import re
import secrets
import string
from typing import Callable, Iterable

SLUG_ALPHABET = string.ascii_lowercase + string.digits
DEFAULT_RANDOM_LEN = 6

MEMBER_NAME_MAX = 30
ASSIGNMENT_PART_MAX = 20
TEMPLATE_NAME_MAX = 40

_DISALLOWED = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify_part(value: str, max_len: int) -> str:
    """Normalise one name part to ``[a-z0-9-]`` and cut it to ``max_len``."""
    text = (value or "").lower().strip()
    text = _DISALLOWED.sub("", text)
    text = _WHITESPACE.sub("-", text)
    text = _HYPHENS.sub("-", text)
    return text[:max_len]


def random_suffix(length: int = DEFAULT_RANDOM_LEN) -> str:
    return "".join(secrets.choice(SLUG_ALPHABET) for _ in range(length))


def generate_slug(
    name_parts: Iterable[str],
    max_len_each: int,
    random_len: int = DEFAULT_RANDOM_LEN,
) -> str:
    """Join the normalised ``name_parts`` and a random suffix with ``-``."""
    parts = [slugify_part(p, max_len_each) for p in name_parts]
    parts.append(random_suffix(random_len))
    return "-".join(parts)


def generate_public_slug(name: str, user_id: str | int | None = None) -> str:
    """Member profile slug: ``<name>-<random>``.

    ``user_id`` is accepted for call-site symmetry but never embedded, so the
    slug does not leak internal identifiers.
    """
    return generate_slug([name], MEMBER_NAME_MAX)


def generate_form_assignment_slug(user_name: str, form_name: str) -> str:
    return generate_slug([user_name, form_name], ASSIGNMENT_PART_MAX)


def generate_form_template_slug(form_name: str) -> str:
    return generate_slug([form_name], TEMPLATE_NAME_MAX)


def generate_workspace_slug(name: str, exists: Callable[[str], bool]) -> str:
    """Deterministic workspace slug, suffixed ``-1``, ``-2``… until unused.

    ``exists`` is queried against the persistence layer for every candidate.
    """
    base = _NON_ALNUM.sub("-", (name or "").lower()).strip("-") or "workspace"
    slug = base
    counter = 1
    while exists(slug):
        slug = f"{base}-{counter}"
        counter += 1
    return slug
