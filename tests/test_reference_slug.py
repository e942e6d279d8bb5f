"""
Tests - reference numbers and public slugs.

Covers:
    - AA-YYYY-XXXXXX shape, prefix from report type, padding of short types
    - Reference validation
    - Member / assignment / template slug shape and truncation
    - Workspace slug deduplication
"""

import re
from datetime import datetime, timezone

import pytest

from orgdesk.services.reference_service import (
    generate_reference_number,
    is_valid_reference_number,
)
from orgdesk.services.slug_service import (
    generate_form_assignment_slug,
    generate_form_template_slug,
    generate_public_slug,
    generate_workspace_slug,
    slugify_part,
)

SLUG_RE = re.compile(r"^[a-z0-9-]+$")


# ═════════════════════════════════════════════════════════════════════════════
# REFERENCE NUMBERS
# ═════════════════════════════════════════════════════════════════════════════


class TestReferenceNumber:
    @pytest.mark.parametrize("report_type,prefix", [
        ("TRANSCRIPT", "TR"),
        ("certificate", "CE"),
        ("RECEIPT", "RE"),
        ("ATTENDANCE", "AT"),
        ("GENERIC", "GE"),
    ])
    def test_prefix_from_type(self, report_type, prefix):
        ref = generate_reference_number(report_type)
        assert ref.startswith(f"{prefix}-")
        assert is_valid_reference_number(ref)

    def test_year_component(self):
        ref = generate_reference_number("TRANSCRIPT", now=datetime(2025, 3, 1, tzinfo=timezone.utc))
        assert ref[3:7] == "2025"

    def test_short_type_is_padded(self):
        ref = generate_reference_number("X")
        assert ref.startswith("XX-")
        assert is_valid_reference_number(ref)

    def test_non_letters_skipped(self):
        assert generate_reference_number("1-a9b").startswith("AB-")

    def test_suffix_varies(self):
        refs = {generate_reference_number("RECEIPT") for _ in range(50)}
        assert len(refs) > 45

    @pytest.mark.parametrize("value", [
        "tr-2025-A3F9K2",
        "TR-25-A3F9K2",
        "TR-2025-A3F9K",
        "TRX-2025-A3F9K2",
        "",
        None,
        12345,
    ])
    def test_invalid_shapes(self, value):
        assert not is_valid_reference_number(value)


# ═════════════════════════════════════════════════════════════════════════════
# SLUGS
# ═════════════════════════════════════════════════════════════════════════════


class TestSlugs:
    def test_public_slug_shape(self):
        slug = generate_public_slug("John Doe", 42)
        assert slug.startswith("john-doe-")
        assert SLUG_RE.match(slug)
        assert "42" not in slug.split("-")[:2]

    def test_accents_and_punctuation_dropped(self):
        assert slugify_part("Émile O'Brien!", 30) == "mile-obrien"

    def test_name_truncated(self):
        slug = generate_public_slug("a" * 50)
        name, suffix = slug.rsplit("-", 1)
        assert name == "a" * 30
        assert len(suffix) == 6

    def test_assignment_slug_parts(self):
        slug = generate_form_assignment_slug("John", "Health Assessment Weekly Form")
        assert slug.startswith("john-health-assessment-we-")
        assert SLUG_RE.match(slug)

    def test_template_slug(self):
        slug = generate_form_template_slug("Health Assessment")
        assert slug.startswith("health-assessment-")
        assert len(slug.rsplit("-", 1)[1]) == 6

    def test_slugs_differ(self):
        assert generate_public_slug("Jane") != generate_public_slug("Jane")

    def test_workspace_slug_deduplicated(self):
        taken = {"acme-ltd", "acme-ltd-1"}
        assert generate_workspace_slug("ACME Ltd.", taken.__contains__) == "acme-ltd-2"

    def test_workspace_slug_fallback(self):
        assert generate_workspace_slug("!!!", lambda s: False) == "workspace"


def test_reference_numbers_rarely_collide():
    refs = {generate_reference_number("CERTIFICATE") for _ in range(10_000)}
    assert len(refs) >= 9990


def test_public_slug_ignores_punctuation_and_id():
    slug = generate_public_slug("John Doe!", "uid1")
    assert re.match(r"^john-doe-[a-z0-9]{6}$", slug)
