from __future__ import annotations

import pytest

from cl_lifecycle.domain.fingerprint import (
    company_fingerprint,
    find_fingerprint_collisions,
    fingerprint_key,
    normalize_domain,
    normalize_linkedin,
    normalize_name,
)
from tests.helpers.companies import make_company


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("https://www.Example.com/about?x=1", "example.com"),
        ("example.com.", "example.com"),
        ("  EXAMPLE.org  ", "example.org"),
        ("localhost", None),
        (None, None),
    ],
)
def test_normalize_domain(raw: str | None, expected: str | None) -> None:
    assert normalize_domain(raw) == expected


def test_normalize_linkedin_strips_trailing_slash() -> None:
    assert (
        normalize_linkedin(" https://LinkedIn.com/company/acme/ ")
        == "https://linkedin.com/company/acme"
    )
    assert normalize_linkedin("   ") is None


def test_normalize_name_folds_accents_and_ampersands() -> None:
    assert normalize_name("  Café & Co. ") == "cafe and co"
    assert normalize_name(None) == ""


def test_fingerprint_key_prefers_domain_and_linkedin() -> None:
    assert fingerprint_key("Acme", "https://acme.com", None) == "acme.com|"
    assert fingerprint_key("Acme", None, "https://linkedin.com/company/acme/") == (
        "|https://linkedin.com/company/acme"
    )
    assert fingerprint_key("Acme & Sons", None, None) == "name:acme and sons"


def test_equivalent_inputs_share_a_fingerprint() -> None:
    first = company_fingerprint("Acme", "https://www.acme.com/", None)
    second = company_fingerprint("ACME Inc", "acme.com", None)

    assert first == second
    assert len(first) == 64


def test_find_fingerprint_collisions_groups_records() -> None:
    first = make_company("Acme", domain="acme.com")
    second = make_company("Acme Holdings", domain="www.acme.com")
    other = make_company("Other", domain="other.com")

    collisions = find_fingerprint_collisions([first, second, other])

    assert len(collisions) == 1
    assert collisions[0].company_ids == (first.id, second.id)
    assert collisions[0].count == 2
