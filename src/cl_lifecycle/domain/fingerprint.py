"""Normalization helpers and the stable deduplication fingerprint for companies.

The fingerprint key mirrors how identities are minted from staging rows:
``<domain>|<linkedin url>`` after normalization. Records that carry neither
value fall back to their normalized name so that they still receive a stable,
comparable key.
"""

from __future__ import annotations

import hashlib
import re
import unicodedata
from collections import defaultdict
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from cl_lifecycle.domain.model import CompanyRecord

_SCHEME_RE = re.compile(r"^[a-z][a-z0-9+.-]*://")
_WWW_RE = re.compile(r"^www\.")
_AMPERSAND_RE = re.compile(r"\s*&\s*")
_NON_ALNUM_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")


def normalize_domain(value: str | None) -> str | None:
    """Reduce a URL or bare host to its lowercase registrable host, or ``None``."""

    if value is None:
        return None
    host = value.strip().lower()
    host = _SCHEME_RE.sub("", host)
    host = _WWW_RE.sub("", host)
    host = host.split("/", 1)[0].split("?", 1)[0].split("#", 1)[0]
    host = host.rstrip(".")
    return host if "." in host else None


def normalize_linkedin(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip().lower().rstrip("/")
    return cleaned or None


def normalize_name(value: str | None) -> str:
    if not value:
        return ""
    decomposed = unicodedata.normalize("NFKD", value)
    ascii_only = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    lowered = _AMPERSAND_RE.sub(" and ", ascii_only.lower())
    lowered = _NON_ALNUM_RE.sub("", lowered)
    return _WHITESPACE_RE.sub(" ", lowered).strip()


def fingerprint_key(name: str | None, domain: str | None, linkedin_url: str | None) -> str:
    normalized_domain = normalize_domain(domain) or ""
    normalized_linkedin = normalize_linkedin(linkedin_url) or ""
    if not normalized_domain and not normalized_linkedin:
        return f"name:{normalize_name(name)}"
    return f"{normalized_domain}|{normalized_linkedin}"


def company_fingerprint(name: str | None, domain: str | None, linkedin_url: str | None) -> str:
    """Return the SHA-256 hex digest of the normalized identifying attributes."""

    key = fingerprint_key(name, domain, linkedin_url)
    return hashlib.sha256(key.encode("utf-8")).hexdigest()


@dataclass(frozen=True, slots=True)
class FingerprintCollision:
    """Records sharing one fingerprint."""

    fingerprint: str
    company_ids: tuple[UUID, ...]

    @property
    def count(self) -> int:
        return len(self.company_ids)


def find_fingerprint_collisions(records: Iterable[CompanyRecord]) -> list[FingerprintCollision]:
    """Group records by fingerprint and return the groups holding more than one record."""

    groups: dict[str, list[UUID]] = defaultdict(list)
    for record in records:
        groups[record.fingerprint].append(record.id)
    collisions = [
        FingerprintCollision(fingerprint=fingerprint, company_ids=tuple(ids))
        for fingerprint, ids in groups.items()
        if len(ids) > 1
    ]
    collisions.sort(key=lambda collision: (-collision.count, collision.fingerprint))
    return collisions
