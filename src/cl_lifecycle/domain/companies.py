"""Registration of new company identities."""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING

from cl_lifecycle.domain.clock import utcnow
from cl_lifecycle.domain.fingerprint import normalize_domain, normalize_linkedin
from cl_lifecycle.domain.model import CompanyRecord

if TYPE_CHECKING:
    from cl_lifecycle.domain.clock import Clock
    from cl_lifecycle.domain.controller import UnitOfWorkFactory

log = logging.getLogger(__name__)


def register_company(
    name: str,
    domain: str | None = None,
    linkedin_url: str | None = None,
    *,
    unit_of_work_factory: UnitOfWorkFactory,
    clock: Clock = utcnow,
) -> CompanyRecord:
    """Mint a new company identity with a fresh sovereign id.

    Raises ``ConstraintViolation`` when another record already carries the
    same fingerprint.
    """

    if not name.strip():
        raise ValueError("Company name must not be blank")
    record = CompanyRecord(
        name=name.strip(),
        domain=normalize_domain(domain),
        linkedin_url=normalize_linkedin(linkedin_url),
        sovereign_id=uuid.uuid4(),
        created_at=clock(),
    )
    with unit_of_work_factory() as uow:
        uow.repositories.companies.add(record)
        uow.commit()
    log.info("Registered company %s (sovereign_id=%s)", record.id, record.sovereign_id)
    return record
