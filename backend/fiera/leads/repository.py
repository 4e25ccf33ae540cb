"""
Lead Repository

Session-per-operation SQLAlchemy repository. The pricing snapshot is
written when the lead is created and never touched afterwards; only the
follow-up status changes.
"""

import logging
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from fiera.db.models import LeadRecord
from fiera.engines.pricing.discounts import normalize_instant
from fiera.leads.lifecycle import LeadLifecycle
from fiera.leads.models import (
    CustomerInfo,
    GdprConsent,
    Lead,
    LeadStatus,
    SelectedItemSnapshot,
)

logger = logging.getLogger(__name__)


def _domain_to_db(lead: Lead) -> LeadRecord:
    record = lead.to_record()
    return LeadRecord(
        id=lead.id,
        customer=record.get("customer", {}),
        selected_items=record.get("selectedItems", []),
        pricing=record.get("pricing", {}),
        gdpr_consent=record.get("gdprConsent", {}),
        customer_email=lead.customer.email or None,
        final_total=lead.pricing.get("finalTotal"),
        status=lead.status.value,
        source=lead.source,
        created_at=lead.created_at,
        updated_at=lead.created_at,
    )


def _db_to_domain(row: LeadRecord) -> Lead:
    return Lead(
        id=row.id,
        customer=CustomerInfo.from_dict(row.customer),
        selected_items=tuple(SelectedItemSnapshot.from_dict(i) for i in row.selected_items or []),
        pricing=dict(row.pricing or {}),
        gdpr_consent=GdprConsent.from_dict(row.gdpr_consent),
        status=LeadStatus(row.status),
        source=row.source,
        created_at=normalize_instant(row.created_at),
    )


class LeadRepository:
    """Lead storage (SQLAlchemy)"""

    def __init__(self, session_factory):
        """
        Args:
            session_factory: AsyncSessionLocal (callable returning an AsyncSession)
        """
        self._session_factory = session_factory

    def _session(self) -> AsyncSession:
        return self._session_factory()

    async def create(self, lead: Lead) -> Lead:
        async with self._session() as session:
            session.add(_domain_to_db(lead))
            await session.commit()
        logger.info(f"Created lead: {lead.id} ({len(lead.selected_items)} items)")
        return lead

    async def get(self, lead_id: str) -> Optional[Lead]:
        async with self._session() as session:
            row = await session.get(LeadRecord, lead_id)
            return _db_to_domain(row) if row else None

    async def list(self, status: Optional[LeadStatus] = None, limit: int = 100) -> List[Lead]:
        """List leads, newest first"""
        async with self._session() as session:
            stmt = select(LeadRecord)
            if status:
                stmt = stmt.where(LeadRecord.status == status.value)
            stmt = stmt.order_by(LeadRecord.created_at.desc()).limit(limit)
            result = await session.execute(stmt)
            rows = result.scalars().all()
            return [_db_to_domain(r) for r in rows]

    async def update_status(
        self, lead_id: str, trigger: str
    ) -> Optional[Tuple[bool, Union[Lead, str]]]:
        """
        Apply a follow-up transition.

        Returns:
            None if the lead does not exist
            (False, error_message) if the transition is not allowed
            (True, updated_lead) on success
        """
        async with self._session() as session:
            row = await session.get(LeadRecord, lead_id)
            if not row:
                return None

            lifecycle = LeadLifecycle(row.status)
            ok, result = lifecycle.try_trigger(trigger)
            if not ok:
                logger.info(f"Lead {lead_id}: rejected '{trigger}' ({result})")
                return False, result

            previous = row.status
            row.status = result
            row.updated_at = datetime.now(timezone.utc)
            await session.commit()
            lead = _db_to_domain(row)

        logger.info(f"Lead {lead_id}: {previous} -> {result}")
        return True, lead


_lead_repo: Optional[LeadRepository] = None


def get_lead_repo() -> LeadRepository:
    """Get the shared LeadRepository instance."""
    global _lead_repo
    if _lead_repo is None:
        from fiera.db.database import AsyncSessionLocal
        _lead_repo = LeadRepository(session_factory=AsyncSessionLocal)
    return _lead_repo


def set_lead_repo(repo: LeadRepository):
    global _lead_repo
    _lead_repo = repo
