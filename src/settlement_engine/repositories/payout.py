"""SQLAlchemy payout document repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settlement_engine.models import PayoutDocument, PayoutDocumentChange
from settlement_engine.repositories.audit import snapshot
from settlement_engine.repositories.base import PayoutFilter
from settlement_engine.timeutil import to_storage


class SqlPayoutRepository:
    """Payout document persistence with change history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_all(self) -> list[PayoutDocument]:
        result = await self.session.execute(
            select(PayoutDocument).order_by(
                PayoutDocument.created_at, PayoutDocument.payout_document_id
            )
        )
        return list(result.scalars().all())

    async def find(self, criteria: PayoutFilter) -> list[PayoutDocument]:
        query = select(PayoutDocument)

        if criteria.statuses:
            query = query.where(PayoutDocument.status.in_(criteria.statuses))
        if criteria.date_from is not None:
            query = query.where(PayoutDocument.created_at >= to_storage(criteria.date_from))
        if criteria.operating_company_id:
            query = query.where(
                PayoutDocument.operating_company_id == criteria.operating_company_id
            )

        query = query.order_by(PayoutDocument.created_at, PayoutDocument.payout_document_id)
        if criteria.limit is not None:
            query = query.limit(criteria.limit)

        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, payout: PayoutDocument, actor_ip: str, source: str) -> None:
        """Persist the payout and append a change record in one commit."""
        data, digest = snapshot(payout)
        self.session.add(payout)
        self.session.add(
            PayoutDocumentChange(
                payout_document_id=payout.payout_document_id,
                ip=actor_ip,
                source=source,
                snapshot_json=data,
                snapshot_hash=digest,
            )
        )
        await self.session.commit()

    async def get_changes(self, payout_id: str) -> list[PayoutDocumentChange]:
        result = await self.session.execute(
            select(PayoutDocumentChange)
            .where(PayoutDocumentChange.payout_document_id == payout_id)
            .order_by(PayoutDocumentChange.created_at)
        )
        return list(result.scalars().all())
