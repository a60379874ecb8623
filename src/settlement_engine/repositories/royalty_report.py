"""SQLAlchemy royalty report repository."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settlement_engine.models import RoyaltyReport, RoyaltyReportChange
from settlement_engine.repositories.audit import snapshot
from settlement_engine.repositories.base import NotFoundError, RoyaltyReportFilter
from settlement_engine.timeutil import to_storage


class SqlRoyaltyReportRepository:
    """Royalty report persistence with change history."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> list[RoyaltyReport]:
        result = await self.session.execute(
            select(RoyaltyReport).order_by(
                RoyaltyReport.period_from, RoyaltyReport.royalty_report_id
            )
        )
        return list(result.scalars().all())

    async def get_by_id(self, report_id: str) -> RoyaltyReport:
        report = await self.session.get(RoyaltyReport, report_id)
        if report is None:
            raise NotFoundError("royalty report", report_id)
        return report

    async def find(self, criteria: RoyaltyReportFilter) -> list[RoyaltyReport]:
        query = select(RoyaltyReport)

        if criteria.merchant_id:
            query = query.where(RoyaltyReport.merchant_id == criteria.merchant_id)
        if criteria.operating_company_id:
            query = query.where(
                RoyaltyReport.operating_company_id == criteria.operating_company_id
            )
        if criteria.statuses:
            query = query.where(RoyaltyReport.status.in_(criteria.statuses))
        if criteria.period_from is not None:
            query = query.where(RoyaltyReport.period_from >= to_storage(criteria.period_from))
        if criteria.period_to is not None:
            query = query.where(RoyaltyReport.period_to <= to_storage(criteria.period_to))

        query = query.order_by(RoyaltyReport.period_from, RoyaltyReport.royalty_report_id)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def update(self, report: RoyaltyReport, actor_ip: str, source: str) -> None:
        """Persist the report and append a change record in one commit."""
        data, digest = snapshot(report)
        self.session.add(report)
        self.session.add(
            RoyaltyReportChange(
                royalty_report_id=report.royalty_report_id,
                ip=actor_ip,
                source=source,
                snapshot_json=data,
                snapshot_hash=digest,
            )
        )
        await self.session.commit()

    async def get_changes(self, report_id: str) -> list[RoyaltyReportChange]:
        result = await self.session.execute(
            select(RoyaltyReportChange)
            .where(RoyaltyReportChange.royalty_report_id == report_id)
            .order_by(RoyaltyReportChange.created_at)
        )
        return list(result.scalars().all())
