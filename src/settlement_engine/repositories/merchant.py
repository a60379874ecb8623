"""SQLAlchemy merchant and operating company repositories."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from settlement_engine.models import Merchant, OperatingCompany
from settlement_engine.repositories.base import NotFoundError


class SqlMerchantRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, merchant_id: str) -> Merchant:
        merchant = await self.session.get(Merchant, merchant_id)
        if merchant is None:
            raise NotFoundError("merchant", merchant_id)
        return merchant


class SqlOperatingCompanyRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> list[OperatingCompany]:
        result = await self.session.execute(
            select(OperatingCompany).order_by(OperatingCompany.operating_company_id)
        )
        return list(result.scalars().all())

    async def get_by_id(self, operating_company_id: str) -> OperatingCompany:
        company = await self.session.get(OperatingCompany, operating_company_id)
        if company is None:
            raise NotFoundError("operating company", operating_company_id)
        return company
