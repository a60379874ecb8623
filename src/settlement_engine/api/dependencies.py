"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from zoneinfo import ZoneInfo

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from settlement_engine.calculators.act_of_completion import ActOfCompletionCalculator
from settlement_engine.calculators.money import MoneyRounder
from settlement_engine.config import get_settings
from settlement_engine.database import init_db
from settlement_engine.repositories import (
    SqlMerchantRepository,
    SqlOperatingCompanyRepository,
    SqlRoyaltyReportRepository,
    StoredRoyaltySummaryProvider,
)
from settlement_engine.services.act_of_completion import ActOfCompletionService


async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    _, factory = init_db()
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_rounder(request: Request) -> MoneyRounder:
    """Process-wide rounder created by the app factory."""
    return request.app.state.rounder


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Rounder = Annotated[MoneyRounder, Depends(get_rounder)]


async def get_act_of_completion_service(
    db: DbSession, rounder: Rounder
) -> ActOfCompletionService:
    """Wire the act of completion service to the request's session."""
    settings = get_settings()
    tz = ZoneInfo(settings.reporting_timezone)
    calculator = ActOfCompletionCalculator(
        merchants=SqlMerchantRepository(db),
        companies=SqlOperatingCompanyRepository(db),
        summaries=StoredRoyaltySummaryProvider(SqlRoyaltyReportRepository(db), tz),
        rounder=rounder,
        vat_rates=settings.vat_backfill_config().rates,
        reporting_timezone=tz,
    )
    return ActOfCompletionService(calculator)


ActOfCompletionServiceDep = Annotated[
    ActOfCompletionService, Depends(get_act_of_completion_service)
]
