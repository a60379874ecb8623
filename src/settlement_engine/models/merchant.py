"""Merchant and operating company models."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from settlement_engine.models.base import Base, TimestampMixin, new_id


class OperatingCompany(Base, TimestampMixin):
    """Legal entity that contracts with merchants and issues payouts."""

    __tablename__ = "operating_company"

    operating_company_id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=new_id
    )
    name: Mapped[str] = mapped_column(String, nullable=False)
    country: Mapped[str] = mapped_column(String(2), nullable=False)


class Merchant(Base, TimestampMixin):
    """Merchant receiving payouts.

    Only the fields the settlement core reads are mapped here; the rest of
    the merchant profile is owned by onboarding.
    """

    __tablename__ = "merchant"

    merchant_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String, nullable=False)
    company_country: Mapped[str] = mapped_column(String(2), nullable=False)
    operating_company_id: Mapped[str | None] = mapped_column(
        String(36),
        ForeignKey("operating_company.operating_company_id"),
        nullable=True,
    )
    first_payment_at: Mapped[datetime | None] = mapped_column(nullable=True)
