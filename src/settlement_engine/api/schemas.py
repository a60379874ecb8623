"""Pydantic schemas for API request/response models."""

from decimal import Decimal
from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field


class ResponseStatus(IntEnum):
    """Outcome of a settlement query."""

    OK = 200
    BAD_DATA = 400
    SYSTEM_ERROR = 500


class ResponseErrorMessage(BaseModel):
    """Stable machine-readable error code with a human message."""

    code: str
    message: str
    details: str | None = None


# ============================================================================
# Act of completion schemas
# ============================================================================


class ActOfCompletionRequest(BaseModel):
    """Settlement query for a merchant and a date window.

    Missing fields default to empty strings so the calculator rejects them
    with its own codes.
    """

    merchant_id: str = ""
    date_from: str = Field("", description="First day, YYYY-MM-DD")
    date_to: str = Field("", description="Last day, YYYY-MM-DD")


class ActOfCompletionDocumentSchema(BaseModel):
    """Act of completion document."""

    model_config = ConfigDict(from_attributes=True)

    merchant_id: str
    date_from: str
    date_to: str
    total_fees: Decimal
    balance: Decimal
    total_transactions: int
    corrections_amount: Decimal
    b2b_vat_rate: Decimal
    b2b_vat_base: Decimal
    b2b_vat_amount: Decimal
    fees_excluding_vat: Decimal


class ActOfCompletionResponse(BaseModel):
    """Act of completion query result."""

    status: ResponseStatus
    message: ResponseErrorMessage | None = None
    item: ActOfCompletionDocumentSchema | None = None


class ActsOfCompletionListItem(BaseModel):
    """A closed month available for an act of completion."""

    model_config = ConfigDict(from_attributes=True)

    date_title: str
    date_from: str
    date_to: str


class ActsOfCompletionListResponse(BaseModel):
    """Closed months for a merchant, newest first."""

    status: ResponseStatus
    message: ResponseErrorMessage | None = None
    items: list[ActsOfCompletionListItem] = Field(default_factory=list)
