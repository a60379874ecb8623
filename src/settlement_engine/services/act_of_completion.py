"""Act of completion query service.

Maps calculator validation failures to bad-data responses. Everything else
(provider failures, non-finite amounts, database errors) propagates.
"""

from __future__ import annotations

import logging
from datetime import date

from settlement_engine.api.schemas import (
    ActOfCompletionDocumentSchema,
    ActOfCompletionRequest,
    ActOfCompletionResponse,
    ActsOfCompletionListItem,
    ActsOfCompletionListResponse,
    ResponseErrorMessage,
    ResponseStatus,
)
from settlement_engine.calculators.act_of_completion import (
    ActOfCompletionCalculator,
    ActOfCompletionError,
)

logger = logging.getLogger(__name__)


class ActOfCompletionService:
    def __init__(self, calculator: ActOfCompletionCalculator):
        self.calculator = calculator

    async def get_act_of_completion(
        self, request: ActOfCompletionRequest
    ) -> ActOfCompletionResponse:
        try:
            document = await self.calculator.compute(
                request.merchant_id, request.date_from, request.date_to
            )
        except ActOfCompletionError as e:
            logger.info("Act of completion rejected: %s", e)
            return ActOfCompletionResponse(
                status=ResponseStatus.BAD_DATA,
                message=ResponseErrorMessage(code=e.code, message=e.message),
            )

        return ActOfCompletionResponse(
            status=ResponseStatus.OK,
            item=ActOfCompletionDocumentSchema.model_validate(document),
        )

    async def get_acts_of_completion_list(
        self, merchant_id: str, today: date | None = None
    ) -> ActsOfCompletionListResponse:
        try:
            periods = await self.calculator.list_periods(merchant_id, today or date.today())
        except ActOfCompletionError as e:
            return ActsOfCompletionListResponse(
                status=ResponseStatus.BAD_DATA,
                message=ResponseErrorMessage(code=e.code, message=e.message),
            )

        return ActsOfCompletionListResponse(
            status=ResponseStatus.OK,
            items=[ActsOfCompletionListItem.model_validate(p) for p in periods],
        )
