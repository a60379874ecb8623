"""Act of completion API endpoints."""

from fastapi import APIRouter, Response, status

from settlement_engine.api.dependencies import ActOfCompletionServiceDep
from settlement_engine.api.schemas import (
    ActOfCompletionRequest,
    ActOfCompletionResponse,
    ActsOfCompletionListResponse,
    ResponseStatus,
)

router = APIRouter(tags=["acts-of-completion"])


@router.post(
    "/acts-of-completion",
    response_model=ActOfCompletionResponse,
    responses={400: {"model": ActOfCompletionResponse}},
)
async def get_act_of_completion(
    payload: ActOfCompletionRequest,
    service: ActOfCompletionServiceDep,
    response: Response,
) -> ActOfCompletionResponse:
    """Compute the act of completion for a merchant and date window."""
    result = await service.get_act_of_completion(payload)
    if result.status == ResponseStatus.BAD_DATA:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return result


@router.get(
    "/merchants/{merchant_id}/acts-of-completion",
    response_model=ActsOfCompletionListResponse,
    responses={400: {"model": ActsOfCompletionListResponse}},
)
async def list_acts_of_completion(
    merchant_id: str,
    service: ActOfCompletionServiceDep,
    response: Response,
) -> ActsOfCompletionListResponse:
    """List the closed months a merchant can request an act of completion for."""
    result = await service.get_acts_of_completion_list(merchant_id)
    if result.status == ResponseStatus.BAD_DATA:
        response.status_code = status.HTTP_400_BAD_REQUEST
    return result
