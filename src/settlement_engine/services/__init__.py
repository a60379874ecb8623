"""Settlement engine services."""

from settlement_engine.services.act_of_completion import ActOfCompletionService

__all__ = ["ActOfCompletionService"]
