"""Resolve a tool call to its handler and wrap the outcome in an envelope."""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable

from ..nativelink_api import NativelinkAPI
from ..settings import Settings
from .registry import ToolContext, ToolRegistry
from .schema import ErrorCode, ToolCallResult
from .validation import SchemaValidationError, validate

logger = logging.getLogger(__name__)

ApiFactory = Callable[[Settings], NativelinkAPI]


class ToolDispatcher:
    """Looks up, validates and invokes tools; never raises for tool failures."""

    def __init__(
        self,
        registry: ToolRegistry,
        settings: Settings,
        *,
        api_factory: ApiFactory = NativelinkAPI,
    ):
        self.registry = registry
        self.settings = settings
        self._api_factory = api_factory

    async def dispatch(
        self,
        name: str,
        raw_args: Any,
        *,
        settings: Settings | None = None,
        request_id: str = "system",
    ) -> ToolCallResult:
        """Run ``name`` with ``raw_args`` and return a result envelope.

        ``settings`` scopes credentials to this call only; the dispatcher's own
        settings are left untouched.
        """
        log_extra = {"request_id": request_id}
        tool = self.registry.lookup(name) if isinstance(name, str) else None
        if tool is None:
            logger.info("unknown tool requested tool=%s", name, extra=log_extra)
            return ToolCallResult.failure(ErrorCode.METHOD_NOT_FOUND, f"Tool not found: {name}")

        try:
            args = validate(tool.input_model, raw_args)
        except SchemaValidationError as exc:
            logger.info(
                "invalid arguments tool=%s issues=%s",
                name,
                len(exc.issues),
                extra=log_extra,
            )
            return ToolCallResult.failure(ErrorCode.INVALID_PARAMS, f"Invalid parameters: {exc}")

        effective = settings or self.settings
        try:
            context = ToolContext(settings=effective, api=self._api_factory(effective))
            outcome = tool.handler(args, context)
            if inspect.isawaitable(outcome):
                outcome = await outcome
        except Exception as exc:
            logger.exception("tool handler failed tool=%s", name, extra=log_extra)
            return ToolCallResult.failure(ErrorCode.INTERNAL_ERROR, str(exc) or "Unknown error")

        if not isinstance(outcome, str):
            logger.error(
                "tool handler returned non-text tool=%s type=%s",
                name,
                type(outcome).__name__,
                extra=log_extra,
            )
            return ToolCallResult.failure(
                ErrorCode.INTERNAL_ERROR, f"Tool {name} returned a non-text result"
            )
        logger.info("tool completed tool=%s chars=%s", name, len(outcome), extra=log_extra)
        return ToolCallResult.success(outcome)
