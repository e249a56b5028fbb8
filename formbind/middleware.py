"""
formbind Middleware
===================

Runs validation inside a framework's middleware chain.

Middleware follows the "onion" model: `before()` runs ahead of the
handler and may short-circuit by returning a response, `after()` sees
the handler's response.

    Request → ValidationMiddleware.before → Handler
                                              ↓
    Response ← ValidationMiddleware.after ← Response

The upstream binder stores the decoded payload in
`request.state[settings.payload_key]`; `ValidationMiddleware` validates
it and stores the `Errors` in `request.state[settings.errors_key]`.
Building an error response is left to the caller's `on_error`.

Example:
    def reject(request, errors):
        return JSONResponse(errors.to_list(), status=422)

    app.use(ValidationMiddleware(on_error=reject))
"""

from __future__ import annotations

import inspect
from abc import ABC
from typing import Any, Awaitable, Callable, Optional

from formbind.config import get_settings
from formbind.errors import Errors
from formbind.request import Request
from formbind.utils.logger import get_logger
from formbind.validator import validate

logger = get_logger("formbind.middleware")

CallNext = Callable[[Request], Awaitable[Any]]
ErrorHandler = Callable[[Request, Errors], Any]


class Middleware(ABC):
    """
    Base middleware class.

    Lifecycle:
        1. `before()` is called before the route handler
        2. If `before()` returns a response, processing stops
        3. Route handler is called
        4. `after()` is called with request and response
    """

    async def before(self, request: Request) -> Optional[Any]:
        """
        Called before request handling.

        Returns:
            None to continue processing, or a response to short-circuit
        """
        return None

    async def after(self, request: Request, response: Any) -> Any:
        """Called after request handling."""
        return response

    async def __call__(self, request: Request, call_next: CallNext) -> Any:
        early_response = await self.before(request)
        if early_response is not None:
            return early_response

        response = await call_next(request)

        return await self.after(request, response)


class ValidationMiddleware(Middleware):
    """
    Validates the decoded payload of each request.

    Args:
        on_error: Called with (request, errors) when validation fails;
            it may be async, and a non-None result is used as the response
        payload_key: State key holding the payload (settings default)
        errors_key: State key receiving the errors (settings default)
    """

    def __init__(
        self,
        on_error: Optional[ErrorHandler] = None,
        payload_key: Optional[str] = None,
        errors_key: Optional[str] = None,
    ) -> None:
        settings = get_settings()
        self.on_error = on_error
        self.payload_key = payload_key or settings.payload_key
        self.errors_key = errors_key or settings.errors_key

    async def before(self, request: Request) -> Optional[Any]:
        payload = request.state.get(self.payload_key)
        if payload is None:
            return None

        errors = validate(request, payload)
        request.state[self.errors_key] = errors

        if not errors:
            return None

        logger.info(
            "Request payload failed validation",
            method=request.method,
            path=request.path,
            errors=len(errors),
        )

        if self.on_error is None:
            return None

        response = self.on_error(request, errors)
        if inspect.isawaitable(response):
            response = await response
        return response
