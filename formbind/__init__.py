"""
formbind - Tag-Driven Request Validation
========================================

Validates decoded request payloads (dataclasses, or lists of them)
against rule directives declared on their fields.

Features:
---------
- Directive mini-language: "Required;MinSize(5);In(a,b)"
- Nested, embedded and list-of-struct traversal
- Per-struct validation hooks with access to the request
- Structured, ordered error list with JSON serialization
- Middleware for ASGI-style frameworks

Quick Start:
    from dataclasses import dataclass
    from formbind import binding, validate

    @dataclass
    class Signup:
        username: str = binding("Required;AlphaDash;MaxSize(32)", name="username")
        email: str = binding("Required;Email", name="email")

    errors = validate(request, Signup(username="bob", email="nope"))
    errors.to_list()
    # [{"fieldNames": ["email"], "classification": "Email", "message": "Email"}]
"""

from __future__ import annotations

__version__ = "1.0.0"
__author__ = "formbind Team"
__license__ = "MIT"

from formbind.config import Settings, configure, get_settings
from formbind.errors import (
    ERR_ALPHA_DASH,
    ERR_ALPHA_DASH_DOT,
    ERR_DEFAULT,
    ERR_EMAIL,
    ERR_EXCLUDE,
    ERR_IN,
    ERR_INCLUDE,
    ERR_MAX_SIZE,
    ERR_MIN_SIZE,
    ERR_NOT_IN,
    ERR_RANGE,
    ERR_REQUIRED,
    ERR_SIZE,
    ERR_URL,
    Errors,
    ValidationError,
    ValidationFailed,
)
from formbind.middleware import Middleware, ValidationMiddleware
from formbind.request import Request
from formbind.schema import binding, clear_schema_cache, schema_for
from formbind.tags import RuleInvocation, parse_directive
from formbind.validator import validate, validate_or_fail
from formbind.walker import StructWalker, Validatable

__all__ = [
    # Metadata
    "__version__",
    "__author__",
    "__license__",
    # Entry points
    "validate",
    "validate_or_fail",
    "Validatable",
    "StructWalker",
    # Declaration
    "binding",
    "schema_for",
    "clear_schema_cache",
    "parse_directive",
    "RuleInvocation",
    # Errors
    "Errors",
    "ValidationError",
    "ValidationFailed",
    "ERR_REQUIRED",
    "ERR_ALPHA_DASH",
    "ERR_ALPHA_DASH_DOT",
    "ERR_SIZE",
    "ERR_MIN_SIZE",
    "ERR_MAX_SIZE",
    "ERR_RANGE",
    "ERR_EMAIL",
    "ERR_URL",
    "ERR_IN",
    "ERR_NOT_IN",
    "ERR_INCLUDE",
    "ERR_EXCLUDE",
    "ERR_DEFAULT",
    # Integration
    "Request",
    "Middleware",
    "ValidationMiddleware",
    # Configuration
    "Settings",
    "get_settings",
    "configure",
]
