"""
Shared fixtures.
"""

from __future__ import annotations

import os

import pytest

from formbind import Request
from formbind.config import reset_settings
from formbind.utils.logger import configure_logging


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    """Run every test with default settings and empty caches."""
    for key in list(os.environ):
        if key.startswith("FORMBIND_"):
            monkeypatch.delenv(key)

    yield

    reset_settings()
    configure_logging()


@pytest.fixture
def request_context():
    """POST request used as hook context."""
    return Request.build("POST", "/blogposts", headers={"Content-Type": "application/json"})
