"""
Shared fixtures.
"""
import os
import pytest


@pytest.fixture(autouse=True)
def clean_rcl_environment(monkeypatch):
    """Keep RCL_* variables from the developer's shell out of the tests."""
    for key in list(os.environ):
        if key.startswith("RCL_"):
            monkeypatch.delenv(key)
