"""pytest global fixtures: isolate tests from the host environment."""

import os

import pytest


@pytest.fixture(autouse=True)
def clean_engine_env(monkeypatch):
    """Drop TRIPEXEC_* overrides so every test sees default settings."""
    for name in list(os.environ):
        if name.startswith("TRIPEXEC_"):
            monkeypatch.delenv(name, raising=False)
    yield
