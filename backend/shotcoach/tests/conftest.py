"""Pytest configuration and fixtures."""
from unittest.mock import patch
import pytest
from fastapi.testclient import TestClient
from shotcoach.core.reference_store import handoff_store


@pytest.fixture(autouse=True)
def patch_settings():
    """Keep tests off the network and pin engine thresholds to their defaults."""
    with patch("shotcoach.core.config.settings.openai_api_key", ""), \
         patch("shotcoach.core.config.settings.perfect_shot_score", 90), \
         patch("shotcoach.core.config.settings.max_instructions", 3), \
         patch("shotcoach.core.config.settings.min_instruction_length", 6), \
         patch("shotcoach.core.config.settings.visual_cue_ttl_seconds", 5.0):
        yield


@pytest.fixture(autouse=True)
def clear_handoff_store():
    handoff_store.clear()
    yield
    handoff_store.clear()


@pytest.fixture
def client():
    from shotcoach.main import app
    return TestClient(app)
