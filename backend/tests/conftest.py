"""Shared fixtures for backend tests."""

import json
import os

import pytest

# Set test environment before the app modules read it
os.environ["RATELIMIT_ENABLED"] = "false"
os.environ.setdefault("AI_PROVIDER", "openai")

from ai_gateway import GenerationGateway
from deck_models import Slide
from fakes import FakeCompletionClient
from pitch_deck_backend import create_app


@pytest.fixture
def sample_slide_dicts():
    """Slides in the shape the AI provider returns them."""
    return [
        {
            "slideNumber": 1,
            "title": "Introduction",
            "content": "Welcome to TechCo\nWe automate back offices",
            "image": "https://via.placeholder.com/400x200",
        },
        {
            "slideNumber": 2,
            "title": "Problem Statement",
            "content": "• Manual data entry • Slow approvals",
            "image": "https://via.placeholder.com/400x200",
        },
        {
            "slideNumber": 3,
            "title": "Our Solution",
            "content": "A\nB\n- C",
            "image": "https://via.placeholder.com/400x200",
        },
    ]


@pytest.fixture
def sample_slides(sample_slide_dicts):
    return [Slide.from_dict(data) for data in sample_slide_dicts]


@pytest.fixture
def deck_reply(sample_slide_dicts):
    """Raw AI reply text for a full deck."""
    return json.dumps(sample_slide_dicts)


@pytest.fixture
def fake_client():
    return FakeCompletionClient()


@pytest.fixture
def gateway(fake_client):
    return GenerationGateway(fake_client)


@pytest.fixture
def app(fake_client):
    """Flask app wired to the fake completion client."""
    app = create_app(
        {"TESTING": True, "RATELIMIT_ENABLED": False},
        completion_client=fake_client,
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()
