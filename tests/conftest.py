"""
Shared fixtures for PagePixie tests
"""

import pytest

from pagepixie.ai.engine import PixieAI
from pagepixie.core.config import PagePixieConfig
from pagepixie.models.page import PageContent, PageMetadata
from pagepixie.session import SessionManager

from tests.helpers import StubModelService


@pytest.fixture
def config():
    return PagePixieConfig(openai_api_key="test-key", context_window_tokens=1000)


@pytest.fixture
def service(config):
    return StubModelService(config)


@pytest.fixture
def manager(service, config):
    return SessionManager(service, config)


@pytest.fixture
def ai(manager, service, config):
    return PixieAI(manager, service.new_session(manager.default_options()), config)


@pytest.fixture
def page():
    return PageContent(
        title="Capture Pipelines Explained",
        url="https://example.com/capture",
        full_text="Capture pipelines turn pages into summaries.\n\nThey condense, then summarize.",
        metadata=PageMetadata(
            description="An explainer on capture pipelines",
            authors=["Ada Lovelace"],
            tags=["pipelines", "summaries"],
        ),
    )
