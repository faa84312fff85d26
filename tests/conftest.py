"""Shared test fixtures for VitalDash tests."""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# ---------------------------------------------------------------------------
# Test hermeticity
# ---------------------------------------------------------------------------

@pytest.fixture(autouse=True)
def _force_hermetic_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("LLM_PROVIDER", "mock")
    monkeypatch.setenv("ANTHROPIC_API_KEY", "")
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("FUNCTIONS_URL", "")
    monkeypatch.setenv("ENCRYPTION_KEY", "")

# Allow running tests without `pip install -e .` by making `src/` importable.
_PROJECT_ROOT = Path(__file__).resolve().parent.parent
_SRC_DIR = _PROJECT_ROOT / "src"
if str(_SRC_DIR) not in sys.path:
    sys.path.insert(0, str(_SRC_DIR))

from vitaldash.core.backend.client import BackendClient  # noqa: E402
from vitaldash.core.llm.client import GatewayClient  # noqa: E402
from vitaldash.core.llm.providers.mock import MockProvider  # noqa: E402
from vitaldash.domains.health.prompts.templates import load_prompt_templates  # noqa: E402


# ---------------------------------------------------------------------------
# In-memory storage fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def backend(tmp_path):
    """A BackendClient over in-memory SQLite and a temporary bucket."""
    client = BackendClient.in_memory(tmp_path / "storage")
    yield client
    client.close()


@pytest.fixture
def backend_db(backend):
    return backend.database


@pytest.fixture
def repository(backend):
    return backend.repository


@pytest.fixture
def user(backend):
    """A registered user."""
    return backend.auth.sign_up("patient@example.com", "s3cret-pass")


@pytest.fixture
def session(backend, user):
    """A signed-in session for ``user``."""
    return backend.auth.sign_in("patient@example.com", "s3cret-pass")


@pytest.fixture
def device(repository, user):
    return repository.create_device(user.id, "Wrist band")


# ---------------------------------------------------------------------------
# AI gateway fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_provider() -> MockProvider:
    return MockProvider(response_content="Your readings look normal.")


@pytest.fixture
def gateway(mock_provider) -> GatewayClient:
    return GatewayClient(mock_provider, provider_name="mock")


@pytest.fixture
def templates():
    return load_prompt_templates()
