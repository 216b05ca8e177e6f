"""
Pytest configuration and shared fixtures for replybot tests.
"""

import pytest
import sys
from pathlib import Path

# Add the project root to the path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))
sys.path.insert(0, str(Path(__file__).parent))

from replybot.rules.models import MessageContext
from replybot.rules.store import RuleStore
from replybot.storage import InMemoryStore

from fakes import FakeClock, RecordingSleep


@pytest.fixture
def kv():
    """Empty in-memory key-value store."""
    return InMemoryStore()


@pytest.fixture
def rule_store(kv):
    """Rule store backed by the in-memory store."""
    return RuleStore(kv)


@pytest.fixture
def private_ctx():
    return MessageContext(chat_id="15551234567@s.whatsapp.net", sender="15551234567@s.whatsapp.net")


@pytest.fixture
def group_ctx():
    return MessageContext(
        chat_id="team@g.us",
        sender="15559876543:4@s.whatsapp.net",
        is_group=True,
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sleep(clock):
    return RecordingSleep(clock)


@pytest.fixture
def config_dir(tmp_path):
    """Create a temporary config directory."""
    config = tmp_path / "config"
    config.mkdir()
    return config
