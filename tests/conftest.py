"""
Pytest configuration and fixtures
"""
import sys
from pathlib import Path

import pytest

# Make the flat top-level modules importable when running from a checkout
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from Models.Participant import Participant


USERS_INFO = """
User 1
Profile ID: P1
User Name: Mark Brown
Bio: Product manager working on B2B onboarding.

User 2
Profile ID: P2
User Name: Tom Scott
Bio: Sales lead interested in partnerships.
"""


@pytest.fixture
def users_info() -> str:
    return USERS_INFO


@pytest.fixture
def mark() -> Participant:
    return Participant(id="P1", display_name="Mark Brown")


@pytest.fixture
def tom() -> Participant:
    return Participant(id="P2", display_name="Tom Scott")
