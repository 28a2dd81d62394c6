"""
Pytest configuration and shared fixtures for static_merkle tests.
"""

import sys
from pathlib import Path

import pytest

# Add the repository root to the path so the package imports without install
repo_root = Path(__file__).parent.parent
if str(repo_root) not in sys.path:
    sys.path.insert(0, str(repo_root))

from static_merkle import (  # noqa: E402
    MiMCBn254Hasher,
    MiMCBn254RuleHasher,
    ProductionRule,
    Sha256Hasher,
)


@pytest.fixture
def sha() -> Sha256Hasher:
    return Sha256Hasher()


@pytest.fixture
def mimc() -> MiMCBn254Hasher:
    return MiMCBn254Hasher()


@pytest.fixture
def rule_hasher() -> MiMCBn254RuleHasher:
    return MiMCBn254RuleHasher()


@pytest.fixture
def rules() -> list:
    """Sample grammar rules."""
    return [
        ProductionRule(parent=(True, 1), left_child=(False, 2), right_child=(True, 3)),
        ProductionRule(parent=(False, 10), left_child=(True, 11), right_child=(False, 12)),
        ProductionRule(parent=(True, 42), left_child=(True, 5), right_child=(False, 99)),
        ProductionRule(parent=(False, 7), left_child=(False, 8), right_child=(True, 9)),
        ProductionRule(parent=(True, 123456789), left_child=(False, 111), right_child=(True, 222)),
    ]
