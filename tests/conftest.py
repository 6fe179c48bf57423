"""Pytest configuration and shared fixtures for the stripsplan tests.

This module provides:
- Paths to the Blocksworld PDDL fixtures and their golden plans
- Encoded problems shared across test modules
- A factory for temporary PDDL files
"""

import logging
import sys
from pathlib import Path
from typing import Callable

import pytest

# =============================================================================
# Path Configuration
# =============================================================================

PROJECT_ROOT = Path(__file__).parent.parent
FIXTURES_DIR = Path(__file__).parent / "fixtures" / "blocksworld"

sys.path.insert(0, str(PROJECT_ROOT))

from stripsplan.encoding import EncodedProblem, encode  # noqa: E402


# =============================================================================
# Blocksworld Fixtures
# =============================================================================

@pytest.fixture(scope="session")
def fixtures_dir() -> Path:
    return FIXTURES_DIR


@pytest.fixture(scope="session")
def domain_path() -> Path:
    return FIXTURES_DIR / "domain.pddl"


@pytest.fixture(scope="session")
def problem_path() -> Callable[[str], Path]:
    """Factory: problem_path("p01") -> path of tests/fixtures/blocksworld/p01.pddl."""
    def _path(name: str) -> Path:
        return FIXTURES_DIR / f"{name}.pddl"
    return _path


@pytest.fixture(scope="session")
def encoded() -> Callable[[str], EncodedProblem]:
    """Factory returning the encoded Blocksworld problem with the given name (cached)."""
    cache = {}

    def _encode(name: str) -> EncodedProblem:
        if name not in cache:
            cache[name] = encode(FIXTURES_DIR / "domain.pddl", FIXTURES_DIR / f"{name}.pddl")
        return cache[name]
    return _encode


# =============================================================================
# Temporary File Fixtures
# =============================================================================

@pytest.fixture
def tmp_pddl(tmp_path: Path) -> Callable[[str, str], Path]:
    """Factory fixture to create temporary PDDL files.

    Usage:
        def test_something(tmp_pddl):
            path = tmp_pddl("domain.pddl", "(define (domain d) ...)")
    """
    def _create(filename: str, content: str) -> Path:
        filepath = tmp_path / filename
        filepath.write_text(content)
        return filepath
    return _create


@pytest.fixture
def test_logger() -> logging.Logger:
    return logging.getLogger("stripsplan.tests")
