"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

# Import exoraven modules
from exoraven.analysis import analyze_text
from exoraven.config import reset_config
from exoraven.parser import parse_file, parse_source


# =============================================================================
# PATH FIXTURES
# =============================================================================

@pytest.fixture
def fixtures_dir():
    """Path to test fixtures directory."""
    return Path(__file__).parent / "fixtures"


@pytest.fixture
def complex_path(fixtures_dir):
    """A valid script exercising most of the language."""
    return fixtures_dir / "complex.exo"


@pytest.fixture
def complex_source(complex_path):
    return complex_path.read_text(encoding="utf-8")


# =============================================================================
# PARSED DOCUMENT FIXTURES
# =============================================================================

@pytest.fixture
def complex_document(complex_path):
    """Parsed tree of complex.exo."""
    return parse_file(str(complex_path))


@pytest.fixture
def complex_analysis(complex_source):
    """Full analysis of complex.exo."""
    return analyze_text(complex_source, filename="complex.exo")


# =============================================================================
# ENVIRONMENT ISOLATION
# =============================================================================

@pytest.fixture(autouse=True)
def clean_config(monkeypatch, tmp_path):
    """Every test starts without config files, env overrides or a cached config."""
    for var in ("EXORAVEN_MAX_PROBLEMS", "EXORAVEN_DISABLED_RULES", "EXORAVEN_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setattr("exoraven.config.CONFIG_SEARCH_PATHS", [tmp_path / ".exoraven.yaml"])
    reset_config()
    yield
    reset_config()


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def messages(diagnostics) -> list:
    """Messages of a diagnostic list, in order."""
    return [d.message for d in diagnostics]


def codes(diagnostics) -> list:
    """Codes of a diagnostic list, in order."""
    return [d.code for d in diagnostics]


def problems(diagnostics) -> list:
    """Errors and warnings only; hints and information filtered out."""
    return [d for d in diagnostics if d.severity.value in ("error", "warning")]


def parse(source: str):
    """Parse a snippet (helper for tests that only need the tree)."""
    return parse_source(source)
