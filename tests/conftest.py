"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from pdxtree.config import ParserConfig
from pdxtree.parser import GenericParser


# =============================================================================
# SAMPLE SOURCES
# =============================================================================

PROVINCE_HISTORY = '''# 1 - Stockholm
owner = SWE
controller = SWE
add_core = SWE
culture = swedish
religion = catholic
hre = no
base_tax = 5
base_production = 5
trade_goods = grain
is_city = yes
discovered_by = { eastern western muslim }

1444.11.11 = {
    owner = DAN
    controller = DAN
}
1523.6.6 = {
    owner = SWE
    religion = protestant
}
'''

COUNTRY_COMMON = '''graphical_culture = westerngfx
color = { 18 62 146 }
revolutionary_colors = { 1 2 3 4 }
historical_idea_groups = {
    economic_ideas
    offensive_ideas
}
'''


@pytest.fixture
def province_source():
    """A small province history file."""
    return PROVINCE_HISTORY


@pytest.fixture
def country_source():
    """A small country definition with color literals."""
    return COUNTRY_COMMON


# =============================================================================
# PARSER FIXTURES
# =============================================================================

@pytest.fixture
def default_config():
    """Built-in defaults, ignoring any user config file."""
    return ParserConfig.defaults()


@pytest.fixture
def parser(default_config):
    """A fresh GenericParser with default settings."""
    return GenericParser(config=default_config)


@pytest.fixture
def accumulating_parser(default_config):
    """A GenericParser that collects repeated keys into lists."""
    return GenericParser(config=default_config, accumulate=True)


# =============================================================================
# FILE FIXTURES
# =============================================================================

@pytest.fixture
def write_script(tmp_path):
    """Write text (or raw bytes) to a file under tmp_path and return its path."""
    def _write(name: str, content, encoding: str = "utf-8") -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            path.write_bytes(content)
        else:
            path.write_bytes(content.encode(encoding))
        return path
    return _write
