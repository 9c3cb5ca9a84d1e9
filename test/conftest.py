"""
Test configuration for BASIC interpreter tests
"""

import pytest
import sys
from pathlib import Path

# Add the project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from parsing import create_parser
from interpreter import ScriptConsole, make_session, process_line


@pytest.fixture
def parser():
    """Provide a line parser"""
    return create_parser()


@pytest.fixture
def console():
    """Console with no queued input that collects output"""
    return ScriptConsole([])


@pytest.fixture
def enter(parser, console):
    """Feed lines into a fresh session; returns the session after the last line"""
    state = {'session': make_session()}

    def feed(*lines):
        for text in lines:
            state['session'] = process_line(text, state['session'], console, parser)
        return state['session']

    return feed
