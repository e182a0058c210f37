"""
Pytest configuration and shared fixtures.

Settings overrides can be placed in a .env file at the project root
(MKVSUBS_* variables), the same way the package reads them.
"""

from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load .env file from project root
project_root = Path(__file__).parent.parent
load_dotenv(project_root / ".env")


def pytest_configure(config):
    """Configure pytest-asyncio mode."""
    config.addinivalue_line("markers", "asyncio: mark test as async")


class EventRecorder:
    """Collects the events emitted by a parser."""

    def __init__(self):
        self.tracks = []
        self.subtitles = []
        self.files = []

    def attach(self, parser):
        parser.on("tracks", self.tracks.append)
        parser.on("subtitle", lambda cue, number: self.subtitles.append((cue, number)))
        parser.on("file", self.files.append)
        return self

    @property
    def cues(self):
        return [cue for cue, _ in self.subtitles]


@pytest.fixture
def recorder():
    """
    Factory fixture attaching an EventRecorder to a parser.

    Usage:
        def test_something(recorder):
            events = recorder(SubtitleParser())
    """

    def _attach(parser):
        return EventRecorder().attach(parser)

    return _attach
