"""
Test Configuration
==================

Pytest fixtures for SnapStream. Builders and fakes live in helpers.py.
"""

import pytest

from helpers import BLUE, GREEN, RED, FakeVideoSource, VirtualTimer, make_frame


@pytest.fixture
def fake_source():
    """Provide an in-memory video source with a 64x48 red image."""
    return FakeVideoSource()


@pytest.fixture
def virtual_timer():
    """Provide a virtual clock and sleep for timer-mode tests."""
    return VirtualTimer()


@pytest.fixture
def frame_a():
    """200x100 red frame."""
    return make_frame(200, 100, RED, frame_id="A")


@pytest.fixture
def frame_b():
    """300x150 green frame."""
    return make_frame(300, 150, GREEN, frame_id="B")


@pytest.fixture
def frame_c():
    """100x50 blue frame."""
    return make_frame(100, 50, BLUE, frame_id="C")
