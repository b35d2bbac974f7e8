"""
Shared pytest fixtures for scheduler and bracket tests.

Running tests:
    pytest tests/                  - full suite
    pytest tests/ -m "not slow"   - fast subset
"""
import pytest
import sys
import os

# Add src directory to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from podplay.models import ScheduleDay, TimeWindow
from podplay.pods import build_group_matches

DATE = "2026-05-01"
NEXT_DATE = "2026-05-02"


@pytest.fixture
def one_day():
    """A single day open from 09:00 to 18:00 (nine one-hour starts)."""
    return [ScheduleDay(DATE, "09:00", "18:00")]


@pytest.fixture
def two_days():
    return [ScheduleDay(DATE, "09:00", "13:00"), ScheduleDay(NEXT_DATE, "09:00", "13:00")]


@pytest.fixture
def courts():
    return ["Court 1", "Court 2"]


@pytest.fixture
def three_pod():
    """Round robin matches of group A: T1-T2, T1-T3, T2-T3."""
    return build_group_matches("A", ["T1", "T2", "T3"])


@pytest.fixture
def four_pod():
    """Matches 1-4 of group B with teams T4..T7."""
    return build_group_matches("B", ["T4", "T5", "T6", "T7"])


@pytest.fixture
def mixed_pods(three_pod, four_pod):
    return three_pod + four_pod


@pytest.fixture
def morning_blackout():
    """T1 cannot play before noon."""
    return {"T1": [TimeWindow(DATE, "09:00", "12:00")]}


@pytest.fixture
def settings_file(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("random_retries: 2\nstrict_beam_width: 4\n")
    return str(path)
