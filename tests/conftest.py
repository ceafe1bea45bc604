"""Shared fixtures."""

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from opportunities_radar.core import Source, SourceCategory

START = datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)


def make_clock(start: datetime = START, step: timedelta = timedelta(hours=1)) -> Callable[[], datetime]:
    """Clock that advances by ``step`` on every call."""
    current = [start - step]

    def clock() -> datetime:
        current[0] += step
        return current[0]

    return clock


@pytest.fixture
def grants_source() -> Source:
    return Source(
        name="Base Grants",
        url="https://paragraph.xyz/@grants.base.eth",
        category=SourceCategory.GRANTS,
        extractor="paragraph",
    )


@pytest.fixture
def protocol_source() -> Source:
    return Source(
        name="Base Blog",
        url="https://base.org/blog",
        category=SourceCategory.PROTOCOL,
        extractor="base-blog",
    )


@pytest.fixture
def clock() -> Callable[[], datetime]:
    return make_clock()
