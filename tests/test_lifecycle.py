from datetime import datetime, timedelta, timezone

import pytest

from genshin_quiz.utils.lifecycle import Lifecycle, VoteStatus, to_naive_utc, vote_status

NOW = datetime(2024, 6, 1, 12, 0, 0)
HOUR = timedelta(hours=1)


@pytest.mark.parametrize(
    "start, end, active, expected",
    [
        (NOW - HOUR, None, True, VoteStatus.OPEN),
        (NOW - HOUR, NOW + HOUR, True, VoteStatus.OPEN),
        (NOW - HOUR, NOW, True, VoteStatus.OPEN),
        (NOW, None, True, VoteStatus.OPEN),
        (NOW + HOUR, None, True, VoteStatus.SCHEDULED),
        (NOW - 2 * HOUR, NOW - HOUR, True, VoteStatus.CLOSED),
        (NOW - HOUR, None, False, VoteStatus.CLOSED),
        (NOW + HOUR, None, False, VoteStatus.CLOSED),
    ],
)
def test_vote_status(start, end, active, expected):
    assert vote_status(NOW, start, end, active) is expected


def test_vote_status_accepts_aware_now():
    aware_now = NOW.replace(tzinfo=timezone.utc)
    assert vote_status(aware_now, NOW - HOUR, NOW + HOUR, True) is VoteStatus.OPEN


def test_to_naive_utc_converts_offsets():
    eight_hours_ahead = timezone(timedelta(hours=8))
    local = datetime(2024, 6, 1, 20, 0, tzinfo=eight_hours_ahead)
    assert to_naive_utc(local) == NOW
    assert to_naive_utc(None) is None


def test_lifecycle_from_flag():
    assert Lifecycle.from_flag(True) is Lifecycle.ACTIVE
    assert Lifecycle.from_flag(False) is Lifecycle.RETIRED
