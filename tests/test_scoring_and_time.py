"""Tests for scoring weights, ranking and day-key helpers."""

from datetime import datetime

import pytest
import pytz

from valotracker.data_models.leaderboard import DailyScoreEntry
from valotracker.utils.ranking import build_ranked_view, rank_entries
from valotracker.utils.scoring import ScoringWeights, percentage, round_half_up
from valotracker.utils.time_utils import day_key_for, normalize_day_key, parse_clock


class TestScoring:

    @pytest.mark.parametrize("value,expected", [(2.5, 3), (3.5, 4), (2.4, 2), (0, 0)])
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_match_points(self):
        weights = ScoringWeights(per_kill=1, per_assist=0.5, per_win=5)
        assert weights.match_points(5, 2, True) == 11
        assert weights.match_points(3, 0, False) == 3

    def test_percentage_guard(self):
        assert percentage(3, 0) == 0
        assert percentage(1, 3) == 33


class TestRanking:

    def test_ranked_view_numbers_and_truncates(self):
        entries = [DailyScoreEntry(f"P{i}#EUW", points=i) for i in range(5)]
        view = build_ranked_view(rank_entries(entries), labels={"P4#EUW": "Top"}, limit=3)
        assert [(row.rank, row.label) for row in view] == [(1, "Top"), (2, "P3#EUW"), (3, "P2#EUW")]


class TestDayKeys:

    def test_day_key_in_timezone(self):
        late_utc = datetime(2026, 10, 19, 20, 0, tzinfo=pytz.utc)
        assert day_key_for(late_utc, pytz.utc) == "2026-10-19"
        assert day_key_for(late_utc, pytz.timezone("Asia/Singapore")) == "2026-10-20"

    def test_naive_datetime_is_utc(self):
        assert day_key_for(datetime(2026, 10, 19, 23, 0), pytz.utc) == "2026-10-19"

    @pytest.mark.parametrize("value,expected", [
        ("2026-10-19", "2026-10-19"),
        ("Mon Oct 19 2026", "2026-10-19"),
        ("yesterday", None),
        (None, None),
        (20261019, None),
    ])
    def test_normalize_day_key(self, value, expected):
        assert normalize_day_key(value) == expected

    def test_parse_clock(self):
        assert parse_clock("23:59") == (23, 59)
        with pytest.raises(ValueError):
            parse_clock("noon")
