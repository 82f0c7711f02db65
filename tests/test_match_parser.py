"""Tests for upstream match payload parsing."""

from datetime import datetime

import pytest
import pytz
from conftest import raw_match

from valotracker.utils.exceptions import MalformedRecord
from valotracker.utils.match_parser import (
    normalize_weapon, parse_match, parse_matches, parse_started_at
)


class TestWeaponNormalization:

    def test_missing_weapon_is_ability(self):
        assert normalize_weapon(None) == "Ability"
        assert normalize_weapon("") == "Ability"

    def test_ultimate_is_ability(self):
        assert normalize_weapon("Ultimate") == "Ability"

    def test_named_weapon_kept(self):
        assert normalize_weapon("Operator") == "Operator"


class TestStartedAt:

    def test_unix_game_start(self):
        started = parse_started_at({"game_start": 1792368000})
        assert started == datetime(2026, 10, 19, 0, 0, tzinfo=pytz.utc)

    def test_patched_fallback(self):
        started = parse_started_at({"game_start_patched": "Monday, October 19, 2026 3:30 PM"})
        assert started == datetime(2026, 10, 19, 15, 30, tzinfo=pytz.utc)

    def test_missing_start(self):
        assert parse_started_at({}) is None


class TestParseMatch:

    def test_metadata_and_roster(self):
        match = parse_match(raw_match())
        assert match.match_id == "abc"
        assert match.map_name == "Bind"
        assert match.team_scores == {"blue": 13, "red": 9}
        alice = match.find_player(name="alice", tag="euw")
        assert alice is not None
        assert alice.team == "blue"
        assert alice.agent == "Jett"
        assert alice.total_shots == 15

    def test_kills_grouped_and_sorted_per_round(self):
        match = parse_match(raw_match())
        first, second = match.rounds
        assert [k.timestamp for k in first.kills] == [300, 900]
        assert first.kills[0].weapon == "Ability"
        assert [k.killer_id for k in second.kills] == ["a"]
        assert second.kills[0].weapon == "Ability"

    def test_plant_parsed_only_with_location(self):
        match = parse_match(raw_match())
        assert match.rounds[0].plant is None
        assert match.rounds[1].plant.site == "A"
        assert match.rounds[1].plant.player_id == "b"

    def test_round_without_winner_is_skipped(self):
        rounds = [{"end_type": "Eliminated"}, {"winning_team": "Red", "end_type": "Eliminated"}]
        match = parse_match(raw_match(rounds=rounds))
        assert len(match.rounds) == 1
        assert match.rounds[0].index == 1
        assert match.rounds[0].winner_side == "red"

    @pytest.mark.parametrize("missing", ["metadata", "players", "rounds"])
    def test_missing_required_section_raises(self, missing):
        payload = raw_match()
        del payload[missing]
        with pytest.raises(MalformedRecord):
            parse_match(payload)

    def test_parse_matches_drops_malformed(self):
        broken = raw_match("broken")
        del broken["rounds"]
        matches = parse_matches([raw_match("one"), broken, raw_match("two")])
        assert [m.match_id for m in matches] == ["one", "two"]
