"""Tests for the upstream match fetcher's status mapping and degradation."""

import asyncio

import aiohttp
import pytest
from conftest import make_identity, raw_match

from valotracker.services.match_fetcher import MatchFetcher
from valotracker.services.task_queue import PacedTaskQueue
from valotracker.utils.exceptions import (
    MalformedRecord, UpstreamAuthError, UpstreamNotFound, UpstreamUnavailable
)

ALICE = make_identity("Alice Smith", "111111111111111111")


class ScriptedFetcher(MatchFetcher):
    """Answers requests from a path -> (status, body) table, or raises a scripted error."""

    def __init__(self, responses):
        super().__init__(api_key="test-key", region="eu", base_url="https://example.invalid",
                         queue=PacedTaskQueue(max_concurrency=1, min_interval=0))
        self.responses = responses
        self.calls = []

    async def _request(self, path, params=None):
        self.calls.append((path, params))
        response = self.responses.get(path, (404, None))
        if isinstance(response, Exception):
            raise response
        return response


MATCHES_PATH = "/valorant/v3/matches/eu/Alice%20Smith/EUW"


class TestFetchWindow:

    def test_success_parses_matches(self):
        fetcher = ScriptedFetcher({MATCHES_PATH: (200, {"data": [raw_match("one"), raw_match("two")]})})
        result = asyncio.run(fetcher.fetch_window(ALICE, 5))
        assert result.ok
        assert [m.match_id for m in result.matches] == ["one", "two"]
        assert fetcher.calls == [(MATCHES_PATH, {"size": 5})]

    def test_window_is_truncated(self):
        fetcher = ScriptedFetcher({MATCHES_PATH: (200, {"data": [raw_match(str(i)) for i in range(4)]})})
        result = asyncio.run(fetcher.fetch_window(ALICE, 2))
        assert len(result.matches) == 2

    def test_empty_history_is_success(self):
        fetcher = ScriptedFetcher({MATCHES_PATH: (200, {"data": []})})
        result = asyncio.run(fetcher.fetch_window(ALICE, 5))
        assert result.ok
        assert result.matches == ()

    @pytest.mark.parametrize("response,error_type", [
        ((401, None), UpstreamAuthError),
        ((403, None), UpstreamAuthError),
        ((404, None), UpstreamNotFound),
        ((429, None), UpstreamUnavailable),
        ((503, None), UpstreamUnavailable),
        ((200, {"status": 200}), MalformedRecord),
        ((200, {"data": {"not": "a list"}}), MalformedRecord),
        (asyncio.TimeoutError(), UpstreamUnavailable),
        (aiohttp.ClientConnectionError("reset"), UpstreamUnavailable),
    ])
    def test_failures_are_returned_not_raised(self, response, error_type):
        fetcher = ScriptedFetcher({MATCHES_PATH: response})
        result = asyncio.run(fetcher.fetch_window(ALICE, 5))
        assert not result.ok
        assert isinstance(result.error, error_type)
        assert result.matches == ()

    def test_fetch_matches_degrades_to_empty_list(self):
        fetcher = ScriptedFetcher({MATCHES_PATH: (503, None)})
        assert asyncio.run(fetcher.fetch_matches(ALICE, 5)) == []

    def test_fetch_recent_raises_typed_error(self):
        fetcher = ScriptedFetcher({MATCHES_PATH: (404, None)})
        with pytest.raises(UpstreamNotFound) as excinfo:
            asyncio.run(fetcher.fetch_recent(ALICE, 5))
        assert "Alice Smith#EUW" in excinfo.value.user_message


class TestBulkAndSingle:

    def test_fetch_windows_isolates_failures(self):
        bob = make_identity("Bob", "222222222222222222")
        fetcher = ScriptedFetcher({
            MATCHES_PATH: (503, None),
            "/valorant/v3/matches/eu/Bob/EUW": (200, {"data": [raw_match("b1")]}),
        })
        results = asyncio.run(fetcher.fetch_windows([ALICE, bob], 5))
        assert [r.identity_key for r in results] == ["Alice Smith#EUW", "Bob#EUW"]
        assert not results[0].ok
        assert results[1].ok

    def test_fetch_match(self):
        fetcher = ScriptedFetcher({"/valorant/v2/match/abc": (200, {"data": raw_match("abc")})})
        match = asyncio.run(fetcher.fetch_match("abc"))
        assert match.match_id == "abc"
        assert len(match.rounds) == 2

    def test_fetch_mmr(self):
        fetcher = ScriptedFetcher({"/valorant/v1/mmr/eu/Alice%20Smith/EUW": (200, {"data": {
            "currenttierpatched": "Diamond 1",
            "ranking_in_tier": 42,
            "elo": 1742,
            "images": {"large": "https://example.invalid/d1.png"},
        }})})
        rank = asyncio.run(fetcher.fetch_mmr(ALICE))
        assert rank.tier == "Diamond 1"
        assert rank.ranking_in_tier == 42
        assert rank.image_url.endswith("d1.png")

    def test_fetch_mmr_unranked_is_malformed(self):
        fetcher = ScriptedFetcher({"/valorant/v1/mmr/eu/Alice%20Smith/EUW": (200, {"data": {}})})
        with pytest.raises(MalformedRecord):
            asyncio.run(fetcher.fetch_mmr(ALICE))
