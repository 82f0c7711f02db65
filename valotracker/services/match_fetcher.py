"""
Upstream stats provider client.

Bulk and background callers go through ``fetch_window``/``fetch_windows``,
which never raise: failures are logged and reported on the FetchResult so the
leaderboard can tell "no matches today" from "could not ask". On-demand paths
(``fetch_match``, ``fetch_mmr``) raise typed TrackerExceptions whose
``user_message`` can be shown directly.
"""

import asyncio
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

import aiohttp

from valotracker.config import Config
from valotracker.data_models.identity import Identity
from valotracker.data_models.match import MatchRecord
from valotracker.data_models.profile import RankSnapshot
from valotracker.services.task_queue import PacedTaskQueue
from valotracker.utils.exceptions import (
    MalformedRecord, TrackerException, UpstreamAuthError, UpstreamNotFound, UpstreamUnavailable
)
from valotracker.utils.logger import setup_logger
from valotracker.utils.match_parser import parse_match, parse_matches

logger = setup_logger(__name__)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one identity's window fetch. ``error`` is set on failure."""
    identity_key: str
    matches: Tuple[MatchRecord, ...] = ()
    error: Optional[TrackerException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class MatchFetcher:
    """Rate-limited client for the match-data provider."""

    def __init__(self, api_key: Optional[str] = None, region: Optional[str] = None,
                 base_url: Optional[str] = None, timeout: Optional[float] = None,
                 queue: Optional[PacedTaskQueue] = None,
                 session: Optional[aiohttp.ClientSession] = None):
        self.api_key = api_key if api_key is not None else Config.VALORANT_API_KEY
        self.region = region or Config.VALORANT_REGION
        self.base_url = (base_url or Config.VALORANT_API_BASE_URL).rstrip('/')
        self.timeout = timeout or Config.API_TIMEOUT_SECONDS
        self.queue = queue or PacedTaskQueue(
            max_concurrency=Config.FETCH_MAX_CONCURRENCY,
            min_interval=Config.FETCH_DELAY_SECONDS,
        )
        self._session = session
        self._owns_session = session is None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers={'Authorization': self.api_key or ''},
            )
            self._owns_session = True
        return self._session

    async def close(self):
        if self._session and self._owns_session and not self._session.closed:
            await self._session.close()

    async def _request(self, path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[int, Any]:
        """Perform the HTTP GET and return (status, decoded JSON or None)."""
        session = await self._get_session()
        async with session.get(self.base_url + path, params=params) as resp:
            if resp.status != 200:
                return resp.status, None
            return resp.status, await resp.json(content_type=None)

    async def _get_data(self, path: str, params: Optional[Dict[str, Any]] = None,
                        subject: Optional[str] = None) -> Any:
        """
        GET ``path`` and return the response's ``data`` member.

        Raises:
            UpstreamAuthError: 401/403
            UpstreamNotFound: 404
            UpstreamUnavailable: Network errors, timeouts, 429 and 5xx
            MalformedRecord: Undecodable body or no ``data`` member
        """
        try:
            status, body = await self._request(path, params)
        except asyncio.TimeoutError:
            raise UpstreamUnavailable(path, 'request timed out')
        except aiohttp.ContentTypeError as e:
            raise MalformedRecord(path, f'response was not JSON: {e}')
        except aiohttp.ClientError as e:
            raise UpstreamUnavailable(path, str(e))
        except ValueError as e:
            raise MalformedRecord(path, f'response was not JSON: {e}')

        if status in (401, 403):
            raise UpstreamAuthError(path, status)
        if status == 404:
            raise UpstreamNotFound(subject or path)
        if status != 200:
            raise UpstreamUnavailable(path, f'HTTP {status}')
        if not isinstance(body, dict) or 'data' not in body:
            raise MalformedRecord(path, 'response has no data member')
        return body['data']

    def _matches_path(self, name: str, tag: str) -> str:
        return f"/valorant/v3/matches/{self.region}/{quote(name, safe='')}/{quote(tag, safe='')}"

    async def fetch_window(self, identity: Identity, size: int) -> FetchResult:
        """Most-recent-first matches for one identity. Never raises."""
        try:
            data = await self._get_data(
                self._matches_path(identity.canonical_name, identity.discriminator),
                params={'size': size},
                subject=identity.key,
            )
        except UpstreamAuthError as e:
            logger.error(f"Upstream rejected our API key while fetching {identity.key}: {e}")
            return FetchResult(identity.key, error=e)
        except TrackerException as e:
            logger.warning(f"Error fetching matches for {identity.key}: {e}")
            return FetchResult(identity.key, error=e)
        except Exception as e:
            logger.error(f"Unexpected error fetching matches for {identity.key}: {e}", exc_info=True)
            return FetchResult(identity.key, error=UpstreamUnavailable(identity.key, str(e)))

        if not isinstance(data, list):
            error = MalformedRecord(identity.key, 'match list is not an array')
            logger.warning(f"Error fetching matches for {identity.key}: {error}")
            return FetchResult(identity.key, error=error)
        return FetchResult(identity.key, matches=tuple(parse_matches(data[:size])))

    async def fetch_matches(self, identity: Identity, size: int) -> List[MatchRecord]:
        """Like fetch_window but degrades to an empty list on any failure."""
        result = await self.fetch_window(identity, size)
        return list(result.matches)

    async def fetch_windows(self, identities: Sequence[Identity], size: int) -> List[FetchResult]:
        """Fetch many windows through the paced queue, one result per identity, in order."""
        jobs = [lambda identity=identity: self.fetch_window(identity, size) for identity in identities]
        results = await self.queue.run(jobs)
        return [
            result if isinstance(result, FetchResult)
            else FetchResult(identity.key, error=UpstreamUnavailable(identity.key, str(result)))
            for identity, result in zip(identities, results)
        ]

    async def fetch_recent(self, identity: Identity, size: int) -> List[MatchRecord]:
        """
        On-demand window fetch that surfaces failures.

        Raises:
            TrackerException: Any upstream failure, with a user-facing message
        """
        result = await self.fetch_window(identity, size)
        if result.error:
            raise result.error
        return list(result.matches)

    async def fetch_match(self, match_id: str) -> MatchRecord:
        """
        Fetch and parse a single match by id.

        Raises:
            TrackerException: Any upstream failure, with a user-facing message
        """
        data = await self._get_data(f"/valorant/v2/match/{quote(match_id, safe='')}", subject=f"Match {match_id}")
        return parse_match(data)

    async def fetch_mmr(self, identity: Identity) -> RankSnapshot:
        """
        Current competitive rank.

        Raises:
            TrackerException: Any upstream failure, with a user-facing message
        """
        path = f"/valorant/v1/mmr/{self.region}/{quote(identity.canonical_name, safe='')}/{quote(identity.discriminator, safe='')}"
        data = await self._get_data(path, subject=identity.key)
        if not isinstance(data, dict) or not data.get('currenttierpatched'):
            raise MalformedRecord(identity.key, 'no competitive rank in response')
        return RankSnapshot(
            tier=data['currenttierpatched'],
            ranking_in_tier=int(data.get('ranking_in_tier') or 0),
            elo=int(data.get('elo') or 0),
            season=data.get('season_id'),
            image_url=(data.get('images') or {}).get('large'),
        )
