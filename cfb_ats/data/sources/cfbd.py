"""
College Football Data API client.

Provides access to:
- Historical betting lines per team and season (REST ``/lines``)
- Game results (REST ``/games``)
- All lines for one week of games (GraphQL)
- The list of sportsbooks that publish lines (GraphQL)

Requests are authenticated with a bearer token taken from settings.
"""
from __future__ import annotations

import asyncio
import ssl
from datetime import datetime
from typing import Any, Optional

import aiohttp
import certifi

from ...config.constants import SeasonType
from .base import (
    AuthenticationError,
    BaseDataSource,
    DataNotAvailableError,
    DataSourceError,
    DataSourceHealth,
    DataSourceStatus,
    RateLimitError,
)

WEEK_GAMES_QUERY = """
query WeekGames($year: smallint!, $week: smallint!, $seasonType: season_type!) {
  game(
    where: {
      _and: [
        {season: {_eq: $year}},
        {week: {_eq: $week}},
        {seasonType: {_eq: $seasonType}}
      ]
    }
    orderBy: {startDate: ASC}
  ) {
    id
    season
    week
    seasonType
    startDate
    homeTeam
    awayTeam
    homePoints
    awayPoints
  }
}
"""

GAME_LINES_QUERY = """
query GameLines($gameIds: [Int!]!) {
  gameLines(where: {gameId: {_in: $gameIds}}) {
    gameId
    provider { name }
    spread
    spreadOpen
    overUnder
    overUnderOpen
    moneylineHome
    moneylineAway
  }
}
"""

PROVIDERS_QUERY = """
query Providers {
  linesProvider(orderBy: {name: ASC}) {
    id
    name
  }
}
"""


class CFBDClient(BaseDataSource):
    """
    Async client for the College Football Data API.

    Handles:
    - Bearer-token authentication from ``CFBD_API_KEY``
    - Connection pooling with certifi-backed TLS
    - A concurrency cap on in-flight requests
    - Retry and circuit breaking via ``BaseDataSource``

    Example:
        >>> client = CFBDClient.from_settings(get_settings())
        >>> lines = await client.get_team_lines("Ohio State", 2024)
        >>> await client.close()
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.collegefootballdata.com",
        graphql_url: str = "https://graphql.collegefootballdata.com/v1/graphql",
        timeout_seconds: float = 30.0,
        max_concurrent_requests: int = 4,
        enabled: bool = True,
    ):
        super().__init__(source_name="cfbd", enabled=enabled)

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.graphql_url = graphql_url
        self.timeout_seconds = timeout_seconds

        self._request_semaphore = asyncio.Semaphore(max_concurrent_requests)
        self._session: Optional[aiohttp.ClientSession] = None

        if not api_key:
            self.logger.warning("No API key provided - CFBD client will be disabled")
            self.enabled = False

    @classmethod
    def from_settings(cls, settings) -> "CFBDClient":
        cfbd = settings.cfbd
        return cls(
            api_key=cfbd.api_key,
            base_url=cfbd.base_url,
            graphql_url=cfbd.graphql_url,
            timeout_seconds=cfbd.timeout_seconds,
            max_concurrent_requests=cfbd.max_concurrent_requests,
        )

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Accept": "application/json",
        }

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create the aiohttp session."""
        if self._session is None or self._session.closed:
            ssl_context = ssl.create_default_context(cafile=certifi.where())
            connector = aiohttp.TCPConnector(ssl=ssl_context)
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self._session = aiohttp.ClientSession(
                connector=connector,
                timeout=timeout,
                headers=self._headers,
            )
        return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "CFBDClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.close()

    def _check_status(self, response: aiohttp.ClientResponse) -> None:
        if response.status in (401, 403):
            raise AuthenticationError(
                self.source_name,
                f"CFBD rejected the API key (HTTP {response.status})",
            )
        if response.status == 404:
            raise DataNotAvailableError(
                self.source_name, "CFBD has no data for this request (HTTP 404)"
            )
        if response.status == 429:
            retry_after = response.headers.get("Retry-After")
            raise RateLimitError(
                self.source_name,
                retry_after_seconds=int(retry_after) if retry_after and retry_after.isdigit() else None,
            )
        if response.status != 200:
            raise DataSourceError(
                f"CFBD request failed with HTTP {response.status}",
                self.source_name,
            )

    async def _get(self, path: str, params: dict[str, Any]) -> Any:
        """GET a REST endpoint and return the decoded JSON."""
        url = f"{self.base_url}{path}"
        query = {k: v for k, v in params.items() if v is not None}

        async def request() -> Any:
            async with self._request_semaphore:
                session = await self._get_session()
                try:
                    async with session.get(url, params=query) as response:
                        self._check_status(response)
                        return await response.json()
                except aiohttp.ClientError as e:
                    raise DataSourceError(
                        f"Request to {path} failed: {e}",
                        self.source_name,
                        original_error=e,
                    ) from e

        self.logger.debug(f"GET {path} {query}")
        return await self._with_retry(request)

    async def _graphql(self, query: str, variables: Optional[dict[str, Any]] = None) -> dict:
        """POST a GraphQL query and return its ``data`` object."""

        async def request() -> dict:
            async with self._request_semaphore:
                session = await self._get_session()
                payload = {"query": query, "variables": variables or {}}
                try:
                    async with session.post(self.graphql_url, json=payload) as response:
                        self._check_status(response)
                        body = await response.json()
                except aiohttp.ClientError as e:
                    raise DataSourceError(
                        f"GraphQL request failed: {e}",
                        self.source_name,
                        original_error=e,
                    ) from e

            if body.get("errors"):
                messages = ", ".join(err.get("message", "unknown") for err in body["errors"])
                raise DataSourceError(
                    f"GraphQL errors: {messages}",
                    self.source_name,
                    retry_allowed=False,
                )
            return body.get("data") or {}

        return await self._with_retry(request)

    async def get_team_lines(
        self,
        team: str,
        year: int,
        season_type: SeasonType = SeasonType.REGULAR,
    ) -> list[dict]:
        """
        Fetch every game a team played in a season with its betting lines.

        Each record carries the game result and a ``lines`` list, one entry
        per sportsbook.
        """
        data = await self._get(
            "/lines",
            {"team": team, "year": year, "seasonType": SeasonType(season_type).value},
        )
        self.logger.info(f"Fetched {len(data)} line records for {team} {year}")
        return data

    async def get_games(
        self,
        year: int,
        team: Optional[str] = None,
        season_type: SeasonType = SeasonType.REGULAR,
        week: Optional[int] = None,
    ) -> list[dict]:
        """Fetch game results."""
        return await self._get(
            "/games",
            {
                "year": year,
                "team": team,
                "seasonType": SeasonType(season_type).value,
                "week": week,
            },
        )

    async def get_week_lines(
        self,
        year: int,
        week: int,
        season_type: SeasonType = SeasonType.REGULAR,
    ) -> list[dict]:
        """
        Fetch the games of one week together with all of their lines.

        Returns:
            Game records, each with a ``lines`` list (possibly empty)
        """
        games_data = await self._graphql(
            WEEK_GAMES_QUERY,
            {"year": year, "week": week, "seasonType": SeasonType(season_type).value},
        )
        games = games_data.get("game", [])
        if not games:
            self.logger.info(f"No games found for {year} week {week}")
            return []

        lines_data = await self._graphql(
            GAME_LINES_QUERY, {"gameIds": [game["id"] for game in games]}
        )

        by_game: dict[Any, list[dict]] = {}
        for line in lines_data.get("gameLines", []):
            by_game.setdefault(line.get("gameId"), []).append(line)

        combined = [{**game, "lines": by_game.get(game["id"], [])} for game in games]
        self.logger.info(
            f"Fetched {len(combined)} games and "
            f"{sum(len(g['lines']) for g in combined)} lines for {year} week {week}"
        )
        return combined

    async def get_providers(self) -> list[str]:
        """Fetch the names of sportsbooks that publish lines."""
        data = await self._graphql(PROVIDERS_QUERY)
        return [p["name"] for p in data.get("linesProvider", []) if p.get("name")]

    async def health_check(self) -> DataSourceHealth:
        """Check if the CFBD API is reachable with the configured key."""
        if not self.enabled:
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.DISABLED,
                error_message="API key not configured",
            )

        try:
            session = await self._get_session()
            async with session.get(
                f"{self.base_url}/calendar", params={"year": datetime.now().year}
            ) as response:
                if response.status == 200:
                    return DataSourceHealth(
                        source_name=self.source_name,
                        status=DataSourceStatus.HEALTHY,
                        last_success=datetime.now(),
                    )
                elif response.status in (401, 403):
                    return DataSourceHealth(
                        source_name=self.source_name,
                        status=DataSourceStatus.UNHEALTHY,
                        error_message="Invalid API key",
                    )
                else:
                    return DataSourceHealth(
                        source_name=self.source_name,
                        status=DataSourceStatus.DEGRADED,
                        error_message=f"HTTP {response.status}",
                    )

        except aiohttp.ClientError as e:
            return DataSourceHealth(
                source_name=self.source_name,
                status=DataSourceStatus.UNHEALTHY,
                error_message=str(e),
            )
