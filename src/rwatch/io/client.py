"""
Async client for the upstream restaking relationship API.

Overview
- AvsFilters: typed query filters (avs/operator/strategy/token/date window/full).
- RestakeApiClient.fetch_records(): one GET returning the raw ``data`` array.
- RestakeApiClient.fetch_strategy_concentration(): one GET returning per-strategy assets and
  concentration figures.

Failure mapping
- httpx transport errors and non-2xx statuses -> UpstreamUnavailable (with status code).
- Non-JSON bodies, non-object bodies or a missing/non-list ``data`` -> MalformedResponse.

Notes
- No retries; callers decide how to isolate failures (see rwatch.io.fetch).
- The underlying httpx.AsyncClient may be injected (tests use httpx.MockTransport).
"""

from __future__ import annotations

import logging
from typing import Any, Literal

import httpx
from pydantic import BaseModel, ConfigDict

from .config import ApiSettings
from .errors import MalformedResponse, UpstreamUnavailable

__all__ = [
    "AvsFilters",
    "RestakeApiClient",
]

logger = logging.getLogger(__name__)


class AvsFilters(BaseModel):
    """
    Query filters accepted by the upstream endpoint.

    Attributes:
        avs (str | list[str] | None): AVS id(s) to scope the query to.
        operator (str | list[str] | None): Operator id(s).
        strategy (str | list[str] | None): Strategy id(s).
        token (Literal["eth", "usd"] | None): Value denomination hint.
        date_start (str | None): Window start (YYYY-MM-DD).
        date_end (str | None): Window end (YYYY-MM-DD).
        full (bool | None): Request the unlimited result set.

    Examples:
        >>> AvsFilters(avs=["A", "B"], full=True).to_params()
        {'avs': 'A,B', 'full': 'true'}
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    avs: str | list[str] | None = None
    operator: str | list[str] | None = None
    strategy: str | list[str] | None = None
    token: Literal["eth", "usd"] | None = None
    date_start: str | None = None
    date_end: str | None = None
    full: bool | None = None

    def to_params(self) -> dict[str, str]:
        params: dict[str, str] = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, bool):
                params[key] = "true" if value else "false"
            elif isinstance(value, list):
                if value:
                    params[key] = ",".join(value)
            else:
                params[key] = str(value)
        return params


class RestakeApiClient:
    """Thin async wrapper around the upstream endpoint.

    Args:
        settings (ApiSettings): Base URL and timeout.
        client (httpx.AsyncClient | None): Optional pre-built client. When omitted, the
            wrapper creates and owns one (closed by ``aclose`` / ``async with``).
    """

    def __init__(self, settings: ApiSettings, client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(headers={"Content-Type": "application/json"})

    async def __aenter__(self) -> RestakeApiClient:
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get_json(self, url: str, params: dict[str, str] | None = None) -> Any:
        kwargs: dict[str, Any] = {}
        if params:
            kwargs["params"] = params
        if self.settings.timeout is not None:
            kwargs["timeout"] = self.settings.timeout
        try:
            response = await self._client.get(url, **kwargs)
        except httpx.HTTPError as e:
            raise UpstreamUnavailable(f"request failed: {e}") from e

        if not response.is_success:
            raise UpstreamUnavailable(
                f"upstream returned HTTP {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponse("response body is not valid JSON") from e

    async def fetch_records(self, filters: AvsFilters) -> list[Any]:
        """Issue one GET and return the raw records of the ``data`` array.

        Args:
            filters: Query filters (converted with AvsFilters.to_params).

        Returns:
            list[Any]: Raw records, untouched (validation happens in rwatch.core.coerce).

        Raises:
            UpstreamUnavailable: On transport errors or non-2xx responses.
            MalformedResponse: When the body is not JSON or lacks an array ``data`` field.
        """
        params = filters.to_params()
        payload = await self._get_json(self.settings.base_url, params)

        if not isinstance(payload, dict) or not isinstance(payload.get("data"), list):
            raise MalformedResponse("response lacks an array-shaped 'data' field")

        meta = payload.get("metadata")
        if isinstance(meta, dict):
            logger.debug(
                "Upstream metadata: total_results=%s results_returned=%s limited=%s latest_date=%s",
                meta.get("total_results"),
                meta.get("results_returned"),
                meta.get("limited"),
                meta.get("latest_date"),
            )
            if meta.get("limited"):
                logger.info("Upstream result set was limited for params %s", params)

        records: list[Any] = payload["data"]
        return records

    async def fetch_strategy_concentration(self) -> tuple[dict[str, Any], dict[str, Any]]:
        """GET ``settings.strategy_url`` and return its two per-strategy mappings.

        Returns:
            tuple[dict, dict]: ``(totalRestakedAssetsPerStrategy, strategyConcentrationMetrics)``,
            raw (coerced later by rwatch.core.metrics.strategy_risk_rows).

        Raises:
            MalformedResponse: When no strategy URL is configured, the body is not JSON, or
                either mapping is missing.
            UpstreamUnavailable: On transport errors or non-2xx responses.
        """
        if not self.settings.strategy_url:
            raise MalformedResponse("no strategy_url configured")
        payload = await self._get_json(self.settings.strategy_url)
        if not isinstance(payload, dict):
            raise MalformedResponse("strategy response is not a JSON object")
        assets = payload.get("totalRestakedAssetsPerStrategy")
        metrics = payload.get("strategyConcentrationMetrics")
        if not isinstance(assets, dict) or not isinstance(metrics, dict):
            raise MalformedResponse(
                "strategy response lacks 'totalRestakedAssetsPerStrategy' or "
                "'strategyConcentrationMetrics' objects"
            )
        return assets, metrics
