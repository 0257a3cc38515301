"""
MFAPI.in Client
Indian mutual fund NAV history and scheme search
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx

from investment_tracker.domain.exceptions import MarketDataError
from investment_tracker.domain.models import FundSearchResult, NavEntry
from investment_tracker.domain.services.numeric import normalize

logger = logging.getLogger(__name__)


class MFApiClient:
    def __init__(
        self,
        base_url: str = "https://api.mfapi.in",
        timeout: float = 5.0,
        search_limit: int = 8,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.search_limit = search_limit

    async def _request_json(self, url: str, params: Optional[dict] = None) -> Any:
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params)
        except httpx.HTTPError as exc:
            raise MarketDataError(f"MFAPI request failed: {exc}") from exc

        if response.status_code != 200:
            raise MarketDataError(f"MFAPI {response.status_code} for {url}")
        try:
            return response.json()
        except ValueError as exc:
            raise MarketDataError(f"MFAPI returned invalid JSON for {url}") from exc

    async def get_fund_nav_history(self, scheme_code: str) -> List[NavEntry]:
        """NAV history for a scheme, most recent first (as MFAPI orders it)."""
        payload = await self._request_json(f"{self.base_url}/mf/{scheme_code}")
        rows = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise MarketDataError(f"No NAV data for scheme {scheme_code}", symbol=scheme_code)

        return [
            NavEntry(nav=normalize(row.get("nav")), date=str(row.get("date") or ""))
            for row in rows
            if isinstance(row, dict)
        ]

    async def search(self, query: str) -> List[FundSearchResult]:
        payload = await self._request_json(f"{self.base_url}/mf/search", params={"q": query})
        if not isinstance(payload, list):
            return []

        results: List[FundSearchResult] = []
        for fund in payload:
            if not isinstance(fund, dict) or fund.get("schemeCode") is None:
                continue
            results.append(
                FundSearchResult(
                    code=str(fund["schemeCode"]),
                    name=fund.get("schemeName") or "",
                    house=fund.get("fundHouse"),
                    type=fund.get("schemeType"),
                )
            )
        return results

    async def search_funds(self, query: str) -> List[FundSearchResult]:
        """Search results trimmed for UI suggestions."""
        results = await self.search(query)
        return results[: self.search_limit]

    async def get_scheme_name(self, scheme_code: str) -> Optional[str]:
        try:
            payload = await self._request_json(f"{self.base_url}/mf/{scheme_code}")
        except MarketDataError as e:
            logger.error(f"Error fetching mutual fund name for {scheme_code}: {e}")
            return None

        meta = payload.get("meta") if isinstance(payload, dict) else None
        if isinstance(meta, dict) and meta.get("scheme_name"):
            return meta["scheme_name"]
        return None
