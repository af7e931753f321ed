"""CoinGecko simple-price source.

Usage:
    source = CoinGeckoPriceSource(base_url="https://api.coingecko.com/api/v3")
    source.get_prices(["bitcoin"], ["usd", "eur"])
    # {"bitcoin": {"usd": 50000.0, "eur": 46000.0}}
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import httpx

from cryptopulse.collaborators.protocols import PriceTable
from cryptopulse.core.errors import NetworkError, SourceError
from cryptopulse.core.logging import get_logger

if TYPE_CHECKING:
    from cryptopulse.core.settings import CryptoPulseSettings

logger = get_logger(__name__)

SOURCE_NAME = "coingecko"


class CoinGeckoPriceSource:
    """Fetch spot prices via ``GET /simple/price``."""

    USER_AGENT = "crypto-pulse"

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        *,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client or httpx.Client(timeout=timeout)

    @classmethod
    def from_settings(
        cls,
        settings: CryptoPulseSettings,
        client: httpx.Client | None = None,
    ) -> CoinGeckoPriceSource:
        return cls(settings.coingecko_base_url, timeout=settings.http_timeout_seconds, client=client)

    def get_prices(self, ids: Sequence[str], vs_currencies: Sequence[str]) -> PriceTable:
        url = f"{self.base_url}/simple/price"
        params = {"ids": ",".join(ids), "vs_currencies": ",".join(vs_currencies)}
        logger.debug("prices.request", url=url, **params)

        try:
            response = self._client.get(
                url,
                params=params,
                headers={"accept": "application/json", "User-Agent": self.USER_AGENT},
            )
        except httpx.HTTPError as exc:
            raise NetworkError(f"Failed to fetch crypto prices: {exc}", cause=exc).with_context(
                source_name=SOURCE_NAME, url=url
            ) from exc

        if not response.is_success:
            raise SourceError(
                f"Failed to fetch crypto prices: {response.status_code} "
                f"{response.reason_phrase}\n{response.text}"
            ).with_context(source_name=SOURCE_NAME, url=url, http_status=response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise SourceError(
                f"CoinGecko returned a non-JSON body: {response.text[:200]}", cause=exc
            ).with_context(source_name=SOURCE_NAME, url=url, http_status=response.status_code) from exc
        if not isinstance(data, dict):
            raise SourceError("CoinGecko returned an unexpected payload").with_context(
                source_name=SOURCE_NAME, url=url, http_status=response.status_code
            )
        if not data:
            raise SourceError("No data returned from CoinGecko API.").with_context(
                source_name=SOURCE_NAME, url=url, http_status=response.status_code
            )
        return data
