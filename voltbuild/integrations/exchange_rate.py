"""CAD -> USD exchange rate from an ordered chain of public providers.

Each provider gets one attempt with a bounded timeout. The first rate inside
the sanity range wins; if none qualifies the configured fallback is used.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime, timezone
from typing import Any

import httpx
from pydantic import BaseModel

from voltbuild.config import settings
from voltbuild.integrations.base import BaseIntegration

MIN_VALID_RATE = 0.5
MAX_VALID_RATE = 1.0


class RateProvider(BaseModel):
    name: str
    url: str
    params: dict[str, str]
    extract: Callable[[dict[str, Any]], Any]


PROVIDERS: dict[str, RateProvider] = {
    "exchangerate_api": RateProvider(
        name="exchangerate_api",
        url="https://api.exchangerate-api.com/v4/latest/CAD",
        params={},
        extract=lambda body: body["rates"]["USD"],
    ),
    "open_er_api": RateProvider(
        name="open_er_api",
        url="https://open.er-api.com/v6/latest/CAD",
        params={},
        extract=lambda body: body["rates"]["USD"],
    ),
    "frankfurter": RateProvider(
        name="frankfurter",
        url="https://api.frankfurter.app/latest",
        params={"from": "CAD", "to": "USD"},
        extract=lambda body: body["rates"]["USD"],
    ),
}


class ExchangeRate(BaseModel):
    rate: float
    source: str
    fetched_at: datetime

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"


def is_valid_rate(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and (
        MIN_VALID_RATE < value < MAX_VALID_RATE
    )


def configured_providers() -> list[RateProvider]:
    names = [n.strip() for n in settings.EXCHANGE_RATE_PROVIDERS.split(",") if n.strip()]
    unknown = [n for n in names if n not in PROVIDERS]
    if unknown:
        raise ValueError(f"Unknown exchange rate provider(s): {', '.join(unknown)}")
    return [PROVIDERS[n] for n in names]


class ExchangeRateClient(BaseIntegration):
    def __init__(
        self,
        providers: list[RateProvider] | None = None,
        timeout: float | None = None,
        fallback_rate: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        super().__init__("exchange_rate")
        self.providers = providers if providers is not None else configured_providers()
        self.timeout = timeout if timeout is not None else settings.EXCHANGE_RATE_TIMEOUT_SECONDS
        self.fallback_rate = (
            fallback_rate if fallback_rate is not None else settings.EXCHANGE_RATE_FALLBACK
        )
        self._transport = transport

    async def health_check(self) -> bool:
        rate = await self.get_cad_usd_rate()
        return not rate.is_fallback

    async def _fetch_from(self, client: httpx.AsyncClient, provider: RateProvider) -> float | None:
        try:
            resp = await client.get(provider.url, params=provider.params or None)
            resp.raise_for_status()
            value = provider.extract(resp.json())
        except (httpx.HTTPError, ValueError, KeyError, TypeError) as e:
            self.logger.warning("Exchange rate provider %s failed: %s", provider.name, e)
            return None

        if not is_valid_rate(value):
            self.logger.warning(
                "Exchange rate provider %s returned out-of-range rate %r", provider.name, value
            )
            return None
        return float(value)

    async def get_cad_usd_rate(self) -> ExchangeRate:
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            for provider in self.providers:
                rate = await self._fetch_from(client, provider)
                if rate is not None:
                    self.logger.info("CAD->USD rate %.4f from %s", rate, provider.name)
                    return ExchangeRate(rate=rate, source=provider.name, fetched_at=_now())

        self.logger.warning("All exchange rate providers failed, using fallback %.2f", self.fallback_rate)
        return ExchangeRate(rate=self.fallback_rate, source="fallback", fetched_at=_now())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class RateCache:
    """Holds the rate fetched at startup so requests never wait on providers."""

    def __init__(self) -> None:
        self.current: ExchangeRate | None = None

    async def refresh(self, client: ExchangeRateClient | None = None) -> ExchangeRate:
        self.current = await (client or ExchangeRateClient()).get_cad_usd_rate()
        return self.current

    async def get(self) -> ExchangeRate:
        if self.current is None:
            return await self.refresh()
        return self.current

    def clear(self) -> None:
        self.current = None


rate_cache = RateCache()
