from fastapi import APIRouter, Query
from pydantic import BaseModel

from voltbuild.integrations.exchange_rate import rate_cache

router = APIRouter(prefix="/rates", tags=["Rates"])


class ExchangeRateResponse(BaseModel):
    base: str = "CAD"
    quote: str = "USD"
    rate: float
    source: str
    fetched_at: str
    is_fallback: bool


@router.get("/cad-usd", response_model=ExchangeRateResponse)
async def get_cad_usd_rate(refresh: bool = Query(False, description="Query providers again")):
    """CAD to USD rate cached at startup; fetched on first use otherwise."""
    rate = await (rate_cache.refresh() if refresh else rate_cache.get())
    return ExchangeRateResponse(
        rate=rate.rate,
        source=rate.source,
        fetched_at=rate.fetched_at.isoformat(),
        is_fallback=rate.is_fallback,
    )
