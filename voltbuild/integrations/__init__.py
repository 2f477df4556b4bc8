"""Outbound service clients.

Every client implements ``BaseIntegration``. Clients that have a mock mode
serve fixed data until a real API key is configured.
"""

from voltbuild.integrations.base import BaseIntegration
from voltbuild.integrations.exchange_rate import ExchangeRateClient
from voltbuild.integrations.secure_share import SecureShareClient

__all__ = [
    "BaseIntegration",
    "ExchangeRateClient",
    "SecureShareClient",
]
