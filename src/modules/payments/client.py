"""HTTP client for the external fee-split service."""

from __future__ import annotations

import logging
from decimal import Decimal

import httpx

from src.core.config import settings

logger = logging.getLogger(__name__)

_FEE_SPLIT_PATH = "/fee-splits"


class FeeSplitError(Exception):
    """The payment service did not accept the fee split."""


class FeeSplitClient:
    """Fire-and-forget wrapper around `POST /fee-splits`.

    Every failure mode (transport error, timeout, non-2xx) surfaces as
    `FeeSplitError`; callers decide whether that is fatal.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url if base_url is not None else settings.payment_api_base
        self.api_key = api_key if api_key is not None else settings.payment_api_key
        self.timeout = timeout if timeout is not None else settings.payment_timeout_seconds
        self._client = client

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url) or self._client is not None

    async def process_fee_split(self, appointment_id: str, amount: Decimal) -> None:
        if not self.is_configured:
            logger.warning("PAYMENT_API_BASE not set; skipping fee split for appointment %s", appointment_id)
            return

        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        body = {"appointmentId": appointment_id, "amount": str(amount)}

        client = self._client
        created_client = False
        try:
            if client is None:
                client = httpx.AsyncClient(base_url=self.base_url, timeout=self.timeout)
                created_client = True
            response = await client.post(_FEE_SPLIT_PATH, json=body, headers=headers, timeout=self.timeout)
        except httpx.InvalidURL as exc:
            raise FeeSplitError(f"Invalid payment service URL {self.base_url!r}") from exc
        except httpx.TimeoutException as exc:
            raise FeeSplitError(f"Fee split timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise FeeSplitError("Payment service is unavailable") from exc
        finally:
            if created_client:
                await client.aclose()

        if response.is_error:
            raise FeeSplitError(f"Payment service returned status {response.status_code}")
        logger.info("Fee split accepted for appointment %s (amount %s)", appointment_id, amount)


def get_fee_split_client() -> FeeSplitClient:
    """FastAPI dependency; overridden in tests."""
    return FeeSplitClient()
