"""Stripe Checkout gateway.

Wraps the Stripe SDK behind two calls: create a checkout session and
retrieve one by id. The SDK is synchronous, so calls run in a worker thread.
"""

import asyncio
from typing import Any

import stripe
from pydantic import BaseModel, Field

from coursemarket.config.settings import Settings
from coursemarket.core.exceptions import ServiceUnavailableError, UpstreamError
from coursemarket.core.logging import get_logger


logger = get_logger(__name__)


class GatewayNotConfiguredError(ServiceUnavailableError):
    """Stripe secret key is missing."""

    def __init__(self, message: str = "Payment gateway is not configured"):
        super().__init__(message, "gateway_not_configured")


class GatewayError(UpstreamError):
    """Stripe call failed."""

    def __init__(self, message: str = "Payment gateway request failed"):
        super().__init__(message, "gateway_error")


class LineItem(BaseModel):
    """One priced line of a checkout session."""

    name: str
    description: str = ""
    unit_amount: int = Field(..., ge=0, description="Price in minor units")
    currency: str
    quantity: int = 1


class GatewaySession(BaseModel):
    """Checkout session as reported by the gateway."""

    id: str
    url: str | None = None
    payment_status: str
    amount_total: int = 0
    customer_email: str | None = None
    metadata: dict[str, str] = Field(default_factory=dict)


class StripeGateway:
    """Payment gateway backed by Stripe Checkout."""

    def __init__(self, settings: Settings, client: stripe.StripeClient | None = None):
        self.settings = settings
        self._client = client

    @property
    def client(self) -> stripe.StripeClient:
        if self._client is None:
            if not self.settings.stripe_configured:
                raise GatewayNotConfiguredError
            self._client = stripe.StripeClient(
                self.settings.stripe_secret_key,
                max_network_retries=self.settings.stripe_max_network_retries,
            )
        return self._client

    @staticmethod
    def _to_session(raw: Any) -> GatewaySession:
        details = getattr(raw, "customer_details", None)
        metadata = getattr(raw, "metadata", None)
        return GatewaySession(
            id=raw.id,
            url=getattr(raw, "url", None),
            payment_status=raw.payment_status,
            amount_total=getattr(raw, "amount_total", None) or 0,
            customer_email=getattr(details, "email", None) if details else None,
            metadata=dict(metadata) if metadata else {},
        )

    async def create_session(
        self,
        line_items: list[LineItem],
        success_url: str,
        cancel_url: str,
        metadata: dict[str, str] | None = None,
    ) -> GatewaySession:
        """Create a one-off payment checkout session.

        Raises:
            GatewayNotConfiguredError: If Stripe is not configured
            GatewayError: If Stripe rejects the request or is unreachable
        """
        params = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": item.currency,
                        "product_data": {
                            "name": item.name,
                            "description": item.description or item.name,
                        },
                        "unit_amount": item.unit_amount,
                    },
                    "quantity": item.quantity,
                }
                for item in line_items
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata or {},
        }

        client = self.client
        try:
            raw = await asyncio.to_thread(
                client.checkout.sessions.create, params=params
            )
        except stripe.StripeError as e:
            logger.exception("checkout_session_create_failed", error=str(e))
            raise GatewayError(f"Failed to create checkout session: {e}") from e

        if not getattr(raw, "url", None):
            logger.error("checkout_session_missing_url", session_id=raw.id)
            raise GatewayError("Checkout session has no redirect URL")

        logger.info("checkout_session_created", session_id=raw.id)
        return self._to_session(raw)

    async def retrieve_session(self, session_id: str) -> GatewaySession | None:
        """Retrieve a checkout session by id.

        Returns:
            The session, or None if Stripe does not know the id.

        Raises:
            GatewayNotConfiguredError: If Stripe is not configured
            GatewayError: On any other Stripe failure
        """
        client = self.client
        try:
            raw = await asyncio.to_thread(client.checkout.sessions.retrieve, session_id)
        except stripe.InvalidRequestError as e:
            if e.code == "resource_missing" or e.http_status == 404:  # noqa: PLR2004
                logger.warning("checkout_session_not_found", session_id=session_id)
                return None
            logger.exception("checkout_session_retrieve_failed", error=str(e))
            raise GatewayError(f"Failed to retrieve checkout session: {e}") from e
        except stripe.StripeError as e:
            logger.exception("checkout_session_retrieve_failed", error=str(e))
            raise GatewayError(f"Failed to retrieve checkout session: {e}") from e

        return self._to_session(raw)
