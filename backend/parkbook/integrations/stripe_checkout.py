"""Thin Stripe wrapper: hosted checkout creation and webhook verification."""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
from typing import Any, Dict, Optional

from pydantic import SecretStr
import stripe

logger = logging.getLogger(__name__)


class StripeCheckoutError(RuntimeError):
    """Raised when Stripe refuses or fails a checkout call."""

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code


class WebhookVerificationError(ValueError):
    """Raised when a webhook body does not match its ``Stripe-Signature`` header."""


class WebhookPayloadError(ValueError):
    """Raised when a webhook body is not a JSON object."""


@dataclass(frozen=True)
class CheckoutSession:
    id: str
    url: str


def _secret(value: str | SecretStr) -> str:
    return value.get_secret_value() if isinstance(value, SecretStr) else value


class StripeCheckoutClient:
    """Creates hosted Checkout Sessions in ``payment`` mode."""

    def __init__(self, *, api_key: str | SecretStr) -> None:
        secret_value = _secret(api_key)
        if not secret_value:
            raise ValueError("Stripe API key must be provided")
        self._api_key = secret_value

    def create_checkout_session(
        self,
        *,
        currency: str,
        unit_amount: int,
        product_name: str,
        product_description: str | None,
        success_url: str,
        cancel_url: str,
        metadata: Dict[str, str],
        customer_email: Optional[str] = None,
    ) -> CheckoutSession:
        product_data: Dict[str, Any] = {"name": product_name}
        if product_description:
            product_data["description"] = product_description
        params: Dict[str, Any] = {
            "mode": "payment",
            "payment_method_types": ["card"],
            "line_items": [
                {
                    "price_data": {
                        "currency": currency,
                        "product_data": product_data,
                        "unit_amount": unit_amount,
                    },
                    "quantity": 1,
                }
            ],
            "success_url": success_url,
            "cancel_url": cancel_url,
            "metadata": metadata,
            "payment_intent_data": {"metadata": metadata},
        }
        if customer_email:
            params["customer_email"] = customer_email
        try:
            session = stripe.checkout.Session.create(api_key=self._api_key, **params)
        except stripe.StripeError as exc:
            logger.error("Stripe checkout session creation failed: %s", exc)
            raise StripeCheckoutError(str(exc), code=getattr(exc, "code", None)) from exc
        if not session.url:
            raise StripeCheckoutError("Stripe returned a checkout session without a URL")
        return CheckoutSession(id=session.id, url=session.url)


def construct_event(
    payload: bytes,
    signature: str | None,
    secret: str | SecretStr,
    *,
    tolerance: int = 300,
) -> Dict[str, Any]:
    """
    Verify ``payload`` against the ``Stripe-Signature`` header and parse it.

    The signature is checked over the raw body bytes before any decoding into
    JSON, as Stripe signs the exact bytes it sent.
    """
    if not signature:
        raise WebhookVerificationError("Missing stripe-signature header")
    try:
        body = payload.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise WebhookVerificationError("Webhook body is not valid UTF-8") from exc
    try:
        stripe.WebhookSignature.verify_header(body, signature, _secret(secret), tolerance)
    except stripe.SignatureVerificationError as exc:
        raise WebhookVerificationError(str(exc)) from exc
    return parse_event(payload)


def parse_event(payload: bytes) -> Dict[str, Any]:
    """Parse an (already trusted) webhook body into an event dict."""
    try:
        event = json.loads(payload)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise WebhookPayloadError("Webhook body is not valid JSON") from exc
    if not isinstance(event, dict):
        raise WebhookPayloadError("Webhook body must be a JSON object")
    return event
