"""
Stripe Checkout Connector
Hosted checkout sessions for card payments

API CONFIGURATION:
- Base URL: https://api.stripe.com (PAYMENT_GATEWAY_API_BASE)
- Auth: secret key as Bearer token (PAYMENT_GATEWAY_SECRET_KEY)
- Bodies are form-encoded with bracket notation (line_items[0][quantity]=2)

ENDPOINTS:
- POST /v1/checkout/sessions - Create session
- GET /v1/checkout/sessions/{id} - Retrieve session (source of truth for payment)

WEBHOOKS:
- Header Stripe-Signature: "t=<unix>,v1=<hex hmac>"
- Signed payload is "<t>.<raw body>", HMAC-SHA256 with the webhook secret
"""
import hashlib
import hmac
import json
import logging
import time
from typing import Any, Dict, Optional

import httpx

from storefront.connectors.payment_gateway import (
    CheckoutSessionRequest,
    GatewayError,
    GatewaySession,
    PaymentGateway,
)
from storefront.domain.payment import PaymentConfirmation

logger = logging.getLogger(__name__)


class WebhookSignatureError(Exception):
    pass


class StripeConnector(PaymentGateway):
    """
    Connector for the Stripe Checkout API

    Handles:
    - Session creation for an order
    - Session retrieval and normalization into PaymentConfirmation
    """

    SESSIONS_PATH = "/v1/checkout/sessions"

    def __init__(
        self,
        secret_key: str,
        api_base: str = "https://api.stripe.com",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize Stripe connector

        Args:
            secret_key: Stripe secret API key
            api_base: API base URL
            timeout: Per-request timeout in seconds
            transport: Optional httpx transport (tests use httpx.MockTransport)
        """
        if not secret_key:
            raise ValueError(
                "Stripe secret key not configured. "
                "Set PAYMENT_GATEWAY_SECRET_KEY environment variable"
            )
        self.secret_key = secret_key
        self.api_base = api_base.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    @property
    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.secret_key}"}

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.api_base,
            headers=self._headers,
            timeout=self.timeout,
            transport=self._transport,
        )

    @staticmethod
    def _session_form(request: CheckoutSessionRequest) -> Dict[str, str]:
        # Mapping keeps httpx on its urlencoded form path; bracket keys are unique
        form = {
            "mode": "payment",
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "client_reference_id": request.order_id,
            "customer_email": request.customer_email,
            "metadata[order_id]": request.order_id,
        }
        for index, item in enumerate(request.line_items):
            prefix = f"line_items[{index}]"
            form[f"{prefix}[quantity]"] = str(item.quantity)
            form[f"{prefix}[price_data][currency]"] = request.currency.lower()
            form[f"{prefix}[price_data][unit_amount]"] = str(item.unit_amount)
            form[f"{prefix}[price_data][product_data][name]"] = item.name
        return form

    async def create_checkout_session(self, request: CheckoutSessionRequest) -> GatewaySession:
        async with self._client() as client:
            try:
                response = await client.post(self.SESSIONS_PATH, data=self._session_form(request))
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Stripe session create failed: {e.response.status_code} - {e.response.text}")
                raise GatewayError(f"Gateway rejected session for order {request.order_id}") from e
            except httpx.HTTPError as e:
                logger.error(f"Stripe session create error: {e}")
                raise GatewayError("Gateway unreachable") from e

        session_id = data.get("id")
        url = data.get("url")
        if not session_id or not url:
            logger.error(f"Stripe session response missing id/url for order {request.order_id}")
            raise GatewayError("Gateway returned an incomplete session")

        logger.info(f"Stripe session {session_id} created for order {request.order_id}")
        return GatewaySession(session_id=session_id, url=url)

    async def retrieve_session(self, session_id: str) -> PaymentConfirmation:
        async with self._client() as client:
            try:
                response = await client.get(f"{self.SESSIONS_PATH}/{session_id}")
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Stripe session retrieve failed: {e.response.status_code} - {e.response.text}")
                raise GatewayError(f"Gateway rejected lookup of session {session_id}") from e
            except httpx.HTTPError as e:
                logger.error(f"Stripe session retrieve error: {e}")
                raise GatewayError("Gateway unreachable") from e

        return self.parse_session(data)

    @staticmethod
    def parse_session(data: Dict[str, Any]) -> PaymentConfirmation:
        """Normalize a Stripe checkout session object"""
        metadata = data.get("metadata") or {}
        customer_details = data.get("customer_details") or {}
        currency = data.get("currency")
        return PaymentConfirmation(
            session_id=data["id"],
            order_id=data.get("client_reference_id") or metadata.get("order_id"),
            paid=data.get("payment_status") == "paid",
            amount=data.get("amount_total"),
            currency=currency.upper() if currency else None,
            customer_email=customer_details.get("email") or data.get("customer_email"),
        )


def sign_webhook_payload(payload: bytes, secret: str, timestamp: Optional[int] = None) -> str:
    """Build a Stripe-Signature header value for payload"""
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.".encode("utf-8") + payload
    digest = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={digest}"


def verify_webhook(
    payload: bytes,
    signature_header: Optional[str],
    secret: str,
    tolerance_seconds: int = 300,
    now: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Check a webhook signature and return the decoded event

    Raises:
        WebhookSignatureError: missing/invalid header, stale timestamp or bad JSON
    """
    if not secret:
        raise WebhookSignatureError("Webhook secret not configured")
    if not signature_header:
        raise WebhookSignatureError("Missing signature header")

    timestamp = None
    signatures = []
    for part in signature_header.split(","):
        key, _, value = part.strip().partition("=")
        if key == "t":
            timestamp = value
        elif key == "v1":
            signatures.append(value)

    if not timestamp or not signatures:
        raise WebhookSignatureError("Malformed signature header")

    try:
        timestamp_value = int(timestamp)
    except ValueError:
        raise WebhookSignatureError("Malformed signature timestamp")

    current = time.time() if now is None else now
    if abs(current - timestamp_value) > tolerance_seconds:
        raise WebhookSignatureError("Signature timestamp outside tolerance")

    signed = f"{timestamp}.".encode("utf-8") + payload
    expected = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    if not any(hmac.compare_digest(expected, candidate) for candidate in signatures):
        raise WebhookSignatureError("Signature mismatch")

    try:
        return json.loads(payload.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError):
        raise WebhookSignatureError("Webhook body is not valid JSON")
