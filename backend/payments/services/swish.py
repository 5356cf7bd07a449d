from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional
from uuid import uuid4

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

TEST_BASE_URL = "https://mss.cpc.getswish.net"
PRODUCTION_BASE_URL = "https://cpc.getswish.net"
PAYMENT_REQUESTS_PATH = "/swish-cpcapi/api/v1/paymentrequests"

TEST_PAYEE_ALIAS = "1231181189"
PRODUCTION_PAYEE_ALIAS = "1232296374"

MAX_MESSAGE_LENGTH = 50


class SwishError(Exception):
    """Base class for everything that goes wrong talking to Swish."""


class SwishValidationError(SwishError):
    pass


class SwishConfigurationError(SwishError):
    pass


class SwishApiError(SwishError):
    def __init__(self, message: str, *, status_code: int | None = None, error_codes: list[str] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.error_codes = error_codes or []


@dataclass
class SwishPaymentRequest:
    id: str
    location: str
    status: str = "CREATED"


def format_swish_phone_number(phone: str) -> str:
    """Normalize a Swedish mobile number to the 46XXXXXXXXX form Swish expects."""

    digits = re.sub(r"\D", "", phone or "")
    if digits.startswith("0"):
        digits = f"46{digits[1:]}"
    elif not digits.startswith("46"):
        raise SwishValidationError("Phone number must start with 0 or 46.")

    if not 11 <= len(digits) <= 12:
        raise SwishValidationError("Phone number must be a valid Swedish mobile number.")
    return digits


def mask_phone_number(phone: str) -> str:
    if not phone or len(phone) < 6:
        return "****"
    return f"{phone[:4]}{'*' * (len(phone) - 6)}{phone[-2:]}"


def build_callback_url() -> str:
    base = settings.SITE_URL.rstrip("/")
    if base.startswith("http://"):
        base = f"https://{base[len('http://'):]}"
    return f"{base}/api/payments/swish/callback/"


def _should_use_stub() -> bool:
    if getattr(settings, "SWISH_USE_STUB", False):
        return True
    return not getattr(settings, "SWISH_CERT_PATH", "")


def _payee_alias() -> str:
    alias = getattr(settings, "SWISH_PAYEE_ALIAS", "")
    if alias:
        return alias
    return TEST_PAYEE_ALIAS if settings.SWISH_TEST_MODE else PRODUCTION_PAYEE_ALIAS


def _error_codes(response: requests.Response) -> list[str]:
    try:
        body = response.json()
    except ValueError:
        return []
    if isinstance(body, list):
        return [item.get("errorCode", "") for item in body if isinstance(item, dict)]
    if isinstance(body, dict) and body.get("errorCode"):
        return [body["errorCode"]]
    return []


class SwishClient:
    """Thin wrapper over the Swish commerce API using mutual TLS."""

    def __init__(
        self,
        *,
        base_url: str,
        payee_alias: str,
        cert_path: str,
        key_path: str,
        ca_path: Optional[str] = None,
        timeout: int = 15,
    ):
        self.base_url = base_url.rstrip("/")
        self.payee_alias = payee_alias
        self.cert_path = cert_path
        self.key_path = key_path
        self.ca_path = ca_path
        self.timeout = timeout

    @classmethod
    def from_settings(cls) -> "SwishClient":
        for name in ("SWISH_CERT_PATH", "SWISH_KEY_PATH"):
            path = getattr(settings, name, "")
            if not path or not os.path.exists(path):
                raise SwishConfigurationError(f"{name} is not configured or the file is missing.")

        return cls(
            base_url=TEST_BASE_URL if settings.SWISH_TEST_MODE else PRODUCTION_BASE_URL,
            payee_alias=_payee_alias(),
            cert_path=settings.SWISH_CERT_PATH,
            key_path=settings.SWISH_KEY_PATH,
            ca_path=settings.SWISH_CA_PATH or None,
            timeout=settings.SWISH_REQUEST_TIMEOUT,
        )

    def _request(self, method: str, path: str = "", **kwargs) -> requests.Response:
        url = f"{self.base_url}{PAYMENT_REQUESTS_PATH}{path}"
        try:
            return requests.request(
                method,
                url,
                cert=(self.cert_path, self.key_path),
                verify=self.ca_path or True,
                timeout=self.timeout,
                **kwargs,
            )
        except requests.RequestException as exc:
            raise SwishApiError(f"Could not reach Swish: {exc}") from exc

    def create_payment_request(
        self,
        *,
        payee_payment_reference: str,
        amount: Decimal,
        payer_alias: str,
        message: str,
        callback_url: str,
    ) -> SwishPaymentRequest:
        payload = {
            "payeePaymentReference": payee_payment_reference,
            "callbackUrl": callback_url,
            "payeeAlias": self.payee_alias,
            "amount": f"{Decimal(amount):.2f}",
            "currency": "SEK",
            "message": (message or "")[:MAX_MESSAGE_LENGTH],
            "payerAlias": payer_alias,
        }
        logger.info(
            "Creating Swish payment request %s for %s SEK (payer %s)",
            payee_payment_reference,
            payload["amount"],
            mask_phone_number(payer_alias),
        )
        response = self._request("POST", json=payload)
        if response.status_code != 201:
            raise SwishApiError(
                f"Swish rejected payment request ({response.status_code}).",
                status_code=response.status_code,
                error_codes=_error_codes(response),
            )

        location = response.headers.get("Location", "")
        swish_id = location.rstrip("/").rsplit("/", 1)[-1]
        if not swish_id:
            raise SwishApiError("Swish response did not include a Location header.", status_code=201)
        return SwishPaymentRequest(id=swish_id, location=location)

    def get_payment_request(self, swish_id: str) -> dict:
        response = self._request("GET", f"/{swish_id}")
        if response.status_code != 200:
            raise SwishApiError(
                f"Could not fetch Swish payment {swish_id} ({response.status_code}).",
                status_code=response.status_code,
                error_codes=_error_codes(response),
            )
        return response.json()

    def cancel_payment_request(self, swish_id: str) -> dict:
        response = self._request(
            "PATCH",
            f"/{swish_id}",
            json=[{"op": "replace", "path": "/status", "value": "cancelled"}],
            headers={"Content-Type": "application/json-patch+json"},
        )
        if response.status_code != 200:
            raise SwishApiError(
                f"Could not cancel Swish payment {swish_id} ({response.status_code}).",
                status_code=response.status_code,
                error_codes=_error_codes(response),
            )
        return response.json()


class SwishClientStub:
    """
    Stand-in for SwishClient when running in stub mode.

    Local development and tests never reach Swish; predictable identifiers let
    the rest of the checkout flow behave as if the request was accepted. The
    payment is settled by posting a callback to the callback endpoint.
    """

    payee_alias = TEST_PAYEE_ALIAS

    def create_payment_request(self, *, payee_payment_reference: str, **kwargs) -> SwishPaymentRequest:
        swish_id = uuid4().hex.upper()
        logger.info("Swish stub accepted payment request %s as %s", payee_payment_reference, swish_id)
        return SwishPaymentRequest(
            id=swish_id,
            location=f"{TEST_BASE_URL}{PAYMENT_REQUESTS_PATH}/{swish_id}",
        )

    def get_payment_request(self, swish_id: str) -> dict:
        return {"id": swish_id, "status": "CREATED"}

    def cancel_payment_request(self, swish_id: str) -> dict:
        return {"id": swish_id, "status": "CANCELLED"}


def get_swish_client():
    if _should_use_stub():
        return SwishClientStub()
    return SwishClient.from_settings()
