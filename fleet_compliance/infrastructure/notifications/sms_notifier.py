"""
Adapter: HTTP SMS Notifier

Concrete INotifier for SMS through a bulk-SMS HTTP gateway
(bearer token, JSON body {senderID, message, phone}).
"""

import logging

import httpx

from fleet_compliance.core.interfaces.notifier import Channel, INotifier, NotifierResult

logger = logging.getLogger(__name__)


def format_phone_number(phone: str, country_code: str = "254") -> str:
    """
    Normalize a phone number to international digits without '+'.

    Examples:
        0712 345 678   → 254712345678
        +254712345678  → 254712345678
        712345678      → 254712345678
    """
    digits = "".join(filter(str.isdigit, phone or ""))
    if digits.startswith(country_code):
        return digits
    if digits.startswith("0"):
        return country_code + digits[1:]
    if len(digits) == 9:
        return country_code + digits
    return digits


class HttpSmsNotifier(INotifier):
    """SMS via an HTTP gateway. A 2xx with a non-false "status" is a confirmed send."""

    channel = Channel.SMS

    def __init__(
        self,
        api_url: str,
        api_token: str,
        sender_id: str,
        country_code: str = "254",
        timeout: float = 10.0,
        client: httpx.Client | None = None,
    ):
        self._api_url = api_url
        self._api_token = api_token
        self._sender_id = sender_id
        self._country_code = country_code
        self._timeout = timeout
        self._client = client

    def send(self, recipient: str, subject: str, body: str, html: str | None = None) -> NotifierResult:
        if not self._api_url or not self._api_token:
            return NotifierResult(False, "SMS gateway not configured")

        phone = format_phone_number(recipient, self._country_code)
        payload = {
            "senderID": self._sender_id,
            "message": f"{subject}\n{body}".strip(),
            "phone": phone,
        }
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self._api_token}",
        }
        try:
            if self._client is not None:
                response = self._client.post(self._api_url, json=payload, headers=headers, timeout=self._timeout)
            else:
                with httpx.Client() as client:
                    response = client.post(self._api_url, json=payload, headers=headers, timeout=self._timeout)
        except httpx.HTTPError as e:
            logger.error(f"SMS gateway request for {phone} failed: {e}")
            return NotifierResult(False, f"SMS transport failure: {e}")

        if response.status_code not in (200, 201):
            logger.error(f"SMS gateway rejected {phone}: {response.status_code} {response.text}")
            return NotifierResult(False, f"SMS gateway failure: {response.status_code}")

        try:
            data = response.json()
        except ValueError:
            data = {}
        if isinstance(data, dict) and data.get("status") is False:
            return NotifierResult(False, f"SMS gateway refused: {data.get('message', 'unknown error')}")

        logger.info(f"SMS '{subject}' delivered to {phone}")
        return NotifierResult(True)
