"""
M-Pesa Daraja client for Lipa Na M-Pesa Online (STK push).

Only the three calls the contact-payment flow needs are implemented:
OAuth token, STK push and STK push status query.
"""
import base64
import logging
import re
from datetime import datetime, timedelta, timezone

import requests

logger = logging.getLogger(__name__)

BASE_URLS = {
    "sandbox": "https://sandbox.safaricom.co.ke",
    "production": "https://api.safaricom.co.ke",
}

# Daraja timestamps are East Africa Time
EAT = timezone(timedelta(hours=3))

KENYAN_MOBILE = re.compile(r"^(254|0)?7[0-9]{8}$")

# STK ResultCode values with a meaning of their own
RESULT_SUCCESS = 0
RESULT_CANCELLED_BY_USER = 1032


class MpesaError(Exception):
    """Base error for M-Pesa failures; message is safe to show to the payer."""


class MpesaConfigError(MpesaError):
    pass


class MpesaAuthError(MpesaError):
    pass


class MpesaRequestError(MpesaError):
    pass


def normalize_phone(phone_number):
    """
    Return the number in 2547XXXXXXXX form.

    Accepts 0712345678, 712345678, 254712345678 and +254 712 345 678.
    Raises ValueError for anything that is not a Kenyan mobile number.
    """
    digits = re.sub(r"\D", "", phone_number or "")
    if not KENYAN_MOBILE.match(digits):
        raise ValueError("Invalid phone number format. Use format: 0712345678")
    if digits.startswith("254"):
        return digits
    if digits.startswith("0"):
        return "254" + digits[1:]
    return "254" + digits


def stk_timestamp(now=None):
    now = now or datetime.now(EAT)
    return now.strftime("%Y%m%d%H%M%S")


def stk_password(shortcode, passkey, timestamp):
    return base64.b64encode(f"{shortcode}{passkey}{timestamp}".encode()).decode()


def callback_items(stk_callback):
    """Flatten CallbackMetadata.Item into a dict of Name -> Value."""
    metadata = stk_callback.get("CallbackMetadata") or {}
    return {item.get("Name"): item.get("Value") for item in metadata.get("Item", []) if item.get("Name")}


class MpesaClient:
    def __init__(self, consumer_key, consumer_secret, shortcode, passkey,
                 environment="sandbox", timeout=30, session=None):
        if not consumer_key or not consumer_secret:
            raise MpesaConfigError("M-Pesa credentials are not configured. Please contact support.")
        self.consumer_key = consumer_key
        self.consumer_secret = consumer_secret
        self.shortcode = str(shortcode)
        self.passkey = passkey
        self.base_url = BASE_URLS.get(environment, BASE_URLS["sandbox"])
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_config(cls, config):
        return cls(
            consumer_key=config.get("MPESA_CONSUMER_KEY"),
            consumer_secret=config.get("MPESA_CONSUMER_SECRET"),
            shortcode=config.get("MPESA_SHORTCODE"),
            passkey=config.get("MPESA_PASSKEY"),
            environment=config.get("MPESA_ENVIRONMENT", "sandbox"),
            timeout=config.get("MPESA_TIMEOUT", 30),
        )

    def get_access_token(self):
        url = f"{self.base_url}/oauth/v1/generate?grant_type=client_credentials"
        try:
            resp = self.session.get(url, auth=(self.consumer_key, self.consumer_secret), timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("M-Pesa auth request failed: %s", e)
            raise MpesaAuthError("M-Pesa authentication failed. Please try again later.") from e

        if not resp.ok:
            logger.error("M-Pesa auth failed: %s %s", resp.status_code, resp.text)
            raise MpesaAuthError("M-Pesa authentication failed. Please verify API credentials are correct.")

        token = resp.json().get("access_token")
        if not token:
            raise MpesaAuthError("M-Pesa authentication failed. No access token returned.")
        return token

    def _post(self, path, payload, token):
        headers = {"Authorization": f"Bearer {token}", "Content-Type": "application/json"}
        try:
            resp = self.session.post(f"{self.base_url}{path}", json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error("M-Pesa request to %s failed: %s", path, e)
            raise MpesaRequestError("Could not reach M-Pesa. Please try again.") from e
        try:
            return resp.json()
        except ValueError as e:
            logger.error("M-Pesa returned non-JSON (%s): %s", resp.status_code, resp.text[:200])
            raise MpesaRequestError("Unexpected response from M-Pesa.") from e

    def stk_push(self, phone_number, amount, account_reference, callback_url,
                 description="Contact Access Payment", token=None):
        """Send the STK prompt. Returns the raw Daraja response dict."""
        token = token or self.get_access_token()
        timestamp = stk_timestamp()
        payload = {
            "BusinessShortCode": self.shortcode,
            "Password": stk_password(self.shortcode, self.passkey, timestamp),
            "Timestamp": timestamp,
            "TransactionType": "CustomerPayBillOnline",
            "Amount": int(amount),
            "PartyA": phone_number,
            "PartyB": self.shortcode,
            "PhoneNumber": phone_number,
            "CallBackURL": callback_url,
            "AccountReference": str(account_reference),
            "TransactionDesc": description,
        }
        data = self._post("/mpesa/stkpush/v1/processrequest", payload, token)
        logger.info("STK Push response: %s", data)
        return data

    def stk_query(self, checkout_request_id, token=None):
        """Ask Daraja for the result of an earlier STK push."""
        token = token or self.get_access_token()
        timestamp = stk_timestamp()
        payload = {
            "BusinessShortCode": self.shortcode,
            "Password": stk_password(self.shortcode, self.passkey, timestamp),
            "Timestamp": timestamp,
            "CheckoutRequestID": checkout_request_id,
        }
        return self._post("/mpesa/stkpushquery/v1/query", payload, token)
