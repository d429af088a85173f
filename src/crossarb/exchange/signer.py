"""
HMAC-SHA256 request signing for the Apex Pro and Bybit V5 APIs.

Both venues sign a concatenation of timestamp, credentials and the
request payload; they differ in what goes into the message and in the
header names carrying the result.
"""

import hashlib
import hmac

from crossarb.utils.time import get_timestamp_ms


class HmacSigner:
    """
    Hex HMAC-SHA256 over arbitrary messages.

    The secret is encoded once so signing on the order path only
    hashes the message.
    """

    __slots__ = ("_secret_bytes",)

    def __init__(self, api_secret: str) -> None:
        self._secret_bytes = api_secret.encode("utf-8")

    def sign(self, message: str) -> str:
        """
        Generate HMAC-SHA256 signature for a message.

        Args:
            message: Exact string the venue will reconstruct.

        Returns:
            Hexadecimal signature string.
        """
        return hmac.new(
            self._secret_bytes,
            message.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()


class ApexSigner:
    """Signs ``timestamp + METHOD + path + body`` with APEX-* headers."""

    __slots__ = ("_api_key", "_passphrase", "_hmac")

    def __init__(self, api_key: str, api_secret: str, passphrase: str) -> None:
        self._api_key = api_key
        self._passphrase = passphrase
        self._hmac = HmacSigner(api_secret)

    def headers(
        self,
        method: str,
        path: str,
        body: str = "",
        timestamp: int | None = None,
    ) -> dict[str, str]:
        """
        Build authentication headers.

        Args:
            method: HTTP method, upper case.
            path: Request path including any query string.
            body: Serialized JSON body, empty for GET/DELETE.
            timestamp: Milliseconds, defaults to now.

        Returns:
            Headers to merge into the request.
        """
        ts = str(timestamp if timestamp is not None else get_timestamp_ms())
        return {
            "APEX-API-KEY": self._api_key,
            "APEX-SIGNATURE": self._hmac.sign(ts + method + path + body),
            "APEX-TIMESTAMP": ts,
            "APEX-PASSPHRASE": self._passphrase,
        }


class BybitSigner:
    """Signs ``timestamp + api_key + recv_window + payload`` with X-BAPI-* headers."""

    __slots__ = ("_api_key", "_recv_window", "_hmac")

    def __init__(self, api_key: str, api_secret: str, recv_window_ms: int = 5000) -> None:
        self._api_key = api_key
        self._recv_window = str(recv_window_ms)
        self._hmac = HmacSigner(api_secret)

    def headers(self, payload: str = "", timestamp: int | None = None) -> dict[str, str]:
        """
        Build authentication headers.

        Args:
            payload: Query string for GET requests, JSON body otherwise.
            timestamp: Milliseconds, defaults to now.

        Returns:
            Headers to merge into the request.
        """
        ts = str(timestamp if timestamp is not None else get_timestamp_ms())
        return {
            "X-BAPI-API-KEY": self._api_key,
            "X-BAPI-SIGN": self._hmac.sign(ts + self._api_key + self._recv_window + payload),
            "X-BAPI-TIMESTAMP": ts,
            "X-BAPI-RECV-WINDOW": self._recv_window,
        }
