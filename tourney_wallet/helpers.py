from typing import Any

import httpx

from tourney_wallet.config import settings
from tourney_wallet.errors import ErrorKind, WalletApiError
from tourney_wallet.logging_config import get_logger
from tourney_wallet.security import auth_headers

logger = get_logger(__name__)


def format_currency(amount: float, symbol: str | None = None) -> str:
    """
    Format ``amount`` the en-IN way with no decimals: ``₹1,00,000``.
    """
    symbol = settings.currency_symbol if symbol is None else symbol
    rounded = int(round(abs(float(amount))))
    digits = str(rounded)
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    sign = "-" if float(amount) < 0 and rounded else ""
    return f"{sign}{symbol}{digits}"


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict):
        message = body.get("message")
        if not message and isinstance(body.get("error"), dict):
            message = body["error"].get("message")
        if isinstance(message, str) and message:
            return message
    return fallback


class WalletApiClient:
    """
    Thin transport over the wallet REST API. Unwraps the
    ``{success, data, message}`` envelope and raises ``WalletApiError`` for
    anything that is not a successful payload. It never retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        base_url = base_url or str(settings.api_base_url)
        if not base_url.endswith("/"):
            base_url += "/"
        self.timeout = timeout if timeout is not None else settings.request_timeout_seconds
        self.client = httpx.AsyncClient(base_url=base_url, timeout=self.timeout, transport=transport)

    async def request(
        self,
        method: str,
        url: str,
        fallback_message: str,
        json: dict | None = None,
        params: dict | None = None,
    ) -> Any:
        try:
            response = await self.client.request(
                method, url.lstrip("/"), json=json, params=params, headers=auth_headers()
            )
        except httpx.TimeoutException as exc:
            raise WalletApiError(ErrorKind.TIMEOUT, "Request timed out", cause=exc) from exc
        except httpx.RequestError as exc:
            # Surface network/DNS errors verbatim.
            raise WalletApiError(ErrorKind.NETWORK, f"Network error: {exc}", cause=exc) from exc

        if response.status_code >= 400:
            message = _error_message(response, fallback_message)
            logger.warning(
                "Wallet API rejected request method=%s url=%s status=%s message=%s",
                method,
                url,
                response.status_code,
                message,
            )
            raise WalletApiError(
                ErrorKind.SERVER_REJECTION, message, cause=response.text, status_code=response.status_code
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise WalletApiError(ErrorKind.SERVER_REJECTION, fallback_message, cause=response.text) from exc
        if not isinstance(body, dict) or not body.get("success", False):
            message = _error_message(response, fallback_message)
            raise WalletApiError(ErrorKind.SERVER_REJECTION, message, cause=body, status_code=response.status_code)
        return body.get("data")

    async def aclose(self) -> None:
        await self.client.aclose()
