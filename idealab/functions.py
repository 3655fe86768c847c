"""Client for the remote functions service.

The service hosts the named generation functions (``generate-<tool>``) and
the stored procedures the dashboard calls, such as ``deduct_credits_and_log``.
Both are opaque JSON-over-HTTPS calls made on behalf of the signed-in user.
"""
import logging
from typing import Any, Dict, Optional

import httpx

from idealab.config import (
    DEDUCT_CREDITS_PROCEDURE,
    FUNCTIONS_API_KEY,
    FUNCTIONS_BASE_URL,
    FUNCTIONS_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


class FunctionsError(Exception):
    """Base error for calls to the functions service."""


class FunctionInvocationError(FunctionsError):
    """A remote call failed in transport or returned a non-2xx status."""

    def __init__(self, message: str, name: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.name = name
        self.status_code = status_code


class InvalidResponseError(FunctionsError):
    """A remote call succeeded but its body is not what the caller needs."""


class CreditDeductionError(FunctionsError):
    """The credit deduction procedure refused or failed."""


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        return str(body.get("error") or body.get("message") or body)
    return str(body)


class FunctionsClient:
    """Calls functions and procedures as the user who owns `access_token`."""

    def __init__(self,
                 access_token: Optional[str] = None,
                 base_url: str = FUNCTIONS_BASE_URL,
                 api_key: str = FUNCTIONS_API_KEY,
                 timeout: float = FUNCTIONS_TIMEOUT_SECONDS,
                 transport: Optional[httpx.AsyncBaseTransport] = None):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.api_key:
            headers["apikey"] = self.api_key
        if self.access_token:
            headers["Authorization"] = f"Bearer {self.access_token}"
        return headers

    async def _post(self, path: str, payload: Dict[str, Any], name: str) -> Any:
        url = f"{self.base_url}/{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self.transport) as client:
                response = await client.post(url, json=payload, headers=self._headers())
        except httpx.TimeoutException as e:
            raise FunctionInvocationError(f"timeout calling {name}: {e}", name=name)
        except httpx.HTTPError as e:
            raise FunctionInvocationError(f"network error calling {name}: {e}", name=name)

        if response.status_code == 429:
            raise FunctionInvocationError(f"rate limit reached for {name}", name=name, status_code=429)
        if response.status_code >= 500:
            raise FunctionInvocationError(
                f"server error from {name} ({response.status_code}): {_error_detail(response)}",
                name=name, status_code=response.status_code)
        if response.status_code >= 400:
            raise FunctionInvocationError(
                f"{name} rejected the request ({response.status_code}): {_error_detail(response)}",
                name=name, status_code=response.status_code)

        try:
            return response.json()
        except ValueError:
            raise InvalidResponseError(f"{name} returned a non-JSON body")

    async def invoke(self, name: str, body: Dict[str, Any]) -> Any:
        """Invoke a named function with a JSON body and return its JSON result."""
        data = await self._post(name, body, name)
        if isinstance(data, dict) and data.get("error"):
            raise FunctionInvocationError(f"{name} failed: {data['error']}", name=name)
        logger.info(f"Function {name} completed")
        return data

    async def rpc(self, procedure: str, params: Dict[str, Any]) -> Any:
        """Call a stored procedure and return its JSON result."""
        return await self._post(f"rpc/{procedure}", params, procedure)

    async def deduct_credits_and_log(self,
                                     user_id: str,
                                     amount: int,
                                     feature: str,
                                     description: Optional[str] = None,
                                     item_id: Optional[str] = None) -> Optional[int]:
        """
        Deduct credits for a feature and log the transaction.

        Returns the remaining balance reported by the procedure, or None when
        the procedure does not report one.
        """
        params = {
            "p_user_id": user_id,
            "p_amount": amount,
            "p_feature": feature,
            "p_description": description,
            "p_item_id": item_id,
        }
        try:
            remaining = await self.rpc(DEDUCT_CREDITS_PROCEDURE, params)
        except FunctionsError as e:
            raise CreditDeductionError(f"credits could not be deducted for {feature}: {e}") from e

        if remaining is False:
            raise CreditDeductionError(f"insufficient credits for {feature}")
        logger.info(f"Deducted {amount} credits from {user_id} for {feature}")
        if isinstance(remaining, bool):
            return None
        try:
            return int(remaining)
        except (TypeError, ValueError):
            return None
