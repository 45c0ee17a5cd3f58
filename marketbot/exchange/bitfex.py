"""
Minimal async HTTP client for the Bitfex trading API.

Responses come wrapped as {"success": bool, "data": ..., "errors": [...]};
_request unwraps the data member and turns every failure into ApiError.
No retries: a failed call is reported to the caller, which decides
whether to skip the order or the pair.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

from marketbot.core.errors import ApiError, AuthError, ValidationError
from marketbot.core.models import Order, Side

log = logging.getLogger("marketbot")

API_PREFIX = "/api/v1"


class BitfexGateway:
    def __init__(self, server_url: str, timeout: float = 10.0, client: Optional[httpx.AsyncClient] = None) -> None:
        self.server_url = server_url.rstrip("/")
        # A caller-supplied client is not closed by close().
        if client is not None:
            self.client = client
            self._owns_client = False
        else:
            self.client = httpx.AsyncClient(base_url=self.server_url, timeout=timeout)
            self._owns_client = True
        self._token: Optional[str] = None

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()

    @property
    def authenticated(self) -> bool:
        return self._token is not None

    async def authenticate(self, email: str, password: str) -> None:
        try:
            data = await self._request("POST", "/auth", payload={"email": email, "password": password}, auth=False)
        except ApiError as exc:
            raise AuthError(f"authentication failed: {exc}") from exc
        token = data.get("token") if isinstance(data, dict) else None
        if not token:
            raise AuthError("authentication failed: no token in response")
        self._token = str(token)
        log.info(json.dumps({"event": "authenticated", "server": self.server_url}))

    async def get_balances(self) -> Dict[str, float]:
        data = await self._request("GET", "/balances")
        # Either {"BTC": "0.5", ...} or [{"currency": "BTC", "amount": "0.5"}, ...]
        if isinstance(data, list):
            return {str(item["currency"]): float(item["amount"]) for item in data}
        if isinstance(data, dict):
            return {str(k): float(v) for k, v in data.items()}
        raise ApiError(f"unexpected balances payload: {data!r}")

    async def get_open_orders(self) -> List[Order]:
        data = await self._request("GET", "/orders/my")
        if not isinstance(data, list):
            raise ApiError(f"unexpected orders payload: {data!r}")
        try:
            return [Order.from_payload(item) for item in data]
        except ValidationError as exc:
            raise ApiError(str(exc)) from exc

    async def create_order(self, side: Side, pair: str, amount: float, price: float) -> None:
        if amount <= 0 or price <= 0:
            raise ValidationError(f"order needs positive amount and price, got amount={amount} price={price}")
        await self._request(
            "POST",
            "/orders",
            payload={"operation": side.value, "pair": pair, "amount": amount, "price": price},
        )

    async def delete_order(self, order_id: str) -> None:
        await self._request("DELETE", f"/orders/{order_id}")

    async def _request(self, method: str, path: str, payload: Optional[dict] = None, auth: bool = True) -> Any:
        headers = {}
        if auth:
            if self._token is None:
                raise AuthError("not authenticated")
            headers["Authorization"] = f"Bearer {self._token}"
        try:
            resp = await self.client.request(method, f"{API_PREFIX}{path}", json=payload, headers=headers)
        except httpx.HTTPError as exc:
            raise ApiError(f"{method} {path}: {exc.__class__.__name__}: {exc}") from exc

        try:
            body = resp.json()
        except ValueError:
            body = None

        if resp.status_code in (401, 403) and auth:
            raise AuthError(_error_message(body) or f"{method} {path} unauthorized")
        if resp.is_error:
            raise ApiError(_error_message(body) or f"{method} {path} failed", status=resp.status_code)
        if isinstance(body, dict):
            if body.get("success") is False:
                raise ApiError(_error_message(body) or f"{method} {path} rejected", status=resp.status_code)
            if "data" in body:
                return body["data"]
        return body


def _error_message(body: Any) -> Optional[str]:
    if not isinstance(body, dict):
        return None
    errors = body.get("errors")
    if isinstance(errors, list) and errors:
        return "; ".join(str(e) for e in errors)
    if errors:
        return str(errors)
    for key in ("error", "message"):
        if body.get(key):
            return str(body[key])
    return None
