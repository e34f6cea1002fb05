"""HTTP clients for the order service's peers.

Every transport problem, and every response the caller has no branch for,
surfaces as ``UpstreamUnavailable``. A payment refusal (402) is the one
business outcome reported separately, as ``PaymentDeclined``.
"""

from typing import Optional

import httpx
import structlog

from shopmesh.errors import PaymentDeclined, UpstreamUnavailable

logger = structlog.get_logger(__name__)


class ServiceClient:
    service = "service"

    def __init__(self, base_url: str, timeout: float = 5.0, http: Optional[httpx.Client] = None):
        self.base_url = base_url
        self.timeout = timeout
        self._http = http or httpx.Client(base_url=base_url, timeout=httpx.Timeout(timeout))

    def _post(self, path: str, json: Optional[dict] = None) -> httpx.Response:
        try:
            return self._http.post(path, json=json)
        except httpx.HTTPError as exc:
            logger.warning("upstream_request_failed", service=self.service, path=path, error=str(exc))
            raise UpstreamUnavailable(f"{self.service} unreachable: {exc}")

    def _unexpected(self, response: httpx.Response) -> UpstreamUnavailable:
        logger.warning(
            "upstream_unexpected_response",
            service=self.service,
            path=response.request.url.path,
            status_code=response.status_code,
        )
        return UpstreamUnavailable(f"{self.service} answered {response.status_code}")

    def _json(self, response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            raise self._unexpected(response)
        if not isinstance(body, dict):
            raise self._unexpected(response)
        return body

    def close(self):
        self._http.close()


class PaymentClient(ServiceClient):
    service = "payment-service"

    def charge(self, order_id: str, amount: float, payment_method: str) -> dict:
        """Charge the order. Returns the completed payment body."""
        response = self._post(
            "/payments",
            json={"orderId": order_id, "amount": amount, "paymentMethod": payment_method},
        )
        if response.status_code == 201:
            body = self._json(response)
            if body.get("status") == "completed" and body.get("id"):
                return body
            raise self._unexpected(response)
        if response.status_code == 402:
            body = self._json(response)
            raise PaymentDeclined(body.get("error", "Payment declined"), payment=body)
        raise self._unexpected(response)

    def refund(self, payment_id: str) -> dict:
        response = self._post(f"/payments/{payment_id}/refund")
        if response.status_code == 200:
            return self._json(response)
        raise self._unexpected(response)


class NotificationClient(ServiceClient):
    service = "notification-service"

    def send(self, user_id: str, type: str, message: str, order_id: Optional[str] = None) -> dict:
        response = self._post(
            "/notifications",
            json={"userId": user_id, "type": type, "message": message, "orderId": order_id},
        )
        if response.status_code == 201:
            return self._json(response)
        raise self._unexpected(response)
