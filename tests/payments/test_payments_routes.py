"""HTTP tests for the payment routes, with PayOS served by httpx.MockTransport."""
import hashlib
import hmac
import json

import httpx
import pytest
from fastapi.testclient import TestClient

from infrastructure.external.payments import build_payment_service
from main import create_app
from shared.codes.payment_codes import PaymentCode
from tests.conftest import CHECKSUM_KEY


ORDER = {
    "id": 7,
    "order_number": "ORD-0007",
    "total_amount": "150000",
    "items": [{"name": "Widget", "quantity": 2, "unit_price": "75000"}],
}


def _payos(request: httpx.Request) -> httpx.Response:
    path = request.url.path
    if path == "/v2/payment-requests":
        payload = json.loads(request.content)
        return httpx.Response(200, json={
            "code": "00",
            "desc": "success",
            "data": {
                "orderCode": payload["orderCode"],
                "amount": payload["amount"],
                "checkoutUrl": f"https://pay.payos.vn/web/{payload['orderCode']}",
                "qrCode": "000201010212",
                "accountNumber": "113366668888",
                "accountName": "SHOP",
            },
        })
    if path == "/v2/payment-requests/500":
        return httpx.Response(502, text="bad gateway")
    if path == "/v2/payment-requests/404":
        return httpx.Response(200, json={"code": "101", "desc": "Mã thanh toán không tồn tại"})
    if path.endswith("/cancel"):
        return httpx.Response(200, json={"code": "00", "desc": "success", "data": {}})
    return httpx.Response(200, json={
        "code": "00",
        "desc": "success",
        "data": {"orderCode": 55, "amount": 15_000_000, "status": "PAID"},
    })


@pytest.fixture
def client(settings):
    service = build_payment_service(settings, transport=httpx.MockTransport(_payos))
    app = create_app(payment_service=service, config=settings)
    with TestClient(app) as c:
        yield c


def _webhook_body(code="00") -> bytes:
    return json.dumps({
        "code": "00",
        "desc": "success",
        "data": {"orderCode": 55, "amount": 15_000_000, "code": code, "reference": "FT001", "paymentLinkId": "pl"},
        "signature": "",
    }).encode()


def _sign(body: bytes) -> str:
    return hmac.new(CHECKSUM_KEY.encode(), body, hashlib.sha256).hexdigest()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["data"] == {"status": "healthy"}
    assert resp.headers["X-Request-ID"]


def test_list_methods(client):
    resp = client.get("/api/v1/payments/methods")
    assert resp.status_code == 200
    codes = [m["code"] for m in resp.json()["data"]]
    assert sorted(codes) == ["cod", "vietqr"]
    assert resp.headers["X-Process-Time"]
    assert resp.headers["X-Request-ID"]


def test_create_online_link(client):
    resp = client.post("/api/v1/payments/links", params={"payment_method": "vietqr"}, json=ORDER)
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["payment_method"] == "vietqr"
    assert data["payment_url"].startswith("https://pay.payos.vn/web/")
    assert data["amount"] == "150000.00"


def test_create_cod_link(client):
    resp = client.post("/api/v1/payments/links", params={"payment_method": "cod"}, json={**ORDER, "id": 42})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["payment_method"] == "cod"
    assert data["order_code"] == 42
    assert data["payment_url"] == ""
    assert data["qr_code"] == ""


def test_unsupported_method(client):
    resp = client.post("/api/v1/payments/links", params={"payment_method": "bitcoin"}, json=ORDER)
    assert resp.status_code == 400
    body = resp.json()
    assert body["code"] == PaymentCode.UNSUPPORTED_METHOD
    assert body["error"]["type"] == "UnsupportedPaymentMethod"
    assert body["error"]["field"] == "payment_method"


def test_invalid_amount(client):
    resp = client.post(
        "/api/v1/payments/links", params={"payment_method": "vietqr"}, json={**ORDER, "total_amount": "150000.005"}
    )
    assert resp.status_code == 422
    assert resp.json()["code"] == PaymentCode.INVALID_AMOUNT


def test_process_payment(client):
    resp = client.get("/api/v1/payments/55", params={"payment_method": "vietqr"})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "paid"
    assert data["amount"] == "150000.00"


def test_gateway_errors_map_to_http_status(client):
    resp = client.get("/api/v1/payments/500", params={"payment_method": "vietqr"})
    assert resp.status_code == 503
    assert resp.json()["code"] == PaymentCode.GATEWAY_UNAVAILABLE
    assert resp.json()["error"]["details"]["operation"] == "process_payment"

    resp = client.get("/api/v1/payments/404", params={"payment_method": "vietqr"})
    assert resp.status_code == 404
    assert resp.json()["code"] == PaymentCode.PAYMENT_NOT_FOUND


def test_cancel_payment(client):
    resp = client.post(
        "/api/v1/payments/55/cancel", params={"payment_method": "vietqr"}, json={"reason": "customer changed mind"}
    )
    assert resp.status_code == 200
    assert resp.json()["data"] == {"order_code": 55, "payment_method": "vietqr"}


def test_webhook_with_valid_signature(client):
    body = _webhook_body()
    resp = client.post(
        "/api/v1/payments/webhooks/vietqr",
        content=body,
        headers={"X-PayOS-Signature": _sign(body), "Content-Type": "application/json"},
    )
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["status"] == "paid"
    assert data["order_code"] == 55
    assert "raw_data" not in data


def test_webhook_accepts_fallback_signature_header(client):
    body = _webhook_body(code="03")
    resp = client.post("/api/v1/payments/webhooks/vietqr", content=body, headers={"X-Signature": _sign(body)})
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "cancelled"


@pytest.mark.parametrize("headers", [{}, {"X-PayOS-Signature": "deadbeef"}])
def test_webhook_with_bad_signature_is_rejected(client, headers):
    resp = client.post("/api/v1/payments/webhooks/vietqr", content=_webhook_body(), headers=headers)
    assert resp.status_code == 401
    assert resp.json()["code"] == PaymentCode.SIGNATURE_INVALID


def test_signed_but_malformed_webhook(client):
    body = b'{"data": {"orderCode": "x"}}'
    resp = client.post("/api/v1/payments/webhooks/vietqr", content=body, headers={"X-PayOS-Signature": _sign(body)})
    assert resp.status_code == 400
    assert resp.json()["code"] == PaymentCode.MALFORMED_WEBHOOK


def test_cod_webhook_needs_no_signature(client):
    resp = client.post("/api/v1/payments/webhooks/cod", content=b"{}")
    assert resp.status_code == 200
    assert resp.json()["data"]["order_code"] == 0


def test_error_response_carries_caller_request_id(client):
    resp = client.post(
        "/api/v1/payments/links",
        params={"payment_method": "bitcoin"},
        json=ORDER,
        headers={"X-Request-ID": "req-123"},
    )
    assert resp.status_code == 400
    assert resp.json()["error"]["request_id"] == "req-123"
    assert resp.headers["X-Request-ID"] == "req-123"


def test_error_response_generates_request_id_when_absent(client):
    resp = client.post("/api/v1/payments/links", params={"payment_method": "bitcoin"}, json=ORDER)
    assert resp.json()["error"]["request_id"] == resp.headers["X-Request-ID"]
