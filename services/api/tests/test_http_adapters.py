from __future__ import annotations

import base64
import io
import json
import urllib.error
import urllib.parse
import urllib.request

import pytest
from services.api.app.services.dawa import DawaAddressValidator
from services.api.app.services.delivery_base import DeliveryLookupError
from services.api.app.services.payment_base import (
    PaymentCapturePendingError,
    PaymentLinkUrls,
    PaymentProviderHTTPError,
)
from services.api.app.services.postnord import PostNordPickupPointFinder
from services.api.app.services.quickpay import QuickPayGateway

URLS = PaymentLinkUrls(
    continue_url="https://shop.test/order-confirmation?orderId=abc",
    cancel_url="https://shop.test/basket",
    callback_url="https://shop.test/v1/payments/quickpay/callback",
)


class _FakeResponse:
    def __init__(self, payload: object, status: int = 200) -> None:
        self.status = status
        self._raw = json.dumps(payload).encode("utf-8")

    def read(self) -> bytes:
        return self._raw

    def __enter__(self) -> "_FakeResponse":
        return self

    def __exit__(self, *exc: object) -> None:
        return None


class _Recorder:
    def __init__(self, *responses: object) -> None:
        self._responses = list(responses)
        self.requests: list[urllib.request.Request] = []

    def __call__(self, req: urllib.request.Request, timeout: float) -> _FakeResponse:
        del timeout
        self.requests.append(req)
        nxt = self._responses.pop(0)
        if isinstance(nxt, Exception):
            raise nxt
        return nxt


@pytest.fixture()
def quickpay(monkeypatch: pytest.MonkeyPatch) -> QuickPayGateway:
    monkeypatch.setenv("QUICKPAY_API_KEY", "qp-key")
    monkeypatch.setenv("QUICKPAY_BASE_URL", "https://qp.test")
    monkeypatch.delenv("QUICKPAY_CALLBACK_KEY", raising=False)
    return QuickPayGateway.from_env()


def test_quickpay_payment_and_link(quickpay: QuickPayGateway, monkeypatch) -> None:
    recorder = _Recorder(
        _FakeResponse({"id": 4242, "order_id": "abc", "currency": "DKK"}, status=201),
        _FakeResponse({"url": "https://payment.quickpay.net/payments/xyz"}),
    )
    monkeypatch.setattr(urllib.request, "urlopen", recorder)

    payment = quickpay.create_payment(order_id="abc", currency="DKK")
    link = quickpay.create_payment_link(payment_id=payment.payment_id, amount=25100, urls=URLS)

    assert payment.payment_id == "4242"
    assert link == "https://payment.quickpay.net/payments/xyz"

    create, put_link = recorder.requests
    assert create.full_url == "https://qp.test/payments"
    assert create.get_method() == "POST"
    assert urllib.parse.parse_qs(create.data.decode()) == {"currency": ["DKK"], "order_id": ["abc"]}
    token = base64.b64encode(b":qp-key").decode()
    assert create.get_header("Authorization") == f"Basic {token}"
    assert create.get_header("Accept-version") == "v10"

    assert put_link.full_url == "https://qp.test/payments/4242/link"
    assert put_link.get_method() == "PUT"
    form = urllib.parse.parse_qs(put_link.data.decode())
    assert form["amount"] == ["25100"]
    assert form["callback_url"] == [URLS.callback_url]


def test_quickpay_get_payment(quickpay: QuickPayGateway, monkeypatch) -> None:
    recorder = _Recorder(_FakeResponse({"id": 4242, "accepted": True, "state": "new"}))
    monkeypatch.setattr(urllib.request, "urlopen", recorder)

    payment = quickpay.get_payment("4242")

    assert payment["accepted"] is True
    (req,) = recorder.requests
    assert req.full_url == "https://qp.test/payments/4242"
    assert req.get_method() == "GET"
    assert req.data is None


def test_quickpay_http_error_is_wrapped(quickpay: QuickPayGateway, monkeypatch) -> None:
    error = urllib.error.HTTPError(
        "https://qp.test/payments", 400, "Bad Request", {}, io.BytesIO(b'{"message":"bad"}')
    )
    monkeypatch.setattr(urllib.request, "urlopen", _Recorder(error))

    with pytest.raises(PaymentProviderHTTPError) as info:
        quickpay.create_payment(order_id="abc", currency="DKK")
    assert info.value.status_code == 400


def test_quickpay_capture(quickpay: QuickPayGateway, monkeypatch) -> None:
    payment = {
        "id": 4242,
        "state": "processed",
        "operations": [
            {"id": 1, "type": "authorize", "amount": 25100},
            {"id": 2, "type": "capture", "amount": 25100, "qp_status_msg": "Approved"},
        ],
    }
    monkeypatch.setattr(urllib.request, "urlopen", _Recorder(_FakeResponse(payment)))

    result = quickpay.capture(payment_id="4242", amount=25100)
    assert result.state == "processed"
    assert result.operation["id"] == 2


def test_quickpay_capture_accepted_but_pending(quickpay: QuickPayGateway, monkeypatch) -> None:
    monkeypatch.setattr(
        urllib.request, "urlopen", _Recorder(_FakeResponse({"id": 4242}, status=202))
    )

    with pytest.raises(PaymentCapturePendingError):
        quickpay.capture(payment_id="4242", amount=25100)


def test_quickpay_callback_key_defaults_to_api_key(quickpay: QuickPayGateway) -> None:
    import hashlib
    import hmac

    body = b'{"id": 4242}'
    checksum = hmac.new(b"qp-key", body, hashlib.sha256).hexdigest()
    assert quickpay.verify_callback(body, checksum)
    assert not quickpay.verify_callback(body, "0" * 64)


def test_dawa_wash_queries_datavask(monkeypatch: pytest.MonkeyPatch) -> None:
    recorder = _Recorder(_FakeResponse({"kategori": "A", "resultater": [{"kategori": "A"}]}))
    monkeypatch.setattr(urllib.request, "urlopen", recorder)

    data = DawaAddressValidator(base_url="https://dawa.test", timeout_s=1).wash(
        "Vesterbrogade 10, 1620 København V"
    )

    assert data["kategori"] == "A"
    url = recorder.requests[0].full_url
    assert url.startswith("https://dawa.test/datavask/adresser?")
    assert urllib.parse.parse_qs(urllib.parse.urlsplit(url).query) == {
        "betegnelse": ["Vesterbrogade 10, 1620 København V"]
    }


def test_dawa_unreachable(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(
        urllib.request, "urlopen", _Recorder(urllib.error.URLError("connection refused"))
    )

    with pytest.raises(DeliveryLookupError, match="DAWA unreachable"):
        DawaAddressValidator(base_url="https://dawa.test", timeout_s=1).wash("x")


def test_postnord_points_are_normalised(monkeypatch: pytest.MonkeyPatch) -> None:
    response = {
        "servicePointInformationResponse": {
            "servicePoints": [
                {
                    "servicePointId": "123456",
                    "name": "Netto Vesterbrogade",
                    "routeDistance": 412,
                    "visitingAddress": {
                        "streetName": "Vesterbrogade",
                        "streetNumber": "40",
                        "postalCode": "1620",
                        "city": "KØBENHAVN V",
                        "countryCode": "DK",
                    },
                    "coordinates": [{"northing": 55.673, "easting": 12.558}],
                    "openingHours": {
                        "postalServices": [{"openDay": "Monday", "openTime": "08:00"}]
                    },
                }
            ]
        }
    }
    recorder = _Recorder(_FakeResponse(response))
    monkeypatch.setattr(urllib.request, "urlopen", recorder)

    finder = PostNordPickupPointFinder(api_key="pn-key", base_url="https://pn.test", timeout_s=1)
    points = finder.nearest(
        city="København V", postal_code="1620", street_name="Vesterbrogade", street_number="10"
    )

    assert len(points) == 1
    point = points[0]
    assert point.id == "123456"
    assert point.postal_code == "1620"
    assert point.latitude == pytest.approx(55.673)
    assert point.distance_m == 412
    assert point.opening_hours == [{"openDay": "Monday", "openTime": "08:00"}]

    query = urllib.parse.parse_qs(urllib.parse.urlsplit(recorder.requests[0].full_url).query)
    assert query["countryCode"] == ["DK"]
    assert query["numberOfServicePoints"] == ["5"]
    assert query["apikey"] == ["pn-key"]


def test_postnord_unexpected_shape(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(urllib.request, "urlopen", _Recorder(_FakeResponse({"oops": True})))

    finder = PostNordPickupPointFinder(api_key="pn-key", base_url="https://pn.test", timeout_s=1)
    with pytest.raises(DeliveryLookupError, match="Unexpected PostNord response"):
        finder.nearest(city="x", postal_code="1620", street_name="y", street_number="1")
