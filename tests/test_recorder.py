from unittest.mock import MagicMock

import pytest

from conftest import FakePage, FakeRequest, FakeWebSocket
from trade_recon.recorder import (
    interest_predicate,
    is_interesting_url,
    start_recording,
    stop_recording,
)


def test_default_predicate_matches_api_and_ws_segments():
    assert is_interesting_url("https://broker.example/api/v1/quotes")
    assert is_interesting_url("wss://broker.example/ws/stream")
    assert not is_interesting_url("https://broker.example/static/app.js")


def test_only_matching_requests_are_kept_in_issue_order():
    page = FakePage()
    handle = start_recording(page)
    r1 = FakeRequest("https://broker.example/api/balance", headers={"accept": "json"})
    r2 = FakeRequest("https://broker.example/logo.png")
    r3 = FakeRequest("https://broker.example/api/order", method="POST", post_data='{"a": 1}')
    for request in (r1, r2, r3):
        page.emit("request", request)

    records = stop_recording(handle)

    assert [record.url for record in records] == [r1.url, r3.url]
    assert records[0].headers == {"accept": "json"}
    assert records[1].method == "POST"
    assert records[1].to_dict()["postData"] == '{"a": 1}'


def test_duplicates_are_not_collapsed():
    page = FakePage()
    handle = start_recording(page)
    for _ in range(2):
        page.emit("request", FakeRequest("https://broker.example/api/ping"))
    assert len(stop_recording(handle)) == 2


def test_unreadable_record_is_dropped_without_stopping_capture():
    page = FakePage()
    handle = start_recording(page)
    page.emit("request", FakeRequest("https://broker.example/api/one"))
    page.emit("request", FakeRequest("https://broker.example/api/upload", broken=True))
    page.emit("request", FakeRequest("https://broker.example/api/two"))

    records = stop_recording(handle)
    assert [record.url for record in records] == [
        "https://broker.example/api/one",
        "https://broker.example/api/two",
    ]


def test_requests_are_observed_not_intercepted():
    page = FakePage()
    handle = start_recording(page)
    request = MagicMock()
    request.url = "https://broker.example/api/quotes"
    request.method = "GET"
    request.headers = {}
    request.post_data = None
    page.emit("request", request)

    request.continue_.assert_not_called()
    request.abort.assert_not_called()
    request.fulfill.assert_not_called()
    assert len(stop_recording(handle)) == 1


def test_websocket_handshakes_are_recorded():
    page = FakePage()
    handle = start_recording(page)
    page.emit("request", FakeRequest("https://broker.example/api/session"))
    page.emit("websocket", FakeWebSocket("wss://broker.example/ws/quotes"))
    page.emit("websocket", FakeWebSocket("wss://analytics.example/collect"))

    records = stop_recording(handle)
    assert [record.method for record in records] == ["GET", "WEBSOCKET"]
    assert records[1].body is None


def test_websockets_can_be_disabled():
    page = FakePage()
    start_recording(page, capture_websockets=False)
    assert "websocket" not in page.listeners


def test_custom_predicate():
    page = FakePage()
    handle = start_recording(page, interest_predicate(["/socket.io/"]))
    page.emit("request", FakeRequest("https://broker.example/api/x"))
    page.emit("request", FakeRequest("https://broker.example/socket.io/?EIO=3"))
    assert [r.url for r in stop_recording(handle)] == ["https://broker.example/socket.io/?EIO=3"]


def test_stop_detaches_listeners_and_is_idempotent():
    page = FakePage()
    handle = start_recording(page)
    page.emit("request", FakeRequest("https://broker.example/api/a"))
    first = stop_recording(handle)
    page.emit("request", FakeRequest("https://broker.example/api/b"))

    assert all(not listeners for listeners in page.listeners.values())
    assert stop_recording(handle) == first


def test_recorded_headers_are_read_only():
    page = FakePage()
    handle = start_recording(page)
    headers = {"authorization": "Bearer abc"}
    page.emit("request", FakeRequest("https://broker.example/api/me", headers=headers))
    record = stop_recording(handle)[0]

    headers["authorization"] = "changed"
    with pytest.raises(TypeError):
        record.headers["authorization"] = "changed"
    assert record.to_dict()["headers"] == {"authorization": "Bearer abc"}
