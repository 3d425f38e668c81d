# tests/application/ports/test_requests_client.py
import socket
import threading

import pytest
import requests

from application.ports.http_client import RequesterSettings
from application.ports.requests_client import DEFAULT_TIMEOUT_SEC, RequestsHttpRequester
from application.executor.bot import Bot
from application.executor.step_registry import StepRegistry
from domain.exceptions import RequestTimeout, TransportError
from domain.request import Request
from tests.mock_http_client import RecordingLogger, RecordingStep


def _fake_response(prepared, status=200, content=b"ok", headers=None):
    resp = requests.Response()
    resp.status_code = status
    resp._content = content
    resp.headers.update(headers or {"Content-Type": "text/plain"})
    resp.url = prepared.url
    resp.request = prepared
    return resp


@pytest.fixture
def sent(monkeypatch):
    calls = []

    def fake_send(self, prepared, **kwargs):
        calls.append({"prepared": prepared, **kwargs})
        return _fake_response(prepared, status=201, content=b'{"a": 1}')

    monkeypatch.setattr(requests.Session, "send", fake_send)
    return calls


def test_build_applies_user_agent_and_headers(sent):
    requester = RequestsHttpRequester(RequesterSettings(user_agent="stepbot/test"))
    req = Request.get("https://test.local/a").with_header("Accept", "application/json")

    pending = requester.build(req)

    assert pending.request is req
    assert pending.prepared.headers["User-Agent"] == "stepbot/test"
    assert pending.prepared.headers["Accept"] == "application/json"
    assert pending.options["timeout"] == DEFAULT_TIMEOUT_SEC
    assert "proxies" not in pending.options


def test_request_headers_win_over_user_agent(sent):
    requester = RequestsHttpRequester(RequesterSettings(user_agent="settings-agent"))
    req = Request.get("https://test.local/").with_header("User-Agent", "explicit")

    pending = requester.build(req)

    assert pending.prepared.headers["User-Agent"] == "explicit"


def test_compression_disabled_requests_identity(sent):
    requester = RequestsHttpRequester(RequesterSettings(compression=False))

    pending = requester.build(Request.get("https://test.local/").with_compression(False))

    assert pending.prepared.headers["Accept-Encoding"] == "identity"


def test_proxy_and_timeout_forwarded(sent):
    requester = RequestsHttpRequester(RequesterSettings(timeout_sec=5))
    req = Request.get("https://test.local/").with_proxy("http://proxy.local:3128").with_timeout(2)

    resp = requester.send(requester.build(req))

    assert resp.status == 201
    assert resp.content == b'{"a": 1}'
    assert resp.url == "https://test.local/"
    assert sent[0]["timeout"] == 2.0
    assert sent[0]["proxies"] == {"http": "http://proxy.local:3128", "https": "http://proxy.local:3128"}


def test_settings_timeout_used_when_request_has_none(sent):
    requester = RequestsHttpRequester(RequesterSettings(timeout_sec=7))

    requester.send(requester.build(Request.get("https://test.local/")))

    assert sent[0]["timeout"] == 7


def test_body_is_sent(sent):
    requester = RequestsHttpRequester()

    pending = requester.build(Request.post("https://test.local/form", body=b"a=1"))

    assert pending.prepared.body == b"a=1"
    assert pending.prepared.method == "POST"


@pytest.mark.parametrize("exc", [requests.exceptions.ConnectTimeout, requests.exceptions.ReadTimeout])
def test_timeouts_map_to_request_timeout(monkeypatch, exc):
    def fake_send(self, prepared, **kwargs):
        raise exc("timed out")

    monkeypatch.setattr(requests.Session, "send", fake_send)
    requester = RequestsHttpRequester()

    with pytest.raises(RequestTimeout, match="timed out"):
        requester.send(requester.build(Request.get("https://test.local/")))


def test_connection_error_maps_to_transport_error(monkeypatch):
    def fake_send(self, prepared, **kwargs):
        raise requests.exceptions.ConnectionError("refused")

    monkeypatch.setattr(requests.Session, "send", fake_send)
    requester = RequestsHttpRequester()

    with pytest.raises(TransportError) as excinfo:
        requester.send(requester.build(Request.get("https://test.local/")))

    assert not isinstance(excinfo.value, RequestTimeout)


def test_invalid_url_fails_at_build():
    requester = RequestsHttpRequester()

    with pytest.raises(TransportError, match="invalid request"):
        requester.build(Request.get("not a url"))


def test_snapshot_cookies_reads_session_jar():
    requester = RequestsHttpRequester()
    requester._session.cookies.set("SID", "abc", domain="test.local", path="/")

    cookies = requester.snapshot_cookies()

    assert cookies[0]["name"] == "SID"
    assert cookies[0]["value"] == "abc"
    assert cookies[0]["domain"] == "test.local"


@pytest.fixture
def no_env_proxy(monkeypatch):
    for key in ("HTTP_PROXY", "HTTPS_PROXY", "ALL_PROXY", "http_proxy", "https_proxy", "all_proxy"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def stalling_server(no_env_proxy):
    """HTTP server that sends headers and part of the body, then goes quiet."""
    listener = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    listener.bind(("127.0.0.1", 0))
    listener.listen(1)
    release = threading.Event()

    def serve():
        conn, _ = listener.accept()
        with conn:
            conn.recv(4096)
            conn.sendall(b"HTTP/1.1 200 OK\r\nContent-Length: 100\r\n\r\npartial")
            release.wait(5)

    thread = threading.Thread(target=serve, daemon=True)
    thread.start()
    yield f"http://127.0.0.1:{listener.getsockname()[1]}/"
    release.set()
    thread.join(5)
    listener.close()


def _closed_port() -> int:
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    port = s.getsockname()[1]
    s.close()
    return port


def test_body_read_stall_maps_to_request_timeout(stalling_server):
    requester = RequestsHttpRequester()

    with pytest.raises(RequestTimeout):
        requester.send(requester.build(Request.get(stalling_server).with_timeout(0.5)))


def test_body_read_stall_dispatches_on_timeout(stalling_server):
    step = RecordingStep("Stall", Request.get(stalling_server).with_timeout(0.5).with_status_codes([200]))
    bot = Bot(steps=StepRegistry([step]), logger=RecordingLogger())

    with pytest.raises(RequestTimeout):
        bot.execute("Stall")

    assert step.calls == ["on_request", "on_timeout"]


def test_refused_connection_is_not_a_timeout(no_env_proxy):
    requester = RequestsHttpRequester()
    url = f"http://127.0.0.1:{_closed_port()}/"

    with pytest.raises(TransportError) as excinfo:
        requester.send(requester.build(Request.get(url).with_timeout(2)))

    assert not isinstance(excinfo.value, RequestTimeout)


def test_close_keeps_cookies_readable():
    requester = RequestsHttpRequester()
    requester._session.cookies.set("SID", "abc", domain="test.local", path="/")

    requester.close()

    assert requester.snapshot_cookies()[0]["value"] == "abc"
