import pytest
import requests

import heritage.scrapers.http as http


class _Resp:
    def __init__(self, status=200, payload=None, text="", bad_json=False, headers=None):
        self.status_code = status
        self._payload = payload
        self.text = text
        self._bad_json = bad_json
        self.headers = headers or {"Content-Type": "text/html; charset=utf-8"}

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        if self._bad_json:
            raise ValueError("not json")
        return self._payload


def test_datacite_url_is_encoded_and_headers_set(monkeypatch):
    seen = {}

    def fake_get(url, headers=None, timeout=None):
        seen.update(url=url, headers=headers, timeout=timeout)
        return _Resp(payload={"data": {"id": "10.26301/abc"}})

    monkeypatch.setattr(http.requests, "get", fake_get)

    assert http.fetch_datacite("10.26301/abc") == {"data": {"id": "10.26301/abc"}}
    assert seen["url"] == "https://api.datacite.org/dois/10.26301%2Fabc"
    assert seen["headers"]["Accept"] == "application/vnd.api+json"
    assert seen["timeout"] == http.DATACITE_TIMEOUT_S


@pytest.mark.parametrize(
    "outcome",
    [
        _Resp(status=404),
        _Resp(bad_json=True),
        _Resp(payload=["not", "a", "document"]),
        requests.Timeout("slow"),
    ],
)
def test_datacite_failures_return_none(monkeypatch, outcome):
    def fake_get(url, headers=None, timeout=None):
        if isinstance(outcome, Exception):
            raise outcome
        return outcome

    monkeypatch.setattr(http.requests, "get", fake_get)
    assert http.fetch_datacite("10.1/x") is None


def test_fetch_html_raises_for_http_errors(monkeypatch):
    monkeypatch.setattr(http.requests, "get", lambda url, headers=None, timeout=None: _Resp(status=503))
    with pytest.raises(requests.HTTPError):
        http.fetch_html("https://openheritage3d.org/project.php?id=1")


def test_fetch_html_returns_text(monkeypatch):
    monkeypatch.setattr(
        http.requests, "get", lambda url, headers=None, timeout=None: _Resp(text="<html></html>")
    )
    assert http.fetch_html("https://openheritage3d.org/") == "<html></html>"


def _raw_response(body: bytes, content_type: str) -> requests.Response:
    r = requests.Response()
    r.status_code = 200
    r._content = body
    r.headers["Content-Type"] = content_type
    return r


def test_fetch_html_decodes_utf8_when_charset_missing(monkeypatch):
    from heritage.scrapers.listing import parse_listing

    page = (
        '<table id="demo"><tbody><tr>'
        '<td><a href="project.php?id=9">Château de Chambord</a></td><td>France</td>'
        '<td><a href="https://doi.org/10.26301/cham-0001">doi</a></td>'
        "<td>Complete</td><td>Zoë</td>"
        "</tr></tbody></table>"
    ).encode("utf-8")
    monkeypatch.setattr(
        http.requests, "get", lambda url, headers=None, timeout=None: _raw_response(page, "text/html")
    )

    (stub,) = parse_listing(http.fetch_html("https://openheritage3d.org/data"))
    assert stub.name == "Château de Chambord"
    assert stub.collectors == "Zoë"


def test_fetch_html_honours_declared_charset(monkeypatch):
    body = "<p>Séville</p>".encode("latin-1")
    monkeypatch.setattr(
        http.requests,
        "get",
        lambda url, headers=None, timeout=None: _raw_response(body, "text/html; charset=ISO-8859-1"),
    )
    assert http.fetch_html("https://openheritage3d.org/") == "<p>Séville</p>"
