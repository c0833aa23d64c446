"""HTTP clients: a shared default, a browser-like TLS client, proxied and edge-proxy clients."""

from __future__ import annotations

import functools
import io
import json
import logging
import ssl
from http import HTTPStatus
from http.cookies import CookieError, SimpleCookie
from typing import Any, Callable, Optional, Union
from urllib.parse import quote_plus, urlsplit

import requests
from requests.adapters import HTTPAdapter
from requests.structures import CaseInsensitiveDict

from govdl.config import EdgeProxyResponse, ExtractorConfig

logger = logging.getLogger(__name__)

_CLIENT_TIMEOUT = 60.0
_POOL_SIZE = 100

# TLS 1.2 suites in the order a Chrome browser offers them; TLS 1.3 suites
# are always enabled by the ssl module and come first.
_CHROME_CIPHERS = ":".join(
    [
        "ECDHE-ECDSA-AES128-GCM-SHA256",
        "ECDHE-RSA-AES128-GCM-SHA256",
        "ECDHE-ECDSA-AES256-GCM-SHA384",
        "ECDHE-RSA-AES256-GCM-SHA384",
        "ECDHE-ECDSA-CHACHA20-POLY1305",
        "ECDHE-RSA-CHACHA20-POLY1305",
    ]
)

ProxySelector = Callable[[str], Optional[str]]
AnyRequest = Union[requests.Request, requests.PreparedRequest]


class _TLSAdapter(HTTPAdapter):
    """An adapter whose connections use a fixed SSL context."""

    def __init__(self, ssl_context: ssl.SSLContext, **kwargs: Any) -> None:
        self.ssl_context = ssl_context
        super().__init__(**kwargs)

    def init_poolmanager(self, *args: Any, **kwargs: Any) -> None:
        kwargs["ssl_context"] = self.ssl_context
        super().init_poolmanager(*args, **kwargs)

    def proxy_manager_for(self, proxy: str, **kwargs: Any) -> Any:
        kwargs["ssl_context"] = self.ssl_context
        return super().proxy_manager_for(proxy, **kwargs)


def _base_session(adapter: Optional[HTTPAdapter] = None) -> requests.Session:
    session = requests.Session()
    if adapter is None:
        adapter = HTTPAdapter(pool_connections=_POOL_SIZE, pool_maxsize=_POOL_SIZE)
    session.mount("http://", adapter)
    session.mount("https://", adapter)
    return session


class HTTPClient:
    """Sends requests through a session, optionally choosing a proxy per URL."""

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        timeout: float = _CLIENT_TIMEOUT,
        proxy_for: Optional[ProxySelector] = None,
    ) -> None:
        self.session = session if session is not None else _base_session()
        self.timeout = timeout
        self.proxy_for = proxy_for

    def do(self, request: AnyRequest) -> requests.Response:
        """Send ``request`` and return the response, following redirects."""
        if isinstance(request, requests.PreparedRequest):
            prepared = request
        else:
            prepared = self.session.prepare_request(request)
        settings = self.session.merge_environment_settings(
            prepared.url, {}, None, None, None
        )
        if self.proxy_for is not None:
            proxy = self.proxy_for(prepared.url or "")
            settings["proxies"] = {"http": proxy, "https": proxy} if proxy else {}
        return self.session.send(prepared, timeout=self.timeout, **settings)


@functools.lru_cache(maxsize=None)
def get_default_http_client() -> HTTPClient:
    """Return the client shared by everything that needs no special settings."""
    return HTTPClient()


def _chrome_ssl_context() -> ssl.SSLContext:
    context = ssl.create_default_context()
    context.minimum_version = ssl.TLSVersion.TLSv1_2
    context.maximum_version = ssl.TLSVersion.TLSv1_3
    context.set_ciphers(_CHROME_CIPHERS)
    return context


def new_chrome_client() -> HTTPClient:
    """Return a client whose TLS handshake resembles a Chrome browser's."""
    adapter = _TLSAdapter(
        _chrome_ssl_context(), pool_connections=_POOL_SIZE, pool_maxsize=_POOL_SIZE
    )
    return HTTPClient(_base_session(adapter))


def parse_no_proxy_list(no_proxy: str) -> list[str]:
    """Split a comma separated no-proxy setting into trimmed entries."""
    if not no_proxy:
        return []
    return [entry.strip() for entry in no_proxy.split(",")]


def should_bypass_proxy(host: str, no_proxy_list: list[str]) -> bool:
    """True if ``host`` matches an entry exactly or a ``.suffix`` entry."""
    for entry in no_proxy_list:
        if not entry:
            continue
        if entry == host or (entry.startswith(".") and host.endswith(entry)):
            return True
    return False


def _parse_proxy_url(value: str, label: str) -> Optional[str]:
    if not value:
        return None
    try:
        parts = urlsplit(value)
        _ = parts.port
    except ValueError as exc:
        logger.warning("invalid %s proxy URL '%s': %s", label, value, exc)
        return None
    return value


def _proxy_selector(cfg: ExtractorConfig) -> Optional[ProxySelector]:
    http_proxy = _parse_proxy_url(cfg.http_proxy, "HTTP")
    https_proxy = _parse_proxy_url(cfg.https_proxy, "HTTPS")
    if http_proxy is None and https_proxy is None:
        return None
    no_proxy = parse_no_proxy_list(cfg.no_proxy)

    def select(url: str) -> Optional[str]:
        parts = urlsplit(url)
        if should_bypass_proxy(parts.hostname or "", no_proxy):
            return None
        if parts.scheme == "https" and https_proxy is not None:
            return https_proxy
        if parts.scheme == "http" and http_proxy is not None:
            return http_proxy
        return https_proxy if https_proxy is not None else http_proxy

    return select


def new_client_from_config(cfg: ExtractorConfig) -> HTTPClient:
    """Return a client that routes through the proxies named in ``cfg``."""
    session = _base_session()
    selector = _proxy_selector(cfg) if (cfg.http_proxy or cfg.https_proxy) else None
    if selector is not None:
        # the configured proxies replace any taken from the environment
        session.trust_env = False
    return HTTPClient(session, proxy_for=selector)


def _status_text(code: int) -> str:
    try:
        return HTTPStatus(code).phrase
    except ValueError:
        return ""


def _as_prepared(request: AnyRequest) -> requests.PreparedRequest:
    if isinstance(request, requests.PreparedRequest):
        return request
    return request.prepare()


def parse_proxy_response(
    data: Union[bytes, str, dict[str, Any]], original_request: AnyRequest
) -> requests.Response:
    """Build the response an edge proxy describes in its JSON body."""
    if isinstance(data, (bytes, bytearray, str)):
        try:
            data = json.loads(data)
        except ValueError as exc:
            raise ValueError(f"error parsing proxy response: {exc}") from exc
    if not isinstance(data, dict):
        raise ValueError("error parsing proxy response: expected a JSON object")
    try:
        proxied = EdgeProxyResponse(
            url=str(data.get("url") or ""),
            status_code=int(data.get("status_code") or 0),
            text=str(data.get("text") or ""),
            headers={str(k): str(v) for k, v in (data.get("headers") or {}).items()},
            cookies=[str(c) for c in (data.get("cookies") or [])],
        )
    except (TypeError, ValueError, AttributeError) as exc:
        raise ValueError(f"error parsing proxy response: {exc}") from exc

    try:
        host = urlsplit(proxied.url).hostname or ""
    except ValueError as exc:
        raise ValueError(f"error parsing response URL: {exc}") from exc

    prepared = _as_prepared(original_request)
    prepared.url = proxied.url

    response = requests.Response()
    response.status_code = proxied.status_code
    response.reason = _status_text(proxied.status_code)
    response.raw = io.BytesIO(proxied.text.encode("utf-8"))
    response.encoding = "utf-8"
    response.url = proxied.url
    response.request = prepared
    response.headers = CaseInsensitiveDict(proxied.headers)

    if proxied.cookies:
        existing = response.headers.get("Set-Cookie")
        values = ([existing] if existing else []) + proxied.cookies
        response.headers["Set-Cookie"] = ", ".join(values)
        for raw_cookie in proxied.cookies:
            parsed = SimpleCookie()
            try:
                parsed.load(raw_cookie)
            except CookieError:
                logger.debug("skipping unparsable cookie: %s", raw_cookie)
                continue
            for name, morsel in parsed.items():
                response.cookies.set(
                    name,
                    morsel.value,
                    domain=morsel["domain"] or host,
                    path=morsel["path"] or "/",
                )
    return response


class EdgeProxyClient:
    """Sends requests through an edge proxy that answers with JSON."""

    def __init__(self, proxy_url: str, client: Optional[HTTPClient] = None) -> None:
        self.proxy_url = proxy_url
        self.client = client if client is not None else HTTPClient()

    def do(self, request: AnyRequest) -> requests.Response:
        """Forward ``request`` to the proxy and rebuild the target's response."""
        if not self.proxy_url:
            raise ValueError("proxy URL is not set")
        prepared = _as_prepared(request)
        proxied_url = f"{self.proxy_url}?url={quote_plus(prepared.url or '')}"
        body = prepared.body
        if hasattr(body, "read"):
            body = body.read()
        proxy_request = requests.Request(
            method=prepared.method,
            url=proxied_url,
            headers=dict(prepared.headers),
            data=body,
        )
        with self.client.do(proxy_request) as proxy_response:
            return parse_proxy_response(proxy_response.content, prepared)


def new_edge_proxy_client(proxy_url: str) -> EdgeProxyClient:
    """Return an edge proxy client using a plain base client."""
    return EdgeProxyClient(proxy_url, HTTPClient())


def new_edge_proxy_client_from_config(cfg: ExtractorConfig) -> EdgeProxyClient:
    """Return an edge proxy client set up from an extractor's configuration."""
    client = new_chrome_client() if cfg.impersonate else HTTPClient()
    return EdgeProxyClient(cfg.edge_proxy_url, client)