"""
sap_odata.core.session - SAP OData HTTP transport
==================================================

Low-level transport for SAP OData services with:
- Answering HTTP basic auth challenges with a configured credential
- Default JSON headers and a locale-derived sap-language header
- A shared, explicitly passed cookie jar and response cache
- Per-request timeout and timing logs
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Union
import locale
import logging
import re
import time

import requests
from requests import PreparedRequest, Request, Response, Session
from requests.adapters import HTTPAdapter
from requests.auth import AuthBase, HTTPBasicAuth
from requests.cookies import RequestsCookieJar, extract_cookies_to_jar

from sap_odata.core.cache import ResponseCache

RequestTarget = Union[str, Request, PreparedRequest]

_BASIC_CHALLENGE = re.compile(r"(?:^|,)\s*basic\b", re.IGNORECASE)


def default_language() -> str:
    """Two-letter upper-case language of the process locale, "EN" if unknown."""
    try:
        lang = locale.getlocale()[0]
    except ValueError:
        lang = None
    if not lang or lang in ("C", "POSIX"):
        return "EN"
    return re.split(r"[_\-.]", lang)[0].upper() or "EN"


@dataclass
class ODataCredential:
    """
    Long-lived credential used to answer HTTP basic auth challenges.

    Examples
    --------
    >>> cred = ODataCredential("USER", "PASSWORD")
    """
    user: str
    password: str = field(repr=False)


@dataclass
class ODataConfig:
    """
    Transport configuration for SAP OData requests.

    Parameters
    ----------
    timeout : float
        Request timeout in seconds (default: 45.0)
    headers : dict, optional
        When given, replaces the default headers entirely
    language : str, optional
        Value of the sap-language header (default: process locale)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    allow_redirects : bool
        Follow 3xx responses instead of reporting them
    pool_connections, pool_maxsize : int
        Connection pool sizing for the HTTP adapter
    max_workers : int
        Number of requests that may be in flight concurrently
    user_agent : str
        User-Agent header value

    Examples
    --------
    >>> cfg = ODataConfig(timeout=30.0, language="DE")
    >>> cfg.effective_headers()["sap-language"]
    'DE'
    """
    timeout: float = 45.0
    headers: Optional[Dict[str, str]] = None
    language: Optional[str] = None
    verify: Union[bool, str] = True
    allow_redirects: bool = True
    pool_connections: int = 10
    pool_maxsize: int = 20
    max_workers: int = 8
    user_agent: str = "sap-odata-client/0.3"

    @classmethod
    def default(cls) -> "ODataConfig":
        return cls(language=default_language())

    def effective_headers(self) -> Dict[str, str]:
        if self.headers is not None:
            return dict(self.headers)
        return {
            "Accept": "application/json",
            "Content-Type": "application/json",
            "sap-language": (self.language or default_language()).upper(),
            "User-Agent": self.user_agent,
        }


class BasicChallengeAuth(AuthBase):
    """
    Answer ``401`` basic auth challenges with a preconfigured credential.

    Nothing is sent up front. When a response is a ``401`` offering the
    ``Basic`` scheme, the request is resent once with the credential. Any
    other challenge is handed back to the caller unchanged.
    """

    def __init__(self, credential: ODataCredential) -> None:
        self.credential = credential
        self.logger = logging.getLogger("sap_odata.auth")

    def __call__(self, r: PreparedRequest) -> PreparedRequest:
        r.register_hook("response", self.handle_401)
        return r

    def handle_401(self, r: Response, **kwargs) -> Response:
        if r.status_code != 401:
            return r
        challenge = r.headers.get("WWW-Authenticate") or ""
        if not _BASIC_CHALLENGE.search(challenge):
            return r
        if "Authorization" in r.request.headers:
            # our credential was already rejected
            return r

        self.logger.debug("answering basic auth challenge for %s", r.url)
        r.content
        r.close()
        prep = r.request.copy()
        extract_cookies_to_jar(prep._cookies, r.request, r.raw)
        prep.prepare_cookies(prep._cookies)
        HTTPBasicAuth(self.credential.user, self.credential.password)(prep)

        _r = r.connection.send(prep, **kwargs)
        _r.history.append(r)
        _r.request = prep
        return _r


class HttpState:
    """
    Cookie jar and response cache shared by every request of a client.

    Passed explicitly to the transport so that ``logout`` clears exactly the
    state the client uses.
    """

    def __init__(
        self,
        cookies: Optional[RequestsCookieJar] = None,
        cache: Optional[ResponseCache] = None,
    ) -> None:
        self.cookies = cookies if cookies is not None else RequestsCookieJar()
        self.cache = cache if cache is not None else ResponseCache()

    def clear(self) -> None:
        self.cache.clear()
        self.cookies.clear()


class SAPODataSession:
    """
    HTTP transport for SAP OData v2 services.

    Parameters
    ----------
    credential : ODataCredential
        Credential for basic auth challenges
    cfg : ODataConfig, optional
        Transport configuration, ``ODataConfig.default()`` if omitted
    http_state : HttpState, optional
        Cookie jar and cache handle, a fresh one if omitted

    Examples
    --------
    >>> with SAPODataSession(ODataCredential("USER", "PASS")) as sess:
    ...     r = sess.send("https://host/sap/opu/odata/sap/API_SRV/Items('1')")
    """

    def __init__(
        self,
        credential: ODataCredential,
        cfg: Optional[ODataConfig] = None,
        http_state: Optional[HttpState] = None,
    ) -> None:
        self.cfg = cfg or ODataConfig.default()
        self.credential = credential
        self.http_state = http_state or HttpState()
        self.timeout = float(self.cfg.timeout)
        self.verify = self.cfg.verify
        self.logger = logging.getLogger("sap_odata.transport")

        self.session = self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "SAPODataSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- auth/session ----------------

    def _build_session(self) -> Session:
        sess = requests.Session()
        sess.auth = BasicChallengeAuth(self.credential)
        sess.cookies = self.http_state.cookies
        # replace, not merge: requests ships its own default headers
        sess.headers.clear()
        sess.headers.update(self.cfg.effective_headers())

        adapter = HTTPAdapter(
            pool_connections=self.cfg.pool_connections,
            pool_maxsize=self.cfg.pool_maxsize,
        )
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    # ---------------- public ops ----------------

    def prepare(self, target: RequestTarget) -> PreparedRequest:
        """
        Turn a URL or request into a prepared request.

        URLs and ``requests.Request`` objects pick up the session headers,
        cookies and auth. A ``PreparedRequest`` keeps its own headers and
        cookies; a copy of it gets the basic challenge hook.
        """
        if isinstance(target, PreparedRequest):
            prep = target.copy()
            prep.hooks = {event: list(hooks) for event, hooks in target.hooks.items()}
            return self.session.auth(prep)
        if isinstance(target, str):
            target = Request("GET", target)
        return self.session.prepare_request(target)

    def send(self, target: RequestTarget) -> Response:
        """
        Send a request and return the raw response, whatever its status.

        Raises
        ------
        requests.RequestException
            On transport failures (connection, timeout, TLS)
        """
        prep = self.prepare(target)
        method = (prep.method or "GET").upper()
        cacheable = method == "GET" and prep.url is not None

        if cacheable:
            cached = self.http_state.cache.get(prep.url)
            if cached is not None:
                self.logger.debug("cache hit %s", prep.url)
                return cached

        settings = self.session.merge_environment_settings(prep.url, {}, None, self.verify, None)
        t0 = time.perf_counter()
        r = self.session.send(
            prep,
            timeout=self.timeout,
            allow_redirects=self.cfg.allow_redirects,
            **settings,
        )
        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("%s %s %s %sms", method, prep.url, r.status_code, round(dt, 1))

        if cacheable:
            self.http_state.cache.store(prep.url, r)
        return r

    def logout(self) -> None:
        """Drop every cached response and every stored cookie."""
        self.http_state.clear()
        self.logger.debug("cleared cached responses and cookies")
