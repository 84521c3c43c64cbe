"""
Tests for sap_odata.core module.
"""

import pytest
import requests
from unittest.mock import MagicMock, patch
from pydantic import BaseModel, ValidationError
from sqlalchemy.exc import OperationalError

from sap_odata.core.cache import ResponseCache
from sap_odata.core.connection import ConnectionContext
from sap_odata.core.errors import (
    ErrorKind,
    TransportFailure,
    ODataClientError,
    ODataParsingError,
    ODataPersistenceError,
    ODataRequestFailed,
    ODataServerError,
    ODataUnknownError,
    ODataUpstreamError,
    classify_error,
)
from sap_odata.core.session import (
    HttpState,
    ODataConfig,
    ODataCredential,
    SAPODataSession,
    default_language,
)

from _helpers import BASE_URL, make_response, mount_stub


class TestODataCredential:
    """Tests for ODataCredential dataclass."""

    def test_fields(self):
        cred = ODataCredential("user", "pass")
        assert cred.user == "user"
        assert cred.password == "pass"

    def test_password_not_in_repr(self):
        assert "pass" not in repr(ODataCredential("user", "s3cret-pass"))


class TestODataConfig:
    """Tests for ODataConfig dataclass."""

    def test_default_values(self):
        cfg = ODataConfig()
        assert cfg.timeout == 45.0
        assert cfg.verify is True
        assert cfg.allow_redirects is True
        assert cfg.headers is None

    def test_default_headers(self):
        headers = ODataConfig(language="de").effective_headers()
        assert headers["Accept"] == "application/json"
        assert headers["Content-Type"] == "application/json"
        assert headers["sap-language"] == "DE"

    def test_custom_headers_replace_defaults(self):
        cfg = ODataConfig(headers={"Accept": "application/atom+xml"}, language="DE")
        assert cfg.effective_headers() == {"Accept": "application/atom+xml"}

    @patch("sap_odata.core.session.locale.getlocale", return_value=("fr_CA", "UTF-8"))
    def test_default_language_from_locale(self, _getlocale):
        assert default_language() == "FR"
        assert ODataConfig.default().language == "FR"

    @patch("sap_odata.core.session.locale.getlocale", return_value=(None, None))
    def test_default_language_fallback(self, _getlocale):
        assert default_language() == "EN"


class TestErrors:
    """Tests for the error taxonomy."""

    def test_upstream_error_attributes(self):
        err = ODataServerError(
            status=503,
            body="Service unavailable",
            url="https://test.com/entity",
            headers={"x-request-id": "123"},
        )
        assert err.status == 503
        assert err.body == "Service unavailable"
        assert err.url == "https://test.com/entity"
        assert err.headers == {"x-request-id": "123"}
        assert err.kind is ErrorKind.SERVER

    def test_error_message_truncation(self):
        long_body = "x" * 2000
        err = ODataUpstreamError(500, long_body, "https://test.com")
        # Message should be truncated
        assert len(str(err)) < 1500

    def test_client_error_from_response(self):
        r = make_response(404, "not found", url=BASE_URL + "Items('9')")
        err = ODataClientError.from_response(r)
        assert err.status == 404
        assert err.url.endswith("Items('9')")
        assert err.payload is None
        assert err.response is r

    @pytest.mark.parametrize(
        "exc, failure",
        [
            (requests.exceptions.ConnectTimeout("slow"), TransportFailure.TIMEOUT),
            (requests.exceptions.ReadTimeout("slow"), TransportFailure.TIMEOUT),
            (requests.exceptions.SSLError("bad cert"), TransportFailure.TLS),
            (requests.exceptions.ConnectionError("refused"), TransportFailure.CONNECTION),
            (requests.exceptions.InvalidURL("nope"), TransportFailure.OTHER),
        ],
    )
    def test_classify_transport_failures(self, exc, failure):
        err = classify_error(exc)
        assert isinstance(err, ODataRequestFailed)
        assert err.kind is ErrorKind.REQUEST_FAILED
        assert err.failure is failure
        assert err.__cause__ is exc

    def test_classify_validation_error(self):
        class Model(BaseModel):
            id: int

        with pytest.raises(ValidationError) as info:
            Model.model_validate({"id": "abc"})
        err = classify_error(info.value)
        assert isinstance(err, ODataParsingError)
        assert err.kind is ErrorKind.PARSING

    def test_classify_store_failure(self):
        err = classify_error(OperationalError("COMMIT", {}, Exception("disk full")))
        assert isinstance(err, ODataPersistenceError)
        assert err.kind is ErrorKind.PERSISTENCE

    def test_classify_keeps_odata_errors(self):
        original = ODataServerError(500, "", "https://test.com")
        assert classify_error(original) is original

    def test_classify_anything_else_is_unknown(self):
        err = classify_error(KeyError("boom"))
        assert isinstance(err, ODataUnknownError)
        assert err.kind is ErrorKind.UNKNOWN


class TestResponseCache:
    """Tests for ResponseCache."""

    def test_stores_only_cacheable_success(self):
        cache = ResponseCache()
        assert not cache.store("u1", make_response(200, "{}"))
        assert not cache.store("u2", make_response(500, "", {"Cache-Control": "max-age=60"}))
        assert not cache.store("u3", make_response(200, "", {"Cache-Control": "no-store, max-age=60"}))
        assert cache.store("u4", make_response(200, "{}", {"Cache-Control": "public, max-age=60"}))
        assert len(cache) == 1

    def test_expiry(self):
        now = [100.0]
        cache = ResponseCache(clock=lambda: now[0])
        r = make_response(200, "{}", {"Cache-Control": "max-age=10"})
        cache.store("u", r)
        assert cache.get("u") is r
        now[0] = 111.0
        assert cache.get("u") is None

    def test_clear(self):
        cache = ResponseCache()
        cache.store("u", make_response(200, "{}", {"Cache-Control": "max-age=10"}))
        cache.clear()
        assert cache.get("u") is None


class TestSAPODataSession:
    """Tests for SAPODataSession."""

    @patch("sap_odata.core.session.requests.Session")
    def test_session_creation(self, mock_session_class, credential):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        sess = SAPODataSession(credential, ODataConfig(language="EN"))
        assert sess.timeout == 45.0
        assert sess.session is mock_session
        mock_session.headers.update.assert_called_once()

    @patch("sap_odata.core.session.requests.Session")
    def test_context_manager(self, mock_session_class, credential):
        mock_session = MagicMock()
        mock_session_class.return_value = mock_session

        with SAPODataSession(credential) as sess:
            assert sess is not None

        mock_session.close.assert_called_once()

    def test_default_headers_and_timeout_sent(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [make_response(200, "{}")])

        sess.send(BASE_URL + "API_SRV/Items")

        sent = adapter.requests[0]
        assert sent.method == "GET"
        assert sent.headers["Accept"] == "application/json"
        assert sent.headers["sap-language"] == "EN"
        assert adapter.kwargs[0]["timeout"] == 5.0

    def test_request_object_keeps_own_headers(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [make_response(200, "{}")])

        sess.send(requests.Request("GET", BASE_URL + "Items", headers={"X-Trace": "1"}))

        sent = adapter.requests[0]
        assert sent.headers["X-Trace"] == "1"
        assert sent.headers["Accept"] == "application/json"

    def test_basic_challenge_answered(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [
            make_response(401, "", {"WWW-Authenticate": 'Basic realm="SAP NetWeaver Application Server"'}),
            make_response(200, "{}"),
        ])

        r = sess.send(BASE_URL + "Items")

        assert r.status_code == 200
        assert len(adapter.requests) == 2
        assert "Authorization" not in adapter.requests[0].headers
        assert adapter.requests[1].headers["Authorization"] == "Basic dXNlcjpwYXNz"
        assert r.history[0].status_code == 401

    def test_basic_challenge_answered_for_prepared_request(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [
            make_response(401, "", {"WWW-Authenticate": 'Basic realm="SAP"'}),
            make_response(200, "{}"),
        ])
        prepared = requests.Request("GET", BASE_URL + "Items", headers={"X-Trace": "1"}).prepare()

        r = sess.send(prepared)

        assert r.status_code == 200
        assert len(adapter.requests) == 2
        assert adapter.requests[0].headers == {"X-Trace": "1"}
        assert adapter.requests[1].headers["Authorization"] == "Basic dXNlcjpwYXNz"
        assert prepared.hooks["response"] == []

    def test_basic_offered_among_other_schemes(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [
            make_response(401, "", {"WWW-Authenticate": 'Negotiate, Basic realm="SAP"'}),
            make_response(200, "{}"),
        ])

        assert sess.send(BASE_URL + "Items").status_code == 200
        assert len(adapter.requests) == 2

    def test_non_basic_challenge_not_answered(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [
            make_response(401, "", {"WWW-Authenticate": "Bearer realm=\"api\""}),
        ])

        r = sess.send(BASE_URL + "Items")

        assert r.status_code == 401
        assert len(adapter.requests) == 1

    def test_rejected_credential_not_retried_again(self, credential, config):
        sess = SAPODataSession(credential, config)
        challenge = {"WWW-Authenticate": "Basic realm=\"SAP\""}
        adapter = mount_stub(sess, [make_response(401, "", challenge), make_response(401, "", challenge)])

        r = sess.send(BASE_URL + "Items")

        assert r.status_code == 401
        assert len(adapter.requests) == 2

    def test_cacheable_get_served_from_cache(self, credential, config):
        sess = SAPODataSession(credential, config)
        adapter = mount_stub(sess, [
            make_response(200, "{}", {"Cache-Control": "max-age=300"}),
            make_response(200, "{}", {"Cache-Control": "max-age=300"}),
        ])

        first = sess.send(BASE_URL + "Items")
        second = sess.send(BASE_URL + "Items")

        assert second is first
        assert len(adapter.requests) == 1

    def test_logout_clears_cookies_and_cache(self, credential, config):
        state = HttpState()
        sess = SAPODataSession(credential, config, state)
        adapter = mount_stub(sess, [
            make_response(200, "{}", {"Cache-Control": "max-age=300"}),
            make_response(200, "{}"),
        ])
        state.cookies.set("SAP_SESSIONID_ABC_100", "xyz", domain="test.example.com", path="/")

        sess.send(BASE_URL + "Items")
        assert "SAP_SESSIONID_ABC_100=xyz" in adapter.requests[0].headers["Cookie"]

        sess.logout()
        assert len(state.cookies) == 0
        assert len(state.cache) == 0

        sess.send(BASE_URL + "Items")
        assert len(adapter.requests) == 2
        assert "Cookie" not in adapter.requests[1].headers


class TestConnectionContext:
    """Tests for ConnectionContext."""

    @pytest.fixture(autouse=True)
    def _clean_env(self, monkeypatch, tmp_path):
        for name in ("S4_BASE_URL", "S4_USER", "S4_PASS", "S4_LANGUAGE", "S4_VERIFY_TLS", "S4_TIMEOUT"):
            # setenv first so values loaded from .env are removed on teardown
            monkeypatch.setenv(name, "")
            monkeypatch.delenv(name)
        monkeypatch.chdir(tmp_path)

    def test_missing_base_url_raises(self):
        with pytest.raises(ValueError, match="Missing base_url"):
            ConnectionContext(base_url="")

    def test_missing_credentials_raises(self):
        with pytest.raises(ValueError, match="Missing credentials"):
            ConnectionContext(base_url="https://test.com/odata/")

    def test_reads_from_environment(self, monkeypatch):
        monkeypatch.setenv("S4_BASE_URL", "https://env.test.com/odata")
        monkeypatch.setenv("S4_USER", "envuser")
        monkeypatch.setenv("S4_PASS", "envpass")
        monkeypatch.setenv("S4_LANGUAGE", "de")
        monkeypatch.setenv("S4_TIMEOUT", "12")

        conn = ConnectionContext()
        assert conn.base_url == "https://env.test.com/odata/"
        assert conn.language == "DE"
        assert conn.config.timeout == 12.0

    def test_reads_dotenv_file(self, tmp_path):
        (tmp_path / ".env").write_text(
            "S4_BASE_URL=https://dotenv.test.com/odata/\nS4_USER=u\nS4_PASS=p\n"
        )
        conn = ConnectionContext()
        assert conn.base_url == "https://dotenv.test.com/odata/"

    def test_explicit_params_override_env(self, monkeypatch):
        monkeypatch.setenv("S4_BASE_URL", "https://env.test.com/odata/")
        conn = ConnectionContext(
            base_url="https://explicit.com/odata/",
            user="explicituser",
            password="explicitpass",
            verify=False,
        )
        assert conn.base_url == "https://explicit.com/odata/"
        assert conn.config.verify is False

    def test_url_joins_service_and_path(self):
        conn = ConnectionContext(base_url="https://h/sap/opu/odata/sap", user="u", password="p")
        assert conn.url("/API_SRV/", "/Items('1')") == "https://h/sap/opu/odata/sap/API_SRV/Items('1')"

    def test_client_shares_http_state(self):
        with ConnectionContext(base_url="https://h/odata/", user="u", password="p", language="en") as conn:
            client = conn.client
            assert client is conn.client
            assert client.http_state is conn.http_state
            assert client.config.language == "EN"
