"""Unit tests for HTTP helpers and the bearer-token signer."""

from dataclasses import dataclass

import httpx
import pytest

from auth_dispatch.config import DispatcherConfig
from auth_dispatch.errors import SigningError
from auth_dispatch.http import BearerTokenSigner, create_async_http_client, create_http_client

from ..helpers import make_request


@dataclass
class Token:
    access_token: str
    token_type: str | None = None


class TestBearerTokenSigner:
    """Tests for BearerTokenSigner."""

    def test_signs_with_string_token(self) -> None:
        request = make_request(token=None)

        signed = BearerTokenSigner().sign(request, "abc")

        assert signed is request
        assert signed.headers["Authorization"] == "Bearer abc"

    def test_replaces_stale_header(self) -> None:
        signed = BearerTokenSigner().sign(make_request(token="old"), "new")

        assert signed.headers["Authorization"] == "Bearer new"

    def test_uses_token_type_of_credential(self) -> None:
        signed = BearerTokenSigner().sign(make_request(), Token("abc", "DPoP"))

        assert signed.headers["Authorization"] == "DPoP abc"

    def test_defaults_token_type(self) -> None:
        signed = BearerTokenSigner().sign(make_request(), Token("abc"))

        assert signed.headers["Authorization"] == "Bearer abc"

    def test_custom_header(self) -> None:
        signer = BearerTokenSigner(header="X-Api-Token", default_token_type="Token")

        signed = signer.sign(make_request(token=None), "abc")

        assert signed.headers["X-Api-Token"] == "Token abc"

    @pytest.mark.parametrize("credential", [None, "", Token("")])
    def test_missing_token_raises(self, credential: object) -> None:
        with pytest.raises(SigningError):
            BearerTokenSigner().sign(make_request(), credential)


class TestClientFactories:
    """Tests for configured httpx clients."""

    def test_sync_client(self, base_config: DispatcherConfig) -> None:
        with create_http_client(base_config) as client:
            assert isinstance(client, httpx.Client)
            assert str(client.base_url).rstrip("/") == "https://api.example.com"
            assert client.headers["User-Agent"] == base_config.user_agent
            assert client.timeout.read == base_config.timeout
            assert client.timeout.connect == base_config.connect_timeout

    def test_async_client(self, base_config: DispatcherConfig) -> None:
        client = create_async_http_client(base_config)

        assert isinstance(client, httpx.AsyncClient)
        assert client.follow_redirects is False
