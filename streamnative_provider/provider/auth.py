"""
OAuth2 client-credentials authentication for the cloud API.

Exchanges the service account's client id and secret for a bearer token at
the issuer and reuses the token until shortly before it expires.
"""

import logging
import threading
import time
from typing import Callable, Generator, Optional

import httpx

from streamnative_provider.client.errors import ApiError
from streamnative_provider.provider.config import ClientCredentials

logger = logging.getLogger(__name__)

TOKEN_PATH = "oauth/token"
EXPIRY_MARGIN_SECONDS = 60.0


class AuthenticationError(ApiError):
    """The issuer refused the credentials or returned no token."""

    def __init__(self, message: str):
        super().__init__(message, status_code=401, reason="Unauthorized")


class ClientCredentialsAuth(httpx.Auth):
    """httpx auth flow attaching a cached client-credentials bearer token."""

    def __init__(
        self,
        credentials: ClientCredentials,
        issuer: str,
        audience: str,
        http_client: Optional[httpx.Client] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.credentials = credentials
        self.token_url = f"{issuer.rstrip('/')}/{TOKEN_PATH}"
        self.audience = audience
        self._http = http_client or httpx.Client(timeout=30.0)
        self._clock = clock
        self._lock = threading.Lock()
        self._token: Optional[str] = None
        self._expires_at = 0.0

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self.token()}"
        response = yield request
        if response.status_code == 401:
            # Token revoked early; fetch a fresh one once.
            self.invalidate()
            request.headers["Authorization"] = f"Bearer {self.token()}"
            yield request

    def token(self) -> str:
        with self._lock:
            if self._token is None or self._clock() >= self._expires_at:
                self._refresh()
            return self._token

    def invalidate(self) -> None:
        with self._lock:
            self._token = None

    def _refresh(self) -> None:
        logger.debug("Requesting access token from %s", self.token_url)
        try:
            response = self._http.post(
                self.token_url,
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.credentials.client_id,
                    "client_secret": self.credentials.client_secret,
                    "audience": self.audience,
                },
            )
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"token request to {self.token_url} failed: {exc}") from exc

        if not response.is_success:
            raise AuthenticationError(
                f"token request to {self.token_url} failed with "
                f"{response.status_code}: {response.text}"
            )
        try:
            body = response.json()
        except ValueError as exc:
            raise AuthenticationError(f"malformed token response from {self.token_url}") from exc
        token = body.get("access_token") if isinstance(body, dict) else None
        if not token:
            raise AuthenticationError(f"no access_token in response from {self.token_url}")

        expires_in = float(body.get("expires_in", 3600))
        self._token = token
        self._expires_at = self._clock() + max(0.0, expires_in - EXPIRY_MARGIN_SECONDS)
        logger.info("Obtained access token for client %s", self.credentials.client_id)
