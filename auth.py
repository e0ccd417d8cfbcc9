import logging
import time
from typing import Iterable, Optional

import jwt
import requests
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = "https://developer.api.autodesk.com/authentication/v2/token"
JWT_BEARER_GRANT_TYPE = "urn:ietf:params:oauth:grant-type:jwt-bearer"

# The assertion is used once to request a token, so it only needs to live a few minutes.
ASSERTION_LIFETIME_SECONDS = 300


class AuthenticationError(Exception):
    """Base error for anything that stops us from producing a bearer token."""


class SigningError(AuthenticationError):
    """The private key could not be read or the assertion could not be signed."""


class TokenExchangeError(AuthenticationError):
    """The token endpoint rejected the assertion or could not be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None, body: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ServiceAccountAuthProvider:
    """
    Supplies bearer tokens for a Service Account (SSA) using the JWT-bearer grant.

    One instance is created per process and shared by every API client. The
    token lives in a single in-memory slot; there is no lock, so two callers
    hitting a stale cache at the same time may both refresh (last one wins).
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        service_account_id: str,
        key_id: str,
        key_path: str,
        scopes: Iterable[str] = ("data:read", "data:write"),
        token_url: str = TOKEN_ENDPOINT,
        timeout: int = 15,
    ):
        self._client_id = client_id
        self._client_secret = client_secret
        self._service_account_id = service_account_id
        self._key_id = key_id
        self._key_path = key_path
        self._scopes = tuple(scopes)
        self._token_url = token_url
        self._timeout = timeout

        self._access_token: Optional[str] = None
        self._expires_at = 0  # epoch milliseconds

    @property
    def scopes(self) -> tuple:
        return self._scopes

    def get_token(self, force_refresh: bool = False) -> str:
        """
        Returns a valid access token, exchanging a fresh assertion when needed.

        Args:
            force_refresh: If True, ignores the cache and requests a new token immediately.

        Raises:
            SigningError: If the private key is unreadable or malformed.
            TokenExchangeError: If the token request fails.
        """
        now_ms = _now_ms()
        if not force_refresh and self._access_token and now_ms < self._expires_at:
            logger.debug(f"Using cached token (expires in {(self._expires_at - now_ms) // 1000}s)")
            return self._access_token

        if force_refresh:
            logger.info("Force refreshing token (requested by caller)")

        logger.info(f"Authenticating service account {self._service_account_id} with scopes: {' '.join(self._scopes)}")
        assertion = self._create_assertion()
        token_data = self._exchange_assertion(assertion)

        try:
            access_token = token_data["access_token"]
            expires_in = int(token_data["expires_in"])
        except (KeyError, TypeError, ValueError) as e:
            raise TokenExchangeError(f"Could not generate access token: malformed response ({e})") from e
        if not access_token:
            raise TokenExchangeError("Could not generate access token: empty access_token in response")

        self._access_token = access_token
        self._expires_at = _now_ms() + expires_in * 1000
        logger.info(f"Token acquired successfully (expires in {expires_in}s).")
        return self._access_token

    def _load_private_key(self) -> RSAPrivateKey:
        # Read on every refresh so a rotated key file is picked up.
        try:
            with open(self._key_path, "rb") as fh:
                pem = fh.read()
        except OSError as e:
            logger.error(f"Could not read private key {self._key_path}: {e}")
            raise SigningError(f"Could not read private key {self._key_path}: {e}") from e

        try:
            key = serialization.load_pem_private_key(pem, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm) as e:
            logger.error(f"Malformed private key {self._key_path}: {e}")
            raise SigningError(f"Malformed private key {self._key_path}: {e}") from e

        if not isinstance(key, RSAPrivateKey):
            logger.error(f"Private key {self._key_path} is not an RSA key")
            raise SigningError(f"Private key {self._key_path} is not an RSA key")
        return key

    def _create_assertion(self) -> str:
        """Builds the RS256-signed JWT presented to the token endpoint."""
        key = self._load_private_key()
        # No "iat" claim: only "exp" controls assertion validity.
        payload = {
            "iss": self._client_id,
            "sub": self._service_account_id,
            "aud": self._token_url,
            "exp": int(time.time()) + ASSERTION_LIFETIME_SECONDS,
            "scope": list(self._scopes),
        }
        try:
            return jwt.encode(payload, key, algorithm="RS256", headers={"kid": self._key_id})
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            logger.error(f"Assertion signing failed: {e}")
            raise SigningError(f"Assertion signing failed: {e}") from e

    def _exchange_assertion(self, assertion: str) -> dict:
        try:
            resp = requests.post(
                self._token_url,
                auth=requests.auth.HTTPBasicAuth(self._client_id, self._client_secret),
                headers={"Accept": "application/json"},
                data={"grant_type": JWT_BEARER_GRANT_TYPE, "assertion": assertion},
                timeout=self._timeout,
            )
        except requests.exceptions.RequestException as e:
            logger.error(f"Token request failed: {e}")
            raise TokenExchangeError(f"Could not generate access token: {e}") from e

        if not 200 <= resp.status_code < 300:
            logger.error(f"Token request failed ({resp.status_code}): {resp.text}")
            raise TokenExchangeError(
                f"Could not generate access token: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            )

        try:
            return resp.json()
        except ValueError as e:
            raise TokenExchangeError(
                f"Could not generate access token: invalid JSON response: {resp.text}",
                status_code=resp.status_code,
                body=resp.text,
            ) from e


def _now_ms() -> int:
    return int(time.time() * 1000)
