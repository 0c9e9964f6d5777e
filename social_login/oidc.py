"""
OIDC client for the identity provider (implicit flow, response_type=id_token).

Discovery happens once at construction; failure there is fatal (DiscoveryError). id_token
verification checks the signature via the provider's JWKS (PyJWKClient), then iss, aud, exp
and the nonce bound to the login's state.
"""
import hmac
import logging
from typing import Protocol
from urllib.parse import urlencode

import httpx
import jwt
from jwt import PyJWKClient

logger = logging.getLogger(__name__)

DISCOVERY_PATH = "/.well-known/openid-configuration"


class DiscoveryError(RuntimeError):
    """Provider metadata could not be fetched or is unusable."""


class VerificationError(Exception):
    """The provider's response or id_token failed validation."""


class IdentityProviderGateway(Protocol):
    def build_authorization_url(self, *, scope: str, response_mode: str, state: str, nonce: str) -> str: ...

    def verify(self, redirect_uri: str, params: dict, checks: dict) -> dict: ...


def discover(issuer: str, timeout: float = 10.0) -> dict:
    """Fetch and sanity-check the provider's OpenID configuration."""
    url = f"{issuer.rstrip('/')}{DISCOVERY_PATH}"
    try:
        r = httpx.get(url, headers={"Accept": "application/json"}, timeout=timeout)
        r.raise_for_status()
        metadata = r.json()
    except (httpx.HTTPError, ValueError) as e:
        raise DiscoveryError(f"OIDC discovery failed for {issuer}: {e}") from e
    for field in ("issuer", "authorization_endpoint", "jwks_uri"):
        if not metadata.get(field):
            raise DiscoveryError(f"OIDC discovery for {issuer}: missing {field}")
    if metadata["issuer"] != issuer:
        raise DiscoveryError(f"OIDC discovery issuer mismatch: expected {issuer}, got {metadata['issuer']}")
    return metadata


class OIDCGateway:
    response_type = "id_token"

    def __init__(
        self,
        *,
        issuer: str,
        client_id: str,
        redirect_uri: str,
        timeout: float = 10.0,
        metadata: dict | None = None,
    ):
        self.issuer = issuer
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.metadata = metadata if metadata is not None else discover(issuer, timeout=timeout)
        self.algorithms = self.metadata.get("id_token_signing_alg_values_supported") or ["RS256"]
        # PyJWKClient caches the JWK set and keys
        self._jwks_client = PyJWKClient(
            uri=self.metadata["jwks_uri"],
            cache_jwk_set=True,
            lifespan=300,
            timeout=timeout,
        )
        logger.info("OIDC provider ready: issuer=%s client_id=%s", issuer, client_id)

    def build_authorization_url(self, *, scope: str, response_mode: str, state: str, nonce: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "response_type": self.response_type,
            "scope": scope,
            "response_mode": response_mode,
            "state": state,
            "nonce": nonce,
        }
        return f"{self.metadata['authorization_endpoint']}?{urlencode(params)}"

    def verify(self, redirect_uri: str, params: dict, checks: dict) -> dict:
        """
        Validate the callback parameters (at least id_token) and return the id_token claims.
        checks may carry the expected nonce. Raises VerificationError on any failure.
        """
        if redirect_uri != self.redirect_uri:
            raise VerificationError("redirect_uri is not registered for this client")
        if params.get("error"):
            raise VerificationError(params.get("error_description") or params["error"])
        id_token = params.get("id_token")
        if not id_token:
            raise VerificationError("id_token not present in response")

        try:
            signing_key = self._jwks_client.get_signing_key_from_jwt(id_token)
            claims = jwt.decode(
                id_token,
                signing_key.key,
                algorithms=self.algorithms,
                audience=self.client_id,
                issuer=self.issuer,
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.PyJWKClientError as e:
            raise VerificationError(f"signing key unavailable: {e}") from e
        except jwt.InvalidTokenError as e:
            raise VerificationError(str(e)) from e

        expected_nonce = checks.get("nonce")
        if expected_nonce is not None:
            nonce = claims.get("nonce")
            if not isinstance(nonce, str) or not hmac.compare_digest(nonce.encode("utf-8"), expected_nonce.encode("utf-8")):
                raise VerificationError("nonce mismatch")
        return claims
