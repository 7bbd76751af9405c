"""JWT Token Verification"""
import os
import requests
from jose import jwt
from typing import Dict, Optional


class JWTVerifier:
    """Verifies Keycloak-issued bearer tokens against the realm's JWKS"""

    def __init__(self, keycloak_url: str, realm: str, algorithm: str = "RS256"):
        self.algorithm = algorithm or "RS256"
        self.issuer = f"{keycloak_url}/realms/{realm}"
        self.jwks_url = f"{self.issuer}/protocol/openid-connect/certs"
        self._jwks_cache: Optional[Dict] = None

    @classmethod
    def from_env(cls) -> "JWTVerifier":
        return cls(
            keycloak_url=os.getenv("KEYCLOAK_URL"),
            realm=os.getenv("KEYCLOAK_REALM"),
            algorithm=os.getenv("JWT_ALGORITHM"),
        )

    def _get_jwks(self) -> Dict:
        """Fetch JWKS from Keycloak (cached for the life of the process)"""
        if self._jwks_cache is None:
            response = requests.get(self.jwks_url, timeout=10)
            response.raise_for_status()
            self._jwks_cache = response.json()
        return self._jwks_cache

    def verify_and_decode(self, token: str) -> Dict:
        """
        Verify the token signature and issuer, then return its claims.

        Raises:
            JWTError: Token is invalid or expired
            requests.RequestException: JWKS could not be fetched
        """
        return jwt.decode(
            token,
            self._get_jwks(),
            algorithms=[self.algorithm],
            issuer=self.issuer,
            options={"verify_aud": False},
        )
