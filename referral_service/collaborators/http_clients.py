"""HTTP clients for the identity registry and counselor verification services"""
import logging
import requests

logger = logging.getLogger(__name__)


class IdentityRegistryClient:
    """Looks up principal roles in the identity registry service"""

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/") if base_url else ""
        self.timeout = timeout

    def has_role(self, principal: str, role: str) -> bool:
        url = f"{self.base_url}/principals/{principal}/roles/{role}"
        try:
            response = requests.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return False
            response.raise_for_status()
            return bool(response.json().get("has_role", False))
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Identity registry lookup failed for {principal}: {e}")
            return False


class CounselorVerifierClient:
    """Checks counselor credentials with the verification service"""

    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/") if base_url else ""
        self.timeout = timeout

    def is_verified(self, principal: str) -> bool:
        url = f"{self.base_url}/counselors/{principal}/verification"
        try:
            response = requests.get(url, timeout=self.timeout)
            if response.status_code == 404:
                return False
            response.raise_for_status()
            return bool(response.json().get("verified", False))
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Counselor verification failed for {principal}: {e}")
            return False
