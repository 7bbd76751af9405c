"""Authentication Middleware"""
from jose import JWTError
from requests import RequestException
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer

from referral_service.auth.models import JWTPayload
from referral_service.auth.jwt_verifier import JWTVerifier
from referral_service.auth.permissions_manager import PermissionsManager


# Initialize components
security = HTTPBearer()
jwt_verifier = JWTVerifier.from_env()
permissions_manager = PermissionsManager()


async def verify_token(credentials = Depends(security)) -> JWTPayload:
    """
    Verify JWT token from Keycloak and extract payload.

    Expected JWT claims:
    - sub: principal id (victim or counselor)
    - realm_access.roles: list of role names
    """
    token = credentials.credentials

    try:
        payload = jwt_verifier.verify_and_decode(token)
    except JWTError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}"
        )
    except RequestException as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Token verification failed: {str(e)}"
        )

    if not payload.get("sub"):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token: missing sub"
        )

    # Extract roles from realm_access
    roles = payload.get("realm_access", {}).get("roles", [])

    # Map roles to permissions
    permissions = permissions_manager.get_permissions_for_roles(roles)

    return JWTPayload(
        sub=payload["sub"],
        roles=roles,
        permissions=permissions,
        iat=payload.get("iat"),
        exp=payload.get("exp")
    )


def check_permission(jwt_payload: JWTPayload, required_permission: str):
    """
    Check if user has required permission.

    Args:
        jwt_payload: JWT payload containing user permissions
        required_permission: Permission string to check

    Raises:
        HTTPException: If user lacks required permission
    """
    if required_permission not in jwt_payload.permissions:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Missing required permission: {required_permission}"
        )
