"""JWT Token Validation - HS256 access tokens carrying the actor role"""
import jwt
from typing import Any, Dict, Optional
from datetime import timedelta

from ..config.settings import settings
from ..domain.enums import Role
from ..domain.errors import AuthenticationError
from ..domain.models import ActorContext
from .time import utc_now
from .logger import get_logger

logger = get_logger(__name__)


class JWTValidator:
    """Validator for tokens signed with the shared platform secret"""

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        issuer: Optional[str] = None
    ):
        self.secret = secret or settings.jwt_secret
        self.algorithm = algorithm or settings.jwt_algorithm
        self.issuer = issuer or settings.jwt_issuer

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate a JWT and return its claims

        Args:
            token: Bearer token (with or without 'Bearer ' prefix)

        Raises:
            AuthenticationError: If token is missing, expired or invalid
        """
        if not token:
            raise AuthenticationError("Token is missing")

        if token.startswith("Bearer "):
            token = token[7:]

        try:
            return jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require": ["sub", "role", "exp"]}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token expired")
            raise AuthenticationError("Token has expired")
        except jwt.InvalidIssuerError:
            logger.warning("Invalid token issuer")
            raise AuthenticationError("Invalid token issuer")
        except jwt.PyJWTError as e:
            logger.warning(f"JWT validation error: {e}")
            raise AuthenticationError(f"Invalid token: {str(e)}")

    def get_actor_context(self, token: str) -> ActorContext:
        """Extract actor context from a validated token"""
        claims = self.validate_token(token)

        try:
            role = Role(claims["role"])
        except ValueError:
            raise AuthenticationError(f"Unknown role '{claims['role']}' in token")

        try:
            return ActorContext(
                user_id=str(claims["sub"]),
                role=role,
                email=claims.get("email") or None,
                display_name=claims.get("name")
            )
        except ValueError as e:
            raise AuthenticationError(f"Invalid identity claims: {e}")

    def create_token(
        self,
        user_id: str,
        role: Role,
        email: Optional[str] = None,
        name: Optional[str] = None,
        ttl: Optional[timedelta] = None
    ) -> str:
        """Issue a token (scripts and tests; login is handled elsewhere)"""
        now = utc_now()
        claims: Dict[str, Any] = {
            "sub": user_id,
            "role": Role(role).value,
            "iss": self.issuer,
            "iat": now,
            "exp": now + (ttl or timedelta(minutes=settings.jwt_ttl_minutes)),
        }
        if email:
            claims["email"] = email
        if name:
            claims["name"] = name
        return jwt.encode(claims, self.secret, algorithm=self.algorithm)


# Global validator instance
_jwt_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    """Get global JWT validator instance"""
    global _jwt_validator
    if _jwt_validator is None:
        _jwt_validator = JWTValidator()
    return _jwt_validator


def get_current_user(authorization: str) -> ActorContext:
    """
    Get current user from authorization header

    Args:
        authorization: Authorization header value

    Returns:
        ActorContext
    """
    if not authorization:
        raise AuthenticationError("Authorization header is missing")

    return get_jwt_validator().get_actor_context(authorization)


def create_access_token(
    user_id: str,
    role: Role,
    email: Optional[str] = None,
    name: Optional[str] = None
) -> str:
    return get_jwt_validator().create_token(user_id, role, email=email, name=name)
