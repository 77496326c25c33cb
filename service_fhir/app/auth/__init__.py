"""
Authentication helpers for the FHIR Facade service.
"""

from .jwt_auth import AuthContext, AuthenticationError, JWTAuthenticator, TokenIssuer

__all__ = [
    "AuthContext",
    "AuthenticationError",
    "JWTAuthenticator",
    "TokenIssuer",
]
