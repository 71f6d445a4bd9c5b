"""Request dependencies: tenant resolution from the caller's Supabase session."""

from __future__ import annotations

import logging

from fastapi import Header, status

from ..db.supabase import get_supabase_client
from ..persistence.routes import RouteRepository

NOT_AUTHENTICATED = "Not authenticated"
NO_COMPANY = "No company found"


class TenantResolutionError(Exception):
    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def _bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_company_id(authorization: str | None = Header(default=None)) -> str:
    """Resolve the caller's ``company_id``; the session itself is validated by Supabase auth."""
    token = _bearer_token(authorization)
    client = get_supabase_client()
    if not token or client is None:
        raise TenantResolutionError(NOT_AUTHENTICATED, status.HTTP_401_UNAUTHORIZED)

    try:
        user_response = client.auth.get_user(token)
    except Exception as e:
        logging.info(f"Rejected session token: {e}")
        raise TenantResolutionError(NOT_AUTHENTICATED, status.HTTP_401_UNAUTHORIZED) from e
    user = getattr(user_response, "user", None)
    if user is None:
        raise TenantResolutionError(NOT_AUTHENTICATED, status.HTTP_401_UNAUTHORIZED)

    try:
        company_id = RouteRepository(client).get_company_id(user.id)
    except Exception as e:
        logging.error(f"Failed to resolve company for user {user.id}: {e}")
        raise TenantResolutionError(NO_COMPANY, status.HTTP_403_FORBIDDEN) from e
    if not company_id:
        raise TenantResolutionError(NO_COMPANY, status.HTTP_403_FORBIDDEN)
    return str(company_id)
