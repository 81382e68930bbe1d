"""Caller identity resolution.

Authentication happens upstream (gateway or identity provider); by the time a
request reaches this service the caller's employee id or email is forwarded in
the ``X-User-Id`` header. Authorization is still decided here, through the
role classifier.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Header, HTTPException, status

IDENTITY_HEADER = "X-User-Id"


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller as forwarded by the auth layer."""

    identifier: str


def get_current_identity(
    x_user_id: str | None = Header(default=None, alias=IDENTITY_HEADER),
) -> CallerIdentity:
    """Dependency returning the authenticated caller identity."""

    identifier = (x_user_id or "").strip()
    if not identifier:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing caller identity",
        )
    return CallerIdentity(identifier=identifier)


__all__ = ["CallerIdentity", "IDENTITY_HEADER", "get_current_identity"]
