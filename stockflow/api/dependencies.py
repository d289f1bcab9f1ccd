"""Request context: who is acting and for which channel."""
from dataclasses import dataclass
from typing import Annotated, TypeAlias

from fastapi import Depends, Header, HTTPException
from sqlalchemy.orm import Session

from stockflow.core.audit import log_failure
from stockflow.core.security import TokenExpiredError, TokenValidationError, decode_token
from stockflow.db.session import get_db

DbDep: TypeAlias = Annotated[Session, Depends(get_db)]


@dataclass(frozen=True)
class RequestContext:
    actor_id: int
    channel_id: int


def get_request_context(authorization: str = Header(None)) -> RequestContext:
    """
    Resolve the bearer token into the acting user and tenant channel.

    Every inventory query is scoped to ``channel_id``; ``actor_id`` is
    recorded on ledger entries and snapshot writes.
    """
    if not authorization or not authorization.lower().startswith("bearer "):
        log_failure("auth.token.parse", user_id=None, error="missing_token")
        raise HTTPException(status_code=401, detail="Missing token")
    token = authorization.split(" ", 1)[1]
    try:
        payload = decode_token(token)
        return RequestContext(actor_id=int(payload["sub"]), channel_id=int(payload["channel_id"]))
    except TokenExpiredError as exc:
        log_failure("auth.token.expired", user_id=None, error="expired")
        raise HTTPException(status_code=401, detail="Token expired") from exc
    except (TokenValidationError, TypeError, ValueError) as exc:
        log_failure("auth.token.invalid", user_id=None, error="invalid")
        raise HTTPException(status_code=401, detail="Invalid token") from exc


RequestContextDep: TypeAlias = Annotated[RequestContext, Depends(get_request_context)]
