from __future__ import annotations

import time
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from stockflow.db.session import get_db

router = APIRouter(tags=["health"])


def _check_db(db: Session) -> bool:
    db.execute(text("SELECT 1"))
    return True


@router.get("/healthz")
def healthz(db: Annotated[Session, Depends(get_db)]) -> dict[str, object]:
    """Database round trip; 503 when the store is unreachable."""
    start = time.time()
    try:
        _check_db(db)
    except SQLAlchemyError as exc:
        raise HTTPException(status_code=503, detail="Database connectivity check failed") from exc
    return {"status": "ok", "latency_ms": int((time.time() - start) * 1000)}


@router.get("/live")
def live() -> dict[str, str]:
    """Kubernetes-style liveness endpoint (no dependencies)."""
    return {"status": "alive"}
