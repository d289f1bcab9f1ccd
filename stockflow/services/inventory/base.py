"""
Base inventory service with shared request context.

Every inventory service is constructed per request with the database session,
the tenant (channel) every query is scoped to, and the acting user recorded
on writes.
"""
from __future__ import annotations

import logging

from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


class BaseInventoryService:
    """
    Base service class with shared inventory functionality.

    All inventory-related services inherit from this class
    to share database session and channel/actor context.
    """

    def __init__(self, db: Session, channel_id: int, actor_id: int | None = None):
        """
        Initialize the base inventory service.

        Args:
            db: SQLAlchemy database session
            channel_id: Tenant every read and write is scoped to
            actor_id: ID of the authenticated user performing writes
        """
        self._db = db
        self._channel_id = channel_id
        self._actor_id = actor_id

    @property
    def db(self) -> Session:
        return self._db

    @property
    def channel_id(self) -> int:
        return self._channel_id

    @property
    def actor_id(self) -> int | None:
        return self._actor_id
