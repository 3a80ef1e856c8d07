# backend/fitstudio/repositories/cancellation_request_repository.py
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from ..core.exceptions import RepositoryException
from ..models.cancellation_request import CancellationRequest
from .base_repository import BaseRepository


class CancellationRequestRepository(BaseRepository[CancellationRequest]):
    def __init__(self, db: Session):
        super().__init__(db, CancellationRequest)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(
            joinedload(CancellationRequest.booking),
            joinedload(CancellationRequest.requester),
        )

    def list_requests(
        self, status: Optional[str] = None, skip: int = 0, limit: int = 50
    ) -> List[CancellationRequest]:
        """Requests newest first, optionally filtered by status."""
        try:
            query = self._apply_eager_loading(self._build_query())
            if status is not None:
                query = query.filter(CancellationRequest.status == status)
            return (
                query.order_by(CancellationRequest.created_at.desc(), CancellationRequest.id.desc())
                .offset(skip)
                .limit(limit)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing cancellation requests: {str(e)}")
            raise RepositoryException(f"Failed to list cancellation requests: {str(e)}") from e
