"""Persistence adapters for the request workflow.

``RequestStore`` owns the requests table, ``HistoryLedger`` appends to the
request history and ``Directory`` resolves users. All three share one
SQLAlchemy session so that a status write and its ledger entry commit
together inside ``RequestStore.transaction()``.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, NamedTuple, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from reqflow.core.logger import get_logger
from reqflow.db.models import Request, RequestHistory, User

from .errors import ConflictError, NotFound, StoreUnavailable, WorkflowError
from .states import INITIAL_STATE, RequestStatus, Role

logger = get_logger(__name__)


@contextmanager
def _reporting_store_errors(db: Session, operation: str) -> Iterator[None]:
    """Report a database error raised by a read as ``StoreUnavailable``."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.error("%s failed: %s", operation, e)
        raise StoreUnavailable("Request store is unavailable") from e


class RequestStore:
    """Reads and writes request rows."""

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def transaction(self) -> Iterator[None]:
        """
        Run the enclosed writes as one unit of work.

        Commits on success. Any error rolls back everything written inside
        the block; database errors are reported as ``StoreUnavailable``.
        """
        try:
            yield
            self.db.commit()
        except WorkflowError:
            self.db.rollback()
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error("Request store transaction failed: %s", e)
            raise StoreUnavailable("Request store is unavailable, nothing was saved") from e
        except Exception:
            self.db.rollback()
            raise

    def get(self, request_id: int, *, for_update: bool = False) -> Request:
        """
        Fetch a request by ID, always reading current database state.

        Raises:
            NotFound: If no request has this ID
        """
        with _reporting_store_errors(self.db, "Reading request"):
            query = self.db.query(Request).filter(Request.id == request_id).populate_existing()
            if for_update:
                query = query.with_for_update()
            request = query.first()

        if request is None:
            raise NotFound(f"Request {request_id} not found")
        return request

    def create(
        self,
        *,
        title: str,
        description: str,
        created_by: int,
        assigned_to: int,
        manager_id: int,
    ) -> Request:
        """Insert a new request in the initial state."""
        now = datetime.utcnow()
        request = Request(
            title=title,
            description=description,
            created_by=created_by,
            assigned_to=assigned_to,
            manager_id=manager_id,
            status=INITIAL_STATE.value,
            created_at=now,
            updated_at=now,
        )
        self.db.add(request)
        self.db.flush()
        return request

    def transition(
        self,
        request_id: int,
        expected_status: RequestStatus,
        new_status: RequestStatus,
    ) -> Request:
        """
        Compare-and-swap the status of a request.

        The row is only updated if its status is still ``expected_status``.

        Raises:
            ConflictError: If another writer changed the status first
        """
        result = self.db.execute(
            update(Request)
            .where(Request.id == request_id, Request.status == expected_status.value)
            .values(status=new_status.value, updated_at=datetime.utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            raise ConflictError(
                f"Request {request_id} is no longer in status {expected_status.value}"
            )
        return self.get(request_id)

    def list_by_predicate(self, *criteria) -> List[Request]:
        """List requests matching all ``criteria``, newest first."""
        with _reporting_store_errors(self.db, "Listing requests"):
            return (
                self.db.query(Request)
                .filter(*criteria)
                .order_by(Request.created_at.desc(), Request.id.desc())
                .all()
            )


class HistoryLedger:
    """Append-only access to request history."""

    def __init__(self, db: Session):
        self.db = db

    def append(self, request_id: int, actor_id: int, action: str) -> RequestHistory:
        """Record one entry. Must be called inside ``RequestStore.transaction()``."""
        entry = RequestHistory(
            request_id=request_id,
            user_id=actor_id,
            action=action,
            created_at=datetime.utcnow(),
        )
        self.db.add(entry)
        self.db.flush()
        return entry

    def entries(self, request_id: int) -> List[RequestHistory]:
        """Entries for a request in append order."""
        with _reporting_store_errors(self.db, "Reading request history"):
            return (
                self.db.query(RequestHistory)
                .filter(RequestHistory.request_id == request_id)
                .order_by(RequestHistory.created_at.asc(), RequestHistory.id.asc())
                .all()
            )


class DirectoryEntry(NamedTuple):
    """What the workflow needs to know about a user."""
    user_id: int
    role: Role
    manager_id: Optional[int]


class Directory:
    """Resolves users from the users table."""

    def __init__(self, db: Session):
        self.db = db

    def resolve(self, user_id: int) -> DirectoryEntry:
        """
        Resolve a user ID to its role and manager.

        Raises:
            NotFound: If the user does not exist
        """
        with _reporting_store_errors(self.db, "Resolving user"):
            user = self.db.query(User).filter(User.id == user_id).first()
        if user is None:
            raise NotFound(f"User {user_id} not found")
        return DirectoryEntry(user_id=user.id, role=Role(user.role), manager_id=user.manager_id)

    def list_by_role(self, role: Role) -> List[User]:
        """All users holding ``role``, ordered by name."""
        with _reporting_store_errors(self.db, "Listing users"):
            return (
                self.db.query(User)
                .filter(User.role == role.value)
                .order_by(User.name.asc(), User.id.asc())
                .all()
            )
