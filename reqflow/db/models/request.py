"""Request workflow database models.

Stores requests and their append-only transition history.
"""

from datetime import datetime
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey, Text
from sqlalchemy.orm import relationship

from reqflow.db.base import Base


class Request(Base):
    """
    Current state of a request.

    ``manager_id`` is copied from the assignee at creation time and never
    follows later changes to the directory.
    """
    __tablename__ = "requests"
    __table_args__ = (
        CheckConstraint("assigned_to <> created_by", name="ck_requests_not_self_assigned"),
        CheckConstraint(
            "status IN ('PENDING_MANAGER_APPROVAL', 'MANAGER_APPROVED', 'MANAGER_REJECTED', "
            "'ACTION_IN_PROGRESS', 'CLOSED')",
            name="ck_requests_status",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)

    # Parties
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    assigned_to = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    manager_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Workflow state
    status = Column(String(50), nullable=False, default="PENDING_MANAGER_APPROVAL", index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    creator = relationship("User", foreign_keys=[created_by])
    assignee = relationship("User", foreign_keys=[assigned_to])
    manager = relationship("User", foreign_keys=[manager_id])
    history = relationship(
        "RequestHistory",
        back_populates="request",
        order_by="RequestHistory.id",
    )

    def __repr__(self) -> str:
        return f"<Request {self.id} [{self.status}]>"


class RequestHistory(Base):
    """
    Records every status change of a request.

    Rows are only ever inserted; the monotonic ``id`` orders entries that
    share a timestamp.
    """
    __tablename__ = "request_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    request_id = Column(Integer, ForeignKey("requests.id"), nullable=False, index=True)

    # Actor
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)

    # Resulting status, or REQUEST_CREATED for the initial entry
    action = Column(String(50), nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True)

    # Relationships
    request = relationship("Request", back_populates="history")
    user = relationship("User")

    def __repr__(self) -> str:
        return f"<RequestHistory {self.request_id}: {self.action}>"
