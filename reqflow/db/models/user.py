from datetime import datetime
from sqlalchemy import CheckConstraint, Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from reqflow.db.base import Base


class User(Base):
    """
    Directory record for a manager or an employee.

    Employees point at their manager through ``manager_id``.
    """
    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("role IN ('MANAGER', 'EMPLOYEE')", name="ck_users_role"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False, index=True)  # MANAGER | EMPLOYEE
    manager_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    # Relationships
    manager = relationship("User", remote_side=[id], back_populates="reports")
    reports = relationship("User", back_populates="manager")

    def __repr__(self) -> str:
        return f"<User {self.email} [{self.role}]>"
