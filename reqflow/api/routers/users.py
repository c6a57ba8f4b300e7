"""Directory listings."""

from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from reqflow.api.deps import get_current_principal, get_db
from reqflow.api.schemas.auth import DirectoryUserResponse
from reqflow.core.logger import get_logger
from reqflow.core.workflow import Directory, Principal, Role

router = APIRouter(prefix="/users", tags=["users"])
logger = get_logger(__name__)


@router.get("/managers", response_model=List[DirectoryUserResponse])
def list_managers(db: Session = Depends(get_db)):
    """Managers an employee can pick when signing up."""
    managers = Directory(db).list_by_role(Role.MANAGER)
    logger.debug("Fetched %d managers", len(managers))
    return [DirectoryUserResponse.model_validate(m) for m in managers]


@router.get("/employees", response_model=List[DirectoryUserResponse])
def list_employees(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    """Employees a request can be assigned to."""
    employees = Directory(db).list_by_role(Role.EMPLOYEE)
    logger.debug("User %s fetched %d employees", principal.id, len(employees))
    return [DirectoryUserResponse.model_validate(e) for e in employees]
