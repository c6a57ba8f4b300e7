from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from reqflow.api.deps import get_db
from reqflow.api.schemas.auth import RefreshRequest, Token, UserCreate, UserLogin, UserResponse
from reqflow.core.accounts import AccountService

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def signup(user_in: UserCreate, db: Session = Depends(get_db)):
    """Register a manager, or an employee reporting to an existing manager."""
    return AccountService(db).sign_up(
        name=user_in.name,
        email=user_in.email,
        password=user_in.password,
        role=user_in.role,
        manager_id=user_in.manager_id,
    )


@router.post("/login", response_model=Token)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """Login and get an access/refresh token pair."""
    accounts = AccountService(db)
    user = accounts.authenticate(credentials.email, credentials.password)
    return Token(**accounts.issue_tokens(user))


@router.post("/refresh", response_model=Token)
def refresh(body: RefreshRequest, db: Session = Depends(get_db)):
    """Exchange a refresh token for a new access token."""
    return Token(access_token=AccountService(db).refresh(body.refresh_token))
