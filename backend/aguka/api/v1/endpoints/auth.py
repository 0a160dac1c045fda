from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ....core.database import get_db
from ....services.auth_service import AuthService
from ....services.user_service import UserService
from ....schemas.auth import Token
from ....schemas.user import User, CandidateSignup, EmployerSignup
from ...deps import oauth2_scheme

router = APIRouter()


@router.post("/token", response_model=Token)
async def login_for_access_token(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db)
):
    auth_service = AuthService(db)
    token = auth_service.authenticate_and_create_token(
        form_data.username, form_data.password
    )

    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return token


@router.post("/refresh-token", response_model=Token)
async def refresh_access_token(
    refresh_token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db)
):
    auth_service = AuthService(db)
    new_token_data = auth_service.refresh_token(refresh_token)

    if not new_token_data:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid refresh token or user not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return new_token_data


@router.post("/register/candidate", response_model=User, status_code=status.HTTP_201_CREATED)
async def register_candidate(
    signup: CandidateSignup,
    db: Session = Depends(get_db)
):
    """Create a candidate account with the profile, experience and education from the analyzed résumé."""
    try:
        return UserService(db).create_candidate(signup)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@router.post("/register/employer", response_model=User, status_code=status.HTTP_201_CREATED)
async def register_employer(
    signup: EmployerSignup,
    db: Session = Depends(get_db)
):
    try:
        return UserService(db).create_employer(signup)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
