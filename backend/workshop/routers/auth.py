# backend/workshop/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from ..core.db import get_db
from ..core.security import hash_password, verify_password, create_access_token, get_current_user
from ..models.user import AppUser, ALLOWED_ROLES
from ..schemas.user import UserCreate, UserRead, Token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(payload: UserCreate, db: Session = Depends(get_db)):
    username = payload.username.strip()
    full_name = payload.full_name.strip() if payload.full_name else None
    email = payload.email.strip().lower() if payload.email else None

    role = (payload.role or "viewer").strip().lower()
    if role not in ALLOWED_ROLES:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                            detail=f"Invalid role '{role}'. Allowed: {list(ALLOWED_ROLES)}")

    if db.query(AppUser).filter(AppUser.Username == username).first():
        raise HTTPException(status_code=409, detail="username already exists")
    if email and db.query(AppUser).filter(AppUser.Email == email).first():
        raise HTTPException(status_code=409, detail="email already exists")

    user = AppUser(
        Username=username,
        FullName=full_name,
        Email=email,
        Role=role,
        IsActive=True,
        HashedPassword=hash_password(payload.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@router.post("/login", response_model=Token)
def login(form: OAuth2PasswordRequestForm = Depends(), db: Session = Depends(get_db)):
    user = db.query(AppUser).filter(AppUser.Username == form.username.strip()).first()
    if not user or not user.IsActive or not verify_password(form.password, user.HashedPassword):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="invalid username or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    token = create_access_token(sub=user.Username, role=user.Role)
    return {"access_token": token, "token_type": "bearer"}


@router.get("/me", response_model=UserRead)
def me(current: AppUser = Depends(get_current_user)):
    return current
