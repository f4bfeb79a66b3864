from fastapi import APIRouter, Depends, HTTPException, Response, status

from mealops.core.dependencies import get_current_user, get_user_repository
from mealops.models.user import StaffUser
from mealops.repositories.user_repository import UserRepository
from mealops.schemas.auth import AuthResponse, RefreshTokenRequest, StaffUserRead, UserLogin
from mealops.services.auth_service import auth_service

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=AuthResponse)
async def login(user: UserLogin, repo: UserRepository = Depends(get_user_repository)):
    """Аутентификация сотрудника и выдача JWT токенов"""
    authenticated_user = await auth_service.authenticate_user(repo, user)
    if not authenticated_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Неверный email или пароль",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await auth_service.issue_tokens(repo, authenticated_user)


@router.post("/refresh", response_model=AuthResponse)
async def refresh_token(request: RefreshTokenRequest, repo: UserRepository = Depends(get_user_repository)):
    """Новая пара токенов взамен refresh token (старый больше не действует)"""
    tokens = await auth_service.rotate_refresh_token(repo, request.refresh_token)
    if not tokens:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired refresh token"
        )
    return tokens


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(request: RefreshTokenRequest, repo: UserRepository = Depends(get_user_repository)):
    await auth_service.logout_user(repo, request.refresh_token)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=StaffUserRead)
async def me(current_user: StaffUser = Depends(get_current_user)):
    return current_user
