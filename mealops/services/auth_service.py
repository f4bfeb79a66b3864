import logging
import secrets
from datetime import datetime, timedelta
from typing import Optional

import bcrypt
from fastapi import HTTPException
from jose import jwt, JWTError

from mealops.core.config import settings
from mealops.models.user import StaffUser
from mealops.repositories.user_repository import UserRepository
from mealops.schemas.auth import AuthResponse, StaffUserCreate, UserLogin

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self):
        self.SECRET_KEY = settings.SECRET_KEY
        self.REFRESH_SECRET_KEY = settings.REFRESH_SECRET_KEY
        self.ALGORITHM = settings.ALGORITHM
        self.ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES
        self.REFRESH_TOKEN_EXPIRE_DAYS = settings.REFRESH_TOKEN_EXPIRE_DAYS

    def hash_password(self, password: str) -> str:
        salt = bcrypt.gensalt()
        hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
        return hashed.decode('utf-8')  # bytes -> str для хранения в БД

    def verify_password(self, plain_password: str, hashed_password: Optional[str]) -> bool:
        if not hashed_password:
            return False
        try:
            return bcrypt.checkpw(
                plain_password.encode('utf-8'),
                hashed_password.encode('utf-8')
            )
        except ValueError:
            # Строка в БД не является bcrypt-хэшем
            return False

    def create_access_token(self, data: dict, expires_delta: Optional[timedelta] = None):
        to_encode = data.copy()
        if expires_delta:
            expire = datetime.utcnow() + expires_delta
        else:
            expire = datetime.utcnow() + timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)
        to_encode.update({"exp": expire})
        return jwt.encode(to_encode, self.SECRET_KEY, algorithm=self.ALGORITHM)

    def create_refresh_token(self, data: dict):
        to_encode = data.copy()
        expire = datetime.utcnow() + timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS)
        # jti делает токены, выпущенные в одну секунду, различимыми
        to_encode.update({"exp": expire, "jti": secrets.token_hex(8)})
        return jwt.encode(to_encode, self.REFRESH_SECRET_KEY, algorithm=self.ALGORITHM)

    def decode_refresh_token(self, refresh_token: str) -> Optional[int]:
        try:
            payload = jwt.decode(refresh_token, self.REFRESH_SECRET_KEY, algorithms=[self.ALGORITHM])
        except JWTError:
            return None
        user_id = payload.get("sub")
        return int(user_id) if user_id is not None else None

    async def authenticate_user(self, repo: UserRepository, login_data: UserLogin) -> Optional[StaffUser]:
        user = await repo.get_by_email(login_data.email)
        if not user or not self.verify_password(login_data.password, user.password):
            return None
        return user

    async def issue_tokens(self, repo: UserRepository, user: StaffUser) -> AuthResponse:
        claims = {"sub": str(user.id), "role": user.role.value}
        access_token = self.create_access_token(data=claims)
        refresh_token = self.create_refresh_token(data={"sub": str(user.id)})
        await repo.save_refresh_token(
            user,
            refresh_token,
            datetime.utcnow() + timedelta(days=self.REFRESH_TOKEN_EXPIRE_DAYS),
        )
        return AuthResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            role=user.role.value,
        )

    async def rotate_refresh_token(self, repo: UserRepository, refresh_token: str) -> Optional[AuthResponse]:
        """
        Выдать новую пару токенов взамен refresh-токена.

        Подпись верна, но токена нет в БД, значит, он уже был использован:
        аннулируем refresh-токен сотрудника целиком.
        """
        user_id = self.decode_refresh_token(refresh_token)
        if user_id is None:
            return None

        user = await repo.get_by_refresh_token(refresh_token)
        if user is None:
            victim = await repo.get_by_id(user_id)
            if victim is not None:
                logger.warning(f"Повторное использование refresh-токена сотрудника {victim.email}")
                await repo.revoke_refresh_token(victim)
            return None

        if not user.refresh_token_expires or user.refresh_token_expires < datetime.utcnow():
            return None

        return await self.issue_tokens(repo, user)

    async def logout_user(self, repo: UserRepository, refresh_token: str) -> bool:
        user_id = self.decode_refresh_token(refresh_token)
        if user_id is None:
            return False
        user = await repo.get_by_id(user_id)
        if user is None:
            return False
        await repo.revoke_refresh_token(user)
        return True

    async def create_staff_user(self, repo: UserRepository, user_data: StaffUserCreate) -> StaffUser:
        if await repo.get_by_email(user_data.email):
            raise HTTPException(status_code=400, detail="A staff user with this email already exists")

        new_user = StaffUser(
            email=user_data.email,
            name=user_data.name,
            password=self.hash_password(user_data.password),
            role=user_data.role,
            created_at=datetime.utcnow(),
        )
        return await repo.create_user(new_user)


# Экземпляр сервиса для импорта
auth_service = AuthService()
