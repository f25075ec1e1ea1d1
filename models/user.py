from models.base_model import Base, BaseModel
from sqlalchemy import Column, String, Text
from sqlalchemy.orm import validates

from utils.security import hash_password


class User(BaseModel, Base):
    __tablename__ = "users"
    username = Column(String(64), nullable=False, unique=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)
    full_name = Column(String(255), nullable=False)
    avatar = Column(String(1024), nullable=False)
    cover_image = Column(String(1024), nullable=True, default="")
    password_hash = Column(String(255), nullable=False)
    # Single live refresh token per user; NULL means logged out
    refresh_token = Column(Text, nullable=True)

    @validates("username", "email")
    def _normalize_identity(self, key, value):
        return value.strip().lower() if isinstance(value, str) else value

    @validates("full_name")
    def _strip_name(self, key, value):
        return value.strip() if isinstance(value, str) else value

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @password.setter
    def password(self, plaintext: str):
        self.password_hash = hash_password(plaintext)
