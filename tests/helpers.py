"""Shared fixtures for the test suite: databases, images, seeded announcements."""
import io
import os
import tempfile
from datetime import date, datetime, timedelta

from jose import jwt
from PIL import Image
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.auth import ADMIN_ROLE, hash_password
from app.config import get_settings
from app.database import Base
from app.models.announcement import Announcement

TEST_PASSWORD = "123456"

VALID_PAYLOAD = {
    "species": "DOG",
    "sex": "MALE",
    "lastSeenDate": "2024-01-01",
    "email": "a@b.com",
    "phone": "123456789",
}


def memory_session_factory() -> sessionmaker:
    """One shared in-memory SQLite connection; fine for sequential tests."""
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def file_session_factory(directory: str) -> sessionmaker:
    """File-backed SQLite with a real pool, so concurrent sessions get their own connections."""
    path = os.path.join(directory, "test.db")
    engine = create_engine(f"sqlite+pysqlite:///{path}", connect_args={"check_same_thread": False, "timeout": 30})
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)


def image_bytes(fmt: str = "PNG", color=(200, 30, 30), size=(4, 4)) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", size, color).save(buf, format=fmt)
    return buf.getvalue()


def seed_announcement(session_factory, password: str = TEST_PASSWORD, **overrides) -> str:
    fields = dict(
        species="DOG",
        sex="MALE",
        last_seen_date=date(2025, 11, 19),
        email="test@example.pl",
        phone="+48 600 700 800",
        management_password_hash=hash_password(password),
    )
    fields.update(overrides)
    with session_factory() as db:
        row = Announcement(**fields)
        db.add(row)
        db.commit()
        return row.id


def get_photo_url(session_factory, announcement_id: str) -> str | None:
    with session_factory() as db:
        row = db.get(Announcement, announcement_id)
        return row.photo_url if row else None


def temp_dir() -> tempfile.TemporaryDirectory:
    return tempfile.TemporaryDirectory()


def access_token(role: str = ADMIN_ROLE, expire_minutes: int = 60) -> str:
    """Bearer token shaped like the ones the identity provider issues."""
    settings = get_settings()
    payload = {
        "sub": "ops",
        "role": role,
        "exp": datetime.utcnow() + timedelta(minutes=expire_minutes),
        "type": "access",
    }
    return jwt.encode(payload, settings.secret_key, algorithm=settings.algorithm)
