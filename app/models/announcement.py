import uuid
import enum
from datetime import datetime
from sqlalchemy import CheckConstraint, Column, String, Date, DateTime, Float, Integer, Text
from app.database import Base


class AnnouncementSpecies(str, enum.Enum):
    DOG = "DOG"
    CAT = "CAT"
    BIRD = "BIRD"
    RABBIT = "RABBIT"
    RODENT = "RODENT"
    REPTILE = "REPTILE"
    OTHER = "OTHER"


class AnnouncementSex(str, enum.Enum):
    MALE = "MALE"
    FEMALE = "FEMALE"
    UNKNOWN = "UNKNOWN"


class AnnouncementStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    FOUND = "FOUND"
    CLOSED = "CLOSED"


class Announcement(Base):
    __tablename__ = "announcements"
    __table_args__ = (
        CheckConstraint(
            "(location_latitude IS NULL) = (location_longitude IS NULL)",
            name="ck_announcements_location_pair",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    pet_name = Column(String(100), nullable=True)
    species = Column(String(20), nullable=False)
    breed = Column(String(100), nullable=True)
    sex = Column(String(20), nullable=False)
    age = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    microchip_number = Column(String(20), nullable=True)
    location_latitude = Column(Float, nullable=True)
    location_longitude = Column(Float, nullable=True)
    last_seen_date = Column(Date, nullable=False)
    email = Column(String(254), nullable=False)
    phone = Column(String(30), nullable=False)
    photo_url = Column(String(512), nullable=True)  # "/images/<storage key>", set by photo upload
    status = Column(String(20), nullable=False, default=AnnouncementStatus.ACTIVE.value)
    reward = Column(String(100), nullable=True)
    management_password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)
