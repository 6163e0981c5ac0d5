# Database Models for Ziyara Platform

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, Boolean
from sqlalchemy.orm import declarative_base, relationship
from sqlalchemy.sql import func
import uuid
import enum

Base = declarative_base()

def generate_uuid():
    return str(uuid.uuid4())

# Enums
class UserType(str, enum.Enum):
    OWNER = "owner"
    INFLUENCER = "influencer"
    ADMIN = "admin"


class MainType(str, enum.Enum):
    RESTAURANT = "restaurant"
    CAFE = "cafe"


# Models
class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255))
    user_type = Column(Enum(UserType, values_callable=lambda x: [e.value for e in x], name="usertype"), default=UserType.OWNER)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    branches = relationship("Branch", back_populates="owner", cascade="all, delete-orphan")


class Branch(Base):
    """A physical restaurant/cafe location. Campaigns are matched against its city."""
    __tablename__ = "branches"

    id = Column(String(36), primary_key=True, default=generate_uuid)
    owner_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    name = Column(String(255), nullable=False)
    main_type = Column(Enum(MainType, values_callable=lambda x: [e.value for e in x], name="maintype"), default=MainType.RESTAURANT)
    city = Column(String(100), nullable=False)
    neighborhood = Column(String(100))
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # Relationships
    owner = relationship("User", back_populates="branches")
    campaigns = relationship("Campaign", back_populates="branch")
