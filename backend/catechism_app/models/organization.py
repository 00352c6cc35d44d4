from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from catechism_app.core.database import Base


class Sector(Base):
    """Catechism program division (Chiên con, Ấu nhi, Thiếu nhi, Nghĩa sĩ)."""
    __tablename__ = "sectors"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    code = Column(String(50), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())


class CatechismClass(Base):
    """A class inside a sector.

    Older imports filled in free-text sector/branch columns instead of
    ``sector_id``; they are kept so the sector can still be inferred.
    """
    __tablename__ = "classes"

    id = Column(String(64), primary_key=True, index=True)
    name = Column(String(255), nullable=True)
    code = Column(String(50), nullable=True)
    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=True)

    # Denormalized labels from legacy imports
    sector = Column(String(255), nullable=True)
    sector_code = Column(String(50), nullable=True)
    sector_name = Column(String(255), nullable=True)
    branch = Column(String(255), nullable=True)
    branch_code = Column(String(50), nullable=True)
    branch_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        Index('idx_class_sector', 'sector_id'),
    )


class Teacher(Base):
    """Catechist roster row, assigned to a class and/or a sector label."""
    __tablename__ = "teachers"

    id = Column(String(64), primary_key=True, index=True)
    saint_name = Column(String(100), nullable=True)
    full_name = Column(String(255), nullable=True)
    phone = Column(String(30), nullable=True)
    class_id = Column(String(64), nullable=True)
    class_name = Column(String(255), nullable=True)
    sector = Column(String(255), nullable=True)


class UserProfile(Base):
    """Login profile; only counted for the dashboard's user total."""
    __tablename__ = "user_profiles"

    id = Column(String(64), primary_key=True, index=True)
    full_name = Column(String(255), nullable=True)
    saint_name = Column(String(100), nullable=True)
    role = Column(String(50), nullable=True)
    sector = Column(String(255), nullable=True)
    class_id = Column(String(64), nullable=True)
