from sqlalchemy import Column, Integer, String, Boolean, Date, DateTime
from sqlalchemy.sql import func

from catechism_app.core.database import Base


class AcademicYear(Base):
    __tablename__ = "academic_years"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False)
    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)
    semester1_start = Column(Date, nullable=True)
    semester1_end = Column(Date, nullable=True)
    semester2_start = Column(Date, nullable=True)
    semester2_end = Column(Date, nullable=True)
    total_weeks = Column(Integer, nullable=True)
    semester1_weeks = Column(Integer, nullable=True)
    semester2_weeks = Column(Integer, nullable=True)
    is_current = Column(Boolean, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
