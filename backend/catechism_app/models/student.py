from sqlalchemy import Column, Integer, String, Date, DateTime, Numeric, Index, Text
from sqlalchemy.sql import func

from catechism_app.core.database import Base


class Student(Base):
    __tablename__ = "students"

    id = Column(String(64), primary_key=True, index=True)
    class_id = Column(String(64), nullable=True, index=True)
    saint_name = Column(String(100), nullable=True)
    full_name = Column(String(255), nullable=True)
    student_code = Column(String(50), nullable=True)
    status = Column(String(20), nullable=True)  # "ACTIVE", "DELETED"
    notes = Column(Text, nullable=True)

    # Catechism grades (0-10)
    academic_hk1_fortyfive = Column(Numeric(4, 2), nullable=True)
    academic_hk1_exam = Column(Numeric(4, 2), nullable=True)
    academic_hk2_fortyfive = Column(Numeric(4, 2), nullable=True)
    academic_hk2_exam = Column(Numeric(4, 2), nullable=True)

    # Legacy per-semester attendance counters
    attendance_hk1_present = Column(Integer, nullable=True)
    attendance_hk1_total = Column(Integer, nullable=True)
    attendance_hk2_present = Column(Integer, nullable=True)
    attendance_hk2_total = Column(Integer, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())


class AttendanceRecordRow(Base):
    """One attendance event row as stored; the engine reads it as an AttendanceRecord."""
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    student_id = Column(String(64), nullable=False)
    event_date = Column(Date, nullable=True)
    weekday = Column(String(50), nullable=True)
    status = Column(String(20), nullable=True)

    # Snapshot of the student's placement at the time of the event
    student_class_id = Column(String(64), nullable=True)
    student_class_name = Column(String(255), nullable=True)
    student_sector_id = Column(Integer, nullable=True)
    student_sector_code = Column(String(50), nullable=True)
    student_sector_name = Column(String(255), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index('idx_attendance_student_date', 'student_id', 'event_date'),
        Index('idx_attendance_event_date', 'event_date'),
    )
