from .organization import Sector, CatechismClass, Teacher, UserProfile
from .student import Student, AttendanceRecordRow
from .academic_year import AcademicYear

__all__ = [
    "Sector",
    "CatechismClass",
    "Teacher",
    "UserProfile",
    "Student",
    "AttendanceRecordRow",
    "AcademicYear",
]
