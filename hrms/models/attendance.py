"""
Attendance Model
Database schema for attendance records
"""
from datetime import datetime
from typing import Optional, List
from pydantic import BaseModel, Field
from beanie import Document, PydanticObjectId
from enum import Enum
from pymongo import ASCENDING, IndexModel


class AttendanceStatus(str, Enum):
    """Attendance status"""
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"
    HALF_DAY = "half_day"
    ON_LEAVE = "on_leave"
    WORK_FROM_HOME = "work_from_home"


# Day weight of each status when counting days present
PRESENT_DAY_WEIGHTS = {
    AttendanceStatus.PRESENT: 1.0,
    AttendanceStatus.LATE: 1.0,
    AttendanceStatus.WORK_FROM_HOME: 1.0,
    AttendanceStatus.HALF_DAY: 0.5,
}


class Attendance(Document):
    """Attendance record document"""

    employee_id: str = Field(..., index=True)
    employee_name: str
    date: datetime = Field(..., index=True)

    check_in_time: Optional[datetime] = None
    check_out_time: Optional[datetime] = None

    # Calculated Fields
    hours_worked: float = 0.0
    overtime_hours: float = 0.0

    status: AttendanceStatus = AttendanceStatus.ABSENT
    is_late: bool = False
    is_early_departure: bool = False
    is_manual_entry: bool = False
    remarks: Optional[str] = None

    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "attendance"
        indexes = [
            "employee_id",
            "date",
            IndexModel([("employee_id", ASCENDING), ("date", ASCENDING)]),
            "status",
        ]


class AttendanceCheckIn(BaseModel):
    """Schema for check-in request"""
    remarks: Optional[str] = None


class AttendanceCheckOut(BaseModel):
    """Schema for check-out request"""
    remarks: Optional[str] = None


class ManualAttendance(BaseModel):
    """Schema for an HR-entered attendance record"""
    employee_id: str
    date: datetime
    status: AttendanceStatus
    hours_worked: float = Field(0.0, ge=0)
    overtime_hours: float = Field(0.0, ge=0)
    remarks: Optional[str] = None


class AttendanceResponse(BaseModel):
    """Schema for attendance response"""
    id: PydanticObjectId
    employee_id: str
    employee_name: str
    date: datetime
    check_in_time: Optional[datetime]
    check_out_time: Optional[datetime]
    hours_worked: float
    overtime_hours: float
    status: AttendanceStatus
    is_late: bool

    class Config:
        from_attributes = True


class AttendanceListResponse(BaseModel):
    """Schema for attendance list response"""
    total: int
    records: List[AttendanceResponse]
