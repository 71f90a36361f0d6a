"""
Shift Model
Working-hour configuration assigned to employees
"""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field
from beanie import Document


class Shift(Document):
    """Shift document model"""
    name: str
    start_time: str  # HH:MM
    end_time: str  # HH:MM
    break_duration: int = 60  # minutes
    standard_hours: float = 8.0
    grace_time: int = 10  # minutes
    half_day_threshold: float = 4.0
    overtime_threshold: float = 8.0
    is_night_shift: bool = False
    is_flexible: bool = False

    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "shifts"


class ShiftCreate(BaseModel):
    """Schema for creating a shift"""
    name: str
    start_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    end_time: str = Field(..., pattern=r"^\d{2}:\d{2}$")
    break_duration: int = Field(60, ge=0)
    standard_hours: float = Field(8.0, gt=0)
    grace_time: int = Field(10, ge=0)
    half_day_threshold: float = Field(4.0, ge=0)
    overtime_threshold: float = Field(8.0, gt=0)
    is_night_shift: bool = False
    is_flexible: bool = False


class ShiftUpdate(BaseModel):
    """Schema for updating a shift"""
    name: Optional[str] = None
    start_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    end_time: Optional[str] = Field(None, pattern=r"^\d{2}:\d{2}$")
    break_duration: Optional[int] = Field(None, ge=0)
    standard_hours: Optional[float] = Field(None, gt=0)
    grace_time: Optional[int] = Field(None, ge=0)
    half_day_threshold: Optional[float] = Field(None, ge=0)
    overtime_threshold: Optional[float] = Field(None, gt=0)
    is_night_shift: Optional[bool] = None
    is_flexible: Optional[bool] = None
