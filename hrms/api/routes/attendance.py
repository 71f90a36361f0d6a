"""
Attendance Routes
Handles attendance check-in, check-out, and queries
"""
from fastapi import APIRouter, HTTPException, Depends, status
from typing import Optional, Tuple
from datetime import datetime, timedelta

from beanie import PydanticObjectId
from bson.errors import InvalidId

from hrms.models.attendance import (
    Attendance,
    AttendanceCheckIn,
    AttendanceCheckOut,
    AttendanceListResponse,
    AttendanceStatus,
    ManualAttendance,
)
from hrms.models.employee import Employee
from hrms.models.shift import Shift
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles
from hrms.config import settings
from hrms.services.payroll_processing import month_bounds

router = APIRouter()

DEFAULT_SHIFT_START = "09:00"
DEFAULT_SHIFT_END = "18:00"


async def get_employee_shift(employee: Employee) -> Optional[Shift]:
    if not employee.shift_id:
        return None
    try:
        return await Shift.get(PydanticObjectId(employee.shift_id))
    except InvalidId:
        return None


def shift_times(shift: Optional[Shift]) -> Tuple[str, str]:
    if shift:
        return shift.start_time, shift.end_time
    return DEFAULT_SHIFT_START, DEFAULT_SHIFT_END


def overtime_for(hours_worked: float, shift: Optional[Shift]) -> float:
    """Hours beyond the shift's standard hours count as overtime"""
    standard = shift.standard_hours if shift else settings.STANDARD_DAILY_HOURS
    return round(max(0.0, hours_worked - standard), 2)


@router.post("/check-in")
async def check_in(
    request: AttendanceCheckIn,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    Check-in attendance
    """
    today = datetime.utcnow().replace(hour=0, minute=0, second=0, microsecond=0)

    existing = await Attendance.find_one(
        Attendance.employee_id == current_employee.employee_id,
        Attendance.date == today
    )
    if existing:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Attendance already marked for today"
        )

    shift = await get_employee_shift(current_employee)
    shift_start, _ = shift_times(shift)
    grace = shift.grace_time if shift else settings.LATE_ARRIVAL_THRESHOLD_MINUTES

    check_in_time = datetime.utcnow()
    start = datetime.combine(today.date(), datetime.strptime(shift_start, "%H:%M").time())
    is_late = check_in_time > start + timedelta(minutes=grace)

    attendance = Attendance(
        employee_id=current_employee.employee_id,
        employee_name=current_employee.full_name,
        date=today,
        check_in_time=check_in_time,
        is_late=is_late,
        status=AttendanceStatus.LATE if is_late else AttendanceStatus.PRESENT,
        remarks=request.remarks,
    )
    await attendance.insert()

    return {
        "message": "Checked in successfully",
        "attendance_id": str(attendance.id),
        "check_in_time": check_in_time,
        "is_late": is_late,
        "status": attendance.status
    }


@router.post("/check-out")
async def check_out(
    request: AttendanceCheckOut,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    Check-out attendance; hours and overtime are computed against the shift
    """
    attendance = await Attendance.find(
        Attendance.employee_id == current_employee.employee_id,
        Attendance.check_out_time == None
    ).sort("-check_in_time").first_or_none()

    if not attendance or attendance.check_in_time is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="No active check-in found. Please check in first."
        )

    shift = await get_employee_shift(current_employee)
    _, shift_end = shift_times(shift)

    check_out_time = datetime.utcnow()
    hours_worked = round((check_out_time - attendance.check_in_time).total_seconds() / 3600, 2)

    end = datetime.combine(
        attendance.date.date(), datetime.strptime(shift_end, "%H:%M").time()
    )
    attendance.check_out_time = check_out_time
    attendance.hours_worked = hours_worked
    attendance.overtime_hours = overtime_for(hours_worked, shift)
    attendance.is_early_departure = check_out_time < end - timedelta(
        minutes=settings.EARLY_DEPARTURE_THRESHOLD_MINUTES
    )

    half_day_threshold = shift.half_day_threshold if shift else settings.STANDARD_DAILY_HOURS / 2
    if hours_worked < half_day_threshold:
        attendance.status = AttendanceStatus.HALF_DAY

    if request.remarks:
        attendance.remarks = f"{attendance.remarks or ''}\nCheckout: {request.remarks}".strip()
    attendance.updated_at = datetime.utcnow()
    await attendance.save()

    return {
        "message": "Checked out successfully",
        "attendance_id": str(attendance.id),
        "check_out_time": check_out_time,
        "hours_worked": attendance.hours_worked,
        "overtime_hours": attendance.overtime_hours,
        "is_early_departure": attendance.is_early_departure,
        "status": attendance.status
    }


@router.get("/my-attendance", response_model=AttendanceListResponse)
async def get_my_attendance(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    Get attendance records for current employee
    """
    query = {"employee_id": current_employee.employee_id}

    date_range = {}
    if start_date:
        date_range["$gte"] = start_date
    if end_date:
        date_range["$lte"] = end_date
    if date_range:
        query["date"] = date_range

    records = await Attendance.find(query).sort("-date").to_list()

    return {
        "total": len(records),
        "records": records
    }


@router.get("/stats")
async def get_attendance_stats(
    month: Optional[int] = None,
    year: Optional[int] = None,
    employee_id: Optional[str] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    Get monthly attendance statistics; HR may ask for any employee
    """
    if employee_id and employee_id != current_employee.employee_id:
        if current_employee.role not in HR_ROLES:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Cannot view other employee's attendance"
            )
    employee_id = employee_id or current_employee.employee_id

    if not month or not year:
        now = datetime.utcnow()
        month = now.month
        year = now.year
    if not 1 <= month <= 12:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid month")

    start_date, end_date = month_bounds(month, year)
    records = await Attendance.find(
        Attendance.employee_id == employee_id,
        Attendance.date >= start_date,
        Attendance.date < end_date
    ).to_list()

    total_days = len(records)
    present_days = sum(
        1 for r in records if r.status in (AttendanceStatus.PRESENT, AttendanceStatus.LATE)
    )
    total_hours = sum(r.hours_worked or 0 for r in records)

    return {
        "employee_id": employee_id,
        "month": month,
        "year": year,
        "total_days": total_days,
        "present_days": present_days,
        "late_days": sum(1 for r in records if r.is_late),
        "leave_days": sum(1 for r in records if r.status == AttendanceStatus.ON_LEAVE),
        "wfh_days": sum(1 for r in records if r.status == AttendanceStatus.WORK_FROM_HOME),
        "half_days": sum(1 for r in records if r.status == AttendanceStatus.HALF_DAY),
        "absent_days": sum(1 for r in records if r.status == AttendanceStatus.ABSENT),
        "attendance_percentage": round((present_days / total_days * 100) if total_days > 0 else 0, 2),
        "total_hours": round(total_hours, 2),
        "overtime_hours": round(sum(r.overtime_hours or 0 for r in records), 2),
        "average_hours": round(total_hours / total_days if total_days > 0 else 0, 2)
    }


@router.post("/manual")
async def mark_manual_attendance(
    data: ManualAttendance,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Create or correct an attendance record for a day (Admin/HR only)
    """
    employee = await Employee.find_one(Employee.employee_id == data.employee_id)
    if not employee:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Employee not found")

    day = data.date.replace(hour=0, minute=0, second=0, microsecond=0)
    attendance = await Attendance.find_one(
        Attendance.employee_id == data.employee_id,
        Attendance.date == day
    )
    if attendance is None:
        attendance = Attendance(
            employee_id=employee.employee_id,
            employee_name=employee.full_name,
            date=day,
        )

    attendance.status = data.status
    attendance.hours_worked = data.hours_worked
    attendance.overtime_hours = data.overtime_hours
    attendance.is_manual_entry = True
    attendance.remarks = data.remarks or f"Marked by {current_employee.employee_id}"
    attendance.updated_at = datetime.utcnow()
    await attendance.save()

    return {
        "message": "Attendance recorded",
        "attendance_id": str(attendance.id),
        "status": attendance.status
    }
