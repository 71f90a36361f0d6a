"""
Shift Routes
Shift configuration endpoints
"""
from fastapi import APIRouter, HTTPException, Depends, status
from typing import List

from beanie import PydanticObjectId

from hrms.models.employee import Employee
from hrms.models.shift import Shift, ShiftCreate, ShiftUpdate
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles

router = APIRouter()


async def get_shift_or_404(shift_id: PydanticObjectId) -> Shift:
    shift = await Shift.get(shift_id)
    if not shift:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shift not found")
    return shift


@router.get("/", response_model=List[Shift])
async def list_shifts(current_employee: Employee = Depends(get_current_employee)):
    return await Shift.find_all().sort("start_time").to_list()


@router.post("/", response_model=Shift)
async def create_shift(
    data: ShiftCreate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Create a shift (Admin/HR only)"""
    shift = Shift(**data.model_dump())
    await shift.insert()
    return shift


@router.put("/{shift_id}", response_model=Shift)
async def update_shift(
    shift_id: PydanticObjectId,
    data: ShiftUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    shift = await get_shift_or_404(shift_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(shift, field, value)
    await shift.save()
    return shift


@router.delete("/{shift_id}")
async def delete_shift(
    shift_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Delete a shift no employee is assigned to"""
    shift = await get_shift_or_404(shift_id)
    assigned = await Employee.find(Employee.shift_id == str(shift_id)).count()
    if assigned:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Shift is assigned to {assigned} employees"
        )
    await shift.delete()
    return {"message": "Shift deleted"}
