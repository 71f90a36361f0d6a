"""
Recruitment Routes
Job postings and candidate applications
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from typing import List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId

from hrms.models.employee import Employee
from hrms.models.recruitment import (
    Application,
    ApplicationCreate,
    ApplicationStatus,
    ApplicationStatusUpdate,
    JobOpening,
    JobOpeningCreate,
    JobOpeningUpdate,
    JobStatus,
)
from hrms.api.routes.auth import HR_ROLES, get_current_employee, require_roles

router = APIRouter()


async def get_job_or_404(job_id: PydanticObjectId) -> JobOpening:
    job = await JobOpening.get(job_id)
    if not job:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Job opening not found")
    return job


@router.get("/jobs", response_model=List[JobOpening])
async def list_jobs(
    status_filter: Optional[JobStatus] = None,
    current_employee: Employee = Depends(get_current_employee)
):
    query = {"status": status_filter.value} if status_filter else {}
    return await JobOpening.find(query).sort("-created_at").to_list()


@router.post("/jobs", response_model=JobOpening)
async def create_job(
    data: JobOpeningCreate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Post a job opening (Admin/HR only)"""
    if data.salary_min and data.salary_max and data.salary_min > data.salary_max:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="salary_min cannot exceed salary_max"
        )
    job = JobOpening(**data.model_dump(), posted_by=current_employee.employee_id)
    await job.insert()
    return job


@router.put("/jobs/{job_id}", response_model=JobOpening)
async def update_job(
    job_id: PydanticObjectId,
    data: JobOpeningUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    job = await get_job_or_404(job_id)
    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(job, field, value)
    if job.status == JobStatus.CLOSED and job.closed_at is None:
        job.closed_at = datetime.utcnow()
    await job.save()
    return job


@router.post("/jobs/{job_id}/close", response_model=JobOpening)
async def close_job(
    job_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    job = await get_job_or_404(job_id)
    job.status = JobStatus.CLOSED
    job.closed_at = datetime.utcnow()
    await job.save()
    return job

@router.post("/applications", response_model=Application)
async def submit_application(data: ApplicationCreate):
    """Submit an application to an open job (public)"""
    try:
        job = await JobOpening.get(PydanticObjectId(data.job_id))
    except InvalidId:
        job = None
    if not job or job.status != JobStatus.OPEN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Job opening is not accepting applications"
        )
    application = Application(**data.model_dump())
    await application.insert()
    return application


@router.get("/jobs/{job_id}/applications", response_model=List[Application])
async def list_applications(
    job_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    await get_job_or_404(job_id)
    return await Application.find(Application.job_id == str(job_id)).sort("-applied_at").to_list()


@router.patch("/applications/{application_id}", response_model=Application)
async def update_application_status(
    application_id: PydanticObjectId,
    data: ApplicationStatusUpdate,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    application = await Application.get(application_id)
    if not application:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Application not found")
    if application.status in (ApplicationStatus.HIRED, ApplicationStatus.REJECTED):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Application already {application.status.value}"
        )
    application.status = data.status
    if data.notes:
        application.notes = data.notes
    application.updated_at = datetime.utcnow()
    await application.save()
    return application
