"""
Compliance Routes
Statutory compliance reports and CSV export
"""
from datetime import datetime
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.responses import Response
from typing import List, Optional

from beanie import PydanticObjectId

from hrms.models.compliance import ComplianceReport, ComplianceReportRequest, ReportType
from hrms.models.employee import Employee
from hrms.api.routes.auth import HR_ROLES, require_roles
from hrms.services.compliance import build_compliance_report, report_to_csv

router = APIRouter()


@router.post("/reports", response_model=ComplianceReport)
async def generate_report(
    request: ComplianceReportRequest,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """
    Generate a PF, ESI, professional tax or TDS report from the
    financial year's payroll records (Admin/HR only)
    """
    return await build_compliance_report(
        request.report_type,
        request.financial_year,
        generated_by=current_employee.employee_id,
    )


@router.get("/reports", response_model=List[ComplianceReport])
async def list_reports(
    report_type: Optional[ReportType] = None,
    financial_year: Optional[str] = None,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    query = {}
    if report_type:
        query["report_type"] = report_type.value
    if financial_year:
        query["financial_year"] = financial_year
    return await ComplianceReport.find(query).sort("-generated_at").to_list()


@router.get("/reports/{report_id}/csv")
async def download_report_csv(
    report_id: PydanticObjectId,
    current_employee: Employee = Depends(require_roles(*HR_ROLES))
):
    """Download a compliance report as CSV"""
    report = await ComplianceReport.get(report_id)
    if not report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not found")

    report.downloaded_at = datetime.utcnow()
    report.status = "downloaded"
    await report.save()

    filename = f"{report.report_type.value}_{report.financial_year}.csv"
    return Response(
        content=report_to_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
