"""
Compliance Report Model
Aggregated statutory totals for a report type and financial year
"""
from datetime import datetime
from enum import Enum
from typing import Optional, List
from pydantic import BaseModel, Field
from beanie import Document


class ReportType(str, Enum):
    PF = "pf"
    ESI = "esi"
    PROFESSIONAL_TAX = "professional_tax"
    TDS = "tds"


class ComplianceLine(BaseModel):
    """One employee's figures in a compliance report"""
    employee_id: str
    name: str
    department: str = ""
    months: int = 0
    monthly_amount: float = 0.0
    annual_amount: float = 0.0
    employer_contribution: float = 0.0
    eligible: Optional[bool] = None
    taxable_income: Optional[float] = None


class ComplianceReport(Document):
    """Generated compliance report"""
    report_type: ReportType
    financial_year: str
    lines: List[ComplianceLine] = []
    employee_count: int = 0
    total_amount: float = 0.0
    total_employer_contribution: float = 0.0
    summary: str = ""
    status: str = "generated"
    generated_by: Optional[str] = None

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    downloaded_at: Optional[datetime] = None

    class Settings:
        name = "compliance_reports"
        indexes = ["report_type", "financial_year"]


class ComplianceReportRequest(BaseModel):
    report_type: ReportType
    financial_year: str = Field(..., pattern=r"^\d{4}-\d{4}$")
