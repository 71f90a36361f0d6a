"""
Payslip Model
Database schema for monthly payslips
"""
from datetime import datetime
from typing import Optional, Dict
from pydantic import BaseModel, Field
from beanie import Document
from pymongo import ASCENDING, IndexModel


class PayslipBankDetails(BaseModel):
    account_number: str = ""
    bank_name: str = ""
    ifsc_code: str = ""
    pan_number: str = ""
    uan_number: str = ""
    pf_number: str = ""
    payment_mode: str = "Bank Transfer"


class PayslipAttendance(BaseModel):
    standard_working_days: int
    days_present: Optional[float] = None
    overtime_hours: float = 0.0


class Payslip(Document):
    """Immutable rendering snapshot of one payroll record"""
    employee_id: str
    employee_name: str
    designation: str
    department: str
    joining_date: datetime

    month: int
    year: int
    pay_period: str  # e.g. "2025-08"
    financial_year: str
    payroll_id: Optional[str] = None

    earnings: Dict[str, float]
    gross_pay: float
    deductions: Dict[str, float]
    total_deductions: float
    employer_contributions: Dict[str, float] = {}
    attendance: PayslipAttendance
    bank_details: PayslipBankDetails

    net_pay: float
    net_pay_words: str

    generated_at: datetime = Field(default_factory=datetime.utcnow)
    email_sent: bool = False
    email_sent_at: Optional[datetime] = None

    class Settings:
        name = "payslips"
        indexes = [
            IndexModel(
                [("employee_id", ASCENDING), ("month", ASCENDING), ("year", ASCENDING)],
                unique=True,
            ),
        ]


class GeneratePayslipRequest(BaseModel):
    employee_id: str
    month: int = Field(..., ge=1, le=12)
    year: int = Field(..., ge=2000)
