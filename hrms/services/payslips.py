"""
Payslip Service
Payslip snapshots, HTML rendering and amount-in-words formatting
"""
import html
import logging
import os
from datetime import datetime
from typing import Dict, Optional

from num2words import num2words

from hrms.models.employee import Employee
from hrms.models.organization import CompanySettings
from hrms.models.payroll import PayrollRecord, PayrollStatus
from hrms.models.payslip import Payslip, PayslipAttendance, PayslipBankDetails
from hrms.services.payroll_processing import find_payroll_record, process_employee
from hrms.services.statutory import financial_year_for, get_statutory_rules

logger = logging.getLogger(__name__)

TEMPLATE_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "payslips")

EARNING_LABELS = {
    "basic": "Basic Salary",
    "hra": "House Rent Allowance",
    "conveyance": "Conveyance Allowance",
    "medical": "Medical Allowance",
    "special_allowance": "Special Allowance",
    "overtime": "Overtime",
}

DEDUCTION_LABELS = {
    "pf": "Provident Fund",
    "esi": "ESI",
    "professional_tax": "Professional Tax",
    "tds": "Income Tax (TDS)",
    "loan": "Loan Recovery",
    "advance": "Salary Advance",
    "other": "Other Deductions",
}


def amount_in_words(amount: float) -> str:
    """e.g. 74034.13 -> 'Rupees Seventy-Four Thousand And Thirty-Four And Thirteen Paise Only'"""
    rupees = int(amount)
    paise = int(round((amount - rupees) * 100))
    words = f"Rupees {num2words(rupees, lang='en_IN').title()}"
    if paise:
        words += f" And {num2words(paise, lang='en_IN').title()} Paise"
    return f"{words} Only"


def payslip_from_record(employee: Employee, record: PayrollRecord) -> Payslip:
    """Snapshot employee identity and the payroll breakdown into a payslip"""
    earnings = {"basic": record.base_salary, **record.allowances}
    if record.overtime_pay:
        earnings["overtime"] = record.overtime_pay

    bank = employee.bank_details
    return Payslip(
        employee_id=employee.employee_id,
        employee_name=employee.full_name,
        designation=employee.designation,
        department=employee.department,
        joining_date=employee.joining_date,
        month=record.month,
        year=record.year,
        pay_period=f"{record.year}-{record.month:02d}",
        financial_year=record.financial_year,
        payroll_id=str(record.id) if record.id else None,
        earnings=earnings,
        gross_pay=record.gross_pay,
        deductions=dict(record.deductions),
        total_deductions=record.total_deductions,
        employer_contributions=dict(record.employer_contributions),
        attendance=PayslipAttendance(
            standard_working_days=record.standard_working_days,
            days_present=record.days_present,
            overtime_hours=record.overtime_hours,
        ),
        bank_details=PayslipBankDetails(
            account_number=bank.account_number,
            bank_name=bank.bank_name,
            ifsc_code=bank.ifsc_code,
            pan_number=bank.pan_number,
            uan_number=bank.uan_number,
            pf_number=bank.pf_number,
            payment_mode=bank.payment_mode,
        ),
        net_pay=record.net_pay,
        net_pay_words=amount_in_words(record.net_pay),
    )


async def find_payslip(employee_id: str, month: int, year: int) -> Optional[Payslip]:
    return await Payslip.find_one(
        Payslip.employee_id == employee_id,
        Payslip.month == month,
        Payslip.year == year,
    )


async def generate_payslip(
    employee: Employee, month: int, year: int, generated_by: Optional[str] = None
) -> Payslip:
    """
    Payslip for one employee and period.

    Payslips are immutable: an existing one is returned as is. Otherwise the
    payroll record for the period is (re)computed and snapshotted; a paid
    record is snapshotted as stored.
    """
    existing = await find_payslip(employee.employee_id, month, year)
    if existing:
        return existing

    record = await find_payroll_record(employee.employee_id, month, year)
    if record is None or record.status != PayrollStatus.PAID:
        rules = await get_statutory_rules(financial_year_for(month, year))
        record = await process_employee(employee, month, year, rules, processed_by=generated_by)

    payslip = payslip_from_record(employee, record)
    await payslip.insert()
    logger.info(
        "Generated payslip",
        extra={"employee_id": employee.employee_id, "month": month, "year": year},
    )
    return payslip


def _rows(amounts: Dict[str, float], labels: Dict[str, str]) -> str:
    return "\n".join(
        f"<tr><td>{html.escape(labels.get(name, name.replace('_', ' ').title()))}</td>"
        f"<td class=\"amount\">{value:,.2f}</td></tr>"
        for name, value in amounts.items()
    )


def render_payslip_html(payslip: Payslip, company: Optional[CompanySettings] = None) -> str:
    """Fill the payslip template for download or printing"""
    company = company or CompanySettings()
    with open(os.path.join(TEMPLATE_DIR, "payslip.html"), "r", encoding="utf-8") as f:
        template = f.read()

    period = datetime(payslip.year, payslip.month, 1).strftime("%B %Y")
    values = {
        "company_name": html.escape(company.name),
        "company_address": html.escape(company.address),
        "currency": html.escape(company.currency_symbol),
        "period": period,
        "employee_name": html.escape(payslip.employee_name),
        "employee_id": html.escape(payslip.employee_id),
        "designation": html.escape(payslip.designation),
        "department": html.escape(payslip.department),
        "joining_date": payslip.joining_date.strftime("%d %b, %Y"),
        "pan_number": html.escape(payslip.bank_details.pan_number or "-"),
        "uan_number": html.escape(payslip.bank_details.uan_number or "-"),
        "bank_name": html.escape(payslip.bank_details.bank_name or "-"),
        "account_number": html.escape(payslip.bank_details.account_number or "-"),
        "working_days": str(payslip.attendance.standard_working_days),
        "days_present": (
            f"{payslip.attendance.days_present:g}"
            if payslip.attendance.days_present is not None else "-"
        ),
        "earning_rows": _rows(payslip.earnings, EARNING_LABELS),
        "deduction_rows": _rows(payslip.deductions, DEDUCTION_LABELS),
        "gross_pay": f"{payslip.gross_pay:,.2f}",
        "total_deductions": f"{payslip.total_deductions:,.2f}",
        "net_pay": f"{payslip.net_pay:,.2f}",
        "net_pay_words": html.escape(payslip.net_pay_words),
        "generated_at": payslip.generated_at.strftime("%d %b, %Y %H:%M"),
    }

    content = template
    for key, value in values.items():
        content = content.replace("{{" + key + "}}", value)
    return content
