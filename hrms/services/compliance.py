"""
Compliance Reporting Service
PF / ESI / professional tax / TDS totals per financial year, with CSV export
"""
import csv
import io
import logging
from collections import OrderedDict
from typing import Dict, Iterable, List, Optional, Tuple

from hrms.models.compliance import ComplianceLine, ComplianceReport, ReportType
from hrms.models.payroll import PayrollRecord
from hrms.models.tax import TdsDeclaration

logger = logging.getLogger(__name__)

# Payroll deduction / employer contribution key feeding each report
REPORT_KEYS = {
    ReportType.PF: "pf",
    ReportType.ESI: "esi",
    ReportType.PROFESSIONAL_TAX: "professional_tax",
    ReportType.TDS: "tds",
}

CSV_COLUMNS = {
    ReportType.PF: ["Monthly Contribution", "Annual Contribution", "Employer Contribution"],
    ReportType.ESI: ["Monthly Contribution", "Annual Contribution", "Employer Contribution", "Eligibility"],
    ReportType.PROFESSIONAL_TAX: ["Monthly Deduction", "Annual Deduction", "Months"],
    ReportType.TDS: ["Annual Tax", "Monthly TDS", "Taxable Income"],
}


def aggregate_lines(
    report_type: ReportType,
    records: Iterable[PayrollRecord],
    taxable_incomes: Optional[Dict[str, float]] = None,
) -> List[ComplianceLine]:
    """One line per employee, summing the report's deduction across the year's records"""
    key = REPORT_KEYS[report_type]
    taxable_incomes = taxable_incomes or {}
    lines: "OrderedDict[str, ComplianceLine]" = OrderedDict()

    for record in sorted(records, key=lambda r: (r.employee_id, r.year, r.month)):
        line = lines.get(record.employee_id)
        if line is None:
            line = ComplianceLine(
                employee_id=record.employee_id,
                name=record.employee_name,
                department=record.department,
            )
            if report_type == ReportType.ESI:
                line.eligible = False
            if report_type == ReportType.TDS:
                line.taxable_income = taxable_incomes.get(record.employee_id)
            lines[record.employee_id] = line

        line.months += 1
        line.annual_amount = round(line.annual_amount + record.deductions.get(key, 0.0), 2)
        line.employer_contribution = round(
            line.employer_contribution + record.employer_contributions.get(key, 0.0), 2
        )
        if report_type == ReportType.ESI and record.esi_eligible:
            line.eligible = True

    for line in lines.values():
        line.monthly_amount = round(line.annual_amount / line.months, 2) if line.months else 0.0
    return list(lines.values())


def summarize(report_type: ReportType, lines: List[ComplianceLine]) -> Tuple[float, float, str]:
    total = round(sum(line.annual_amount for line in lines), 2)
    employer_total = round(sum(line.employer_contribution for line in lines), 2)

    if report_type == ReportType.PF:
        summary = f"Total PF Contribution: ₹{total:,.2f} | Employees: {len(lines)}"
    elif report_type == ReportType.ESI:
        eligible = sum(1 for line in lines if line.eligible)
        summary = f"Total ESI Contribution: ₹{total:,.2f} | Eligible Employees: {eligible}"
    elif report_type == ReportType.PROFESSIONAL_TAX:
        summary = f"Total Professional Tax: ₹{total:,.2f} | Employees: {len(lines)}"
    else:
        summary = f"Total TDS: ₹{total:,.2f} | Employees: {len(lines)}"
    return total, employer_total, summary


async def build_compliance_report(
    report_type: ReportType, financial_year: str, generated_by: Optional[str] = None
) -> ComplianceReport:
    """Aggregate the financial year's payroll records and store the report"""
    records = await PayrollRecord.find(PayrollRecord.financial_year == financial_year).to_list()

    taxable_incomes: Dict[str, float] = {}
    if report_type == ReportType.TDS:
        declarations = await TdsDeclaration.find(
            TdsDeclaration.financial_year == financial_year
        ).to_list()
        taxable_incomes = {d.employee_id: d.taxable_income for d in declarations}

    lines = aggregate_lines(report_type, records, taxable_incomes)
    total, employer_total, summary = summarize(report_type, lines)

    report = ComplianceReport(
        report_type=report_type,
        financial_year=financial_year,
        lines=lines,
        employee_count=len(lines),
        total_amount=total,
        total_employer_contribution=employer_total,
        summary=summary,
        generated_by=generated_by,
    )
    await report.insert()
    logger.info(
        summary,
        extra={"report_type": report_type.value, "financial_year": financial_year},
    )
    return report


def _type_values(report_type: ReportType, line: ComplianceLine) -> list:
    if report_type == ReportType.PF:
        return [f"{line.monthly_amount:.2f}", f"{line.annual_amount:.2f}", f"{line.employer_contribution:.2f}"]
    if report_type == ReportType.ESI:
        return [
            f"{line.monthly_amount:.2f}",
            f"{line.annual_amount:.2f}",
            f"{line.employer_contribution:.2f}",
            "Eligible" if line.eligible else "Not Eligible",
        ]
    if report_type == ReportType.PROFESSIONAL_TAX:
        return [f"{line.monthly_amount:.2f}", f"{line.annual_amount:.2f}", line.months]
    taxable = "" if line.taxable_income is None else f"{line.taxable_income:.2f}"
    return [f"{line.annual_amount:.2f}", f"{line.monthly_amount:.2f}", taxable]


def report_to_csv(report: ComplianceReport) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow(["Employee ID", "Name", "Department"] + CSV_COLUMNS[report.report_type])
    for line in report.lines:
        writer.writerow(
            [line.employee_id, line.name, line.department] + _type_values(report.report_type, line)
        )
    return buffer.getvalue()
