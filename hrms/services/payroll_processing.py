"""
Payroll Processing Service
Single-employee and batch payroll runs persisted as per-period upserts
"""
import asyncio
import logging
from datetime import datetime
from typing import List, Optional, Tuple

from beanie.operators import In
from pymongo.errors import DuplicateKeyError

from hrms.config import settings
from hrms.exceptions import (
    DuplicateComputationError,
    InvalidInputError,
    MissingConfigurationError,
    PayrollAlreadyPaidError,
    PayrollError,
)
from hrms.models.attendance import Attendance, PRESENT_DAY_WEIGHTS
from hrms.models.employee import Employee
from hrms.models.payroll import (
    BatchFailure,
    BatchResult,
    PayrollRecord,
    PayrollStatus,
    STATUS_TRANSITIONS,
)
from hrms.models.tax import StatutoryRules, TaxDeclarations, TdsDeclaration
from hrms.services.payroll_engine import PayrollBreakdown, WorkSummary, compute_payroll
from hrms.services.recoveries import period_recoveries, settle_recoveries
from hrms.services.statutory import financial_year_for, get_statutory_rules

logger = logging.getLogger(__name__)


def month_bounds(month: int, year: int) -> Tuple[datetime, datetime]:
    start = datetime(year, month, 1)
    if month == 12:
        end = datetime(year + 1, 1, 1)
    else:
        end = datetime(year, month + 1, 1)
    return start, end


async def summarize_attendance(
    employee: Employee, month: int, year: int, rules: StatutoryRules
) -> WorkSummary:
    """Worked-time summary for a calendar month from attendance records"""
    start, end = month_bounds(month, year)
    records = await Attendance.find(
        Attendance.employee_id == employee.employee_id,
        Attendance.date >= start,
        Attendance.date < end,
    ).to_list()

    overtime_hours = 0.0
    if employee.overtime_eligible:
        overtime_hours = round(sum(r.overtime_hours or 0 for r in records), 2)
    days_present = sum(PRESENT_DAY_WEIGHTS.get(r.status, 0.0) for r in records)

    return WorkSummary(
        overtime_hours=overtime_hours,
        standard_working_days=rules.standard_working_days_per_month,
        days_present=days_present,
    )


async def get_declarations(employee_id: str, financial_year: str) -> Optional[TaxDeclarations]:
    declaration = await TdsDeclaration.find_one(
        TdsDeclaration.employee_id == employee_id,
        TdsDeclaration.financial_year == financial_year,
        TdsDeclaration.is_active == True,
    )
    return declaration.declarations if declaration else None


def build_payroll_record(
    employee: Employee,
    month: int,
    year: int,
    breakdown: PayrollBreakdown,
    processed_by: Optional[str] = None,
) -> PayrollRecord:
    return PayrollRecord(
        employee_id=employee.employee_id,
        employee_name=employee.full_name,
        department=employee.department,
        month=month,
        year=year,
        status=PayrollStatus.PROCESSED,
        processed_at=datetime.utcnow(),
        processed_by=processed_by,
        **breakdown.amounts(),
    )


async def find_payroll_record(employee_id: str, month: int, year: int) -> Optional[PayrollRecord]:
    return await PayrollRecord.find_one(
        PayrollRecord.employee_id == employee_id,
        PayrollRecord.month == month,
        PayrollRecord.year == year,
    )


async def upsert_payroll_record(record: PayrollRecord) -> PayrollRecord:
    """
    Write the record for its (employee_id, month, year) key in one
    update_one(upsert=True); a rerun replaces the previous computation.

    A paid period is never rewritten, so its status and payment date stay
    as they are and PayrollAlreadyPaidError is raised instead.
    """
    key = {"employee_id": record.employee_id, "month": record.month, "year": record.year}
    unpaid = {**key, "status": {"$ne": PayrollStatus.PAID.value}}
    fields = record.model_dump(exclude={"id", "revision_id", "paid_at"})
    fields["status"] = record.status.value

    collection = PayrollRecord.get_motor_collection()
    try:
        await collection.update_one(unpaid, {"$set": fields}, upsert=True)
    except DuplicateKeyError:
        # The key exists: either an insert race was lost or the period is paid
        result = await collection.update_one(unpaid, {"$set": fields})
        if result.matched_count == 0:
            raise PayrollAlreadyPaidError(record.employee_id, record.month, record.year)

    return await find_payroll_record(record.employee_id, record.month, record.year)


async def create_payroll_record(record: PayrollRecord) -> PayrollRecord:
    """Insert-only write; refuses to replace an existing period"""
    existing = await find_payroll_record(record.employee_id, record.month, record.year)
    if existing:
        raise DuplicateComputationError(record.employee_id, record.month, record.year)
    try:
        await record.insert()
    except DuplicateKeyError:
        raise DuplicateComputationError(record.employee_id, record.month, record.year)
    return record


async def process_employee(
    employee: Employee,
    month: int,
    year: int,
    rules: StatutoryRules,
    processed_by: Optional[str] = None,
) -> PayrollRecord:
    """Compute and upsert one employee's payroll for a period"""
    summary = await summarize_attendance(employee, month, year, rules)
    recoveries = await period_recoveries(employee.employee_id, *month_bounds(month, year))
    summary = summary.model_copy(update=recoveries)
    declarations = await get_declarations(employee.employee_id, rules.financial_year)
    breakdown = compute_payroll(employee.compensation, summary, rules, declarations)
    record = build_payroll_record(employee, month, year, breakdown, processed_by)
    return await upsert_payroll_record(record)


async def process_payroll(
    month: int,
    year: int,
    employee_ids: Optional[List[str]] = None,
    processed_by: Optional[str] = None,
    concurrency: Optional[int] = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> BatchResult:
    """
    Process payroll for every active employee (or the given subset).

    Employees are independent: a failure is recorded against that employee
    and the rest of the batch carries on. Setting `cancel_event` stops the
    batch before the next employee starts; employees already running finish.
    """
    financial_year = financial_year_for(month, year)
    result = BatchResult(month=month, year=year, financial_year=financial_year)
    log_context = {"month": month, "year": year, "financial_year": financial_year}

    if employee_ids:
        employees = await Employee.find(
            In(Employee.employee_id, employee_ids),
            Employee.is_active == True,
        ).to_list()
        found = {e.employee_id for e in employees}
        for employee_id in employee_ids:
            if employee_id not in found:
                result.failures.append(BatchFailure(
                    employee_id=employee_id,
                    error="employee_not_found",
                    message=f"No active employee {employee_id}",
                ))
    else:
        employees = await Employee.find(Employee.is_active == True).to_list()

    logger.info("Starting payroll run for %d employees", len(employees), extra=log_context)

    rules: Optional[StatutoryRules] = None
    config_error: Optional[MissingConfigurationError] = None
    try:
        rules = await get_statutory_rules(financial_year)
    except MissingConfigurationError as exc:
        config_error = exc
        logger.error(exc.message, extra=log_context)

    semaphore = asyncio.Semaphore(concurrency or settings.PAYROLL_BATCH_CONCURRENCY)

    async def run(employee: Employee):
        async with semaphore:
            if cancel_event is not None and cancel_event.is_set():
                return employee.employee_id, None, None
            try:
                if config_error is not None:
                    raise MissingConfigurationError(financial_year)
                record = await process_employee(employee, month, year, rules, processed_by)
                return employee.employee_id, record, None
            except PayrollError as exc:
                logger.warning(
                    "Payroll failed: %s", exc.message,
                    extra={**log_context, "employee_id": employee.employee_id},
                )
                return employee.employee_id, None, BatchFailure(
                    employee_id=employee.employee_id, error=exc.code, message=exc.message
                )
            except Exception as exc:
                logger.exception(
                    "Unexpected payroll failure",
                    extra={**log_context, "employee_id": employee.employee_id},
                )
                return employee.employee_id, None, BatchFailure(
                    employee_id=employee.employee_id, error="processing_error", message=str(exc)
                )

    outcomes = await asyncio.gather(*(run(employee) for employee in employees))

    total_gross = total_net = 0.0
    for employee_id, record, failure in outcomes:
        if record is not None:
            result.processed.append(employee_id)
            total_gross += record.gross_pay
            total_net += record.net_pay
        elif failure is not None:
            result.failures.append(failure)
        else:
            result.skipped.append(employee_id)

    result.cancelled = bool(result.skipped)
    result.total_gross = round(total_gross, 2)
    result.total_net = round(total_net, 2)
    result.finished_at = datetime.utcnow()

    logger.info(
        "Payroll run finished: %d processed, %d failed, %d skipped",
        len(result.processed), len(result.failures), len(result.skipped),
        extra=log_context,
    )
    return result


async def update_payroll_status(record: PayrollRecord, status: PayrollStatus) -> PayrollRecord:
    if status == record.status:
        return record
    if status not in STATUS_TRANSITIONS[record.status]:
        raise InvalidInputError(
            f"Cannot move payroll from {record.status.value} to {status.value}", field="status"
        )
    record.status = status
    if status != PayrollStatus.PAID:
        await record.save()
        return record

    record.paid_at = datetime.utcnow()
    await record.save()
    start, end = month_bounds(record.month, record.year)
    await settle_recoveries(record.employee_id, start, end, record.deductions)
    return record
