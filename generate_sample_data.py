import asyncio
import logging
import random
from datetime import datetime, timedelta

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient

from hrms.config import settings
from hrms.logging_config import configure_logging
from hrms.models.attendance import Attendance, AttendanceStatus
from hrms.models.employee import BankDetails, CompensationProfile, Employee
from hrms.models.loans import EmployeeLoan, RecoveryStatus
from hrms.models.organization import Department
from hrms.api.routes.auth import get_password_hash
from hrms.services.payroll_processing import process_payroll
from hrms.services.recoveries import loan_emi
from hrms.services.statutory import seed_statutory_configurations
from main import DOCUMENT_MODELS

logger = logging.getLogger("generate_sample_data")

DEPARTMENTS = {
    "Engineering": ["Senior Developer", "Frontend Lead", "DevOps Engineer", "QA Manager"],
    "Sales": ["Account Executive", "Sales Manager", "Business Development"],
    "HR": ["HR Manager", "Talent Acquisition", "People Ops"],
    "Operations": ["Operations Associate", "Facilities Coordinator"],
}

NAMES = [
    ("Asha", "Rao"), ("Vikram", "Nair"), ("Priya", "Iyer"),
    ("Rahul", "Mehta"), ("Sneha", "Kulkarni"), ("Arjun", "Menon"),
    ("Kavya", "Reddy"), ("Imran", "Shaikh"), ("Neha", "Joshi"),
]

# Spread across the ESI threshold and professional tax bands
BASE_SALARIES = [9000, 12000, 18000, 25000, 35000, 50000, 65000, 90000, 120000]


def previous_month(today: datetime):
    first = today.replace(day=1)
    last_month = first - timedelta(days=1)
    return last_month.month, last_month.year


async def create_sample_data():
    """Populate departments, employees and last month's attendance, then run payroll"""
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    await init_beanie(database=client[settings.MONGODB_DB_NAME], document_models=DOCUMENT_MODELS)
    await seed_statutory_configurations()

    departments = {}
    for name in DEPARTMENTS:
        department = await Department.find_one(Department.name == name)
        if not department:
            department = Department(name=name)
            await department.insert()
        departments[name] = department

    password_hash = get_password_hash("Employee123!")
    employees = []
    for i, (first, last) in enumerate(NAMES):
        emp_id = f"EMP{100 + i}"
        existing = await Employee.find_one(Employee.employee_id == emp_id)
        if existing:
            logger.info("%s already exists, skipping", emp_id)
            employees.append(existing)
            continue

        dept = random.choice(list(DEPARTMENTS))
        emp = Employee(
            employee_id=emp_id,
            first_name=first,
            last_name=last,
            email=f"{first.lower()}.{last.lower()}@company.com",
            phone=f"+91-9876543{i:03d}",
            department_id=str(departments[dept].id),
            department=dept,
            designation=random.choice(DEPARTMENTS[dept]),
            joining_date=datetime.utcnow() - timedelta(days=random.randint(60, 900)),
            overtime_eligible=dept == "Operations",
            password_hash=password_hash,
            bank_details=BankDetails(
                account_number=f"50100{random.randint(10000000, 99999999)}",
                bank_name="HDFC Bank",
                ifsc_code="HDFC0000123",
                pan_number=f"ABCDE{1000 + i}F",
                uan_number=f"1001{random.randint(10000000, 99999999)}",
            ),
            compensation=CompensationProfile(base_salary=BASE_SALARIES[i]),
        )
        await emp.insert()
        employees.append(emp)
        logger.info("Created employee %s %s (%s)", first, last, emp_id)

    month, year = previous_month(datetime.utcnow())
    start = datetime(year, month, 1)

    borrower = employees[5]
    if not await EmployeeLoan.find_one(EmployeeLoan.employee_id == borrower.employee_id):
        emi = loan_emi(120000, 10.5, 24)
        await EmployeeLoan(
            employee_id=borrower.employee_id,
            loan_type="personal",
            loan_amount=120000,
            interest_rate=10.5,
            tenure_months=24,
            emi_amount=float(emi),
            start_date=start,
            remaining_amount=float(emi * 24),
            status=RecoveryStatus.ACTIVE,
        ).insert()
        logger.info("Created loan for %s with EMI %s", borrower.employee_id, emi)

    for emp in employees:
        day = start
        while day.month == month:
            if day.weekday() < 5:
                existing = await Attendance.find_one(
                    Attendance.employee_id == emp.employee_id,
                    Attendance.date == day,
                )
                if not existing:
                    roll = random.random()
                    if roll < 0.05:
                        status, hours = AttendanceStatus.ABSENT, 0.0
                    elif roll < 0.1:
                        status, hours = AttendanceStatus.HALF_DAY, 4.0
                    else:
                        status, hours = AttendanceStatus.PRESENT, round(random.uniform(8.0, 10.5), 2)
                    await Attendance(
                        employee_id=emp.employee_id,
                        employee_name=emp.full_name,
                        date=day,
                        check_in_time=day.replace(hour=9) if hours else None,
                        check_out_time=day.replace(hour=9) + timedelta(hours=hours) if hours else None,
                        hours_worked=hours,
                        overtime_hours=round(max(0.0, hours - settings.STANDARD_DAILY_HOURS), 2),
                        status=status,
                    ).insert()
            day += timedelta(days=1)

    result = await process_payroll(month, year, processed_by="generate_sample_data")
    logger.info(
        "Processed payroll %02d/%d: %d processed, %d failed, net %.2f",
        month, year, len(result.processed), len(result.failures), result.total_net,
    )


if __name__ == "__main__":
    configure_logging("INFO", json_format=False)
    asyncio.run(create_sample_data())
