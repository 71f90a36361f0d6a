"""
Main FastAPI Application
Entry point for the backend server
"""
import logging
import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from datetime import datetime
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie

from hrms.config import settings
from hrms.exceptions import PayrollError
from hrms.logging_config import configure_logging
from hrms.models.employee import Employee
from hrms.models.loans import EmployeeDeduction, EmployeeLoan, SalaryAdvance
from hrms.models.attendance import Attendance
from hrms.models.compliance import ComplianceReport
from hrms.models.organization import CompanySettings, Department
from hrms.models.payroll import PayrollRecord
from hrms.models.payslip import Payslip
from hrms.models.recruitment import Application, JobOpening
from hrms.models.shift import Shift
from hrms.models.tax import StatutoryConfiguration, TdsDeclaration
from hrms.services.statutory import seed_statutory_configurations

# Import routers
from hrms.api.routes import (
    attendance,
    auth,
    compliance,
    employees,
    loans,
    organization,
    payroll,
    payslips,
    recruitment,
    shifts,
    tax,
)

DOCUMENT_MODELS = [
    Employee,
    Attendance,
    Department,
    CompanySettings,
    Shift,
    JobOpening,
    Application,
    PayrollRecord,
    Payslip,
    StatutoryConfiguration,
    TdsDeclaration,
    ComplianceReport,
    EmployeeLoan,
    SalaryAdvance,
    EmployeeDeduction,
]

logger = logging.getLogger("hrms")


async def ensure_default_admin():
    """Create the first admin account when the database has none"""
    admin_count = await Employee.find(Employee.role == "admin").count()
    if admin_count:
        return

    from hrms.api.routes.auth import get_password_hash

    admin = Employee(
        employee_id="ADMIN001",
        first_name="System",
        last_name="Admin",
        email=settings.DEFAULT_ADMIN_EMAIL,
        password_hash=get_password_hash(settings.DEFAULT_ADMIN_PASSWORD),
        department="Management",
        designation="Administrator",
        role="admin",
        joining_date=datetime.utcnow(),
    )
    await admin.insert()
    logger.warning("Default admin created (%s); change its password", settings.DEFAULT_ADMIN_EMAIL)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging(settings.LOG_LEVEL, json_format=settings.LOG_JSON)
    logger.info("Starting %s %s", settings.APP_NAME, settings.APP_VERSION)

    # Initialize MongoDB
    client = AsyncIOMotorClient(settings.MONGODB_URL)
    database = client[settings.MONGODB_DB_NAME]
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    logger.info("Connected to MongoDB: %s", settings.MONGODB_DB_NAME)

    seeded = await seed_statutory_configurations()
    if seeded:
        logger.info("Seeded %d statutory configurations", seeded)

    await ensure_default_admin()

    yield

    logger.info("Shutting down")
    client.close()


# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="HR management with statutory payroll, payslips and compliance reporting",
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

# Configure CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(PayrollError)
async def payroll_error_handler(request: Request, exc: PayrollError):
    content = {"detail": exc.message, "code": exc.code}
    if exc.field:
        content["field"] = exc.field
    return JSONResponse(status_code=exc.status_code, content=content)


# Include routers
app.include_router(auth.router, prefix="/api/auth", tags=["Authentication"])
app.include_router(employees.router, prefix="/api/employees", tags=["Employees"])
app.include_router(organization.router, prefix="/api", tags=["Organization"])
app.include_router(shifts.router, prefix="/api/shifts", tags=["Shifts"])
app.include_router(attendance.router, prefix="/api/attendance", tags=["Attendance"])
app.include_router(recruitment.router, prefix="/api/recruitment", tags=["Recruitment"])
app.include_router(payroll.router, prefix="/api/payroll", tags=["Payroll"])
app.include_router(payslips.router, prefix="/api/payslips", tags=["Payslips"])
app.include_router(loans.router, prefix="/api/loans", tags=["Loans"])
app.include_router(tax.router, prefix="/api/tax", tags=["Tax"])
app.include_router(compliance.router, prefix="/api/compliance", tags=["Compliance"])


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": f"{settings.APP_NAME} API",
        "version": settings.APP_VERSION,
        "docs": "/api/docs"
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.utcnow().isoformat()
    }


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        log_level=settings.LOG_LEVEL.lower()
    )
