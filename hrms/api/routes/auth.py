"""
Authentication Routes
Handles login and token management
"""
from fastapi import APIRouter, HTTPException, Depends, status
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from pydantic import BaseModel
from datetime import datetime, timedelta
from jose import JWTError, jwt
from passlib.context import CryptContext
from typing import Optional

from hrms.config import settings
from hrms.models.employee import Employee


router = APIRouter()

# Password hashing
pwd_context = CryptContext(schemes=["pbkdf2_sha256", "bcrypt"], deprecated="auto")

# OAuth2 scheme
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login")

HR_ROLES = ("hr", "admin")


class Token(BaseModel):
    """Token response"""
    access_token: str
    token_type: str
    expires_in: int


class ChangePasswordRequest(BaseModel):
    old_password: str
    new_password: str


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password against hash"""
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    """Hash password"""
    return pwd_context.hash(password)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()
    expire = datetime.utcnow() + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


async def get_current_employee(token: str = Depends(oauth2_scheme)) -> Employee:
    """Get current authenticated employee"""
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        employee_id: Optional[str] = payload.get("sub")
    except JWTError:
        raise credentials_exception

    if employee_id is None:
        raise credentials_exception

    employee = await Employee.find_one(Employee.employee_id == employee_id)
    if employee is None:
        raise credentials_exception

    return employee


def require_roles(*roles: str):
    """Dependency that only lets employees with one of `roles` through"""
    async def checker(current_employee: Employee = Depends(get_current_employee)) -> Employee:
        if current_employee.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_employee
    return checker


@router.post("/login", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends()):
    """
    Login with email and password
    """
    employee = await Employee.find_one(Employee.email == form_data.username)

    if not employee or not verify_password(form_data.password, employee.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not employee.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is inactive"
        )

    employee.last_login = datetime.utcnow()
    await employee.save()

    access_token = create_access_token(
        data={"sub": employee.employee_id, "email": employee.email},
    )

    return {
        "access_token": access_token,
        "token_type": "bearer",
        "expires_in": settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60
    }


@router.get("/me")
async def get_current_user(current_employee: Employee = Depends(get_current_employee)):
    """
    Get current authenticated employee details
    """
    return {
        "employee_id": current_employee.employee_id,
        "name": current_employee.full_name,
        "email": current_employee.email,
        "department": current_employee.department,
        "designation": current_employee.designation,
        "role": current_employee.role,
    }


@router.post("/change-password")
async def change_password(
    request: ChangePasswordRequest,
    current_employee: Employee = Depends(get_current_employee)
):
    """
    Change employee password
    """
    if not verify_password(request.old_password, current_employee.password_hash):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Incorrect old password"
        )

    current_employee.password_hash = get_password_hash(request.new_password)
    await current_employee.save()

    return {"message": "Password changed successfully"}
