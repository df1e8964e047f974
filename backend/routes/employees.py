"""Employee routes"""
from fastapi import APIRouter, Depends
from typing import Dict, Any

from auth import get_current_user
from services.user_directory import UserDirectory, get_user_directory

router = APIRouter()


@router.get("/")
async def list_employees(
    current_user: Dict[str, Any] = Depends(get_current_user),
    directory: UserDirectory = Depends(get_user_directory),
):
    """Employees that can own onboarding sessions"""
    employees = directory.list_employees()
    return {"employees": employees, "total": len(employees)}
