# app/schemas/common/common.py
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    success: bool = False
    message: str
    status: int


class HealthResponse(BaseModel):
    status: str
    database: str
    version: str
