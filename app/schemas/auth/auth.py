# app/schemas/auth/auth.py
from pydantic import BaseModel, Field
from datetime import datetime


class PhoneRegisterRequest(BaseModel):
    phone_number: str = Field(..., max_length=32, description="Phone number with country code, e.g. +15551234567")


class PhoneRegisterResponse(BaseModel):
    success: bool = True
    message: str = "Verification code sent"
    expires_at: datetime


class ConfirmRegisterRequest(BaseModel):
    phone_number: str = Field(..., max_length=32)
    otp: str = Field(..., max_length=16, description="6-digit code received by SMS")


class ConfirmRegisterResponse(BaseModel):
    success: bool = True
    user_id: str
    device_id: str
    auth_token: str
