"""Request and response models for the kiosk HTTP API."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, field_validator


class RegisterRequest(BaseModel):
    name: str
    email: str
    face_image: str  # base64, optionally a data URL

    @field_validator('name')
    @classmethod
    def name_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('name cannot be empty')
        return v

    @field_validator('face_image')
    @classmethod
    def face_image_must_not_be_empty(cls, v):
        if not v.strip():
            raise ValueError('face_image cannot be empty')
        return v


class EnrollRequest(BaseModel):
    face_image: str
    metadata: Optional[Dict[str, Any]] = None


class ClockInRequest(BaseModel):
    face_image: str
    user_id: Optional[str] = None


class IdentityResponse(BaseModel):
    id: str
    name: str
    email: str
    created_at: datetime


class RegisterResponse(BaseModel):
    success: bool = True
    data: IdentityResponse
    message: str = "User registered successfully"


class EnrollResponse(BaseModel):
    success: bool = True
    user_id: str
    bit_length: int
    message: str = "Face enrolled successfully"


class ClockInData(BaseModel):
    user_id: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None
    timestamp: Optional[datetime] = None
    record_id: Optional[str] = None
    hamming: Optional[int] = None
    max_hamming: Optional[int] = None


class ClockInResponse(BaseModel):
    success: bool
    message: str
    data: ClockInData


class AttendanceLogItem(BaseModel):
    id: str
    user_id: str
    status: str
    timestamp: datetime


class AttendanceLogResponse(BaseModel):
    logs: List[AttendanceLogItem]
    total: int
    has_more: bool


class SyncUser(BaseModel):
    id: str
    name: Optional[str] = None
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    enrolled: bool


class SyncResponse(BaseModel):
    success: bool = True
    users: List[SyncUser]


class DeleteResponse(BaseModel):
    success: bool
    user_id: str


class HealthResponse(BaseModel):
    status: str
    version: str
    db_health: bool
    enrolled: int
    acceleration: bool


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
