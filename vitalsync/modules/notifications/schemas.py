"""
Wire format of the send-alert endpoint.

These payloads stay snake_case: callers post ``patient_id`` and read back
``alert_id``, unlike the camelCase dashboard schemas.
"""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from vitalsync.modules.vitals.models import MotionStatus


class DispatchVitals(BaseModel):
    heart_rate: Optional[float] = None
    spo2: Optional[float] = None
    temperature: Optional[float] = None
    motion_status: Optional[MotionStatus] = None


class DispatchRequest(BaseModel):
    patient_id: str = Field(min_length=1)
    message: str = Field(min_length=1)
    level: Literal["warning", "critical"]
    vitals: Optional[DispatchVitals] = None


class DispatchResponse(BaseModel):
    success: bool = True
    alert_id: str
    email_sent: bool
    sms_sent: bool
    sms_status: str
    email_status: str


class ErrorResponse(BaseModel):
    error: str
