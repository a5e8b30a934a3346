from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Union

from app.models.catalog_models import Service
from app.models.db_models import BookingStatus

# --- Incoming Request Models ---

class BookingSubmission(BaseModel):
    service: str
    date: str
    name: str
    whatsappNumber: str = ""
    email: str = ""
    addons: List[str] = Field(default_factory=list)
    options: Dict[str, str] = Field(default_factory=dict)
    captcha: Union[int, str] = ""
    captchaId: str = ""

class StatusUpdateRequest(BaseModel):
    status: BookingStatus

class LoginRequest(BaseModel):
    password: str

class SetPasswordRequest(BaseModel):
    password: str

# --- Outgoing Response Models ---

class CaptchaChallenge(BaseModel):
    id: str
    question: str

class BookingFormResponse(BaseModel):
    service: Service
    whatsappNumber: str
    captcha: CaptchaChallenge

class BookingSubmissionResponse(BaseModel):
    bookingId: str
    whatsappUrl: str

class SuccessResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
