from enum import Enum
from typing import Optional, List, Dict
from datetime import datetime
from pydantic import BaseModel, Field

# On-disk shapes for bookings.json / comments.json. Field names are the
# camelCase keys stored in the files.

class BookingStatus(str, Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

class BookingAddon(BaseModel):
    name: str
    price: float

class BookingData(BaseModel):
    """A booking before it has been given an id."""
    name: str
    whatsappNumber: str = ""
    email: str = ""
    serviceTitle: str
    date: str
    addons: List[BookingAddon] = Field(default_factory=list)
    options: Dict[str, str] = Field(default_factory=dict)
    totalPrice: float
    # Stored as a plain string: older records may carry statuses outside
    # BookingStatus. Only updates are checked against the enum.
    status: str = BookingStatus.PENDING.value

class Booking(BookingData):
    id: str
    createdAt: Optional[str] = None

class ImagePaths(BaseModel):
    fullSize: str
    thumbnail: str

class Comment(BaseModel):
    id: str
    bookingId: str
    content: str = ""
    imagePaths: Optional[ImagePaths] = None
    createdAt: str
    isAdmin: bool = False

class Captcha(BaseModel):
    id: str
    question: str
    answer: int
    createdAt: datetime
