from datetime import date
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator


def calculate_duration(start_date: Optional[str], end_date: Optional[str]) -> int:
    """Inclusive day count between two ISO dates, 0 if either is unparsable or end precedes start."""
    try:
        start = date.fromisoformat(start_date or "")
        end = date.fromisoformat(end_date or "")
    except (TypeError, ValueError):
        return 0
    if end < start:
        return 0
    return (end - start).days + 1


# ---------------------------
# Trip input
# ---------------------------

class Formality(str, Enum):
    CASUAL = "casual"
    BUSINESS_CASUAL = "business-casual"
    FORMAL = "formal"


class Activity(BaseModel):
    description: str = ""
    time: Literal["day", "night"] = "day"


class TripDetails(BaseModel):
    model_config = ConfigDict(frozen=True)

    destination: str
    startDate: str
    endDate: str
    activities: List[Activity] = []
    formality: Optional[Formality] = None
    lightLuggage: bool = False

    @computed_field
    @property
    def duration(self) -> int:
        return calculate_duration(self.startDate, self.endDate)


class SavedTripDetails(BaseModel):
    """Reduced snapshot persisted next to a saved list."""
    model_config = ConfigDict(frozen=True)

    destination: str
    startDate: str
    endDate: str


# ---------------------------
# Generated list
# ---------------------------

class OutfitSuggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    activity: str
    description: str
    outfit: List[str] = []


class PackingList(BaseModel):
    model_config = ConfigDict(frozen=True)

    outfitSuggestions: List[OutfitSuggestion] = []
    baseClothing: List[str] = []
    footwear: List[str] = []
    toiletries: List[str] = []
    accessoriesElectronics: List[str] = []
    documentsMoney: List[str] = []


# ---------------------------
# Request/Response Models
# ---------------------------

class Category(BaseModel):
    key: str
    title: str


class ViewState(BaseModel):
    destination: str
    startDate: str
    endDate: str
    duration: int
    activities: List[Activity]
    formality: Optional[Formality] = None
    lightLuggage: bool = False
    status: Literal["idle", "loading", "loaded", "errored"]
    isLoading: bool = False
    error: Optional[str] = None
    actionMessage: Optional[str] = None
    packingList: Optional[PackingList] = None
    categories: List[Category] = []
    savedTripDetails: Optional[SavedTripDetails] = None


class CreateSessionRequest(BaseModel):
    sessionId: Optional[str] = Field(None, pattern=r"^[A-Za-z0-9_-]{1,64}$", description="Session to resume")


class SessionResponse(BaseModel):
    sessionId: str
    expiresAt: str
    state: ViewState


class UpdateTripRequest(BaseModel):
    destination: Optional[str] = None
    startDate: Optional[str] = None
    endDate: Optional[str] = None
    activities: Optional[List[Activity]] = None
    formality: Optional[Formality] = None
    lightLuggage: Optional[bool] = None

    @field_validator("destination", "startDate", "endDate", "activities", "lightLuggage")
    @classmethod
    def not_null(cls, value):
        # Omitted fields keep their value; only formality may be cleared with null.
        if value is None:
            raise ValueError("may not be null")
        return value


class UpdateActivityRequest(BaseModel):
    description: Optional[str] = None
    time: Optional[Literal["day", "night"]] = None


class ShareResponse(BaseModel):
    method: Literal["share", "clipboard"]
    title: Optional[str] = None
    text: Optional[str] = None
    state: ViewState


class ErrorResponse(BaseModel):
    """Error response model"""
    status: str = "error"
    message: str
    details: Optional[dict] = None
