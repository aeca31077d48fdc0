from pydantic import BaseModel, Field, field_validator
from typing import Any, List, Optional
from enum import Enum

TIME_PATTERN = r"^\d{1,2}:\d{2}$"


class DayOfWeek(str, Enum):
    MONDAY = "Monday"
    TUESDAY = "Tuesday"
    WEDNESDAY = "Wednesday"
    THURSDAY = "Thursday"
    FRIDAY = "Friday"
    SATURDAY = "Saturday"
    SUNDAY = "Sunday"


# Short and full forms the model tends to emit
DAY_ALIASES = {
    "mon": DayOfWeek.MONDAY, "monday": DayOfWeek.MONDAY,
    "tue": DayOfWeek.TUESDAY, "tues": DayOfWeek.TUESDAY, "tuesday": DayOfWeek.TUESDAY,
    "wed": DayOfWeek.WEDNESDAY, "wednesday": DayOfWeek.WEDNESDAY,
    "thu": DayOfWeek.THURSDAY, "thur": DayOfWeek.THURSDAY, "thurs": DayOfWeek.THURSDAY,
    "thursday": DayOfWeek.THURSDAY,
    "fri": DayOfWeek.FRIDAY, "friday": DayOfWeek.FRIDAY,
    "sat": DayOfWeek.SATURDAY, "saturday": DayOfWeek.SATURDAY,
    "sun": DayOfWeek.SUNDAY, "sunday": DayOfWeek.SUNDAY,
}


class SubjectType(str, Enum):
    ACADEMIC = "academic"
    BREAK = "break"
    ADMINISTRATIVE = "administrative"
    OTHER = "other"


class TimeBlock(BaseModel):
    id: Optional[str] = None
    day: DayOfWeek
    start_time: str = Field(pattern=TIME_PATTERN)
    end_time: str = Field(pattern=TIME_PATTERN)
    duration_minutes: Optional[int] = Field(default=None, ge=1)
    subject: str = Field(min_length=1)
    subject_type: SubjectType = SubjectType.ACADEMIC
    notes: Optional[str] = None
    color_code: Optional[str] = Field(default=None, pattern=r"^#[0-9A-Fa-f]{6}$")
    room_location: Optional[str] = None
    confidence: float = Field(default=1.0, ge=0, le=1)

    @field_validator("day", mode="before")
    @classmethod
    def normalize_day(cls, value: Any) -> Any:
        if isinstance(value, str):
            return DAY_ALIASES.get(value.strip().lower(), value)
        return value

    @field_validator("subject_type", mode="before")
    @classmethod
    def default_subject_type(cls, value: Any) -> Any:
        # Models sometimes send an explicit null instead of omitting the key
        return SubjectType.ACADEMIC if value is None else value

    @field_validator("confidence", mode="before")
    @classmethod
    def default_confidence(cls, value: Any) -> Any:
        return 1.0 if value is None else value


class TimetableMetadata(BaseModel):
    teacher_name: Optional[str] = None
    class_name: Optional[str] = None
    term: Optional[str] = None
    school_name: Optional[str] = None
    extraction_confidence: float = Field(default=0.5, ge=0, le=1)

    @field_validator("extraction_confidence", mode="before")
    @classmethod
    def default_extraction_confidence(cls, value: Any) -> Any:
        return 0.5 if value is None else value


class TimetableExtraction(BaseModel):
    metadata: TimetableMetadata
    timeblocks: List[TimeBlock] = Field(min_length=1)


class ValidationIssue(BaseModel):
    path: str
    message: str
    block: Optional[str] = None  # subject of the offending block, if any


class ValidationOutcome(BaseModel):
    is_valid: bool
    data: Optional[TimetableExtraction] = None
    errors: List[ValidationIssue] = []
    warnings: List[ValidationIssue] = []
