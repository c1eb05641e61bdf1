from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CourseCompletedEvent(BaseModel):
    user_id: int
    course_id: int


class CourseDeletedEvent(BaseModel):
    course_id: int


class CronEvent(BaseModel):
    pass


class EventOutcome(BaseModel):
    ok: bool


class CriterionForm(BaseModel):
    badge_id: str
    requires_completion: bool = True
    min_grade: Optional[float] = Field(default=None, ge=0, le=100)
    completed_by: Optional[datetime] = None


class RuleForm(BaseModel):
    requires_completion: bool = True
    min_grade: Optional[float] = Field(default=None, ge=0, le=100)
    completed_by: Optional[datetime] = None


class CriterionOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    course_id: int
    badge_id: str
    requires_completion: bool
    min_grade: Optional[float] = None
    completed_by: Optional[datetime] = None


class BackpackForm(BaseModel):
    email: str


class BackpackOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    email: str


class ParticipantBadges(BaseModel):
    user_id: int
    full_name: str
    badge_ids: list[str]


class ClaimOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    criterion_id: int
    user_id: int
    claimed_at: datetime


class FailureOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    criterion_id: int
    user_id: int
    error_code: str
    message: Optional[str] = None
    created_at: datetime
