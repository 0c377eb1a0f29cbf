from datetime import date, datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from stackcoach.engine import RecommendationService, SafetyCheckError, interaction_warner
from stackcoach.models import AnalysisContext, CheckInData, JournalEntry, StackItem, UserProfile

router = APIRouter()

TimeSlot = Literal["morning", "noon", "evening", "bedtime"]
RecommendationType = Literal["timing", "dosage", "synergy", "lifestyle", "warning"]


class JournalEntryIn(BaseModel):
    date: date
    sleep: float = Field(ge=0, le=10)
    energy: float = Field(ge=0, le=10)
    focus: float = Field(ge=0, le=10)
    mood: float = Field(ge=0, le=10)
    stress: Optional[float] = Field(default=None, ge=0, le=10)
    exercise: Optional[bool] = None
    meditation: Optional[bool] = None

    def to_entry(self) -> JournalEntry:
        return JournalEntry(**self.model_dump())


class CheckInIn(BaseModel):
    supplement_id: str
    supplement_name: str
    checked_at: datetime
    time: TimeSlot
    dosage: Optional[str] = None

    def to_check_in(self) -> CheckInData:
        return CheckInData(**self.model_dump())


class StackItemIn(BaseModel):
    supplement_id: str
    supplement_name: str
    dosage: Optional[str] = None
    time: Optional[TimeSlot] = None

    def to_item(self) -> StackItem:
        return StackItem(**self.model_dump())


class UserProfileIn(BaseModel):
    medications: List[str] = []
    chronotype: Optional[Literal["early", "normal", "late", "irregular"]] = None
    caffeine_level: Optional[Literal["low", "moderate", "high"]] = None

    def to_profile(self) -> UserProfile:
        return UserProfile(
            medications=tuple(self.medications),
            chronotype=self.chronotype,
            caffeine_level=self.caffeine_level,
        )


class AnalysisContextRequest(BaseModel):
    user_id: str
    journal_history: List[JournalEntryIn] = []
    check_in_history: List[CheckInIn] = []
    current_stack: List[StackItemIn] = []
    profile: Optional[UserProfileIn] = None
    goals: List[str] = []

    def to_context(self) -> AnalysisContext:
        return AnalysisContext(
            user_id=self.user_id,
            journal_history=[j.to_entry() for j in self.journal_history],
            check_in_history=[c.to_check_in() for c in self.check_in_history],
            current_stack=[s.to_item() for s in self.current_stack],
            profile=self.profile.to_profile() if self.profile else None,
            goals=self.goals,
        )


class PrecheckRequest(BaseModel):
    supplement_id: str
    supplement_name: str
    current_stack: List[StackItemIn] = []


class RecommendationResponse(BaseModel):
    id: str
    type: str
    priority: str
    title: str
    message: str
    supplement: Optional[str] = None
    confidence: float
    data_points: int
    created_at: datetime


class WarningResponse(BaseModel):
    supplement_id: str
    supplement_name: str
    type: str
    severity: str
    message: str
    affected_supplements: List[str]


class SummaryResponse(BaseModel):
    ready: bool
    summary: str


def _service(request: AnalysisContextRequest) -> RecommendationService:
    return RecommendationService(request.to_context())


def _safety_unavailable(e: SafetyCheckError):
    return HTTPException(status_code=503, detail=f"Safety checks unavailable: {e}")


@router.post("", response_model=List[RecommendationResponse])
def get_recommendations(
    request: AnalysisContextRequest,
    type: Optional[RecommendationType] = None,
    limit: Optional[int] = Query(default=None, ge=0),
):
    """
    Prioritized recommendations for the posted user context.

    Filter with ?type=warning and truncate with ?limit=5.
    """
    service = _service(request)
    try:
        recommendations = service.get_by_type(type) if type else service.generate_all()
    except SafetyCheckError as e:
        raise _safety_unavailable(e)

    if limit is not None:
        recommendations = recommendations[:limit]

    return [RecommendationResponse(**r.to_dict()) for r in recommendations]


@router.post("/analysis")
def get_full_analysis(
    request: AnalysisContextRequest,
    period: Literal["week", "month", "quarter"] = "month",
):
    """Full analysis bundle: recommendations plus every intermediate finding."""
    try:
        result = _service(request).perform_full_analysis(period=period)
    except SafetyCheckError as e:
        raise _safety_unavailable(e)
    return result.to_dict()


@router.post("/readiness")
def get_readiness(request: AnalysisContextRequest):
    return _service(request).has_enough_data().to_dict()


@router.post("/summary", response_model=SummaryResponse)
def get_summary(request: AnalysisContextRequest):
    service = _service(request)
    try:
        summary = service.generate_chat_summary()
    except SafetyCheckError as e:
        raise _safety_unavailable(e)
    return SummaryResponse(ready=service.has_enough_data().ready, summary=summary)


@router.post("/missing-partners")
def get_missing_partners(request: AnalysisContextRequest):
    """Supplements in the stack whose important partner is missing."""
    return [m.to_dict() for m in _service(request).get_missing_synergy_partners()]


@router.post("/precheck", response_model=List[WarningResponse])
def precheck_new_supplement(request: PrecheckRequest):
    """
    Warnings for a supplement before it is added to the stack.

    Checks the supplement's own rules and absorption conflicts with the
    current stack.
    """
    warnings = interaction_warner.check_new_supplement_warnings(
        request.supplement_id,
        request.supplement_name,
        [s.to_item() for s in request.current_stack],
    )
    return [WarningResponse(**w.to_dict()) for w in warnings]
