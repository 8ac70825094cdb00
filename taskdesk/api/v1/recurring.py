"""
Recurring tasks API endpoints
"""
import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from taskdesk.api.deps import get_db, get_current_user
from taskdesk.infrastructure.db.models import User
from taskdesk.infrastructure.store import RecordStore
from taskdesk.domain.recurrence import format_rule, build_rule
from taskdesk.application.recurring_engine import run_engine_for_user
from taskdesk.application.duplicate_reconciler import cleanup_duplicate_instances
from taskdesk.application.recurring_tasks import (
    CreateRecurringTaskUseCase,
    ToggleRecurringTaskPauseUseCase,
    DeleteRecurringTaskUseCase,
    RecurringTaskValidationError,
    RecurringTaskNotFound,
    list_recurring_tasks,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/recurring", tags=["recurring"])


# === Request/Response models ===

class EngineRunResponse(BaseModel):
    created: int
    errors: list[str]


class CleanupResponse(BaseModel):
    deleted: int
    errors: list[str]


class FormatRuleResponse(BaseModel):
    rule: str
    label: str


class CreateRecurringTaskRequest(BaseModel):
    title: str
    recurrence_type: str = "daily"  # daily, weekly, monthly
    week_day: str | None = None  # monday..sunday
    month_day: str | None = None  # 1..31 or "last"
    description: str | None = None
    category: str | None = None
    client_id: int | None = None
    is_urgent: bool = False
    time_block_start: datetime | None = None
    time_block_end: datetime | None = None

    @field_validator("recurrence_type")
    @classmethod
    def validate_type(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("daily", "weekly", "monthly"):
            raise ValueError("recurrence_type must be daily, weekly or monthly")
        return v


class RecurringTaskResponse(BaseModel):
    id: int
    title: str
    description: str | None
    category: str | None
    priority: str
    client_id: int | None
    recurrence_rule: str | None
    rule_label: str
    is_paused: bool
    time_block_start: datetime | None
    time_block_end: datetime | None


def _to_response(row: dict) -> RecurringTaskResponse:
    return RecurringTaskResponse(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        category=row["category"],
        priority=row["priority"],
        client_id=row["client_id"],
        recurrence_rule=row["recurrence_rule"],
        rule_label=row.get("rule_label") or format_rule(row["recurrence_rule"]),
        is_paused=row["is_paused"],
        time_block_start=row["time_block_start"],
        time_block_end=row["time_block_end"],
    )


# === Engine ===

@router.post("/run", response_model=EngineRunResponse)
def run_engine(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Generate due recurring task instances (rate-limited per user)"""
    result = run_engine_for_user(RecordStore(db), user.id)
    if result.errors:
        logger.warning("Recurring engine errors for user %s: %s", user.id, result.errors)
    return result.to_dict()


@router.post("/cleanup", response_model=CleanupResponse)
def cleanup_duplicates(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    """Delete duplicate instances, keeping the earliest created per template and date"""
    return cleanup_duplicate_instances(RecordStore(db), user.id).to_dict()


@router.get("/format", response_model=FormatRuleResponse)
def format_recurrence_rule(rule: str):
    return FormatRuleResponse(rule=rule, label=format_rule(rule))


# === Templates ===

@router.get("/templates", response_model=list[RecurringTaskResponse])
def list_templates(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return [_to_response(row) for row in list_recurring_tasks(db, user.id)]


@router.post("/templates", response_model=RecurringTaskResponse)
def create_template(
    req: CreateRecurringTaskRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    rule = build_rule(req.recurrence_type, weekday=req.week_day, month_day=req.month_day)
    try:
        row = CreateRecurringTaskUseCase(db).execute(
            user_id=user.id,
            title=req.title,
            recurrence_rule=rule,
            description=req.description,
            category=req.category,
            client_id=req.client_id,
            is_urgent=req.is_urgent,
            time_block_start=req.time_block_start,
            time_block_end=req.time_block_end,
        )
    except RecurringTaskValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _to_response(row)


@router.post("/templates/{template_id}/toggle-pause")
def toggle_pause(template_id: int, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    try:
        paused = ToggleRecurringTaskPauseUseCase(db).execute(user.id, template_id)
    except RecurringTaskNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"id": template_id, "is_paused": paused}


@router.delete("/templates/{template_id}")
def delete_template(
    template_id: int,
    delete_instances: bool = False,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    try:
        affected = DeleteRecurringTaskUseCase(db).execute(user.id, template_id, delete_instances)
    except RecurringTaskNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    return {"status": "deleted", "instances_affected": affected}
