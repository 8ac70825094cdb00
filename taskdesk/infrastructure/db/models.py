"""
SQLAlchemy ORM models
"""
from datetime import date as date_type, datetime
from sqlalchemy import String, DateTime, Integer, Text, TIMESTAMP, Date, func, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from taskdesk.infrastructure.db.session import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False
    )


class TaskModel(Base):
    """
    Tasks: one-off tasks, recurring templates and their generated instances.

    Template:  is_recurring=True,  parent_task_id=None, recurrence_rule set
    Instance:  is_recurring=False, parent_task_id -> template id, due_date set
    """
    __tablename__ = "tasks"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(String(32), nullable=False, default="inbox", server_default="inbox")  # inbox/today/.../backburner/recurring/done
    category: Mapped[str | None] = mapped_column(String(64), nullable=True)
    priority: Mapped[str] = mapped_column(String(16), nullable=False, default="normal", server_default="normal")  # normal/urgent
    client_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    is_recurring: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")
    recurrence_rule: Mapped[str | None] = mapped_column(String(32), nullable=True)  # daily / weekly-friday / monthly-15 / monthly-last
    parent_task_id: Mapped[int | None] = mapped_column(Integer, nullable=True)  # -> tasks.id (template)
    is_paused: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default="false")

    due_date: Mapped[date_type | None] = mapped_column(Date, nullable=True)
    time_block_start: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    time_block_end: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    calendar_sync_status: Mapped[str] = mapped_column(String(16), nullable=False, default="none", server_default="none")

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (
        Index('ix_tasks_parent_due', 'parent_task_id', 'due_date'),
    )


class EngineRunModel(Base):
    """Last recurring engine run per user (rate-limit marker)"""
    __tablename__ = "engine_runs"

    user_id: Mapped[int] = mapped_column(Integer, primary_key=True)
    last_run_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
