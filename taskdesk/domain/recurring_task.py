"""RecurringTask domain entity - builds task records for templates and their generated instances"""
from datetime import date, datetime
from typing import Dict, Any
from zoneinfo import ZoneInfo

from taskdesk.utils.clock import project_time_onto_date


TEMPLATE_STATUS = "recurring"

# Content fields snapshotted from the template into each instance
COPIED_FIELDS = ("title", "description", "category", "priority", "client_id")


class RecurringTask:
    @staticmethod
    def create(
        user_id: int,
        title: str,
        recurrence_rule: str,
        description: str | None = None,
        category: str | None = None,
        client_id: int | None = None,
        is_urgent: bool = False,
        time_block_start: datetime | None = None,
        time_block_end: datetime | None = None,
    ) -> Dict[str, Any]:
        return {
            "user_id": user_id,
            "title": title,
            "description": description,
            "category": category,
            "client_id": client_id,
            "priority": "urgent" if is_urgent else "normal",
            "status": TEMPLATE_STATUS,
            "is_recurring": True,
            "recurrence_rule": recurrence_rule,
            "parent_task_id": None,
            "is_paused": False,
            "time_block_start": time_block_start,
            "time_block_end": time_block_end,
            "calendar_sync_status": "none",
        }

    @staticmethod
    def instance(template: Dict[str, Any], due_date: date, status: str, tz: ZoneInfo) -> Dict[str, Any]:
        payload: Dict[str, Any] = {key: template.get(key) for key in COPIED_FIELDS}
        payload.update({
            "user_id": template["user_id"],
            "status": status,
            "parent_task_id": template["id"],
            "is_recurring": False,
            "due_date": due_date,
            "calendar_sync_status": "none",
        })
        start, end = template.get("time_block_start"), template.get("time_block_end")
        if start and end:
            payload["time_block_start"] = project_time_onto_date(start, due_date, tz)
            payload["time_block_end"] = project_time_onto_date(end, due_date, tz)
        return payload
