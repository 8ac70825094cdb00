"""
Tests for duplicate instance cleanup
"""
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo

from taskdesk.infrastructure.db.models import TaskModel
from taskdesk.infrastructure.store import RecordStore, StoreError
from taskdesk.application.duplicate_reconciler import cleanup_duplicate_instances, CleanupResult
from taskdesk.application.recurring_engine import RecurringTaskEngine


T1 = datetime(2024, 6, 10, 8, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(minutes=1)
T3 = T1 + timedelta(minutes=2)


class FailingDeleteStore(RecordStore):
    def delete(self, table, filters):
        raise StoreError("locked")


class ExplodingFetchStore(RecordStore):
    def find(self, table, filters=None, order=None, limit=None):
        raise RuntimeError("connection reset")


class TestCleanupDuplicates:
    def test_keeps_earliest_created(self, db_session, store, make_template, make_instance):
        tmpl = make_template(rule="weekly-friday")
        # inserted out of creation order on purpose
        second = make_instance(tmpl, date(2024, 6, 14), T2)
        first = make_instance(tmpl, date(2024, 6, 14), T1)
        third = make_instance(tmpl, date(2024, 6, 14), T3)
        first_id, second_id, third_id = first.id, second.id, third.id

        result = cleanup_duplicate_instances(store, 1)

        assert result == CleanupResult(deleted=2, errors=[])
        remaining = [t.id for t in db_session.query(TaskModel).filter(TaskModel.parent_task_id == tmpl.id)]
        assert remaining == [first_id]
        assert second_id not in remaining and third_id not in remaining

    def test_distinct_dates_untouched(self, db_session, store, make_template, make_instance):
        tmpl = make_template(rule="weekly-friday")
        make_instance(tmpl, date(2024, 6, 7), T1)
        make_instance(tmpl, date(2024, 6, 14), T2)
        assert cleanup_duplicate_instances(store, 1).deleted == 0
        assert db_session.query(TaskModel).filter(TaskModel.parent_task_id == tmpl.id).count() == 2

    def test_distinct_templates_untouched(self, db_session, store, make_template, make_instance):
        a = make_template(title="A", rule="daily")
        b = make_template(title="B", rule="daily")
        make_instance(a, date(2024, 6, 10), T1)
        make_instance(b, date(2024, 6, 10), T2)
        assert cleanup_duplicate_instances(store, 1).deleted == 0

    def test_other_users_untouched(self, db_session, store, make_template, make_instance):
        tmpl = make_template(rule="daily", user_id=2)
        make_instance(tmpl, date(2024, 6, 10), T1, user_id=2)
        make_instance(tmpl, date(2024, 6, 10), T2, user_id=2)
        assert cleanup_duplicate_instances(store, 1).deleted == 0
        assert cleanup_duplicate_instances(store, 2).deleted == 1

    def test_rerun_is_noop(self, store, make_template, make_instance):
        tmpl = make_template(rule="daily")
        make_instance(tmpl, date(2024, 6, 10), T1)
        make_instance(tmpl, date(2024, 6, 10), T2)
        assert cleanup_duplicate_instances(store, 1).deleted == 1
        assert cleanup_duplicate_instances(store, 1) == CleanupResult()

    def test_templates_never_deleted(self, db_session, store, make_template):
        make_template(title="A", rule="daily")
        make_template(title="A", rule="daily")
        assert cleanup_duplicate_instances(store, 1).deleted == 0
        assert db_session.query(TaskModel).count() == 2

    def test_delete_failure_reported(self, db_session, make_template, make_instance):
        tmpl = make_template(rule="daily")
        make_instance(tmpl, date(2024, 6, 10), T1)
        dup = make_instance(tmpl, date(2024, 6, 10), T2)
        dup_id = dup.id
        result = cleanup_duplicate_instances(FailingDeleteStore(db_session), 1)
        assert result == CleanupResult(deleted=0, errors=[f"Failed to delete duplicate {dup_id}: locked"])

    def test_converges_after_repeated_runs(self, db_session, store, make_template, make_instance):
        tmpl = make_template(rule="daily")
        engine = RecurringTaskEngine(store, tz=ZoneInfo("UTC"))
        for day in range(3):
            now = T1 + timedelta(days=day)
            engine.run(1, now=now)
            engine.run(1, now=now)
            # simulated race: a second writer inserted the same occurrence
            make_instance(tmpl, now.date(), now + timedelta(seconds=30))

        cleanup_duplicate_instances(store, 1)

        due_dates = [t.due_date for t in db_session.query(TaskModel).filter(TaskModel.parent_task_id == tmpl.id)]
        assert sorted(due_dates) == [date(2024, 6, 10), date(2024, 6, 11), date(2024, 6, 12)]

    def test_unexpected_error_reported(self, db_session, make_template, make_instance):
        tmpl = make_template(rule="daily")
        make_instance(tmpl, date(2024, 6, 10), T1)
        make_instance(tmpl, date(2024, 6, 10), T2)
        result = cleanup_duplicate_instances(ExplodingFetchStore(db_session), 1)
        assert result == CleanupResult(deleted=0, errors=["Cleanup error: connection reset"])
        assert db_session.query(TaskModel).filter(TaskModel.parent_task_id == tmpl.id).count() == 2
