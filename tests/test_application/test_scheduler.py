"""
Tests for the periodic recurring engine job
"""
from unittest.mock import patch

from taskdesk.infrastructure.db.models import TaskModel, EngineRunModel
from taskdesk.application.scheduler import _active_template_owners, _run_recurring_engine


def test_active_template_owners(store, make_template):
    make_template(rule="daily", user_id=3)
    make_template(rule="daily", user_id=1)
    make_template(rule="weekly-friday", user_id=1)
    make_template(rule="daily", user_id=2, is_paused=True)
    assert _active_template_owners(store) == [1, 3]


def test_job_runs_engine_per_owner(db_session, make_template):
    make_template(title="Mine", rule="daily", user_id=1)
    make_template(title="Theirs", rule="daily", user_id=2)

    with patch("taskdesk.infrastructure.db.session.get_session_factory") as factory:
        factory.return_value = lambda: db_session
        _run_recurring_engine()

    assert db_session.query(TaskModel).filter(TaskModel.parent_task_id.isnot(None)).count() == 2
    assert db_session.query(EngineRunModel).count() == 2


def test_job_swallows_failures(db_session, make_template):
    make_template(rule="daily")
    with patch("taskdesk.infrastructure.db.session.get_session_factory") as factory, \
            patch("taskdesk.application.recurring_engine.run_engine_for_user") as run:
        factory.return_value = lambda: db_session
        run.side_effect = RuntimeError("boom")
        _run_recurring_engine()
    run.assert_called_once()
