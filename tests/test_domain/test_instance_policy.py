"""Tests for the create-instance decision"""
from datetime import date, timedelta

from taskdesk.domain.instance_policy import should_create_instance


TODAY = date(2024, 6, 10)


class TestShouldCreateInstance:
    def test_no_prior_instance(self):
        assert should_create_instance(None, TODAY, TODAY)

    def test_beyond_horizon_refused_without_prior(self):
        assert not should_create_instance(None, TODAY + timedelta(days=20), TODAY)

    def test_horizon_edge_allowed(self):
        assert should_create_instance(None, TODAY + timedelta(days=14), TODAY)

    def test_day_after_horizon_refused(self):
        assert not should_create_instance(None, TODAY + timedelta(days=15), TODAY)

    def test_later_than_last(self):
        assert should_create_instance(date(2024, 6, 7), date(2024, 6, 14), TODAY)

    def test_same_as_last_refused(self):
        assert not should_create_instance(TODAY, TODAY, TODAY)

    def test_earlier_than_last_refused(self):
        assert not should_create_instance(date(2024, 6, 20), date(2024, 6, 14), TODAY)

    def test_custom_horizon(self):
        assert not should_create_instance(None, TODAY + timedelta(days=5), TODAY, horizon_days=3)
