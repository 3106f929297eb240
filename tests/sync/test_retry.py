"""Tests for sheetsync.sync.retry."""

import pytest

from sheetsync.core.settings import SheetSyncSettings
from sheetsync.sync.retry import ConstantBackoff


class TestConstantBackoff:
    def test_fixed_delay(self):
        strategy = ConstantBackoff(max_retries=3, delay=0.5)
        assert [strategy.next_delay(a) for a in range(3)] == [0.5, 0.5, 0.5]

    def test_retry_limit(self):
        strategy = ConstantBackoff(max_retries=2, delay=0.0)
        assert strategy.should_retry(0)
        assert strategy.should_retry(1, PermissionError("locked"))
        assert not strategy.should_retry(2)

    def test_from_settings_counts_first_attempt(self):
        settings = SheetSyncSettings(retry_count=5, retry_delay_seconds=0.3)
        strategy = ConstantBackoff.from_settings(settings)
        assert strategy.max_retries == 4
        assert strategy.delay == pytest.approx(0.3)

    def test_single_attempt_never_retries(self):
        strategy = ConstantBackoff.from_settings(SheetSyncSettings(retry_count=1))
        assert not strategy.should_retry(0)
