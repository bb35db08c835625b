"""
Testes do agendador diário.
"""

from datetime import datetime, time
from zoneinfo import ZoneInfo

import pytest

from scheduler import JudicialScheduler, next_run_at, parse_sync_time

BOGOTA = ZoneInfo("America/Bogota")


class TestNextRun:
    def test_parse_sync_time(self):
        assert parse_sync_time("00:00") == time(0, 0)
        assert parse_sync_time(" 06:30 ") == time(6, 30)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_sync_time("midnight")

    def test_later_today(self):
        now = datetime(2025, 6, 1, 5, 0, tzinfo=BOGOTA)
        assert next_run_at(now, time(6, 30)) == datetime(2025, 6, 1, 6, 30, tzinfo=BOGOTA)

    def test_tomorrow_when_passed(self):
        now = datetime(2025, 6, 1, 0, 0, 1, tzinfo=BOGOTA)
        assert next_run_at(now, time(0, 0)) == datetime(2025, 6, 2, 0, 0, tzinfo=BOGOTA)

    def test_exact_time_moves_to_next_day(self):
        now = datetime(2025, 6, 1, 0, 0, tzinfo=BOGOTA)
        assert next_run_at(now, time(0, 0)) == datetime(2025, 6, 2, 0, 0, tzinfo=BOGOTA)


class TestJudicialScheduler:
    def test_seconds_until_next_run(self):
        scheduler = JudicialScheduler(run=lambda: None, timezone="America/Bogota", at="00:00")
        wait = scheduler.seconds_until_next_run()
        assert 0 < wait <= 24 * 3600

    def test_start_and_stop(self):
        runs = []
        scheduler = JudicialScheduler(run=lambda: runs.append(1), timezone="UTC", at="00:00")
        scheduler.start()
        scheduler.stop(timeout=2)
        assert scheduler._thread is None
        assert runs == []
