"""
Agendador diário da varredura judicial (thread em background).

Alternativa ao cron do sistema (ver cron_judicial_sweep.py) para quando a
API roda como processo único.
"""

import threading
from datetime import datetime, time as dtime, timedelta
from typing import Callable, Optional
from zoneinfo import ZoneInfo

from config import settings
from db import SessionLocal
from logger import logger
from tasks import run_judicial_sweep


def parse_sync_time(value: str) -> dtime:
    """"HH:MM" -> time. Levanta ValueError se inválido."""
    hour, minute = value.strip().split(":")
    return dtime(int(hour), int(minute))


def next_run_at(now: datetime, at: dtime) -> datetime:
    """Próxima ocorrência de `at` estritamente depois de `now` (mesmo fuso de `now`)."""
    candidate = now.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    if candidate <= now:
        candidate += timedelta(days=1)
    return candidate


class JudicialScheduler:
    def __init__(
        self,
        run: Optional[Callable[[], None]] = None,
        timezone: Optional[str] = None,
        at: Optional[str] = None
    ):
        self.tz = ZoneInfo(timezone or settings.JUDICIAL_TIMEZONE)
        self.at = parse_sync_time(at or settings.JUDICIAL_SYNC_TIME)
        self._run = run or self._run_sweep
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @staticmethod
    def _run_sweep():
        db = SessionLocal()
        try:
            run_judicial_sweep(db, execution_type="scheduler")
        finally:
            db.close()

    def seconds_until_next_run(self) -> float:
        now = datetime.now(self.tz)
        return (next_run_at(now, self.at) - now).total_seconds()

    def _loop(self):
        while not self._stop.is_set():
            wait = self.seconds_until_next_run()
            logger.info(f"[SCHEDULER] Próxima varredura judicial em {wait:.0f}s")
            if self._stop.wait(wait):
                break
            try:
                self._run()
            except Exception as e:
                logger.error(f"[SCHEDULER] Erro na varredura judicial: {e}")

    def start(self):
        if self._thread and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="judicial-scheduler", daemon=True)
        self._thread.start()
        logger.info(f"[SCHEDULER] Agendador iniciado ({self.at.strftime('%H:%M')} {self.tz.key})")

    def stop(self, timeout: Optional[float] = 5.0):
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None
