import logging
import json
from datetime import datetime
from typing import Any, Dict

from config import settings

class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        # Adicionar campos extras
        if hasattr(record, 'extra_data'):
            log_data.update(record.extra_data)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, ensure_ascii=False, default=str)

def setup_logging():
    logger = logging.getLogger("juris")
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))

    if not logger.handlers:
        handler = logging.StreamHandler()
        if settings.LOG_FORMAT == "json":
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s"))
        logger.addHandler(handler)

    return logger

logger = setup_logging()

def _emit(msg: str, extra_data: Dict[str, Any], level: int = logging.INFO):
    record = logging.LogRecord(
        name="juris", level=level, pathname="", lineno=0,
        msg=msg, args=(), exc_info=None
    )
    record.extra_data = extra_data
    logger.handle(record)

def log_case_synced(case_id: str, status: str, imported: int, updated: int, notifications: int):
    _emit("Caso sincronizado", {
        "event": "case_synced",
        "case_id": case_id,
        "status": status,
        "imported": imported,
        "updated": updated,
        "notifications": notifications
    })

def log_sweep_finished(execution_type: str, found: int, processed: int, failed: int, skipped: int):
    _emit("Varredura judicial finalizada", {
        "event": "sweep_finished",
        "execution_type": execution_type,
        "cases_found": found,
        "cases_processed": processed,
        "cases_failed": failed,
        "cases_skipped": skipped
    })

def log_error(error: Exception, context: Dict[str, Any] = None):
    logger.error(
        f"Erro: {str(error)}",
        extra={
            "extra_data": {
                "event": "error",
                "error_type": type(error).__name__,
                "context": context or {}
            }
        },
        exc_info=True
    )
