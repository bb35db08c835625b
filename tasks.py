"""
Tasks da Varredura Judicial
===========================

Varredura sequencial de todos os casos abertos com radicado, com
isolamento de falhas por caso e pausa entre chamadas para não
sobrecarregar a API remota. A própria varredura periódica faz o papel
de retry para falhas transitórias.
"""

from sqlalchemy.orm import Session
from datetime import datetime
from typing import Callable, Optional, Set
import threading
import time

import crud
import models
from adapter_base import ProviderRegistry
from config import settings
from logger import logger, log_sweep_finished
from reconciler import process_case
from schemas import SyncResult


class CaseNotFound(LookupError):
    pass


class MissingFilingNumber(ValueError):
    pass


class CaseSyncInProgress(RuntimeError):
    pass


class CaseLocks:
    """
    Casos em sincronização, para que o disparo manual e a varredura
    periódica não reconciliem o mesmo caso ao mesmo tempo.

    Ninguém espera na fila: quem chega com o caso ocupado desiste, então
    basta um conjunto de ids protegido por um único lock.
    """

    def __init__(self):
        self._busy: Set[str] = set()
        self._guard = threading.Lock()

    def try_acquire(self, case_id: str) -> bool:
        with self._guard:
            if case_id in self._busy:
                return False
            self._busy.add(case_id)
            return True

    def release(self, case_id: str):
        with self._guard:
            self._busy.discard(case_id)

    def is_locked(self, case_id: str) -> bool:
        with self._guard:
            return case_id in self._busy

    def __len__(self) -> int:
        with self._guard:
            return len(self._busy)


case_locks = CaseLocks()


def create_sync_log(db: Session, execution_type: str = "manual") -> models.JudicialSyncLog:
    """
    Cria registro inicial de log da varredura.
    """
    log = models.JudicialSyncLog(
        execution_type=execution_type,
        started_at=datetime.utcnow(),
        success=False
    )
    db.add(log)
    db.commit()
    db.refresh(log)
    return log


def update_sync_log(
    db: Session,
    log: models.JudicialSyncLog,
    success: bool,
    cases_found: int = 0,
    cases_processed: int = 0,
    cases_failed: int = 0,
    cases_skipped: int = 0,
    error_message: str = None,
    meta: dict = None
):
    """
    Atualiza registro de log com resultado da execução.
    """
    log.finished_at = datetime.utcnow()
    log.duration_seconds = (log.finished_at - log.started_at).total_seconds()
    log.success = success
    log.cases_found = cases_found
    log.cases_processed = cases_processed
    log.cases_failed = cases_failed
    log.cases_skipped = cases_skipped
    log.error_message = error_message

    if meta:
        log.meta = meta

    db.commit()
    db.refresh(log)


def run_judicial_sweep(
    db: Session,
    registry: Optional[ProviderRegistry] = None,
    execution_type: str = "cron",
    delay: Optional[float] = None,
    sleep: Callable[[float], None] = time.sleep,
    locks: CaseLocks = case_locks
) -> dict:
    """
    Executa uma varredura completa.

    Args:
        db: Sessão do banco de dados
        registry: Provedores por país (padrão: registry do processo)
        execution_type: Tipo de execução ("cron", "scheduler", "api", "manual")
        delay: Pausa entre casos em segundos (padrão: SWEEP_DELAY_SECONDS)
        sleep: Função de pausa (injetável nos testes)
        locks: Locks por caso

    Returns:
        Dicionário com o resumo da varredura
    """
    delay = settings.SWEEP_DELAY_SECONDS if delay is None else delay

    logger.info("=" * 80)
    logger.info(f"VARREDURA JUDICIAL INICIADA: execution_type={execution_type}")
    logger.info("=" * 80)

    log = create_sync_log(db, execution_type)

    try:
        cases = crud.list_trackable_cases(db)
    except Exception as e:
        logger.error(f"❌ Erro ao buscar casos para atualização: {e}")
        db.rollback()
        update_sync_log(db, log, success=False, error_message=str(e))
        return {"success": False, "log_id": log.id, "error": str(e)}

    logger.info(f"Encontrados {len(cases)} casos para verificar")

    processed = 0
    failed = 0
    skipped = 0
    imported = 0
    errors = []

    for i, case in enumerate(cases):
        case_id = case.id
        filing_number = case.filing_number
        if i > 0 and delay > 0:
            sleep(delay)  # Cortesia com a API remota

        if not locks.try_acquire(case_id):
            logger.info(f"Caso {case_id} já está sendo sincronizado; ignorado nesta varredura")
            skipped += 1
            continue

        try:
            result = process_case(db, case, registry)
            if result.status == "synced":
                processed += 1
                imported += result.imported
                logger.info(f"Caso {case.case_number} verificado/atualizado")
            else:
                skipped += 1
        except Exception as e:
            db.rollback()
            failed += 1
            errors.append({"case_id": case_id, "error": str(e)})
            logger.error(f"❌ Erro ao atualizar caso {case_id} (radicado: {filing_number}): {e}")
        finally:
            locks.release(case_id)

    update_sync_log(
        db, log,
        success=True,
        cases_found=len(cases),
        cases_processed=processed,
        cases_failed=failed,
        cases_skipped=skipped,
        meta={"errors": errors, "actions_imported": imported} if errors or imported else None
    )
    log_sweep_finished(execution_type, len(cases), processed, failed, skipped)

    return {
        "success": True,
        "log_id": log.id,
        "cases_found": len(cases),
        "cases_processed": processed,
        "cases_failed": failed,
        "cases_skipped": skipped,
        "duration_seconds": log.duration_seconds
    }


def update_single_case(
    db: Session,
    case_id: str,
    registry: Optional[ProviderRegistry] = None,
    locks: CaseLocks = case_locks
) -> SyncResult:
    """
    Sincroniza um único caso sob demanda.

    Diferente da varredura, os erros sobem para quem chamou (ex.: endpoint HTTP).
    """
    logger.info(f"Sincronização sob demanda do caso {case_id}")
    case = crud.get_case(db, case_id)
    if case is None:
        raise CaseNotFound(f"case not found: {case_id}")

    if not (case.filing_number or "").strip():
        raise MissingFilingNumber("case has no filing number")

    if not locks.try_acquire(case_id):
        raise CaseSyncInProgress(f"case {case_id} is already being synchronized")

    try:
        return process_case(db, case, registry)
    finally:
        locks.release(case_id)


def get_last_sync_status(db: Session) -> dict:
    """
    Retorna status da última varredura.
    """
    last_log = db.query(models.JudicialSyncLog).order_by(
        models.JudicialSyncLog.started_at.desc()
    ).first()

    if not last_log:
        return {
            "status": "never_executed",
            "message": "A varredura judicial nunca foi executada"
        }

    return {
        "status": "success" if last_log.success else "failed",
        "log_id": last_log.id,
        "started_at": last_log.started_at.isoformat(),
        "finished_at": last_log.finished_at.isoformat() if last_log.finished_at else None,
        "duration_seconds": last_log.duration_seconds,
        "execution_type": last_log.execution_type,
        "cases_found": last_log.cases_found,
        "cases_processed": last_log.cases_processed,
        "cases_failed": last_log.cases_failed,
        "cases_skipped": last_log.cases_skipped,
        "error_message": last_log.error_message,
        "meta": last_log.meta
    }


def get_sync_history(db: Session, limit: int = 10) -> list:
    """
    Retorna histórico de varreduras.
    """
    logs = db.query(models.JudicialSyncLog).order_by(
        models.JudicialSyncLog.started_at.desc()
    ).limit(limit).all()

    return [
        {
            "log_id": log.id,
            "started_at": log.started_at.isoformat(),
            "finished_at": log.finished_at.isoformat() if log.finished_at else None,
            "duration_seconds": log.duration_seconds,
            "execution_type": log.execution_type,
            "success": log.success,
            "cases_found": log.cases_found,
            "cases_processed": log.cases_processed,
            "cases_failed": log.cases_failed,
            "error_message": log.error_message
        }
        for log in logs
    ]


def get_sync_stats(db: Session) -> dict:
    """
    Retorna estatísticas gerais das varreduras.
    """
    total_executions = db.query(models.JudicialSyncLog).count()
    successful_executions = db.query(models.JudicialSyncLog).filter(
        models.JudicialSyncLog.success == True
    ).count()

    total_failed_cases = sum(
        row.cases_failed for row in db.query(models.JudicialSyncLog.cases_failed).all()
    )

    # Última execução bem-sucedida
    last_success = db.query(models.JudicialSyncLog).filter(
        models.JudicialSyncLog.success == True
    ).order_by(
        models.JudicialSyncLog.started_at.desc()
    ).first()

    return {
        "total_executions": total_executions,
        "successful_executions": successful_executions,
        "failed_executions": total_executions - successful_executions,
        "success_rate": round((successful_executions / total_executions * 100), 2) if total_executions > 0 else 0,
        "total_failed_cases": total_failed_cases,
        "tracked_processes": db.query(models.JudicialProcess).count(),
        "last_successful_execution": last_success.started_at.isoformat() if last_success else None
    }
