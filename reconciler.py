"""
Reconciliação de um caso com o sistema judicial remoto
======================================================

Fluxo por caso:
1. Resolve o provedor pelo país da firma (sem provedor = ignora o caso).
2. Carrega o JudicialProcess do caso ou, no primeiro sync, busca o processo
   pelo radicado e cria o registro.
3. Busca as actuaciones e compara com o espelho local pela external_id.
4. Cria/atualiza só o que mudou e notifica.

No primeiro sync as notificações por actuación são suprimidas e no final
sai uma única notificação de resumo com o total importado.
"""

from typing import Any, Dict, Optional, Set

from pydantic_core import to_jsonable_python
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import crud
import models
import notifications
from adapter_base import ProviderNotFound, ProviderRegistry, get_default_registry
from config import settings
from logger import logger, log_case_synced, log_error
from schemas import GenericAction, SyncResult
from utils import isoformat_or_none, normalize_filing_number, to_naive_utc


def build_action_metadata(action: GenericAction, existing: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    Metadata alvo de uma actuación.

    Parte do que já está salvo (chaves que o provedor não mandou neste ciclo
    são mantidas), sobrepõe as datas padrão e depois os extras do provedor.
    """
    metadata: Dict[str, Any] = dict(existing or {})
    metadata["registration_date"] = isoformat_or_none(action.registration_date)
    metadata["initial_date"] = isoformat_or_none(action.initial_date)
    metadata["final_date"] = isoformat_or_none(action.final_date)
    if action.metadata:
        metadata.update(to_jsonable_python(action.metadata))
    return metadata


def action_has_changes(existing: models.JudicialProcessAction, action: GenericAction, target_metadata: Dict[str, Any]) -> bool:
    if existing.type != action.type:
        return True
    if existing.annotation != action.annotation:
        return True
    if existing.has_documents != action.has_documents:
        return True
    if to_naive_utc(existing.action_date) != action.action_date:
        return True
    return (existing.meta or {}) != target_metadata


def _normalize_action(action: GenericAction) -> GenericAction:
    return action.model_copy(update={
        "action_date": to_naive_utc(action.action_date),
        "registration_date": to_naive_utc(action.registration_date),
        "initial_date": to_naive_utc(action.initial_date),
        "final_date": to_naive_utc(action.final_date),
    })


def _resolve_country(case: models.Case) -> str:
    if case.firm is not None and case.firm.country:
        return case.firm.country
    return settings.DEFAULT_COUNTRY


def process_case(db: Session, case: models.Case, registry: Optional[ProviderRegistry] = None) -> SyncResult:
    """
    Sincroniza um caso. Erros do provedor (ProviderError) sobem para quem
    chamou; erros de persistência por actuación são logados e o loop segue.
    """
    radicado = normalize_filing_number(case.filing_number)
    if not radicado:
        return SyncResult(case_id=case.id, status="no_filing_number")

    registry = registry or get_default_registry()
    country = _resolve_country(case)
    try:
        provider = registry.get(country)
    except ProviderNotFound as e:
        logger.info(f"Caso {case.id} ignorado: {e}")
        return SyncResult(case_id=case.id, status="skipped_no_provider")

    logger.info(f"Processando caso {case.id} com radicado {radicado} (país: {country})")

    jp = crud.get_judicial_process_by_case(db, case.id)
    is_new_tracking = jp is None

    if is_new_tracking:
        summary = provider.get_process_id_by_radicado(radicado)
        if summary is None:
            logger.info(f"Radicado {radicado} ainda não encontrado no sistema remoto")
            return SyncResult(case_id=case.id, status="not_found", is_new_tracking=True)

        logger.info(f"Processo encontrado: {summary.process_id}")
        detail = provider.get_process_detail(summary.process_id)

        details: Dict[str, Any] = {
            "department": summary.department,
            "office": summary.office,
            "subject": summary.subject,
        }
        details.update(to_jsonable_python(detail or {}))

        jp = crud.create_judicial_process(db, case.id, summary, radicado, details)
    else:
        crud.touch_judicial_process(db, jp)

    # Processo já existe mas nunca gravou actuaciones (ex.: primeiro sync
    # interrompido antes da busca): todas entram como novas e notificadas.
    backfill = not is_new_tracking and not jp.actions

    actions = [_normalize_action(a) for a in provider.get_process_actions(jp.process_id)]

    if backfill and actions:
        logger.warning(
            f"⚠️ Processo {jp.process_id} sem actuaciones locais: "
            f"{len(actions)} actuaciones serão importadas com notificação individual"
        )

    imported = 0
    updated = 0
    sent = 0
    notified: Set[str] = set()

    for action in actions:
        try:
            notify = not is_new_tracking and action.external_id not in notified
            existing = crud.get_action(db, jp.id, action.external_id)

            if existing is None:
                row = crud.create_action(db, jp.id, action, build_action_metadata(action), commit=False)
                if notify:
                    notifications.notify_action_created(db, case, row, commit=False)
            else:
                target = build_action_metadata(action, existing.meta)
                if not action_has_changes(existing, action, target):
                    continue
                crud.update_action(db, existing, action, target, commit=False)
                if notify:
                    notifications.notify_action_updated(db, case, existing, commit=False)

            # Actuación e notificação no mesmo commit
            db.commit()

        except SQLAlchemyError as e:
            db.rollback()
            log_error(e, {"case_id": case.id, "external_id": action.external_id})
            continue

        if existing is None:
            imported += 1
        else:
            updated += 1
        if notify:
            notified.add(action.external_id)
            sent += 1

    if is_new_tracking and imported > 0:
        try:
            notifications.notify_process_linked(db, case, imported)
            sent += 1
        except SQLAlchemyError as e:
            db.rollback()
            log_error(e, {"case_id": case.id, "step": "process_linked"})

    if actions and actions[0].action_date is not None:
        try:
            if to_naive_utc(jp.last_activity_date) != actions[0].action_date:
                crud.set_last_activity_date(db, jp, actions[0].action_date)
        except SQLAlchemyError as e:
            db.rollback()
            log_error(e, {"case_id": case.id, "step": "last_activity_date"})

    log_case_synced(case.id, "synced", imported, updated, sent)
    return SyncResult(
        case_id=case.id,
        status="synced",
        is_new_tracking=is_new_tracking,
        imported=imported,
        updated=updated,
        notifications=sent,
    )
