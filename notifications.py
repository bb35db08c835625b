"""
Notificações de atualização judicial
====================================

Gera as notificações in-app da firma a partir do resultado da reconciliação:
- actuación nova ou alterada (tipo JUDICIAL_UPDATE, uma por actuación)
- resumo do primeiro sync (tipo SYSTEM, uma por processo vinculado)

Com commit=False a notificação entra na mesma transação da actuación que a
originou; quem chamou faz o commit.
"""

from sqlalchemy.orm import Session

import crud
import models


def _case_link(case: models.Case) -> str:
    return f"/cases/{case.id}"


def notify_action_created(
    db: Session,
    case: models.Case,
    action: models.JudicialProcessAction,
    commit: bool = True
) -> models.Notification:
    return _judicial_update(db, case, action, f"Nueva actuación: {action.type}", commit)


def notify_action_updated(
    db: Session,
    case: models.Case,
    action: models.JudicialProcessAction,
    commit: bool = True
) -> models.Notification:
    return _judicial_update(db, case, action, f"Actuación actualizada: {action.type}", commit)


def notify_process_linked(db: Session, case: models.Case, imported: int) -> models.Notification:
    """Resumo único do primeiro sync, no lugar de uma notificação por actuación."""
    notification = models.Notification(
        firm_id=case.firm_id,
        user_id=case.assigned_to_id,
        case_id=case.id,
        type=models.NOTIFICATION_TYPE_SYSTEM,
        title="Proceso Vinculado Exitosamente",
        message=f"Se ha conectado con la Rama Judicial y se han importado {imported} actuaciones históricas.",
        link_url=_case_link(case),
    )
    return crud.create_notification(db, notification)


def _judicial_update(
    db: Session,
    case: models.Case,
    action: models.JudicialProcessAction,
    title: str,
    commit: bool
) -> models.Notification:
    notification = models.Notification(
        firm_id=case.firm_id,
        user_id=case.assigned_to_id,  # advogado responsável, se houver
        case_id=case.id,
        judicial_process_action_id=action.id,
        type=models.NOTIFICATION_TYPE_JUDICIAL_UPDATE,
        title=title,
        message=action.annotation,
        link_url=_case_link(case),
    )
    return crud.create_notification(db, notification, commit=commit)
