from sqlalchemy.orm import Session, joinedload
from sqlalchemy import select, func
from typing import Any, Dict, List, Optional
from datetime import datetime
import models
from schemas import GenericAction, GenericProcessSummary

# ==================== CASOS ====================

def list_trackable_cases(db: Session) -> List[models.Case]:
    """Casos abertos com radicado preenchido, já com a firma carregada (país)."""
    stmt = (
        select(models.Case)
        .options(joinedload(models.Case.firm))
        .where(
            models.Case.status == models.CASE_STATUS_OPEN,
            models.Case.filing_number.is_not(None),
            func.trim(models.Case.filing_number) != "",
        )
        .order_by(models.Case.created_at)
    )
    return list(db.execute(stmt).scalars().all())

def get_case(db: Session, case_id: str) -> Optional[models.Case]:
    stmt = select(models.Case).options(joinedload(models.Case.firm)).where(models.Case.id == case_id)
    return db.execute(stmt).scalar_one_or_none()

# ==================== PROCESSOS ====================

def get_judicial_process_by_case(db: Session, case_id: str) -> Optional[models.JudicialProcess]:
    stmt = select(models.JudicialProcess).where(models.JudicialProcess.case_id == case_id)
    return db.execute(stmt).scalar_one_or_none()

def create_judicial_process(
    db: Session,
    case_id: str,
    summary: GenericProcessSummary,
    radicado: str,
    details: Dict[str, Any]
) -> models.JudicialProcess:
    obj = models.JudicialProcess(
        case_id=case_id,
        process_id=summary.process_id,
        radicado=radicado,
        is_private=summary.is_private,
        details=details,
        status=models.PROCESS_STATUS_ACTIVE,
        last_tracking=datetime.utcnow(),
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def touch_judicial_process(db: Session, jp: models.JudicialProcess) -> models.JudicialProcess:
    jp.last_tracking = datetime.utcnow()
    db.commit()
    return jp

def set_last_activity_date(db: Session, jp: models.JudicialProcess, when: datetime) -> None:
    jp.last_activity_date = when
    db.commit()

# ==================== ACTUACIONES ====================

def get_action(db: Session, judicial_process_id: str, external_id: str) -> Optional[models.JudicialProcessAction]:
    stmt = select(models.JudicialProcessAction).where(
        models.JudicialProcessAction.judicial_process_id == judicial_process_id,
        models.JudicialProcessAction.external_id == external_id
    )
    return db.execute(stmt).scalar_one_or_none()

def create_action(
    db: Session,
    judicial_process_id: str,
    action: GenericAction,
    metadata: Dict[str, Any],
    commit: bool = True
) -> models.JudicialProcessAction:
    obj = models.JudicialProcessAction(
        judicial_process_id=judicial_process_id,
        external_id=action.external_id,
        type=action.type,
        annotation=action.annotation,
        has_documents=action.has_documents,
        action_date=action.action_date,
        meta=metadata,
    )
    db.add(obj)
    if not commit:
        # Só flush: o id fica disponível e o commit é de quem chamou
        db.flush()
        return obj
    db.commit()
    db.refresh(obj)
    return obj

def update_action(
    db: Session,
    obj: models.JudicialProcessAction,
    action: GenericAction,
    metadata: Dict[str, Any],
    commit: bool = True
) -> models.JudicialProcessAction:
    obj.type = action.type
    obj.annotation = action.annotation
    obj.has_documents = action.has_documents
    obj.action_date = action.action_date
    # Novo dict para o SQLAlchemy detectar a mudança na coluna JSON
    obj.meta = dict(metadata)
    if not commit:
        db.flush()
        return obj
    db.commit()
    db.refresh(obj)
    return obj

def list_actions(db: Session, judicial_process_id: str, page: int = 1, page_size: int = 10) -> Dict:
    base = select(models.JudicialProcessAction).where(
        models.JudicialProcessAction.judicial_process_id == judicial_process_id
    )

    # Contar total
    count_stmt = select(func.count()).select_from(base.subquery())
    total = db.execute(count_stmt).scalar()

    # Aplicar paginação
    offset = (page - 1) * page_size
    stmt = base.order_by(models.JudicialProcessAction.action_date.desc()).offset(offset).limit(page_size)
    items = db.execute(stmt).scalars().all()

    return {
        "items": items,
        "total": total,
        "page": page,
        "page_size": page_size,
        "total_pages": max(1, (total + page_size - 1) // page_size)
    }

# ==================== NOTIFICAÇÕES ====================

def create_notification(db: Session, notification: models.Notification, commit: bool = True) -> models.Notification:
    db.add(notification)
    if not commit:
        db.flush()
        return notification
    db.commit()
    db.refresh(notification)
    return notification

def list_case_notifications(db: Session, case_id: str) -> List[models.Notification]:
    return db.query(models.Notification).filter(
        models.Notification.case_id == case_id
    ).order_by(models.Notification.created_at.desc()).all()
