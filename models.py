from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, JSON, UniqueConstraint, Boolean, Index, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import uuid
from db import Base

CASE_STATUS_OPEN = "OPEN"
CASE_STATUS_ON_HOLD = "ON_HOLD"
CASE_STATUS_CLOSED = "CLOSED"

PROCESS_STATUS_ACTIVE = "ACTIVE"

NOTIFICATION_TYPE_JUDICIAL_UPDATE = "JUDICIAL_UPDATE"
NOTIFICATION_TYPE_CASE_UPDATE = "CASE_UPDATE"
NOTIFICATION_TYPE_SYSTEM = "SYSTEM"

def _uuid() -> str:
    return str(uuid.uuid4())

class Firm(Base):
    __tablename__ = "firms"
    id = Column(String, primary_key=True, default=_uuid)
    name = Column(String, nullable=False)
    country = Column(String, nullable=True)  # "CO", "Colombia", ...
    created_at = Column(DateTime, default=datetime.utcnow)

    cases = relationship("Case", back_populates="firm")

class Case(Base):
    __tablename__ = "cases"
    id = Column(String, primary_key=True, default=_uuid)
    firm_id = Column(String, ForeignKey("firms.id"), nullable=False, index=True)
    case_number = Column(String, unique=True, index=True, nullable=False)
    filing_number = Column(String(100), nullable=True, index=True)  # radicado
    status = Column(String, index=True, default=CASE_STATUS_OPEN, nullable=False)
    assigned_to_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    firm = relationship("Firm", back_populates="cases")
    judicial_process = relationship("JudicialProcess", back_populates="case", uselist=False)

    __table_args__ = (
        Index('ix_case_status_filing', 'status', 'filing_number'),
    )

class JudicialProcess(Base):
    """Espelho local do processo judicial remoto (um por caso)"""
    __tablename__ = "judicial_processes"
    id = Column(String, primary_key=True, default=_uuid)
    case_id = Column(String, ForeignKey("cases.id"), unique=True, index=True, nullable=False)

    # Identificadores externos
    process_id = Column(String, nullable=False, index=True)
    radicado = Column(String, nullable=False, index=True)

    # Campos específicos de cada país (departamento, despacho, juiz, ...)
    details = Column(JSON, nullable=True)

    is_private = Column(Boolean, default=False, nullable=False)
    status = Column(String, default=PROCESS_STATUS_ACTIVE, nullable=False)
    last_tracking = Column(DateTime, nullable=False, default=datetime.utcnow)
    last_activity_date = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    case = relationship("Case", back_populates="judicial_process")
    actions = relationship(
        "JudicialProcessAction",
        back_populates="judicial_process",
        cascade="all, delete-orphan",
        order_by="desc(JudicialProcessAction.action_date)",
    )

class JudicialProcessAction(Base):
    """Uma actuación do processo remoto"""
    __tablename__ = "judicial_process_actions"
    id = Column(String, primary_key=True, default=_uuid)
    judicial_process_id = Column(String, ForeignKey("judicial_processes.id"), nullable=False, index=True)

    external_id = Column(String, nullable=False, index=True)
    type = Column(String, nullable=True)
    annotation = Column(Text, nullable=True)
    action_date = Column(DateTime, nullable=True)
    has_documents = Column(Boolean, default=False, nullable=False)
    # "metadata" é reservado pelo declarative_base
    meta = Column("metadata", JSON, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    judicial_process = relationship("JudicialProcess", back_populates="actions")

    __table_args__ = (
        UniqueConstraint("judicial_process_id", "external_id", name="uq_action_process_external"),
        Index('ix_action_process_date', 'judicial_process_id', 'action_date'),
    )

class Notification(Base):
    __tablename__ = "notifications"
    id = Column(String, primary_key=True, default=_uuid)
    firm_id = Column(String, ForeignKey("firms.id"), nullable=False, index=True)
    user_id = Column(String, nullable=True, index=True)  # null = todos da firma

    case_id = Column(String, ForeignKey("cases.id"), nullable=True)
    judicial_process_action_id = Column(String, ForeignKey("judicial_process_actions.id"), nullable=True)

    type = Column(String, nullable=False)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=True)
    link_url = Column(String, nullable=True)

    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow)

class JudicialSyncLog(Base):
    """Registro de execuções da varredura judicial"""
    __tablename__ = "judicial_sync_logs"

    id = Column(Integer, primary_key=True, index=True)

    # Timestamp
    started_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    finished_at = Column(DateTime, nullable=True)
    duration_seconds = Column(Float, nullable=True)

    # Tipo de execução
    execution_type = Column(String, nullable=False, default="manual", index=True)  # "cron", "scheduler", "api", "manual"

    # Resultado
    success = Column(Boolean, nullable=False, default=False, index=True)
    cases_found = Column(Integer, nullable=False, default=0)
    cases_processed = Column(Integer, nullable=False, default=0)
    cases_failed = Column(Integer, nullable=False, default=0)
    cases_skipped = Column(Integer, nullable=False, default=0)

    # Erro (se houver)
    error_message = Column(Text, nullable=True)

    # Metadados (erros por caso etc.)
    meta = Column(JSON, nullable=True)

    __table_args__ = (
        Index('ix_sync_log_started_success', 'started_at', 'success'),
    )

    def __repr__(self):
        return f"<JudicialSyncLog(id={self.id}, type={self.execution_type}, success={self.success}, processed={self.cases_processed})>"
