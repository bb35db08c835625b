from pydantic import BaseModel, Field
from typing import Optional, List, Any, Dict
from datetime import datetime

# Contrato genérico dos provedores
class GenericProcessSummary(BaseModel):
    process_id: str
    radicado: str
    is_private: bool = False
    department: Optional[str] = None
    office: Optional[str] = None
    subject: Optional[str] = None

class GenericAction(BaseModel):
    external_id: str
    type: str = ""
    annotation: str = ""
    action_date: Optional[datetime] = None
    registration_date: Optional[datetime] = None
    initial_date: Optional[datetime] = None
    final_date: Optional[datetime] = None
    has_documents: bool = False
    metadata: Dict[str, Any] = Field(default_factory=dict)

# Resultado de uma reconciliação
class SyncResult(BaseModel):
    case_id: str
    status: str  # "synced", "skipped_no_provider", "not_found", "no_filing_number"
    is_new_tracking: bool = False
    imported: int = 0
    updated: int = 0
    notifications: int = 0

# Schemas de saída
class JudicialProcessActionOut(BaseModel):
    id: str
    external_id: str
    type: Optional[str]
    annotation: Optional[str]
    action_date: Optional[datetime]
    has_documents: bool
    meta: Optional[dict]
    created_at: datetime

    class Config:
        from_attributes = True

class JudicialProcessOut(BaseModel):
    id: str
    case_id: str
    process_id: str
    radicado: str
    details: Optional[dict]
    is_private: bool
    status: str
    last_tracking: datetime
    last_activity_date: Optional[datetime]
    created_at: datetime

    class Config:
        from_attributes = True

class JudicialProcessView(BaseModel):
    tracked: bool
    filing_number: Optional[str] = None
    process: Optional[JudicialProcessOut] = None
    actions: List[JudicialProcessActionOut] = Field(default_factory=list)
    page: int = 1
    page_size: int = 10
    total: int = 0
    total_pages: int = 1
