from contextlib import asynccontextmanager

from fastapi import FastAPI, Depends, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.orm import Session
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded

from db import Base, engine, SessionLocal
import schemas
import crud
import models
from adapter_base import ProviderError, ProviderRegistry, get_default_registry
from tasks import (
    run_judicial_sweep,
    update_single_case,
    get_last_sync_status,
    get_sync_history,
    get_sync_stats,
    CaseNotFound,
    MissingFilingNumber,
    CaseSyncInProgress
)
from scheduler import JudicialScheduler
from config import settings
from logger import logger

# Criar tabelas
Base.metadata.create_all(bind=engine)

scheduler = JudicialScheduler() if settings.ENABLE_JUDICIAL_SCHEDULER else None

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Agendador diário roda junto com a API quando habilitado
    if scheduler:
        scheduler.start()
    yield
    if scheduler:
        scheduler.stop()

# Inicializar app
app = FastAPI(
    lifespan=lifespan,
    title=settings.API_TITLE,
    version=settings.API_VERSION,
    description="""
    ## Juris Sync - Sincronização de Processos Judiciais

    Mantém um espelho local das actuaciones de cada processo acompanhado e
    notifica a firma apenas quando há informação nova.

    ### Disparos:
    1. **Varredura completa**: todos os casos abertos com radicado
    2. **Caso único**: sincronização sob demanda de um caso
    """
)

# Rate Limiting
limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def get_registry() -> ProviderRegistry:
    return get_default_registry()

# ==================== SISTEMA ====================

@app.get("/health", tags=["Sistema"])
def health():
    """Verifica se a API está funcionando"""
    return {"status": "ok", "version": settings.API_VERSION}

# ==================== SINCRONIZAÇÃO ====================

@app.post("/judicial/sweep", tags=["Sincronização"])
@limiter.limit("2/minute")
def run_sweep(
    request: Request,
    db: Session = Depends(get_db),
    registry: ProviderRegistry = Depends(get_registry)
):
    """
    Executar agora a varredura de todos os casos abertos com radicado.

    Falhas de um caso não interrompem os demais; veja /judicial/sync/status.
    """
    return run_judicial_sweep(db, registry=registry, execution_type="api")

@app.post("/cases/{case_id}/judicial/sync", response_model=schemas.SyncResult, tags=["Sincronização"])
@limiter.limit("10/minute")
def sync_case(
    request: Request,
    case_id: str,
    db: Session = Depends(get_db),
    registry: ProviderRegistry = Depends(get_registry)
):
    """Sincronizar um caso sob demanda (ex.: logo após cadastrar o radicado)"""
    try:
        return update_single_case(db, case_id, registry=registry)
    except CaseNotFound:
        raise HTTPException(status_code=404, detail="Caso não encontrado")
    except MissingFilingNumber:
        raise HTTPException(status_code=400, detail="Caso sem radicado")
    except CaseSyncInProgress:
        raise HTTPException(status_code=409, detail="Sincronização do caso já em andamento")
    except ProviderError as e:
        logger.error(f"Erro do provedor judicial no caso {case_id}: {e}")
        raise HTTPException(status_code=502, detail=f"Erro no sistema judicial remoto: {e}")

@app.get("/cases/{case_id}/judicial", response_model=schemas.JudicialProcessView, tags=["Processos"])
def get_judicial_process_view(
    case_id: str,
    page: int = Query(1, ge=1, description="Número da página"),
    page_size: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE, description="Itens por página"),
    db: Session = Depends(get_db)
):
    """Processo acompanhado do caso com as actuaciones (mais recentes primeiro)"""
    case = db.get(models.Case, case_id)
    if not case:
        raise HTTPException(status_code=404, detail="Caso não encontrado")

    jp = crud.get_judicial_process_by_case(db, case_id)
    if jp is None:
        return schemas.JudicialProcessView(tracked=False, filing_number=case.filing_number, page_size=page_size)

    result = crud.list_actions(db, jp.id, page=page, page_size=page_size)
    return schemas.JudicialProcessView(
        tracked=True,
        filing_number=jp.radicado,
        process=schemas.JudicialProcessOut.model_validate(jp),
        actions=[schemas.JudicialProcessActionOut.model_validate(a) for a in result["items"]],
        page=result["page"],
        page_size=result["page_size"],
        total=result["total"],
        total_pages=result["total_pages"]
    )

# ==================== HISTÓRICO ====================

@app.get("/judicial/sync/status", tags=["Admin"])
def get_sync_status(db: Session = Depends(get_db)):
    """Status da última varredura"""
    return get_last_sync_status(db)

@app.get("/judicial/sync/history", tags=["Admin"])
def get_sync_history_endpoint(
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db)
):
    """Histórico das últimas varreduras"""
    history = get_sync_history(db, limit=limit)
    return {
        "history": history,
        "total_returned": len(history)
    }

@app.get("/judicial/sync/stats", tags=["Admin"])
def get_sync_stats_endpoint(db: Session = Depends(get_db)):
    """Estatísticas gerais das varreduras"""
    return get_sync_stats(db)
