"""
Adaptador Colombia - Consulta de Processos da Rama Judicial
===========================================================

Substitui o scraping por chamadas REST à API pública de consulta de
processos (consultaprocesos.ramajudicial.gov.co).

Endpoints usados:
- /Procesos/Consulta/NumeroRadicacion  (busca pelo radicado)
- /Proceso/Detalle/{idProceso}         (detalhe)
- /Proceso/Actuaciones/{idProceso}     (actuaciones, paginado)

As datas vêm sem fuso ("2023-10-27T15:04:05"); ver parse_colombian_time.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, TypeAdapter, ValidationError, field_validator

from adapter_base import BaseProvider, ProviderError
from config import settings
from logger import logger
from schemas import GenericAction, GenericProcessSummary

COLOMBIA_TIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
_DATETIME = TypeAdapter(datetime)


def parse_colombian_time(value: Any) -> Optional[datetime]:
    """
    Converte as datas da API colombiana.

    Tenta primeiro o formato local sem fuso e depois ISO-8601/RFC3339.
    None (null no JSON) significa "sem valor", não erro.
    """
    if value is None or isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        raise ValueError(f"invalid date value: {value!r}")

    try:
        return datetime.strptime(value, COLOMBIA_TIME_FORMAT)
    except ValueError:
        pass

    # RFC3339 com "Z", offset ou fração de segundos com menos de 6 dígitos
    try:
        return _DATETIME.validate_python(value)
    except ValidationError:
        raise ValueError(f"unrecognized date format: {value!r}")


# === Estruturas internas da API colombiana ===

class _CoModel(BaseModel):
    class Config:
        populate_by_name = True
        extra = "ignore"


class CoProcessSummary(_CoModel):
    id_proceso: int = Field(alias="idProceso")
    id_conexion: Optional[int] = Field(default=None, alias="idConexion")
    es_privado: bool = Field(default=False, alias="esPrivado")
    fecha_proceso: Optional[datetime] = Field(default=None, alias="fechaProceso")
    fecha_ultima_actuacion: Optional[datetime] = Field(default=None, alias="fechaUltimaActuacion")
    despacho: Optional[str] = None
    departamento: Optional[str] = None
    sujetos_procesales: Optional[str] = Field(default=None, alias="sujetosProcesales")

    @field_validator("fecha_proceso", "fecha_ultima_actuacion", mode="before")
    @classmethod
    def _parse_dates(cls, v):
        return parse_colombian_time(v)


class CoSearchResponse(_CoModel):
    procesos: Optional[List[CoProcessSummary]] = None


class CoProcessDetail(_CoModel):
    tipo_proceso: Optional[str] = Field(default=None, alias="tipoProceso")
    ponente: Optional[str] = None
    clase_proceso: Optional[str] = Field(default=None, alias="claseProceso")
    recurso: Optional[str] = None
    ubicacion: Optional[str] = None
    contenido_radicacion: Optional[str] = Field(default=None, alias="contenidoRadicacion")


class CoProcessAction(_CoModel):
    id_reg_actuacion: int = Field(alias="idRegActuacion")
    cons_actuacion: Optional[int] = Field(default=None, alias="consActuacion")
    actuacion: Optional[str] = None
    anotacion: Optional[str] = None
    fecha_actuacion: Optional[datetime] = Field(default=None, alias="fechaActuacion")
    fecha_registro: Optional[datetime] = Field(default=None, alias="fechaRegistro")
    fecha_inicial: Optional[datetime] = Field(default=None, alias="fechaInicial")
    fecha_final: Optional[datetime] = Field(default=None, alias="fechaFinal")
    con_documentos: bool = Field(default=False, alias="conDocumentos")

    @field_validator("fecha_actuacion", "fecha_registro", "fecha_inicial", "fecha_final", mode="before")
    @classmethod
    def _parse_dates(cls, v):
        return parse_colombian_time(v)


class CoPagination(_CoModel):
    cantidad_paginas: Optional[int] = Field(default=None, alias="cantidadPaginas")
    total_paginas: Optional[int] = Field(default=None, alias="totalPaginas")

    @property
    def pages(self) -> int:
        return self.cantidad_paginas or self.total_paginas or 1


class CoActionsResponse(_CoModel):
    actuaciones: Optional[List[CoProcessAction]] = None
    paginacion: Optional[CoPagination] = None


class ColombiaProvider(BaseProvider):
    """Implementação do contrato para a Rama Judicial da Colômbia."""

    def __init__(self, base_url: Optional[str] = None, max_action_pages: Optional[int] = None, **kwargs):
        super().__init__(base_url or settings.COLOMBIA_BASE_URL, **kwargs)
        self.max_action_pages = max_action_pages or settings.COLOMBIA_MAX_ACTION_PAGES

    def _decode(self, model, data):
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise ProviderError(f"failed to decode response: {e}") from e

    def get_process_id_by_radicado(self, radicado: str) -> Optional[GenericProcessSummary]:
        data = self._get_json(
            "/Procesos/Consulta/NumeroRadicacion",
            params={"numero": radicado, "SoloActivos": "true", "pagina": 1},
        )
        search = self._decode(CoSearchResponse, data)

        if not search.procesos:
            return None

        proc = search.procesos[0]
        return GenericProcessSummary(
            process_id=str(proc.id_proceso),
            radicado=radicado,
            is_private=proc.es_privado,
            department=proc.departamento,
            office=proc.despacho,
            subject=proc.sujetos_procesales,
        )

    def get_process_detail(self, process_id: str) -> Dict[str, Any]:
        data = self._get_json(f"/Proceso/Detalle/{process_id}")
        detail = self._decode(CoProcessDetail, data)

        out: Dict[str, Any] = {
            "process_type": detail.tipo_proceso,
            "judge": detail.ponente,
        }
        optional = {
            "class": detail.clase_proceso,
            "resource": detail.recurso,
            "location": detail.ubicacion,
            "content": detail.contenido_radicacion,
        }
        out.update({k: v for k, v in optional.items() if v})
        return out

    def get_process_actions(self, process_id: str) -> List[GenericAction]:
        actions: List[GenericAction] = []
        page = 1
        while True:
            data = self._get_json(f"/Proceso/Actuaciones/{process_id}", params={"pagina": page})
            resp = self._decode(CoActionsResponse, data)
            actions.extend(self._to_generic(act) for act in resp.actuaciones or [])

            total_pages = resp.paginacion.pages if resp.paginacion else 1
            if page >= min(total_pages, self.max_action_pages):
                break
            page += 1

        logger.debug(f"Processo {process_id}: {len(actions)} actuaciones em {page} página(s)")
        return actions

    @staticmethod
    def _to_generic(act: CoProcessAction) -> GenericAction:
        metadata: Dict[str, Any] = {}
        if act.cons_actuacion is not None:
            metadata["sequence"] = act.cons_actuacion

        return GenericAction(
            external_id=str(act.id_reg_actuacion),
            type=act.actuacion or "",
            annotation=act.anotacion or "",
            action_date=act.fecha_actuacion,
            registration_date=act.fecha_registro,
            initial_date=act.fecha_inicial,
            final_date=act.fecha_final,
            has_documents=act.con_documentos,
            metadata=metadata,
        )
