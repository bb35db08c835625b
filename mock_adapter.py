from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
import random, hashlib

from adapter_base import JudicialProvider, ProviderError
from schemas import GenericAction, GenericProcessSummary

ACTION_TYPES = [
    "Auto admite demanda", "Notificación personal", "Traslado", "Auto decreta pruebas",
    "Audiencia inicial", "Alegatos de conclusión", "Sentencia primera instancia"
]
OFFICES_CO = [
    "Juzgado 001 Civil del Circuito de Bogotá", "Juzgado 003 Laboral de Medellín",
    "Juzgado 012 Administrativo de Cali", "Tribunal Superior de Barranquilla"
]
DEPARTMENTS_CO = ["Bogotá", "Antioquia", "Valle del Cauca", "Atlántico"]

class MockJudicialProvider(JudicialProvider):
    """Provider MOCK para desenvolvimento e testes.

    Guarda processos e actuaciones em memória. Em produção: usar o
    adaptador real do país (ex.: ColombiaProvider).
    """
    def __init__(self):
        self.processes: Dict[str, GenericProcessSummary] = {}
        self.details: Dict[str, Dict[str, Any]] = {}
        self.actions: Dict[str, List[GenericAction]] = {}
        self.errors: Dict[str, Exception] = {}
        self.calls: List[tuple] = []

    def add_process(self, summary: GenericProcessSummary, detail: Optional[Dict[str, Any]] = None,
                    actions: Optional[List[GenericAction]] = None):
        self.processes[summary.radicado] = summary
        self.details[summary.process_id] = dict(detail or {})
        self.actions[summary.process_id] = list(actions or [])

    def set_actions(self, process_id: str, actions: List[GenericAction]):
        self.actions[process_id] = list(actions)

    def fail(self, operation: str, error: Optional[Exception] = None):
        """Faz a próxima chamada de `operation` falhar (ex.: "get_process_actions")."""
        self.errors[operation] = error or ProviderError("mock failure")

    def _check(self, operation: str, arg: str):
        self.calls.append((operation, arg))
        if operation in self.errors:
            raise self.errors.pop(operation)

    def get_process_id_by_radicado(self, radicado: str) -> Optional[GenericProcessSummary]:
        self._check("get_process_id_by_radicado", radicado)
        return self.processes.get(radicado)

    def get_process_detail(self, process_id: str) -> Dict[str, Any]:
        self._check("get_process_detail", process_id)
        return dict(self.details.get(process_id, {}))

    def get_process_actions(self, process_id: str) -> List[GenericAction]:
        self._check("get_process_actions", process_id)
        return list(self.actions.get(process_id, []))

    @classmethod
    def with_sample_data(cls, n: int = 5, actions_per_process: int = 4, seed: int = 42) -> "MockJudicialProvider":
        """Gera processos fictícios para os radicados 110013103001202500{i:03d}00."""
        rnd = random.Random(seed)
        provider = cls()
        base = datetime(2025, 1, 1, 8, 0, 0)
        for i in range(n):
            radicado = f"110013103001202500{i:03d}00"
            process_id = str(int(hashlib.sha256(radicado.encode()).hexdigest()[:8], 16))
            summary = GenericProcessSummary(
                process_id=process_id,
                radicado=radicado,
                is_private=False,
                department=rnd.choice(DEPARTMENTS_CO),
                office=rnd.choice(OFFICES_CO),
                subject="Demandante: Ejemplo S.A.S. | Demandado: Municipio de Ejemplo",
            )
            actions = []
            for j in range(actions_per_process):
                when = base + timedelta(days=rnd.randint(1, 300))
                actions.append(GenericAction(
                    external_id=f"{process_id}-{j}",
                    type=ACTION_TYPES[j % len(ACTION_TYPES)],
                    annotation=f"Actuación de prueba {j + 1}",
                    action_date=when,
                    registration_date=when,
                    has_documents=rnd.random() < 0.3,
                ))
            # Mais recente primeiro, como a API real
            actions.sort(key=lambda a: a.action_date, reverse=True)
            provider.add_process(summary, {"process_type": "Verbal", "judge": "Juez de Prueba"}, actions)
        return provider
