"""
Testes unitários do adaptador da Rama Judicial (Colômbia).

As chamadas HTTP passam por uma sessão requests mockada.
"""

from datetime import datetime, timezone
from unittest.mock import Mock

import pytest
import requests

from adapter_base import ProviderError
from colombia_adapter import ColombiaProvider, parse_colombian_time


def _response(payload=None, status_code=200):
    resp = Mock()
    resp.status_code = status_code
    resp.json.return_value = payload
    return resp


def _provider(*responses, **kwargs):
    session = Mock()
    session.get.side_effect = list(responses)
    return ColombiaProvider(base_url="https://example.test/api/v2", session=session, **kwargs), session


class TestParseColombianTime:
    """Leitura tolerante das datas."""

    def test_local_format(self):
        assert parse_colombian_time("2023-10-27T15:04:05") == datetime(2023, 10, 27, 15, 4, 5)

    def test_rfc3339_format(self):
        parsed = parse_colombian_time("2023-10-27T15:04:05Z")
        assert parsed == datetime(2023, 10, 27, 15, 4, 5, tzinfo=timezone.utc)

    def test_offset_format(self):
        parsed = parse_colombian_time("2023-10-27T10:04:05-05:00")
        assert parsed == datetime(2023, 10, 27, 15, 4, 5, tzinfo=timezone.utc)

    def test_fractional_seconds_two_digits(self):
        parsed = parse_colombian_time("2023-10-27T15:04:05.12Z")
        assert parsed == datetime(2023, 10, 27, 15, 4, 5, 120000, tzinfo=timezone.utc)

    def test_null_is_no_value(self):
        assert parse_colombian_time(None) is None

    def test_invalid_format(self):
        with pytest.raises(ValueError):
            parse_colombian_time("27-10-2023")


class TestSearch:
    """GET /Procesos/Consulta/NumeroRadicacion"""

    def test_returns_first_process(self):
        provider, session = _provider(_response({
            "procesos": [
                {
                    "idProceso": 101,
                    "esPrivado": False,
                    "fechaProceso": "2023-01-15T00:00:00",
                    "fechaUltimaActuacion": None,
                    "despacho": "Juzgado 1 Civil",
                    "departamento": "Bogotá",
                    "sujetosProcesales": "Juan Pérez vs María Gómez"
                },
                {"idProceso": 202}
            ]
        }))

        summary = provider.get_process_id_by_radicado("12345")

        assert summary.process_id == "101"
        assert summary.radicado == "12345"
        assert summary.is_private is False
        assert summary.office == "Juzgado 1 Civil"
        assert summary.department == "Bogotá"
        assert summary.subject == "Juan Pérez vs María Gómez"

        url = session.get.call_args.args[0]
        params = session.get.call_args.kwargs["params"]
        assert url == "https://example.test/api/v2/Procesos/Consulta/NumeroRadicacion"
        assert params["numero"] == "12345"
        assert params["SoloActivos"] == "true"
        assert session.get.call_args.kwargs["timeout"] == provider.timeout

    @pytest.mark.parametrize("payload", [{"procesos": []}, {"procesos": None}, {}])
    def test_no_match_returns_none(self, payload):
        provider, _ = _provider(_response(payload))
        assert provider.get_process_id_by_radicado("00000") is None

    def test_non_200_is_error(self):
        provider, _ = _provider(_response({}, status_code=500))
        with pytest.raises(ProviderError, match="500"):
            provider.get_process_id_by_radicado("12345")

    def test_timeout_is_error(self):
        provider, _ = _provider(requests.Timeout("read timed out"))
        with pytest.raises(ProviderError, match="request failed"):
            provider.get_process_id_by_radicado("12345")

    def test_malformed_json_is_error(self):
        resp = _response()
        resp.json.side_effect = ValueError("Expecting value")
        provider, _ = _provider(resp)
        with pytest.raises(ProviderError, match="decode"):
            provider.get_process_id_by_radicado("12345")

    def test_unexpected_shape_is_error(self):
        provider, _ = _provider(_response({"procesos": [{"esPrivado": True}]}))
        with pytest.raises(ProviderError):
            provider.get_process_id_by_radicado("12345")


class TestDetail:
    """GET /Proceso/Detalle/{id}"""

    def test_maps_known_fields(self):
        provider, session = _provider(_response({
            "tipoProceso": "Verbal",
            "ponente": "Juez Pérez",
            "claseProceso": "Declarativo",
            "recurso": "",
            "ubicacion": "Despacho"
        }))

        detail = provider.get_process_detail("101")

        assert detail == {
            "process_type": "Verbal",
            "judge": "Juez Pérez",
            "class": "Declarativo",
            "location": "Despacho",
        }
        assert session.get.call_args.args[0].endswith("/Proceso/Detalle/101")

    def test_empty_detail_keeps_base_keys(self):
        provider, _ = _provider(_response({}))
        assert provider.get_process_detail("101") == {"process_type": None, "judge": None}


class TestActions:
    """GET /Proceso/Actuaciones/{id}"""

    ACTION = {
        "idRegActuacion": 555,
        "consActuacion": 12,
        "actuacion": "Auto admite demanda",
        "anotacion": "Se admite la demanda",
        "fechaActuacion": "2024-02-01T00:00:00",
        "fechaRegistro": "2024-02-02T08:30:00",
        "fechaInicial": None,
        "fechaFinal": "2024-02-10T00:00:00Z",
        "conDocumentos": True
    }

    def test_maps_actions(self):
        provider, session = _provider(_response({
            "actuaciones": [self.ACTION],
            "paginacion": {"cantidadPaginas": 1}
        }))

        actions = provider.get_process_actions("101")

        assert len(actions) == 1
        act = actions[0]
        assert act.external_id == "555"
        assert act.type == "Auto admite demanda"
        assert act.annotation == "Se admite la demanda"
        assert act.action_date == datetime(2024, 2, 1)
        assert act.registration_date == datetime(2024, 2, 2, 8, 30)
        assert act.initial_date is None
        assert act.final_date == datetime(2024, 2, 10, tzinfo=timezone.utc)
        assert act.has_documents is True
        assert act.metadata == {"sequence": 12}
        assert session.get.call_args.kwargs["params"] == {"pagina": 1}

    def test_only_first_page_by_default(self):
        provider, session = _provider(_response({
            "actuaciones": [self.ACTION],
            "paginacion": {"cantidadPaginas": 4}
        }), max_action_pages=1)

        provider.get_process_actions("101")

        assert session.get.call_count == 1

    def test_follows_pages_up_to_limit(self):
        second = dict(self.ACTION, idRegActuacion=556)
        provider, session = _provider(
            _response({"actuaciones": [self.ACTION], "paginacion": {"cantidadPaginas": 2}}),
            _response({"actuaciones": [second], "paginacion": {"cantidadPaginas": 2}}),
            max_action_pages=5,
        )

        actions = provider.get_process_actions("101")

        assert [a.external_id for a in actions] == ["555", "556"]
        assert session.get.call_count == 2
        assert session.get.call_args.kwargs["params"] == {"pagina": 2}

    def test_invalid_date_is_error(self):
        provider, _ = _provider(_response({
            "actuaciones": [dict(self.ACTION, fechaActuacion="01/02/2024")]
        }))
        with pytest.raises(ProviderError):
            provider.get_process_actions("101")

    def test_missing_actions_list(self):
        provider, _ = _provider(_response({"actuaciones": None}))
        assert provider.get_process_actions("101") == []
