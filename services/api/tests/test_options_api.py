"""
Tests for the per-family option catalog and the configuration check.

Run with: pytest tests/test_options_api.py -v
"""
import pytest


@pytest.fixture
def family(api):
    r = api.post("/familias", json={
        "nome": "Roçadeira",
        "marcadores_vista": [
            {"x": 10, "y": 10, "variavel": "motor_cv", "label": "Motor"},
            {"x": 50, "y": 50, "variavel": "disco", "label": "Disco"},
        ],
    })
    assert r.status_code == 201
    return r.json()


def _add(api, familia_id, chave, valor):
    return api.post(f"/familias/{familia_id}/variaveis/{chave}/opcoes", json={"valor": valor})


class TestOptionCatalog:

    def test_add_and_list(self, api, family):
        fid = family["id"]
        r = _add(api, fid, "motor_cv", "  50 HP ")
        assert r.status_code == 201
        first = r.json()
        assert first["valor"] == "50 HP"
        _add(api, fid, "motor_cv", "75 HP")
        _add(api, fid, "disco", "300 mm")

        catalog = api.get(f"/familias/{fid}/opcoes-variaveis").json()
        assert [o["valor"] for o in catalog["motor_cv"]] == ["50 HP", "75 HP"]
        assert catalog["motor_cv"][0]["id"] == first["id"]
        assert [o["valor"] for o in catalog["disco"]] == ["300 mm"]

    def test_empty_catalog(self, api, family):
        assert api.get(f"/familias/{family['id']}/opcoes-variaveis").json() == {}

    def test_blank_value_rejected(self, api, family):
        assert _add(api, family["id"], "motor_cv", "   ").status_code == 400
        assert api.get(f"/familias/{family['id']}/opcoes-variaveis").json() == {}

    def test_duplicates_accepted(self, api, family):
        _add(api, family["id"], "motor_cv", "50 HP")
        _add(api, family["id"], "motor_cv", "50 HP")
        catalog = api.get(f"/familias/{family['id']}/opcoes-variaveis").json()
        assert len(catalog["motor_cv"]) == 2

    def test_catalogs_are_per_family(self, api, family):
        other = api.post("/familias", json={"nome": "Trator"}).json()
        _add(api, family["id"], "motor_cv", "50 HP")
        assert api.get(f"/familias/{other['id']}/opcoes-variaveis").json() == {}

    def test_remove(self, api, family):
        fid = family["id"]
        opt = _add(api, fid, "motor_cv", "50 HP").json()
        _add(api, fid, "motor_cv", "75 HP")

        # wrong key does not match
        assert api.delete(f"/familias/{fid}/variaveis/disco/opcoes/{opt['id']}").status_code == 404

        r = api.delete(f"/familias/{fid}/variaveis/motor_cv/opcoes/{opt['id']}")
        assert r.status_code == 200
        assert r.json()["status"] == "deleted"
        catalog = api.get(f"/familias/{fid}/opcoes-variaveis").json()
        assert [o["valor"] for o in catalog["motor_cv"]] == ["75 HP"]

        assert api.delete(f"/familias/{fid}/variaveis/motor_cv/opcoes/{opt['id']}").status_code == 404

    def test_padded_key_in_path(self, api, family):
        fid = family["id"]
        opt = _add(api, fid, "%20motor_cv%20", "50 HP").json()
        assert list(api.get(f"/familias/{fid}/opcoes-variaveis").json()) == ["motor_cv"]
        r = api.delete(f"/familias/{fid}/variaveis/%20motor_cv%20/opcoes/{opt['id']}")
        assert r.status_code == 200
        assert api.get(f"/familias/{fid}/opcoes-variaveis").json() == {}

    def test_unknown_family(self, api):
        assert api.get("/familias/999/opcoes-variaveis").status_code == 404
        assert _add(api, 999, "motor_cv", "50 HP").status_code == 404


class TestConfigurationCheck:

    def _check(self, api, familia_id, selecoes):
        r = api.post(f"/familias/{familia_id}/configuracao/verificar", json={"selecoes": selecoes})
        assert r.status_code == 200, r.text
        return r.json()

    def test_all_values_in_catalog(self, api, family):
        fid = family["id"]
        _add(api, fid, "motor_cv", "50 HP")
        _add(api, fid, "disco", "300 mm")
        result = self._check(api, fid, {"motor_cv": " 50 hp ", "disco": "300 mm"})
        assert result["existente"] is True
        assert [m["status"] for m in result["marcadores"]] == ["existente", "existente"]
        assert [m["numero"] for m in result["marcadores"]] == [1, 2]

    def test_value_outside_catalog(self, api, family):
        fid = family["id"]
        _add(api, fid, "motor_cv", "50 HP")
        result = self._check(api, fid, {"motor_cv": "100 HP"})
        assert result["existente"] is False
        by_key = {m["variavel"]: m for m in result["marcadores"]}
        assert by_key["motor_cv"]["status"] == "nao_existente"
        assert by_key["motor_cv"]["valor"] == "100 HP"
        assert by_key["disco"]["status"] == "pendente"
        assert by_key["disco"]["valor"] is None

    def test_family_without_markers(self, api):
        fam = api.post("/familias", json={"nome": "Vazia"}).json()
        result = self._check(api, fam["id"], {})
        assert result == {"familia_id": fam["id"], "existente": False, "marcadores": []}

    def test_unknown_family(self, api):
        r = api.post("/familias/999/configuracao/verificar", json={"selecoes": {}})
        assert r.status_code == 404
