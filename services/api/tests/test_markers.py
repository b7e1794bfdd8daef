"""
Tests for the marker collection model.

Run with: pytest tests/test_markers.py -v
"""
import json

import pytest

from models.marker import (
    DEFAULT_SIZE,
    KIND_NUMBER,
    KIND_VARIABLE,
    SIZE_MAX,
    SIZE_MIN,
    Marker,
    MarkerCollection,
    Rect,
    pointer_to_percent,
)
from models.variable import TechnicalVariable, VariableRegistry


def _numbers(collection):
    return [m.number for m in collection]


class TestPointerToPercent:
    """Pointer position → percent of the image box."""

    def test_inside_box(self):
        rect = Rect(left=100, top=50, width=400, height=200)
        assert pointer_to_percent(200, 150, rect) == (25.0, 50.0)
        assert pointer_to_percent(100, 50, rect) == (0.0, 0.0)
        assert pointer_to_percent(500, 250, rect) == (100.0, 100.0)

    def test_clamped_outside_box(self):
        rect = Rect(left=100, top=50, width=400, height=200)
        assert pointer_to_percent(0, 0, rect) == (0.0, 0.0)
        assert pointer_to_percent(2000, 900, rect) == (100.0, 100.0)

    def test_degenerate_box_returns_none(self):
        assert pointer_to_percent(10, 10, Rect(0, 0, 0, 100)) is None
        assert pointer_to_percent(10, 10, Rect(0, 0, 100, -1)) is None
        assert pointer_to_percent(10, 10, None) is None


class TestAddAndRemove:
    """Sequence numbers stay 1..N."""

    def test_add_assigns_defaults(self):
        c = MarkerCollection()
        m = c.add(25, 50, "power_hp")
        assert (m.x, m.y) == (25, 50)
        assert m.width == DEFAULT_SIZE and m.height == DEFAULT_SIZE
        assert m.render_kind == KIND_VARIABLE
        assert m.variable_key == "power_hp"
        assert m.number == 1
        assert m.id

    def test_numbers_are_dense_after_adds(self):
        c = MarkerCollection()
        for i in range(6):
            c.add(i * 10, i * 10, "k")
        assert _numbers(c) == [1, 2, 3, 4, 5, 6]
        assert len({m.id for m in c}) == 6

    def test_remove_decrements_higher_numbers(self):
        c = MarkerCollection()
        markers = [c.add(10, 10, "k") for _ in range(5)]
        c.remove(markers[1].id)  # number 2
        assert _numbers(c) == [1, 2, 3, 4]
        assert [m.id for m in c] == [markers[0].id, markers[2].id, markers[3].id, markers[4].id]
        assert markers[2].number == 2
        assert markers[4].number == 4

    def test_add_after_remove_continues_sequence(self):
        c = MarkerCollection()
        first = c.add(10, 10, "k")
        c.add(20, 20, "k")
        c.remove(first.id)
        m = c.add(30, 30, "k")
        assert m.number == 2
        assert _numbers(c) == [1, 2]

    def test_remove_unknown_raises(self):
        with pytest.raises(KeyError):
            MarkerCollection().remove("nope")

    def test_add_position_is_clamped(self):
        m = MarkerCollection().add(-5, 140, "k")
        assert (m.x, m.y) == (0.0, 100.0)


class TestResize:
    """Width/height never leave [6, 80]."""

    @pytest.mark.parametrize("delta", [1e6, 500, 69, 68.5])
    def test_growth_is_capped(self, delta):
        c = MarkerCollection()
        m = c.add(50, 50, "k")
        c.resize(m.id, "e", delta)
        assert SIZE_MIN <= m.width <= SIZE_MAX
        assert m.height == DEFAULT_SIZE

    @pytest.mark.parametrize("delta", [-1e6, -500, -7])
    def test_shrink_is_floored(self, delta):
        c = MarkerCollection()
        m = c.add(50, 50, "k")
        c.resize(m.id, "s", delta)
        assert m.height == SIZE_MIN
        assert m.width == DEFAULT_SIZE

    def test_west_and_north_grow_with_negative_delta(self):
        c = MarkerCollection()
        m = c.add(50, 50, "k")
        c.resize(m.id, "w", -4)
        c.resize(m.id, "n", -2)
        assert m.width == 16
        assert m.height == 14

    def test_unknown_handle(self):
        c = MarkerCollection()
        m = c.add(50, 50, "k")
        with pytest.raises(ValueError):
            c.resize(m.id, "ne", 5)


class TestUpdate:

    def test_update_fields(self):
        c = MarkerCollection()
        m = c.add(50, 50, "k")
        c.update(m.id, label="Motor", variable_key="motor_cv", render_kind=KIND_NUMBER)
        assert (m.label, m.variable_key, m.render_kind) == ("Motor", "motor_cv", KIND_NUMBER)

    def test_rejects_unknown_kind(self):
        c = MarkerCollection()
        m = c.add(50, 50, "k")
        with pytest.raises(ValueError):
            c.update(m.id, render_kind="slider")


class TestLoad:
    """Hydration from the stored field."""

    def test_legacy_entry_without_id_or_numero(self):
        c = MarkerCollection.from_raw([{"x": 10, "y": 20, "label": "A"}])
        assert len(c) == 1
        m = c.markers[0]
        assert m.id
        assert m.number == 1
        assert (m.x, m.y, m.label) == (10, 20, "A")

    def test_json_text_and_wrappers(self):
        rows = [{"id": "a", "x": 1, "y": 2, "numero": 1}, {"id": "b", "x": 3, "y": 4, "numero": 2}]
        expected = MarkerCollection.from_raw(rows)
        assert MarkerCollection.from_raw(json.dumps(rows)) == expected
        assert MarkerCollection.from_raw({"marcadores": rows}) == expected
        assert MarkerCollection.from_raw(json.dumps({"markers": rows})) == expected

    @pytest.mark.parametrize("raw", [None, "", "   ", "{not json", "[1, 2", 42, {"other": []}])
    def test_absent_or_malformed_is_empty(self, raw):
        assert len(MarkerCollection.from_raw(raw)) == 0

    @pytest.mark.parametrize("bad", ["NaN", "Infinity", "-Infinity", "1e999", '"inf"', '"nan"'])
    def test_non_finite_values_fall_back(self, bad):
        raw = '[{"x": %s, "y": 20, "width": %s, "numero": %s}, {"x": 5, "y": 5, "numero": 2}]' % (bad, bad, bad)
        c = MarkerCollection.from_raw(raw)
        assert _numbers(c) == [1, 2]
        m = c.markers[0]
        assert (m.x, m.y, m.width) == (50.0, 20.0, DEFAULT_SIZE)
        assert json.loads(c.to_json())[0]["numero"] == 1

    def test_generated_ids_are_unique(self):
        c = MarkerCollection.from_raw([{"x": 1, "y": 1}, {"x": 2, "y": 2}, {"id": "", "x": 3, "y": 3}])
        assert len({m.id for m in c}) == 3

    def test_duplicate_ids_are_replaced(self):
        c = MarkerCollection.from_raw([{"id": "x", "x": 1, "y": 1}, {"id": "x", "x": 2, "y": 2}])
        assert len({m.id for m in c}) == 2

    def test_numbers_are_compacted(self):
        c = MarkerCollection.from_raw([{"x": 1, "y": 1, "numero": 7}, {"x": 2, "y": 2, "numero": 3}])
        assert _numbers(c) == [1, 2]
        assert c.markers[0].x == 2  # lowest stored number first

    def test_key_alias_and_clamping(self):
        c = MarkerCollection.from_raw([{"x": 150, "y": -3, "width": 200, "height": 1, "key": "disco", "tipo": "??"}])
        m = c.markers[0]
        assert (m.x, m.y, m.width, m.height) == (100.0, 0.0, SIZE_MAX, SIZE_MIN)
        assert m.variable_key == "disco"
        assert m.render_kind == KIND_VARIABLE


class TestRoundTrip:

    def test_canonical_round_trip(self):
        c = MarkerCollection()
        c.add(12.5, 40, "motor_cv", label="Motor")
        c.add(80, 10, "disco", render_kind=KIND_NUMBER)
        assert MarkerCollection.from_raw(c.to_json()) == c

    def test_bare_array_round_trip(self):
        rows = [
            {"id": "m1", "x": 5, "y": 6, "width": 10, "height": 20, "label": "A",
             "variavel": "k1", "tipo": "toggle", "numero": 1},
        ]
        c = MarkerCollection.from_raw(rows)
        assert c.to_raw() == [dict(rows[0], x=5.0, y=6.0, width=10.0, height=20.0)]
        assert MarkerCollection.from_raw(c.to_raw()) == c

    def test_persisted_field_names(self):
        c = MarkerCollection()
        c.add(1, 2, "k")
        assert set(c.to_raw()[0]) == {"id", "x", "y", "width", "height", "label", "variavel", "tipo", "numero"}


class TestUnresolvedKeys:

    def test_deactivated_key_is_reported(self):
        registry = VariableRegistry([
            TechnicalVariable(key="motor_cv", name="Motor (CV)"),
            TechnicalVariable(key="old", name="Old", active=False),
        ])
        c = MarkerCollection()
        c.add(1, 1, "motor_cv")
        c.add(2, 2, "old")
        assert c.unresolved_keys(registry) == ["old"]
        assert registry.display_name("old") == "old"
        assert registry.display_name("motor_cv") == "Motor (CV)"


def test_marker_from_raw_defaults():
    m = Marker.from_raw({})
    assert (m.x, m.y) == (50.0, 50.0)
    assert m.number == 0


class TestVariableRegistry:

    def test_from_api_rows(self):
        registry = VariableRegistry.from_api([
            {"id": 1, "chave": "motor_cv", "nome": "Motor (CV)", "categoria": "Motor", "opcoes": "50\n75"},
            {"id": 2, "chave": "disco", "nome": "Disco", "categoria": "Corte", "ativo": False},
            {"id": 3, "chave": "rpm", "nome": "Rotação", "categoria": "Motor"},
        ])
        assert len(registry) == 2
        assert registry.resolve("motor_cv").options == ["50", "75"]
        assert registry.resolve("disco") is None
        assert registry.categories() == ["Motor"]
        assert registry.default_key() == "motor_cv"

    def test_empty_registry_default(self):
        assert VariableRegistry().default_key() == "outro"
        assert VariableRegistry().resolve("") is None
