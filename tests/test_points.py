import pytest

from sizing.errors import UnknownPointError
from sizing.grading import derive_jumps
from sizing.model import MeasurementPoint, MeasurementSpec
from sizing.points import MeasurementPointRepository
from sizing.rounds import SampleRoundEngine
from sizing.units import MeasurementUnit


def _spec(unit=MeasurementUnit.CM):
    return MeasurementSpec(id="spec-1", size_range=["S", "M", "L"], base_size="M", unit=unit)


def _chest(**overrides):
    fields = {
        "pom_code": "CHEST",
        "pom_name": "Chest width",
        "sizes": {"S": 49.0, "M": 52.0, "L": 55.0},
        "base_size": "M",
    }
    fields.update(overrides)
    return MeasurementPoint(**fields)


def _repository(spec=None):
    spec = spec or _spec()
    rounds = SampleRoundEngine(spec)
    return MeasurementPointRepository(spec, rounds), rounds


def test_add_prunes_sizes_outside_range():
    repository, _ = _repository()
    point = repository.add(_chest(sizes={"L": 55.0, "S": 49.0, "M": 52.0, "XXL": 60.0}))
    assert list(point.sizes) == ["S", "M", "L"]
    assert point.base_size == "M"


def test_base_falls_back_to_first_size_with_a_value():
    repository, _ = _repository()
    point = repository.add(_chest(sizes={"S": 49.0, "L": 55.0}, base_size=None))
    assert point.base_size == "S"


def test_point_without_sizes_takes_global_base():
    repository, _ = _repository()
    point = repository.add(_chest(sizes={}, base_size="L"))
    assert point.base_size == "M"


def test_insert_at_clamps_index():
    repository, _ = _repository()
    repository.add(_chest())
    waist = repository.insert_at(-5, _chest(pom_code="WAIST"))
    hip = repository.insert_at(99, _chest(pom_code="HIP"))
    assert [point.pom_code for point in repository] == ["WAIST", "CHEST", "HIP"]
    assert repository.index_of(waist.key) == 0
    assert repository.index_of(hip.key) == 2


def test_update_at_rejects_unknown_fields():
    repository, _ = _repository()
    repository.add(_chest())
    with pytest.raises(ValueError):
        repository.update_at(0, colour="red")
    point = repository.update_at(0, pom_name="Chest", sizes={"M": 50.0})
    assert point.pom_name == "Chest"
    assert point.sizes == {"M": 50.0}


def test_unknown_index_raises():
    repository, _ = _repository()
    with pytest.raises(UnknownPointError):
        repository.get(0)
    with pytest.raises(UnknownPointError):
        repository.index_of("pom_missing")


def test_delete_removes_entries_from_every_round():
    repository, rounds = _repository()
    chest = repository.add(_chest())
    waist = repository.add(_chest(pom_code="WAIST"))
    rounds.create_round()
    rounds.create_round()

    repository.delete_at(0)

    for sample_round in rounds.rounds:
        assert [entry.point_key for entry in sample_round.entries] == [waist.key]
    assert all(entry.point_key != chest.key for r in rounds.rounds for entry in r.entries)


def test_duplicate_gets_fresh_identity_and_unique_code():
    repository, rounds = _repository()
    chest = repository.add(_chest())
    repository.add(_chest(pom_code="WAIST"))
    rounds.create_round()

    first = repository.duplicate(0)
    second = repository.duplicate(0)

    assert first.key != chest.key
    assert first.pom_code == "CHEST_COPY"
    assert second.pom_code == "CHEST_COPY-1"
    assert first.pom_name == "Chest width (Copy)"
    assert first.sizes == chest.sizes
    assert [point.pom_code for point in repository] == ["CHEST", "CHEST_COPY-1", "CHEST_COPY", "WAIST"]

    entries = rounds.rounds[0].entries
    assert len({entry.key for entry in entries}) == len(entries) == 4
    assert [entry.pom_code for entry in entries] == [point.pom_code for point in repository]


def test_add_common_measurements_uses_simple_progression():
    repository, _ = _repository()
    added = repository.add_common_measurements()
    assert [point.pom_code for point in added] == ["CHEST", "LENGTH", "SLEEVE", "SHOULDER", "WAIST"]
    assert added[0].sizes == {"S": 50.0, "M": 52.5, "L": 55.0}
    assert added[1].sizes == {"S": 55.0, "M": 57.5, "L": 60.0}
    assert repository.add_common_measurements() == []


def test_set_base_value_regrades_row():
    repository, _ = _repository()
    repository.add(_chest())
    assert repository.set_base_value(0, "54")
    assert repository.get(0).sizes == {"S": 51.0, "M": 54.0, "L": 57.0}


def test_incomplete_base_value_leaves_point_untouched():
    repository, _ = _repository(_spec(MeasurementUnit.INCH_16))
    repository.add(_chest(sizes={"S": 20.0, "M": 21.0, "L": 22.0}))
    assert not repository.set_base_value(0, "21 1/")
    assert repository.get(0).sizes == {"S": 20.0, "M": 21.0, "L": 22.0}
    assert repository.set_base_value(0, "21 1/2")
    assert repository.get(0).sizes == {"S": 20.5, "M": 21.5, "L": 22.5}


def test_clearing_base_value_clears_row():
    repository, _ = _repository()
    repository.add(_chest())
    assert repository.set_base_value(0, "")
    assert repository.get(0).sizes == {}
    assert repository.get(0).base_size == "M"


def test_set_jump():
    repository, _ = _repository()
    repository.add(_chest())
    assert repository.set_jump(0, "L", "+4")
    assert repository.get(0).sizes == {"S": 49.0, "M": 52.0, "L": 56.0}
    assert not repository.set_jump(0, "L", "abc")
    assert repository.set_jump(0, "S", "")
    assert repository.get(0).sizes == {"M": 52.0, "L": 56.0}
    with pytest.raises(ValueError):
        repository.set_jump(0, "XXL", "+1")


def test_size_range_change_keeps_retained_values():
    repository, _ = _repository()
    repository.add(_chest())
    repository.set_size_range(["M", "L", "XL"])
    point = repository.get(0)
    assert point.sizes == {"M": 52.0, "L": 55.0}
    assert repository.spec.base_size == "M"


def test_size_range_change_moves_base_when_dropped():
    spec = _spec()
    repository = MeasurementPointRepository(spec, default_base_size="L")
    repository.add(_chest())
    repository.set_size_range(["S", "L"])
    assert spec.base_size == "L"
    assert repository.get(0).base_size == "L"
    repository.set_size_range(["XS", "S"])
    assert spec.base_size == "XS"
    assert repository.get(0).base_size == "S"


def test_size_range_validation():
    repository, _ = _repository()
    with pytest.raises(ValueError):
        repository.set_size_range([])
    with pytest.raises(ValueError):
        repository.set_size_range(["S", "s"])
    with pytest.raises(ValueError):
        repository.add_size("m")
    with pytest.raises(ValueError):
        repository.remove_size("XXL")
    assert repository.add_size(" XL ") == ["S", "M", "L", "XL"]
    assert repository.remove_size("S") == ["M", "L", "XL"]


def test_apply_preset():
    repository, _ = _repository()
    repository.add(_chest())
    assert repository.apply_preset("extended_plus") == ["1X", "2X", "3X", "4X", "5X"]
    assert repository.spec.base_size == "1X"
    assert repository.get(0).sizes == {}
    with pytest.raises(KeyError):
        repository.apply_preset("nope")


def test_set_base_size_rebases_points():
    repository, _ = _repository()
    repository.add(_chest())
    repository.set_base_size("S")
    point = repository.get(0)
    assert point.base_size == "S"
    assert point.sizes == {"S": 49.0, "M": 52.0, "L": 55.0}
    assert derive_jumps(point.sizes, point.base_size) == {"M": "+3", "L": "+6"}
    with pytest.raises(ValueError):
        repository.set_base_size("XXL")
