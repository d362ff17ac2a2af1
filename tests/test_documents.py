from sizing.config import Settings
from sizing.documents import dump_spec, load_spec
from sizing.model import RequestedSource
from sizing.presets import GENDER_SIZE_RANGES
from sizing.units import MeasurementUnit

SETTINGS = Settings()


def _legacy_document():
    return {
        "_id": "tp-100",
        "articleInfo": {"gender": "Women"},
        "measurementUnit": "inch-16",
        "measurementSizeRange": ["S", "M", "L"],
        "measurementBaseSize": "M",
        "measurements": [
            {
                "_id": "m-1",
                "pomCode": "CHEST",
                "pomName": "Chest width",
                "minusTolerance": "±0.5 in",
                "plusTolerance": 0.25,
                "sizes": {"S": 20, "M": "21", "L": 22.5},
                "baseSize": "M",
            },
            {
                "pomCode": "WAIST",
                "pomName": "Waist",
                "sizes": {"M": 18},
            },
        ],
        "sampleMeasurementRounds": [
            {
                "_id": "r-2",
                "name": "Second",
                "order": 1,
                "measurements": [],
            },
            {
                "_id": "r-1",
                "name": "",
                "order": 0,
                "measurementDate": "2024-02-01",
                "reviewer": None,
                "requestedSource": "original",
                "measurements": [
                    {"measurementId": "m-1", "requested": {"M": 21}, "measured": {"M": "21 1/4"}},
                    {"pomCode": "WAIST", "requested": {"M": "18"}, "comments": {"M": "ok"}},
                ],
            },
        ],
    }


def test_empty_document_gets_defaults():
    spec = load_spec({}, SETTINGS)
    assert spec.unit is MeasurementUnit.CM
    assert spec.size_range == list(GENDER_SIZE_RANGES["Unisex"])
    assert spec.base_size == spec.size_range[0]
    assert spec.points == []
    assert spec.rounds == []


def test_gender_range_and_settings_fallbacks():
    settings = Settings(default_unit=MeasurementUnit.MM, default_base_size="6")
    spec = load_spec({"articleInfo": {"gender": "kids"}}, settings)
    assert spec.unit is MeasurementUnit.MM
    assert spec.size_range == list(GENDER_SIZE_RANGES["Kids"])
    assert spec.base_size == "6"


def test_unknown_base_size_falls_back_to_first_size():
    spec = load_spec({"measurementSizeRange": ["S", "M"], "measurementBaseSize": "XL"}, SETTINGS)
    assert spec.base_size == "S"


def test_legacy_points_are_normalised():
    spec = load_spec(_legacy_document(), SETTINGS)
    chest, waist = spec.points
    assert spec.id == "tp-100"
    assert spec.unit is MeasurementUnit.INCH_16
    assert chest.id == "m-1"
    assert chest.key
    assert chest.minus_tolerance == 0.5
    assert chest.plus_tolerance == 0.25
    assert chest.sizes == {"S": 20.0, "M": 21.0, "L": 22.5}
    assert waist.base_size == "M"
    assert waist.minus_tolerance == 1.0


def test_rounds_are_ordered_and_entries_relinked():
    spec = load_spec(_legacy_document(), SETTINGS)
    chest, waist = spec.points
    first, second = spec.rounds
    assert first.id == "r-1"
    assert first.name == "Sample Round 1"
    assert first.reviewer == ""
    assert first.requested_source is RequestedSource.ORIGINAL
    assert second.name == "Second"

    chest_entry, waist_entry = first.entries
    assert chest_entry.point_key == chest.key
    assert chest_entry.requested["M"] == "21"
    assert chest_entry.measured == {"M": "21 1/4"}
    assert waist_entry.point_key == waist.key
    assert waist_entry.comments == {"M": "ok"}
    assert waist_entry.measured == {"M": ""}

    # the empty later round is filled in for every point
    assert [entry.point_key for entry in second.entries] == [chest.key, waist.key]


def test_sizes_outside_the_configured_range_are_kept():
    document = {
        "measurementSizeRange": ["S", "M"],
        "measurements": [{"pomCode": "CHEST", "pomName": "Chest", "sizes": {"M": 50, "XL": 56}}],
    }
    spec = load_spec(document, SETTINGS)
    assert spec.size_range == ["S", "M", "XL"]
    assert spec.points[0].sizes == {"M": 50.0, "XL": 56.0}


def test_text_sizes_are_read_in_the_document_unit():
    document = {
        "measurementUnit": "inch-16",
        "measurementSizeRange": ["S", "M", "L"],
        "measurements": [
            {
                "pomCode": "CHEST",
                "pomName": "Chest",
                "sizes": {"S": "11 3/4", "M": "12 1/2", "L": "13.25"},
            }
        ],
    }
    spec = load_spec(document, SETTINGS)
    assert spec.points[0].sizes == {"S": 11.75, "M": 12.5, "L": 13.25}


def test_size_labels_differing_in_case_map_onto_the_range():
    document = {
        "measurementSizeRange": ["S", "M", "L"],
        "measurementBaseSize": "m",
        "measurements": [
            {"pomCode": "CHEST", "pomName": "Chest", "sizes": {"s": 49, "m": 52}, "baseSize": "m"}
        ],
    }
    spec = load_spec(document, SETTINGS)
    assert spec.size_range == ["S", "M", "L"]
    assert spec.base_size == "M"
    assert spec.points[0].sizes == {"S": 49.0, "M": 52.0}
    assert spec.points[0].base_size == "M"


def test_dump_shapes():
    spec = load_spec(_legacy_document(), SETTINGS)
    document = dump_spec(spec)

    assert document["id"] == "tp-100"
    assert document["measurementUnit"] == "inch-16"
    assert document["measurementSizeRange"] == ["S", "M", "L"]
    assert document["measurementBaseSize"] == "M"

    point = document["measurements"][0]
    assert point["toleranceMinus"] == 0.5
    assert point["tolerancePlus"] == 0.25
    assert "minusTolerance" not in point
    assert point["unit"] == "inch-16"
    assert point["id"] == "m-1"

    first_round = document["sampleMeasurementRounds"][0]
    assert first_round["order"] == 0
    assert first_round["reviewer"] == ""
    assert first_round["measurementDate"] == "2024-02-01"

    chest_entry, waist_entry = first_round["measurements"]
    assert chest_entry["measurementId"] == "m-1"
    assert chest_entry["measured"] == {"M": "21 1/4"}
    assert "revised" not in chest_entry
    assert waist_entry["measurementId"] == spec.points[1].key
    assert waist_entry["comments"] == {"M": "ok"}
    assert "measured" not in waist_entry


def test_requested_is_always_present():
    document = {
        "measurementSizeRange": ["M"],
        "measurements": [{"pomCode": "CHEST", "pomName": "Chest"}],
        "sampleMeasurementRounds": [{"name": "R1", "measurements": []}],
    }
    dumped = dump_spec(load_spec(document, SETTINGS))
    entry = dumped["sampleMeasurementRounds"][0]["measurements"][0]
    assert entry["requested"] == {}
    assert set(entry) == {"clientKey", "measurementId", "pomCode", "pomName", "requested"}


def test_reload_keeps_client_keys():
    spec = load_spec(_legacy_document(), SETTINGS)
    again = load_spec(dump_spec(spec), SETTINGS)
    assert [point.key for point in again.points] == [point.key for point in spec.points]
    assert [r.key for r in again.rounds] == [r.key for r in spec.rounds]
    assert again.rounds[0].entries[1].point_key == again.points[1].key
