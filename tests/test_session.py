import asyncio
import copy
import time

import pytest

from sizing.config import Settings
from sizing.drafts import DraftStore
from sizing.errors import SaveFailedError, SaveInProgressError
from sizing.model import MeasurementPoint
from sizing.progression import ProgressionMode
from sizing.session import EditingSession


class MemoryStore:
    """In-memory persistence collaborator that assigns server ids on save."""

    def __init__(self, documents=None):
        self.documents = documents or {}
        self.saved = []
        self.fail = False
        self.gate = None

    async def load(self, spec_id):
        return copy.deepcopy(self.documents.get(spec_id, {}))

    async def save(self, spec_id, document):
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise ConnectionError("store offline")
        self.saved.append(document)
        canonical = copy.deepcopy(document)
        canonical["id"] = spec_id
        for index, point in enumerate(canonical["measurements"]):
            point.setdefault("id", f"srv-{index}")
        self.documents[spec_id] = canonical


class FakeClock:
    def __init__(self):
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def _document():
    return {
        "measurementSizeRange": ["S", "M", "L"],
        "measurementBaseSize": "M",
        "measurements": [
            {
                "clientKey": "pom_chest",
                "pomCode": "CHEST",
                "pomName": "Chest width",
                "sizes": {"S": 49, "M": 52, "L": 55},
                "baseSize": "M",
            }
        ],
    }


def _open(tmp_path, store=None, clock=time.monotonic, **settings):
    store = store or MemoryStore({"spec-1": _document()})
    options = {"draft_dir": tmp_path / "drafts", "draft_delay": 0.0}
    options.update(settings)
    settings = Settings(**options)
    drafts = DraftStore(settings.draft_dir)
    session = asyncio.run(
        EditingSession.open("spec-1", store, drafts=drafts, settings=settings, clock=clock)
    )
    return session, store, drafts


def _waist():
    return MeasurementPoint(pom_code="WAIST", pom_name="Waist", sizes={"M": 40.0, "L": 42.0})


def test_open_exposes_read_access(tmp_path):
    session, _, _ = _open(tmp_path)
    assert session.size_range == ["S", "M", "L"]
    assert session.base_size == "M"
    assert [point.pom_code for point in session.points] == ["CHEST"]
    assert session.rounds == []
    assert not session.dirty


def test_mutation_marks_dirty_and_writes_draft(tmp_path):
    session, _, drafts = _open(tmp_path)
    session.add_point(_waist())
    assert session.dirty
    draft = drafts.load("spec-1")
    assert [point["pomCode"] for point in draft["measurements"]] == ["CHEST", "WAIST"]


def test_draft_waits_for_quiet_period(tmp_path):
    clock = FakeClock()
    session, _, drafts = _open(tmp_path, clock=clock, draft_delay=1.5)

    session.add_common_measurements()
    assert drafts.load("spec-1") is None

    clock.now += 10
    session.set_base_value(0, "54")
    draft = drafts.load("spec-1")
    assert len(draft["measurements"]) == 5
    assert draft["measurements"][0]["sizes"]["M"] == 52

    clock.now += 0.5
    session.set_base_value(0, "55")
    assert not session.poll_draft()

    clock.now += 100
    assert session.poll_draft()
    assert drafts.load("spec-1")["measurements"][0]["sizes"]["M"] == 55


def test_rejected_edit_does_not_mark_dirty(tmp_path):
    session, _, _ = _open(tmp_path)
    assert not session.set_base_value(0, "52 1/")
    assert not session.dirty


def test_restore_draft(tmp_path):
    session, store, drafts = _open(tmp_path)
    session.add_point(_waist())

    restored, _, _ = _open(tmp_path, store=store)
    assert [point.pom_code for point in restored.points] == ["CHEST"]

    settings = Settings(draft_dir=tmp_path / "drafts", draft_delay=0.0)
    restored = asyncio.run(
        EditingSession.open("spec-1", store, drafts=drafts, settings=settings, restore_draft=True)
    )
    assert [point.pom_code for point in restored.points] == ["CHEST", "WAIST"]
    assert restored.dirty


def test_save_replaces_state_with_canonical_copy(tmp_path):
    session, store, drafts = _open(tmp_path)
    session.add_point(_waist())
    sample_round = session.create_round()
    session.edit_cell(sample_round.key, session.points[0].key, "measured", "M", "53")

    result = asyncio.run(session.save())

    assert result.saved
    assert not session.dirty
    assert len(store.saved) == 1
    assert [point.id for point in session.points] == ["srv-0", "srv-1"]
    assert session.points[0].key == "pom_chest"
    assert session.rounds[0].entries[0].measured["M"] == "53"
    assert [p["pomCode"] for p in result.before["measurements"]] == ["CHEST"]
    assert [p["pomCode"] for p in result.after["measurements"]] == ["CHEST", "WAIST"]
    assert drafts.load("spec-1") is None
    assert session.last_saved_at


def test_validation_errors_block_save(tmp_path):
    session, store, _ = _open(tmp_path)
    session.update_point(0, sizes={"S": 53.0, "M": 52.0})

    result = asyncio.run(session.save())

    assert not result.saved
    assert result.issues[0].pom_code == "CHEST"
    assert "sizes" in result.issues[0].errors
    assert store.saved == []
    assert session.dirty


def test_warn_mode_saves_with_warnings(tmp_path):
    session, store, _ = _open(tmp_path, progression_mode=ProgressionMode.WARN)
    session.update_point(0, sizes={"S": 53.0, "M": 52.0})

    result = asyncio.run(session.save())

    assert result.saved
    assert result.warnings == ["CHEST: Size progression warning: S → M: decreased by 1cm"]
    assert len(store.saved) == 1


def test_failed_save_keeps_working_state(tmp_path):
    session, store, _ = _open(tmp_path)
    session.add_point(_waist())
    store.fail = True

    with pytest.raises(SaveFailedError):
        asyncio.run(session.save())

    assert session.dirty
    assert not session.saving
    assert [point.pom_code for point in session.points] == ["CHEST", "WAIST"]
    assert session.points[1].id is None

    store.fail = False
    assert asyncio.run(session.save()).saved


def test_mutations_are_blocked_while_saving(tmp_path):
    session, store, _ = _open(tmp_path)

    async def scenario():
        store.gate = asyncio.Event()
        pending = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        assert session.saving
        with pytest.raises(SaveInProgressError):
            session.add_point(_waist())
        with pytest.raises(SaveInProgressError):
            session.create_round()
        store.gate.set()
        return await pending

    result = asyncio.run(scenario())
    assert result.saved
    assert not session.saving
    assert [point.pom_code for point in session.points] == ["CHEST"]


def test_set_unit_keeps_values(tmp_path):
    session, _, _ = _open(tmp_path)
    session.set_unit("inch-16")
    assert session.unit.value == "inch-16"
    assert session.points[0].sizes == {"S": 49.0, "M": 52.0, "L": 55.0}
    assert session.document()["measurements"][0]["unit"] == "inch-16"


def test_reconcile_through_session(tmp_path):
    session, _, _ = _open(tmp_path)
    sample_round = session.create_round()
    session.edit_cell(sample_round.key, "pom_chest", "revised", "M", "54")
    assert session.reconcile_round(sample_round.key) == ["pom_chest"]
    assert session.points[0].sizes == {"S": 51.0, "M": 54.0, "L": 57.0}
