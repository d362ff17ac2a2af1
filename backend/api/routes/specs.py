"""API routes for specifications: sessions, size configuration and saving."""

from fastapi import APIRouter, Depends, status
from fastapi.responses import PlainTextResponse

from backend.api.errors import engine_errors
from backend.api.sessions import SessionRegistry, get_registry, get_session
from backend.db.deps import get_document_store
from backend.db.store import DuckDBDocumentStore
from backend.models.specification import (
    BaseSizeIn,
    OpenSessionIn,
    PresetIn,
    SaveOut,
    SizeLabelIn,
    SizeRangeIn,
    SpecCreated,
    SpecCreateIn,
    SpecOut,
    UnitIn,
)
from sizing.chart_io import chart_frame
from sizing.presets import SIZE_PRESETS
from sizing.session import EditingSession

router = APIRouter()


@router.get("/")
def list_specs(store: DuckDBDocumentStore = Depends(get_document_store)) -> list[str]:
    """Ids of every stored specification, most recently saved first."""
    return store.list_ids()


@router.post("/", response_model=SpecCreated, status_code=status.HTTP_201_CREATED)
def create_spec(
    payload: SpecCreateIn,
    store: DuckDBDocumentStore = Depends(get_document_store),
) -> SpecCreated:
    spec_id = store.create(payload.document, spec_id=payload.spec_id)
    return SpecCreated(spec_id=spec_id)


@router.get("/size-presets")
def list_size_presets() -> list[dict]:
    return [
        {"id": preset.id, "label": preset.label, "sizes": list(preset.sizes)}
        for preset in SIZE_PRESETS
    ]


@router.post("/{spec_id}/session", response_model=SpecOut)
async def open_session(
    spec_id: str,
    payload: OpenSessionIn | None = None,
    registry: SessionRegistry = Depends(get_registry),
    store: DuckDBDocumentStore = Depends(get_document_store),
) -> SpecOut:
    """Open (or reopen) the editing session, optionally restoring a local draft."""
    restore_draft = payload.restore_draft if payload else False
    with engine_errors():
        session = await registry.open(spec_id, store, restore_draft=restore_draft)
    return SpecOut.from_session(session)


@router.delete("/{spec_id}/session", status_code=status.HTTP_204_NO_CONTENT)
async def close_session(spec_id: str, registry: SessionRegistry = Depends(get_registry)) -> None:
    registry.close(spec_id)


@router.get("/{spec_id}", response_model=SpecOut)
async def get_spec(session: EditingSession = Depends(get_session)) -> SpecOut:
    return SpecOut.from_session(session)


@router.put("/{spec_id}/size-range", response_model=SpecOut)
async def set_size_range(payload: SizeRangeIn, session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.set_size_range(payload.sizes)
    return SpecOut.from_session(session)


@router.post("/{spec_id}/sizes", response_model=SpecOut)
async def add_size(payload: SizeLabelIn, session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.add_size(payload.label)
    return SpecOut.from_session(session)


@router.delete("/{spec_id}/sizes/{label}", response_model=SpecOut)
async def remove_size(label: str, session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.remove_size(label)
    return SpecOut.from_session(session)


@router.post("/{spec_id}/size-presets", response_model=SpecOut)
async def apply_preset(payload: PresetIn, session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.apply_preset(payload.preset_id)
    return SpecOut.from_session(session)


@router.put("/{spec_id}/base-size", response_model=SpecOut)
async def set_base_size(payload: BaseSizeIn, session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.set_base_size(payload.size)
    return SpecOut.from_session(session)


@router.put("/{spec_id}/unit", response_model=SpecOut)
async def set_unit(payload: UnitIn, session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.set_unit(payload.unit)
    return SpecOut.from_session(session)


@router.post("/{spec_id}/save", response_model=SaveOut)
async def save_spec(session: EditingSession = Depends(get_session)) -> SaveOut:
    """Save the working copy; validation issues come back with ``saved`` false."""
    with engine_errors():
        result = await session.save()
    return SaveOut.from_result(result)


@router.delete("/{spec_id}/draft")
async def discard_draft(session: EditingSession = Depends(get_session)) -> dict[str, bool]:
    return {"discarded": session.discard_draft()}


@router.get("/{spec_id}/chart.csv", response_class=PlainTextResponse)
async def export_chart(session: EditingSession = Depends(get_session)) -> str:
    return chart_frame(session.spec).to_csv(index=False)
