"""API routes for sample rounds of an open specification."""

from fastapi import APIRouter, Depends, status

from backend.api.errors import engine_errors
from backend.api.sessions import get_session
from backend.models.sample_round import (
    CellEditIn,
    ReconcileOut,
    SampleEntryOut,
    SampleRoundIn,
    SampleRoundOut,
    SampleRoundUpdate,
)
from sizing.model import SampleRound
from sizing.session import EditingSession

router = APIRouter()


def _round_out(session: EditingSession, sample_round: SampleRound) -> SampleRoundOut:
    return SampleRoundOut.from_round(sample_round, sample_round is session.round_engine.latest())


@router.get("/{spec_id}/rounds", response_model=list[SampleRoundOut])
async def list_rounds(session: EditingSession = Depends(get_session)) -> list[SampleRoundOut]:
    return [_round_out(session, sample_round) for sample_round in session.rounds]


@router.post(
    "/{spec_id}/rounds",
    response_model=SampleRoundOut,
    status_code=status.HTTP_201_CREATED,
)
async def create_round(
    payload: SampleRoundIn | None = None,
    session: EditingSession = Depends(get_session),
) -> SampleRoundOut:
    """Start a new round; earlier rounds become read-only."""
    payload = payload or SampleRoundIn()
    with engine_errors():
        sample_round = session.create_round(**payload.create_kwargs())
    return _round_out(session, sample_round)


@router.patch("/{spec_id}/rounds/{round_key}", response_model=SampleRoundOut)
async def update_round(
    round_key: str,
    payload: SampleRoundUpdate,
    session: EditingSession = Depends(get_session),
) -> SampleRoundOut:
    with engine_errors():
        sample_round = session.update_round(round_key, **payload.changes())
    return _round_out(session, sample_round)


@router.delete("/{spec_id}/rounds/{round_key}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_round(round_key: str, session: EditingSession = Depends(get_session)) -> None:
    with engine_errors():
        session.delete_round(round_key)


@router.put("/{spec_id}/rounds/{round_key}/cells", response_model=SampleEntryOut)
async def edit_cell(
    round_key: str,
    payload: CellEditIn,
    session: EditingSession = Depends(get_session),
) -> SampleEntryOut:
    with engine_errors():
        entry = session.edit_cell(
            round_key, payload.point_key, payload.field, payload.size, payload.value
        )
    return SampleEntryOut.from_entry(entry)


@router.post("/{spec_id}/rounds/{round_key}/reconcile", response_model=ReconcileOut)
async def reconcile_round(round_key: str, session: EditingSession = Depends(get_session)) -> ReconcileOut:
    """Fold the round's revised values back into the measurement chart."""
    with engine_errors():
        changed = session.reconcile_round(round_key)
    return ReconcileOut(changed=changed)
