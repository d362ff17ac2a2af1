"""API routes for the measurement points of an open specification."""

from fastapi import APIRouter, Depends, HTTPException, status

from backend.api.errors import engine_errors
from backend.api.sessions import get_session
from backend.models.measurement import (
    BaseValueIn,
    InsertPointIn,
    JumpIn,
    MeasurementPointIn,
    MeasurementPointOut,
    MeasurementPointUpdate,
)
from backend.models.specification import SpecOut
from sizing.model import MeasurementPoint
from sizing.session import EditingSession

router = APIRouter()


def _point_out(session: EditingSession, point: MeasurementPoint) -> MeasurementPointOut:
    return MeasurementPointOut.from_point(point, session.unit, session.progression_for(point))


@router.get("/{spec_id}/points", response_model=list[MeasurementPointOut])
async def list_points(session: EditingSession = Depends(get_session)) -> list[MeasurementPointOut]:
    return [_point_out(session, point) for point in session.points]


@router.post(
    "/{spec_id}/points",
    response_model=MeasurementPointOut,
    status_code=status.HTTP_201_CREATED,
)
async def add_point(
    payload: MeasurementPointIn,
    session: EditingSession = Depends(get_session),
) -> MeasurementPointOut:
    with engine_errors():
        point = session.add_point(payload.to_point())
    return _point_out(session, point)


@router.post(
    "/{spec_id}/points/insert",
    response_model=MeasurementPointOut,
    status_code=status.HTTP_201_CREATED,
)
async def insert_point(
    payload: InsertPointIn,
    session: EditingSession = Depends(get_session),
) -> MeasurementPointOut:
    with engine_errors():
        point = session.insert_point(payload.index, payload.to_point())
    return _point_out(session, point)


@router.post("/{spec_id}/points/common", response_model=SpecOut)
async def add_common_measurements(session: EditingSession = Depends(get_session)) -> SpecOut:
    with engine_errors():
        session.add_common_measurements()
    return SpecOut.from_session(session)


@router.patch("/{spec_id}/points/{index}", response_model=MeasurementPointOut)
async def update_point(
    index: int,
    payload: MeasurementPointUpdate,
    session: EditingSession = Depends(get_session),
) -> MeasurementPointOut:
    with engine_errors():
        point = session.update_point(index, **payload.changes())
    return _point_out(session, point)


@router.delete("/{spec_id}/points/{index}", response_model=SpecOut)
async def delete_point(index: int, session: EditingSession = Depends(get_session)) -> SpecOut:
    """Delete a point; its entries disappear from every sample round."""
    with engine_errors():
        session.delete_point(index)
    return SpecOut.from_session(session)


@router.post(
    "/{spec_id}/points/{index}/duplicate",
    response_model=MeasurementPointOut,
    status_code=status.HTTP_201_CREATED,
)
async def duplicate_point(index: int, session: EditingSession = Depends(get_session)) -> MeasurementPointOut:
    with engine_errors():
        point = session.duplicate_point(index)
    return _point_out(session, point)


@router.put("/{spec_id}/points/{index}/base-value", response_model=MeasurementPointOut)
async def set_base_value(
    index: int,
    payload: BaseValueIn,
    session: EditingSession = Depends(get_session),
) -> MeasurementPointOut:
    with engine_errors():
        applied = session.set_base_value(index, payload.value)
        point = session.repository.get(index)
    if not applied:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Cannot read a measurement from {payload.value!r}",
        )
    return _point_out(session, point)


@router.put("/{spec_id}/points/{index}/jumps/{size}", response_model=MeasurementPointOut)
async def set_jump(
    index: int,
    size: str,
    payload: JumpIn,
    session: EditingSession = Depends(get_session),
) -> MeasurementPointOut:
    with engine_errors():
        applied = session.set_jump(index, size, payload.jump)
        point = session.repository.get(index)
    if not applied:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"Cannot read a jump from {payload.jump!r}",
        )
    return _point_out(session, point)
