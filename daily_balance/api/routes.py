from typing import Annotated

from fastapi import APIRouter, Depends, Header, Request

from ..schemas.api import DateSelectionRequest, FieldUpdate, Notification, SaveResponse
from ..schemas.entries import HistoryEntry
from ..schemas.summary import DailyBalanceState
from .sessions import FormRegistry, FormSession

router = APIRouter()
balance_router = APIRouter(prefix="/daily-balance", tags=["daily-balance"])


def get_registry(request: Request) -> FormRegistry:
    return request.app.state.registry


async def get_form_session(
    registry: FormRegistry = Depends(get_registry),
    x_actor_id: Annotated[int | None, Header()] = None,
) -> FormSession:
    actor_id = x_actor_id if x_actor_id is not None else registry.settings.default_actor_id
    return await registry.get(actor_id)


Session = Annotated[FormSession, Depends(get_form_session)]


@router.get("/healthz", response_model=dict)
async def healthz() -> dict:
    return {"status": "ok"}


@balance_router.get("/state", response_model=DailyBalanceState)
async def get_state(session: Session) -> DailyBalanceState:
    return session.form.state()


@balance_router.patch("/fields", response_model=DailyBalanceState)
async def update_field(body: FieldUpdate, session: Session) -> DailyBalanceState:
    return session.form.update_field(body.field, body.value)


@balance_router.post("/save", response_model=SaveResponse)
async def save(session: Session) -> SaveResponse:
    entry = await session.form.save()
    return SaveResponse(saved=entry is not None, entry=entry, state=session.form.state())


@balance_router.post("/finalize", response_model=SaveResponse)
async def finalize(session: Session) -> SaveResponse:
    entry = await session.form.finalize()
    return SaveResponse(saved=entry is not None, entry=entry, state=session.form.state())


@balance_router.post("/select-date", response_model=DailyBalanceState)
async def select_date(body: DateSelectionRequest, session: Session) -> DailyBalanceState:
    return await session.form.select_date(body.date)


@balance_router.post("/next-week", response_model=DailyBalanceState)
async def next_week(session: Session) -> DailyBalanceState:
    return await session.form.next_week()


@balance_router.post("/prev-week", response_model=DailyBalanceState)
async def prev_week(session: Session) -> DailyBalanceState:
    return await session.form.prev_week()


@balance_router.post("/today", response_model=DailyBalanceState)
async def go_to_today(session: Session) -> DailyBalanceState:
    return await session.form.go_to_today()


@balance_router.post("/refresh", response_model=DailyBalanceState)
async def refresh(session: Session) -> DailyBalanceState:
    return await session.form.refresh_week()


@balance_router.get("/history", response_model=list[HistoryEntry])
async def history(session: Session) -> list[HistoryEntry]:
    return await session.form.history()


@balance_router.get("/notifications", response_model=list[Notification])
async def notifications(session: Session) -> list[Notification]:
    return session.notifier.drain()


router.include_router(balance_router)
