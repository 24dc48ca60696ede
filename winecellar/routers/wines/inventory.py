"""Buy and drink endpoints: the only writers of the bottle ledger."""

from datetime import date
from typing import Annotated

from fastapi import Form, Request
from fastapi.responses import HTMLResponse

from winecellar.services import cellar_store, ledger

from ._common import DbSession, WineId, render, render_wine_table


async def _ledger_form(request: Request, db: DbSession, wine_id: int, action: str, title: str) -> HTMLResponse:
    wine = await cellar_store.get_wine(db, wine_id)
    return render(
        request,
        "ledger_form.html",
        wine=wine,
        action=action,
        title=title,
        today=date.today().isoformat(),
    )


async def buy_wine_form(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Form for recording a purchase."""
    return await _ledger_form(request, db, wine_id, "buy", "Buy")


async def drink_wine_form(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Form for recording consumption."""
    return await _ledger_form(request, db, wine_id, "drink", "Drink")


async def buy_wine(
    wine_id: WineId,
    request: Request,
    db: DbSession,
    dt: Annotated[str, Form()],
    bottles: Annotated[int, Form()],
) -> HTMLResponse:
    """Record bottles bought on the given date."""
    day = ledger.parse_event_date(dt)
    await ledger.record_purchase(db, wine_id, bottles, day)
    return await render_wine_table(request, db)


async def drink_wine(
    wine_id: WineId,
    request: Request,
    db: DbSession,
    dt: Annotated[str, Form()],
    bottles: Annotated[int, Form()],
) -> HTMLResponse:
    """Record bottles drunk on the given date (a positive count)."""
    day = ledger.parse_event_date(dt)
    await ledger.record_consumption(db, wine_id, bottles, day)
    return await render_wine_table(request, db)
