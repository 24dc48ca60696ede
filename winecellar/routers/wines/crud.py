"""Wine table, detail, add and delete endpoints."""

from typing import Annotated

from fastapi import Form, Request
from fastapi.responses import HTMLResponse

from winecellar.services import cellar_store
from winecellar.services.associations import filter_wines_by_grape

from ._common import DbSession, WineId, build_wine_rows, render, render_wine_detail, render_wine_table


async def wine_table(request: Request, db: DbSession, grape: str | None = None) -> HTMLResponse:
    """Wine table with stock, grapes and thumbnails."""
    return await render_wine_table(request, db, grape)


async def wine_table_body(request: Request, db: DbSession, grape: str | None = None) -> HTMLResponse:
    """Only the table body, filtered by a grape-name prefix."""
    rows = filter_wines_by_grape(await build_wine_rows(db), grape)
    return render(request, "wine_table_body.html", wines=rows)


async def add_wine_form(request: Request) -> HTMLResponse:
    """Form for adding a wine."""
    return render(request, "add_wine.html")


async def add_wine(
    request: Request,
    db: DbSession,
    name: Annotated[str, Form(max_length=255)],
    year: Annotated[int, Form()],
) -> HTMLResponse:
    """Create a wine from name and vintage; image and grapes come later."""
    await cellar_store.add_wine(db, name, year)
    return await render_wine_table(request, db)


async def wine_information(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Detail view for one wine."""
    return await render_wine_detail(request, db, wine_id)


async def delete_wine(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Delete a wine with its events, comments and grape links."""
    await cellar_store.delete_wine(db, wine_id)
    return await render_wine_table(request, db)
