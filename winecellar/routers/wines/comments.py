"""Wine comment endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import Form, Request
from fastapi.responses import HTMLResponse

from winecellar.services import cellar_store

from ._common import DbSession, WineId, render, render_wine_table


async def add_comment_form(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Form for adding a comment."""
    wine = await cellar_store.get_wine(db, wine_id)
    return render(request, "comment_form.html", wine=wine)


async def add_comment(
    wine_id: WineId,
    request: Request,
    db: DbSession,
    comment: Annotated[str, Form(max_length=2000)],
) -> HTMLResponse:
    """Append a comment, stamped with the current time."""
    await cellar_store.insert_comment(db, wine_id, comment, datetime.now())
    return await render_wine_table(request, db)
