"""Shared template setup and view helpers for the wine endpoints."""

import base64
from pathlib import Path
from typing import Annotated, Any

from fastapi import Depends, Path as PathParam, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from sqlalchemy.ext.asyncio import AsyncSession

from winecellar.config import Settings
from winecellar.database import get_db
from winecellar.services import cellar_store, ledger
from winecellar.services.associations import filter_wines_by_grape

TEMPLATE_DIR = Path(__file__).resolve().parent.parent.parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATE_DIR))
templates.env.filters["b64"] = lambda data: base64.b64encode(data).decode("ascii")


def get_app_settings(request: Request) -> Settings:
    """Settings the running application was created with."""
    return request.app.state.settings


DbSession = Annotated[AsyncSession, Depends(get_db)]
AppSettings = Annotated[Settings, Depends(get_app_settings)]
# Ids outside the SQLite INTEGER range are refused before reaching the database
WineId = Annotated[int, PathParam(ge=1, le=2**63 - 1)]


def render(
    request: Request,
    template_name: str,
    status_code: int = 200,
    **context: Any,
) -> HTMLResponse:
    """Render a template fragment."""
    context.setdefault("app_name", request.app.state.settings.app_name)
    return templates.TemplateResponse(request, template_name, context, status_code=status_code)


async def build_wine_rows(db: AsyncSession) -> list[dict[str, Any]]:
    """Everything the wine table shows, one dict per wine."""
    wines = await cellar_store.list_wines(db)
    stock = await ledger.stock_levels(db)
    grapes = await cellar_store.get_grapes_by_wine(db)
    thumbnails = await cellar_store.get_thumbnails(db)
    comments = await cellar_store.latest_comments(db)

    rows = []
    for wine in wines:
        rows.append({
            "id": wine.id,
            "name": wine.name,
            "year": wine.year,
            "bottles": stock.get(wine.id, 0),
            "grapes": grapes.get(wine.id, []),
            "thumbnail": thumbnails.get(wine.id),
            "latest_comment": comments.get(wine.id),
        })
    return rows


async def render_wine_table(
    request: Request,
    db: AsyncSession,
    grape_filter: str | None = None,
) -> HTMLResponse:
    """The wine table fragment that fills ``#main``."""
    rows = filter_wines_by_grape(await build_wine_rows(db), grape_filter)
    return render(request, "wine_table.html", wines=rows, grape_filter=grape_filter)


async def render_wine_detail(request: Request, db: AsyncSession, wine_id: int) -> HTMLResponse:
    """The single-wine fragment: ledger, stock, grapes, comments and photo."""
    wine = await cellar_store.get_wine(db, wine_id)
    return render(
        request,
        "wine_detail.html",
        wine=wine,
        events=await cellar_store.list_events(db, wine_id),
        bottles=await ledger.current_stock(db, wine_id),
        grapes=await cellar_store.get_grapes(db, wine_id),
        comments=await cellar_store.list_comments(db, wine_id),
        has_image=await cellar_store.has_image(db, wine_id),
    )
