"""Wine grape endpoints."""

from fastapi import Request
from fastapi.responses import HTMLResponse

from winecellar.services import cellar_store
from winecellar.services.associations import form_values

from ._common import DbSession, WineId, render, render_wine_table


async def edit_wine_grapes(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Checkbox list of the catalog with the wine's grapes ticked."""
    wine = await cellar_store.get_wine(db, wine_id)
    return render(
        request,
        "grapes_form.html",
        wine=wine,
        catalog=await cellar_store.list_catalog_grapes(db),
        selected=set(await cellar_store.get_grapes(db, wine_id)),
    )


async def set_wine_grapes(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Replace the wine's grapes with the ticked ones (none ticked clears them)."""
    form = await request.form()
    await cellar_store.replace_grapes(db, wine_id, form_values(form, "grapes"))
    return await render_wine_table(request, db)
