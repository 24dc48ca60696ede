"""Wine photo endpoints: upload, crop and raw image bytes."""

import logging
from typing import Annotated

from fastapi import Form, Request
from fastapi.responses import HTMLResponse, Response
from starlette.concurrency import run_in_threadpool
from starlette.datastructures import UploadFile

from winecellar.errors import InvalidInputError, NotFoundError
from winecellar.services import cellar_store, images

from ._common import AppSettings, DbSession, WineId, render, render_wine_detail, render_wine_table

logger = logging.getLogger(__name__)

IMAGE_FIELD = "image"


async def upload_wine_image_form(
    wine_id: WineId,
    request: Request,
    db: DbSession,
    app_settings: AppSettings,
) -> HTMLResponse:
    """Form for uploading a photo."""
    wine = await cellar_store.get_wine(db, wine_id)
    return render(
        request,
        "upload_image.html",
        wine=wine,
        max_upload_mb=app_settings.images.max_upload_mb,
    )


async def set_wine_image(
    wine_id: WineId,
    request: Request,
    db: DbSession,
    app_settings: AppSettings,
) -> HTMLResponse:
    """Store a new photo for a wine.

    The multipart body is parsed here rather than through a ``File``
    parameter so the declared length can be refused before anything is read.
    """
    limit = app_settings.max_upload_size_bytes
    images.ensure_declared_size(request.headers.get("content-length"), limit)
    await cellar_store.ensure_wine_exists(db, wine_id)

    async with request.form() as form:
        upload = form.get(IMAGE_FIELD)
        if not isinstance(upload, UploadFile):
            raise InvalidInputError("No image uploaded")
        raw = await upload.read()

    logger.info("Got image for wine %d with size: %d", wine_id, len(raw))
    images.ensure_payload_size(raw, limit)
    derived = await run_in_threadpool(
        images.derive_upload,
        raw,
        request.headers.get("user-agent"),
        app_settings.images,
    )
    await cellar_store.set_image(db, wine_id, derived.image, derived.thumbnail)
    return await render_wine_table(request, db)


async def wine_image(wine_id: WineId, db: DbSession) -> Response:
    """Raw PNG bytes of the stored photo (empty body when there is none)."""
    data = await cellar_store.get_image(db, wine_id)
    return Response(content=data or b"", media_type="image/png")


async def wine_thumbnail(wine_id: WineId, db: DbSession) -> Response:
    """Raw PNG bytes of the stored thumbnail (empty body when there is none)."""
    data = await cellar_store.get_thumbnail(db, wine_id)
    return Response(content=data or b"", media_type="image/png")


async def _stored_image(db: DbSession, wine_id: int) -> bytes:
    data = await cellar_store.get_image(db, wine_id)
    if data is None:
        raise NotFoundError(f"Wine with ID {wine_id} has no image")
    return data


async def edit_image_form(wine_id: WineId, request: Request, db: DbSession) -> HTMLResponse:
    """Crop form showing the stored photo and its pixel size."""
    wine = await cellar_store.get_wine(db, wine_id)
    width, height = images.image_size(await _stored_image(db, wine_id))
    return render(request, "edit_image.html", wine=wine, width=width, height=height)


async def edit_image(
    wine_id: WineId,
    request: Request,
    db: DbSession,
    app_settings: AppSettings,
    x: Annotated[int, Form()],
    y: Annotated[int, Form()],
    w: Annotated[int, Form()],
    h: Annotated[int, Form()],
) -> HTMLResponse:
    """Crop the stored photo to the posted rectangle and regenerate the thumbnail."""
    stored = await _stored_image(db, wine_id)
    region = images.CropRegion(x=x, y=y, w=w, h=h)
    derived = await run_in_threadpool(images.derive_crop, stored, region, app_settings.images)
    await cellar_store.set_image(db, wine_id, derived.image, derived.thumbnail)
    logger.info("Cropped image for wine %d to %s", wine_id, region)
    return await render_wine_detail(request, db, wine_id)
