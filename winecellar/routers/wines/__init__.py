"""Wine management router package."""

from fastapi import APIRouter

from .comments import add_comment, add_comment_form
from .crud import (
    add_wine,
    add_wine_form,
    delete_wine,
    wine_information,
    wine_table,
    wine_table_body,
)
from .grapes import edit_wine_grapes, set_wine_grapes
from .images import (
    edit_image,
    edit_image_form,
    set_wine_image,
    upload_wine_image_form,
    wine_image,
    wine_thumbnail,
)
from .inventory import buy_wine, buy_wine_form, drink_wine, drink_wine_form

router = APIRouter()

# Table and wine CRUD
router.add_api_route("/wines", wine_table, methods=["GET"])
router.add_api_route("/wine-table-body", wine_table_body, methods=["GET"])
router.add_api_route("/add-wine", add_wine_form, methods=["GET"])
router.add_api_route("/add-wine", add_wine, methods=["POST"])
router.add_api_route("/wines/{wine_id}", wine_information, methods=["GET"])
router.add_api_route("/wines/{wine_id}", delete_wine, methods=["DELETE"])

# Ledger - "consume" is kept as an alias of "drink"
router.add_api_route("/wines/{wine_id}/buy", buy_wine_form, methods=["GET"])
router.add_api_route("/wines/{wine_id}/buy", buy_wine, methods=["POST"])
for path in ("/wines/{wine_id}/drink", "/wines/{wine_id}/consume"):
    router.add_api_route(path, drink_wine_form, methods=["GET"])
    router.add_api_route(path, drink_wine, methods=["POST"])

# Comments
router.add_api_route("/wines/{wine_id}/comment", add_comment_form, methods=["GET"])
router.add_api_route("/wines/{wine_id}/comment", add_comment, methods=["POST"])

# Grapes
router.add_api_route("/wines/{wine_id}/grapes", edit_wine_grapes, methods=["GET"])
router.add_api_route("/wines/{wine_id}/grapes", set_wine_grapes, methods=["POST"])

# Images
router.add_api_route("/wines/{wine_id}/upload-image", upload_wine_image_form, methods=["GET"])
router.add_api_route("/wines/{wine_id}/image", set_wine_image, methods=["POST"])
router.add_api_route("/wines/{wine_id}/image", wine_image, methods=["GET"])
router.add_api_route("/wines/{wine_id}/thumbnail", wine_thumbnail, methods=["GET"])
router.add_api_route("/wines/{wine_id}/edit-image", edit_image_form, methods=["GET"])
router.add_api_route("/wines/{wine_id}/edit-image", edit_image, methods=["POST"])

__all__ = ["router"]
