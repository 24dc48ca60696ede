"""Tests for the htmx wine endpoints."""

import io
from datetime import date

import pytest
from httpx import ASGITransport, AsyncClient
from PIL import Image

from winecellar.config import DatabaseConfig, ImageConfig, Settings, WinecellarConfig
from winecellar.main import create_app
from winecellar.services import cellar_store, ledger

from .conftest import IPHONE_AGENT, make_image_bytes


def png_size(data: bytes) -> tuple[int, int]:
    with Image.open(io.BytesIO(data)) as image:
        assert image.format == "PNG"
        return image.size


@pytest.mark.asyncio
async def test_health_check(client: AsyncClient) -> None:
    response = await client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert "version" in data


@pytest.mark.asyncio
async def test_index_page(client: AsyncClient) -> None:
    response = await client.get("/")
    assert response.status_code == 200
    assert 'hx-get="/wines"' in response.text
    assert "htmx.org" in response.text
    assert response.headers["X-Frame-Options"] == "DENY"
    assert "Content-Security-Policy" in response.headers


@pytest.mark.asyncio
async def test_empty_table(client: AsyncClient) -> None:
    response = await client.get("/wines")
    assert response.status_code == 200
    assert 'id="wine-table-body"' in response.text
    assert "No wines." in response.text


class TestAddAndDelete:
    """Tests for creating, showing and deleting wines."""

    @pytest.mark.asyncio
    async def test_add_wine(self, client: AsyncClient, db_session) -> None:
        response = await client.post("/add-wine", data={"name": "Barolo", "year": "2016"})
        assert response.status_code == 200
        assert "Barolo" in response.text
        assert "2016" in response.text

        wines = await cellar_store.list_wines(db_session)
        assert [(w.name, w.year) for w in wines] == [("Barolo", 2016)]

    @pytest.mark.asyncio
    async def test_add_wine_form(self, client: AsyncClient) -> None:
        response = await client.get("/add-wine")
        assert response.status_code == 200
        assert 'hx-post="/add-wine"' in response.text

    @pytest.mark.asyncio
    async def test_add_wine_bad_year(self, client: AsyncClient, db_session) -> None:
        response = await client.post("/add-wine", data={"name": "Barolo", "year": "old"})
        assert response.status_code == 400
        assert "text-bg-warning" in response.text
        assert "year" in response.text
        assert await cellar_store.list_wines(db_session) == []

    @pytest.mark.asyncio
    async def test_add_wine_year_out_of_range(self, client: AsyncClient, db_session) -> None:
        response = await client.post("/add-wine", data={"name": "Barolo", "year": str(10**20)})
        assert response.status_code == 400
        assert "Year must be between" in response.text
        assert await cellar_store.list_wines(db_session) == []

    @pytest.mark.asyncio
    async def test_wine_id_out_of_range(self, client: AsyncClient) -> None:
        response = await client.get(f"/wines/{10**20}")
        assert response.status_code == 400
        assert "wine_id" in response.text

    @pytest.mark.asyncio
    async def test_add_wine_missing_name(self, client: AsyncClient) -> None:
        response = await client.post("/add-wine", data={"year": "2016"})
        assert response.status_code == 400
        assert "Invalid input" in response.text

    @pytest.mark.asyncio
    async def test_wine_detail(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        await ledger.record_purchase(db_session, wine.id, 12, date(2024, 1, 10))

        response = await client.get(f"/wines/{wine.id}")
        assert response.status_code == 200
        assert "Barolo" in response.text
        assert "<strong>12</strong>" in response.text
        assert "2024-01-10" in response.text

    @pytest.mark.asyncio
    async def test_wine_detail_missing(self, client: AsyncClient) -> None:
        response = await client.get("/wines/999")
        assert response.status_code == 404
        assert "text-bg-warning" in response.text
        assert "not found" in response.text

    @pytest.mark.asyncio
    async def test_delete_wine(self, client: AsyncClient, db_session, grapes) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        await ledger.record_purchase(db_session, wine.id, 3, date(2024, 1, 1))
        await cellar_store.replace_grapes(db_session, wine.id, ["Nebbiolo"])

        response = await client.delete(f"/wines/{wine.id}")
        assert response.status_code == 200
        assert "No wines." in response.text
        assert await ledger.current_stock(db_session, wine.id) == 0
        assert await cellar_store.get_grapes(db_session, wine.id) == []

    @pytest.mark.asyncio
    async def test_delete_missing_wine(self, client: AsyncClient) -> None:
        response = await client.delete("/wines/999")
        assert response.status_code == 404


class TestLedgerEndpoints:
    """Tests for buying and drinking."""

    @pytest.mark.asyncio
    async def test_buy_and_drink(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)

        response = await client.post(f"/wines/{wine.id}/buy", data={"dt": "2024-01-10", "bottles": "12"})
        assert response.status_code == 200

        response = await client.post(f"/wines/{wine.id}/drink", data={"dt": "2024-02-14", "bottles": "3"})
        assert response.status_code == 200
        assert "<td>9</td>" in response.text

        assert await ledger.current_stock(db_session, wine.id) == 9
        events = await cellar_store.list_events(db_session, wine.id)
        assert [e.dt.date() for e in events] == [date(2024, 1, 10), date(2024, 2, 14)]

    @pytest.mark.asyncio
    async def test_consume_alias(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/consume", data={"dt": "2024-02-14", "bottles": "2"})
        assert response.status_code == 200
        assert await ledger.current_stock(db_session, wine.id) == -2

    @pytest.mark.asyncio
    async def test_forms(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        for action in ("buy", "drink"):
            response = await client.get(f"/wines/{wine.id}/{action}")
            assert response.status_code == 200
            assert f'hx-post="/wines/{wine.id}/{action}"' in response.text
            assert date.today().isoformat() in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bottles", ["0", "-4"])
    async def test_non_positive_bottles(self, client: AsyncClient, db_session, bottles) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/buy", data={"dt": "2024-01-10", "bottles": bottles})
        assert response.status_code == 400
        assert "greater than zero" in response.text
        assert await cellar_store.list_events(db_session, wine.id) == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["buy", "drink"])
    async def test_too_many_bottles(self, client: AsyncClient, db_session, action) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(
            f"/wines/{wine.id}/{action}", data={"dt": "2024-01-10", "bottles": str(10**20)}
        )
        assert response.status_code == 400
        assert "at most" in response.text
        assert await cellar_store.list_events(db_session, wine.id) == []

    @pytest.mark.asyncio
    async def test_bad_date(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/drink", data={"dt": "14/02/2024", "bottles": "1"})
        assert response.status_code == 400
        assert "Bad date format" in response.text

    @pytest.mark.asyncio
    async def test_non_integer_bottles(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/buy", data={"dt": "2024-01-10", "bottles": "two"})
        assert response.status_code == 400
        assert "bottles" in response.text

    @pytest.mark.asyncio
    async def test_missing_wine(self, client: AsyncClient) -> None:
        response = await client.post("/wines/999/buy", data={"dt": "2024-01-10", "bottles": "1"})
        assert response.status_code == 404


class TestCommentsAndGrapes:
    """Tests for comment and grape endpoints."""

    @pytest.mark.asyncio
    async def test_add_comment(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/comment", data={"comment": "Tar and roses"})
        assert response.status_code == 200
        assert "Tar and roses" in response.text

        latest = await cellar_store.latest_comment(db_session, wine.id)
        assert latest.comment == "Tar and roses"

        table = await client.get("/wines")
        assert "Tar and roses" in table.text

    @pytest.mark.asyncio
    async def test_blank_comment(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/comment", data={"comment": "   "})
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_grapes_form(self, client: AsyncClient, db_session, grapes) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        await cellar_store.replace_grapes(db_session, wine.id, ["Nebbiolo"])

        response = await client.get(f"/wines/{wine.id}/grapes")
        assert response.status_code == 200
        for name in grapes:
            assert f'value="{name}"' in response.text
        assert response.text.count(" checked") == 1

    @pytest.mark.asyncio
    async def test_set_grapes(self, client: AsyncClient, db_session, grapes) -> None:
        wine = await cellar_store.add_wine(db_session, "Barbera d'Asti", 2021)
        response = await client.post(f"/wines/{wine.id}/grapes", data={"grapes": ["Barbera", "Merlot"]})
        assert response.status_code == 200
        assert await cellar_store.get_grapes(db_session, wine.id) == ["Barbera", "Merlot"]

        response = await client.post(f"/wines/{wine.id}/grapes", data={})
        assert response.status_code == 200
        assert await cellar_store.get_grapes(db_session, wine.id) == []

    @pytest.mark.asyncio
    async def test_set_unknown_grape(self, client: AsyncClient, db_session, grapes) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/grapes", data={"grapes": ["Pinotage"]})
        assert response.status_code == 400
        assert "Unknown grape" in response.text

    @pytest.mark.asyncio
    async def test_filter_by_grape(self, client: AsyncClient, db_session, grapes) -> None:
        barbera = await cellar_store.add_wine(db_session, "Barbera d'Asti", 2021)
        barolo = await cellar_store.add_wine(db_session, "Barolo", 2016)
        await cellar_store.replace_grapes(db_session, barbera.id, ["Barbera"])
        await cellar_store.replace_grapes(db_session, barolo.id, ["Nebbiolo"])

        response = await client.get("/wine-table-body", params={"grape": "BAR"})
        assert response.status_code == 200
        assert response.text.lstrip().startswith('<tbody id="wine-table-body">')
        assert f'id="wine-{barbera.id}"' in response.text
        assert f'id="wine-{barolo.id}"' not in response.text

        response = await client.get("/wine-table-body")
        assert f'id="wine-{barolo.id}"' in response.text


class TestImageEndpoints:
    """Tests for photo upload, retrieval and cropping."""

    @pytest.mark.asyncio
    async def test_no_image_yet(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.get(f"/wines/{wine.id}/image")
        assert response.status_code == 200
        assert response.content == b""

    @pytest.mark.asyncio
    async def test_image_of_missing_wine(self, client: AsyncClient) -> None:
        response = await client.get("/wines/999/image")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upload(self, client: AsyncClient, db_session, landscape_png) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        files = {"image": ("label.png", landscape_png, "image/png")}

        response = await client.post(f"/wines/{wine.id}/image", files=files)
        assert response.status_code == 200
        assert "data:image/png;base64," in response.text

        image = await client.get(f"/wines/{wine.id}/image")
        assert image.headers["content-type"] == "image/png"
        assert png_size(image.content) == (512, 256)

        thumbnail = await client.get(f"/wines/{wine.id}/thumbnail")
        assert png_size(thumbnail.content) == (96, 48)

    @pytest.mark.asyncio
    async def test_upload_from_iphone(self, client: AsyncClient, db_session, landscape_png) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        files = {"image": ("IMG_0001.png", landscape_png, "image/png")}

        response = await client.post(
            f"/wines/{wine.id}/image", files=files, headers={"User-Agent": IPHONE_AGENT}
        )
        assert response.status_code == 200
        assert png_size(await cellar_store.get_image(db_session, wine.id)) == (256, 512)

    @pytest.mark.asyncio
    async def test_upload_garbage(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        files = {"image": ("label.png", b"definitely not a png", "image/png")}

        response = await client.post(f"/wines/{wine.id}/image", files=files)
        assert response.status_code == 400
        assert "Unrecognized or corrupt image" in response.text
        assert await cellar_store.get_image(db_session, wine.id) is None

    @pytest.mark.asyncio
    async def test_upload_without_file(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.post(f"/wines/{wine.id}/image", data={"image": "text"})
        assert response.status_code == 400
        assert "No image uploaded" in response.text

    @pytest.mark.asyncio
    async def test_upload_to_missing_wine(self, client: AsyncClient, landscape_png) -> None:
        files = {"image": ("label.png", landscape_png, "image/png")}
        response = await client.post("/wines/999/image", files=files)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_upload_too_large(self, database, db_session, database_url) -> None:
        app_settings = Settings(
            WinecellarConfig(
                database=DatabaseConfig(url=database_url),
                images=ImageConfig(max_upload_mb=1),
            )
        )
        app = create_app(app_settings)
        app.state.db = database
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        files = {"image": ("huge.png", b"\x00" * (1024 * 1024 + 1), "image/png")}

        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
            response = await ac.post(f"/wines/{wine.id}/image", files=files)

        assert response.status_code == 413
        assert "exceeds maximum allowed size" in response.text
        assert await cellar_store.get_image(db_session, wine.id) is None

    @pytest.mark.asyncio
    async def test_crop(self, client: AsyncClient, db_session, landscape_png) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        await client.post(f"/wines/{wine.id}/image", files={"image": ("label.png", landscape_png, "image/png")})

        form = await client.get(f"/wines/{wine.id}/edit-image")
        assert form.status_code == 200
        assert "512 x 256" in form.text

        response = await client.post(
            f"/wines/{wine.id}/edit-image", data={"x": "100", "y": "50", "w": "1000", "h": "100"}
        )
        assert response.status_code == 200
        assert f"/wines/{wine.id}/image" in response.text
        assert png_size(await cellar_store.get_image(db_session, wine.id)) == (412, 100)
        assert png_size(await cellar_store.get_thumbnail(db_session, wine.id)) == (96, 23)

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "region,message",
        [
            ({"x": "0", "y": "0", "w": "0", "h": "10"}, "non-zero"),
            ({"x": "600", "y": "0", "w": "10", "h": "10"}, "out of bounds"),
        ],
    )
    async def test_bad_crop(self, client: AsyncClient, db_session, landscape_png, region, message) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        await client.post(f"/wines/{wine.id}/image", files={"image": ("label.png", landscape_png, "image/png")})
        before = await cellar_store.get_image(db_session, wine.id)

        response = await client.post(f"/wines/{wine.id}/edit-image", data=region)
        assert response.status_code == 400
        assert message in response.text
        assert await cellar_store.get_image(db_session, wine.id) == before

    @pytest.mark.asyncio
    async def test_crop_without_image(self, client: AsyncClient, db_session) -> None:
        wine = await cellar_store.add_wine(db_session, "Barolo", 2016)
        response = await client.get(f"/wines/{wine.id}/edit-image")
        assert response.status_code == 404
        assert "has no image" in response.text
