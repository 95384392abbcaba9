import io
from pathlib import Path

import pytest
from PIL import Image

from bistro.utils.validators import require_positive_number

WELLINGTON = {
    "name": "Beef Wellington",
    "category": "Supper",
    "price": 42.99,
    "description": "Beef fillet in puff pastry",
}


def _png(width: int, height: int) -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), (200, 80, 20)).save(buf, format="PNG")
    return buf.getvalue()


class TestCreate:
    def test_create_generates_key_and_default_language(self, client):
        r = client.post("/api/products", json=WELLINGTON)
        assert r.status_code == 201
        body = r.json()
        assert body["success"] is True
        assert body["data"]["product_key"] == "beef-wellington"
        assert body["data"]["language"] == "en"
        assert body["data"]["price"] == 42.99

    def test_missing_fields(self, client):
        r = client.post("/api/products", json={"name": "Soup"})
        assert r.status_code == 400
        assert r.json() == {"success": False, "error": "Name, category, and price are required fields"}

    def test_price_must_be_positive(self, client):
        r = client.post("/api/products", json={**WELLINGTON, "price": 0})
        assert r.status_code == 400
        assert r.json()["error"] == "Price must be a positive number"

    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    def test_non_finite_price_is_rejected(self, client, literal):
        body = '{"name": "Soup", "category": "Lunch", "price": ' + literal + "}"
        r = client.post("/api/products", content=body, headers={"content-type": "application/json"})
        assert r.status_code == 400
        assert r.json()["success"] is False
        assert client.get("/api/products").json()["data"] == []

    def test_unknown_language(self, client):
        r = client.post("/api/products", json={**WELLINGTON, "language": "fr"})
        assert r.status_code == 400

    def test_duplicate_translation_conflicts(self, client):
        client.post("/api/products", json={**WELLINGTON, "product_key": "wellington"})
        r = client.post("/api/products", json={**WELLINGTON, "product_key": "wellington"})
        assert r.status_code == 409
        assert r.json()["success"] is False

    def test_same_name_gets_a_fresh_key(self, client):
        client.post("/api/products", json=WELLINGTON)
        r = client.post("/api/products", json=WELLINGTON)
        assert r.json()["data"]["product_key"] == "beef-wellington-2"


class TestRead:
    def test_list_and_filter_by_language(self, client):
        client.post("/api/products", json={**WELLINGTON, "product_key": "wellington"})
        client.post(
            "/api/products",
            json={**WELLINGTON, "product_key": "wellington", "language": "he", "name": "בקר וולינגטון"},
        )
        assert len(client.get("/api/products").json()["data"]) == 2
        he = client.get("/api/products", params={"language": "he"}).json()["data"]
        assert [p["name"] for p in he] == ["בקר וולינגטון"]

    def test_by_category(self, client, make_product):
        make_product()
        make_product(name="Pancakes", category="Breakfast", price=9.5)
        data = client.get("/api/products/category/Breakfast").json()["data"]
        assert [p["name"] for p in data] == ["Pancakes"]

    def test_translations(self, client):
        client.post("/api/products", json={**WELLINGTON, "product_key": "wellington"})
        client.post("/api/products", json={**WELLINGTON, "product_key": "wellington", "language": "he"})
        r = client.get("/api/products/translations/wellington")
        assert r.status_code == 200
        assert sorted(r.json()["data"]["locales"]) == ["en", "he"]

    def test_missing_product(self, client):
        assert client.get("/api/products/999").status_code == 404
        assert client.get("/api/products/translations/nope").status_code == 404
        assert client.get("/api/products/key/nope/en").status_code == 404


class TestUpdateDelete:
    def test_partial_update(self, client, make_product):
        p = make_product()
        r = client.put(f"/api/products/{p['id']}", json={"price": 21.5})
        assert r.status_code == 200
        assert r.json()["data"]["price"] == 21.5
        assert r.json()["data"]["name"] == "Salmon Bowl"

    def test_update_rejects_bad_price(self, client, make_product):
        p = make_product()
        r = client.put(f"/api/products/{p['id']}", json={"price": -3})
        assert r.status_code == 400

    @pytest.mark.parametrize("literal", ["NaN", "Infinity"])
    def test_update_rejects_non_finite_price(self, client, make_product, literal):
        p = make_product()
        r = client.put(
            f"/api/products/{p['id']}",
            content='{"price": ' + literal + "}",
            headers={"content-type": "application/json"},
        )
        assert r.status_code == 400
        assert client.get(f"/api/products/{p['id']}").json()["data"]["price"] == 18.99

    def test_update_by_key_and_language(self, client, make_product):
        p = make_product()
        r = client.put(f"/api/products/key/{p['product_key']}/en", json={"description": "New copy"})
        assert r.json()["data"]["description"] == "New copy"

    def test_update_missing_translation(self, client, make_product):
        p = make_product()
        r = client.put(f"/api/products/key/{p['product_key']}/he", json={"name": "x"})
        assert r.status_code == 404

    def test_delete(self, client, make_product):
        p = make_product()
        r = client.delete(f"/api/products/{p['id']}")
        assert r.json() == {"success": True, "message": "Product deleted successfully"}
        assert client.delete(f"/api/products/{p['id']}").status_code == 404


class TestImageUpload:
    def test_upload_is_stored_and_downscaled(self, client, make_product, tmp_settings):
        p = make_product()
        r = client.post(
            f"/api/products/{p['id']}/image",
            files={"image": ("dish.png", _png(2560, 1000), "image/png")},
        )
        assert r.status_code == 200
        url = r.json()["data"]["image"]
        assert url.startswith("http://testserver/uploads/product-")
        assert url.endswith(".png")

        stored = Path(tmp_settings.uploads_dir) / url.rsplit("/", 1)[-1]
        with Image.open(stored) as im:
            assert im.size == (1280, 500)

    def test_small_image_is_kept(self, client, make_product, tmp_settings):
        p = make_product()
        data = _png(300, 200)
        url = client.post(
            f"/api/products/{p['id']}/image",
            files={"image": ("dish.png", data, "image/png")},
        ).json()["data"]["image"]
        stored = Path(tmp_settings.uploads_dir) / url.rsplit("/", 1)[-1]
        assert stored.read_bytes() == data

    def test_rejects_non_images(self, client, make_product):
        p = make_product()
        r = client.post(
            f"/api/products/{p['id']}/image",
            files={"image": ("notes.txt", b"hello", "text/plain")},
        )
        assert r.status_code == 400
        assert "Invalid file type" in r.json()["error"]


class TestPriceValidation:
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf"), 0, -1, True, "12"])
    def test_rejected(self, value):
        with pytest.raises(ValueError, match="Price must be a positive number"):
            require_positive_number(value, "price")

    def test_accepted(self):
        assert require_positive_number(12, "price") == 12.0
