from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Any, Optional
from urllib.parse import urlencode

from fastapi import Depends, FastAPI, File, Form, HTTPException, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, RedirectResponse
from fastapi.staticfiles import StaticFiles
from fastapi.templating import Jinja2Templates
from starlette.exceptions import HTTPException as StarletteHTTPException

from bistro.config import AIConfig, settings
from bistro.constants import CATEGORIES, DEFAULT_LANGUAGE, LANGUAGES, TIP_PRESETS
from bistro.db import sqlite as db
from bistro.orders.cart import Cart, drop_cart, get_cart, new_cart
from bistro.services import ai, images
from bistro.services.pricing import estimate_price
from bistro.services.receipt_pdf import generate_receipt_pdf
from bistro.utils.formatters import money
from bistro.utils.validators import require_language, require_positive_number, require_text
from bistro.web import i18n
from bistro.web.schemas import (
    AIConfigIn,
    CouponIn,
    DiscountIn,
    DishImageIn,
    ModifyProductIn,
    NoteIn,
    OrderItemIn,
    PriceEstimateIn,
    ProductIn,
    ProductUpdate,
    PromptIn,
    QuantityIn,
    RecipesIn,
    RecognizeIn,
    SearchIn,
    TargetLanguageIn,
    TipIn,
    TranslateIn,
)

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = BASE_DIR / "templates"
ORDER_COOKIE = "order_id"

app = FastAPI(title="Bistro POS")
app.state.ai_config = AIConfig.from_settings(settings)

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals.update(t=i18n.t, money=money)

app.mount("/uploads", StaticFiles(directory=settings.uploads_dir, check_dir=False), name="uploads")


@app.on_event("startup")
def _startup() -> None:
    db.init_db()


# ---------------- envelope ----------------

def ok(data: Any = None, status_code: int = 200, **extra: Any) -> JSONResponse:
    return JSONResponse({"success": True, "data": data, **extra}, status_code=status_code)


def fail(error: str, status_code: int) -> JSONResponse:
    return JSONResponse({"success": False, "error": error}, status_code=status_code)


@app.exception_handler(StarletteHTTPException)
async def _http_error(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return fail(str(exc.detail), exc.status_code)


@app.exception_handler(RequestValidationError)
async def _validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        e = errors[0]
        field = ".".join(str(p) for p in e.get("loc", ()) if p != "body")
        msg = f"{field}: {e.get('msg')}" if field else str(e.get("msg"))
    else:
        msg = "Invalid request"
    return fail(msg, 400)


@app.exception_handler(ValueError)
async def _value_error(request: Request, exc: ValueError) -> JSONResponse:
    return fail(str(exc), 400)


@app.exception_handler(Exception)
async def _server_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return fail(str(exc) or "Server error", 500)


@app.get("/api/health")
def health():
    return {"message": "Bistro POS API", "status": "running"}


# ---------------- products ----------------

def _language_param(language: Optional[str]) -> Optional[str]:
    return require_language(language) if language else None


@app.get("/api/products")
def products_list(language: Optional[str] = None):
    return ok(db.list_products(_language_param(language)))


@app.get("/api/products/category/{category}")
def products_by_category(category: str, language: Optional[str] = None):
    return ok(db.list_products_by_category(category, _language_param(language)))


@app.get("/api/products/translations/{product_key}")
def product_translations(product_key: str):
    locales = db.get_translations(product_key)
    if not locales:
        raise HTTPException(status_code=404, detail="Product not found")
    return ok({"product_key": product_key, "locales": locales})


@app.get("/api/products/key/{product_key}/{language}")
def product_by_key(product_key: str, language: str):
    product = db.get_product_by_key(product_key, require_language(language))
    if not product:
        raise HTTPException(status_code=404, detail="Product translation not found")
    return ok(product)


def _clean_update(body: ProductUpdate) -> dict[str, Any]:
    fields = body.model_dump(exclude_none=True)
    if "price" in fields:
        fields["price"] = require_positive_number(fields["price"], "price")
    for k in ("name", "category"):
        if k in fields:
            fields[k] = require_text(fields[k], k)
    return fields


@app.put("/api/products/key/{product_key}/{language}")
def product_update_by_key(product_key: str, language: str, body: ProductUpdate):
    product = db.update_product_by_key(product_key, require_language(language), _clean_update(body))
    if not product:
        raise HTTPException(status_code=404, detail="Product translation not found")
    return ok(product)


@app.get("/api/products/{product_id}")
def product_get(product_id: int):
    product = db.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ok(product)


@app.post("/api/products")
def product_create(body: ProductIn):
    if not body.name or not body.category or body.price is None:
        raise ValueError("Name, category, and price are required fields")

    data = body.model_dump()
    data["name"] = require_text(body.name, "name")
    data["category"] = require_text(body.category, "category")
    data["price"] = require_positive_number(body.price, "price")
    data["language"] = require_language(body.language or DEFAULT_LANGUAGE)

    created, result = db.create_product(data)
    if not created:
        raise HTTPException(status_code=409, detail=result)
    return ok(result, status_code=201)


@app.put("/api/products/{product_id}")
def product_update(product_id: int, body: ProductUpdate):
    product = db.update_product(product_id, _clean_update(body))
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return ok(product)


@app.delete("/api/products/{product_id}")
def product_delete(product_id: int):
    if not db.delete_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "message": "Product deleted successfully"}


@app.post("/api/products/{product_id}/image")
async def product_image(product_id: int, image: UploadFile = File(...)):
    if not db.get_product(product_id):
        raise HTTPException(status_code=404, detail="Product not found")
    url = images.store_upload(await image.read(), image.content_type or "")
    return ok(db.update_product(product_id, {"image": url}))


# ---------------- orders ----------------

def _require_cart(cart_id: str) -> Cart:
    cart = get_cart(cart_id)
    if cart is None:
        raise HTTPException(status_code=404, detail="Order not found")
    return cart


def _cart_out(cart: Cart) -> JSONResponse:
    return ok(cart.to_dict(settings.decimals))


@app.post("/api/orders")
def order_open():
    cart = new_cart()
    return ok({"id": cart.id}, status_code=201)


@app.get("/api/orders/{cart_id}")
def order_get(cart_id: str):
    return _cart_out(_require_cart(cart_id))


@app.delete("/api/orders/{cart_id}")
def order_close(cart_id: str):
    if not drop_cart(cart_id):
        raise HTTPException(status_code=404, detail="Order not found")
    return {"success": True, "message": "Order closed"}


@app.post("/api/orders/{cart_id}/items")
def order_add_item(cart_id: str, body: OrderItemIn):
    cart = _require_cart(cart_id)
    product = db.get_product(body.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    cart.add_line(product["id"], product["name"], product["price"], product["category"])
    return _cart_out(cart)


@app.put("/api/orders/{cart_id}/items/{line_id}")
def order_set_quantity(cart_id: str, line_id: int, body: QuantityIn):
    cart = _require_cart(cart_id)
    if not any(ln.id == line_id for ln in cart.lines):
        raise HTTPException(status_code=404, detail="Item not in order")
    cart.update_quantity(line_id, body.quantity)
    return _cart_out(cart)


@app.delete("/api/orders/{cart_id}/items/{line_id}")
def order_remove_item(cart_id: str, line_id: int):
    cart = _require_cart(cart_id)
    cart.remove_line(line_id)
    return _cart_out(cart)


@app.put("/api/orders/{cart_id}/tip")
def order_tip(cart_id: str, body: TipIn):
    cart = _require_cart(cart_id)
    cart.set_tip(body.kind, body.value)
    return _cart_out(cart)


@app.put("/api/orders/{cart_id}/discount")
def order_discount(cart_id: str, body: DiscountIn):
    cart = _require_cart(cart_id)
    cart.set_manual_discount(body.amount)
    return _cart_out(cart)


@app.put("/api/orders/{cart_id}/coupon")
def order_coupon(cart_id: str, body: CouponIn):
    cart = _require_cart(cart_id)
    cart.set_coupon_discount(body.amount, body.code)
    return _cart_out(cart)


@app.put("/api/orders/{cart_id}/note")
def order_note(cart_id: str, body: NoteIn):
    cart = _require_cart(cart_id)
    cart.set_note(body.note)
    return _cart_out(cart)


@app.post("/api/orders/{cart_id}/clear")
def order_clear(cart_id: str):
    cart = _require_cart(cart_id)
    cart.clear()
    return _cart_out(cart)


@app.get("/api/orders/{cart_id}/receipt")
def order_receipt(cart_id: str):
    cart = _require_cart(cart_id)
    path = generate_receipt_pdf(cart)
    return FileResponse(path, media_type="application/pdf", filename=Path(path).name)


@app.post("/api/pricing/estimate")
def pricing_estimate(body: PriceEstimateIn):
    return ok({"price": estimate_price(body.category, body.description, body.name)})


# ---------------- AI ----------------

def get_ai_config(request: Request) -> AIConfig:
    return request.app.state.ai_config


def get_ai_client(config: AIConfig = Depends(get_ai_config)) -> Any:
    # no key -> no client; the service answers "not configured"
    if not config.configured:
        return None
    return ai.make_client(config)


def _ai_out(res: ai.AIResult) -> JSONResponse:
    if res.success:
        return ok(res.data)
    if res.error == ai.NOT_CONFIGURED:
        status_code = 503
    elif res.not_found:
        status_code = 404
    else:
        status_code = 502
    return fail(res.error or "AI request failed", status_code)


@app.get("/api/ai/models")
def ai_models(config: AIConfig = Depends(get_ai_config)):
    return ok([{"id": m, "name": m} for m in config.available_models])


@app.get("/api/ai/config")
def ai_config_get(config: AIConfig = Depends(get_ai_config)):
    return ok(
        {
            "model": config.chat_model,
            "prompt": config.search_prompt,
            "availableModels": list(config.available_models),
            "configured": config.configured,
        }
    )


@app.put("/api/ai/config")
def ai_config_put(body: AIConfigIn, request: Request, config: AIConfig = Depends(get_ai_config)):
    changes: dict[str, Any] = {}
    if body.model is not None:
        model = require_text(body.model, "model")
        changes["chat_model"] = model
        if model not in config.available_models:
            changes["available_models"] = (*config.available_models, model)
    if body.prompt is not None:
        changes["search_prompt"] = require_text(body.prompt, "prompt")
    request.app.state.ai_config = replace(config, **changes)
    logger.info("AI config updated: %s", ", ".join(changes) or "nothing")
    return ai_config_get(request.app.state.ai_config)


@app.post("/api/ai/generate")
def ai_generate(body: PromptIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    require_text(body.prompt, "prompt")
    return _ai_out(ai.generate(config, client, body.prompt))


@app.post("/api/ai/modify-product")
def ai_modify_product(body: ModifyProductIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    require_text(body.instructions, "instructions")
    return _ai_out(ai.modify_product(config, client, body.product.model_dump(), body.instructions))


@app.post("/api/ai/translate")
def ai_translate(body: TranslateIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    require_text(body.text, "text")
    target = require_language(body.targetLanguage)
    return _ai_out(ai.translate(config, client, body.text, target))


@app.post("/api/ai/generate-product-translations")
def ai_generate_translations(body: TargetLanguageIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    target = require_language(body.targetLanguage)
    return _ai_out(ai.generate_product_translations(config, client, target))


@app.post("/api/ai/generate-dish-image")
def ai_dish_image(body: DishImageIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    require_text(body.name, "name")
    return _ai_out(ai.generate_dish_image(config, client, body.name, body.description, body.category))


@app.post("/api/ai/recognize-products")
def ai_recognize(body: RecognizeIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    require_text(body.image, "image")
    return _ai_out(ai.recognize_products(config, client, body.image))


@app.post("/api/ai/recipe-recommendations")
def ai_recipes(body: RecipesIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    return _ai_out(ai.recipe_recommendations(config, client, body.products))


@app.post("/api/ai/search-products")
def ai_search(body: SearchIn, config: AIConfig = Depends(get_ai_config), client: Any = Depends(get_ai_client)):
    query = require_text(body.query, "search query")
    res = ai.search_products(config, client, query, body.language)
    if not res.success:
        return _ai_out(res)
    return ok(res.data, query=query, language=body.language)


# ---------------- pages ----------------

def _page_lang(lang: Optional[str]) -> str:
    return lang if lang in LANGUAGES else DEFAULT_LANGUAGE


def _page_cart(request: Request, register: bool = True) -> Cart:
    cart_id = request.cookies.get(ORDER_COOKIE)
    cart = get_cart(cart_id) if cart_id else None
    return cart or new_cart(register=register)


def _back(lang: str, cart: Cart) -> RedirectResponse:
    resp = RedirectResponse(url=f"/?lang={_page_lang(lang)}", status_code=303)
    resp.set_cookie(ORDER_COOKIE, cart.id, httponly=True, samesite="lax")
    return resp


@app.get("/", response_class=HTMLResponse)
def index(
    request: Request,
    lang: str = DEFAULT_LANGUAGE,
    category: Optional[str] = None,
    q: str = "",
    config: AIConfig = Depends(get_ai_config),
    client: Any = Depends(get_ai_client),
):
    lang = _page_lang(lang)
    query = q.strip()
    search_error = None
    if query:
        res = ai.search_products(config, client, query, lang)
        products = res.data if res.success else []
        search_error = res.error
    else:
        products = db.list_products(lang) or db.list_products(DEFAULT_LANGUAGE)
    if category:
        products = [p for p in products if p["category"] == category]

    # the order is registered on its first change, not on a plain visit
    cart = _page_cart(request, register=False)

    resp = templates.TemplateResponse(
        request,
        "index.html",
        {
            "lang": lang,
            "dir": i18n.direction(lang),
            "languages": LANGUAGES,
            "categories": CATEGORIES,
            "selected_category": category,
            "query": query,
            "search_error": search_error,
            "products": products,
            "cart": cart,
            "totals": cart.totals,
            "tip_presets": TIP_PRESETS,
        },
    )
    if get_cart(cart.id) is cart:
        resp.set_cookie(ORDER_COOKIE, cart.id, httponly=True, samesite="lax")
    return resp


def _product_form(request: Request, lang: str, product: dict[str, Any], msg: str = "") -> HTMLResponse:
    suggested = None
    if product.get("category"):
        suggested = estimate_price(product["category"], product.get("description") or "", product.get("name") or "")
    return templates.TemplateResponse(
        request,
        "product_form.html",
        {
            "lang": lang,
            "dir": i18n.direction(lang),
            "languages": LANGUAGES,
            "categories": CATEGORIES,
            "product": product,
            "suggested": suggested,
            "msg": msg,
        },
    )


@app.get("/products/new", response_class=HTMLResponse)
def product_new_page(
    request: Request,
    lang: str = DEFAULT_LANGUAGE,
    name: str = "",
    category: str = "",
    description: str = "",
    language: str = "",
    msg: str = "",
):
    lang = _page_lang(lang)
    product = {
        "id": None,
        "name": name,
        "category": category or CATEGORIES[0],
        "description": description,
        "price": None,
        "language": _page_lang(language or lang),
    }
    return _product_form(request, lang, product, msg)


@app.get("/products/{product_id}/edit", response_class=HTMLResponse)
def product_edit_page(request: Request, product_id: int, lang: str = DEFAULT_LANGUAGE, msg: str = ""):
    product = db.get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    return _product_form(request, _page_lang(lang), product, msg)


def _form_price(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError("Price must be a positive number") from None
    return require_positive_number(value, "price")


@app.post("/products/save")
def product_save_page(
    product_id: Optional[int] = Form(None),
    name: str = Form(""),
    category: str = Form(""),
    description: str = Form(""),
    price: str = Form(""),
    suggested: str = Form(""),
    language: str = Form(DEFAULT_LANGUAGE),
    lang: str = Form(DEFAULT_LANGUAGE),
):
    lang = _page_lang(lang)
    form_url = f"/products/{product_id}/edit" if product_id else "/products/new"
    try:
        fields = {
            "name": require_text(name, "name"),
            "category": require_text(category, "category"),
            "description": description.strip(),
        }
        # empty price -> the suggestion shown on the form, or a fresh estimate
        raw = price.strip() or suggested.strip()
        if raw:
            fields["price"] = _form_price(raw)
        else:
            fields["price"] = estimate_price(fields["category"], fields["description"], fields["name"])
    except ValueError as e:
        return RedirectResponse(url=f"{form_url}?{urlencode({'lang': lang, 'msg': str(e)})}", status_code=303)

    if product_id:
        if not db.update_product(product_id, fields):
            raise HTTPException(status_code=404, detail="Product not found")
    else:
        created, result = db.create_product({**fields, "language": _page_lang(language)})
        if not created:
            return RedirectResponse(url=f"{form_url}?{urlencode({'lang': lang, 'msg': result})}", status_code=303)
    return RedirectResponse(url=f"/?lang={lang}", status_code=303)


@app.post("/order/add")
def page_add(request: Request, product_id: int = Form(...), lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    product = db.get_product(product_id)
    if product:
        cart.add_line(product["id"], product["name"], product["price"], product["category"])
    return _back(lang, cart)


@app.post("/order/quantity")
def page_quantity(request: Request, line_id: int = Form(...), quantity: int = Form(...), lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    cart.update_quantity(line_id, quantity)
    return _back(lang, cart)


@app.post("/order/tip")
def page_tip(request: Request, kind: str = Form(...), value: float = Form(0), lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    cart.set_tip(kind, value)
    return _back(lang, cart)


@app.post("/order/discount")
def page_discount(request: Request, amount: float = Form(0), lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    cart.set_manual_discount(amount)
    return _back(lang, cart)


@app.post("/order/coupon")
def page_coupon(request: Request, amount: float = Form(0), code: str = Form(""), lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    cart.set_coupon_discount(amount, code)
    return _back(lang, cart)


@app.post("/order/note")
def page_note(request: Request, note: str = Form(""), lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    cart.set_note(note)
    return _back(lang, cart)


@app.post("/order/clear")
def page_clear(request: Request, lang: str = Form(DEFAULT_LANGUAGE)):
    cart = _page_cart(request)
    cart.clear()
    return _back(lang, cart)
