from __future__ import annotations

import base64
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from openai import OpenAI, OpenAIError

from bistro.config import AIConfig
from bistro.constants import DEFAULT_LANGUAGE, LANGUAGES
from bistro.db import sqlite as db
from bistro.services import images
from bistro.utils.validators import normalize_language

logger = logging.getLogger(__name__)

NOT_CONFIGURED = "AI API key is not configured. Set AI_API_KEY in .env"


@dataclass
class AIResult:
    success: bool
    data: Any = None
    error: Optional[str] = None
    not_found: bool = False

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"success": self.success}
        if self.success:
            out["data"] = self.data
        else:
            out["error"] = self.error
        return out


def make_client(config: AIConfig) -> OpenAI:
    return OpenAI(api_key=config.api_key, base_url=config.base_url, timeout=config.timeout)


def _chat(client: Any, config: AIConfig, system: str, user: Any, json_mode: bool = False, model: Optional[str] = None, max_tokens: int = 1000) -> str:
    kwargs: Dict[str, Any] = {
        "model": model or config.chat_model,
        "messages": [
            {"role": "system", "content": system},
            {"role": "user", "content": user},
        ],
        "max_tokens": max_tokens,
    }
    if json_mode:
        kwargs["response_format"] = {"type": "json_object"}
    completion = client.chat.completions.create(**kwargs)
    return (completion.choices[0].message.content or "").strip()


def _chat_json(client: Any, config: AIConfig, system: str, user: Any, model: Optional[str] = None) -> Any:
    text = _chat(client, config, system, user, json_mode=True, model=model)
    return json.loads(text or "{}")


def _failure(what: str, e: Exception) -> AIResult:
    logger.error("AI %s failed: %s", what, e)
    if isinstance(e, OpenAIError):
        return AIResult(False, error=str(e) or f"AI {what} failed")
    return AIResult(False, error=f"Failed to parse AI response for {what}")


# ---------------- text ----------------

def generate(config: AIConfig, client: Any, prompt: str) -> AIResult:
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)
    try:
        text = _chat(client, config, "You are a helpful assistant for a restaurant.", prompt)
    except OpenAIError as e:
        return _failure("generate", e)
    return AIResult(True, {"result": text, "timestamp": datetime.now(timezone.utc).isoformat()})


def modify_product(config: AIConfig, client: Any, product: Dict[str, Any], instructions: str) -> AIResult:
    """Rewrite a product's name, description and price following free-text instructions."""
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)

    prompt = (
        "Here is a restaurant menu product:\n"
        f"{json.dumps(product, ensure_ascii=False, indent=2)}\n\n"
        f"Modify it following these instructions: {instructions}\n\n"
        'Return a JSON object: {"name": string, "description": string, "price": number}. '
        "Keep the price in USD and keep fields you were not asked to change."
    )
    try:
        parsed = _chat_json(
            client,
            config,
            "You are a restaurant copywriter. You write short, appetizing menu copy.",
            prompt,
        )
        updated = {
            "name": str(parsed.get("name") or product.get("name") or ""),
            "description": str(parsed.get("description") or product.get("description") or ""),
            "price": float(parsed.get("price", product.get("price") or 0)),
        }
    except (OpenAIError, ValueError, TypeError, AttributeError) as e:
        return _failure("modify-product", e)
    return AIResult(True, {"updated": updated})


def translate(config: AIConfig, client: Any, text: str, target_language: str) -> AIResult:
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)
    if not text.strip():
        return AIResult(True, {"translatedText": text})

    target = LANGUAGES.get(target_language, target_language)
    try:
        translated = _chat(
            client,
            config,
            f"You translate restaurant menu text into {target}. "
            "Reply with the translation only, no quotes or explanations.",
            text,
        )
    except OpenAIError as e:
        return _failure("translate", e)
    return AIResult(True, {"translatedText": translated or text})


def translate_product(config: AIConfig, client: Any, product: Dict[str, Any], target_language: str) -> AIResult:
    """Translate one stored product and create or update its target-language row."""
    name = translate(config, client, product["name"], target_language)
    if not name.success:
        return name

    description = ""
    if product.get("description"):
        desc = translate(config, client, product["description"], target_language)
        if not desc.success:
            return desc
        description = desc.data["translatedText"]

    fields = {
        "name": name.data["translatedText"],
        "description": description,
        "category": product["category"],
        "price": product["price"],
        "image": product.get("image"),
    }
    key = product["product_key"]
    saved = db.update_product_by_key(key, target_language, fields)
    created = saved is None
    if created:
        ok, saved = db.create_product({**fields, "product_key": key, "language": target_language})
        if not ok:
            return AIResult(False, error=saved)

    return AIResult(
        True,
        {
            "id": product["id"],
            "created": created,
            "original": {"name": product["name"], "description": product.get("description") or ""},
            "translated": {"name": saved["name"], "description": saved.get("description") or ""},
            "product": saved,
        },
    )


def generate_product_translations(config: AIConfig, client: Any, target_language: str) -> AIResult:
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)

    sources = db.products_missing_language(target_language)
    details: List[Dict[str, Any]] = []
    translated = 0
    for product in sources:
        res = translate_product(config, client, product, target_language)
        if res.success:
            translated += 1
            details.append({"success": True, **{k: res.data[k] for k in ("id", "original", "translated")}})
        else:
            details.append({"success": False, "id": product["id"], "error": res.error})

    logger.info("translated %s/%s products to %s", translated, len(sources), target_language)
    return AIResult(
        True,
        {
            "total": len(sources),
            "translated": translated,
            "failed": len(sources) - translated,
            "details": details,
        },
    )


# ---------------- images ----------------

def generate_dish_image(config: AIConfig, client: Any, name: str, description: str, category: str) -> AIResult:
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)

    prompt = (
        f"A professional, appetizing food photograph of {name}"
        + (f", {description}" if description else "")
        + f". Served as a restaurant {category.lower() if category else 'dish'}, "
        "plated on a clean table, soft natural light, shallow depth of field, no text."
    )
    try:
        resp = client.images.generate(
            model=config.image_model,
            prompt=prompt,
            n=1,
            size="1024x1024",
            response_format="b64_json",
        )
        item = resp.data[0]
        if getattr(item, "b64_json", None):
            url = images.store_generated(base64.b64decode(item.b64_json))
        else:
            url = images.download_image(item.url, timeout=config.timeout)
    except (OpenAIError, ValueError) as e:
        return _failure("generate-dish-image", e)
    return AIResult(True, {"imageUrl": url})


def _as_data_url(image: str) -> str:
    if image.startswith("data:"):
        return image
    return f"data:image/jpeg;base64,{image}"


def recognize_products(config: AIConfig, client: Any, image: str) -> AIResult:
    """List food items / ingredients visible in a camera capture."""
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)

    content = [
        {
            "type": "text",
            "text": (
                "List the food products and ingredients you can see in this image. "
                'Return JSON: {"products": [{"name": string, "confidence": number between 0 and 1}]}'
            ),
        },
        {"type": "image_url", "image_url": {"url": _as_data_url(image)}},
    ]
    try:
        parsed = _chat_json(
            client,
            config,
            "You recognize food products and ingredients in photos.",
            content,
            model=config.vision_model,
        )
        products = []
        for p in parsed.get("products") or []:
            if isinstance(p, str):
                products.append({"name": p})
            elif isinstance(p, dict) and p.get("name"):
                item = {"name": str(p["name"])}
                if p.get("confidence") is not None:
                    item["confidence"] = float(p["confidence"])
                products.append(item)
    except (OpenAIError, ValueError, TypeError, AttributeError) as e:
        return _failure("recognize-products", e)
    return AIResult(True, {"products": products})


def recipe_recommendations(config: AIConfig, client: Any, products: List[str]) -> AIResult:
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)
    if not products:
        return AIResult(True, {"recipes": []})

    prompt = (
        f"Available ingredients: {', '.join(products)}.\n"
        "Suggest up to 3 restaurant dishes that use mostly these ingredients. "
        'Return JSON: {"recipes": [{"name": string, "description": string, '
        '"ingredients": [string], "instructions": [string]}]}'
    )
    try:
        parsed = _chat_json(client, config, "You are a creative restaurant chef.", prompt)
        recipes = [
            {
                "name": str(r.get("name", "")),
                "description": str(r.get("description", "")),
                "ingredients": [str(i) for i in r.get("ingredients") or []],
                "instructions": [str(i) for i in r.get("instructions") or []],
            }
            for r in parsed.get("recipes") or []
            if isinstance(r, dict)
        ]
    except (OpenAIError, ValueError, TypeError, AttributeError) as e:
        return _failure("recipe-recommendations", e)
    return AIResult(True, {"recipes": recipes})


# ---------------- search ----------------

def extract_product_keys(parsed: Any) -> List[str]:
    """Pull the list of keys out of whatever shape the model answered with."""
    if isinstance(parsed, list):
        return [str(k) for k in parsed]
    if not isinstance(parsed, dict):
        return []
    for name in ("product_keys", "products", "matches", "results"):
        if isinstance(parsed.get(name), list):
            return [str(k) for k in parsed[name]]
    for v in parsed.values():
        if isinstance(v, list):
            return [str(k) for k in v]
    return []


def search_products(config: AIConfig, client: Any, query: str, language: str = DEFAULT_LANGUAGE) -> AIResult:
    if not config.configured:
        return AIResult(False, error=NOT_CONFIGURED)

    lang = normalize_language(language) or DEFAULT_LANGUAGE
    products = db.list_products(lang)
    if not products:
        if lang == DEFAULT_LANGUAGE:
            return AIResult(False, error=f"No products found in {language} language", not_found=True)
        logger.info("no products in %s, falling back to %s", lang, DEFAULT_LANGUAGE)
        products = db.list_products(DEFAULT_LANGUAGE)
        if not products:
            return AIResult(
                False,
                error=f"No products found in {lang} or default '{DEFAULT_LANGUAGE}' language",
                not_found=True,
            )

    catalog = [
        {"id": p["id"], "product_key": p["product_key"], "name": p["name"], "description": p.get("description") or ""}
        for p in products
    ]
    prompt = (
        f'I have a list of products and I need to find ones that match the query: "{query}".\n\n'
        f"Here are the products:\n{json.dumps(catalog, ensure_ascii=False, indent=2)}\n\n"
        'Return a JSON object with a "product_keys" array containing ONLY the product_key values '
        'of matching products, e.g. {"product_keys": ["key1", "key2"]}. '
        'If nothing matches return {"product_keys": []}. '
        "Return the product_key values exactly as they appear in the list."
    )
    try:
        parsed = _chat_json(client, config, config.search_prompt, prompt)
    except (OpenAIError, ValueError) as e:
        return _failure("search-products", e)

    keys = set(extract_product_keys(parsed))
    matches = [p for p in products if p["product_key"] in keys]
    logger.info("search %r matched %s/%s products", query, len(matches), len(products))
    return AIResult(True, matches)
