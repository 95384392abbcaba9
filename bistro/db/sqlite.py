from __future__ import annotations

import logging
import os
import sqlite3
import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from bistro.config import settings
from bistro.constants import DEFAULT_LANGUAGE
from bistro.utils.formatters import slugify

logger = logging.getLogger(__name__)

PRODUCT_COLUMNS = "id, product_key, language, name, description, category, price, image, created_at, updated_at"
UPDATABLE_FIELDS = ("name", "description", "category", "price", "image")


def _connect() -> sqlite3.Connection:
    db_dir = os.path.dirname(settings.db_path)
    if db_dir:
        os.makedirs(db_dir, exist_ok=True)
    conn = sqlite3.connect(settings.db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def _now() -> str:
    return datetime.now().strftime("%Y-%m-%d %H:%M:%S")


def _to_product(row: sqlite3.Row) -> Dict[str, Any]:
    p = dict(row)
    p["price"] = float(p["price"])
    return p


def init_db() -> None:
    conn = _connect()
    try:
        with open(os.path.join(os.path.dirname(__file__), "schema.sql"), "r", encoding="utf-8") as f:
            conn.executescript(f.read())
        conn.execute("PRAGMA journal_mode = WAL")
        conn.commit()
    finally:
        conn.close()


# ---------------- reads ----------------

def list_products(language: Optional[str] = None) -> List[Dict[str, Any]]:
    conn = _connect()
    try:
        if language:
            rows = conn.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products WHERE language=? ORDER BY category, name",
                (language,),
            ).fetchall()
        else:
            rows = conn.execute(
                f"SELECT {PRODUCT_COLUMNS} FROM products ORDER BY category, name"
            ).fetchall()
        return [_to_product(r) for r in rows]
    finally:
        conn.close()


def list_products_by_category(category: str, language: Optional[str] = None) -> List[Dict[str, Any]]:
    conn = _connect()
    try:
        sql = f"SELECT {PRODUCT_COLUMNS} FROM products WHERE category=?"
        params: List[Any] = [category]
        if language:
            sql += " AND language=?"
            params.append(language)
        rows = conn.execute(sql + " ORDER BY name", params).fetchall()
        return [_to_product(r) for r in rows]
    finally:
        conn.close()


def get_product(product_id: int) -> Optional[Dict[str, Any]]:
    conn = _connect()
    try:
        row = conn.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE id=?", (product_id,)
        ).fetchone()
        return _to_product(row) if row else None
    finally:
        conn.close()


def get_product_by_key(product_key: str, language: str) -> Optional[Dict[str, Any]]:
    conn = _connect()
    try:
        row = conn.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE product_key=? AND language=?",
            (product_key, language),
        ).fetchone()
        return _to_product(row) if row else None
    finally:
        conn.close()


def get_translations(product_key: str) -> Dict[str, Dict[str, Any]]:
    """language -> product row for every translation of one product key."""
    conn = _connect()
    try:
        rows = conn.execute(
            f"SELECT {PRODUCT_COLUMNS} FROM products WHERE product_key=? ORDER BY language",
            (product_key,),
        ).fetchall()
        return {r["language"]: _to_product(r) for r in rows}
    finally:
        conn.close()


def products_missing_language(language: str) -> List[Dict[str, Any]]:
    """
    One source row per product key that has no `language` translation yet.
    English rows are preferred as the source.
    """
    conn = _connect()
    try:
        rows = conn.execute(
            f"""
            SELECT {PRODUCT_COLUMNS} FROM products p
            WHERE p.language != ?
              AND NOT EXISTS (
                SELECT 1 FROM products t WHERE t.product_key = p.product_key AND t.language = ?
              )
            ORDER BY p.product_key, CASE WHEN p.language = ? THEN 0 ELSE 1 END, p.id
            """,
            (language, language, DEFAULT_LANGUAGE),
        ).fetchall()
    finally:
        conn.close()

    seen = set()
    out = []
    for r in rows:
        if r["product_key"] in seen:
            continue
        seen.add(r["product_key"])
        out.append(_to_product(r))
    return out


# ---------------- writes ----------------

def _unique_key(conn: sqlite3.Connection, name: str, language: str) -> str:
    base = slugify(name) or f"product-{uuid.uuid4().hex[:8]}"
    key = base
    n = 2
    while conn.execute(
        "SELECT 1 FROM products WHERE product_key=? AND language=?", (key, language)
    ).fetchone():
        key = f"{base}-{n}"
        n += 1
    return key


def create_product(data: Dict[str, Any]) -> Tuple[bool, Any]:
    """
    Insert one product row. Returns (True, product) or (False, error).
    A missing product_key is derived from the name.
    """
    language = data.get("language") or DEFAULT_LANGUAGE
    conn = _connect()
    try:
        key = data.get("product_key") or _unique_key(conn, data["name"], language)
        exists = conn.execute(
            "SELECT 1 FROM products WHERE product_key=? AND language=?", (key, language)
        ).fetchone()
        if exists:
            return False, f"Product {key} already has a {language} translation"

        now = _now()
        cur = conn.execute(
            """
            INSERT INTO products(product_key, language, name, description, category, price, image, created_at, updated_at)
            VALUES(?,?,?,?,?,?,?,?,?)
            """,
            (
                key,
                language,
                data["name"],
                data.get("description"),
                data["category"],
                float(data["price"]),
                data.get("image"),
                now,
                now,
            ),
        )
        conn.commit()
        product_id = int(cur.lastrowid)
    finally:
        conn.close()

    logger.info("created product id=%s key=%s language=%s", product_id, key, language)
    return True, get_product(product_id)


def _update_where(where: str, params: Tuple[Any, ...], fields: Dict[str, Any]) -> int:
    changes = {k: v for k, v in fields.items() if k in UPDATABLE_FIELDS and v is not None}
    conn = _connect()
    try:
        if not changes:
            row = conn.execute(f"SELECT 1 FROM products WHERE {where}", params).fetchone()
            return 1 if row else 0
        assignments = ", ".join(f"{k}=?" for k in changes)
        cur = conn.execute(
            f"UPDATE products SET {assignments}, updated_at=? WHERE {where}",
            (*changes.values(), _now(), *params),
        )
        conn.commit()
        return cur.rowcount
    finally:
        conn.close()


def update_product(product_id: int, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not _update_where("id=?", (product_id,), fields):
        return None
    return get_product(product_id)


def update_product_by_key(product_key: str, language: str, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    if not _update_where("product_key=? AND language=?", (product_key, language), fields):
        return None
    return get_product_by_key(product_key, language)


def delete_product(product_id: int) -> bool:
    conn = _connect()
    try:
        cur = conn.execute("DELETE FROM products WHERE id=?", (product_id,))
        conn.commit()
        return cur.rowcount > 0
    finally:
        conn.close()
