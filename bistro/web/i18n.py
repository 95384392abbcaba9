from bistro.constants import DEFAULT_LANGUAGE

RTL_LANGUAGES = {"he"}

STRINGS = {
    "en": {
        "title": "Bistro POS",
        "menu": "Menu",
        "all": "All",
        "order": "Current order",
        "empty_order": "No items yet",
        "items": "items",
        "qty": "Qty",
        "add": "Add",
        "update": "Update",
        "apply": "Apply",
        "clear": "Clear order",
        "subtotal": "Subtotal",
        "tax": "Tax",
        "discount": "Discount",
        "coupon": "Coupon",
        "coupon_code": "Code",
        "tip": "Tip",
        "no_tip": "No tip",
        "percentage": "%",
        "amount": "Amount",
        "total": "Total",
        "note": "Note",
        "receipt": "Print receipt",
        "no_products": "No products yet",
        "search": "Search",
        "search_placeholder": "Describe a dish...",
        "clear_search": "Show all",
        "new_product": "New product",
        "edit_product": "Edit product",
        "edit": "Edit",
        "save": "Save",
        "cancel": "Cancel",
        "name": "Name",
        "description": "Description",
        "category": "Category",
        "price": "Price",
        "language": "Language",
        "suggested_price": "Suggested price",
        "suggest_price": "Suggest price",
        "price_hint": "Leave empty to use the suggested price",
        "Starters": "Starters",
        "Breakfast": "Breakfast",
        "Lunch": "Lunch",
        "Supper": "Supper",
        "Desserts": "Desserts",
        "Beverages": "Beverages",
    },
    "he": {
        "title": "קופת ביסטרו",
        "menu": "תפריט",
        "all": "הכל",
        "order": "הזמנה נוכחית",
        "empty_order": "אין פריטים עדיין",
        "items": "פריטים",
        "qty": "כמות",
        "add": "הוסף",
        "update": "עדכן",
        "apply": "החל",
        "clear": "נקה הזמנה",
        "subtotal": "סכום ביניים",
        "tax": "מע״מ",
        "discount": "הנחה",
        "coupon": "קופון",
        "coupon_code": "קוד",
        "tip": "טיפ",
        "no_tip": "ללא טיפ",
        "percentage": "%",
        "amount": "סכום",
        "total": "סה״כ",
        "note": "הערה",
        "receipt": "הדפס קבלה",
        "no_products": "אין מוצרים עדיין",
        "search": "חיפוש",
        "search_placeholder": "תארו מנה...",
        "clear_search": "הצג הכל",
        "new_product": "מוצר חדש",
        "edit_product": "עריכת מוצר",
        "edit": "עריכה",
        "save": "שמור",
        "cancel": "ביטול",
        "name": "שם",
        "description": "תיאור",
        "category": "קטגוריה",
        "price": "מחיר",
        "language": "שפה",
        "suggested_price": "מחיר מוצע",
        "suggest_price": "הצע מחיר",
        "price_hint": "השאירו ריק כדי להשתמש במחיר המוצע",
        "Starters": "מנות ראשונות",
        "Breakfast": "ארוחת בוקר",
        "Lunch": "ארוחת צהריים",
        "Supper": "ארוחת ערב",
        "Desserts": "קינוחים",
        "Beverages": "משקאות",
    },
}


def t(lang: str, key: str) -> str:
    table = STRINGS.get(lang, STRINGS[DEFAULT_LANGUAGE])
    return table.get(key) or STRINGS[DEFAULT_LANGUAGE].get(key, key)


def direction(lang: str) -> str:
    return "rtl" if lang in RTL_LANGUAGES else "ltr"
