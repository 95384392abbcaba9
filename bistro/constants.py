CATEGORIES = (
    "Starters",
    "Breakfast",
    "Lunch",
    "Supper",
    "Desserts",
    "Beverages",
)

LANGUAGES = {
    "en": "English",
    "he": "Hebrew",
}
DEFAULT_LANGUAGE = "en"

# Israeli VAT from 2025
TAX_RATE = 0.18

TIP_PERCENTAGE = "percentage"
TIP_AMOUNT = "amount"
TIP_KINDS = (TIP_PERCENTAGE, TIP_AMOUNT)
TIP_PRESETS = (0, 10, 12, 15, 18, 20)

IMAGE_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}
