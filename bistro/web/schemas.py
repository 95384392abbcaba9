from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from bistro.constants import DEFAULT_LANGUAGE, TIP_PERCENTAGE


class ProductIn(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, allow_inf_nan=False)
    description: Optional[str] = None
    image: Optional[str] = None
    product_key: Optional[str] = None
    language: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(default=None, allow_inf_nan=False)
    description: Optional[str] = None
    image: Optional[str] = None


class OrderItemIn(BaseModel):
    product_id: int


class QuantityIn(BaseModel):
    quantity: int


class TipIn(BaseModel):
    kind: str = TIP_PERCENTAGE
    value: float = Field(ge=0, default=0, allow_inf_nan=False)


class DiscountIn(BaseModel):
    amount: float = Field(ge=0, allow_inf_nan=False)


class CouponIn(BaseModel):
    amount: float = Field(ge=0, allow_inf_nan=False)
    code: Optional[str] = None


class NoteIn(BaseModel):
    note: str = ""


class PriceEstimateIn(BaseModel):
    category: str
    name: str = ""
    description: str = ""


# ---------------- AI ----------------

class PromptIn(BaseModel):
    prompt: str = ""


class ProductDraft(BaseModel):
    name: str = ""
    description: str = ""
    price: float = 0


class ModifyProductIn(BaseModel):
    product: ProductDraft
    instructions: str = ""


class TranslateIn(BaseModel):
    text: str = ""
    targetLanguage: str = "he"


class TargetLanguageIn(BaseModel):
    targetLanguage: str = "he"


class DishImageIn(BaseModel):
    name: str = ""
    description: str = ""
    category: str = ""


class RecognizeIn(BaseModel):
    image: str = ""


class RecipesIn(BaseModel):
    products: list[str] = Field(default_factory=list)


class SearchIn(BaseModel):
    query: str = ""
    language: str = DEFAULT_LANGUAGE


class AIConfigIn(BaseModel):
    model: Optional[str] = None
    prompt: Optional[str] = None
