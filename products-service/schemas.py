import math
import re
from typing import Any, Optional, Union
from pydantic import BaseModel

# Nombres décimaux acceptés dans une chaîne ("12", " 3.5 ", "1e3", ".5")
_NUMERIC_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
# Littéraux entiers préfixés ("0x10", "0b101", "0o17"), sans signe
_PREFIXED_RE = re.compile(r"^0([xX][0-9a-fA-F]+|[bB][01]+|[oO][0-7]+)$")
_MAX_SAFE_INTEGER = 2 ** 53


def is_truthy(value: Any) -> bool:
    """Truthiness as JSON clients expect it: empty lists and objects count as true."""
    if isinstance(value, (list, dict)):
        return True
    if isinstance(value, float) and math.isnan(value):
        return False
    return bool(value)


def to_boolean(value: Any) -> bool:
    return is_truthy(value)


def _normalize(number: float) -> Optional[Union[int, float]]:
    if math.isnan(number) or math.isinf(number):
        return None
    if number.is_integer() and abs(number) < _MAX_SAFE_INTEGER:
        return int(number)
    return number


def _parse_number(text: str) -> Optional[Union[int, float]]:
    text = text.strip()
    if not text:
        return 0
    if _PREFIXED_RE.match(text):
        return _normalize(float(int(text, 0)))
    if not _NUMERIC_RE.match(text):
        return None
    return _normalize(float(text))


def to_number(value: Any) -> Optional[Union[int, float]]:
    """
    Coerce a JSON value to a number.
    null -> 0, booleans -> 0/1, numeric strings are parsed ("" -> 0, "0x10" -> 16).
    A list is read through its single element ([] -> 0, [7] -> 7).
    Anything else is not a number and gives None (rendered as null).
    """
    if value is None:
        return 0
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return _normalize(value)
    if isinstance(value, str):
        return _parse_number(value)
    if isinstance(value, list):
        if not value:
            return 0
        if len(value) > 1:
            return None
        # Un booléen dans une liste devient "true"/"false", pas 1/0
        if isinstance(value[0], bool):
            return None
        return to_number(value[0])
    return None


class ProductCreate(BaseModel):
    # Valeurs JSON telles que reçues: seule la présence est vérifiée, par le handler
    name: Optional[Any] = None
    description: Optional[Any] = None
    price: Optional[Any] = None
    category: Optional[Any] = None
    inStock: Optional[Any] = None

    def is_complete(self) -> bool:
        return all(
            is_truthy(value)
            for value in (self.name, self.description, self.price, self.category)
        )


class ProductUpdate(BaseModel):
    name: Optional[Any] = None
    description: Optional[Any] = None
    price: Optional[Any] = None
    category: Optional[Any] = None
    inStock: Optional[Any] = None


class ProductResponse(BaseModel):
    id: str
    name: Any
    description: Any
    price: Optional[Union[int, float]] = None
    category: Any
    inStock: bool

    class Config:
        from_attributes = True
