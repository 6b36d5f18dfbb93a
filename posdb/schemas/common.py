from collections.abc import Callable
from decimal import ROUND_HALF_UP, Decimal
from typing import Annotated, Any, ClassVar

from pydantic import AfterValidator, BaseModel, ConfigDict, Field

CENT = Decimal("0.01")


def quantize_money(value: Decimal) -> Decimal:
    """Round *value* to two fractional digits (half-up, as on a receipt)."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def upper_key(value: str) -> str:
    return value.upper()


def lower_key(value: str) -> str:
    return value.lower()


Money = Annotated[
    Decimal,
    Field(ge=0, max_digits=10, decimal_places=2, allow_inf_nan=False),
    AfterValidator(quantize_money),
]


class CreateSchema(BaseModel):
    """Base for create payloads.

    Unknown keys are rejected so callers cannot smuggle in server-assigned
    values such as ``id`` or ``created_at``.
    """

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    # Case folding applied to a unique key after whitespace stripping.
    key_normalizers: ClassVar[dict[str, Callable[[str], str]]] = {}

    @classmethod
    def normalize_key(cls, field: str, value: Any) -> Any:
        """Return *value* in the form a create stores it under *field*."""
        if not isinstance(value, str):
            return value
        value = value.strip()
        normalizer = cls.key_normalizers.get(field)
        return normalizer(value) if normalizer is not None else value
