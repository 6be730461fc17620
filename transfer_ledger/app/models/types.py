from __future__ import annotations

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import Numeric, String
from sqlalchemy.engine import Dialect
from sqlalchemy.types import TypeDecorator, TypeEngine

from ..core.amount import MAX_INTEGER_DIGITS, MAX_SCALE, format_amount


class ExactDecimal(TypeDecorator):
    """Decimal column that never round-trips through binary floats.

    PostgreSQL stores ``NUMERIC(38, 18)``. SQLite has no exact numeric
    storage class, so the canonical decimal text is stored instead.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect: Dialect) -> TypeEngine[Any]:
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(MAX_INTEGER_DIGITS + MAX_SCALE + 2))
        return dialect.type_descriptor(
            Numeric(MAX_INTEGER_DIGITS + MAX_SCALE, MAX_SCALE, asdecimal=True)
        )

    def process_bind_param(self, value: Any, dialect: Dialect) -> Any:
        if value is None:
            return None
        if not isinstance(value, Decimal):
            value = Decimal(str(value))
        if dialect.name == "sqlite":
            return format_amount(value)
        return value

    def process_result_value(self, value: Any, dialect: Dialect) -> Optional[Decimal]:
        if value is None:
            return None
        if isinstance(value, Decimal):
            return value
        return Decimal(str(value))
