"""Declarative field rules evaluated before any mutation runs."""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Mapping, Sequence

from catalog_api import messages
from catalog_api.exceptions import ValidationError

_NUMERIC_RE = re.compile(r"^[+-]?(\d*\.)?\d+$")


def is_not_empty(value: Any) -> bool:
    return value is not None and str(value).strip() != ""


def is_numeric(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    return isinstance(value, str) and bool(_NUMERIC_RE.match(value.strip()))


@dataclass(frozen=True)
class FieldRule:
    field: str
    check: Callable[[Any], bool]
    message: str
    optional: bool = False

    def applies_to(self, record: Mapping[str, Any]) -> bool:
        return not self.optional or record.get(self.field) is not None


def check_rules(rules: Sequence[FieldRule], record: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Evaluate every rule in order and collect the violations."""
    errors = []
    for rule in rules:
        if not rule.applies_to(record):
            continue
        if not rule.check(record.get(rule.field)):
            errors.append({"field": rule.field, "msg": rule.message})
    return errors


def validate_or_raise(rules: Sequence[FieldRule], record: Mapping[str, Any]) -> None:
    errors = check_rules(rules, record)
    if errors:
        raise ValidationError(errors)


CATEGORY_RULES = (
    FieldRule("name", is_not_empty, messages.CATEGORY_NAME_REQUIRED),
)

PRODUCT_CREATE_RULES = (
    FieldRule("name", is_not_empty, messages.PRODUCT_NAME_REQUIRED),
    FieldRule("price", is_numeric, messages.PRODUCT_PRICE_NUMERIC),
)

PRODUCT_UPDATE_RULES = (
    FieldRule("name", is_not_empty, messages.PRODUCT_NAME_EMPTY, optional=True),
    FieldRule("price", is_numeric, messages.PRODUCT_PRICE_NUMERIC, optional=True),
)
