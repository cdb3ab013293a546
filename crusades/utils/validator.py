"""
Field-rule validation producing ``{field: message}`` error maps.

Usage::

    validator = (
        validate(payload)
        .required("email", "Email is required")
        .email("email")
        .required("password")
        .min_length("password", 6)
    )
    if validator.fails():
        return validation_error_response(validator.errors())
"""

import re
from typing import Any, Callable, Dict, Iterable, Optional

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def _is_blank(value: Any) -> bool:
    return value is None or value == ""


def _to_number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Validator:
    """Chained rule checker over a plain mapping"""

    def __init__(self, data: Optional[Dict[str, Any]]):
        self.data = data or {}
        self._errors: Dict[str, str] = {}
        self._validated: Dict[str, Any] = {}

    def required(self, field: str, message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        if _is_blank(value) or (isinstance(value, str) and not value.strip()):
            self._errors[field] = message or f"{field} is required"
        else:
            self._validated[field] = self._sanitize(value)
        return self

    def optional(self, field: str) -> "Validator":
        value = self.data.get(field)
        if not _is_blank(value):
            self._validated[field] = self._sanitize(value)
        return self

    def email(self, field: str, message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        if isinstance(value, str) and value and not EMAIL_PATTERN.match(value.strip()):
            self._errors[field] = message or "Invalid email format"
        return self

    def min_length(self, field: str, length: int, message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        if isinstance(value, str) and value and len(value) < length:
            self._errors[field] = message or f"{field} must be at least {length} characters"
        return self

    def max_length(self, field: str, length: int, message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        if isinstance(value, str) and len(value) > length:
            self._errors[field] = message or f"{field} must be at most {length} characters"
        return self

    def phone(self, field: str, message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        if isinstance(value, str) and value:
            digits = re.sub(r"\D", "", value)
            if not 10 <= len(digits) <= 15:
                self._errors[field] = message or "Invalid phone number"
        return self

    def confirmed(self, field: str, confirm_field: str, message: Optional[str] = None) -> "Validator":
        if self.data.get(field) != self.data.get(confirm_field):
            self._errors[field] = message or f"{field} confirmation does not match"
        return self

    def numeric(self, field: str, message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        if not _is_blank(value) and _to_number(value) is None:
            self._errors[field] = message or f"{field} must be a number"
        return self

    def min(self, field: str, min_value: float, message: Optional[str] = None) -> "Validator":
        number = _to_number(self.data.get(field))
        if number is not None and number < min_value:
            self._errors[field] = message or f"{field} must be at least {min_value}"
        return self

    def max(self, field: str, max_value: float, message: Optional[str] = None) -> "Validator":
        number = _to_number(self.data.get(field))
        if number is not None and number > max_value:
            self._errors[field] = message or f"{field} must be at most {max_value}"
        return self

    def one_of(self, field: str, values: Iterable[str], message: Optional[str] = None) -> "Validator":
        value = self.data.get(field)
        allowed = list(values)
        if not _is_blank(value) and str(value) not in allowed:
            self._errors[field] = message or f"{field} must be one of: {', '.join(allowed)}"
        return self

    def custom(self, field: str, check: Callable[[Any], bool], message: str) -> "Validator":
        if not check(self.data.get(field)):
            self._errors[field] = message
        return self

    def passes(self) -> bool:
        return not self._errors

    def fails(self) -> bool:
        return not self.passes()

    def errors(self) -> Dict[str, str]:
        return dict(self._errors)

    def validated(self) -> Dict[str, Any]:
        return dict(self._validated)

    @staticmethod
    def _sanitize(value: Any) -> Any:
        if isinstance(value, str):
            return value.strip()
        return value


def validate(data: Optional[Dict[str, Any]]) -> Validator:
    return Validator(data)
