"""
Snippetbox — Form Validator
============================

What:  Collects field-level and form-level error messages for a form.
How:   Form models mix in `Validator`, run `check_field(...)` once per rule,
       then ask `valid`. Only the first failing rule per field is recorded,
       so the user sees one message per input.

Check functions are plain predicates so they can be combined freely:

    form.check_field(not_blank(form.title), "title", "This field cannot be blank")
    form.check_field(max_chars(form.title, 100), "title", "...")
"""

import re
from typing import Any, Dict, Iterable, List, Pattern

# Email pattern recommended by the WHATWG for <input type="email">
EMAIL_RX: Pattern[str] = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9]"
    r"(?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


class Validator:
    """
    Error bookkeeping for a single form submission.

    Attributes:
        field_errors:     field name → message shown next to that input
        non_field_errors: messages about the form as a whole (e.g. bad login)
    """

    # `_field_errors` and `_non_field_errors` are provided by the concrete
    # class (see forms.models.FormModel)

    @property
    def field_errors(self) -> Dict[str, str]:
        return self._field_errors

    @property
    def non_field_errors(self) -> List[str]:
        return self._non_field_errors

    @property
    def valid(self) -> bool:
        return not self.field_errors and not self.non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        """Record `message` for `key` unless that field already has an error."""
        self.field_errors.setdefault(key, message)

    def add_non_field_error(self, message: str) -> None:
        self.non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_field_error(key, message)


def not_blank(value: str) -> bool:
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    """True if `value` has at most `n` characters (not bytes)."""
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    return len(value) >= n


def permitted_value(value: Any, permitted: Iterable[Any]) -> bool:
    return value in permitted


def matches(value: str, rx: Pattern[str]) -> bool:
    return rx.match(value) is not None


def match_string(value: str, other: str) -> bool:
    return value == other
