"""
Snippetbox — Form Models
=========================

What:  One pydantic model per HTML form, decoded from the posted form data.
How:   `from_form()` builds the model from request.form(); pydantic handles
       type coercion (e.g. "7" → 7 for `expires`). A coercion failure means
       the request did not come from our own form and raises FormDecodeError.
       `validate_fields()` then applies the business rules and records messages.

Field names match the `name` attributes in the templates, and the same
names are used as keys in `field_errors`.
"""

from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel, PrivateAttr, ValidationError

from snippetbox.exceptions import FormDecodeError
from snippetbox.forms.validator import (
    EMAIL_RX,
    Validator,
    match_string,
    matches,
    max_chars,
    min_chars,
    not_blank,
    permitted_value,
)

F = TypeVar("F", bound="FormModel")

# Snippet lifetimes offered on the create form, in days
PERMITTED_EXPIRES = (1, 7, 365)
TITLE_MAX_CHARS = 100
PASSWORD_MIN_CHARS = 8

BLANK_MESSAGE = "This field cannot be blank"


class FormModel(Validator, BaseModel):
    """Base for all forms: pydantic decoding plus Validator error bookkeeping."""

    _field_errors: Dict[str, str] = PrivateAttr(default_factory=dict)
    _non_field_errors: List[str] = PrivateAttr(default_factory=list)

    model_config = {"extra": "ignore"}

    @classmethod
    def from_form(cls: Type[F], data: Mapping[str, Any]) -> F:
        """
        Decode posted form data into this form model.

        Only the fields the model declares are read; the CSRF token and any
        other extra keys are ignored.

        Raises:
            FormDecodeError: A value could not be coerced to its field type
        """
        values = {name: data[name] for name in cls.model_fields if name in data}
        try:
            return cls.model_validate(values)
        except ValidationError as e:
            raise FormDecodeError(
                context={"form": cls.__name__, "errors": e.error_count()},
            )

    def validate_fields(self) -> bool:
        """Apply this form's rules. Returns `valid`."""
        return self.valid


class SnippetCreateForm(FormModel):
    title: str = ""
    content: str = ""
    expires: int = 7

    def validate_fields(self) -> bool:
        self.check_field(not_blank(self.title), "title", BLANK_MESSAGE)
        self.check_field(
            max_chars(self.title, TITLE_MAX_CHARS),
            "title",
            f"This field cannot be more than {TITLE_MAX_CHARS} characters long",
        )
        self.check_field(not_blank(self.content), "content", BLANK_MESSAGE)
        self.check_field(
            permitted_value(self.expires, PERMITTED_EXPIRES),
            "expires",
            "This field must equal 1, 7 or 365",
        )
        return self.valid


class UserSignupForm(FormModel):
    name: str = ""
    email: str = ""
    password: str = ""

    def validate_fields(self) -> bool:
        self.check_field(not_blank(self.name), "name", BLANK_MESSAGE)
        self.check_field(not_blank(self.email), "email", BLANK_MESSAGE)
        self.check_field(matches(self.email, EMAIL_RX), "email", "This field must be a valid email address")
        self.check_field(not_blank(self.password), "password", BLANK_MESSAGE)
        self.check_field(
            min_chars(self.password, PASSWORD_MIN_CHARS),
            "password",
            f"This field must be at least {PASSWORD_MIN_CHARS} characters long",
        )
        return self.valid


class UserLoginForm(FormModel):
    email: str = ""
    password: str = ""

    def validate_fields(self) -> bool:
        self.check_field(not_blank(self.email), "email", BLANK_MESSAGE)
        self.check_field(matches(self.email, EMAIL_RX), "email", "This field must be a valid email address")
        self.check_field(not_blank(self.password), "password", BLANK_MESSAGE)
        return self.valid


class PasswordUpdateForm(FormModel):
    current_password: str = ""
    new_password: str = ""
    confirm_password: str = ""

    def validate_fields(self) -> bool:
        self.check_field(not_blank(self.current_password), "current_password", BLANK_MESSAGE)
        self.check_field(not_blank(self.new_password), "new_password", BLANK_MESSAGE)
        self.check_field(
            min_chars(self.new_password, PASSWORD_MIN_CHARS),
            "new_password",
            f"This field must be at least {PASSWORD_MIN_CHARS} characters long",
        )
        self.check_field(not_blank(self.confirm_password), "confirm_password", BLANK_MESSAGE)
        self.check_field(
            match_string(self.new_password, self.confirm_password),
            "confirm_password",
            "Passwords do not match",
        )
        return self.valid
