"""
Snippetbox - Form Models, Decoding & Validation
================================================

What:  Pydantic models for every HTML form, the decoder that fills them from
       a submitted body, and the validation helpers behind their rules.
Why:   Two different failure classes must stay apart:
       - bad user input (wrong types) → FormDecodeError → 400
       - broken business rules (blank title) → field errors → 422 re-render
       - decoding into something that is not a form model is a programmer
         defect → InvalidDecodeTargetError, never treated as user input
How:   `decode_form()` copies the declared fields out of the form data and
       lets pydantic coerce them. `validate_form()` on each model then runs
       the business rules and records messages for the template.

Example:
    form = decode_form(await request.form(), SnippetCreateForm)
    if not form.validate_form():
        return render("create.html", 422, data(form=form))
"""

import re
from typing import Any, Dict, List, Mapping, Type, TypeVar

from pydantic import BaseModel, ConfigDict, PrivateAttr
from pydantic import ValidationError as PydanticValidationError

from snippetbox.exceptions import FormDecodeError, InvalidDecodeTargetError

F = TypeVar("F", bound=BaseModel)

# What: Email pattern recommended by the WHATWG for <input type="email">
EMAIL_RX = re.compile(
    r"^[a-zA-Z0-9.!#$%&'*+/=?^_`{|}~-]+@[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?"
    r"(?:\.[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?)*$"
)


# ── Rule helpers ──────────────────────────────────────────────────────────

def not_blank(value: str) -> bool:
    return value.strip() != ""


def max_chars(value: str, n: int) -> bool:
    return len(value) <= n


def min_chars(value: str, n: int) -> bool:
    return len(value) >= n


def permitted_value(value: Any, *permitted: Any) -> bool:
    return value in permitted


def matches(value: str, rx: "re.Pattern[str]") -> bool:
    return rx.match(value) is not None


# ── Decoding ──────────────────────────────────────────────────────────────

def decode_form(form_data: Mapping[str, Any], target: Type[F]) -> F:
    """
    Build a `target` instance from submitted form data.

    Only fields declared on the model are read; unknown form keys (such as
    the CSRF token) are ignored.

    Raises:
        InvalidDecodeTargetError: `target` is not a pydantic model class.
        FormDecodeError: a value could not be converted to its field type.
    """
    if not (isinstance(target, type) and issubclass(target, BaseModel)):
        raise InvalidDecodeTargetError(target)

    raw: Dict[str, Any] = {}
    for name, field in target.model_fields.items():
        key = field.alias or name
        if key in form_data:
            raw[key] = form_data[key]

    try:
        return target.model_validate(raw)
    except PydanticValidationError as e:
        raise FormDecodeError(
            errors=[
                {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
                for err in e.errors()
            ],
            context={"form": target.__name__},
        ) from e


# ── Validation state ──────────────────────────────────────────────────────

class FormValidator(BaseModel):
    """
    Base for form models: carries validation messages for the template.

    Messages are private attributes, so a submitted form cannot set them.
    Only the first message per field is kept.
    """

    model_config = ConfigDict(extra="ignore")

    _field_errors: Dict[str, str] = PrivateAttr(default_factory=dict)
    _non_field_errors: List[str] = PrivateAttr(default_factory=list)

    @property
    def field_errors(self) -> Dict[str, str]:
        return self._field_errors

    @property
    def non_field_errors(self) -> List[str]:
        return self._non_field_errors

    @property
    def valid(self) -> bool:
        return not self._field_errors and not self._non_field_errors

    def add_field_error(self, key: str, message: str) -> None:
        self._field_errors.setdefault(key, message)

    def add_non_field_error(self, message: str) -> None:
        self._non_field_errors.append(message)

    def check_field(self, ok: bool, key: str, message: str) -> None:
        if not ok:
            self.add_field_error(key, message)

    def validate_form(self) -> bool:
        """Run the form's business rules. Returns True when there are no errors."""
        return self.valid


# ── Forms ─────────────────────────────────────────────────────────────────

BLANK = "This field cannot be blank"


class SnippetCreateForm(FormValidator):
    title: str = ""
    content: str = ""
    expires: int = 365

    def validate_form(self) -> bool:
        self.check_field(not_blank(self.title), "title", BLANK)
        self.check_field(
            max_chars(self.title, 100), "title", "This field cannot be more than 100 characters long"
        )
        self.check_field(not_blank(self.content), "content", BLANK)
        self.check_field(
            permitted_value(self.expires, 1, 7, 365), "expires", "This field must equal 1, 7 or 365"
        )
        return self.valid


class UserSignupForm(FormValidator):
    name: str = ""
    email: str = ""
    password: str = ""

    def validate_form(self) -> bool:
        self.check_field(not_blank(self.name), "name", BLANK)
        self.check_field(not_blank(self.email), "email", BLANK)
        self.check_field(matches(self.email, EMAIL_RX), "email", "This field must be a valid email address")
        self.check_field(not_blank(self.password), "password", BLANK)
        self.check_field(
            min_chars(self.password, 8), "password", "This field must be at least 8 characters long"
        )
        return self.valid


class UserLoginForm(FormValidator):
    email: str = ""
    password: str = ""

    def validate_form(self) -> bool:
        self.check_field(not_blank(self.email), "email", BLANK)
        self.check_field(matches(self.email, EMAIL_RX), "email", "This field must be a valid email address")
        self.check_field(not_blank(self.password), "password", BLANK)
        return self.valid


class PasswordUpdateForm(FormValidator):
    current_password: str = ""
    new_password: str = ""
    new_password_confirmation: str = ""

    def validate_form(self) -> bool:
        self.check_field(not_blank(self.current_password), "current_password", BLANK)
        self.check_field(not_blank(self.new_password), "new_password", BLANK)
        self.check_field(
            min_chars(self.new_password, 8), "new_password", "This field must be at least 8 characters long"
        )
        self.check_field(not_blank(self.new_password_confirmation), "new_password_confirmation", BLANK)
        self.check_field(
            self.new_password == self.new_password_confirmation,
            "new_password_confirmation",
            "Passwords do not match",
        )
        return self.valid
