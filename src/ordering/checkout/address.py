"""Shipping address captured by the checkout form."""

import re
from dataclasses import asdict, dataclass, fields

from protean.exceptions import ValidationError

DEFAULT_COUNTRY = "US"

_US_ZIP = re.compile(r"^\d{5}(-\d{4})?$")
_FORBIDDEN_EMAIL_CHARS = (";", ",", "(", ")", '"', ":", "<", ">", "[", "]", "\\")

REQUIRED_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "phone",
    "address",
    "city",
    "state",
    "zip_code",
)

# Upper bounds shared with the recorded order's ShippingAddress
FIELD_MAX_LENGTHS = {
    "first_name": 100,
    "last_name": 100,
    "email": 254,
    "phone": 50,
    "address": 255,
    "city": 100,
    "state": 100,
    "zip_code": 20,
    "country": 100,
}


def is_valid_email(email: str) -> bool:
    """Structural email check: one @, sane local and domain parts."""
    if any(ch.isspace() for ch in email) or email.count("@") != 1:
        return False

    local_part, domain_part = email.split("@", 1)
    if not local_part or local_part.startswith(".") or local_part.endswith("."):
        return False
    if not domain_part or domain_part.startswith(".") or domain_part.endswith("."):
        return False
    if "." not in domain_part or ".." in local_part or ".." in domain_part:
        return False
    if any(label.startswith("-") or label.endswith("-") for label in domain_part.split(".")):
        return False
    return not any(ch in email for ch in _FORBIDDEN_EMAIL_CHARS)


@dataclass(frozen=True)
class ShippingDetails:
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    address: str = ""
    city: str = ""
    state: str = ""
    zip_code: str = ""
    country: str = DEFAULT_COUNTRY

    @classmethod
    def from_form(cls, form: dict) -> "ShippingDetails":
        """Build from a form mapping, trimming whitespace and ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        values = {key: str(value).strip() for key, value in form.items() if key in known and value is not None}
        if not values.get("country"):
            values["country"] = DEFAULT_COUNTRY
        return cls(**values)

    def to_dict(self) -> dict:
        return asdict(self)

    def errors(self) -> dict[str, list[str]]:
        """Return field -> messages for every problem with this address."""
        errors: dict[str, list[str]] = {}
        for name in REQUIRED_FIELDS:
            if not str(getattr(self, name) or "").strip():
                errors.setdefault(name, []).append("is required")

        for name, limit in FIELD_MAX_LENGTHS.items():
            if len(str(getattr(self, name) or "")) > limit:
                errors.setdefault(name, []).append(f"must be at most {limit} characters")

        if self.email.strip() and not is_valid_email(self.email.strip()):
            errors.setdefault("email", []).append("is not a valid email address")

        if self.zip_code.strip() and self.country.upper() == "US" and not _US_ZIP.match(self.zip_code.strip()):
            errors.setdefault("zip_code", []).append("must look like 10001 or 10001-1234")

        return errors

    def validate(self) -> "ShippingDetails":
        errors = self.errors()
        if errors:
            raise ValidationError(errors)
        return self
