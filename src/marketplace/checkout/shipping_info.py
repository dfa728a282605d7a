"""Shipping details collected on the first checkout step."""

from dataclasses import dataclass, fields

from protean.exceptions import ValidationError

REQUIRED_FIELDS = {
    "name": "Full name",
    "phone": "Phone number",
    "email": "Email",
    "address_line1": "Address",
    "city": "City",
    "region": "Region",
}


@dataclass
class ShippingInfo:
    name: str = ""
    email: str = ""
    phone: str = ""
    address_line1: str = ""
    address_line2: str | None = None
    city: str = ""
    region: str = ""
    postal_code: str | None = None
    notes: str | None = None
    save_as_default: bool = False

    def update(self, **changes) -> None:
        known = {f.name for f in fields(self)}
        unknown = set(changes) - known
        if unknown:
            raise ValidationError({name: ["Unknown shipping field"] for name in sorted(unknown)})
        for name, value in changes.items():
            setattr(self, name, value.strip() if isinstance(value, str) else value)

    def missing_fields(self) -> list[str]:
        return [name for name in REQUIRED_FIELDS if not (getattr(self, name) or "").strip()]

    def validate(self) -> None:
        """Raise ``ValidationError`` naming every missing or malformed field."""
        errors = {name: [f"{REQUIRED_FIELDS[name]} is required"] for name in self.missing_fields()}
        if self.email and "email" not in errors and self.email.count("@") != 1:
            errors["email"] = ["Email address is not valid"]
        if errors:
            raise ValidationError(errors)

    def to_address(self) -> dict:
        """The shipping-address snapshot stored on the order."""
        return {
            "name": self.name,
            "email": self.email,
            "phone": self.phone,
            "address_line1": self.address_line1,
            "address_line2": self.address_line2 or None,
            "city": self.city,
            "region": self.region,
            "postal_code": self.postal_code or None,
        }
