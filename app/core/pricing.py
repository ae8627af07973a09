"""Service price list used to backfill appointment amounts and categories."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class ServicePrice(BaseModel):
    """Price and category of one bookable service."""

    model_config = ConfigDict(frozen=True)

    amount: int = Field(..., gt=0, description="Price in Rand")
    category: str = Field(..., min_length=1)


# Prices as listed on the patient portal
DEFAULT_SERVICE_PRICING: dict[str, ServicePrice] = {
    "PRP Therapy": ServicePrice(amount=3200, category="Cosmetic"),
    "Standard Consultation": ServicePrice(amount=1300, category="Medical"),
    "Medical Dermatology": ServicePrice(amount=1500, category="Medical"),
    "Cosmetic Dermatology": ServicePrice(amount=1600, category="Cosmetic"),
    "Laser Treatment": ServicePrice(amount=3500, category="Cosmetic"),
    "Chemical Peel": ServicePrice(amount=1800, category="Cosmetic"),
    "Microneedling": ServicePrice(amount=1900, category="Cosmetic"),
    "Botox Injections": ServicePrice(amount=4500, category="Cosmetic"),
    "Skin Tightening": ServicePrice(amount=2200, category="Cosmetic"),
    "Mole Removal": ServicePrice(amount=1800, category="Medical"),
    "Skin Cancer Screening": ServicePrice(amount=1750, category="Medical"),
    "Acne Treatment": ServicePrice(amount=1650, category="Medical"),
    "Paediatric Dermatology": ServicePrice(amount=1450, category="Medical"),
    "General Consultation": ServicePrice(amount=1300, category="Medical"),
}


def build_pricing_table(
    overrides: dict[str, dict[str, Any]] | None = None,
) -> dict[str, ServicePrice]:
    """
    Merge operator overrides on top of the default price list.

    Args:
        overrides: Mapping of service name to {"amount", "category"}

    Returns:
        Service name to price mapping

    Raises:
        pydantic.ValidationError: If an override entry is malformed
    """
    table = dict(DEFAULT_SERVICE_PRICING)
    for service_name, entry in (overrides or {}).items():
        table[service_name] = ServicePrice.model_validate(entry)
    return table
