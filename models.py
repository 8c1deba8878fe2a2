from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from vocabulary import DEFAULT_CURRENCY


class ImportRequest(BaseModel):
    # Optional so a missing field maps to our own "Missing URL" error, not a 422
    url: str | None = None


class ProductMetadata(BaseModel):
    """Everything we could learn about the ring from the page.

    Absent fields mean "not found". Ring attributes (metal_type, gemstone,
    setting, carat_weight) are best-effort guesses from the description text.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str | None = None
    description: str | None = None
    price: str | None = None  # decimal string without thousands separators, e.g. "3499.00"
    currency: str = DEFAULT_CURRENCY
    brand: str | None = None
    sku: str | None = None
    metal_type: str | None = None
    gemstone: str | None = None
    setting: str | None = None
    carat_weight: str | None = None
    availability: str | None = None


class ImportSuccess(BaseModel):
    success: bool = True
    vendor: str
    url: str
    images: list[str] = Field(min_length=1, max_length=10)
    metadata: ProductMetadata


class ErrorResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    error: str
    message: str
    supported_vendors: list[str] | None = None


class VendorInfo(BaseModel):
    domain: str
    name: str


class HealthStatus(BaseModel):
    status: str
    message: str
