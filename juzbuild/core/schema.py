from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, constr, field_validator
from pydantic.alias_generators import to_camel

# Names become a subdomain label, a directory, a repository and a project.
DNS_LABEL_PATTERN = r"^[a-zA-Z0-9](?:[a-zA-Z0-9-]{0,61}[a-zA-Z0-9])?$"
SITE_NAME_PATTERN = r"^[A-Za-z0-9](?:[A-Za-z0-9_-]{0,98}[A-Za-z0-9])?$"


class ProvisioningRequest(BaseModel):
    """Everything the onboarding wizard collected for one website."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    user_id: str = ""
    user_email: str = ""
    full_name: str = ""
    company_name: constr(strip_whitespace=True, min_length=1)
    domain_name: constr(strip_whitespace=True, to_lower=True, pattern=DNS_LABEL_PATTERN)
    website_name: constr(strip_whitespace=True, pattern=SITE_NAME_PATTERN) | None = None
    brand_colors: list[str] = Field(default_factory=list)
    tagline: str = ""
    about_section: str = ""
    selected_theme: str = ""
    layout_style: str = ""
    property_types: list[str] = Field(default_factory=list)
    included_pages: list[str] = Field(default_factory=list)
    preferred_contact_method: list[str] = Field(default_factory=list)

    @field_validator("website_name", mode="before")
    @classmethod
    def _blank_website_name(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def site_name(self) -> str:
        return self.website_name or self.domain_name


class DomainCheckRequest(BaseModel):
    domain: constr(
        strip_whitespace=True,
        pattern=r"^[a-zA-Z0-9][a-zA-Z0-9-]{0,61}[a-zA-Z0-9]\.[a-zA-Z]{2,}$",
    )
