from __future__ import annotations

import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest
from pydantic import ValidationError

from juzbuild.core.config import Delays, ProvisioningCapabilities
from juzbuild.core.content import (
    DEFAULT_BRAND_COLORS,
    generate_page_content,
    page_documents,
    resolve_brand_colors,
    sample_properties,
    settings_document,
)
from juzbuild.core.naming import derive_db_name, page_slug, parse_repo_url, project_name, strip_scheme
from juzbuild.core.schema import DomainCheckRequest, ProvisioningRequest


def _request(**overrides) -> ProvisioningRequest:
    payload = {
        "companyName": "Acme Realty",
        "domainName": "acme",
        "userEmail": "owner@acme.test",
        "includedPages": ["home", "contact"],
    }
    payload.update(overrides)
    return ProvisioningRequest.model_validate(payload)


def test_db_name_is_deterministic_and_idempotent():
    assert derive_db_name("My Site!") == "juzbuild_mysite"
    assert derive_db_name("My Site!") == derive_db_name("My Site!")
    assert derive_db_name("mysite") == "juzbuild_mysite"
    assert derive_db_name("Sun-Coast 2024", prefix="tenant_") == "tenant_suncoast2024"


def test_project_and_slug_helpers():
    assert project_name("Acme Realty") == "acme-realty"
    assert page_slug("Our Team") == "our-team"
    assert strip_scheme("https://acme.vercel.app/") == "acme.vercel.app"
    assert parse_repo_url("https://github.com/juzbuild/acme") == ("juzbuild", "acme")
    assert parse_repo_url("https://github.com/juzbuild/acme.git") == ("juzbuild", "acme")
    assert parse_repo_url("https://example.com/nothing") is None


@pytest.mark.parametrize(
    "colors, expected",
    [
        ([], DEFAULT_BRAND_COLORS),
        (["#111"], ("#111", "#EF4444", "#10B981")),
        (["#111", "#222"], ("#111", "#222", "#10B981")),
        (["#111", "#222", "#333"], ("#111", "#222", "#333")),
        (["#111", "", "#333"], ("#111", "#EF4444", "#333")),
    ],
)
def test_brand_colors_always_resolve_three(colors, expected):
    assert resolve_brand_colors(colors) == expected
    settings = settings_document(_request(brandColors=colors))
    assert (settings["primaryColor"], settings["secondaryColor"], settings["accentColor"]) == expected


def test_page_content_is_pure_and_has_fallback():
    request = _request(tagline="Homes for everyone")
    assert generate_page_content("home", request) == generate_page_content("home", request)
    assert "Acme Realty" in generate_page_content("about", request)

    fallback = generate_page_content("Testimonials", request)
    assert "Welcome to our Testimonials page" in fallback
    assert generate_page_content("Testimonials", request) == fallback


def test_sample_properties_use_first_property_type():
    assert sample_properties(_request(propertyTypes=["Condo", "Villa"]))[0]["type"] == "Condo"
    listings = sample_properties(_request())
    assert [listing["type"] for listing in listings] == ["House", "Condo", "House"]
    assert [listing["price"] for listing in listings] == ["$750,000", "$450,000", "$325,000"]
    assert "createdAt" not in listings[0]
    assert "createdAt" in sample_properties(_request(), with_timestamps=True)[0]


def test_page_documents_follow_selection_order():
    documents = page_documents(_request(includedPages=["Contact", "home", "Our Team"]))
    assert [doc["title"] for doc in documents] == ["Contact", "home", "Our Team"]
    assert [doc["slug"] for doc in documents] == ["contact", "home", "our-team"]
    assert [doc["order"] for doc in documents] == [0, 1, 2]


def test_request_is_frozen_and_defaults_website_name():
    request = _request()
    assert request.site_name == "acme"
    assert _request(websiteName="acme-site").site_name == "acme-site"
    with pytest.raises(ValidationError):
        request.company_name = "Other"
    with pytest.raises(ValidationError):
        ProvisioningRequest.model_validate({"companyName": "  ", "domainName": "acme"})


def test_request_names_are_single_path_safe_labels():
    assert _request(domainName=" Acme-Homes ").domain_name == "acme-homes"
    assert _request(websiteName="  ").site_name == "acme"

    for domain in ["..", "../x", "a/b", "-acme", "acme.", "a b", ""]:
        with pytest.raises(ValidationError):
            _request(domainName=domain)
    for website in ["..", "../outside", "a/b", "/tmp/x", "acme site"]:
        with pytest.raises(ValidationError):
            _request(websiteName=website)


def test_domain_check_request_pattern():
    assert DomainCheckRequest(domain="example.com").domain == "example.com"
    with pytest.raises(ValidationError):
        DomainCheckRequest(domain="not a domain")


def test_capabilities_from_env_enable_only_complete_integrations(tmp_path):
    capabilities = ProvisioningCapabilities.from_env(
        {
            "GITHUB_TOKEN": "ghp",
            "GITHUB_USERNAME": "juzbuild",
            "VERCEL_TEAM_ID": "team_1",
            "NAMECHEAP_API_USER": "user",
            "NAMECHEAP_API_KEY": "key",
            "NAMECHEAP_SANDBOX": "true",
            "EMAIL_USER": "mailer",
            "JUZBUILD_TEMPLATES_ROOT": str(tmp_path),
            "JUZBUILD_CLEANUP_TEMPLATES": "no",
        }
    )
    assert capabilities.github is not None and capabilities.github.username == "juzbuild"
    assert capabilities.vercel is None
    assert capabilities.namecheap is not None and capabilities.namecheap.sandbox is True
    assert capabilities.namecheap.username == "user"
    assert capabilities.email is None
    assert capabilities.templates_root == tmp_path
    assert capabilities.cleanup_templates is False
    assert capabilities.parent_domain == "onjuzbuild.com"


def test_delays_none_never_waits():
    delays = Delays.none()
    assert delays.file_delay == 0 and delays.batch_delay == 0 and delays.propagation_delay == 0
    assert delays.batch_size == 3
