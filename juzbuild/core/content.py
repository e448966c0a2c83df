"""Seed content shared by the tenant database and the generated site."""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from juzbuild.core.naming import page_slug
from juzbuild.core.schema import ProvisioningRequest

DEFAULT_BRAND_COLORS: tuple[str, str, str] = ("#3B82F6", "#EF4444", "#10B981")


def resolve_brand_colors(colors: list[str] | tuple[str, ...]) -> tuple[str, str, str]:
    """Map brand colours positionally to primary/secondary/accent."""

    resolved = []
    for index, default in enumerate(DEFAULT_BRAND_COLORS):
        value = colors[index].strip() if index < len(colors) and colors[index] else ""
        resolved.append(value or default)
    return resolved[0], resolved[1], resolved[2]


def sample_properties(request: ProvisioningRequest, *, with_timestamps: bool = False) -> list[dict[str, Any]]:
    listings: list[dict[str, Any]] = [
        {
            "id": 1,
            "title": "Luxury Family Home",
            "description": "Beautiful 4-bedroom family home in prime location",
            "price": "$750,000",
            "bedrooms": 4,
            "bathrooms": 3,
            "sqft": 2500,
            "type": request.property_types[0] if request.property_types else "House",
            "status": "For Sale",
            "featured": True,
            "images": ["/images/property1.jpg"],
            "address": "123 Main Street",
            "city": "Downtown",
        },
        {
            "id": 2,
            "title": "Modern Downtown Condo",
            "description": "Contemporary 2-bedroom condo with city views",
            "price": "$450,000",
            "bedrooms": 2,
            "bathrooms": 2,
            "sqft": 1200,
            "type": "Condo",
            "status": "For Sale",
            "featured": True,
            "images": ["/images/property2.jpg"],
            "address": "456 Downtown Ave",
            "city": "City Center",
        },
        {
            "id": 3,
            "title": "Cozy Starter Home",
            "description": "Perfect first home with garden and garage",
            "price": "$325,000",
            "bedrooms": 3,
            "bathrooms": 2,
            "sqft": 1800,
            "type": "House",
            "status": "For Sale",
            "featured": False,
            "images": ["/images/property3.jpg"],
            "address": "789 Residential St",
            "city": "Suburbs",
        },
    ]
    if with_timestamps:
        now = datetime.now(timezone.utc)
        for listing in listings:
            listing["createdAt"] = now
    return listings


def _component_name(page: str) -> str:
    return "".join(part[:1].upper() + part[1:] for part in page_slug(page).split("-") if part) or "Custom"


def generate_page_content(page: str, request: ProvisioningRequest) -> str:
    """Return the page component source for one selected page.

    Pure: the output depends only on ``page`` and ``request``.
    """

    company = request.company_name or request.site_name
    slug = page_slug(page)

    if slug == "home":
        return f"""import React from 'react';

export default function HomePage() {{
  return (
    <div className="container">
      <h1>Welcome to {company}</h1>
      <p className="tagline">{request.tagline or "Your trusted partner in real estate."}</p>
    </div>
  );
}}
"""
    if slug == "about":
        about = request.about_section or f"Welcome to {company}, your trusted partner in real estate."
        return f"""import React from 'react';

export default function AboutPage() {{
  return (
    <div className="container">
      <h1>About {company}</h1>
      <p>{about}</p>
      <p>Our team is dedicated to helping you find the perfect property that meets your needs and budget.</p>
      <h2>Our Services</h2>
      <ul>
        <li>Property Sales</li>
        <li>Property Rentals</li>
        <li>Property Management</li>
        <li>Investment Consultation</li>
      </ul>
    </div>
  );
}}
"""
    if slug == "properties":
        return f"""import React from 'react';
import properties from '../data/properties.json';

export default function PropertiesPage() {{
  return (
    <div className="container">
      <h1>Properties by {company}</h1>
      <div className="properties-grid">
        {{properties.map(property => (
          <div key={{property.id}} className="property-card">
            <h3>{{property.title}}</h3>
            <p className="price">{{property.price}}</p>
            <p>{{property.type}} - {{property.city}}</p>
          </div>
        ))}}
      </div>
    </div>
  );
}}
"""
    if slug == "contact":
        email = request.user_email or f"info@{request.site_name}.com"
        phone = "+1 (555) 123-4567" if "phone" in request.preferred_contact_method else "Available upon request"
        return f"""import React from 'react';

export default function ContactPage() {{
  return (
    <div className="container">
      <h1>Contact {company}</h1>
      <h3>Email</h3>
      <p>{email}</p>
      <h3>Phone</h3>
      <p>{phone}</p>
      <form className="contact-form">
        <input type="text" placeholder="Name" />
        <input type="email" placeholder="Email" />
        <textarea rows={{4}} placeholder="Message"></textarea>
        <button type="submit">Send Message</button>
      </form>
    </div>
  );
}}
"""
    if slug == "services":
        return """import React from 'react';

export default function ServicesPage() {
  return (
    <div className="container">
      <h1>Our Services</h1>
      <div className="services-grid">
        <div><h3>Property Sales</h3><p>Expert assistance in buying and selling properties.</p></div>
        <div><h3>Property Rentals</h3><p>Find the perfect rental or manage your rental investments.</p></div>
        <div><h3>Property Management</h3><p>Complete management for landlords and investors.</p></div>
      </div>
    </div>
  );
}
"""
    return f"""import React from 'react';

export default function {_component_name(page)}Page() {{
  return (
    <div className="container">
      <h1>{page}</h1>
      <p>Welcome to our {page} page.</p>
      <p>This page is ready for your custom content.</p>
    </div>
  );
}}
"""


def page_documents(request: ProvisioningRequest) -> list[dict[str, Any]]:
    now = datetime.now(timezone.utc)
    return [
        {
            "slug": page_slug(page),
            "title": page,
            "content": generate_page_content(page, request),
            "isActive": True,
            "order": index,
            "createdAt": now,
        }
        for index, page in enumerate(request.included_pages)
    ]


def settings_document(request: ProvisioningRequest) -> dict[str, Any]:
    primary, secondary, accent = resolve_brand_colors(request.brand_colors)
    now = datetime.now(timezone.utc)
    return {
        "siteName": request.company_name,
        "websiteName": request.site_name,
        "primaryColor": primary,
        "secondaryColor": secondary,
        "accentColor": accent,
        "theme": request.selected_theme,
        "layoutStyle": request.layout_style,
        "tagline": request.tagline,
        "aboutSection": request.about_section,
        "contactMethods": list(request.preferred_contact_method),
        "userEmail": request.user_email,
        "createdAt": now,
        "updatedAt": now,
    }
