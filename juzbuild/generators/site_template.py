"""Static Next.js site generated from a provisioning request."""
from __future__ import annotations

import json
import logging
import shutil
from datetime import datetime, timezone
from pathlib import Path

from juzbuild.core.content import generate_page_content, resolve_brand_colors, sample_properties
from juzbuild.core.naming import page_slug
from juzbuild.core.schema import ProvisioningRequest
from juzbuild.domain import TemplateFile

logger = logging.getLogger(__name__)

TEMPLATE_DIRECTORIES = ("pages", "components", "styles", "data", "public/images")
SKIPPED_DIRECTORIES = {"node_modules", ".git"}

NEXT_CONFIG = """/** @type {import('next').NextConfig} */
const nextConfig = {
  reactStrictMode: true,
}

module.exports = nextConfig
"""

APP_PAGE = """import '../styles/theme.css'

export default function App({ Component, pageProps }) {
  return <Component {...pageProps} />
}
"""

DOCUMENT_PAGE = """import { Html, Head, Main, NextScript } from 'next/document'

export default function Document() {
  return (
    <Html lang="en">
      <Head />
      <body>
        <Main />
        <NextScript />
      </body>
    </Html>
  )
}
"""


# ----------------------------------------------------------------------
# file contents
# ----------------------------------------------------------------------
def _package_json(request: ProvisioningRequest) -> str:
    manifest = {
        "name": request.site_name.lower(),
        "version": "1.0.0",
        "private": True,
        "description": f"Real estate website for {request.company_name}",
        "scripts": {"dev": "next dev", "build": "next build", "start": "next start"},
        "dependencies": {"next": "latest", "react": "latest", "react-dom": "latest"},
    }
    return json.dumps(manifest, indent=2) + "\n"


def _index_page(request: ProvisioningRequest) -> str:
    return f"""import Header from '../components/Header'
import Footer from '../components/Footer'
import properties from '../data/properties.json'

export default function Home() {{
  return (
    <div>
      <Header />
      <main className="container">
        <section className="hero">
          <h1>Welcome to {request.company_name}</h1>
          <p className="tagline">{request.tagline}</p>
        </section>

        <section className="featured-properties">
          <h2>Featured Properties</h2>
          <div className="properties-grid">
            {{properties.slice(0, 3).map(property => (
              <div key={{property.id}} className="property-card">
                <h3>{{property.title}}</h3>
                <p className="price">{{property.price}}</p>
                <p>{{property.description}}</p>
                <div className="property-details">
                  <span>{{property.bedrooms}} bed</span>
                  <span>{{property.bathrooms}} bath</span>
                  <span>{{property.sqft}} sqft</span>
                </div>
              </div>
            ))}}
          </div>
        </section>
      </main>
      <Footer />
    </div>
  )
}}
"""


def _nav_href(page: str) -> str:
    slug = page_slug(page)
    return "/" if slug in {"home", "index"} else f"/{slug}"


def _header_component(request: ProvisioningRequest) -> str:
    links = "\n            ".join(
        f'<li><a href="{_nav_href(page)}">{page}</a></li>' for page in request.included_pages
    )
    return f"""export default function Header() {{
  return (
    <header className="site-header">
      <div className="container">
        <div className="logo">
          <h1>{request.company_name}</h1>
        </div>
        <nav>
          <ul>
            {links}
          </ul>
        </nav>
      </div>
    </header>
  )
}}
"""


def _footer_component(request: ProvisioningRequest) -> str:
    year = datetime.now(timezone.utc).year
    return f"""export default function Footer() {{
  return (
    <footer className="site-footer">
      <div className="container">
        <div className="footer-content">
          <div className="company-info">
            <h3>{request.company_name}</h3>
            <p>{request.tagline}</p>
          </div>
          <div className="contact-info">
            <h4>Contact Us</h4>
            <p>Email: {request.user_email}</p>
            <p>Preferred Contact: {", ".join(request.preferred_contact_method)}</p>
          </div>
        </div>
        <div className="footer-bottom">
          <p>&copy; {year} {request.company_name}. All rights reserved.</p>
        </div>
      </div>
    </footer>
  )
}}
"""


def _theme_css(request: ProvisioningRequest) -> str:
    primary, secondary, accent = resolve_brand_colors(request.brand_colors)
    return f""":root {{
  --primary-color: {primary};
  --secondary-color: {secondary};
  --accent-color: {accent};
  --text-color: #333;
  --bg-color: #fff;
}}

* {{
  margin: 0;
  padding: 0;
  box-sizing: border-box;
}}

body {{
  font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
  color: var(--text-color);
  background-color: var(--bg-color);
  line-height: 1.6;
}}

.container {{
  max-width: 1200px;
  margin: 0 auto;
  padding: 0 20px;
}}

.site-header {{
  background: var(--primary-color);
  color: white;
  padding: 1rem 0;
}}

.site-header .container {{
  display: flex;
  justify-content: space-between;
  align-items: center;
}}

.site-header nav ul {{
  display: flex;
  list-style: none;
  gap: 2rem;
}}

.site-header nav a {{
  color: white;
  text-decoration: none;
  font-weight: 500;
}}

.hero {{
  text-align: center;
  padding: 4rem 0;
  background: linear-gradient(135deg, var(--primary-color), var(--secondary-color));
  color: white;
}}

.hero h1 {{
  font-size: 3rem;
  margin-bottom: 1rem;
}}

.tagline {{
  font-size: 1.2rem;
  opacity: 0.9;
}}

.properties-grid {{
  display: grid;
  grid-template-columns: repeat(auto-fit, minmax(300px, 1fr));
  gap: 2rem;
  margin: 2rem 0;
}}

.property-card {{
  border: 1px solid #e5e7eb;
  border-radius: 8px;
  padding: 1.5rem;
}}

.price {{
  color: var(--accent-color);
  font-size: 1.5rem;
  font-weight: bold;
}}

.site-footer {{
  background: #1f2937;
  color: white;
  padding: 3rem 0 1rem;
  margin-top: 4rem;
}}
"""


def render_site_files(request: ProvisioningRequest) -> list[TemplateFile]:
    """Every file of the generated site, in write order."""

    files = [
        TemplateFile("package.json", _package_json(request)),
        TemplateFile("next.config.js", NEXT_CONFIG),
        TemplateFile("pages/_app.js", APP_PAGE),
        TemplateFile("pages/_document.js", DOCUMENT_PAGE),
        TemplateFile("pages/index.js", _index_page(request)),
    ]
    seen: set[str] = set()
    for page in request.included_pages:
        slug = page_slug(page)
        if not slug or slug in {"home", "index"} or slug in seen:
            continue
        seen.add(slug)
        files.append(TemplateFile(f"pages/{slug}.js", generate_page_content(page, request)))
    files.extend(
        [
            TemplateFile("components/Header.js", _header_component(request)),
            TemplateFile("components/Footer.js", _footer_component(request)),
            TemplateFile("styles/theme.css", _theme_css(request)),
            TemplateFile("data/properties.json", json.dumps(sample_properties(request), indent=2) + "\n"),
        ]
    )
    return files


def readme_content(request: ProvisioningRequest) -> str:
    return f"""# {request.company_name} - Real Estate Website

This is a professional real estate website created with [Juzbuild](https://juzbuild.com).

## About {request.company_name}

{request.about_section}

**Tagline:** {request.tagline}

## Website Features

- Property listings and search
- Mobile-responsive design
- Modern, professional styling
- Contact forms and lead capture

## Getting Started

1. Clone this repository
2. Install dependencies: `npm install`
3. Run development server: `npm run dev`
4. Open [http://localhost:3000](http://localhost:3000)

## Support

For support and customization, contact [Juzbuild Support](https://juzbuild.com/support).
"""


def deployment_note(repo: str, triggered_at: datetime | None = None) -> str:
    stamp = (triggered_at or datetime.now(timezone.utc)).isoformat()
    return (
        f"# {repo}\n\nThis Next.js website was automatically generated and deployed by Juzbuild.\n\n"
        f"Deployment triggered at: {stamp}\n"
    )


def deploy_trigger_note(site_name: str, triggered_at: datetime | None = None) -> str:
    stamp = (triggered_at or datetime.now(timezone.utc)).isoformat()
    return f"""# Vercel Deployment Trigger

This file was created to trigger automatic deployment on Vercel.

- Website: {site_name}
- Triggered at: {stamp}
- Trigger reason: ensuring a deployment after the project was connected
"""


# ----------------------------------------------------------------------
# filesystem
# ----------------------------------------------------------------------
def write_site_template(request: ProvisioningRequest, root: Path) -> Path:
    """Write the generated site to ``root/<site name>`` and return that directory.

    A directory left behind by an earlier run is replaced, never merged.
    """

    target = Path(root) / request.site_name
    resolved_root = Path(root).resolve()
    if resolved_root not in target.resolve().parents:
        raise ValueError(f"Site name {request.site_name!r} resolves outside {resolved_root}")
    if target.exists():
        logger.info("Replacing existing site template in %s", target)
        shutil.rmtree(target)

    for directory in TEMPLATE_DIRECTORIES:
        (target / directory).mkdir(parents=True, exist_ok=True)
    for template_file in render_site_files(request):
        destination = target / template_file.path
        destination.parent.mkdir(parents=True, exist_ok=True)
        destination.write_text(template_file.content, encoding="utf-8")
    logger.info("Generated site template in %s", target)
    return target


def collect_template_files(root: Path) -> list[TemplateFile]:
    """Read back every uploadable file under ``root`` with a POSIX relative path."""

    root = Path(root)
    collected: list[TemplateFile] = []

    def _walk(directory: Path) -> None:
        for entry in sorted(directory.iterdir(), key=lambda item: item.name):
            if entry.name.startswith("."):
                continue
            if entry.is_dir():
                if entry.name not in SKIPPED_DIRECTORIES:
                    _walk(entry)
                continue
            if entry.name.endswith(".log"):
                continue
            relative = entry.relative_to(root).as_posix()
            collected.append(TemplateFile(relative, entry.read_text(encoding="utf-8")))

    _walk(root)
    return collected


def remove_site_template(path: Path) -> bool:
    path = Path(path)
    if not path.exists():
        return False
    shutil.rmtree(path)
    logger.info("Removed site template %s", path)
    return True


__all__ = [
    "collect_template_files",
    "deploy_trigger_note",
    "deployment_note",
    "readme_content",
    "remove_site_template",
    "render_site_files",
    "write_site_template",
]
