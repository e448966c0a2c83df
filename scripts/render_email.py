#!/usr/bin/env python
from __future__ import annotations

import argparse
import json
from pathlib import Path

from juzbuild.infrastructure import EmailTemplateRenderer


def main() -> None:
    renderer = EmailTemplateRenderer()
    parser = argparse.ArgumentParser(description="Render a transactional email template to an HTML file")
    parser.add_argument("template", choices=renderer.available, help="Template name")
    parser.add_argument("--data", help="Path to a JSON file with the template variables")
    parser.add_argument("--output", required=True, help="Output file path (.html)")
    args = parser.parse_args()

    data = json.loads(Path(args.data).read_text(encoding="utf-8")) if args.data else {}
    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(renderer.render(args.template, data), encoding="utf-8")

    print(f"Rendered {args.template} to {output}")


if __name__ == "__main__":
    main()
