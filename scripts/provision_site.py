#!/usr/bin/env python
from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
from pathlib import Path

from juzbuild.core.config import Delays, ProvisioningCapabilities
from juzbuild.core.schema import ProvisioningRequest
from juzbuild.infrastructure import InMemoryDatabaseGateway, MongoDatabaseGateway
from juzbuild.workers.provisioning import build_provisioner


async def _run(request: ProvisioningRequest, *, mongodb_uri: str | None, no_delays: bool) -> dict:
    capabilities = ProvisioningCapabilities.from_env()
    gateway = MongoDatabaseGateway(mongodb_uri) if mongodb_uri else InMemoryDatabaseGateway()
    provisioner = build_provisioner(capabilities, gateway, delays=Delays.none() if no_delays else None)
    try:
        outcome = await provisioner.run(request)
    finally:
        await provisioner.aclose()
    return outcome.to_dict()


def main() -> None:
    parser = argparse.ArgumentParser(description="Provision a tenant website from a JSON request file")
    parser.add_argument("request", help="Path to a JSON file with the onboarding answers (camelCase keys)")
    parser.add_argument("--mongodb-uri", default=os.getenv("MONGODB_URI"), help="MongoDB connection string")
    parser.add_argument("--no-delays", action="store_true", help="Skip rate-limit and propagation waits")
    parser.add_argument("--log-level", default="INFO", help="Logging level")
    args = parser.parse_args()

    logging.basicConfig(level=args.log_level.upper(), format="%(levelname)s %(name)s: %(message)s")
    payload = json.loads(Path(args.request).read_text(encoding="utf-8"))
    request = ProvisioningRequest.model_validate(payload)

    result = asyncio.run(_run(request, mongodb_uri=args.mongodb_uri, no_delays=args.no_delays))
    print(json.dumps(result, indent=2, default=str))
    raise SystemExit(0 if result.get("success") else 1)


if __name__ == "__main__":
    main()
