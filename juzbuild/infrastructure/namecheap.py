"""Integration with the Namecheap XML API (domain checks and DNS hosts)."""
from __future__ import annotations

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)

PRODUCTION_URL = "https://api.namecheap.com/xml.response"
SANDBOX_URL = "https://api.sandbox.namecheap.com/xml.response"


class NamecheapError(RuntimeError):
    """Raised when the Namecheap API returns ``Status="ERROR"``."""


@dataclass(slots=True)
class DomainAvailability:
    domain: str
    available: bool
    is_premium: bool = False
    premium_registration_price: str | None = None
    error_no: str | None = None
    description: str | None = None


@dataclass(slots=True)
class HostRecord:
    name: str
    record_type: str
    address: str
    ttl: str = "1800"
    mx_pref: str | None = None
    host_id: str | None = None


@dataclass(slots=True)
class DnsRecordResult:
    success: bool
    message: str


def _local(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _split_domain(domain: str) -> tuple[str, str]:
    sld, _, tld = domain.partition(".")
    if not sld or not tld:
        raise ValueError(f"Invalid domain: {domain!r}")
    return sld, tld


class NamecheapClient:
    def __init__(
        self,
        api_user: str,
        api_key: str,
        username: str,
        *,
        client_ip: str = "127.0.0.1",
        sandbox: bool = False,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._auth = {
            "ApiUser": api_user,
            "ApiKey": api_key,
            "UserName": username,
            "ClientIp": client_ip,
        }
        self._url = SANDBOX_URL if sandbox else PRODUCTION_URL
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = http_client is None

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    async def _call(self, command: str, params: dict[str, str] | None = None, *, method: str = "GET") -> ET.Element:
        query = {**self._auth, "Command": command, **(params or {})}
        if method == "POST":
            response = await self._client.post(self._url, data=query, headers={"User-Agent": "Juzbuild/1.0"})
        else:
            response = await self._client.get(self._url, params=query, headers={"User-Agent": "Juzbuild/1.0"})
        response.raise_for_status()
        return self._parse(response.text)

    @staticmethod
    def _parse(xml_text: str) -> ET.Element:
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as exc:
            raise NamecheapError(f"Failed to parse Namecheap response: {exc}") from exc
        if root.get("Status", "").upper() != "OK":
            errors = [
                f"{node.get('Number', '?')}: {(node.text or '').strip()}"
                for node in root.iter()
                if _local(node.tag) == "Error"
            ]
            raise NamecheapError(", ".join(errors) or "Namecheap API returned an error")
        return root

    # ------------------------------------------------------------------
    # public API
    # ------------------------------------------------------------------
    async def check_domains(self, domains: list[str]) -> list[DomainAvailability]:
        if not domains:
            raise ValueError("At least one domain must be provided")
        if len(domains) > 50:
            raise ValueError("Maximum 50 domains can be checked at once")
        root = await self._call("namecheap.domains.check", {"DomainList": ",".join(domains)})
        results: list[DomainAvailability] = []
        for node in root.iter():
            if _local(node.tag) != "DomainCheckResult":
                continue
            results.append(
                DomainAvailability(
                    domain=node.get("Domain", ""),
                    available=node.get("Available", "").lower() == "true",
                    is_premium=node.get("IsPremiumName", "").lower() == "true",
                    premium_registration_price=node.get("PremiumRegistrationPrice"),
                    error_no=node.get("ErrorNo"),
                    description=node.get("Description"),
                )
            )
        return results

    async def check_domain(self, domain: str) -> DomainAvailability:
        results = await self.check_domains([domain])
        if not results:
            raise NamecheapError("No results returned from Namecheap API")
        return results[0]

    async def get_hosts(self, domain: str) -> list[HostRecord]:
        sld, tld = _split_domain(domain)
        root = await self._call("namecheap.domains.dns.getHosts", {"SLD": sld, "TLD": tld})
        records: list[HostRecord] = []
        for node in root.iter():
            if _local(node.tag).lower() != "host":
                continue
            records.append(
                HostRecord(
                    name=node.get("Name", ""),
                    record_type=node.get("Type", ""),
                    address=node.get("Address", ""),
                    ttl=node.get("TTL") or "1800",
                    mx_pref=node.get("MXPref"),
                    host_id=node.get("HostId"),
                )
            )
        return records

    async def set_hosts(self, domain: str, records: list[HostRecord]) -> None:
        """Replace the full host list of ``domain``; Namecheap has no per-record add."""

        sld, tld = _split_domain(domain)
        params: dict[str, str] = {"SLD": sld, "TLD": tld}
        for index, record in enumerate(records, start=1):
            params[f"HostName{index}"] = record.name
            params[f"RecordType{index}"] = record.record_type
            params[f"Address{index}"] = record.address
            params[f"TTL{index}"] = record.ttl
            if record.mx_pref:
                params[f"MXPref{index}"] = record.mx_pref
        root = await self._call("namecheap.domains.dns.setHosts", params, method="POST")
        for node in root.iter():
            if _local(node.tag) == "DomainDNSSetHostsResult" and node.get("IsSuccess", "true").lower() != "true":
                raise NamecheapError(f"setHosts was not applied for {domain}")

    async def create_cname(self, parent_domain: str, host: str, target: str, *, ttl: str = "1800") -> DnsRecordResult:
        """Point ``host.parent_domain`` at ``target``, keeping every other record."""

        try:
            existing = await self.get_hosts(parent_domain)
            kept = [record for record in existing if record.name != host]
            kept.append(HostRecord(name=host, record_type="CNAME", address=target.rstrip(".") + ".", ttl=ttl))
            await self.set_hosts(parent_domain, kept)
        except (NamecheapError, httpx.HTTPError, ValueError) as exc:
            return DnsRecordResult(success=False, message=str(exc))
        return DnsRecordResult(success=True, message=f"CNAME {host}.{parent_domain} -> {target} created")

    async def delete_subdomain(self, domain: str) -> int:
        """Remove every host record of ``sub.parent.tld``; returns how many were removed."""

        host, _, parent = domain.partition(".")
        if parent.count(".") < 1:
            raise ValueError(f"Invalid subdomain format: {domain}")
        existing = await self.get_hosts(parent)
        kept = [record for record in existing if not (record.name == host or record.name.startswith(f"{host}."))]
        removed = len(existing) - len(kept)
        if removed == 0:
            logger.info("No DNS records found for %s", domain)
            return 0
        await self.set_hosts(parent, kept)
        return removed

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def describe_availability(result: DomainAvailability) -> dict[str, Any]:
    payload: dict[str, Any] = {"domain": result.domain, "available": result.available}
    if result.is_premium:
        payload["isPremium"] = True
        payload["premiumRegistrationPrice"] = result.premium_registration_price
    if result.description:
        payload["description"] = result.description
    return payload


__all__ = [
    "DnsRecordResult",
    "DomainAvailability",
    "HostRecord",
    "NamecheapClient",
    "NamecheapError",
    "describe_availability",
]
