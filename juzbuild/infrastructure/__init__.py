"""Infrastructure layer exports."""

from .databases import DatabaseError, DatabaseGateway, DatabaseSession, InMemoryDatabaseGateway, MongoDatabaseGateway
from .github import GitHubClient, GitHubError
from .mailer import EmailDeliveryError, EmailService, EmailTemplateRenderer, SmtpMailer
from .namecheap import DnsRecordResult, DomainAvailability, NamecheapClient, NamecheapError
from .vercel import VercelClient, VercelError

__all__ = [
    "DatabaseError",
    "DatabaseGateway",
    "DatabaseSession",
    "DnsRecordResult",
    "DomainAvailability",
    "EmailDeliveryError",
    "EmailService",
    "EmailTemplateRenderer",
    "GitHubClient",
    "GitHubError",
    "InMemoryDatabaseGateway",
    "MongoDatabaseGateway",
    "NamecheapClient",
    "NamecheapError",
    "SmtpMailer",
    "VercelClient",
    "VercelError",
]
