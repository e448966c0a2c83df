from __future__ import annotations

import asyncio
import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from juzbuild.core.config import (
    Delays,
    EmailCredentials,
    GitHubCredentials,
    NamecheapCredentials,
    ProvisioningCapabilities,
    VercelCredentials,
)
from juzbuild.core.schema import ProvisioningRequest
from juzbuild.domain import StepResult
from juzbuild.generators.site_template import render_site_files
from juzbuild.infrastructure.databases import DatabaseError, InMemoryDatabaseGateway, InMemoryDatabaseSession
from juzbuild.infrastructure.github import GitHubError
from juzbuild.infrastructure.mailer import EmailDeliveryError
from juzbuild.infrastructure.namecheap import DnsRecordResult
from juzbuild.workers.provisioning import WebsiteProvisioner, build_provisioner
from juzbuild.workers.steps import DeploymentStep, ProvisioningContext, RepositoryStep

STEP_NAMES = [
    "Database Creation",
    "Template Generation",
    "GitHub Repository",
    "Vercel Deployment",
    "Subdomain Setup",
    "Email Notification",
    "Database Logging",
]


# ----------------------------------------------------------------------
# fakes
# ----------------------------------------------------------------------
class FakeGitHub:
    def __init__(self, failing_paths: set[str] | None = None) -> None:
        self.created: list[str] = []
        self.files: list[str] = []
        self.failing_paths = failing_paths or set()

    async def create_repository(self, name: str, *, description: str = "", private: bool = False) -> dict:
        self.created.append(name)
        return {
            "html_url": f"https://github.com/juzbuild/{name}",
            "clone_url": f"https://github.com/juzbuild/{name}.git",
            "owner": {"login": "juzbuild"},
        }

    async def put_file(self, owner: str, repo: str, path: str, content: str, *, message: str) -> dict:
        if path in self.failing_paths:
            raise GitHubError(f"GitHub API error 409: conflict on {path}", status_code=409)
        self.files.append(path)
        return {}


class FakeVercel:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, str]] = []

    async def create_project_and_deploy(self, name: str, owner: str, repo: str) -> dict:
        self.calls.append((name, owner, repo))
        return {
            "project": {"id": "prj_1", "name": name},
            "deployment": {"id": "dpl_1"},
            "deploymentUrl": f"https://{name}.vercel.app",
        }


class FakeNamecheap:
    def __init__(self, result: DnsRecordResult) -> None:
        self.result = result
        self.calls: list[tuple[str, str, str]] = []

    async def create_cname(self, parent_domain: str, host: str, target: str, *, ttl: str = "1800") -> DnsRecordResult:
        self.calls.append((parent_domain, host, target))
        return self.result


class FakeEmailService:
    def __init__(self) -> None:
        self.sent: list[tuple[str, dict]] = []

    async def send_website_creation_email(self, to: str, data: dict) -> None:
        self.sent.append((to, dict(data)))


class RecordingStep:
    def __init__(self, name: str, result: StepResult | None = None, error: Exception | None = None) -> None:
        self.name = name
        self.label = name
        self.result = result or StepResult.ok({"step": name})
        self.error = error
        self.calls = 0

    async def run(self, context: ProvisioningContext) -> StepResult:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.result


def _capabilities(tmp_path: Path, **overrides) -> ProvisioningCapabilities:
    values = {
        "github": GitHubCredentials(token="ghp", username="juzbuild"),
        "vercel": VercelCredentials(token="vercel"),
        "namecheap": NamecheapCredentials(api_user="user", api_key="key", username="user"),
        "email": EmailCredentials(host="smtp.test", username="mailer", password="secret"),
        "templates_root": tmp_path,
    }
    values.update(overrides)
    return ProvisioningCapabilities(**values)


def _request() -> ProvisioningRequest:
    return ProvisioningRequest.model_validate(
        {
            "userId": "user-1",
            "userEmail": "owner@acme.test",
            "companyName": "Acme Realty",
            "domainName": "acme",
            "brandColors": ["#111", "#222", "#333"],
            "propertyTypes": ["Condo"],
            "includedPages": ["home", "contact"],
            "preferredContactMethod": ["email"],
        }
    )


@pytest.fixture()
def fakes():
    return {
        "github": FakeGitHub(),
        "vercel": FakeVercel(),
        "namecheap": FakeNamecheap(DnsRecordResult(success=True, message="CNAME created")),
        "email_service": FakeEmailService(),
    }


# ----------------------------------------------------------------------
# end-to-end
# ----------------------------------------------------------------------
def test_full_run_succeeds_with_every_step(tmp_path, fakes):
    gateway = InMemoryDatabaseGateway()
    provisioner = build_provisioner(_capabilities(tmp_path), gateway, delays=Delays.none(), **fakes)

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.success is True
    assert outcome.data["domain"] == "acme.onjuzbuild.com"
    assert outcome.data["status"] == "active"
    assert list(outcome.data["results"]) == STEP_NAMES

    pages = gateway.databases["juzbuild_acme"]["pages"]
    assert [page["title"] for page in pages] == ["home", "contact"]
    assert len(gateway.databases["juzbuild_acme"]["properties"]) == 3
    assert gateway.databases["juzbuild_acme"]["properties"][0]["type"] == "Condo"
    assert gateway.databases["juzbuild_acme"]["users"] == []
    assert gateway.databases["juzbuild_acme"]["settings"][0]["accentColor"] == "#333"

    sites = gateway.databases["Juzbuild"]["sites"]
    assert len(sites) == 1
    assert sites[0]["domain"] == "acme.onjuzbuild.com"
    assert sites[0]["dbName"] == "juzbuild_acme"
    assert sites[0]["repoUrl"] == "https://github.com/juzbuild/acme"
    assert sites[0]["vercelProjectId"] == "prj_1"
    assert all(session.closed for session in gateway.sessions)

    assert fakes["github"].files[0] == "README.md"
    assert fakes["github"].files[-1] == "VERCEL_DEPLOY.md"
    assert fakes["github"].files[-2] == "DEPLOYMENT.md"
    assert fakes["namecheap"].calls == [("onjuzbuild.com", "acme", "acme.vercel.app")]
    recipient, data = fakes["email_service"].sent[0]
    assert recipient == "owner@acme.test"
    assert data["websiteUrl"] == "https://acme.onjuzbuild.com"

    assert not (tmp_path / "acme").exists()
    assert outcome.to_dict() == {"success": True, "data": outcome.data}


def test_dns_failure_stops_before_notification(tmp_path, fakes):
    fakes["namecheap"] = FakeNamecheap(DnsRecordResult(success=False, message="quota exceeded"))
    gateway = InMemoryDatabaseGateway()
    provisioner = build_provisioner(_capabilities(tmp_path), gateway, delays=Delays.none(), **fakes)

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.success is False
    assert outcome.step == "Subdomain Setup"
    assert "quota exceeded" in outcome.error
    assert fakes["email_service"].sent == []
    assert "Juzbuild" not in gateway.databases
    assert [resource.kind for resource in outcome.resources] == [
        "database",
        "template_directory",
        "repository",
        "vercel_project",
    ]
    assert (tmp_path / "acme").exists()

    payload = outcome.to_dict()
    assert payload["step"] == "Subdomain Setup"
    assert payload["resources"][2]["identifier"] == "juzbuild/acme"


def test_skipped_integrations_still_succeed(tmp_path):
    capabilities = _capabilities(tmp_path, github=None, vercel=None, namecheap=None, email=None)
    gateway = InMemoryDatabaseGateway()
    provisioner = build_provisioner(capabilities, gateway, delays=Delays.none())

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.success is True
    results = outcome.data["results"]
    assert results["GitHub Repository"]["note"] == "GitHub integration not configured - skipped"
    assert results["GitHub Repository"]["repoUrl"] == "https://github.com/juzbuild/acme"
    assert results["Vercel Deployment"]["status"] == "skipped"
    assert results["Subdomain Setup"]["status"] == "configured"
    assert results["Subdomain Setup"]["cname"] == "acme.vercel.app"
    assert results["Email Notification"]["emailSent"] is False


# ----------------------------------------------------------------------
# orchestration
# ----------------------------------------------------------------------
@pytest.mark.parametrize("failing_index", range(7))
def test_failure_stops_later_steps(tmp_path, failing_index):
    steps = [RecordingStep(name) for name in STEP_NAMES]
    steps[failing_index].result = StepResult.fail("boom")
    provisioner = WebsiteProvisioner(steps, _capabilities(tmp_path))

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.success is False
    assert outcome.step == STEP_NAMES[failing_index]
    assert outcome.error == f"{STEP_NAMES[failing_index]} failed: boom"
    assert [step.calls for step in steps] == [1] * (failing_index + 1) + [0] * (6 - failing_index)


def test_unexpected_exception_is_reported_without_step(tmp_path):
    steps = [RecordingStep(name) for name in STEP_NAMES]
    steps[2].error = RuntimeError("connection reset")
    provisioner = WebsiteProvisioner(steps, _capabilities(tmp_path))

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.success is False
    assert outcome.step is None
    assert outcome.error == "connection reset"
    assert steps[3].calls == 0


def test_database_failure_closes_session(tmp_path, fakes):
    class BrokenSession(InMemoryDatabaseSession):
        def insert_many(self, collection, documents):
            raise DatabaseError("disk full")

    class BrokenGateway(InMemoryDatabaseGateway):
        def open(self, db_name):
            session = BrokenSession(self, db_name)
            self.sessions.append(session)
            return session

    gateway = BrokenGateway()
    provisioner = build_provisioner(_capabilities(tmp_path), gateway, delays=Delays.none(), **fakes)

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.step == "Database Creation"
    assert outcome.error == "Database creation failed: disk full"
    assert all(session.closed for session in gateway.sessions)
    assert fakes["github"].created == []


# ----------------------------------------------------------------------
# repository publisher
# ----------------------------------------------------------------------
def test_repository_step_without_credentials_never_touches_client(tmp_path):
    class SpyGitHub:
        def __init__(self) -> None:
            self.touched: list[str] = []

        def __getattr__(self, name):
            self.touched.append(name)
            raise AssertionError(f"GitHub client used: {name}")

    spy = SpyGitHub()
    context = ProvisioningContext(request=_request(), capabilities=_capabilities(tmp_path, github=None))

    result = asyncio.run(RepositoryStep(spy, Delays.none()).run(context))

    assert result.success is True
    assert result.data["repoUrl"] == "https://github.com/juzbuild/acme"
    assert spy.touched == []


def test_repository_step_collects_failed_uploads_and_waits(tmp_path):
    from juzbuild.generators.site_template import write_site_template

    sleeps: list[float] = []

    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    request = _request()
    github = FakeGitHub(failing_paths={"styles/theme.css"})
    context = ProvisioningContext(request=request, capabilities=_capabilities(tmp_path))
    context.template_path = write_site_template(request, tmp_path)

    result = asyncio.run(RepositoryStep(github, Delays(sleep=record_sleep)).run(context))

    assert result.success is True
    assert result.data["failedFiles"] == ["styles/theme.css"]
    uploads = len(render_site_files(request)) + 1
    assert result.data["filesUploaded"] == uploads - 1
    assert sleeps.count(0.5) == uploads
    assert sleeps.count(1.0) == (uploads - 1) // 3
    assert github.files[0] == "README.md"
    assert github.files[-1] == "DEPLOYMENT.md"


def test_repository_step_skips_unreadable_template(tmp_path):
    from juzbuild.generators.site_template import write_site_template

    request = _request()
    github = FakeGitHub()
    context = ProvisioningContext(request=request, capabilities=_capabilities(tmp_path))
    context.template_path = write_site_template(request, tmp_path)
    (context.template_path / "public" / "images" / "logo.png").write_bytes(b"\x89PNG\xff\xfe")

    result = asyncio.run(RepositoryStep(github, Delays.none()).run(context))

    assert result.success is True
    assert github.files == ["README.md", "DEPLOYMENT.md"]
    assert result.data["failedFiles"] == []


# ----------------------------------------------------------------------
# step failures
# ----------------------------------------------------------------------
def test_template_failure_is_attributed(tmp_path, fakes):
    blocker = tmp_path / "templates"
    blocker.write_text("not a directory", encoding="utf-8")
    provisioner = build_provisioner(
        _capabilities(tmp_path, templates_root=blocker), InMemoryDatabaseGateway(), delays=Delays.none(), **fakes
    )

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.success is False
    assert outcome.step == "Template Generation"
    assert outcome.error.startswith("Template generation failed: ")
    assert [resource.kind for resource in outcome.resources] == ["database"]
    assert fakes["github"].created == []


def test_ledger_failure_still_closes_session(tmp_path, fakes):
    class BrokenSession(InMemoryDatabaseSession):
        def insert_one(self, collection, document):
            raise DatabaseError("not primary")

    class BrokenGateway(InMemoryDatabaseGateway):
        def open(self, db_name):
            session = BrokenSession(self, db_name)
            self.sessions.append(session)
            return session

    control = BrokenGateway()
    provisioner = build_provisioner(
        _capabilities(tmp_path), InMemoryDatabaseGateway(), control_gateway=control, delays=Delays.none(), **fakes
    )

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.step == "Database Logging"
    assert outcome.error == "Database logging failed: not primary"
    assert len(control.sessions) == 1
    assert control.sessions[0].closed is True
    assert len(fakes["email_service"].sent) == 1


def test_notification_failure_is_attributed(tmp_path, fakes):
    class FailingEmailService:
        async def send_website_creation_email(self, to: str, data: dict) -> None:
            raise EmailDeliveryError("SMTP authentication failed")

    fakes["email_service"] = FailingEmailService()
    gateway = InMemoryDatabaseGateway()
    provisioner = build_provisioner(_capabilities(tmp_path), gateway, delays=Delays.none(), **fakes)

    outcome = asyncio.run(provisioner.run(_request()))

    assert outcome.step == "Email Notification"
    assert outcome.error == "Email notification failed: SMTP authentication failed"
    assert "Juzbuild" not in gateway.databases


# ----------------------------------------------------------------------
# deployment trigger
# ----------------------------------------------------------------------
def _deployment_context(tmp_path, *, repository_created: bool) -> ProvisioningContext:
    context = ProvisioningContext(request=_request(), capabilities=_capabilities(tmp_path))
    context.repo_owner, context.repo_name = "juzbuild", "acme"
    context.repository_created = repository_created
    return context


def test_deployment_waits_before_trigger_push(tmp_path):
    events: list[str] = []

    class OrderedGitHub(FakeGitHub):
        async def put_file(self, owner, repo, path, content, *, message):
            events.append(f"push:{path}")
            return await super().put_file(owner, repo, path, content, message=message)

    async def record_sleep(seconds: float) -> None:
        events.append(f"sleep:{seconds}")

    github = OrderedGitHub()
    context = _deployment_context(tmp_path, repository_created=True)

    result = asyncio.run(DeploymentStep(FakeVercel(), github, Delays(sleep=record_sleep)).run(context))

    assert result.success is True
    assert events == ["sleep:3.0", "push:VERCEL_DEPLOY.md"]
    assert github.files == ["VERCEL_DEPLOY.md"]
    assert context.vercel_project_id == "prj_1"


def test_deployment_skips_trigger_for_placeholder_repository(tmp_path):
    sleeps: list[float] = []

    async def record_sleep(seconds: float) -> None:
        sleeps.append(seconds)

    github = FakeGitHub()
    context = _deployment_context(tmp_path, repository_created=False)

    result = asyncio.run(DeploymentStep(FakeVercel(), github, Delays(sleep=record_sleep)).run(context))

    assert result.success is True
    assert result.data["status"] == "created"
    assert sleeps == [3.0]
    assert github.files == []
