"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
Environment variables are set before anything imports the settings so the
in-memory store and the disabled captcha provider are selected.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"
os.environ.setdefault("STORE_BACKEND", "memory")
os.environ.setdefault("CAPTCHA_PROVIDER", "disabled")
os.environ.setdefault("EMAIL_PROVIDER", "sendgrid")
os.environ.setdefault("EMAIL_API_KEY", "test-sendgrid-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from typing import Callable

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from coursehub.adapters.captcha.base import AbstractCaptchaVerifier
from coursehub.adapters.email.base import AbstractEmailSender, DeliveryOutcome
from coursehub.adapters.store.in_memory import InMemoryHierarchyStore, InMemoryReportStore
from coursehub.core.app_factory import create_app
from coursehub.core.rate_limit import AdmissionController
from coursehub.services.container import Services
from coursehub.services.verification_service import VerificationService
from coursehub.utils.simple_cache import SimpleTTLCache

REJECTED_TOKEN = "rejected-token"


class FakeCaptchaVerifier(AbstractCaptchaVerifier):
    """Accepts every token except ``REJECTED_TOKEN``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None]] = []

    async def verify(self, token: str, *, remote_ip: str | None = None) -> bool:
        self.calls.append((token, remote_ip))
        return token != REJECTED_TOKEN


class FakeEmailSender(AbstractEmailSender):
    """Records every message and answers with ``outcome``."""

    def __init__(self, outcome: DeliveryOutcome = DeliveryOutcome.ACCEPTED) -> None:
        self.outcome = outcome
        self.sent: list[tuple[str, str]] = []

    async def send_code(self, recipient: str, code: str) -> DeliveryOutcome:
        self.sent.append((recipient, code))
        return self.outcome

    def last_code_for(self, recipient: str) -> str:
        return next(code for to, code in reversed(self.sent) if to == recipient)


class FakeClock:
    """Deterministic clock used to test expiration logic."""

    def __init__(self, start: float = 1_000.0) -> None:
        self.current = start

    def __call__(self) -> float:
        return self.current

    def advance(self, seconds: float) -> None:
        self.current += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def captcha_verifier() -> FakeCaptchaVerifier:
    return FakeCaptchaVerifier()


@pytest.fixture
def email_sender() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def verification(clock: FakeClock) -> VerificationService:
    return VerificationService(
        ttl_seconds=900,
        cooldown_seconds=900,
        code_length=6,
        records=SimpleTTLCache(ttl_seconds=900, clock=clock),
    )


@pytest.fixture
def services(
    captcha_verifier: FakeCaptchaVerifier,
    email_sender: FakeEmailSender,
    verification: VerificationService,
) -> Services:
    return Services.assemble(
        store=InMemoryHierarchyStore(),
        reports=InMemoryReportStore(),
        captcha_verifier=captcha_verifier,
        email=email_sender,
        verification=verification,
    )


@pytest.fixture
def make_app(services: Services) -> Callable[..., FastAPI]:
    def _make(admission: AdmissionController | None = None) -> FastAPI:
        return create_app(services=services, admission=admission or AdmissionController())

    return _make


@pytest.fixture
def client(make_app: Callable[..., FastAPI]) -> TestClient:
    """Create FastAPI test client with fakes and fresh rate-limit counters."""
    return TestClient(make_app())
