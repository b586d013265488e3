"""
Pytest Configuration and Fixtures

Every test gets its own in-memory MongoDB (mongomock) so repositories,
engine and API can be exercised end to end without a server.
"""

from datetime import datetime, timezone
from typing import Callable, Dict, List

import mongomock
import pytest

from cra_workflow.domain.enums import Role, Language
from cra_workflow.domain.models import ActorContext, AppUser, NotificationPolicy
from cra_workflow.repositories.mongo_client import MAIL_TOKENS
from cra_workflow.repositories.user_repo import UserRepository
from cra_workflow.services.container import ServiceContainer


FIXED_NOW = datetime(2026, 3, 10, 9, 30, 0, tzinfo=timezone.utc)


class FakeClock:
    """Callable clock that only moves when told to"""

    def __init__(self, start: datetime = FIXED_NOW):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def set(self, value: datetime) -> None:
        self.now = value


@pytest.fixture
def db():
    """Fresh in-memory database per test"""
    client = mongomock.MongoClient(tz_aware=True)
    yield client["cra_requests_test"]
    client.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def services(db) -> ServiceContainer:
    """Fully wired container on the test database"""
    return ServiceContainer(db)


@pytest.fixture
def sales_actor() -> ActorContext:
    return ActorContext(
        user_id="u-sales-1",
        email="sam.sales@example.com",
        display_name="Sam Sales",
        role=Role.SALES,
    )


@pytest.fixture
def design_actor() -> ActorContext:
    return ActorContext(
        user_id="u-design-1",
        email="dana.design@example.com",
        display_name="Dana Design",
        role=Role.DESIGN,
    )


@pytest.fixture
def admin_actor() -> ActorContext:
    return ActorContext(
        user_id="u-admin-1",
        email="gm@example.com",
        display_name="Gina GM",
        role=Role.ADMIN,
    )


@pytest.fixture
def policy() -> NotificationPolicy:
    """Enabled policy with one mailbox per role"""
    return NotificationPolicy(
        enabled=True,
        sender_upn="cra-noreply@example.com",
        app_base_url="https://cra.example.com/",
        recipients_sales="sales@example.com",
        recipients_design="design@example.com; design-lead@example.com",
        recipients_costing="costing@example.com",
        recipients_admin="gm@example.com",
    )


@pytest.fixture
def save_policy(db, services) -> Callable[[NotificationPolicy, bool], NotificationPolicy]:
    """Store a policy (through the container cache) and the mail token state"""

    def _save(policy: NotificationPolicy, connected: bool = True) -> NotificationPolicy:
        services.settings_cache.save_policy(policy)
        if connected:
            db[MAIL_TOKENS].replace_one(
                {"_id": "default"},
                {"_id": "default", "refresh_token": "refresh-token"},
                upsert=True,
            )
        return policy

    return _save


@pytest.fixture
def enabled_policy(policy, save_policy) -> NotificationPolicy:
    return save_policy(policy, True)


@pytest.fixture
def directory(db) -> Dict[str, AppUser]:
    """Active users in every role plus one inactive user"""
    users: List[AppUser] = [
        AppUser(user_id="u-sales-1", email="sam.sales@example.com", name="Sam Sales", role=Role.SALES),
        AppUser(user_id="u-sales-2", email="sales@example.com", name="Sales Desk", role=Role.SALES,
                preferred_language=Language.FR),
        AppUser(user_id="u-design-1", email="dana.design@example.com", name="Dana Design", role=Role.DESIGN),
        AppUser(user_id="u-design-2", email="design-lead@example.com", name="Li Wei", role=Role.DESIGN,
                preferred_language=Language.ZH),
        AppUser(user_id="u-costing-1", email="costing@example.com", name="Cory Costing", role=Role.COSTING),
        AppUser(user_id="u-admin-1", email="gm@example.com", name="Gina GM", role=Role.ADMIN),
        AppUser(user_id="u-admin-2", email="old-admin@example.com", name="Former Admin", role=Role.ADMIN,
                is_active=False),
    ]
    repo = UserRepository(db)
    for user in users:
        repo.upsert_user(user)
    return {u.user_id: u for u in users}
