from decimal import Decimal

import pytest
from flask_jwt_extended import create_access_token

from withdrawal_tracker.extensions import db
from withdrawal_tracker.main import create_app
from withdrawal_tracker.models.enums import Region, UserRole
from withdrawal_tracker.models.user import User
from withdrawal_tracker.utils.auth_utils import hash_password


@pytest.fixture
def app():
    app = create_app("testing")
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def manager(app):
    return app.extensions["workflow_manager"]


@pytest.fixture
def make_user(app):
    counter = {"n": 0}

    def _make(role, region=None, active=True, full_name=None):
        counter["n"] += 1
        user = User(
            email=f"{role}{counter['n']}@example.org",
            password_hash=hash_password("password123"),
            full_name=full_name or f"{role} {counter['n']}",
            role=role,
            regional_assignment=region,
            is_active=active,
        )
        db.session.add(user)
        db.session.commit()
        return user

    return _make


@pytest.fixture
def staff(make_user):
    """One active user per role, operations staff in every region."""
    return {
        "admin": make_user(UserRole.ADMIN),
        "archive": make_user(UserRole.ARCHIVE_TEAM),
        "loan_admin": make_user(UserRole.LOAN_ADMINISTRATOR),
        "ops_africa": make_user(UserRole.OPERATIONS_TEAM, Region.AFRICA),
        "ops_asia": make_user(UserRole.OPERATIONS_TEAM, Region.ASIA),
        "ops_ela": make_user(UserRole.OPERATIONS_TEAM, Region.EUROPE_LATIN_AMERICA),
        "core_banking": make_user(UserRole.CORE_BANKING),
        "observer": make_user(UserRole.OBSERVER),
    }


@pytest.fixture
def request_data():
    return {
        "project_number": "ADFD-100200-001",
        "ref_number": "REF-2026-0001",
        "country": "seychelles",
        "beneficiary_name": "Ministry of Finance",
        "amount": Decimal("250000.00"),
        "currency": "USD",
    }


@pytest.fixture
def new_request(manager, staff, request_data):
    return manager.create_request(request_data, staff["archive"].id)


@pytest.fixture
def auth_headers(app):
    def _headers(user):
        token = create_access_token(identity=user.id)
        return {"Authorization": f"Bearer {token}"}

    return _headers
