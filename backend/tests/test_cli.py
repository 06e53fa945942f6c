"""
Flask CLI command tests.
"""

from datetime import timedelta

from homebake.models import Bakery, QRInvite, StaffSession, User
from homebake.services import invite_service
from homebake.time_utils import utcnow


def test_system_init_is_idempotent(app, db_session):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["system", "init", "--bakery", "Test Bakery", "--email", "boss@test.local"])
    assert result.exit_code == 0
    assert "PASS Created bakery: Test Bakery" in result.output

    owner = db_session.query(User).filter_by(email="boss@test.local").one()
    assert owner.role == "owner"

    result = runner.invoke(args=["system", "init", "--bakery", "Test Bakery", "--email", "boss@test.local"])
    assert result.exit_code == 0
    assert "already exists" in result.output
    assert db_session.query(Bakery).count() == 1


def test_system_init_rejects_weak_password(app, db_session):
    result = app.test_cli_runner().invoke(args=["system", "init", "--password", "weak"])
    assert result.exit_code == 1
    assert "FAIL Password validation failed" in result.output


def test_users_list(app, owner, sales_rep):
    result = app.test_cli_runner().invoke(args=["users", "list"])
    assert result.exit_code == 0
    assert "owner@sunrise.test" in result.output
    assert "sales_rep" in result.output


def test_users_create(app, bakery, db_session):
    result = app.test_cli_runner().invoke(args=[
        "users", "create",
        "--bakery-id", str(bakery.id),
        "--name", "Cli Manager",
        "--email", "cli@sunrise.test",
        "--password", "Password789",
        "--role", "manager",
    ])
    assert result.exit_code == 0
    assert db_session.query(User).filter_by(email="cli@sunrise.test").one().role == "manager"


def test_invites_create(app, owner, db_session):
    result = app.test_cli_runner().invoke(args=["invites", "create", "--role", "sales_rep"])
    assert result.exit_code == 0
    assert "/signup?token=" in result.output
    assert db_session.query(QRInvite).filter_by(bakery_id=owner.bakery_id).count() == 1


def test_generate_vapid(app):
    result = app.test_cli_runner().invoke(args=["push", "generate-vapid"])
    assert result.exit_code == 0

    lines = dict(line.split("=", 1) for line in result.output.strip().splitlines())
    # Uncompressed P-256 point is 65 bytes (87 base64url chars), private scalar 32 bytes (43 chars)
    assert len(lines["VAPID_PUBLIC_KEY"]) == 87
    assert len(lines["VAPID_PRIVATE_KEY"]) == 43


def test_maintenance_cleanup(app, owner, db_session):
    past = utcnow() - timedelta(days=2)
    db_session.add(StaffSession(user_id=owner.id, bakery_id=owner.bakery_id, created_at=past, expires_at=past))
    db_session.commit()
    invite_service.create_invite(owner=owner, role="manager", now=past)

    result = app.test_cli_runner().invoke(args=["maintenance", "cleanup"])

    assert result.exit_code == 0
    assert "Removed 1 presence rows" in result.output
    assert "1 invites" in result.output
    assert db_session.query(StaffSession).count() == 0
    assert db_session.query(QRInvite).count() == 0
