"""
Staff management: role changes, activation, deletion and the last-owner guard.
"""

import pytest

from conftest import MORNING_NOW, PASSWORD, auth_headers, get_auth_token
from homebake.models import SessionToken, User
from homebake.services import sales_service, user_service
from homebake.services.user_service import UserManagementError


class TestRoleChanges:

    def test_role_change_applies_to_live_sessions(self, client, owner_headers, sales_rep):
        rep_headers = auth_headers(get_auth_token(client, sales_rep.email, PASSWORD))
        assert client.get('/api/dashboard/manager', headers=rep_headers).status_code == 403

        response = client.patch(f'/api/users/{sales_rep.id}', headers=owner_headers, json={'role': 'manager'})
        assert response.status_code == 200
        assert response.json["data"]["role"] == "manager"

        assert client.get('/api/dashboard/manager', headers=rep_headers).status_code == 200
        assert client.get('/api/auth/me', headers=rep_headers).json["data"]["role"] == "manager"

    def test_cannot_change_own_role(self, client, owner_headers, owner):
        response = client.patch(f'/api/users/{owner.id}', headers=owner_headers, json={'role': 'manager'})
        assert response.status_code == 400

    def test_unknown_role_rejected(self, client, owner_headers, manager):
        response = client.patch(f'/api/users/{manager.id}', headers=owner_headers, json={'role': 'baker'})
        assert response.status_code == 400

    def test_body_required(self, client, owner_headers, manager):
        response = client.patch(f'/api/users/{manager.id}', headers=owner_headers, json={})
        assert response.status_code == 400

    def test_last_owner_cannot_be_demoted(self, db_session, owner, manager):
        user_service.change_role(actor=owner, user_id=manager.id, role="owner")
        # Two owners now: the manager-turned-owner may demote the original owner
        user_service.change_role(actor=manager, user_id=owner.id, role="manager")

        with pytest.raises(UserManagementError, match="at least one active owner"):
            user_service._guard_last_owner(manager)


class TestActivation:

    def test_deactivation_revokes_sessions(self, client, owner_headers, sales_rep, db_session):
        rep_headers = auth_headers(get_auth_token(client, sales_rep.email, PASSWORD))

        response = client.patch(f'/api/users/{sales_rep.id}', headers=owner_headers, json={'is_active': False})
        assert response.status_code == 200
        assert response.json["data"]["is_active"] is False

        assert client.get('/api/auth/me', headers=rep_headers).status_code == 401
        assert db_session.query(SessionToken).filter_by(user_id=sales_rep.id, is_revoked=False).count() == 0
        assert get_auth_token(client, sales_rep.email, PASSWORD) is None

    def test_reactivation_allows_login(self, client, owner_headers, sales_rep):
        client.patch(f'/api/users/{sales_rep.id}', headers=owner_headers, json={'is_active': False})
        client.patch(f'/api/users/{sales_rep.id}', headers=owner_headers, json={'is_active': True})

        assert get_auth_token(client, sales_rep.email, PASSWORD) is not None

    def test_is_active_must_be_boolean(self, client, owner_headers, sales_rep):
        response = client.patch(f'/api/users/{sales_rep.id}', headers=owner_headers, json={'is_active': 'no'})
        assert response.status_code == 400

    def test_owner_cannot_deactivate_self(self, client, owner_headers, owner):
        response = client.patch(f'/api/users/{owner.id}', headers=owner_headers, json={'is_active': False})
        assert response.status_code == 400


class TestDeletion:

    def test_delete_unused_account(self, client, owner_headers, manager, db_session):
        manager_id = manager.id
        response = client.delete(f'/api/users/{manager_id}', headers=owner_headers)

        assert response.status_code == 200
        assert db_session.get(User, manager_id) is None

    def test_account_with_records_conflicts(self, client, owner_headers, sales_rep, bread_type):
        sales_service.record_sale(user=sales_rep, bread_type_id=bread_type.id, quantity=1, now=MORNING_NOW)

        response = client.delete(f'/api/users/{sales_rep.id}', headers=owner_headers)
        assert response.status_code == 409
        assert "deactivate" in response.json["error"]


class TestListing:

    def test_owner_lists_bakery_staff(self, client, owner_headers, manager, sales_rep, other_owner):
        response = client.get('/api/users', headers=owner_headers)
        emails = [u["email"] for u in response.json["data"]]

        assert emails == ["owner@sunrise.test", "manager@sunrise.test", "sales@sunrise.test"]
        assert all("password_hash" not in u for u in response.json["data"])

    def test_update_own_name(self, client, sales_headers):
        response = client.patch('/api/users/me', headers=sales_headers, json={'name': '  Samuel  '})
        assert response.status_code == 200
        assert response.json["data"]["name"] == "Samuel"

    def test_staff_online(self, client, owner_headers, manager_headers):
        data = client.get('/api/users/online', headers=manager_headers).json["data"]
        assert data["online"] == 2
        assert data["total"] == 2
