"""
Role gating and tenant isolation.

Owners manage everything, managers run production, sales reps record
sales. Requests never see another bakery's data.
"""

import pytest

from conftest import PASSWORD, auth_headers, get_auth_token
from homebake.services.authz_service import can_access_page, page_redirect, resolve_role
from homebake.services.session_service import SessionContext


# =============================================================================
# AUTHENTICATION REQUIRED
# =============================================================================


@pytest.mark.parametrize("method,path", [
    ("get", "/api/auth/me"),
    ("get", "/api/bread-types"),
    ("post", "/api/sales"),
    ("get", "/api/sales/mine"),
    ("get", "/api/batches"),
    ("get", "/api/inventory"),
    ("get", "/api/dashboard/owner"),
    ("get", "/api/reports"),
    ("post", "/api/invites"),
    ("get", "/api/users"),
    ("get", "/api/notifications/preferences"),
])
def test_requires_authentication(client, db_session, method, path):
    response = getattr(client, method)(path)
    assert response.status_code == 401


# =============================================================================
# ROLE GATING
# =============================================================================


@pytest.mark.parametrize("method,path", [
    ("get", "/api/dashboard/owner"),
    ("get", "/api/dashboard/manager"),
    ("get", "/api/users"),
    ("post", "/api/invites"),
    ("post", "/api/bread-types"),
    ("get", "/api/batches"),
    ("post", "/api/batches"),
    ("post", "/api/production"),
    ("get", "/api/sales"),
    ("get", "/api/reports"),
    ("get", "/api/reports/export.csv"),
    ("get", "/api/notifications/activities"),
])
def test_sales_rep_forbidden(client, sales_headers, method, path):
    response = getattr(client, method)(path, headers=sales_headers, json={})
    assert response.status_code == 403
    assert response.json["error"] == "Permission denied"


@pytest.mark.parametrize("method,path", [
    ("get", "/api/dashboard/owner"),
    ("get", "/api/users"),
    ("post", "/api/invites"),
    ("post", "/api/bread-types"),
    ("get", "/api/notifications/activities"),
])
def test_manager_forbidden_from_owner_operations(client, manager_headers, method, path):
    response = getattr(client, method)(path, headers=manager_headers, json={})
    assert response.status_code == 403


def test_manager_can_run_production(client, manager_headers, bread_type):
    response = client.post('/api/production', headers=manager_headers, json={
        'bread_type_id': bread_type.id,
        'quantity': 12,
    })
    assert response.status_code == 201


def test_sales_dashboard_is_for_sales_reps_only(client, owner_headers, sales_headers):
    assert client.get('/api/dashboard/sales', headers=owner_headers).status_code == 403
    assert client.get('/api/dashboard/sales', headers=sales_headers).status_code == 200


def test_every_role_can_read_catalog_and_inventory(client, bread_type, owner_headers, manager_headers, sales_headers):
    for headers in (owner_headers, manager_headers, sales_headers):
        assert client.get('/api/bread-types', headers=headers).status_code == 200
        assert client.get('/api/inventory', headers=headers).status_code == 200


# =============================================================================
# PAGE GATING
# =============================================================================


class TestPageRedirects:

    def test_unauthenticated_goes_to_login(self, client, db_session):
        response = client.get('/dashboard/owner')
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/login")

    def test_dashboard_root_goes_to_role_home(self, client, owner):
        get_auth_token(client, owner.email, PASSWORD)
        response = client.get('/dashboard')
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/dashboard/owner")

    def test_sales_rep_redirected_from_owner_pages(self, client, sales_rep):
        get_auth_token(client, sales_rep.email, PASSWORD)
        response = client.get('/dashboard/users')
        assert response.status_code == 302
        assert response.headers["Location"].endswith("/dashboard/sales")

    def test_manager_redirected_from_owner_dashboard(self, client, manager):
        get_auth_token(client, manager.email, PASSWORD)
        response = client.get('/dashboard/owner')
        assert response.headers["Location"].endswith("/dashboard/manager")

    def test_allowed_page_renders(self, client, owner):
        get_auth_token(client, owner.email, PASSWORD)
        response = client.get('/dashboard/users')
        assert response.status_code == 200
        assert b"data-page='users'" in response.data

    def test_unknown_section_goes_home(self, client, manager):
        get_auth_token(client, manager.email, PASSWORD)
        response = client.get('/dashboard/nonexistent')
        assert response.headers["Location"].endswith("/dashboard/manager")


class TestRoleResolution:

    def test_claim_wins_over_row(self, owner):
        context = SessionContext(user=owner, session=None, bakery_id=owner.bakery_id, role_claim="manager")
        assert resolve_role(context) == "manager"

    def test_falls_back_to_user_row(self, manager):
        context = SessionContext(user=manager, session=None, bakery_id=manager.bakery_id, role_claim=None)
        assert resolve_role(context) == "manager"

    def test_defaults_to_lowest_privilege(self, manager):
        manager.role = None
        context = SessionContext(user=manager, session=None, bakery_id=manager.bakery_id, role_claim="superuser")
        assert resolve_role(context) == "sales_rep"
        assert resolve_role(None) == "sales_rep"

    def test_page_access_table(self):
        assert can_access_page("owner", "users")
        assert not can_access_page("manager", "users")
        assert can_access_page("sales_rep", "inventory")
        assert not can_access_page("owner", "sales")
        assert page_redirect(None, "owner") == "/login"
        assert page_redirect("manager", "production") is None


# =============================================================================
# TENANT ISOLATION
# =============================================================================


class TestTenantIsolation:

    def test_other_bakery_bread_type_is_not_found(self, client, bread_type, other_owner):
        headers = auth_headers(get_auth_token(client, other_owner.email, PASSWORD))

        assert client.get(f'/api/bread-types/{bread_type.id}', headers=headers).status_code == 404
        assert client.get('/api/bread-types', headers=headers).json["data"] == []

    def test_cannot_sell_other_bakery_bread(self, client, bread_type, other_owner):
        headers = auth_headers(get_auth_token(client, other_owner.email, PASSWORD))

        response = client.post('/api/sales', headers=headers, json={'bread_type_id': bread_type.id, 'quantity': 1})
        assert response.status_code == 404

    def test_cannot_manage_other_bakery_users(self, client, sales_rep, other_owner):
        headers = auth_headers(get_auth_token(client, other_owner.email, PASSWORD))

        response = client.patch(f'/api/users/{sales_rep.id}', headers=headers, json={'role': 'manager'})
        assert response.status_code == 404

    def test_same_bread_name_allowed_across_bakeries(self, client, bread_type, other_owner):
        headers = auth_headers(get_auth_token(client, other_owner.email, PASSWORD))

        response = client.post('/api/bread-types', headers=headers, json={
            'name': bread_type.name,
            'size': 'large',
            'unit_price_cents': 45000,
        })
        assert response.status_code == 201
