# users/tests/test_me.py

from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework.test import APIClient

from permissions.roles import (
    ALL_CAPABILITIES,
    CAP_CHEQUES_CANCEL,
    CAP_LEDGER_POST,
    CAP_LEDGER_VIEW,
    PRIVILEGED_CAPABILITIES,
    capabilities_for_role,
    effective_capabilities_for,
)

User = get_user_model()


class MeEndpointTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.cashier = User.objects.create_user(
            email="cashier@example.com",
            password="pass",
            role="cashier",
            first_name="Front",
        )

    def test_requires_authentication(self):
        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, 401)

    def test_returns_role_and_capabilities(self):
        self.client.force_authenticate(self.cashier)

        res = self.client.get("/api/auth/me/")

        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["email"], "cashier@example.com")
        self.assertEqual(res.data["role"], "cashier")
        self.assertEqual(res.data["capabilities"], sorted([CAP_LEDGER_POST, CAP_LEDGER_VIEW]))

    def test_jwt_login_flow(self):
        res = self.client.post(
            "/api/auth/jwt/create/",
            {"email": "cashier@example.com", "password": "pass"},
            format="json",
        )
        self.assertEqual(res.status_code, 200, res.data)

        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {res.data['access']}")
        res = self.client.get("/api/auth/me/")
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.data["role"], "cashier")


class RoleCapabilityTests(TestCase):
    def test_privileged_actions_are_limited_to_admin_and_manager(self):
        for role in ("admin", "manager"):
            self.assertTrue(PRIVILEGED_CAPABILITIES <= capabilities_for_role(role))
        for role in ("accountant", "cashier"):
            self.assertFalse(PRIVILEGED_CAPABILITIES & capabilities_for_role(role))
        self.assertIn(CAP_CHEQUES_CANCEL, PRIVILEGED_CAPABILITIES)

    def test_superuser_gets_everything(self):
        root = User.objects.create_superuser(email="root@example.com", password="pass")
        self.assertEqual(effective_capabilities_for(root), ALL_CAPABILITIES)

    def test_unknown_role_gets_nothing(self):
        self.assertEqual(capabilities_for_role("viewer"), set())


class SeedUsersCommandTests(TestCase):
    def test_seeds_one_user_per_role(self):
        call_command("seed_users", "--password", "Secret123", stdout=StringIO())

        self.assertEqual(
            set(User.objects.values_list("role", flat=True)),
            {"admin", "manager", "accountant", "cashier"},
        )
        admin = User.objects.get(email="admin@example.com")
        self.assertTrue(admin.is_superuser)
        self.assertTrue(admin.check_password("Secret123"))

    def test_is_idempotent(self):
        call_command("seed_users", stdout=StringIO())
        call_command("seed_users", stdout=StringIO())
        self.assertEqual(User.objects.count(), 4)
