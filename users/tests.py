from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.authtoken.models import Token
from rest_framework.test import APIClient

from users.constants import Role
from users.permissions import has_role


class AuthApiTests(TestCase):
    def setUp(self):
        self.api = APIClient()
        User = get_user_model()
        self.doctor = User.objects.create_user("drcruz", email="cruz@clinic.test",
                                               password="pass12345", role=Role.DOCTOR)

    def test_login_returns_bearer_token(self):
        response = self.api.post("/auth/login", {"username": "drcruz", "password": "pass12345"}, format="json")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data["user"]["role"], Role.DOCTOR)

        self.api.credentials(HTTP_AUTHORIZATION=f"Bearer {response.data['access_token']}")
        me = self.api.get("/auth/me")
        self.assertEqual(me.status_code, 200)
        self.assertEqual(me.data["username"], "drcruz")

    def test_bad_password_is_401(self):
        response = self.api.post("/auth/login", {"username": "drcruz", "password": "nope"}, format="json")
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.data["message"], "Invalid username or password")

    def test_me_requires_token(self):
        self.assertEqual(self.api.get("/auth/me").status_code, 401)

    def test_register_creates_patient_even_if_role_is_sent(self):
        response = self.api.post("/auth/register", {
            "username": "maria",
            "email": "Maria@Example.com",
            "password": "longenough1",
            "role": Role.ADMIN,
        }, format="json")

        self.assertEqual(response.status_code, 201, response.data)
        self.assertEqual(response.data["user"]["role"], Role.USER)
        self.assertEqual(response.data["user"]["email"], "maria@example.com")
        self.assertTrue(response.data["access_token"])

    def test_register_rejects_duplicate_email(self):
        response = self.api.post("/auth/register", {
            "username": "other",
            "email": "CRUZ@clinic.test",
            "password": "longenough1",
        }, format="json")
        self.assertEqual(response.status_code, 400)
        self.assertTrue(response.data["message"].startswith("email"))

    def test_has_role(self):
        self.assertTrue(has_role(self.doctor, Role.DOCTOR, Role.ADMIN))
        self.assertFalse(has_role(self.doctor, Role.ADMIN))
        self.assertTrue(self.doctor.is_clinic_staff)


class UserManagementApiTests(TestCase):
    def setUp(self):
        self.api = APIClient()
        User = get_user_model()
        self.admin = User.objects.create_user("boss", email="boss@clinic.test",
                                              password="pass12345", role=Role.ADMIN)
        self.doctor = User.objects.create_user("drcruz", email="cruz@clinic.test",
                                               password="pass12345", role=Role.DOCTOR)
        self.patient = User.objects.create_user("maria", email="maria@example.com",
                                                password="pass12345", role=Role.USER)
        self.api.force_authenticate(user=self.admin)

    def test_admin_lists_users_by_role(self):
        response = self.api.get("/users", {"role": Role.DOCTOR})
        self.assertEqual(response.status_code, 200)
        self.assertEqual([u["username"] for u in response.data], ["drcruz"])

        everyone = self.api.get("/users")
        self.assertEqual(len(everyone.data), 3)

    def test_deactivate_signs_the_account_out(self):
        print("\n[TEST] deactivating an account drops its token and blocks login")
        Token.objects.create(user=self.patient)

        response = self.api.patch(f"/users/{self.patient.pk}/deactivate")
        self.assertEqual(response.status_code, 200, response.data)
        self.assertFalse(response.data["isActive"])

        self.patient.refresh_from_db()
        print("  - is_active after deactivate:", self.patient.is_active)
        self.assertFalse(self.patient.is_active)
        self.assertFalse(Token.objects.filter(user=self.patient).exists())

        login = APIClient().post("/auth/login", {"username": "maria", "password": "pass12345"}, format="json")
        self.assertEqual(login.status_code, 401)

        inactive = self.api.get("/users", {"isActive": "false"})
        self.assertEqual([u["username"] for u in inactive.data], ["maria"])

        response = self.api.patch(f"/users/{self.patient.pk}/activate")
        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data["isActive"])

        login = APIClient().post("/auth/login", {"username": "maria", "password": "pass12345"}, format="json")
        self.assertEqual(login.status_code, 200)

    def test_admin_cannot_deactivate_self(self):
        response = self.api.patch(f"/users/{self.admin.pk}/deactivate")
        self.assertEqual(response.status_code, 400)
        self.admin.refresh_from_db()
        self.assertTrue(self.admin.is_active)

    def test_only_admins_manage_users(self):
        self.api.force_authenticate(user=self.doctor)
        self.assertEqual(self.api.get("/users").status_code, 403)
        self.assertEqual(self.api.patch(f"/users/{self.patient.pk}/deactivate").status_code, 403)

    def test_unknown_user_is_404(self):
        self.assertEqual(self.api.patch("/users/9999/activate").status_code, 404)
