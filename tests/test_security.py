import unittest
from unittest import mock

from coach_pickup import security
from coach_pickup.repo import ProfileRepo
from coach_pickup.security import hash_password, verify_password, sign_token, verify_token

from base import PickupAPITestCase


class PasswordTestCase(unittest.TestCase):
    def test_hash_and_verify(self) -> None:
        stored = hash_password("s3cret", iterations=1000)
        self.assertTrue(stored.startswith("pbkdf2_sha256$1000$"))
        self.assertTrue(verify_password("s3cret", stored))
        self.assertFalse(verify_password("wrong", stored))

    def test_malformed_hash(self) -> None:
        self.assertFalse(verify_password("x", "not-a-hash"))
        self.assertFalse(verify_password("x", None))


class TokenTestCase(unittest.TestCase):
    def test_round_trip(self) -> None:
        token = sign_token("0b9f8c2e-1111-4222-8333-944455556666")
        self.assertEqual(verify_token(token), "0b9f8c2e-1111-4222-8333-944455556666")

    def test_other_secret_rejected(self) -> None:
        token = sign_token("user-1")
        with mock.patch.object(security.config, "get_secret_key", return_value="another-secret"):
            self.assertIsNone(verify_token(token))

    def test_expired(self) -> None:
        token = sign_token("user-1", days_valid=-1)
        self.assertIsNone(verify_token(token))

    def test_garbage(self) -> None:
        self.assertIsNone(verify_token("garbage"))
        self.assertIsNone(verify_token("a.b.c"))


class LoginTestCase(PickupAPITestCase):
    def setUp(self) -> None:
        super().setUp()
        ProfileRepo.create("login@example.com", hash_password("pw", iterations=1000), "coach", "Lee")

    def test_login_sets_cookie(self) -> None:
        response = self.client.post("/auth/login", data={"email": "login@example.com", "password": "pw"})
        self.assertEqual(response.status_code, 200)
        self.assertIn("auth_token", response.cookies)
        self.assertEqual(response.json()["profile"]["role"], "coach")

        me = self.client.get("/auth/me", headers={"Authorization": f"Bearer {response.json()['token']}"})
        self.assertEqual(me.json()["user"]["email"], "login@example.com")

    def test_login_wrong_password(self) -> None:
        response = self.client.post("/auth/login", data={"email": "login@example.com", "password": "nope"})
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.json()["message"], "Invalid credentials")

    def test_me_anonymous(self) -> None:
        self.assertEqual(self.client.get("/auth/me").json(), {"authenticated": False})


if __name__ == "__main__":
    unittest.main()
