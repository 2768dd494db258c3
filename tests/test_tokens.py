import unittest
from datetime import timedelta

import dbcase  # noqa: F401  (puts src/ on sys.path)

from jose import jwt

from auth.tokens import ANONYMOUS, Identity, bearer_token, issue_token, read_identity
from utils import config

JANE = Identity(subject_id="sub-1", email="jane@example.com", name="Jane", role="user")


class TokenTestCase(unittest.TestCase):
    def test_issue_and_read_round_trip(self):
        token = issue_token(JANE)
        self.assertEqual(read_identity(token), JANE)
        self.assertTrue(read_identity(token).is_authenticated)
        self.assertFalse(read_identity(token).is_admin)

    def test_admin_role_is_carried(self):
        admin = Identity(subject_id="a", email="admin@example.com", role="admin")
        self.assertTrue(read_identity(issue_token(admin)).is_admin)

    def test_missing_or_garbage_token_is_anonymous(self):
        self.assertEqual(read_identity(None), ANONYMOUS)
        self.assertEqual(read_identity(""), ANONYMOUS)
        self.assertEqual(read_identity("not-a-jwt"), ANONYMOUS)
        self.assertFalse(ANONYMOUS.is_authenticated)

    def test_expired_token_is_anonymous(self):
        token = issue_token(JANE, expires_delta=timedelta(seconds=-5))
        self.assertEqual(read_identity(token), ANONYMOUS)

    def test_wrong_secret_is_anonymous(self):
        token = issue_token(JANE, secret="another-secret")
        self.assertEqual(read_identity(token), ANONYMOUS)
        self.assertEqual(read_identity(token, secret="another-secret"), JANE)

    def test_unknown_role_claim_is_anonymous(self):
        token = jwt.encode(
            {"sub": "x", "role": "superuser"}, config.SECRET_KEY, algorithm=config.ALGORITHM
        )
        self.assertEqual(read_identity(token), ANONYMOUS)

    def test_cannot_issue_without_role_or_subject(self):
        with self.assertRaises(ValueError):
            issue_token(Identity(subject_id="x", role=""))
        with self.assertRaises(ValueError):
            issue_token(Identity(role="user"))

    def test_bearer_token(self):
        self.assertEqual(bearer_token("Bearer abc"), "abc")
        self.assertIsNone(bearer_token("Basic abc"))
        self.assertIsNone(bearer_token("Bearer "))
        self.assertIsNone(bearer_token(None))


if __name__ == "__main__":
    unittest.main()
