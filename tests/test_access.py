import unittest

import dbcase  # noqa: F401  (puts src/ on sys.path)

from auth.access import (
    SIGNIN_PATH,
    UNAUTHORIZED_PATH,
    access_category,
    has_access,
    landing_redirect,
    requires_authentication,
    resolve,
    signin_redirect,
)
from auth.tokens import ANONYMOUS, Identity

ADMIN = Identity(subject_id="a1", email="admin@example.com", role="admin")
USER = Identity(subject_id="u1", email="user@example.com", role="user")


class AccessCategoryTestCase(unittest.TestCase):
    def test_rule_table(self):
        cases = {
            "/": "public",
            "/api/auth/signin": "public",
            "/api/auth/callback": "public",
            "/api/cart": "public",
            "/api/admin/stats": "public",
            "/admin": "admin",
            "/admin/users": "admin",
            "/dashboard": "dashboard",
            "/dashboard/x": "dashboard",
            "/profile": "authenticated",
            "/checkout": "authenticated",
            "/orders/12": "authenticated",
            "/cart": "authenticated",
            "/catalog": "unknown",
            "/product/1": "unknown",
            "/welcome": "unknown",
        }
        for path, category in cases.items():
            with self.subTest(path=path):
                self.assertEqual(access_category(path), category)

    def test_requires_authentication(self):
        self.assertTrue(requires_authentication("/admin"))
        self.assertTrue(requires_authentication("/dashboard"))
        self.assertTrue(requires_authentication("/checkout"))
        self.assertFalse(requires_authentication("/"))
        self.assertFalse(requires_authentication("/api/cart"))
        self.assertFalse(requires_authentication("/catalog"))


class ResolveTestCase(unittest.TestCase):
    def test_public_paths_allowed_for_everyone(self):
        for role, auth in (("", False), ("user", True), ("admin", True)):
            with self.subTest(role=role):
                decision = resolve("/", role, auth)
                self.assertTrue(decision.allowed)
                self.assertEqual(decision.reason, "public")
                self.assertIsNone(decision.redirect_target)

    def test_unauthenticated_protected_path_redirects_to_signin(self):
        decision = resolve("/checkout", "", False)
        self.assertFalse(decision.allowed)
        self.assertEqual(decision.reason, "unauthorized")
        self.assertEqual(decision.redirect_target, f"{SIGNIN_PATH}?callbackUrl=/checkout")

    def test_callback_url_carries_query(self):
        decision = resolve("/orders", "", False, callback_url="/orders?page=2")
        self.assertEqual(
            decision.redirect_target, f"{SIGNIN_PATH}?callbackUrl=/orders%3Fpage%3D2"
        )

    def test_admin_requires_admin_role(self):
        denied = resolve("/admin", "user", True)
        self.assertFalse(denied.allowed)
        self.assertEqual(denied.reason, "insufficient_permissions")
        self.assertEqual(denied.redirect_target, UNAUTHORIZED_PATH)

        allowed = resolve("/admin/products", "admin", True)
        self.assertTrue(allowed.allowed)
        self.assertEqual(allowed.reason, "admin")

    def test_dashboard_and_authenticated_allow_any_role(self):
        for role in ("user", "admin"):
            with self.subTest(role=role):
                self.assertEqual(resolve("/dashboard", role, True).reason, "dashboard")
                self.assertEqual(resolve("/cart", role, True).reason, "authenticated")

    def test_unknown_paths_allowed(self):
        self.assertTrue(resolve("/catalog", "", False).allowed)
        self.assertTrue(resolve("/no/such/page", "", False).allowed)

    def test_signin_redirect(self):
        self.assertEqual(signin_redirect("/cart"), "/api/auth/signin?callbackUrl=/cart")


class HasAccessTestCase(unittest.TestCase):
    def test_matrix(self):
        expected = {
            ("/", ""): True,
            ("/", "user"): True,
            ("/", "admin"): True,
            ("/admin", ""): False,
            ("/admin", "user"): False,
            ("/admin", "admin"): True,
            ("/dashboard", ""): False,
            ("/dashboard", "user"): True,
            ("/dashboard", "admin"): True,
            ("/profile", ""): False,
            ("/profile", "user"): True,
            ("/checkout", "admin"): True,
            ("/api/orders", ""): True,
        }
        for (path, role), allowed in expected.items():
            with self.subTest(path=path, role=role):
                self.assertEqual(has_access(path, role), allowed)


class LandingRedirectTestCase(unittest.TestCase):
    def test_signed_in_users_land_by_role(self):
        self.assertEqual(landing_redirect("/", ADMIN), "/admin")
        self.assertEqual(landing_redirect("/welcome", ADMIN), "/admin")
        self.assertEqual(landing_redirect("/", USER), "/catalog")

    def test_no_redirect_for_anonymous_or_other_paths(self):
        self.assertIsNone(landing_redirect("/", ANONYMOUS))
        self.assertIsNone(landing_redirect("/catalog", USER))
        self.assertIsNone(landing_redirect("/admin", ADMIN))


if __name__ == "__main__":
    unittest.main()
