import jwt
from django.apps import apps
from django.core.exceptions import ImproperlyConfigured
from django.test import SimpleTestCase, override_settings

from accounts.tokens import decode_token, issue_token


class TokenTests(SimpleTestCase):

    def test_claims(self):
        claims = decode_token(issue_token("alice"))
        self.assertEqual(claims['sub'], "alice")
        self.assertEqual(claims['name'], "alice")
        self.assertEqual(claims['company'], "Example Corp")
        self.assertEqual(claims['exp'] - claims['iat'], 8 * 3600)

    def test_extra_claims(self):
        self.assertEqual(decode_token(issue_token("alice", group="VPN_Users"))['group'], "VPN_Users")

    @override_settings(JWT_COMPANY_CLAIM="")
    def test_company_claim_is_optional(self):
        self.assertNotIn('company', decode_token(issue_token("alice")))

    def test_tampered_token_is_rejected(self):
        token = jwt.encode({'sub': 'alice'}, 'another-secret-0123456789-abcdefghij', algorithm='HS256')
        with self.assertRaises(jwt.InvalidTokenError):
            decode_token(token)


class AccountsConfigTests(SimpleTestCase):

    @override_settings(JWT_SECRET="short")
    def test_short_secret_stops_startup(self):
        with self.assertRaises(ImproperlyConfigured):
            apps.get_app_config('accounts').ready()
