from io import StringIO
from unittest.mock import patch

from django.core.management import call_command
from django.test import SimpleTestCase, override_settings

from .fakes import SUCCESS, entry, make_connection


class TestLdapCommandTests(SimpleTestCase):

    def test_config_only(self):
        out = StringIO()
        call_command('test_ldap', stdout=out)
        self.assertIn('ldap.example.com:389', out.getvalue())
        self.assertIn('No username/password provided', out.getvalue())

    @override_settings(LDAP_SEARCH_BASE='')
    def test_reports_config_issues(self):
        out = StringIO()
        call_command('test_ldap', stdout=out)
        self.assertIn('LDAP_SEARCH_BASE is required', out.getvalue())

    @patch("ldap3.Connection")
    @patch("ldap3.Server")
    def test_bind_group_and_report(self, mock_server, mock_conn_cls):
        admins = [entry("CN=Admin,DC=example,DC=com", {'memberOf': ["CN=Administrators,CN=Builtin,DC=example,DC=com"]})]
        mock_conn_cls.side_effect = [
            make_connection(),
            make_connection(searches=[(admins, SUCCESS)]),
            make_connection(searches=[(admins, SUCCESS), ([entry("CN=Bob", {'cn': ['Bob']})], SUCCESS)]),
        ]
        out = StringIO()
        call_command('test_ldap', username='admin', password='pw', group='Administrators', report_days=90, stdout=out)
        output = out.getvalue()
        self.assertIn('Authentication successful', output)
        self.assertIn('Member of required group: Administrators', output)
        self.assertIn('Found 1 inactive accounts', output)
        self.assertIn('last_logon=never', output)
