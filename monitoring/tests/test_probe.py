from smtplib import SMTPException
from unittest.mock import MagicMock, patch

from django.core import mail
from django.test import SimpleTestCase, override_settings

from monitoring.services import (
    ALERT_SUBJECT,
    check_directory_connectivity,
    notify_connection_failure,
    run_health_check,
)


class CheckDirectoryConnectivityTests(SimpleTestCase):

    @patch("monitoring.services.socket.create_connection")
    def test_reachable(self, mock_connect):
        mock_connect.return_value = MagicMock()
        status = check_directory_connectivity()
        self.assertEqual(status, {'alive': True, 'host': 'ldap.example.com', 'port': 389})
        mock_connect.assert_called_once_with(('ldap.example.com', 389), timeout=3)

    @patch("monitoring.services.socket.create_connection")
    def test_unreachable(self, mock_connect):
        mock_connect.side_effect = ConnectionRefusedError(111, "Connection refused")
        status = check_directory_connectivity()
        self.assertFalse(status['alive'])
        self.assertIn("refused", status['error'])

    @patch("monitoring.services.socket.create_connection")
    def test_explicit_ldaps_url(self, mock_connect):
        mock_connect.side_effect = TimeoutError()
        status = check_directory_connectivity("ldaps://dc01.example.com", timeout=1)
        self.assertEqual((status['host'], status['port'], status['alive']), ('dc01.example.com', 636, False))
        self.assertEqual(status['error'], 'TimeoutError')


class NotifyConnectionFailureTests(SimpleTestCase):

    def test_sends_text_and_html(self):
        self.assertTrue(notify_connection_failure('ldap.example.com', 389, '<refused>'))
        self.assertEqual(len(mail.outbox), 1)
        message = mail.outbox[0]
        self.assertEqual(message.subject, ALERT_SUBJECT)
        self.assertEqual(message.to, ['ops@example.com'])
        self.assertIn('ldap.example.com:389', message.body)
        html, mimetype = message.alternatives[0]
        self.assertEqual(mimetype, 'text/html')
        self.assertIn('&lt;refused&gt;', html)

    @override_settings(DIRECTORY_ALERT_RECIPIENTS=[])
    def test_no_recipients(self):
        self.assertFalse(notify_connection_failure('ldap.example.com', 389, 'refused'))
        self.assertEqual(len(mail.outbox), 0)

    @patch("monitoring.services.send_mail")
    def test_mail_failure_is_logged(self, mock_send):
        mock_send.side_effect = SMTPException("relay denied")
        with self.assertLogs('monitoring', level='ERROR') as logs:
            self.assertFalse(notify_connection_failure('ldap.example.com', 389, 'refused'))
        self.assertIn('relay denied', logs.output[0])


class RunHealthCheckTests(SimpleTestCase):

    @patch("monitoring.services.notify_connection_failure")
    @patch("monitoring.services.check_directory_connectivity")
    def test_alerts_only_when_down(self, mock_check, mock_notify):
        mock_check.return_value = {'alive': True, 'host': 'ldap.example.com', 'port': 389}
        run_health_check()
        mock_notify.assert_not_called()

        mock_check.return_value = {'alive': False, 'host': 'ldap.example.com', 'port': 389, 'error': 'refused'}
        run_health_check()
        mock_notify.assert_called_once_with('ldap.example.com', 389, 'refused')
