from asgiref.sync import async_to_sync
from django.core.management.base import BaseCommand

from directory.config import DirectoryConfig
from directory.outcomes import BindOutcome
from directory.services import DirectoryAuthService


class Command(BaseCommand):
    help = 'Test LDAP configuration, authentication, group membership and inactivity report'

    def add_arguments(self, parser):
        parser.add_argument('--username', type=str, help='Username to test')
        parser.add_argument('--password', type=str, help='Password to test')
        parser.add_argument('--group', type=str, help='Required group to check after bind')
        parser.add_argument('--report-days', type=int, help='Run the inactivity report (admin credentials required)')

    def handle(self, *args, **options):
        username = options.get('username')
        password = options.get('password')
        group = options.get('group')
        report_days = options.get('report_days')

        cfg = DirectoryConfig.load()
        host, port = cfg.host_port()
        self.stdout.write('Testing LDAP configuration...')
        self.stdout.write(f'LDAP Server URL: {cfg.server_url or "Not configured"} ({host}:{port})')
        self.stdout.write(f'LDAP Domain: {cfg.domain or "Not configured"}')
        self.stdout.write(f'LDAP Search Base: {cfg.search_base or "Not configured"}')
        self.stdout.write(f'LDAP Bind Format: {cfg.bind_format}  Group Match: {cfg.group_match}')
        # 起動時検証 (DirectoryConfigApp.ready) 後に settings が差し替えられた場合のみ該当する
        issues = cfg.validate()
        if issues:
            for issue in issues:
                self.stdout.write(self.style.ERROR(f'Config issue: {issue}'))
            return

        if not (username and password):
            self.stdout.write(self.style.WARNING('No username/password provided. Use --username and --password.'))
            self._print_usage()
            return

        service = DirectoryAuthService(cfg)
        self.stdout.write(f'Testing authentication for user: {username}')
        outcome = async_to_sync(service.bind)(username, password)
        if outcome is BindOutcome.AUTHENTICATED:
            self.stdout.write(self.style.SUCCESS('Authentication successful'))
        else:
            # 詳細 (DN / エラー本文) はログ側に出力済み
            self.stdout.write(self.style.ERROR(f'Authentication failed: {outcome.value}'))
            return

        if group:
            result = async_to_sync(service.login)(username, password, group)
            if result.ok:
                self.stdout.write(self.style.SUCCESS(f'Member of required group: {group}'))
            else:
                self.stdout.write(self.style.ERROR(f'Group check failed: {result.status.value}'))

        if report_days:
            self.stdout.write(f'\nRunning inactivity report (days={report_days})...')
            report = async_to_sync(service.generate_report)(username, password, report_days)
            if not report.ok:
                self.stdout.write(self.style.ERROR(f'Report failed: {report.status.value} - {report.message}'))
                return
            self.stdout.write(f'Found {len(report.records)} inactive accounts:')
            for record in report.records[:20]:
                row = record.to_dict()
                self.stdout.write(f'  - {row["display_name"]} <{row["email"] or "-"}> last_logon={row["last_logon"]}')

    def _print_usage(self):
        self.stdout.write('\nUsage examples:')
        self.stdout.write('  python manage.py test_ldap --username testuser --password testpass')
        self.stdout.write('  python manage.py test_ldap --username admin --password pass --group VPN_Users')
        self.stdout.write('  python manage.py test_ldap --username admin --password pass --report-days 90')
        self.stdout.write('  python manage.py test_ldap  # Just test configuration')
