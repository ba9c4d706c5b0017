import time

from django.core.management.base import BaseCommand

from monitoring.services import run_health_check


class Command(BaseCommand):
    help = 'Probe the LDAP server and e-mail an alert when it is unreachable'

    def add_arguments(self, parser):
        parser.add_argument('--interval', type=int, default=0,
                            help='Repeat every N seconds (0 = run once)')

    def handle(self, *args, **options):
        interval = options.get('interval') or 0
        while True:
            status = run_health_check()
            target = f"{status['host']}:{status['port']}"
            if status['alive']:
                self.stdout.write(self.style.SUCCESS(f'LDAP reachable: {target}'))
            else:
                self.stdout.write(self.style.ERROR(f'LDAP unreachable: {target} ({status.get("error")})'))
            if interval <= 0:
                return
            time.sleep(interval)
