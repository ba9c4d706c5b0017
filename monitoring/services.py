"""ディレクトリサーバの死活確認 (TCP 接続) と障害通知メール。"""
import logging
import socket
from datetime import datetime

from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone
from django.utils.html import escape

from directory.config import DirectoryConfig

logger = logging.getLogger('monitoring')

DEFAULT_PROBE_TIMEOUT = 3

ALERT_SUBJECT = '[ALERT] LDAP サーバへの接続に失敗しました'

ALERT_TEXT = (
    'ディレクトリ監視: LDAP サーバへの接続に失敗しました。\n'
    '日時: {when}\n'
    'ドメイン: {domain}\n'
    '接続先: {host}:{port}\n'
    'エラー: {error}\n'
)

ALERT_HTML = """\
<div style="font-family: sans-serif; max-width: 600px; margin: 0 auto; border: 1px solid #e0e0e0;">
  <div style="background-color: #004a8d; padding: 16px; color: #ffffff;">
    <h2 style="margin: 0;">LDAP 接続障害</h2>
  </div>
  <div style="padding: 24px;">
    <p>自動監視により <strong>LDAP / Active Directory</strong> サーバへ接続できないことを検知しました。</p>
    <table style="width: 100%; border-collapse: collapse;">
      <tr><td><strong>日時</strong></td><td>{when}</td></tr>
      <tr><td><strong>ドメイン</strong></td><td>{domain}</td></tr>
      <tr><td><strong>接続先</strong></td><td>{host}:{port}</td></tr>
      <tr><td><strong>エラー</strong></td><td style="color: #d9534f; font-family: monospace;">{error}</td></tr>
    </table>
    <p style="color: #777; font-size: 12px;">ログイン・レポート API の認証に影響する可能性があります。</p>
  </div>
</div>
"""


def check_directory_connectivity(server_url=None, timeout=None):
    """LDAP URL の host/port に TCP 接続できるか確認する。

    Returns:
        dict: {'alive': bool, 'host': str, 'port': int} (失敗時は 'error' を追加)
    """
    cfg = DirectoryConfig.load()
    if server_url:
        cfg = DirectoryConfig(server_url=server_url, search_base=cfg.search_base, domain=cfg.domain,
                              use_ssl=server_url.lower().startswith('ldaps://'))
    if timeout is None:
        timeout = getattr(settings, 'DIRECTORY_PROBE_TIMEOUT', DEFAULT_PROBE_TIMEOUT)
    host, port = cfg.host_port()
    try:
        with socket.create_connection((host, port), timeout=timeout):
            pass
    except OSError as e:
        logger.warning("LDAP probe failed | host=%s port=%s error=%s", host, port, e)
        return {'alive': False, 'host': host, 'port': port, 'error': str(e) or type(e).__name__}
    logger.debug("LDAP probe ok | host=%s port=%s", host, port)
    return {'alive': True, 'host': host, 'port': port}


def notify_connection_failure(host, port, error, recipients=None, when=None):
    """接続障害メールを送信する。

    送信失敗はログのみ (呼び出し元の監視ループは止めない)。

    Returns:
        bool: 送信できたら True
    """
    recipients = list(recipients if recipients is not None else getattr(settings, 'DIRECTORY_ALERT_RECIPIENTS', []))
    if not recipients:
        logger.warning("LDAP alert skipped (no recipients) | host=%s port=%s", host, port)
        return False
    when = when or timezone.localtime()
    if isinstance(when, datetime):
        when = when.strftime('%Y-%m-%d %H:%M:%S %Z').strip()
    domain = getattr(settings, 'LDAP_DOMAIN', '') or '-'
    values = {'when': when, 'domain': domain, 'host': host, 'port': port, 'error': error}
    try:
        send_mail(
            ALERT_SUBJECT,
            ALERT_TEXT.format(**values),
            settings.DEFAULT_FROM_EMAIL,
            recipients,
            html_message=ALERT_HTML.format(**{k: escape(v) for k, v in values.items()}),
        )
    except Exception as e:
        logger.error("LDAP alert mail failed | recipients=%s error=%s: %s", recipients, type(e).__name__, e)
        return False
    logger.info("LDAP alert mail sent | recipients=%s host=%s port=%s", recipients, host, port)
    return True


def run_health_check():
    """死活確認し、停止していれば通知する。結果 dict を返す。"""
    status = check_directory_connectivity()
    if status['alive']:
        logger.info("LDAP connection stable | domain=%s", getattr(settings, 'LDAP_DOMAIN', ''))
        return status
    logger.error("LDAP unreachable | host=%s port=%s", status['host'], status['port'])
    notify_connection_failure(status['host'], status['port'], status.get('error', 'TCP connect failed'))
    return status
