"""ディレクトリ接続設定 (settings から毎回ロード)。

起動時は AppConfig.ready() から ``load_or_raise()`` を呼び、不正/不足があれば
ImproperlyConfigured で起動を止める。
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import List, Tuple
from urllib.parse import urlparse

from django.conf import settings
from django.core.exceptions import ImproperlyConfigured


class BindFormat(str, enum.Enum):
    """バインド用プリンシパル名の組み立て方式。"""
    DN = 'dn'    # uid=<user>,<base_dn>
    UPN = 'upn'  # <user>@<domain>


class GroupMatchPolicy(str, enum.Enum):
    SUBSTRING = 'substring'
    EXACT = 'exact'


@dataclass(frozen=True)
class DirectoryConfig:
    """LDAP 実行時設定。"""
    server_url: str
    search_base: str
    domain: str
    bind_format: str = BindFormat.UPN.value
    user_attribute: str = 'sAMAccountName'
    use_ssl: bool = False
    force_starttls: bool = False
    tls_insecure: bool = False
    connect_timeout: int = 10
    receive_timeout: int = 30
    size_limit: int = 0
    group_match: str = GroupMatchPolicy.SUBSTRING.value
    report_exclude_disabled: bool = True
    report_include_never_logged_on: bool = False

    @staticmethod
    def load() -> 'DirectoryConfig':
        server_url = getattr(settings, 'LDAP_SERVER_URL', '') or ''
        return DirectoryConfig(
            server_url=server_url,
            search_base=getattr(settings, 'LDAP_SEARCH_BASE', '') or '',
            domain=getattr(settings, 'LDAP_DOMAIN', '') or '',
            bind_format=str(getattr(settings, 'LDAP_BIND_FORMAT', BindFormat.UPN.value)).lower(),
            user_attribute=getattr(settings, 'LDAP_USER_ATTRIBUTE', 'sAMAccountName') or 'sAMAccountName',
            # ldaps:// の URL なら明示設定が無くても SSL 扱い
            use_ssl=bool(getattr(settings, 'LDAP_USE_SSL', server_url.lower().startswith('ldaps://'))),
            force_starttls=bool(getattr(settings, 'LDAP_FORCE_STARTTLS', False)),
            tls_insecure=bool(getattr(settings, 'LDAP_TLS_INSECURE', False)),
            connect_timeout=int(getattr(settings, 'LDAP_CONNECT_TIMEOUT', 10)),
            receive_timeout=int(getattr(settings, 'LDAP_RECEIVE_TIMEOUT', 30)),
            size_limit=int(getattr(settings, 'LDAP_SEARCH_SIZE_LIMIT', 0)),
            group_match=str(getattr(settings, 'LDAP_GROUP_MATCH', GroupMatchPolicy.SUBSTRING.value)).lower(),
            report_exclude_disabled=bool(getattr(settings, 'LDAP_REPORT_EXCLUDE_DISABLED', True)),
            report_include_never_logged_on=bool(getattr(settings, 'LDAP_REPORT_INCLUDE_NEVER_LOGGED_ON', False)),
        )

    @classmethod
    def load_or_raise(cls) -> 'DirectoryConfig':
        cfg = cls.load()
        issues = cfg.validate()
        if issues:
            raise ImproperlyConfigured("Invalid directory configuration: " + "; ".join(issues))
        return cfg

    def validate(self) -> List[str]:
        issues: List[str] = []
        uri = self.server_url.strip().lower()
        if not uri:
            issues.append("LDAP_SERVER_URL is required")
        elif not (uri.startswith("ldap://") or uri.startswith("ldaps://")):
            issues.append("LDAP_SERVER_URL must start with ldap:// or ldaps://")
        elif not urlparse(self.server_url).hostname:
            issues.append("LDAP_SERVER_URL has no host")
        if not self.search_base.strip():
            issues.append("LDAP_SEARCH_BASE is required")
        if not self.domain.strip():
            issues.append("LDAP_DOMAIN is required")
        if self.bind_format not in {f.value for f in BindFormat}:
            issues.append("LDAP_BIND_FORMAT must be 'dn' or 'upn'")
        if self.group_match not in {p.value for p in GroupMatchPolicy}:
            issues.append("LDAP_GROUP_MATCH must be 'substring' or 'exact'")
        if not self.user_attribute.strip():
            issues.append("LDAP_USER_ATTRIBUTE must not be empty")
        if self.size_limit < 0:
            issues.append("LDAP_SEARCH_SIZE_LIMIT must be >= 0")
        if self.connect_timeout <= 0 or self.receive_timeout <= 0:
            issues.append("LDAP timeouts must be positive")
        return issues

    def host_port(self) -> Tuple[str, int]:
        """LDAP URL から host/port を抽出 (port なければ 636/389 既定)."""
        parsed = urlparse(self.server_url)
        host = parsed.hostname or self.server_url
        port = parsed.port or (636 if self.use_ssl else 389)
        return host, port
