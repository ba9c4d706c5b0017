"""資格情報バインド (プリンシパル名の組み立て + bind)。"""
from __future__ import annotations

import logging

from .config import BindFormat, DirectoryConfig
from .outcomes import BindOutcome, Principal
from .session import DirectorySession

logger = logging.getLogger('django.security.authentication')


def build_principal_name(principal: Principal, cfg: DirectoryConfig) -> str:
    """設定の bind 方式に従ってバインド名を返す (必ずサニタイズ済み識別子を使う).

    例:
      - dn:  "alice" base=DC=example,DC=com → "uid=alice,DC=example,DC=com"
      - upn: "alice" domain=example.com    → "alice@example.com"
    """
    if BindFormat(cfg.bind_format) is BindFormat.DN:
        return f"uid={principal.sanitized_identifier},{cfg.search_base}"
    return f"{principal.sanitized_identifier}@{cfg.domain}"


async def bind_principal(session: DirectorySession, principal_name: str, password: str) -> BindOutcome:
    # 空パスワードは匿名バインド扱いになり得るためサーバへ送らない
    if not password:
        logger.warning("LDAP bind rejected locally (empty password) | bind_user=%s", principal_name)
        return BindOutcome.INVALID_CREDENTIALS
    return await session.bind(principal_name, password)


async def authenticate(
    session: DirectorySession,
    principal: Principal,
    password: str,
    cfg: DirectoryConfig,
) -> BindOutcome:
    if not principal.sanitized_identifier.strip():
        logger.warning("LDAP bind rejected locally (empty identifier) | raw=%r", principal.raw_identifier)
        return BindOutcome.INVALID_CREDENTIALS
    return await bind_principal(session, build_principal_name(principal, cfg), password)
