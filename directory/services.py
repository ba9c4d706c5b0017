"""外部 (HTTP アダプタ / 管理コマンド) へ公開するディレクトリ操作。

各操作は専用の DirectorySession を開き、async with を抜ける時点で必ず閉じる。
グループ所属・認可結果はリクエスト間で保持しない (毎回解決し直す)。
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from .authorization import ADMIN_GROUP, authorize
from .binder import authenticate
from .config import DirectoryConfig
from .exceptions import DirectoryError
from .groups import resolve_groups
from .outcomes import BindOutcome, LoginResult, LoginStatus, Principal, ReportOutcome
from .reports import generate_report
from .session import DirectorySession

logger = logging.getLogger('django.security.authentication')

_BIND_TO_LOGIN = {
    BindOutcome.INVALID_CREDENTIALS: LoginStatus.INVALID_CREDENTIALS,
    BindOutcome.CONNECTION_FAILURE: LoginStatus.CONNECTION_FAILURE,
}


class DirectoryAuthService:
    """bind / login (グループ必須) / 管理者ゲート / 休眠レポート の 4 操作。"""

    def __init__(
        self,
        config: Optional[DirectoryConfig] = None,
        session_factory: Callable[[DirectoryConfig], DirectorySession] = DirectorySession,
    ):
        self._config = config
        self._session_factory = session_factory

    def _load_config(self) -> DirectoryConfig:
        # 明示指定が無ければ操作ごとに settings から読む
        return self._config or DirectoryConfig.load()

    async def bind(self, username: str, password: str) -> BindOutcome:
        cfg = self._load_config()
        principal = Principal.from_raw(username)
        async with self._session_factory(cfg) as session:
            return await authenticate(session, principal, password, cfg)

    async def login(self, username: str, password: str, group: Optional[str] = None) -> LoginResult:
        """バインドし、group 指定時はその所属を確認する。"""
        cfg = self._load_config()
        principal = Principal.from_raw(username)
        async with self._session_factory(cfg) as session:
            outcome = await authenticate(session, principal, password, cfg)
            if outcome is not BindOutcome.AUTHENTICATED:
                return LoginResult(_BIND_TO_LOGIN[outcome], principal.sanitized_identifier)
            if group is None:
                return LoginResult(LoginStatus.SUCCESS, principal.sanitized_identifier)
            try:
                groups = await resolve_groups(
                    session, cfg.search_base, principal.sanitized_identifier,
                    identifier_attribute=cfg.user_attribute,
                )
            except DirectoryError as e:
                logger.warning(
                    "LDAP group lookup failed | user=%s group=%s error=%s",
                    principal.sanitized_identifier, group, e.detail
                )
                return LoginResult(LoginStatus.PROTOCOL_ERROR, principal.sanitized_identifier)
            decision = authorize(groups, group, policy=cfg.group_match)
            if not decision.granted:
                logger.warning(
                    "LDAP authorization denied | user=%s group=%s reason=%s",
                    principal.sanitized_identifier, group, decision.reason
                )
                return LoginResult(LoginStatus.AUTHORIZATION_DENIED, principal.sanitized_identifier)
            logger.info("LDAP group login success | user=%s group=%s", principal.sanitized_identifier, group)
            return LoginResult(LoginStatus.SUCCESS, principal.sanitized_identifier)

    async def authorize_admin(self, username: str, password: str) -> LoginResult:
        return await self.login(username, password, ADMIN_GROUP)

    async def generate_report(
        self,
        username: str,
        password: str,
        days_inactive: int,
        now: Optional[datetime] = None,
    ) -> ReportOutcome:
        cfg = self._load_config()
        principal = Principal.from_raw(username)
        async with self._session_factory(cfg) as session:
            return await generate_report(session, cfg, principal, password, days_inactive, now)
