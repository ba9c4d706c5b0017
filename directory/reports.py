"""最終ログオン日時に基づく休眠アカウントレポート。

流れ:
  1. 管理者としてバインド (失敗 → AUTH_FAILURE)
  2. グループ解決 + administrators 認可 (失敗 → AUTHORIZATION_DENIED, 理由は返さない)
  3. now - days_inactive 日をディレクトリ時刻へ変換
  4. (objectClass=user) AND (lastLogonTimestamp <= 閾値) でサブツリー検索
  5. lastLogonTimestamp を日時へ逆変換 (属性無しは "never")
  6. サーバ返却順のまま集約
  7. サイズ制限超過 → SIZE_LIMIT_EXCEEDED (部分結果で成功扱いにしない)
  8. その他の検索エラー → PROTOCOL_ERROR
接続のクローズは呼び出し側のセッション (async with) が 1 回だけ行う。
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple, Union

from .authorization import ADMIN_GROUP, authorize
from .binder import authenticate
from .config import DirectoryConfig
from .entries import first_value
from .exceptions import DirectoryError, DirectoryProtocolError, SizeLimitExceededError
from .groups import resolve_groups
from .outcomes import (
    NEVER,
    BindOutcome,
    InactiveAccountRecord,
    Principal,
    ReportOutcome,
    ReportStatus,
)
from .session import DirectorySession
from .timestamps import directory_to_datetime, inactivity_threshold

REPORT_ATTRIBUTES = ['cn', 'mail', 'lastLogonTimestamp']
# userAccountControl の ACCOUNTDISABLE (0x2) ビット
DISABLED_ACCOUNT_CLAUSE = '(!(userAccountControl:1.2.840.113556.1.4.803:=2))'

logger = logging.getLogger('django.security.authentication')
dbg_logger = logging.getLogger('directory.reports')


def build_inactivity_filter(
    threshold: int,
    *,
    exclude_disabled: bool = True,
    include_never_logged_on: bool = False,
) -> str:
    logon_clause = f"(lastLogonTimestamp<={threshold})"
    if include_never_logged_on:
        logon_clause = f"(|{logon_clause}(!(lastLogonTimestamp=*)))"
    clauses = ['(objectClass=user)', logon_clause]
    if exclude_disabled:
        clauses.append(DISABLED_ACCOUNT_CLAUSE)
    return '(&' + ''.join(clauses) + ')'


def read_last_logon(entry: Dict[str, Any]) -> Union[datetime, str]:
    """lastLogonTimestamp を UTC の datetime に変換 (属性無し/0 は "never")."""
    value = first_value(entry, 'lastLogonTimestamp', raw_first=True)
    if value is None:
        return NEVER
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    try:
        ticks = int(str(value).strip())
    except ValueError:
        raise DirectoryProtocolError(f"malformed lastLogonTimestamp: {value!r}")
    if ticks <= 0:
        return NEVER
    try:
        return directory_to_datetime(ticks)
    except OverflowError:
        raise DirectoryProtocolError(f"lastLogonTimestamp out of range: {ticks}")


def to_record(entry: Dict[str, Any]) -> InactiveAccountRecord:
    display_name = first_value(entry, 'cn')
    email = first_value(entry, 'mail')
    return InactiveAccountRecord(
        display_name=str(display_name) if display_name is not None else None,
        email=str(email) if email is not None else None,
        last_logon=read_last_logon(entry),
    )


async def search_inactive_accounts(
    session: DirectorySession,
    cfg: DirectoryConfig,
    days_inactive: int,
    now: Optional[datetime] = None,
) -> Tuple[InactiveAccountRecord, ...]:
    threshold = inactivity_threshold(days_inactive, now)
    search_filter = build_inactivity_filter(
        threshold,
        exclude_disabled=cfg.report_exclude_disabled,
        include_never_logged_on=cfg.report_include_never_logged_on,
    )
    entries = await session.search(cfg.search_base, search_filter, REPORT_ATTRIBUTES)
    records = tuple(to_record(entry) for entry in entries)
    dbg_logger.debug(
        "LDAP inactivity search done | days=%d threshold=%d records=%d", days_inactive, threshold, len(records)
    )
    return records


async def generate_report(
    session: DirectorySession,
    cfg: DirectoryConfig,
    principal: Principal,
    password: str,
    days_inactive: int,
    now: Optional[datetime] = None,
) -> ReportOutcome:
    if days_inactive < 1:
        raise ValueError("days_inactive must be >= 1")

    # (1) 管理者バインド
    outcome = await authenticate(session, principal, password, cfg)
    if outcome is not BindOutcome.AUTHENTICATED:
        logger.info("LDAP report auth failure | user=%s outcome=%s", principal.sanitized_identifier, outcome.value)
        return ReportOutcome(ReportStatus.AUTH_FAILURE)

    # (2) グループ解決 + 認可
    try:
        groups = await resolve_groups(
            session, cfg.search_base, principal.sanitized_identifier,
            identifier_attribute=cfg.user_attribute,
        )
    except DirectoryError as e:
        logger.warning("LDAP report group lookup failed | user=%s error=%s", principal.sanitized_identifier, e.detail)
        return ReportOutcome(ReportStatus.PROTOCOL_ERROR, detail=e.detail)
    decision = authorize(groups, ADMIN_GROUP, policy=cfg.group_match)
    if not decision.granted:
        logger.warning(
            "LDAP report authorization denied | user=%s reason=%s", principal.sanitized_identifier, decision.reason
        )
        return ReportOutcome(ReportStatus.AUTHORIZATION_DENIED)

    # (3)-(8) 休眠アカウント検索
    try:
        records = await search_inactive_accounts(session, cfg, days_inactive, now)
    except SizeLimitExceededError as e:
        logger.warning(
            "LDAP report size limit exceeded | user=%s days=%d detail=%s",
            principal.sanitized_identifier, days_inactive, e.detail
        )
        return ReportOutcome(ReportStatus.SIZE_LIMIT_EXCEEDED)
    except DirectoryError as e:
        logger.warning(
            "LDAP report search failed | user=%s days=%d detail=%s",
            principal.sanitized_identifier, days_inactive, e.detail
        )
        return ReportOutcome(ReportStatus.PROTOCOL_ERROR, detail=e.detail)

    logger.info(
        "LDAP report generated | user=%s days=%d records=%d",
        principal.sanitized_identifier, days_inactive, len(records)
    )
    return ReportOutcome(ReportStatus.SUCCESS, records=records)
