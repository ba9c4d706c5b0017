"""memberOf によるグループ所属の解決。"""
from __future__ import annotations

import logging

from .entries import attribute_values
from .outcomes import GroupMembershipSet
from .session import DirectorySession

MEMBER_OF = 'memberOf'

dbg_logger = logging.getLogger('directory.groups')


async def resolve_groups(
    session: DirectorySession,
    base_dn: str,
    sanitized_identifier: str,
    *,
    identifier_attribute: str = 'sAMAccountName',
) -> GroupMembershipSet:
    """識別子に一致するエントリの memberOf を小文字化した DN 集合で返す。

    一致 0 件は空集合 (エラーではない)。複数件一致した場合も全エントリの値を合算する。
    検索ストリームのエラーは DirectoryProtocolError / SizeLimitExceededError として送出。
    """
    search_filter = f"({identifier_attribute}={sanitized_identifier})"
    entries = await session.search(base_dn, search_filter, [MEMBER_OF])
    groups = set()
    for entry in entries:
        for value in attribute_values(entry, MEMBER_OF):
            groups.add(str(value).strip().lower())
    dbg_logger.debug(
        "LDAP groups resolved | filter=%s entries=%d groups=%d", search_filter, len(entries), len(groups)
    )
    return frozenset(groups)
