"""グループ所属による認可判定。

既定は部分一致: いずれかの DN が ``cn=<必要グループ名 (小文字)>`` を含めば許可。
同名テキストを含む上位 OU 名にも一致する緩い判定であることは承知の上で維持し、
運用側が LDAP_GROUP_MATCH=exact を選んだ場合のみ先頭 RDN の完全一致で判定する。
"""
from __future__ import annotations

from typing import Iterable

from .config import GroupMatchPolicy
from .outcomes import AuthorizationDecision

ADMIN_GROUP = 'administrators'


def _first_rdn(dn: str) -> str:
    return dn.split(',', 1)[0].strip()


def authorize(
    groups: Iterable[str],
    required_group: str,
    *,
    policy: str = GroupMatchPolicy.SUBSTRING.value,
) -> AuthorizationDecision:
    required = (required_group or '').strip().lower()
    if not required:
        # "cn=" は全 DN に含まれるため空指定は常に拒否
        return AuthorizationDecision(False, "required group is empty")
    needle = f"cn={required}"
    members = [str(dn).lower() for dn in groups]
    if GroupMatchPolicy(policy) is GroupMatchPolicy.EXACT:
        granted = any(_first_rdn(dn) == needle for dn in members)
    else:
        granted = any(needle in dn for dn in members)
    if granted:
        return AuthorizationDecision(True)
    return AuthorizationDecision(False, f"not a member of {required}")
