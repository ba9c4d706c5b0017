"""ldap3 の search response (dict) から属性値を取り出す補助。

``get_info=NONE`` で接続するためスキーマ整形は行われず、値は文字列/bytes の
リストで届く。属性名は大文字小文字を区別せずに照合する。
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


def _lookup(mapping: Optional[Dict[str, Any]], name: str):
    if not mapping:
        return None
    if name in mapping:
        return mapping[name]
    lowered = name.lower()
    for key, value in mapping.items():
        if key.lower() == lowered:
            return value
    return None


def _as_text(value: Any) -> Any:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode('utf-8', errors='replace')
    return value


def attribute_values(entry: Dict[str, Any], name: str, *, raw_first: bool = False) -> List[Any]:
    """属性値をリストで返す (無ければ空リスト)。"""
    sources = ('raw_attributes', 'attributes') if raw_first else ('attributes', 'raw_attributes')
    for source in sources:
        value = _lookup(entry.get(source), name)
        if value is None:
            continue
        values = list(value) if isinstance(value, (list, tuple, set, frozenset)) else [value]
        values = [_as_text(v) for v in values if v is not None]
        values = [v for v in values if not (isinstance(v, str) and not v.strip())]
        if values:
            return values
    return []


def first_value(entry: Dict[str, Any], name: str, *, raw_first: bool = False) -> Any:
    values = attribute_values(entry, name, raw_first=raw_first)
    return values[0] if values else None
