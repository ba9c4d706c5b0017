"""検索フィルタの構文を変え得る文字を利用者入力から除去する。"""

FILTER_SPECIAL_CHARS = frozenset('()|&*=')


def sanitize(identifier: str) -> str:
    """``( ) | & * =`` をすべて取り除く (他の文字は順序を保ったまま残す)。"""
    return ''.join(ch for ch in identifier if ch not in FILTER_SPECIAL_CHARS)
