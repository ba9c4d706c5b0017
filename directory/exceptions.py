"""ディレクトリ操作の例外。

セッション内部で ldap3 の LDAPException をこれらに変換し、サービス層で
結果値 (outcomes) に畳み込む。呼び出し側に生の例外は出さない。
"""


class DirectoryError(Exception):
    """ディレクトリ操作失敗の基底。"""

    def __init__(self, detail: str = ''):
        super().__init__(detail)
        self.detail = detail


class DirectoryProtocolError(DirectoryError):
    """検索ストリームのエラー (サイズ制限以外)。"""


class SizeLimitExceededError(DirectoryError):
    """サーバがサイズ制限超過 (resultCode 4) を返した。"""
