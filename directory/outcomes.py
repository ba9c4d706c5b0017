"""操作結果の値オブジェクトと利用者向けメッセージ。

内部詳細 (バインド DN / プロトコルエラー本文) はログにのみ残し、ここで定義する
メッセージには含めない。
"""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple, Union

from .sanitizer import sanitize

NEVER = 'never'

GroupMembershipSet = frozenset


class BindOutcome(enum.Enum):
    AUTHENTICATED = 'authenticated'
    INVALID_CREDENTIALS = 'invalid_credentials'
    CONNECTION_FAILURE = 'connection_failure'


class LoginStatus(enum.Enum):
    SUCCESS = 'success'
    INVALID_CREDENTIALS = 'invalid_credentials'
    CONNECTION_FAILURE = 'connection_failure'
    AUTHORIZATION_DENIED = 'authorization_denied'
    PROTOCOL_ERROR = 'protocol_error'


class ReportStatus(enum.Enum):
    SUCCESS = 'success'
    AUTH_FAILURE = 'auth_failure'
    AUTHORIZATION_DENIED = 'authorization_denied'
    SIZE_LIMIT_EXCEEDED = 'size_limit_exceeded'
    PROTOCOL_ERROR = 'protocol_error'


INVALID_CREDENTIALS_MESSAGE = "ユーザー名またはパスワードが正しくありません。"
AUTHORIZATION_DENIED_MESSAGE = "この操作を行う権限がありません。"
PROTOCOL_ERROR_MESSAGE = "ディレクトリ処理中にエラーが発生しました。しばらくしてから再試行してください。"
SIZE_LIMIT_MESSAGE = (
    "該当アカウントが多すぎるためディレクトリが結果を返せませんでした。"
    "日数を増やすなど条件を絞って再実行してください。"
)

# CONNECTION_FAILURE は INVALID_CREDENTIALS と同一文言 (アカウント存在有無を推測させない)
USER_MESSAGES = {
    BindOutcome.INVALID_CREDENTIALS: INVALID_CREDENTIALS_MESSAGE,
    BindOutcome.CONNECTION_FAILURE: INVALID_CREDENTIALS_MESSAGE,
    LoginStatus.INVALID_CREDENTIALS: INVALID_CREDENTIALS_MESSAGE,
    LoginStatus.CONNECTION_FAILURE: INVALID_CREDENTIALS_MESSAGE,
    LoginStatus.AUTHORIZATION_DENIED: AUTHORIZATION_DENIED_MESSAGE,
    LoginStatus.PROTOCOL_ERROR: PROTOCOL_ERROR_MESSAGE,
    ReportStatus.AUTH_FAILURE: INVALID_CREDENTIALS_MESSAGE,
    ReportStatus.AUTHORIZATION_DENIED: AUTHORIZATION_DENIED_MESSAGE,
    ReportStatus.SIZE_LIMIT_EXCEEDED: SIZE_LIMIT_MESSAGE,
    ReportStatus.PROTOCOL_ERROR: PROTOCOL_ERROR_MESSAGE,
}


@dataclass(frozen=True)
class Principal:
    raw_identifier: str
    sanitized_identifier: str

    @classmethod
    def from_raw(cls, raw_identifier: str) -> 'Principal':
        return cls(raw_identifier=raw_identifier, sanitized_identifier=sanitize(raw_identifier))


@dataclass(frozen=True)
class AuthorizationDecision:
    granted: bool
    reason: Optional[str] = None


@dataclass(frozen=True)
class InactiveAccountRecord:
    display_name: Optional[str]
    email: Optional[str]
    last_logon: Union[datetime, str]

    def to_dict(self):
        last_logon = self.last_logon
        if isinstance(last_logon, datetime):
            last_logon = last_logon.isoformat()
        return {
            'display_name': self.display_name,
            'email': self.email,
            'last_logon': last_logon,
        }


@dataclass(frozen=True)
class LoginResult:
    status: LoginStatus
    username: str = ''

    @property
    def ok(self) -> bool:
        return self.status is LoginStatus.SUCCESS

    @property
    def message(self) -> Optional[str]:
        return USER_MESSAGES.get(self.status)


@dataclass(frozen=True)
class ReportOutcome:
    status: ReportStatus
    records: Tuple[InactiveAccountRecord, ...] = field(default_factory=tuple)
    detail: Optional[str] = None  # PROTOCOL_ERROR 時のみ (ログ用、利用者には返さない)

    @property
    def ok(self) -> bool:
        return self.status is ReportStatus.SUCCESS

    @property
    def message(self) -> Optional[str]:
        return USER_MESSAGES.get(self.status)
