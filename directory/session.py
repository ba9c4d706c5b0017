# 1 操作 = 1 接続 の LDAP セッション (ldap3)
#
# 主な接続失敗・認証失敗の原因と、それに対応するログメッセージの例です。
#
# 1. サーバーのアドレスやポートが間違っている / 到達不可
#   - ログ例: `LDAP bind transport error ... error=LDAPSocketOpenError`
#   - 結果: BindOutcome.CONNECTION_FAILURE
#
# 2. 認証情報 (ユーザー名/パスワード) が無効
#   - ログ例: `LDAP bind failed ... code=49 desc=invalidCredentials`
#   - 結果: BindOutcome.INVALID_CREDENTIALS
#   - 補足: 未登録ユーザとパスワード誤りは区別しない (AD の 52e/525 等はログのみ)
#
# 3. STARTTLS の失敗 (証明書の問題など)
#   - ログ例: `LDAP StartTLS failed ...`
#   - 結果: BindOutcome.CONNECTION_FAILURE
#
# 4. 検索のサイズ制限超過
#   - ログ例: `LDAP search error | ... code=4 desc=sizeLimitExceeded`
#   - 結果: SizeLimitExceededError (部分結果は破棄)
#

import asyncio
import logging
import ssl
from typing import Any, Callable, Dict, List, Optional, Sequence

from asgiref.sync import sync_to_async
from ldap3.core.exceptions import LDAPException, LDAPSizeLimitExceededResult

from .config import DirectoryConfig
from .exceptions import DirectoryError, DirectoryProtocolError, SizeLimitExceededError
from .outcomes import BindOutcome

RESULT_SUCCESS = 0
RESULT_SIZE_LIMIT_EXCEEDED = 4
RESULT_INVALID_CREDENTIALS = 49

logger = logging.getLogger('django.security.authentication')
dbg_logger = logging.getLogger('directory.session')


class SearchLatch:
    """検索イベント (entry / end / error) を集約し、最初の終端シグナルで一度だけ確定する。

    end と error が続けて届いた場合も後着は無視する。entry は確定前のものだけを
    受信順に保持する。
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()
        self._future = self._loop.create_future()
        self._entries: List[Dict[str, Any]] = []

    @property
    def settled(self) -> bool:
        return self._future.done()

    def entry(self, item: Dict[str, Any]) -> None:
        if self.settled:
            return
        self._entries.append(item)

    def end(self) -> None:
        if self.settled:
            dbg_logger.debug("LDAP search latch: late end ignored")
            return
        self._future.set_result(list(self._entries))

    def error(self, exc: BaseException) -> None:
        if self.settled:
            dbg_logger.debug("LDAP search latch: late error ignored | error=%s", exc)
            return
        self._entries.clear()
        self._future.set_exception(exc)

    async def wait(self) -> List[Dict[str, Any]]:
        return await self._future


class DirectorySession:
    """1 論理操作ぶんの LDAP 接続。

    ポリシー:
      - プール/再利用なし。bind は 1 セッションにつき 1 回のみ
      - ``async with`` を抜ける全経路で close (unbind) をちょうど 1 回実行
      - ldap3 の同期 API はワーカースレッドで実行し、イベントループはブロックしない
    """

    def __init__(self, config: DirectoryConfig):
        self.config = config
        self._conn = None
        self._closed = False
        self._inflight: Optional[asyncio.Future] = None
        self.bound_as: Optional[str] = None

    async def __aenter__(self) -> 'DirectorySession':
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        await self.close()
        return False

    @property
    def closed(self) -> bool:
        return self._closed

    async def _run_worker(self, func: Callable, *args):
        """ldap3 呼び出しをワーカースレッドで実行する。

        呼び出し元がキャンセルされてもスレッド側の処理は止まらないため、
        実行中の Future を保持し close() がその完了を待ってから unbind する。
        """
        task = asyncio.ensure_future(sync_to_async(func, thread_sensitive=False)(*args))
        self._inflight = task
        try:
            return await asyncio.shield(task)
        finally:
            if task.done():
                self._inflight = None

    # ---------- bind ----------
    async def bind(self, principal_name: str, password: str) -> BindOutcome:
        if self._closed:
            raise DirectoryError("session already closed")
        if self._conn is not None or self._inflight is not None:
            raise DirectoryError("session already used for a bind")
        return await self._run_worker(self._bind_sync, principal_name, password)

    def _bind_sync(self, principal_name: str, password: str) -> BindOutcome:
        from ldap3 import Server, Connection, NONE, SIMPLE  # 遅延 import
        cfg = self.config
        host, port = cfg.host_port()
        starttls = cfg.force_starttls and not cfg.use_ssl
        try:
            # スキーマ取得は不要 (bind + search のみ)
            server = Server(
                host,
                port=port,
                use_ssl=cfg.use_ssl,
                get_info=NONE,
                tls=self._build_tls(),
                connect_timeout=cfg.connect_timeout,
            )
            conn = Connection(
                server,
                user=principal_name,
                password=password,
                authentication=SIMPLE,
                auto_bind=False,
                raise_exceptions=False,
                read_only=True,
                receive_timeout=cfg.receive_timeout,
            )
            self._conn = conn
            if starttls and not conn.start_tls():
                logger.warning(
                    "LDAP StartTLS failed | host=%s bind_user=%s last_error=%s result=%s",
                    host, principal_name, conn.last_error, conn.result,
                    extra={'ldap': {'host': host, 'user': principal_name, 'stage': 'starttls'}}
                )
                return BindOutcome.CONNECTION_FAILURE
            if conn.bind():
                self.bound_as = principal_name
                logger.info(
                    "LDAP bind success | host=%s bind_user=%s", host, principal_name,
                    extra={'ldap': {'host': host, 'user': principal_name, 'stage': 'bind'}}
                )
                return BindOutcome.AUTHENTICATED
            result = conn.result if isinstance(conn.result, dict) else {}
            code = result.get('result')
            logger.warning(
                "LDAP bind failed | host=%s ssl=%s starttls=%s bind_user=%s code=%s desc=%s message=%s",
                host, cfg.use_ssl, starttls, principal_name, code, result.get('description'), result.get('message'),
                extra={'ldap': {
                    'host': host,
                    'user': principal_name,
                    'stage': 'bind',
                    'error_code': code,
                    'description': result.get('description'),
                }}
            )
            if code == RESULT_INVALID_CREDENTIALS:
                return BindOutcome.INVALID_CREDENTIALS
            return BindOutcome.CONNECTION_FAILURE
        except LDAPException as e:
            logger.warning(
                "LDAP bind transport error | host=%s port=%s bind_user=%s error=%s: %s",
                host, port, principal_name, type(e).__name__, e,
                extra={'ldap': {'host': host, 'user': principal_name, 'stage': 'bind', 'error': type(e).__name__}}
            )
            return BindOutcome.CONNECTION_FAILURE

    def _build_tls(self):
        """LDAPS/StartTLS 用 Tls オブジェクト (不要なら None)."""
        cfg = self.config
        if not (cfg.use_ssl or cfg.force_starttls):
            return None
        from ldap3 import Tls  # 局所 import
        validate_mode = ssl.CERT_NONE if cfg.tls_insecure else ssl.CERT_REQUIRED
        return Tls(validate=validate_mode)

    # ---------- search ----------
    async def search(
        self,
        search_base: str,
        search_filter: str,
        attributes: Sequence[str],
        *,
        size_limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """サブツリー検索。エントリ (response dict) をサーバ返却順で返す。

        Raises:
            SizeLimitExceededError: サーバがサイズ制限超過を返した
            DirectoryProtocolError: その他の検索エラー
        """
        if self._closed:
            raise DirectoryError("session already closed")
        if self._conn is None or self.bound_as is None:
            raise DirectoryError("search requires a successful bind")
        limit = self.config.size_limit if size_limit is None else size_limit
        loop = asyncio.get_running_loop()
        latch = SearchLatch(loop)

        def emit(callback: Callable, *args) -> None:
            loop.call_soon_threadsafe(callback, *args)

        await self._run_worker(
            self._search_sync,
            search_base, search_filter, list(attributes), limit, emit, latch,
        )
        return await latch.wait()

    def _search_sync(self, search_base, search_filter, attributes, size_limit, emit, latch) -> None:
        from ldap3 import SUBTREE  # 遅延 import
        conn = self._conn
        dbg_logger.debug(
            "LDAP search start | base=%s filter=%s attrs=%s size_limit=%s",
            search_base, search_filter, attributes, size_limit
        )
        try:
            conn.search(
                search_base=search_base,
                search_filter=search_filter,
                search_scope=SUBTREE,
                attributes=attributes,
                size_limit=size_limit,
            )
        except LDAPSizeLimitExceededResult as e:
            self._log_search_error(search_base, search_filter, RESULT_SIZE_LIMIT_EXCEEDED, str(e))
            emit(latch.error, SizeLimitExceededError(str(e)))
            return
        except LDAPException as e:
            self._log_search_error(search_base, search_filter, None, f"{type(e).__name__}: {e}")
            emit(latch.error, DirectoryProtocolError(f"{type(e).__name__}: {e}"))
            return

        # 参照 (searchResRef) は読み飛ばす
        for item in conn.response or []:
            if isinstance(item, dict) and item.get('type') == 'searchResEntry':
                emit(latch.entry, item)

        result = conn.result if isinstance(conn.result, dict) else {}
        code = result.get('result')
        if code == RESULT_SUCCESS:
            emit(latch.end)
            return
        detail = f"code={code} desc={result.get('description')} message={result.get('message')}"
        self._log_search_error(search_base, search_filter, code, detail)
        if code == RESULT_SIZE_LIMIT_EXCEEDED:
            emit(latch.error, SizeLimitExceededError(detail))
        else:
            emit(latch.error, DirectoryProtocolError(detail))

    def _log_search_error(self, base, search_filter, code, detail) -> None:
        logger.warning(
            "LDAP search error | bind_user=%s base=%s filter=%s code=%s detail=%s",
            self.bound_as, base, search_filter, code, detail,
            extra={'ldap': {'stage': 'search', 'base': base, 'filter': search_filter, 'error_code': code}}
        )

    # ---------- close ----------
    async def close(self) -> None:
        """接続を解放 (2 回目以降は何もしない)."""
        if self._closed:
            return
        self._closed = True
        inflight, self._inflight = self._inflight, None
        if inflight is not None:
            # キャンセルされた bind/search のスレッドが同じ接続を使い終わるまで待つ
            await asyncio.wait({inflight})
            if not inflight.cancelled() and inflight.exception() is not None:
                dbg_logger.debug("LDAP worker error after cancel ignored | error=%s", inflight.exception())
            # 完了前に呼び出し元が離脱した bind は成立扱いにしない
            self.bound_as = None
        conn, self._conn = self._conn, None
        if conn is None:
            return
        await sync_to_async(self._unbind_sync, thread_sensitive=False)(conn)

    @staticmethod
    def _unbind_sync(conn) -> None:
        try:
            conn.unbind()
        except LDAPException as e:
            dbg_logger.debug("LDAP unbind error ignored | error=%s", e)
