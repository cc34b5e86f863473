"""
SQLite3 커넥션 모듈

표준 sqlite3 드라이버 위에 Connection 어댑터와 커넥션 공급자를 제공합니다.
드라이버는 수동 모드(isolation_level=None)로 열고 트랜잭션은 BEGIN으로 직접 시작합니다.
"""

import logging
import sqlite3
import threading
import uuid
from dataclasses import dataclass
from pathlib import Path

from dbrunner.base import ConnectionSupplier
from dbrunner.dbapi import DbapiConnection
from dbrunner.exception import ConnectionUnavailableError
from dbrunner.release import non_throwing_close
from dbrunner.statement import PreparedStatement

logger = logging.getLogger(__name__)

MEMORY_PATH = ':memory:'

BEGIN_MODES = ('DEFERRED', 'IMMEDIATE', 'EXCLUSIVE')


@dataclass
class SqliteOptions:
    """SQLite 연결 옵션"""
    busy_timeout: int = 5000
    journal_mode: str = 'WAL'
    synchronous: str = 'NORMAL'
    cache_size: int = -2000
    foreign_keys: bool = True
    begin_mode: str = 'DEFERRED'


class SQLiteConnection(DbapiConnection):
    """
    SQLite 커넥션 어댑터

    autocommit이 꺼져 있으면 다음 스테이트먼트 직전에 BEGIN을 실행하므로
    DDL과 첫 조회도 트랜잭션에 포함됩니다. commit()/rollback() 이후에도
    autocommit이 꺼져 있는 동안은 다음 스테이트먼트가 새 트랜잭션을 시작합니다.
    autocommit을 켜면 진행 중인 트랜잭션은 커밋됩니다.
    """

    def __init__(self, raw: sqlite3.Connection, autocommit: bool = True, begin_mode: str = 'DEFERRED'):
        super().__init__(raw, (sqlite3.Error,))
        if begin_mode not in BEGIN_MODES:
            raise ValueError(f"Unsupported begin mode: {begin_mode}")
        self._autocommit = autocommit
        self._begin_mode = begin_mode

    def get_autocommit(self) -> bool:
        return self._autocommit

    def set_autocommit(self, autocommit: bool) -> None:
        if autocommit and self._raw.in_transaction:
            self._raw.commit()
        self._autocommit = autocommit

    def prepare_statement(self, sql: str) -> PreparedStatement:
        if not self._autocommit and not self._raw.in_transaction:
            logger.debug(f"BEGIN {self._begin_mode}")
            self._raw.execute(f"BEGIN {self._begin_mode}")
        return super().prepare_statement(sql)


class SQLiteDataSource(ConnectionSupplier):
    """
    SQLite 커넥션 공급자

    get_connection() 호출마다 새 연결을 열고 PRAGMA 설정을 적용합니다.

    ':memory:' 경로는 공유 캐시 인메모리 DB(file:...?mode=memory&cache=shared)로
    열리며, close() 전까지 공급자가 연결 하나를 유지해 호출 간에 데이터가 남습니다.
    공유 캐시에서는 잠금 충돌이 busy_timeout 대기 없이 바로 실패합니다.

    사용 예시:
        source = SQLiteDataSource('./data/app.db')
        runner = SqlRunner(source)
    """

    def __init__(
        self,
        path: str,
        options: SqliteOptions | None = None,
        autocommit: bool = True,
        commit_when_autocommit_disabled: bool = False,
    ):
        self._path = path
        self._options = options or SqliteOptions()
        self._autocommit = autocommit
        self._commit_when_autocommit_disabled = commit_when_autocommit_disabled
        self._memory = path == MEMORY_PATH
        self._target = f"file:dbrunner-{uuid.uuid4().hex}?mode=memory&cache=shared" if self._memory else path
        self._keeper: sqlite3.Connection | None = None
        self._lock = threading.Lock()

    @property
    def path(self) -> str:
        return self._path

    @property
    def options(self) -> SqliteOptions:
        return self._options

    def get_connection(self) -> SQLiteConnection:
        logger.debug(f"Opening SQLite connection: {self._path}")
        raw = None
        try:
            if self._memory:
                self._open_keeper()
            else:
                Path(self._path).parent.mkdir(parents=True, exist_ok=True)
            raw = self._connect()
            self._apply_pragmas(raw)
        except (sqlite3.Error, OSError) as e:
            non_throwing_close(raw)
            raise ConnectionUnavailableError(f"Unable to open connection: {self._path}", cause=e) from e
        return SQLiteConnection(raw, autocommit=self._autocommit, begin_mode=self._options.begin_mode)

    def _connect(self, check_same_thread: bool = True) -> sqlite3.Connection:
        return sqlite3.connect(
            self._target,
            timeout=self._options.busy_timeout / 1000.0,
            isolation_level=None,
            uri=self._memory,
            check_same_thread=check_same_thread,
        )

    def _open_keeper(self) -> None:
        """인메모리 DB가 사라지지 않도록 유지하는 연결"""
        with self._lock:
            if self._keeper is None:
                self._keeper = self._connect(check_same_thread=False)
                logger.debug(f"In-memory database opened: {self._target}")

    def _apply_pragmas(self, raw: sqlite3.Connection) -> None:
        """연결별 PRAGMA 적용"""
        opts = self._options
        raw.execute(f"PRAGMA busy_timeout={opts.busy_timeout}")
        if not self._memory:
            raw.execute(f"PRAGMA journal_mode={opts.journal_mode}")
        raw.execute(f"PRAGMA synchronous={opts.synchronous}")
        raw.execute(f"PRAGMA cache_size={opts.cache_size}")
        raw.execute(f"PRAGMA foreign_keys={'ON' if opts.foreign_keys else 'OFF'}")

    def commit_when_autocommit_disabled(self) -> bool:
        return self._commit_when_autocommit_disabled

    def close(self) -> None:
        """인메모리 DB 유지 연결 해제 (파일 DB는 할 일 없음)"""
        with self._lock:
            keeper, self._keeper = self._keeper, None
        non_throwing_close(keeper)
