"""
PEP 249 (DB-API 2.0) 커넥션 어댑터

드라이버 커넥션을 Connection 인터페이스로 감싸고, connect 함수로부터
커넥션을 여는 범용 공급자를 제공합니다.
"""

import logging
from typing import Any, Callable

from dbrunner.base import Connection, ConnectionSupplier
from dbrunner.exception import ConnectionUnavailableError
from dbrunner.statement import PreparedStatement

logger = logging.getLogger(__name__)


class DbapiConnection(Connection):
    """
    DB-API 커넥션 어댑터

    autocommit은 드라이버 커넥션의 autocommit 속성을 사용합니다
    (psycopg, pymysql, mysql-connector 등).
    """

    def __init__(self, raw: Any, error_types: tuple[type[BaseException], ...]):
        self._raw = raw
        self._error_types = error_types

    @property
    def raw(self) -> Any:
        """드라이버 커넥션"""
        return self._raw

    @property
    def error_types(self) -> tuple[type[BaseException], ...]:
        return self._error_types

    def get_autocommit(self) -> bool:
        return bool(self._raw.autocommit)

    def set_autocommit(self, autocommit: bool) -> None:
        self._raw.autocommit = autocommit

    def prepare_statement(self, sql: str) -> PreparedStatement:
        return PreparedStatement(self._raw.cursor(), sql)

    def commit(self) -> None:
        self._raw.commit()

    def rollback(self) -> None:
        self._raw.rollback()

    def close(self) -> None:
        self._raw.close()


class DriverDataSource(ConnectionSupplier):
    """
    connect 함수 기반 커넥션 공급자

    사용 예시:
        import psycopg
        source = DriverDataSource(
            lambda: psycopg.connect(dsn),
            error_types=(psycopg.Error,),
        )
    """

    def __init__(
        self,
        connect: Callable[[], Any],
        error_types: tuple[type[BaseException], ...],
        commit_when_autocommit_disabled: bool = False,
        connection_class: type[DbapiConnection] = DbapiConnection,
    ):
        self._connect = connect
        self._error_types = error_types
        self._commit_when_autocommit_disabled = commit_when_autocommit_disabled
        self._connection_class = connection_class

    def get_connection(self) -> Connection:
        logger.debug("Getting connection from driver")
        try:
            raw = self._connect()
        except self._error_types as e:
            raise ConnectionUnavailableError(cause=e) from e
        return self._connection_class(raw, self._error_types)

    def commit_when_autocommit_disabled(self) -> bool:
        return self._commit_when_autocommit_disabled
