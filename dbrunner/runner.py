"""
SQL 실행 모듈

prepare -> bind -> execute -> 결과 추출 -> 해제 순서로 스테이트먼트를 실행합니다.
트랜잭션 밖에서는 호출마다 커넥션을 하나 열고 닫으며, 같은 스레드에서
같은 이름의 트랜잭션이 진행 중이면 그 커넥션을 그대로 사용합니다.

사용 예시:
    runner = SqlRunner(SQLiteDataSource('./data/app.db'))

    runner.execute("INSERT INTO items (id) VALUES (?)", params(1))
    ids = runner.query("SELECT id FROM items", NOOP, column('id'))
    count = runner.query("SELECT count(*) FROM items", NOOP, SINGLE_INT)

    runner.in_transaction(lambda tx: tx.execute("DELETE FROM items", NOOP))
"""

import logging
from typing import Any, Callable, TypeVar

from dbrunner.base import Connection, ConnectionSupplier, acquire_connection
from dbrunner.context import get_transaction
from dbrunner.exception import (
    CommitError,
    DatabaseError,
    RollbackError,
    StatementPreparationError,
)
from dbrunner.mappers import (
    NOOP,
    AfterExecution,
    Binder,
    MapResultSet,
    MapRows,
    ResultSetMapper,
    RowMapper,
    UpdateCount,
)
from dbrunner.release import non_throwing_close
from dbrunner.statement import ResultSet
from dbrunner.transaction import ManagedTransaction, TransactionManager
from dbrunner.translator import translate_exception

logger = logging.getLogger(__name__)

T = TypeVar('T')


def execute_statement(
    connection: Connection,
    sql: str,
    binder: Binder,
    after: AfterExecution[T],
    batch: bool = False,
) -> T:
    """
    스테이트먼트 실행 파이프라인

    단계별로 드라이버 예외를 변환합니다:
        prepare 실패 -> StatementPreparationError
        bind 실패    -> DatabaseError
        execute 실패 -> translate_exception (무결성 위반 구분)
    스테이트먼트는 결과와 상관없이 항상 해제됩니다.
    """
    statement = None
    try:
        try:
            statement = connection.prepare_statement(sql)
        except connection.error_types as e:
            raise StatementPreparationError(cause=e) from e

        try:
            logger.debug("Setting parameters of prepared statement.")
            binder(statement)
        except connection.error_types as e:
            raise DatabaseError(cause=e) from e

        try:
            logger.debug("Executing prepared statement.")
            if batch:
                statement.execute_batch()
            else:
                statement.execute()
            return after.extract(statement)
        except connection.error_types as e:
            raise translate_exception(e) from e
    finally:
        non_throwing_close(statement)


class SqlRunner:
    """SQL 실행기"""

    def __init__(self, supplier: ConnectionSupplier, name: str = 'default'):
        self._supplier = supplier
        self._name = name
        self._transactions = TransactionManager(supplier, name)

    @property
    def name(self) -> str:
        return self._name

    @property
    def supplier(self) -> ConnectionSupplier:
        return self._supplier

    @property
    def transaction_manager(self) -> TransactionManager:
        return self._transactions

    def transaction(self) -> ManagedTransaction:
        """트랜잭션 컨텍스트 매니저 반환 (블록 안의 실행은 같은 커넥션 사용)"""
        return self._transactions.transaction()

    def in_transaction(self, work: Callable[["SqlRunner"], T]) -> T:
        """work(runner)를 트랜잭션 하나로 실행"""
        with self.transaction():
            return work(self)

    def execute(self, sql: str, binder: Binder = NOOP) -> int:
        """INSERT/UPDATE/DELETE/DDL 실행 - affected rows 반환"""
        return self._execute(sql, binder, UpdateCount())

    def execute_batch(self, sql: str, binder: Binder) -> int:
        """배치 실행 - 전체 affected rows 반환"""
        return self._execute(sql, binder, UpdateCount(), batch=True)

    def query(self, sql: str, binder: Binder, mapper: RowMapper | ResultSetMapper) -> Any:
        """
        조회

        mapper가 ResultSetMapper면 결과셋 전체를 한 번에 매핑한 값을,
        그 외 callable이면 행마다 매핑한 리스트를 반환합니다.
        """
        if isinstance(mapper, ResultSetMapper):
            return self._execute(sql, binder, MapResultSet(mapper))
        return self._execute(sql, binder, MapRows(mapper))

    def query_result_set(self, sql: str, binder: Binder, mapper: Callable[[ResultSet], T]) -> T:
        """결과셋을 소비하지 않은 채로 mapper에 전달"""
        return self._execute(sql, binder, MapResultSet(mapper))

    def _execute(self, sql: str, binder: Binder, after: AfterExecution[T], batch: bool = False) -> T:
        return self._with_connection(
            lambda connection: execute_statement(connection, sql, binder, after, batch)
        )

    def _with_connection(self, work: Callable[[Connection], T]) -> T:
        ctx = get_transaction(self._name)
        if ctx is not None:
            # 진행 중인 트랜잭션에 참여 (커밋/롤백/해제는 트랜잭션이 담당)
            return work(ctx.connection)

        logger.debug(f"Getting connection for '{self._name}'")
        connection = acquire_connection(self._supplier)
        try:
            result = work(connection)
            self._commit_if_necessary(connection)
            return result
        except Exception as e:
            error = self._rollback_if_necessary(connection, e)
            if error is e:
                raise
            raise error
        finally:
            non_throwing_close(connection)

    def _commit_if_necessary(self, connection: Connection) -> None:
        try:
            if self._supplier.commit_when_autocommit_disabled() and not connection.get_autocommit():
                connection.commit()
        except Exception as e:
            raise CommitError(cause=e) from e

    def _rollback_if_necessary(self, connection: Connection, original: Exception) -> BaseException:
        try:
            if self._supplier.commit_when_autocommit_disabled() and not connection.get_autocommit():
                connection.rollback()
        except Exception as e:
            logger.error(
                "Original exception overridden by rollback exception. "
                "Raising rollback exception. Original exception:",
                exc_info=original,
            )
            return RollbackError(cause=e, original=original)
        return original
