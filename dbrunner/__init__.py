"""
동기식 트랜잭션 실행 패키지

사용 예시:
    from dbrunner import SqlRunner, params, NOOP, SINGLE_INT, transactional, get_connection
    from dbrunner.sqlite3 import SQLiteDataSource

    runner = SqlRunner(SQLiteDataSource('./data/app.db'))

    # 단건 실행 (호출마다 커넥션 획득/해제)
    runner.execute("INSERT INTO items (id) VALUES (?)", params(1))

    # 트랜잭션 데코레이터
    @transactional(runner)
    def move_item(src, dst):
        runner.execute("DELETE FROM items WHERE id = ?", params(src))
        runner.execute("INSERT INTO items (id) VALUES (?)", params(dst))

    # 수동 트랜잭션
    with runner.transaction():
        connection = get_connection('default')
"""

from dbrunner.base import Connection, ConnectionSupplier
from dbrunner.context import get_connection
from dbrunner.dbapi import DbapiConnection, DriverDataSource
from dbrunner.exception import (
    AlreadyInTransactionError,
    AutocommitRestoreError,
    CommitError,
    ConnectionUnavailableError,
    DatabaseError,
    IntegrityConstraintViolation,
    NoActiveTransactionError,
    RollbackError,
    SingleResultExpectedError,
    StatementPreparationError,
)
from dbrunner.mappers import (
    NOOP,
    SINGLE_FLOAT,
    SINGLE_INT,
    SINGLE_STRING,
    ResultSetMapper,
    SingleResultMapper,
    as_dict,
    batch,
    column,
    named,
    params,
)
from dbrunner.registry import DatabaseRegistry, get_db
from dbrunner.runner import SqlRunner
from dbrunner.statement import PreparedStatement, ResultSet
from dbrunner.transaction import (
    TransactionContext,
    TransactionManager,
    TransactionState,
    transactional,
)

__all__ = [
    'Connection',
    'ConnectionSupplier',
    'DbapiConnection',
    'DriverDataSource',
    'SqlRunner',
    'PreparedStatement',
    'ResultSet',
    'TransactionContext',
    'TransactionManager',
    'TransactionState',
    'transactional',
    'get_connection',
    'DatabaseRegistry',
    'get_db',
    'NOOP',
    'params',
    'named',
    'batch',
    'column',
    'as_dict',
    'ResultSetMapper',
    'SingleResultMapper',
    'SINGLE_INT',
    'SINGLE_FLOAT',
    'SINGLE_STRING',
    'DatabaseError',
    'ConnectionUnavailableError',
    'StatementPreparationError',
    'IntegrityConstraintViolation',
    'CommitError',
    'RollbackError',
    'AutocommitRestoreError',
    'AlreadyInTransactionError',
    'NoActiveTransactionError',
    'SingleResultExpectedError',
]
