"""
트랜잭션 경계 관리 모듈

커넥션 하나를 획득해 autocommit을 끄고, 작업 성공 시 커밋, 실패 시 롤백한 뒤
autocommit을 복원하고 커넥션을 해제합니다. 같은 스레드에서 같은 DB의
트랜잭션 중첩은 허용하지 않습니다.

사용 예시:
    manager = TransactionManager(SQLiteDataSource('./data/app.db'))

    with manager.transaction() as ctx:
        ...

    manager.run_in_transaction(lambda connection: ...)
"""

import functools
import logging
import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TypeVar

from dbrunner.base import Connection, ConnectionSupplier, acquire_connection
from dbrunner.context import clear_transaction, get_transaction, set_transaction
from dbrunner.exception import (
    AlreadyInTransactionError,
    AutocommitRestoreError,
    CommitError,
    DatabaseError,
    RollbackError,
)
from dbrunner.release import non_throwing_close

logger = logging.getLogger(__name__)

T = TypeVar('T')


class TransactionState(str, Enum):
    """트랜잭션 상태"""
    IDLE = "IDLE"
    ACTIVE = "ACTIVE"
    COMMITTING = "COMMITTING"
    ROLLING_BACK = "ROLLING_BACK"


@dataclass
class TransactionContext:
    """진행 중인 트랜잭션 정보"""
    name: str
    connection: Connection
    restore_autocommit: bool = False
    state: TransactionState = TransactionState.ACTIVE
    owner: int = field(default_factory=threading.get_ident)

    def transition(self, state: TransactionState) -> None:
        logger.debug(f"Transaction '{self.name}': {self.state.value} -> {state.value}")
        self.state = state


class ManagedTransaction:
    """트랜잭션 컨텍스트 매니저"""

    def __init__(self, supplier: ConnectionSupplier, name: str = 'default'):
        self._supplier = supplier
        self._name = name
        self._ctx: TransactionContext | None = None

    def __enter__(self) -> TransactionContext:
        if get_transaction(self._name) is not None:
            raise AlreadyInTransactionError(self._name)

        connection = acquire_connection(self._supplier)
        try:
            restore_autocommit = False
            if connection.get_autocommit():
                connection.set_autocommit(False)
                restore_autocommit = True
        except Exception as e:
            non_throwing_close(connection)
            if isinstance(e, connection.error_types):
                raise DatabaseError("Failed to disable autocommit.", cause=e) from e
            raise

        self._ctx = TransactionContext(self._name, connection, restore_autocommit)
        set_transaction(self._name, self._ctx)
        logger.debug(f"Transaction '{self._name}' started")
        return self._ctx

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        ctx = self._ctx
        restore_error = None
        try:
            if exc_val is not None:
                error = _rollback(ctx, exc_val)
            else:
                error = _commit(ctx)
            if ctx.restore_autocommit:
                restore_error = _restore_autocommit(ctx)
        finally:
            non_throwing_close(ctx.connection)
            clear_transaction(self._name)
            ctx.transition(TransactionState.IDLE)
            self._ctx = None

        if restore_error is not None:
            if error is None:
                raise restore_error
            if isinstance(error, DatabaseError):
                error.add_suppressed(restore_error)

        if error is None or error is exc_val:
            return False
        raise error


def _commit(ctx: TransactionContext) -> BaseException | None:
    """커밋 (실패 시 롤백 후 발생시킬 예외 반환)"""
    ctx.transition(TransactionState.COMMITTING)
    try:
        ctx.connection.commit()
    except Exception as e:
        return _rollback(ctx, CommitError(cause=e))
    logger.debug(f"Transaction '{ctx.name}' committed")
    return None


def _rollback(ctx: TransactionContext, original: BaseException) -> BaseException:
    """
    롤백 후 호출자에게 전달할 예외 반환

    롤백이 성공하면 original을, 실패하면 original을 보존한 RollbackError를 반환합니다.
    """
    ctx.transition(TransactionState.ROLLING_BACK)
    try:
        ctx.connection.rollback()
    except Exception as e:
        logger.error(
            "Original exception overridden by rollback exception. "
            "Raising rollback exception. Original exception:",
            exc_info=original,
        )
        return RollbackError(cause=e, original=original)
    logger.debug(f"Transaction '{ctx.name}' rolled back: {original!r}")
    return original


def _restore_autocommit(ctx: TransactionContext) -> AutocommitRestoreError | None:
    try:
        ctx.connection.set_autocommit(True)
    except Exception as e:
        logger.error(
            f"Failed to restore autocommit for connection of '{ctx.name}'. "
            "The transaction has already completed; the connection should not be reused.",
            exc_info=True,
        )
        return AutocommitRestoreError(cause=e)
    return None


class TransactionManager:
    """트랜잭션 관리자"""

    def __init__(self, supplier: ConnectionSupplier, name: str = 'default'):
        self._supplier = supplier
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    def current(self) -> TransactionContext | None:
        """현재 스레드의 활성 트랜잭션"""
        return get_transaction(self._name)

    def transaction(self) -> ManagedTransaction:
        """트랜잭션 컨텍스트 매니저 반환"""
        return ManagedTransaction(self._supplier, self._name)

    def run_in_transaction(self, work: Callable[[Connection], T]) -> T:
        """
        트랜잭션 안에서 work 실행

        Args:
            work: 트랜잭션 커넥션을 받아 결과를 반환하는 함수

        Returns:
            work의 반환값 (커밋 완료 후)

        Raises:
            AlreadyInTransactionError: 이미 트랜잭션이 진행 중인 경우
            ConnectionUnavailableError: 커넥션 획득 실패
            RollbackError: 롤백 실패 (원래 예외는 original에 보존)
        """
        with self.transaction() as ctx:
            return work(ctx.connection)


def transactional(target):
    """
    트랜잭션 데코레이터

    target은 transaction()을 제공하는 SqlRunner 또는 TransactionManager입니다.

    사용 예시:
        @transactional(runner)
        def create_item(name):
            runner.execute("INSERT INTO items (name) VALUES (?)", params(name))
    """
    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with target.transaction():
                return func(*args, **kwargs)
        return wrapper
    return decorator
