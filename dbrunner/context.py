"""
활성 트랜잭션 컨텍스트 저장소

contextvars에 DB 이름별 활성 트랜잭션을 보관합니다. 스레드마다(태스크마다)
별도 컨텍스트를 가지므로 다른 스레드의 트랜잭션은 보이지 않습니다.
"""

import threading
from contextvars import ContextVar
from typing import TYPE_CHECKING

from dbrunner.exception import NoActiveTransactionError

if TYPE_CHECKING:
    from dbrunner.base import Connection
    from dbrunner.transaction import TransactionContext

_transactions: ContextVar[dict[str, "TransactionContext"] | None] = ContextVar(
    'dbrunner_transactions', default=None
)


def get_transaction(name: str) -> "TransactionContext | None":
    """현재 스레드의 활성 트랜잭션 반환 (없으면 None)"""
    active = _transactions.get() or {}
    ctx = active.get(name)
    # 부모 컨텍스트를 복사해 시작한 스레드에는 보이지 않아야 함
    if ctx is None or ctx.owner != threading.get_ident():
        return None
    return ctx


def set_transaction(name: str, ctx: "TransactionContext") -> None:
    active = dict(_transactions.get() or {})
    active[name] = ctx
    _transactions.set(active)


def clear_transaction(name: str) -> None:
    active = dict(_transactions.get() or {})
    active.pop(name, None)
    _transactions.set(active)


def get_connection(name: str = 'default') -> "Connection":
    """
    활성 트랜잭션의 커넥션 반환

    Raises:
        NoActiveTransactionError: 현재 스레드에 해당 DB 트랜잭션이 없는 경우
    """
    ctx = get_transaction(name)
    if ctx is None:
        raise NoActiveTransactionError(name)
    return ctx.connection
