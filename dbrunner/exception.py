"""
데이터베이스 실행 계층 예외 클래스 정의
"""


class DatabaseError(Exception):
    """데이터베이스 기본 예외"""
    def __init__(self, message: str | None = None, cause: BaseException | None = None):
        self.message = message or (str(cause) if cause is not None else "Database error")
        self.cause = cause
        self.suppressed: list[BaseException] = []
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    def add_suppressed(self, error: BaseException) -> None:
        """보조 원인 예외 추가 (주 예외는 그대로 유지)"""
        self.suppressed.append(error)


class ConnectionUnavailableError(DatabaseError):
    """커넥션 획득 실패"""
    def __init__(self, message: str = "Unable to open connection", cause: BaseException | None = None):
        super().__init__(message, cause)


class StatementPreparationError(DatabaseError):
    """스테이트먼트 준비 실패"""
    def __init__(self, cause: BaseException | None = None):
        super().__init__("Error when preparing statement.", cause)


class IntegrityConstraintViolation(DatabaseError):
    """무결성 제약조건 위반 (PK, UNIQUE 등)"""
    pass


class CommitError(DatabaseError):
    """커밋 실패"""
    def __init__(self, cause: BaseException | None = None):
        super().__init__("Failed to commit.", cause)


class RollbackError(DatabaseError):
    """
    롤백 실패

    롤백 예외가 원래 예외를 대체할 때 발생하며, 원래 예외는 original 및
    suppressed 에 보존됩니다.
    """
    def __init__(self, cause: BaseException | None = None, original: BaseException | None = None):
        super().__init__("Failed to rollback.", cause)
        self.original = original
        if original is not None:
            self.add_suppressed(original)


class AutocommitRestoreError(DatabaseError):
    """트랜잭션 종료 후 autocommit 복원 실패"""
    def __init__(self, cause: BaseException | None = None):
        super().__init__(
            "Exception when restoring autocommit on connection. "
            "Transaction is already completed, but connection might be broken afterwards.",
            cause,
        )


class AlreadyInTransactionError(DatabaseError):
    """같은 스레드에서 트랜잭션 중첩 시도"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(
            f"Cannot start new transaction when there already is an ongoing transaction "
            f"(database='{name}')"
        )


class NoActiveTransactionError(DatabaseError):
    """활성 트랜잭션 없음"""
    def __init__(self, name: str):
        self.name = name
        super().__init__(f"No active transaction for database '{name}'")


class SingleResultExpectedError(Exception):
    """단일 결과 기대 매퍼에서 결과 행 수 불일치"""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)
