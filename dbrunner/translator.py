"""
드라이버 예외 변환 모듈

PEP 249 드라이버 예외를 IntegrityConstraintViolation 또는 DatabaseError로 변환합니다.
"""

from dbrunner.exception import DatabaseError, IntegrityConstraintViolation

# SQLSTATE class 23: integrity constraint violation
INTEGRITY_SQLSTATE_CLASS = '23'

_SQLSTATE_ATTRS = ('sqlstate', 'pgcode')


def is_integrity_violation(error: BaseException) -> bool:
    """무결성 제약조건 위반 여부 판별"""
    if isinstance(error, IntegrityConstraintViolation):
        return True

    # PEP 249 드라이버는 모두 IntegrityError 클래스를 제공
    if any(cls.__name__ == 'IntegrityError' for cls in type(error).__mro__):
        return True

    for attr in _SQLSTATE_ATTRS:
        sqlstate = getattr(error, attr, None)
        if isinstance(sqlstate, str) and sqlstate.startswith(INTEGRITY_SQLSTATE_CLASS):
            return True
    return False


def translate_exception(error: BaseException) -> DatabaseError:
    """드라이버 예외를 타입이 지정된 예외로 변환"""
    if isinstance(error, DatabaseError):
        return error
    if is_integrity_violation(error):
        return IntegrityConstraintViolation(str(error), cause=error)
    return DatabaseError(str(error), cause=error)
