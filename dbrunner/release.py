"""
리소스 해제 모듈

커넥션, 스테이트먼트, 결과셋을 예외 없이 닫습니다. 해제 실패는 로그로만 남깁니다.
"""

import logging
from typing import Any, Iterable

logger = logging.getLogger(__name__)


def non_throwing_close(resource: Any) -> None:
    """리소스 close (실패 시 경고 로그만 남김)"""
    if resource is None:
        return

    name = type(resource).__name__
    try:
        logger.debug(f"Closing {name}")
        resource.close()
    except Exception as e:
        logger.warning(f"Exception on close of {name}: {e}", exc_info=True)


def close_all(resources: Iterable[Any]) -> None:
    """획득 역순으로 리소스 해제"""
    for resource in reversed(list(resources)):
        non_throwing_close(resource)
