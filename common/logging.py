"""
JSON 구조화 로깅 설정

dbrunner 로거(SQL, 트랜잭션 상태 전이, 리소스 해제)의 출력을
ELK/Loki 등 로그 수집 시스템과 연동 가능한 JSON 포맷으로 내보냅니다.
"""

import logging
import sys

from pythonjsonlogger import jsonlogger

JSON_FORMAT = '%(timestamp)s %(level)s %(name)s %(message)s'
TEXT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON 로그 포매터"""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['timestamp'] = self.formatTime(record)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['thread'] = record.threadName


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
    log_file: str | None = None,
    sql_level: str | None = None,
) -> None:
    """
    로깅 설정

    Args:
        level: 루트 로그 레벨 (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: JSON 포맷 사용 여부 (False면 기본 텍스트 포맷)
        log_file: 로그 파일 경로 (None이면 stdout만 사용)
        sql_level: dbrunner 로거 레벨 (None이면 루트 레벨을 따름)
    """
    formatter = CustomJsonFormatter(JSON_FORMAT) if json_format else logging.Formatter(TEXT_FORMAT)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setFormatter(formatter)
    handlers: list[logging.Handler] = [stream_handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding='utf-8')
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        handlers=handlers,
        force=True  # 기존 설정 덮어쓰기
    )

    if sql_level:
        logging.getLogger('dbrunner').setLevel(getattr(logging, sql_level.upper()))
