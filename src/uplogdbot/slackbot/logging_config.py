"""로깅 설정 모듈

로깅 레벨 가이드라인
==================

본 프로젝트에서 로깅 레벨을 선택할 때 다음 기준을 따릅니다.

logger.exception()
    - 예외 처리 블록에서 스택 트레이스가 필요한 경우
    - 핸들러 최상위에서 예상치 못한 오류를 잡았을 때
    - 예: 모달 제출 처리 오류, 예보 스케줄 실행 오류

logger.error()
    - 예상된 오류이거나 스택 트레이스가 불필요한 경우
    - 외부 서비스(Slack, uplogd, 예보 API) 호출 실패
    - 타깃 단위 실행 실패, 버튼 페이로드 파싱 실패
    - 예: "타깃 실행 실패: sg-101 (primary) - ...", "DM 업데이트 실패: {e}"

logger.warning()
    - 복구 가능한 경고 상황
    - 상호작용 단계를 조용히 포기하는 경우 (자산 미선택, 타깃 없음)
    - 설정 누락, 선택적 기능 비활성화
    - 예: "ASSETS_ENDPOINT가 설정되지 않아 빈 자산 목록을 표시합니다"

logger.info()
    - 주요 상태 변경, 작업 시작/완료
    - 예: "uplogd 요청 완료", "예보 게시 완료"

logger.debug()
    - 상세한 디버깅 정보
    - 예: 자산 필터링 결과, 인코딩된 페이로드 크기
"""

import logging
from datetime import datetime
from pathlib import Path

from uplogdbot.slackbot.config import Config


def setup_logging() -> logging.Logger:
    """로깅 설정 및 로거 반환"""
    log_dir = Path(Config.get_log_path())
    log_dir.mkdir(parents=True, exist_ok=True)

    log_file = log_dir / f"bot_{datetime.now().strftime('%Y%m%d')}.log"

    logging.basicConfig(
        level=logging.DEBUG if Config.debug else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(log_file, encoding="utf-8"),
            logging.StreamHandler()
        ]
    )

    # HTTP 클라이언트 로그는 DEBUG 모드에서만 출력
    if not Config.debug:
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        logging.getLogger("urllib3").setLevel(logging.WARNING)

    return logging.getLogger("uplogdbot")
