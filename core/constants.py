"""
하드코딩 상수 - 변경될 일이 거의 없는 고정값

중요: 경로는 반드시 pathlib.Path 사용 (Windows/Linux 크로스 플랫폼)
"""

from decimal import Decimal
from pathlib import Path


# 프로젝트 루트 (이 파일 기준 2단계 상위: core/constants.py → ledgerbook/)
PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent

# 분개 합계 / 정합 비교 허용 오차
BALANCE_TOLERANCE: Decimal = Decimal("0.000001")


class Defaults:
    """기본값 상수"""

    LEDGER_MODE: str = "double_entry"
    LOG_LEVEL: str = "INFO"

    # 반복 거래로 생성된 거래 설명 접미사
    RECURRING_SUFFIX: str = " (recurring)"

    # 정합 조정 거래
    RECONCILIATION_TAG: str = "reconciliation"
    RECONCILIATION_DESCRIPTION: str = "Balance reconciliation"
    RECONCILIATION_ACCOUNT_ID: str = "system:reconciliation"
    RECONCILIATION_ACCOUNT_NAME: str = "Reconciliation Adjustments"

    SNAPSHOT_VERSION: int = 1


class Paths:
    """프로젝트 경로 상수 (pathlib 사용 - OS 독립적)"""

    # 디렉토리
    CONFIG_DIR: Path = PROJECT_ROOT / "config"
    DATA_DIR: Path = PROJECT_ROOT / "data"
    LOGS_DIR: Path = PROJECT_ROOT / "logs"
    CLI_LOGS_DIR: Path = LOGS_DIR / "cli"
    SCHEDULER_LOGS_DIR: Path = LOGS_DIR / "scheduler"

    # 설정 파일
    SETTINGS_FILE: Path = CONFIG_DIR / "settings.yaml"

    # DB 파일
    LEDGER_DB: Path = DATA_DIR / "ledger.db"
