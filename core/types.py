"""
타입 정의 모듈

원장 전역에서 쓰는 Enum 정의
모든 Enum은 str을 상속하여 문자열 직렬화 가능
"""

from enum import Enum


class LedgerMode(str, Enum):
    """기장 모드 (복식 / 단식)

    복식: 모든 거래의 line 합계가 0
    단식: 균형 검증 없음 (외부 상대방과 암묵적으로 균형)
    """

    DOUBLE_ENTRY = "double_entry"
    SIMPLE = "simple"


class AccountType(str, Enum):
    """계좌 유형"""

    BANK = "bank"
    CASH = "cash"
    CREDIT = "credit"
    OTHER = "other"


class Frequency(str, Enum):
    """반복 거래 주기"""

    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


class TransactionKind(str, Enum):
    """거래 출처 구분

    리포트에서 정합 조정 거래를 수입/지출 집계에서 제외할 때 사용.
    """

    REGULAR = "regular"
    RECURRING = "recurring"
    RECONCILIATION = "reconciliation"


class Collection(str, Enum):
    """저장소 컬렉션 이름"""

    ACCOUNTS = "accounts"
    BUDGETS = "budgets"
    TRANSACTIONS = "transactions"
    RECURRING_TRANSACTIONS = "recurring_transactions"
    STAGED_TRANSACTIONS = "staged_transactions"
