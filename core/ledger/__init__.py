"""
가계부 원장 (Ledger) 시스템

계좌 간 자금 이동 기록, 잔액 유지, 반복 거래 생성,
대기 거래 정합을 담당하는 원장 코어.

사용 예시:
```python
from core.ledger import Ledger, Transaction, PostingLine
from core.types import LedgerMode

async with SQLiteAdapter(db_path) as db:
    ledger = await Ledger.open(db)

    # 이체 거래
    tx = Transaction(
        transaction_id="tx:1",
        booked_on=date(2024, 5, 1),
        lines=[
            PostingLine("acc:checking", Decimal("-40")),
            PostingLine("acc:savings", Decimal("40")),
        ],
    )
    await ledger.engine.create_transaction(tx, LedgerMode.DOUBLE_ENTRY)

    # 잔액 감사
    audit = await ledger.engine.recompute_account_balance("acc:checking")
```
"""

from core.ledger.errors import (
    AccountInUseError,
    AccountNotFoundError,
    DanglingAccountReferenceError,
    DuplicateIdError,
    EmptyPostingError,
    InvalidRecordError,
    LedgerError,
    NothingStagedError,
    NotFoundError,
    UnbalancedTransactionError,
)
from core.ledger.ledger import Ledger
from core.ledger.models import (
    Account,
    BalanceAudit,
    Budget,
    PostingLine,
    RecurringTemplate,
    StagedTransaction,
    Transaction,
)
from core.ledger.posting import PostingEngine, validate_postings
from core.ledger.recurring import ProcessReport, RecurrenceScheduler, is_due
from core.ledger.snapshot import LedgerSnapshot
from core.ledger.staging import CommitResult, StagingArea

__all__ = [
    # 핵심 클래스
    "Ledger",
    "PostingEngine",
    "RecurrenceScheduler",
    "StagingArea",
    "LedgerSnapshot",
    # 모델
    "Account",
    "Budget",
    "PostingLine",
    "Transaction",
    "RecurringTemplate",
    "StagedTransaction",
    "BalanceAudit",
    "ProcessReport",
    "CommitResult",
    # 함수
    "is_due",
    "validate_postings",
    # 예외
    "LedgerError",
    "UnbalancedTransactionError",
    "EmptyPostingError",
    "NotFoundError",
    "AccountNotFoundError",
    "DanglingAccountReferenceError",
    "DuplicateIdError",
    "NothingStagedError",
    "AccountInUseError",
    "InvalidRecordError",
]
