"""
원장 예외 정의

모든 원장 작업 실패는 LedgerError 하위 예외로 호출자에게 전달된다.
"""


class LedgerError(Exception):
    """원장 작업 실패 기본 예외"""

    pass


class UnbalancedTransactionError(LedgerError):
    """복식 모드에서 line 합계가 0이 아닌 경우"""

    def __init__(self, transaction_id: str, total: object):
        self.transaction_id = transaction_id
        self.total = total
        super().__init__(f"Unbalanced transaction {transaction_id}: sum of lines = {total}")


class EmptyPostingError(LedgerError):
    """line이 없거나 금액이 0인 line이 있는 경우"""

    pass


class NotFoundError(LedgerError):
    """참조한 거래 / 계좌 / 반복 거래가 없는 경우"""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class AccountNotFoundError(NotFoundError):
    """정합 대상 계좌가 없는 경우"""

    def __init__(self, account_id: str):
        super().__init__("Account", account_id)


class DuplicateIdError(LedgerError):
    """이미 존재하는 ID로 새 거래 / 대기 거래를 만들려는 경우"""

    def __init__(self, kind: str, key: str):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} already exists: {key}")


class DanglingAccountReferenceError(LedgerError):
    """line이 더 이상 존재하지 않는 계좌를 가리키는 경우"""

    def __init__(self, account_ids: set[str] | list[str]):
        self.account_ids = sorted(account_ids)
        super().__init__(f"Lines reference missing accounts: {', '.join(self.account_ids)}")


class NothingStagedError(LedgerError):
    """커밋할 대기 거래가 없는 경우"""

    def __init__(self, account_id: str):
        self.account_id = account_id
        super().__init__(f"Nothing staged for account {account_id}")


class AccountInUseError(LedgerError):
    """거래가 참조 중인 계좌를 cascade 없이 삭제하려는 경우"""

    def __init__(self, account_id: str, transaction_count: int):
        self.account_id = account_id
        self.transaction_count = transaction_count
        super().__init__(
            f"Account {account_id} is referenced by {transaction_count} transaction(s)"
        )


class InvalidRecordError(LedgerError):
    """저장소 경계에서 레코드 검증에 실패한 경우"""

    pass
