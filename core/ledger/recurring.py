"""
반복 거래 스케줄러

템플릿이 기준일(as_of)에 "도래"했는지 판단하고,
도래한 템플릿을 PostingEngine을 통해 거래로 생성한다.

중복 처리 방지:
    거래 생성과 last_processed 갱신이 같은 atomic 단위에서 커밋되므로
    같은 as_of로 두 번 실행해도 템플릿당 최대 1건만 생성된다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date
from typing import TYPE_CHECKING
from uuid import uuid4

from core.constants import Defaults
from core.ledger.errors import LedgerError, NotFoundError
from core.ledger.models import RecurringTemplate, Transaction
from core.ledger.posting import validate_postings
from core.types import Frequency, LedgerMode, TransactionKind

if TYPE_CHECKING:
    from core.ledger.posting import PostingEngine
    from core.ledger.repository import LedgerRepository

logger = logging.getLogger(__name__)


def months_between(last: date, as_of: date) -> int:
    """달력 기준 월 차이 (일수와 무관)"""
    return (as_of.year - last.year) * 12 + (as_of.month - last.month)


def is_due(last_processed: date, as_of: date, frequency: Frequency) -> bool:
    """주기 도래 여부

    - daily: 경과 일수 >= 1
    - weekly: 경과 일수 >= 7
    - monthly: 달력 월 차이 >= 1 (1/31 → 2/1 도래)
    - yearly: as_of 연도 > 마지막 처리 연도
    """
    if frequency == Frequency.DAILY:
        return (as_of - last_processed).days >= 1
    if frequency == Frequency.WEEKLY:
        return (as_of - last_processed).days >= 7
    if frequency == Frequency.MONTHLY:
        return months_between(last_processed, as_of) >= 1
    if frequency == Frequency.YEARLY:
        return as_of.year > last_processed.year
    return False


@dataclass
class ProcessResult:
    """템플릿 1건 처리 결과"""

    template_id: str
    transaction_id: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class ProcessReport:
    """process_due 배치 결과"""

    as_of: date
    processed: list[ProcessResult] = field(default_factory=list)
    failed: list[ProcessResult] = field(default_factory=list)

    @property
    def transaction_ids(self) -> list[str]:
        return [r.transaction_id for r in self.processed if r.transaction_id]


class RecurrenceScheduler:
    """반복 거래 스케줄러

    Args:
        engine: 분개 적용 엔진
        repo: 도메인 모델 저장소
    """

    def __init__(self, engine: PostingEngine, repo: LedgerRepository):
        self.engine = engine
        self.repo = repo

    # -------------------------------------------------------------------------
    # 템플릿 관리
    # -------------------------------------------------------------------------

    async def save_template(self, template: RecurringTemplate, mode: LedgerMode) -> RecurringTemplate:
        """템플릿 생성/수정

        line은 거래와 같은 규칙으로 검증.
        last_processed는 스케줄러만 갱신하므로 기존 템플릿의 값을 유지한다.
        """
        validate_postings(template.lines, mode, template.template_id)
        async with self.engine.atomic():
            existing = await self.repo.get_template(template.template_id)
            if existing is not None:
                template = replace(template, last_processed=existing.last_processed)
            await self.repo.put_template(template)
        logger.info("반복 거래 저장", extra={"template_id": template.template_id})
        return template

    async def get_template(self, template_id: str) -> RecurringTemplate:
        template = await self.repo.get_template(template_id)
        if template is None:
            raise NotFoundError("RecurringTemplate", template_id)
        return template

    async def list_templates(self) -> list[RecurringTemplate]:
        return await self.repo.list_templates()

    async def set_active(self, template_id: str, active: bool) -> RecurringTemplate:
        """활성/비활성 전환 (비활성화는 템플릿을 삭제하지 않는다)"""
        async with self.engine.atomic():
            template = await self.get_template(template_id)
            template = replace(template, active=active)
            await self.repo.put_template(template)
        return template

    async def delete_template(self, template_id: str) -> bool:
        async with self.engine.atomic():
            return await self.repo.delete_template(template_id)

    # -------------------------------------------------------------------------
    # 처리
    # -------------------------------------------------------------------------

    async def process_due(self, as_of: date, mode: LedgerMode) -> ProcessReport:
        """도래한 모든 템플릿 처리

        템플릿 하나의 실패(LedgerError)는 보고서에 기록하고 나머지는 계속 처리.
        실패한 템플릿의 last_processed는 바뀌지 않아 다음 실행 때 다시 대상이 된다.
        """
        report = ProcessReport(as_of=as_of)

        for template in await self.repo.list_templates():
            if not self._eligible(template, as_of):
                continue
            if not is_due(template.reference_date, as_of, template.frequency):
                continue

            try:
                tx = await self._materialize(template.template_id, as_of, mode, force=False)
            except LedgerError as e:
                logger.warning(
                    "반복 거래 처리 실패",
                    extra={"template_id": template.template_id, "error": str(e)},
                )
                report.failed.append(ProcessResult(template.template_id, error=str(e)))
                continue

            if tx is not None:
                report.processed.append(ProcessResult(template.template_id, tx.transaction_id))

        logger.info(
            f"반복 거래 처리 완료: as_of={as_of.isoformat()}, "
            f"processed={len(report.processed)}, failed={len(report.failed)}"
        )
        return report

    async def process_template(
        self,
        template_id: str,
        as_of: date,
        mode: LedgerMode,
    ) -> Transaction | None:
        """템플릿 1건 처리 (주기 준수)

        Returns:
            생성된 거래 (도래하지 않았거나 비활성/만료면 None)

        Raises:
            NotFoundError: 템플릿이 없는 경우
            LedgerError: 검증 실패
        """
        return await self._materialize(template_id, as_of, mode, force=False)

    async def force_process(
        self,
        template_id: str,
        as_of: date,
        mode: LedgerMode,
    ) -> Transaction:
        """주기와 무관하게 템플릿 강제 처리

        도래 여부와 종료일을 무시한다. 검증은 동일하게 수행하고
        성공 시 last_processed를 as_of로 갱신한다.
        """
        tx = await self._materialize(template_id, as_of, mode, force=True)
        assert tx is not None
        return tx

    # -------------------------------------------------------------------------
    # 내부
    # -------------------------------------------------------------------------

    @staticmethod
    def _eligible(template: RecurringTemplate, as_of: date) -> bool:
        return template.active and not template.is_expired(as_of)

    async def _materialize(
        self,
        template_id: str,
        as_of: date,
        mode: LedgerMode,
        force: bool,
    ) -> Transaction | None:
        async with self.engine.atomic():
            # 잠금 안에서 다시 읽어 동시 실행 시 중복 생성 방지
            template = await self.get_template(template_id)

            if not force:
                if not self._eligible(template, as_of):
                    return None
                if not is_due(template.reference_date, as_of, template.frequency):
                    return None

            tx = build_transaction(template, as_of)
            validate_postings(tx.lines, mode, template.template_id)
            await self.engine.apply_postings(tx)
            await self.repo.put_template(replace(template, last_processed=as_of))

        logger.info(
            "반복 거래 생성",
            extra={
                "template_id": template_id,
                "transaction_id": tx.transaction_id,
                "as_of": as_of.isoformat(),
                "forced": force,
            },
        )
        return tx


def build_transaction(template: RecurringTemplate, as_of: date) -> Transaction:
    """템플릿에서 as_of 날짜의 거래 생성"""
    return Transaction(
        transaction_id=str(uuid4()),
        booked_on=as_of,
        lines=list(template.lines),
        description=f"{template.description}{Defaults.RECURRING_SUFFIX}",
        budget_id=template.budget_id,
        tags=list(template.tags),
        kind=TransactionKind.RECURRING,
        recurring_id=template.template_id,
    )
