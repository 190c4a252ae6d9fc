"""
스토리지 모듈

원장 엔티티를 컬렉션별 키-레코드로 저장하는 범용 저장소 제공
"""

from core.storage.record_store import RecordStore

__all__ = [
    "RecordStore",
]
