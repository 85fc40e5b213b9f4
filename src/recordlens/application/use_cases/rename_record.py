import logging
from dataclasses import dataclass
from typing import Optional

from .base import UseCase, UseCaseRequest, UseCaseResponse
from recordlens.application.services.record_service import RecordService
from recordlens.domain.ports import Notifier
from recordlens.errors import EmptyInputRejected, NetworkFailure

@dataclass(frozen=True)
class RenameRecordRequest(UseCaseRequest):
    record_id: str = ""
    title: str = ""

@dataclass(frozen=True)
class RenameRecordResponse(UseCaseResponse):
    title: Optional[str] = None

class RenameRecordUseCase(UseCase):
    def __init__(self, records: RecordService, notifier: Optional[Notifier] = None):
        self._records = records
        self._notifier = notifier
        self._logger = logging.getLogger(__name__)

    async def execute(self, request: RenameRecordRequest) -> RenameRecordResponse:
        try:
            title = await self._records.rename(request.record_id, request.title)
        except EmptyInputRejected as exc:
            return RenameRecordResponse(success=False, error=str(exc))
        except NetworkFailure as exc:
            self._logger.error("Rename of %s failed: %s", request.record_id, exc)
            if self._notifier is not None:
                self._notifier.notify_error(str(exc))
            return RenameRecordResponse(success=False, error=str(exc))

        if self._notifier is not None:
            self._notifier.notify_success("Title updated")
        return RenameRecordResponse(success=True, title=title)
