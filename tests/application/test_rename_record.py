"""Tests for RenameRecordUseCase."""

from unittest.mock import AsyncMock

import pytest

from recordlens.application.services.record_service import RecordService
from recordlens.application.use_cases.rename_record import (
    RenameRecordRequest,
    RenameRecordUseCase,
)


@pytest.fixture
def update_api():
    api = AsyncMock()
    api.update_record.return_value = True
    return api


@pytest.mark.asyncio
async def test_success_notifies(update_api, notifier):
    use_case = RenameRecordUseCase(RecordService(update_api=update_api), notifier)

    response = await use_case.execute(RenameRecordRequest(record_id="rec-1", title=" Hello "))

    assert response.success
    assert response.title == "Hello"
    assert notifier.successes == ["Title updated"]


@pytest.mark.asyncio
async def test_empty_title_fails_silently(update_api, notifier):
    use_case = RenameRecordUseCase(RecordService(update_api=update_api), notifier)

    response = await use_case.execute(RenameRecordRequest(record_id="rec-1", title="  "))

    assert not response.success
    assert "title" in response.error
    assert notifier.errors == []
    update_api.update_record.assert_not_awaited()


@pytest.mark.asyncio
async def test_network_failure_reported(update_api, notifier):
    update_api.update_record.side_effect = ConnectionError("offline")
    use_case = RenameRecordUseCase(RecordService(update_api=update_api), notifier)

    response = await use_case.execute(RenameRecordRequest(record_id="rec-1", title="x"))

    assert not response.success
    assert "offline" in response.error
    assert len(notifier.errors) == 1
    assert notifier.successes == []
