import pytest

from fakes import FakeTagApi, RecordingNotifier


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def tag_api() -> FakeTagApi:
    return FakeTagApi({"rec-1": ["a", "b"]})
