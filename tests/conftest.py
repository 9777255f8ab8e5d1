import pytest

from vanstate import Document, ManualTimer, Runtime, get_runtime, set_runtime


@pytest.fixture
def timer():
    return ManualTimer()


@pytest.fixture
def runtime(timer):
    """An isolated default Runtime driven by a ManualTimer."""
    previous = get_runtime()
    rt = Runtime(timer=timer)
    set_runtime(rt)
    yield rt
    set_runtime(previous)


@pytest.fixture
def document():
    return Document()
