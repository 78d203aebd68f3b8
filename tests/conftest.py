# Shared fixtures for list pipeline tests. Qt tests run on the offscreen
# platform and skip themselves when PyQt6 is not installed.

import os
from typing import List

import pytest

from listing import ListResult, ListService

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def service():
    svc: ListService = ListService()
    yield svc
    svc.dispose()


@pytest.fixture
def received(service):
    results: List[ListResult] = []
    service.subscribe(results.append)
    return results
