from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

if TYPE_CHECKING:
    from pytest_mock import MockerFixture


@pytest.fixture(autouse=True)
def no_global_ignore(mocker: MockerFixture) -> None:
    """Keep the developer's global git ignore file out of every test."""
    mocker.patch("scrollcast.exclusion.global_ignore_file", return_value=None)
