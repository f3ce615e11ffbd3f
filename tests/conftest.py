# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

import pytest
from fixtures.credentials import DummyTokenCredential
from fixtures.mock_arm import MockArm

from allowlist_sync import constants
from allowlist_sync._common._session import clear_session


@pytest.fixture(autouse=True)
def reset_package_state():
    """Drop the cached session and feature flags between tests."""
    clear_session()
    constants.FEATURE_FLAG.clear()
    yield
    clear_session()
    constants.FEATURE_FLAG.clear()


@pytest.fixture
def credential():
    return DummyTokenCredential()


@pytest.fixture
def mock_arm(mocker):
    """Route every requests.request call to an in-memory resource group."""
    arm = MockArm()
    mocker.patch("requests.request", side_effect=arm)
    return arm


@pytest.fixture
def no_sleep(mocker):
    return mocker.patch("allowlist_sync._common._arm_endpoint.time.sleep")
