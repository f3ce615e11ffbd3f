# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Test fixtures and utilities."""

from fixtures.credentials import OTHER_TENANT_ID, TEST_TENANT_ID, DummyTokenCredential, create_dummy_jwt
from fixtures.mock_arm import TEST_RESOURCE_GROUP, TEST_SUBSCRIPTION_ID, MockArm, make_response

__all__ = [
    "OTHER_TENANT_ID",
    "TEST_RESOURCE_GROUP",
    "TEST_SUBSCRIPTION_ID",
    "TEST_TENANT_ID",
    "DummyTokenCredential",
    "MockArm",
    "create_dummy_jwt",
    "make_response",
]
