# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Authenticated session bound to one tenant and subscription."""

import logging
import re
from typing import Optional

from azure.core.credentials import TokenCredential
from azure.identity import DefaultAzureCredential

import allowlist_sync.constants as constants
from allowlist_sync._common._arm_endpoint import ArmEndpoint
from allowlist_sync._common._exceptions import InvokeError, SessionError

logger = logging.getLogger(__name__)

_current_session = None


class AzureSession:
    """An ARM endpoint authenticated against a tenant, with a verified subscription."""

    def __init__(
        self,
        tenant_id: str,
        subscription_id: str,
        token_credential: Optional[TokenCredential] = None,
    ) -> None:
        """
        Authenticates and verifies the subscription is reachable from the tenant.

        Args:
            tenant_id: The tenant ID or domain to authenticate against.
            subscription_id: The subscription the session is scoped to.
            token_credential: The token credential. If omitted, DefaultAzureCredential is used.
        """
        self.tenant_id = tenant_id
        self.subscription_id = subscription_id
        self.token_credential = (
            DefaultAzureCredential(additionally_allowed_tenants=[tenant_id])
            if token_credential is None
            else token_credential
        )
        self.endpoint = ArmEndpoint(
            token_credential=self.token_credential,
            tenant_id=tenant_id,
        )
        self.subscription_name = None
        self._verify_subscription()

    @property
    def subscription_url(self) -> str:
        return f"{constants.ARM_ROOT_URL}/subscriptions/{self.subscription_id}"

    def matches(
        self, tenant_id: str, subscription_id: str, token_credential: Optional[TokenCredential] = None
    ) -> bool:
        """
        Checks whether the session is bound to the given context.

        Args:
            tenant_id: The tenant ID or domain.
            subscription_id: The subscription ID.
            token_credential: The credential the caller wants to use, if any.
        """
        if token_credential is not None and token_credential is not self.token_credential:
            return False
        if subscription_id.lower() != self.subscription_id.lower():
            return False
        known_tenants = {self.tenant_id.lower(), (self.endpoint.tenant_id or "").lower()}
        return tenant_id.lower() in known_tenants

    def _verify_subscription(self) -> None:
        """Reads the subscription and checks it belongs to the requested tenant."""
        url = f"{self.subscription_url}?api-version={constants.SUBSCRIPTION_API_VERSION}"
        try:
            subscription = self.endpoint.invoke(method="GET", url=url)["body"]
        except InvokeError as e:
            msg = f"Subscription '{self.subscription_id}' is not accessible in tenant '{self.tenant_id}'."
            raise SessionError(msg, logger, e.additional_info) from e

        subscription_tenant = subscription.get("tenantId")
        if (
            subscription_tenant
            and re.match(constants.VALID_GUID_REGEX, self.tenant_id)
            and subscription_tenant.lower() != self.tenant_id.lower()
        ):
            msg = (
                f"Subscription '{self.subscription_id}' belongs to tenant '{subscription_tenant}', "
                f"not '{self.tenant_id}'."
            )
            raise SessionError(msg, logger)

        state = subscription.get("state")
        if state and state != "Enabled":
            logger.warning(f"Subscription '{self.subscription_id}' is in state '{state}'")

        self.subscription_name = subscription.get("displayName")
        logger.info(f"Using subscription '{self.subscription_name}' ({self.subscription_id})")


def ensure_session(
    tenant_id: str,
    subscription_id: str,
    token_credential: Optional[TokenCredential] = None,
) -> AzureSession:
    """
    Returns the current session if it is bound to the given context, otherwise authenticates a new one.

    Args:
        tenant_id: The tenant ID or domain.
        subscription_id: The subscription ID.
        token_credential: The token credential. If omitted, DefaultAzureCredential is used.
    """
    global _current_session

    if _current_session is not None:
        if _current_session.matches(tenant_id, subscription_id, token_credential):
            logger.debug(f"Reusing session for subscription '{subscription_id}'")
            return _current_session
        logger.info("Current session is bound to a different context. Authenticating again")

    _current_session = AzureSession(
        tenant_id=tenant_id,
        subscription_id=subscription_id,
        token_credential=token_credential,
    )
    return _current_session


def clear_session() -> None:
    """Drops the current session so the next call authenticates again."""
    global _current_session
    _current_session = None
