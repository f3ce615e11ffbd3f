# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Handles interactions with the Azure Resource Manager API, including authentication and request management."""

import base64
import datetime
import json
import logging
import time
from typing import Optional

import requests
from azure.core.credentials import TokenCredential
from azure.core.exceptions import (
    ClientAuthenticationError,
)

import allowlist_sync.constants as constants
from allowlist_sync._common._exceptions import InvokeError, TokenError

logger = logging.getLogger(__name__)

_IN_PROGRESS_STATUSES = {"InProgress", "Accepted", "Running", "Creating", "Updating"}


class ArmEndpoint:
    """Handles interactions with the Azure Resource Manager API, including authentication and request management."""

    def __init__(
        self,
        token_credential: TokenCredential,
        requests_module: requests = requests,
        tenant_id: Optional[str] = None,
    ) -> None:
        """
        Initializes the ArmEndpoint instance, sets up the authentication token.

        Args:
            token_credential: The token credential.
            requests_module: The requests module.
            tenant_id: The tenant to request tokens from. If omitted, the credential's own tenant is used.
        """
        self.aad_token = None
        self.aad_token_expiration = None
        self.token_claims = {}
        self.token_credential = token_credential
        self.requests = requests_module
        self.requested_tenant_id = tenant_id
        self._refresh_token()

    @property
    def tenant_id(self) -> Optional[str]:
        """Tenant the current token was issued by."""
        return self.token_claims.get("tid")

    def invoke(self, method: str, url: str, body: Optional[dict] = None) -> dict:
        """
        Sends an HTTP request to the specified URL with the given method and body.

        Long-running operations are polled until they reach a terminal state. For a PUT, the
        resource is read back once the operation succeeds.

        Args:
            method: HTTP method to use for the request (e.g., 'GET', 'PUT', 'DELETE').
            url: URL to send the request to, including the api-version query parameter.
            body: The JSON body to include in the request.
        """
        exit_loop = False
        iteration_count = 0
        throttle_count = 0
        token_refreshed = False
        long_running = False
        resource_url = url if method in {"PUT", "PATCH"} else None
        start_time = time.time()
        invoke_log_message = ""
        response = None

        while not exit_loop:
            self._refresh_token()
            try:
                headers = {
                    "Authorization": f"Bearer {self.aad_token}",
                    "User-Agent": f"{constants.USER_AGENT}",
                    "Content-Type": "application/json; charset=utf-8",
                }
                response = self.requests.request(method=method, url=url, headers=headers, json=body)

                iteration_count += 1

                invoke_log_message = _format_invoke_log(response, method, url, body)

                # Handle expired authentication token, once per request
                if response.status_code == 401 and _error_code(response) == "ExpiredAuthenticationToken":
                    if token_refreshed:
                        msg = "ARM rejected the refreshed AAD token as expired. Check the system clock."
                        raise TokenError(msg, logger)
                    token_refreshed = True
                    logger.info(f"{constants.INDENT}AAD token expired. Refreshing token.")
                    self.aad_token = None
                    self._refresh_token()
                else:
                    if response.status_code == 429:
                        throttle_count += 1
                    exit_loop, method, url, body, long_running = _handle_response(
                        response,
                        method,
                        url,
                        body,
                        long_running,
                        iteration_count,
                        resource_url,
                        throttle_count,
                    )

                if logger.isEnabledFor(logging.DEBUG):
                    logger.debug(invoke_log_message)

            except Exception as e:
                logger.debug(invoke_log_message)
                raise InvokeError(e, logger, invoke_log_message) from e

        end_time = time.time()
        logger.debug(f"Request completed in {end_time - start_time} seconds")

        return {
            "header": dict(response.headers),
            "body": _response_json(response),
            "status_code": response.status_code,
        }

    def list_all(self, url: str) -> list[dict]:
        """
        Returns every entry of a collection, following nextLink pagination.

        Args:
            url: URL of the first page of the collection.
        """
        values = []
        next_url = url
        while next_url:
            response = self.invoke(method="GET", url=next_url)
            values.extend(response["body"].get("value", []))
            next_url = response["body"].get("nextLink")
        return values

    def _refresh_token(self) -> None:
        """Refreshes the AAD token if empty or expiration has passed."""
        if (
            self.aad_token is None
            or self.aad_token_expiration is None
            or self.aad_token_expiration < datetime.datetime.now()
        ):
            token_kwargs = {"tenant_id": self.requested_tenant_id} if self.requested_tenant_id else {}
            try:
                self.aad_token = self.token_credential.get_token(constants.ARM_TOKEN_SCOPE, **token_kwargs).token
            except ClientAuthenticationError as e:
                msg = f"Failed to acquire AAD token. {e}"
                raise TokenError(msg, logger) from e
            except Exception as e:
                msg = f"An unexpected error occurred when generating the AAD token. {e}"
                raise TokenError(msg, logger) from e

            try:
                decoded_token = _decode_jwt(self.aad_token)
                expiration = decoded_token.get("exp")
                upn = decoded_token.get("upn")
                appid = decoded_token.get("appid")
                oid = decoded_token.get("oid")

                if expiration:
                    self.aad_token_expiration = datetime.datetime.fromtimestamp(expiration)
                else:
                    msg = "Token does not contain expiration claim."
                    raise TokenError(msg, logger)

                self.token_claims = decoded_token

                if upn:
                    _log_executing_identity(f"Executing as User '{upn}'")
                elif appid:
                    _log_executing_identity(f"Executing as Application Id '{appid}'")
                elif oid:
                    _log_executing_identity(f"Executing as Object Id '{oid}'")

            except Exception as e:
                msg = f"An unexpected error occurred while decoding the credential token. {e}"
                raise TokenError(msg, logger) from e


def _log_executing_identity(msg: str) -> None:
    if "disable_print_identity" not in constants.FEATURE_FLAG:
        logger.info(msg)


def _handle_response(
    response: requests.Response,
    method: str,
    url: str,
    body: Optional[dict],
    long_running: bool,
    iteration_count: int,
    resource_url: Optional[str],
    throttle_count: int = 0,
) -> tuple:
    """
    Handles the response from an HTTP request, including long-running operations and throttling.

    Args:
        response: The response object from the HTTP request.
        method: The HTTP method used in the request.
        url: The URL used in the request.
        body: The JSON body used in the request.
        long_running: A boolean indicating if a long-running operation is being polled.
        iteration_count: The current iteration count of the loop.
        resource_url: The URL to read back once a long-running PUT or PATCH succeeds, otherwise None.
        throttle_count: The number of throttled responses received so far for this request.
    """
    exit_loop = False
    retry_after = response.headers.get("Retry-After", 60)
    async_operation_url = response.headers.get("Azure-AsyncOperation")

    # Poll long-running operations
    # https://learn.microsoft.com/azure/azure-resource-manager/management/async-operations
    if long_running and response.status_code == 202:
        url = response.headers.get("Location") or url
        handle_retry(
            attempt=iteration_count - 1,
            base_delay=0.5,
            response_retry_after=retry_after,
            prepend_message=f"{constants.INDENT}Operation in progress.",
        )

    elif long_running and response.status_code == 200 and "status" in _response_json(response):
        response_json = _response_json(response)
        status = response_json.get("status")
        if status == "Succeeded":
            long_running = False
            if resource_url is None:
                exit_loop = True
            else:
                url = resource_url
                method = "GET"
                body = None
        elif status in {"Failed", "Canceled"}:
            response_error = response_json.get("error") or {}
            msg = (
                f"Operation {status.lower()}. Error Code: {response_error.get('code')}. "
                f"Error Message: {response_error.get('message')}"
            )
            raise Exception(msg)
        elif status in _IN_PROGRESS_STATUSES:
            handle_retry(
                attempt=iteration_count - 1,
                base_delay=0.5,
                response_retry_after=retry_after,
                prepend_message=f"{constants.INDENT}Operation in progress.",
            )
        else:
            msg = f"Operation is in an undefined state. Full Body: {response_json}"
            raise Exception(msg)

    # Start polling an accepted operation
    elif response.status_code == 202 or (
        response.status_code in {200, 201} and method != "GET" and async_operation_url is not None
    ):
        poll_url = async_operation_url or response.headers.get("Location")
        if poll_url is None:
            exit_loop = True
        else:
            url = poll_url
            method = "GET"
            body = None
            long_running = True
            time.sleep(1)

    # Handle successful responses
    elif response.status_code in {200, 201, 204}:
        exit_loop = True

    # Handle API throttling
    elif response.status_code == 429:
        handle_retry(
            attempt=throttle_count,
            base_delay=10,
            max_retries=5,
            response_retry_after=retry_after,
            prepend_message="API is throttled.",
        )

    # Handle unauthorized access
    elif response.status_code in {401, 403}:
        msg = f"The executing identity is not authorized to call {method} on '{url}'.{_error_detail(response)}"
        raise Exception(msg)

    # Handle unexpected errors
    else:
        msg = f"Unhandled error occurred calling {method} on '{url}'.{_error_detail(response)}"
        raise Exception(msg)

    return exit_loop, method, url, body, long_running


def handle_retry(
    attempt: int,
    base_delay: float,
    response_retry_after: float = 60,
    prepend_message: str = "",
    max_retries: Optional[int] = None,
) -> None:
    """
    Handles retry logic with exponential backoff based on the response.

    Args:
        attempt: The current attempt number.
        base_delay: Base delay in seconds for backoff.
        response_retry_after: The value of the Retry-After header from the response.
        prepend_message: Message to prepend to the retry log.
        max_retries: Maximum number of retry attempts. If None, retries indefinitely.
    """
    if max_retries is None or attempt < max_retries:
        retry_after = float(response_retry_after)
        base_delay = float(base_delay)
        delay = min(retry_after, base_delay * (2**attempt))

        # modify output for proper plurality and formatting
        delay_str = f"{delay:.0f}" if delay.is_integer() else f"{delay:.2f}"
        second_str = "second" if delay == 1 else "seconds"
        prepend_message += " " if prepend_message else ""

        logger.info(
            f"{constants.INDENT}{prepend_message}Checking again in {delay_str} {second_str} (Attempt {attempt})..."
        )
        time.sleep(delay)
    else:
        msg = f"Maximum retry attempts ({max_retries}) exceeded."
        raise Exception(msg)


def _response_json(response: requests.Response) -> dict:
    """Returns the JSON body of the response, or an empty dict when there is none."""
    if "application/json" not in (response.headers.get("Content-Type") or ""):
        return {}
    if not response.content:
        return {}
    return response.json()


def _error_code(response: requests.Response) -> Optional[str]:
    return (_response_json(response).get("error") or {}).get("code")


def _error_detail(response: requests.Response) -> str:
    error = _response_json(response).get("error") or {}
    if not error:
        return ""
    return f" Code: {error.get('code')}. Message: {error.get('message')}"


def _decode_jwt(token: str) -> dict:
    """
    Decodes a JWT token and returns the payload as a dictionary.

    Args:
        token: The JWT token to decode.
    """
    try:
        parts = token.split(".")
        if len(parts) != 3:
            msg = "The token has an invalid JWT format"
            raise TokenError(msg, logger)

        # Decode the payload (second part of the token)
        payload = parts[1]
        padding = "=" * (4 - len(payload) % 4)
        payload += padding
        decoded_bytes = base64.urlsafe_b64decode(payload.encode("utf-8"))
        decoded_str = decoded_bytes.decode("utf-8")
        return json.loads(decoded_str)
    except Exception as e:
        msg = f"An unexpected error occurred while decoding the credential token. {e}"
        raise TokenError(msg, logger) from e


def _format_invoke_log(response: requests.Response, method: str, url: str, body: Optional[dict]) -> str:
    """
    Format the log message for the invoke method.

    Args:
        response: The response object from the HTTP request.
        method: The HTTP method used in the request.
        url: The URL used in the request.
        body: The JSON body used in the request.
    """
    message = [
        f"\nURL: {url}",
        f"Method: {method}",
        (f"Request Body:\n{json.dumps(body, indent=4)}" if body else "Request Body: None"),
    ]
    if response is not None:
        response_json = _response_json(response)
        message.extend([
            f"Response Status: {response.status_code}",
            "Response Headers:",
            json.dumps(dict(response.headers), indent=4),
            "Response Body:",
            (json.dumps(response_json, indent=4) if response_json else response.text),
            "",
        ])

    return "\n".join(message)
