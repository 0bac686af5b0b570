"""
Base API client with common functionality
"""

import asyncio
from abc import ABC
from typing import Optional, Dict, Any, Union, List
import httpx
from skillsprint.utils.logger import logger
from skillsprint.config.constants import MAX_RETRIES, RETRY_DELAY

JSONBody = Union[Dict[str, Any], List[Dict[str, Any]]]


class BaseAPIClient(ABC):
    """Base class for API clients with common functionality"""

    def __init__(
        self,
        base_url: str,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize base API client

        Args:
            base_url: Base URL for API
            timeout: Request timeout in seconds
            transport: Optional httpx transport (used by tests)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self.logger = logger

    async def _request(
        self,
        method: str,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[JSONBody] = None,
        retries: int = 1,
    ) -> Any:
        """
        Make HTTP request, optionally retrying transport errors and 5xx responses

        Args:
            method: HTTP method (GET, POST, PATCH, DELETE)
            endpoint: API endpoint
            headers: Request headers
            params: Query parameters
            json_data: JSON body
            retries: Number of attempts (1 means no retry)

        Returns:
            Decoded JSON response, or None for empty responses

        Raises:
            httpx.HTTPStatusError: If the server answers with an error status
            httpx.RequestError: If the request fails after all attempts
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        for attempt in range(retries):
            try:
                self.logger.debug(f"Request: {method} {url} (attempt {attempt + 1}/{retries})")

                request_kwargs = {
                    "method": method,
                    "url": url,
                    "headers": headers,
                    "params": params,
                }

                if json_data is not None:
                    request_kwargs["json"] = json_data
                    self.logger.debug(f"Request JSON data: {json_data}")

                response = await self.client.request(**request_kwargs)

                self.logger.debug(f"Response status: {response.status_code}")
                if response.status_code >= 400:
                    self.logger.warning(f"Error response body: {response.text[:1000]}")

                response.raise_for_status()

                # Handle empty response (204 No Content or empty body)
                if response.status_code == 204 or not response.text.strip():
                    return None

                return response.json()

            except httpx.HTTPStatusError as e:
                retryable = e.response.status_code >= 500
                if retryable and attempt < retries - 1:
                    self.logger.warning(
                        f"Request failed with status {e.response.status_code}, "
                        f"retrying in {RETRY_DELAY * (attempt + 1)} seconds..."
                    )
                    await asyncio.sleep(RETRY_DELAY * (attempt + 1))
                else:
                    self.logger.error(f"Request {method} {url} failed: {e}")
                    raise

            except httpx.RequestError as e:
                if attempt < retries - 1:
                    self.logger.warning(
                        f"Request error: {e}, retrying in {RETRY_DELAY * (attempt + 1)} seconds..."
                    )
                    await asyncio.sleep(RETRY_DELAY * (attempt + 1))
                else:
                    self.logger.error(f"Request error after {retries} attempts: {e}")
                    raise

    async def get(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make GET request (reads are safe to retry)"""
        return await self._request("GET", endpoint, headers=headers, params=params, retries=MAX_RETRIES)

    async def post(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[JSONBody] = None,
    ) -> Any:
        """Make POST request"""
        return await self._request("POST", endpoint, headers=headers, params=params, json_data=json_data)

    async def patch(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[JSONBody] = None,
    ) -> Any:
        """Make PATCH request"""
        return await self._request("PATCH", endpoint, headers=headers, params=params, json_data=json_data)

    async def delete(
        self,
        endpoint: str,
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make DELETE request"""
        return await self._request("DELETE", endpoint, headers=headers, params=params)

    async def close(self):
        """Close HTTP client"""
        await self.client.aclose()

    async def __aenter__(self):
        """Async context manager entry"""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.close()
