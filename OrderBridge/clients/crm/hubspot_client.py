"""
HubSpot CRM client

Orders are stored as a custom object (HUBSPOT_ORDER_OBJECT_TYPE) associated
with the deal they were raised from. Confirmation documents go to the
HubSpot file manager.
"""

import json
import logging
import os
from typing import Any, Callable, Dict, Optional
from urllib.parse import urlparse

import aiohttp

from OrderBridge.clients.http_client import HTTPResponse, ServiceHTTPClient
from OrderBridge.exceptions import CRMError, SupplierConnectionError
from .base_crm_client import BaseCRMClient, UploadedFile

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.hubapi.com"
DEFAULT_ORDER_OBJECT_TYPE = "2-22239999"
ORDER_PDF_PROPERTY = "order_pdf"
UPLOAD_FOLDER = "/orders"


def normalize_pdf_url(url: Optional[str]) -> Optional[str]:
    """
    Make a document URL acceptable to a HubSpot URL property.

    ``//host/x`` and bare hosts get an https scheme; data URLs are kept
    as-is. Returns None for anything that still isn't a usable URL.
    """
    if not url or not str(url).strip():
        return None
    url = str(url).strip()

    if url.startswith("data:"):
        return url
    if not url.startswith(("http://", "https://")):
        url = f"https:{url}" if url.startswith("//") else f"https://{url}"

    parsed = urlparse(url)
    if not parsed.netloc or " " in parsed.netloc:
        logger.warning(f"Discarding invalid document URL: {url[:200]}")
        return None
    return url


class HubSpotClient(BaseCRMClient):
    """
    HubSpot private-app client.

    Args:
        api_key: private app token; defaults to HUBSPOT_API_KEY
        base_url: API root; defaults to HUBSPOT_BASE_URL or api.hubapi.com
        object_type: custom object type id; defaults to HUBSPOT_ORDER_OBJECT_TYPE
        http_client_factory: builds the HTTP client, for tests
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        object_type: Optional[str] = None,
        http_client_factory: Optional[Callable[[str], ServiceHTTPClient]] = None,
    ):
        self.api_key = api_key or os.getenv("HUBSPOT_API_KEY")
        self.base_url = (base_url or os.getenv("HUBSPOT_BASE_URL") or DEFAULT_BASE_URL).rstrip("/")
        self.object_type = object_type or os.getenv("HUBSPOT_ORDER_OBJECT_TYPE") or DEFAULT_ORDER_OBJECT_TYPE
        self._http_client_factory = http_client_factory or (lambda name: ServiceHTTPClient(name))

    def _headers(self, operation: str, json_body: bool = True) -> Dict[str, str]:
        if not self.api_key:
            raise CRMError("HUBSPOT_API_KEY is not set", operation=operation)
        headers = {"Authorization": f"Bearer {self.api_key}"}
        if json_body:
            headers["Content-Type"] = "application/json"
        return headers

    def _objects_url(self, object_id: Optional[str] = None) -> str:
        url = f"{self.base_url}/crm/v3/objects/{self.object_type}"
        return f"{url}/{object_id}" if object_id else url

    async def _send(self, operation: str, method: str, url: str, **kwargs) -> HTTPResponse:
        try:
            async with self._http_client_factory("HubSpot") as client:
                response = await getattr(client, method)(url, **kwargs)
        except SupplierConnectionError as e:
            raise CRMError(f"HubSpot {operation} failed: {e.message}", operation=operation) from e

        if not response.success:
            raise CRMError(
                f"HubSpot {operation} failed ({response.status}): {response.error_text()}",
                status_code=response.status,
                operation=operation,
            )
        return response

    async def create_order_object(self, properties: Dict[str, Any]) -> str:
        response = await self._send(
            "create_order", "post", self._objects_url(),
            headers=self._headers("create_order"), json_data={"properties": properties},
        )
        object_id = response.data.get("id")
        if not object_id:
            raise CRMError("HubSpot create_order returned no id", operation="create_order")
        logger.info(f"Created HubSpot order object {object_id}")
        return str(object_id)

    async def update_order_object(self, object_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        response = await self._send(
            "update_order", "patch", self._objects_url(object_id),
            headers=self._headers("update_order"), json_data={"properties": properties},
        )
        logger.info(f"Updated HubSpot order object {object_id}")
        return response.data

    async def associate_deal(self, object_id: str, deal_id: str) -> Dict[str, Any]:
        url = f"{self.base_url}/crm/v4/associations/{self.object_type}/deals/batch/associate/default"
        body = {"inputs": [{"from": {"id": str(object_id)}, "to": {"id": str(deal_id)}}]}
        response = await self._send(
            "associate_deal", "post", url, headers=self._headers("associate_deal"), json_data=body
        )
        return response.data

    async def set_status(self, object_id: str, status: str, pdf_url: Optional[str] = None) -> Dict[str, Any]:
        properties: Dict[str, Any] = {"status": status}
        normalized = normalize_pdf_url(pdf_url)
        if normalized:
            properties[ORDER_PDF_PROPERTY] = normalized
        elif pdf_url:
            logger.warning(f"Skipping {ORDER_PDF_PROPERTY} for order {object_id}: unusable URL")
        return await self.update_order_object(object_id, properties)

    async def upload_file(self, content: bytes, file_name: str, content_type: str = "application/pdf") -> UploadedFile:
        form = aiohttp.FormData()
        form.add_field("file", content, filename=file_name, content_type=content_type)
        form.add_field("folderPath", UPLOAD_FOLDER)
        form.add_field("fileName", file_name)
        form.add_field("options", json.dumps({"access": "PUBLIC_NOT_INDEXABLE"}))

        response = await self._send(
            "upload_file", "post", f"{self.base_url}/files/v3/files",
            headers=self._headers("upload_file", json_body=False), data=form,
        )
        url = response.data.get("url")
        if not url:
            raise CRMError("HubSpot upload_file returned no URL", operation="upload_file")

        file_id = response.data.get("id")
        portal_id = os.getenv("HUBSPOT_PORTAL_ID")
        folder_id = response.data.get("folderId")
        app_url = None
        if portal_id and folder_id and file_id:
            app_url = f"https://app.hubspot.com/files/{portal_id}/?folderId={folder_id}&showDetails={file_id}"
        return UploadedFile(url=url, file_id=str(file_id) if file_id else None, app_url=app_url)
