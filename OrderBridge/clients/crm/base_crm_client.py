"""
Base CRM Client Interface

The order submission pipeline talks to the CRM only through this narrow
contract: order object create/update, deal association, status updates and
file upload.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass
class UploadedFile:
    url: str
    file_id: Optional[str] = None
    app_url: Optional[str] = None


class BaseCRMClient(ABC):
    """Abstract CRM collaborator. Implementations raise CRMError on failure."""

    @abstractmethod
    async def create_order_object(self, properties: Dict[str, Any]) -> str:
        """Create an order record and return its id"""
        pass

    @abstractmethod
    async def update_order_object(self, object_id: str, properties: Dict[str, Any]) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def associate_deal(self, object_id: str, deal_id: str) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def set_status(self, object_id: str, status: str, pdf_url: Optional[str] = None) -> Dict[str, Any]:
        pass

    @abstractmethod
    async def upload_file(self, content: bytes, file_name: str, content_type: str = "application/pdf") -> UploadedFile:
        pass
