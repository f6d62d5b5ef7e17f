"""
Order confirmation documents.

Renders the order onto letter-size page images with Pillow and saves them
as a PDF, then uploads it through the CRM. Rendering and upload failures
degrade to inline data URLs so submission never stops here.
"""

import base64
import io
import time
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional

from PIL import Image, ImageDraw, ImageFont

from OrderBridge.clients.crm import BaseCRMClient
from OrderBridge.exceptions import log_exception
from OrderBridge.services.base_service import BaseService
from .order_preparation import order_total

PAGE_DPI = 150
PAGE_SIZE = (int(8.5 * PAGE_DPI), int(11 * PAGE_DPI))
MARGIN = 90
LINE_HEIGHT = 28
DELIVERY_FIELDS = ("address_line_1", "address_line_2", "city", "state", "zip_code")


@dataclass
class OrderDocument:
    file_name: str
    url: str
    uploaded: bool = False
    fallback: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {"fileName": self.file_name, "url": self.url, "uploaded": self.uploaded, "fallback": self.fallback}


def _money(value: Any) -> str:
    try:
        return f"${float(value):,.2f}"
    except (TypeError, ValueError):
        return "-"


def order_number_for(order: Dict[str, Any]) -> str:
    return str(
        order.get("orderNumber") or order.get("orderId") or order.get("ticket") or f"ORD-{int(time.time() * 1000)}"
    )


def document_file_name(order: Dict[str, Any]) -> str:
    supplier = str(order.get("supplier") or "UNKNOWN").upper()
    return f"Order-{order_number_for(order)}-{supplier}.pdf"


def summary_lines(order: Dict[str, Any], confirmation_number: Optional[str] = None) -> List[str]:
    """The document's content as plain text lines"""
    lines = [
        "ORDER CONFIRMATION",
        "",
        f"Order Number: {order_number_for(order)}",
        f"Supplier: {str(order.get('supplier') or 'UNKNOWN').upper()}",
        f"Confirmation Number: {confirmation_number or 'Pending'}",
        f"Date: {date.today().isoformat()}",
        "",
    ]

    delivery = order.get("delivery") or {}
    address = [str(delivery[f]) for f in DELIVERY_FIELDS if delivery.get(f)]
    if address:
        lines += ["Delivery Address:"] + [f"  {part}" for part in address] + [""]

    items = order.get("fullOrderItems") or []
    if items:
        lines.append("Items:")
        for index, item in enumerate(items, start=1):
            sku = item.get("sku") or item.get("itemNumber") or "N/A"
            title = item.get("title") or item.get("productName") or item.get("name") or ""
            quantity = item.get("qty", item.get("quantity", 0))
            uom = item.get("uom") or item.get("unitOfMeasure") or ""
            label = f"{title} - SKU: {sku}" if title else f"SKU: {sku}"
            lines.append(
                f"{index}. {label}, Qty: {quantity} {uom}, "
                f"Unit: {_money(item.get('unitPrice'))}, Line: {_money(item.get('linePrice'))}"
            )
        lines.append("")

    lines.append(f"Total: {_money(order_total(order))}")
    return lines


def render_pdf(lines: List[str]) -> bytes:
    """Draw the lines onto as many pages as needed and save them as one PDF"""
    font = ImageFont.load_default()
    per_page = (PAGE_SIZE[1] - 2 * MARGIN) // LINE_HEIGHT

    pages = []
    for start in range(0, max(len(lines), 1), per_page):
        page = Image.new("RGB", PAGE_SIZE, "white")
        draw = ImageDraw.Draw(page)
        for row, text in enumerate(lines[start:start + per_page]):
            draw.text((MARGIN, MARGIN + row * LINE_HEIGHT), text, fill="black", font=font)
        pages.append(page)

    buffer = io.BytesIO()
    pages[0].save(buffer, format="PDF", resolution=PAGE_DPI, save_all=True, append_images=pages[1:])
    return buffer.getvalue()


def data_url(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


class DocumentService(BaseService):
    """Builds and stores order confirmation PDFs"""

    def __init__(self, crm_client: Optional[BaseCRMClient] = None, renderer=render_pdf):
        super().__init__()
        self.crm_client = crm_client
        self.renderer = renderer

    async def create_confirmation(self, order: Dict[str, Any], confirmation_number: Optional[str] = None) -> OrderDocument:
        file_name = document_file_name(order)
        lines = summary_lines(order, confirmation_number)

        try:
            content = self.renderer(lines)
        except Exception as e:
            log_exception(e, context="DocumentService.render", extra_info={"file_name": file_name})
            text = "\n".join(lines).encode("utf-8")
            return OrderDocument(file_name=file_name, url=data_url(text, "text/plain"), fallback="text")

        if self.crm_client is None:
            self.logger.info(f"No CRM client configured, inlining {file_name}")
            return OrderDocument(file_name=file_name, url=data_url(content, "application/pdf"), fallback="pdf")

        try:
            uploaded = await self.crm_client.upload_file(content, file_name)
        except Exception as e:
            log_exception(e, context="DocumentService.upload", extra_info={"file_name": file_name})
            return OrderDocument(file_name=file_name, url=data_url(content, "application/pdf"), fallback="pdf")

        self.logger.info(f"Uploaded {file_name} ({len(content)} bytes)")
        return OrderDocument(file_name=file_name, url=uploaded.app_url or uploaded.url, uploaded=True)
