from .document_service import DocumentService, OrderDocument, document_file_name, render_pdf, summary_lines
from .order_preparation import infer_uom_from_title, line_item_from_product, order_total, prepare_order
from .submission_pipeline import DraftResult, OrderSubmissionPipeline, SubmissionResult, draft_properties

__all__ = [
    "DocumentService",
    "OrderDocument",
    "document_file_name",
    "render_pdf",
    "summary_lines",
    "infer_uom_from_title",
    "line_item_from_product",
    "order_total",
    "prepare_order",
    "DraftResult",
    "OrderSubmissionPipeline",
    "SubmissionResult",
    "draft_properties",
]
