from .base_crm_client import BaseCRMClient, UploadedFile
from .hubspot_client import HubSpotClient, normalize_pdf_url

__all__ = ["BaseCRMClient", "UploadedFile", "HubSpotClient", "normalize_pdf_url"]
