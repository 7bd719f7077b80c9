"""Service facades composing engines, modules and batch work."""

from backoffice_services.document_engine import FinancialDocumentEngine

__all__ = ["FinancialDocumentEngine"]
