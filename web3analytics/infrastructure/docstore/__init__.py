from .http_document_store import HttpDocumentStore

__all__ = ["HttpDocumentStore"]
