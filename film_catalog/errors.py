"""
Error types raised by the catalog stores and the ingestion pipeline.
"""

from typing import Any, Iterable, Optional


class CatalogError(Exception):
	"""Base class for every error raised by this package."""


class DuplicateEntryError(CatalogError):
	"""A uniqueness-bearing field collides with a different existing record."""

	def __init__(self, entity: str, field: str, value: Any):
		self.entity = entity
		self.field = field
		self.value = value
		super().__init__(f"{entity} with {field} '{value}' already exists")


class NotFoundError(CatalogError):
	"""An update or delete targeted an id that is not in the store."""

	def __init__(self, entity: str, entity_id: Any):
		self.entity = entity
		self.entity_id = entity_id
		super().__init__(f"{entity} with id {entity_id} not found")


class InvalidEntityError(CatalogError):
	"""The record breaks a value invariant (empty title, rating out of range, ...)."""

	def __init__(self, entity: str, reason: str):
		self.entity = entity
		self.reason = reason
		super().__init__(f"Invalid {entity}: {reason}")


class MalformedRecordError(CatalogError):
	"""A source line could not be turned into a record. Only raised inside the loader."""

	def __init__(self, reason: str, line_number: Optional[int] = None):
		self.reason = reason
		self.line_number = line_number
		super().__init__(reason)


class SourceUnavailableError(CatalogError):
	"""A declared source was not found in any candidate location. Only raised inside the loader."""

	def __init__(self, source: str, searched: Iterable[Any] = ()):
		self.source = source
		self.searched = [str(p) for p in searched]
		super().__init__(f"Source '{source}' not found (searched {len(self.searched)} locations)")
