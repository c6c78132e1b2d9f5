"""
Generic in-memory entity store.
Owns the canonical records for one entity type, assigns ids and enforces uniqueness under a read-write lock.
"""

import copy  # records go in and out as deep copies
import threading  # lock primitives
from contextlib import contextmanager
from typing import Any, Callable, Dict, Generic, Iterator, List, Optional, Tuple, TypeVar

from loguru import logger  # console logger

from .errors import DuplicateEntryError, NotFoundError

T = TypeVar('T')

UniqueKey = Tuple[str, Any]  # (field name, normalised value)


class ReadWriteLock:
	"""
	Many readers or one writer.
	Waiting writers block new readers so a steady read load cannot starve a write.
	"""

	def __init__(self):
		self._cond = threading.Condition(threading.Lock())
		self._readers = 0  # readers currently inside
		self._writer = False  # a writer is inside
		self._waiting_writers = 0

	def acquire_read(self):
		with self._cond:
			while self._writer or self._waiting_writers:
				self._cond.wait()
			self._readers += 1

	def release_read(self):
		with self._cond:
			self._readers -= 1
			if self._readers == 0:
				self._cond.notify_all()

	def acquire_write(self):
		with self._cond:
			self._waiting_writers += 1
			try:
				while self._writer or self._readers:
					self._cond.wait()
			finally:
				self._waiting_writers -= 1
			self._writer = True

	def release_write(self):
		with self._cond:
			self._writer = False
			self._cond.notify_all()

	@contextmanager
	def read_locked(self) -> Iterator[None]:
		self.acquire_read()
		try:
			yield
		finally:
			self.release_read()

	@contextmanager
	def write_locked(self) -> Iterator[None]:
		self.acquire_write()
		try:
			yield
		finally:
			self.release_write()


class EntityStore(Generic[T]):
	"""
	Thread-safe container for one entity type.

	Entities must expose an integer `id` attribute; 0 means "not saved yet".
	Subclasses declare their uniqueness-bearing fields through `unique_keys` and
	their value invariants through `validate`.

	Every read hands out deep copies, and `save` stores a deep copy of its argument,
	so callers can never mutate stored state except through `save`.
	"""

	entity_name = 'entity'

	def __init__(self, name: Optional[str] = None):
		self.name = name or self.entity_name  # used in logs and error messages
		self._records: Dict[int, T] = {}  # id -> record, in insertion order
		self._unique: Dict[UniqueKey, int] = {}  # unique key -> owning id
		self._next_id = 1  # never reused, even after delete
		self._lock = ReadWriteLock()

	# ---- hooks -------------------------------------------------------------

	def unique_keys(self, entity: T) -> List[UniqueKey]:
		"""Uniqueness-bearing (field, value) pairs of a record. None by default."""
		return []

	def validate(self, entity: T) -> None:
		"""Raise InvalidEntityError when the record breaks a value invariant."""

	def _before_store(self, record: T, previous: Optional[T]) -> None:
		"""Last-moment adjustment of a record about to be stored (runs under the write lock)."""

	# ---- reads -------------------------------------------------------------

	def get_all(self) -> List[T]:
		with self._lock.read_locked():
			return [copy.deepcopy(record) for record in self._records.values()]

	def get_by_id(self, entity_id: int) -> Optional[T]:
		with self._lock.read_locked():
			record = self._records.get(entity_id)
			return copy.deepcopy(record) if record is not None else None

	def exists(self, entity_id: int) -> bool:
		with self._lock.read_locked():
			return entity_id in self._records

	def count(self) -> int:
		with self._lock.read_locked():
			return len(self._records)

	def find(self, predicate: Callable[[T], bool]) -> List[T]:
		"""All records matching `predicate`, in store order."""
		with self._lock.read_locked():
			return [copy.deepcopy(r) for r in self._records.values() if predicate(r)]

	def find_first(self, predicate: Callable[[T], bool]) -> Optional[T]:
		with self._lock.read_locked():
			for record in self._records.values():
				if predicate(record):
					return copy.deepcopy(record)
		return None

	def _find_by_key(self, key: UniqueKey) -> Optional[T]:
		with self._lock.read_locked():
			entity_id = self._unique.get(key)
			if entity_id is None:
				return None
			return copy.deepcopy(self._records[entity_id])

	# ---- writes ------------------------------------------------------------

	def save(self, entity: T) -> T:
		"""
		Insert (id == 0) or replace (id set) a record and return a copy of what was stored.
		Raises DuplicateEntryError, NotFoundError or InvalidEntityError without changing state.
		"""
		self.validate(entity)
		record = copy.deepcopy(entity)
		keys = self.unique_keys(record)

		# Check-then-act happens inside one write critical section
		with self._lock.write_locked():
			if not record.id:
				self._check_unique(keys, own_id=None)
				record.id = self._next_id
				self._next_id += 1
				previous = None
			else:
				previous = self._records.get(record.id)
				if previous is None:
					logger.warning(f"[Store:{self.name}] Update rejected: id {record.id} not found")
					raise NotFoundError(self.name, record.id)
				self._check_unique(keys, own_id=record.id)
				for key in self.unique_keys(previous):
					self._unique.pop(key, None)

			self._before_store(record, previous)
			self._records[record.id] = record
			for key in keys:
				self._unique[key] = record.id
			logger.debug(f"[Store:{self.name}] {'Inserted' if previous is None else 'Replaced'} id={record.id}")
			return copy.deepcopy(record)

	def check(self, entity: T) -> None:
		"""Raise what `save` would raise for this record, without storing anything."""
		self.validate(entity)
		keys = self.unique_keys(entity)
		with self._lock.read_locked():
			if entity.id and entity.id not in self._records:
				raise NotFoundError(self.name, entity.id)
			self._check_unique(keys, own_id=entity.id or None)

	def delete(self, entity_id: int) -> bool:
		"""Remove a record; False when the id is unknown."""
		with self._lock.write_locked():
			record = self._records.pop(entity_id, None)
			if record is None:
				return False
			for key in self.unique_keys(record):
				if self._unique.get(key) == entity_id:
					del self._unique[key]
			logger.debug(f"[Store:{self.name}] Deleted id={entity_id}")
			return True

	def clear(self) -> None:
		"""Drop every record. Id assignment continues where it was."""
		with self._lock.write_locked():
			self._records.clear()
			self._unique.clear()
		logger.debug(f"[Store:{self.name}] Cleared")

	def _check_unique(self, keys: List[UniqueKey], own_id: Optional[int]) -> None:
		# Caller holds the lock
		for key in keys:
			holder = self._unique.get(key)
			if holder is not None and holder != own_id:
				field_name, value = key
				logger.warning(f"[Store:{self.name}] Duplicate {field_name} '{value}' (held by id={holder})")
				raise DuplicateEntryError(self.name, field_name, value)

	def __len__(self) -> int:
		return self.count()

	def __repr__(self) -> str:
		return f"{type(self).__name__}(name={self.name!r}, count={self.count()})"
