# SitemapSniffer — Per-origin record store (JSON file, thread-safe writes)
# Author: Sachin Chhetri
# Year: 2025
# License: MIT

import json
import logging
import os
import tempfile
import threading
from typing import Any, Dict, List, Optional

from ..exceptions import StoreError
from ..utils.io import ensure_dirs


logger = logging.getLogger(__name__)

KEY_PREFIX = "sitemap:"


def record_key(origin: str) -> str:
	return KEY_PREFIX + origin


class RecordStore:
	"""Key-value store of scan records persisted to one JSON file.

	Keys are ``"sitemap:" + origin``. ``set`` replaces the whole record; the
	last write wins.
	"""

	def __init__(self, path: str = "data/sitemaps.json") -> None:
		self.path = path
		self._lock = threading.Lock()
		self._data: Dict[str, Any] = self._load()

	def _load(self) -> Dict[str, Any]:
		if not os.path.exists(self.path):
			return {}
		try:
			with open(self.path, "r", encoding="utf-8") as f:
				data = json.load(f)
		except (OSError, ValueError) as e:
			logger.warning("Ignoring unreadable record store %s: %s", self.path, e)
			return {}
		if not isinstance(data, dict):
			logger.warning("Ignoring record store %s: top level is not an object", self.path)
			return {}
		return data

	def _save(self) -> None:
		directory = os.path.dirname(os.path.abspath(self.path))
		ensure_dirs(directory)
		fd, tmp = tempfile.mkstemp(prefix=".sitemaps-", suffix=".json", dir=directory)
		try:
			with os.fdopen(fd, "w", encoding="utf-8") as f:
				json.dump(self._data, f, indent=2, ensure_ascii=False)
			os.replace(tmp, self.path)
		except OSError as e:
			if os.path.exists(tmp):
				os.remove(tmp)
			raise StoreError(f"cannot write {self.path}: {e}") from e

	def get(self, origin: str) -> Optional[Dict[str, Any]]:
		with self._lock:
			self._data = self._load()
			record = self._data.get(record_key(origin))
			return dict(record) if isinstance(record, dict) else None

	def set(self, origin: str, record: Dict[str, Any]) -> None:
		with self._lock:
			# another process may have written other origins since we loaded
			self._data = self._load()
			self._data[record_key(origin)] = record
			self._save()

	def delete(self, origin: str) -> bool:
		with self._lock:
			self._data = self._load()
			if self._data.pop(record_key(origin), None) is None:
				return False
			self._save()
			return True

	def keys(self) -> List[str]:
		with self._lock:
			self._data = self._load()
			return list(self._data)
