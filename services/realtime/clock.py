"""Wall-clock timestamps for realtime events."""

from __future__ import annotations

import threading
from datetime import datetime, timezone


class MonotonicClock:
	"""Return ISO-8601 UTC timestamps that never go backwards."""

	def __init__(self) -> None:
		self._last = datetime.fromtimestamp(0, tz=timezone.utc)
		self._lock = threading.Lock()

	def now(self) -> datetime:
		with self._lock:
			current = datetime.now(timezone.utc)
			if current < self._last:
				current = self._last
			self._last = current
			return current

	def isoformat(self) -> str:
		return self.now().isoformat(timespec="milliseconds").replace("+00:00", "Z")
