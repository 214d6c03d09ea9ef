"""
Deferred deletion of generated artifacts.

Every registered artifact is deleted once the retention window has passed
since its most recent registration. Each artifact name has at most one
pending timer; registering a name again cancels the old timer and arms a new
one under the same lock.
"""

# Standard Library
import dataclasses
import datetime
import logging
import os
import pathlib
import threading
import typing

# local repo modules
import material_cards as mc
import material_cards.config


RETENTION_SECONDS = mc.config.RETENTION_SECONDS
PARTIAL_FILE_PREFIX = mc.config.PARTIAL_FILE_PREFIX
PARTIAL_FILE_SUFFIX = mc.config.PARTIAL_FILE_SUFFIX

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class CleanupHandle:
	name: str
	path: pathlib.Path
	timer: threading.Timer
	due_at: datetime.datetime


class ArtifactLifecycleManager:
	"""
	Reaper for generated files in one flat directory.
	"""

	def __init__(
		self,
		artifact_dir: pathlib.Path,
		retention_seconds: float = RETENTION_SECONDS,
		delete_func: typing.Callable[[pathlib.Path], None] = os.remove,
	) -> None:
		self.artifact_dir = pathlib.Path(artifact_dir)
		self.retention_seconds = retention_seconds
		self._delete_func = delete_func
		self._lock = threading.Lock()
		self._handles: dict[str, CleanupHandle] = {}

	def __len__(self) -> int:
		with self._lock:
			return len(self._handles)

	#============================================
	def register(self, name: str, delay: float | None = None) -> CleanupHandle:
		"""
		Schedule deletion of an artifact, replacing any pending timer.

		Args:
			name: Artifact file name inside the artifact directory.
			delay: Seconds until deletion, defaults to the retention window.

		Returns:
			The new CleanupHandle.
		"""
		if delay is None:
			delay = self.retention_seconds
		delay = max(0.0, delay)
		path = self.artifact_dir / name
		with self._lock:
			previous = self._handles.pop(name, None)
			if previous is not None:
				previous.timer.cancel()
			timer = threading.Timer(delay, self._on_fire, args=(name,))
			timer.daemon = True
			handle = CleanupHandle(
				name=name,
				path=path,
				timer=timer,
				due_at=datetime.datetime.now(datetime.timezone.utc) + datetime.timedelta(seconds=delay),
			)
			# fire looks the handle up by identity, so start after storing it
			self._handles[name] = handle
			timer.start()
		if previous is not None:
			logger.info("[cleanup] rescheduled %s for deletion in %.0fs", name, delay)
		else:
			logger.info("[cleanup] scheduled %s for deletion in %.0fs", name, delay)
		return handle

	#============================================
	def cancel(self, name: str) -> bool:
		"""
		Cancel a pending deletion.

		Args:
			name: Artifact file name.

		Returns:
			True when a pending handle was cancelled.
		"""
		with self._lock:
			handle = self._handles.pop(name, None)
			if handle is None:
				return False
			handle.timer.cancel()
		logger.info("[cleanup] cancelled deletion of %s", name)
		return True

	#============================================
	def is_pending(self, name: str) -> bool:
		"""
		Check for a live deletion handle.

		Args:
			name: Artifact file name.

		Returns:
			True when a deletion is scheduled.
		"""
		with self._lock:
			return name in self._handles

	#============================================
	def _on_fire(self, name: str) -> None:
		"""
		Timer callback: delete the artifact and clear its handle.

		Args:
			name: Artifact file name.
		"""
		current = threading.current_thread()
		with self._lock:
			handle = self._handles.get(name)
			# a re-registration replaced this timer before it got the lock
			if handle is None or handle.timer is not current:
				return
			del self._handles[name]
			try:
				self._delete_func(handle.path)
			except FileNotFoundError:
				logger.info("[cleanup] %s was already gone", name)
				return
			except OSError as error:
				logger.error("[cleanup] failed to delete %s: %s", name, error)
				return
		logger.info("[cleanup] deleted %s", name)

	#============================================
	def sweep_orphans(self, now: datetime.datetime | None = None) -> list[str]:
		"""
		Schedule deletion for artifacts and partial writes left over from a
		previous process.

		Each file is kept until its modification time plus the retention
		window, or deleted right away when that has passed.

		Args:
			now: Current time, defaults to the wall clock.

		Returns:
			Names of the artifacts scheduled.
		"""
		if not self.artifact_dir.is_dir():
			return []
		if now is None:
			now = datetime.datetime.now(datetime.timezone.utc)
		scheduled: list[str] = []
		# partial files are left by writes interrupted before the rename
		partial_pattern = f"{PARTIAL_FILE_PREFIX}*{PARTIAL_FILE_SUFFIX}"
		paths = set(self.artifact_dir.glob("*.pdf")) | set(self.artifact_dir.glob(partial_pattern))
		for path in sorted(paths):
			if self.is_pending(path.name):
				continue
			try:
				modified = datetime.datetime.fromtimestamp(path.stat().st_mtime, datetime.timezone.utc)
			except FileNotFoundError:
				continue
			age = (now - modified).total_seconds()
			self.register(path.name, delay=self.retention_seconds - age)
			scheduled.append(path.name)
		if scheduled:
			logger.info("[cleanup] re-armed %d orphaned artifacts", len(scheduled))
		return scheduled

	#============================================
	def shutdown(self) -> None:
		"""
		Cancel every pending timer without deleting files.
		"""
		with self._lock:
			handles = list(self._handles.values())
			self._handles.clear()
		for handle in handles:
			handle.timer.cancel()
