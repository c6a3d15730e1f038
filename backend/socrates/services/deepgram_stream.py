import asyncio
import logging
from typing import Awaitable, Callable

logger = logging.getLogger("deepgram_stream")


class ReconnectGuard:
	"""
	Fixed-delay reconnect scheduler for a recognition stream.
	At most one pending reconnect; max_attempts=0 means unbounded.
	"""

	def __init__(
		self,
		reconnect_coro: Callable[[], Awaitable[bool]],
		delay_sec: float = 1.0,
		max_attempts: int = 0,
		should_reconnect: Callable[[], bool] | None = None,
	):
		self._reconnect_coro = reconnect_coro
		self._should_reconnect = should_reconnect
		self.delay_sec = max(0.0, float(delay_sec))
		self.max_attempts = max(0, int(max_attempts))
		self.attempts = 0
		self._task: asyncio.Task | None = None
		self._stopped = False

	@property
	def pending(self) -> bool:
		return self._task is not None and not self._task.done()

	@property
	def exhausted(self) -> bool:
		return self.max_attempts > 0 and self.attempts >= self.max_attempts

	def note_success(self) -> None:
		self.attempts = 0

	def schedule(self) -> bool:
		if self._stopped or self.pending:
			return False
		if self.exhausted:
			logger.error("[DG] Reconnect attempts exhausted | attempts=%s", self.attempts)
			return False
		self._task = asyncio.create_task(self._run())
		return True

	async def _run(self):
		await asyncio.sleep(self.delay_sec)
		if self._stopped:
			return
		if self._should_reconnect and not self._should_reconnect():
			return
		self.attempts += 1
		logger.warning("Reconnecting recognition stream... attempt=%s", self.attempts)
		success = False
		try:
			success = await self._reconnect_coro()
		except Exception as exc:
			logger.error("Recognition reconnect failed: %s", exc)
		if success:
			self.note_success()
			return
		# the current task is still "pending" here, so clear it before rescheduling
		self._task = None
		self.schedule()

	async def cancel(self):
		"""Drops a pending reconnect; later schedule() calls still work."""
		task = self._task
		self._task = None
		if task and not task.done() and task is not asyncio.current_task():
			task.cancel()
			try:
				await task
			except asyncio.CancelledError:
				pass
		self.attempts = 0

	async def stop(self):
		self._stopped = True
		if self._task and not self._task.done() and self._task is not asyncio.current_task():
			self._task.cancel()
			try:
				await self._task
			except asyncio.CancelledError:
				pass
		self._task = None
