"""Global FIFO queue that runs revision saves one at a time."""
import asyncio
import logging
from collections.abc import Awaitable, Callable
from types import TracebackType

from schemas.revision import RevisionInfo, RevisionRecord
from services.exceptions import SaveQueueClosedError

logger = logging.getLogger(__name__)

SaveHandler = Callable[[str, RevisionRecord], Awaitable[RevisionInfo]]


class SaveQueue:
    """
    Serializes every save across all files through a single worker.

    A save's filesystem work starts only after the previous save has completed,
    successfully or not, so appends to any one log never interleave. The result
    (or the raised error) of each save is delivered to the caller of enqueue().
    """

    def __init__(self, handler: SaveHandler) -> None:
        self._handler = handler
        self._queue: asyncio.Queue[
            tuple[str, RevisionRecord, asyncio.Future[RevisionInfo]] | None
        ] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the worker task is alive."""
        return self._worker is not None and not self._worker.done()

    def start(self) -> None:
        """Start the worker task on the running event loop."""
        if self.running:
            return
        self._worker = asyncio.create_task(self._run(), name="revision-save-queue")

    async def close(self) -> None:
        """Stop accepting saves and wait for queued saves to finish."""
        if not self.running:
            return
        worker = self._worker
        self._worker = None
        await self._queue.put(None)
        await worker

    async def enqueue(self, path: str, revision: RevisionRecord) -> RevisionInfo:
        """
        Queue a save and wait for its result.

        Raises:
            SaveQueueClosedError: If the queue isn't running.
            Exception: Whatever the save itself raised.
        """
        if not self.running:
            raise SaveQueueClosedError()
        future: asyncio.Future[RevisionInfo] = asyncio.get_running_loop().create_future()
        await self._queue.put((path, revision, future))
        return await future

    async def _run(self) -> None:
        while True:
            item = await self._queue.get()
            try:
                if item is None:
                    return
                path, revision, future = item
                if future.cancelled():
                    continue
                try:
                    info = await self._handler(path, revision)
                except Exception as e:  # noqa: BLE001 - delivered to the waiting caller
                    if not future.cancelled():
                        future.set_exception(e)
                else:
                    if not future.cancelled():
                        future.set_result(info)
            finally:
                self._queue.task_done()

    async def __aenter__(self) -> "SaveQueue":
        self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
