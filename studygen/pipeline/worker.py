from __future__ import annotations

import asyncio
import os
from typing import Awaitable, Callable, List, Optional

from studygen.utils import get_logger
from .models import GenerationRequest

LOG = get_logger()

GENERATION_WORKERS = int(os.getenv('GENERATION_WORKERS', '4'))

Handler = Callable[[GenerationRequest], Awaitable[object]]


class GenerationWorkerPool:
    """Bounded set of worker tasks draining a queue of generation requests.

    Must be started from inside a running event loop. A handler error is
    logged and the worker moves on to the next request.
    """

    def __init__(self, handler: Handler, workers: int = None):
        self.handler = handler
        self.workers = max(1, workers or GENERATION_WORKERS)
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def pending(self) -> int:
        return self._queue.qsize() if self._queue is not None else 0

    async def start(self):
        if self._tasks:
            return
        self._queue = asyncio.Queue()
        self._tasks = [asyncio.create_task(self._worker(i), name=f'generation-worker-{i}') for i in range(self.workers)]
        LOG.info('generation_workers_started', extra={'workers': self.workers})

    def submit(self, request: GenerationRequest):
        if self._queue is None:
            raise RuntimeError('GenerationWorkerPool is not started')
        self._queue.put_nowait(request)
        LOG.info('generation_request_submitted', extra={'document_id': request.document_id, 'kind': request.kind.value, 'queue_size': self._queue.qsize()})

    async def join(self):
        if self._queue is not None:
            await self._queue.join()

    async def stop(self):
        for t in self._tasks:
            t.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        self._tasks = []
        self._queue = None
        LOG.info('generation_workers_stopped')

    async def _worker(self, idx: int):
        while True:
            request = await self._queue.get()
            try:
                await self.handler(request)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                LOG.exception('generation_worker_error', extra={'worker': idx, 'document_id': request.document_id, 'error': str(e)})
            finally:
                self._queue.task_done()
