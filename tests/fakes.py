"""In-memory stand-ins for ProbeClient and the wall clock."""

import asyncio
from typing import Iterable, List, Optional, Sequence

STALL = "stall"


class StepClock:
    """Returns 0, step, 2*step, ... on successive calls."""

    def __init__(self, step: float = 1.0) -> None:
        self.step = step
        self.now = 0.0

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class SequenceClock:
    """Returns the given readings in order."""

    def __init__(self, readings: Iterable[float]) -> None:
        self._readings = iter(readings)

    def __call__(self) -> float:
        return next(self._readings)


class FakeClient:
    """Scripted replacement for ``libreprobe.api.ProbeClient``.

    ``upload_script`` / ``ping_script`` items are consumed one per call:
    ``None`` succeeds, an exception instance is raised, ``STALL`` hangs
    until cancelled.  An exhausted script keeps repeating its last item.
    """

    def __init__(
        self,
        info=None,
        chunks: Sequence[bytes] = (),
        stream_error: Optional[BaseException] = None,
        stall_stream: bool = False,
        upload_script: Sequence = (None,),
        ping_script: Sequence = (None,),
    ) -> None:
        self.info = {"processedString": "127.0.0.1"} if info is None else info
        self.chunks = list(chunks)
        self.stream_error = stream_error
        self.stall_stream = stall_stream
        self.upload_script = list(upload_script)
        self.ping_script = list(ping_script)
        self.uploads: List[int] = []
        self.upload_timeouts: List[float] = []
        self.download_sizes: List[int] = []
        self.pings = 0
        self.entered = False
        self.exited = False

    async def __aenter__(self) -> "FakeClient":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.exited = True

    @staticmethod
    async def _play(script: list, index: int) -> None:
        step = script[min(index, len(script) - 1)]
        if step == STALL:
            await asyncio.sleep(3600)
        elif isinstance(step, BaseException):
            raise step

    async def fetch_server_info(self):
        if isinstance(self.info, BaseException):
            raise self.info
        return self.info

    async def stream_download(self, ck_size):
        self.download_sizes.append(ck_size)
        for chunk in self.chunks:
            await asyncio.sleep(0)
            yield chunk
        if self.stream_error is not None:
            raise self.stream_error
        if self.stall_stream:
            await asyncio.sleep(3600)

    async def upload(self, payload, timeout):
        index = len(self.uploads)
        self.uploads.append(len(payload))
        self.upload_timeouts.append(timeout)
        await self._play(self.upload_script, index)

    async def ping(self, timeout):
        index = self.pings
        self.pings += 1
        await self._play(self.ping_script, index)
