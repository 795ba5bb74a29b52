import asyncio
import json
import logging
import sys
from contextlib import suppress
from dataclasses import asdict
from typing import Optional, Sequence

from app.domains.export.pdf import PdfDocument

logger = logging.getLogger(__name__)

WORKER_COMMAND = (sys.executable, "-m", "app.domains.export.worker")


class RenderError(Exception):
    """Рендерер упал или не уложился в таймаут"""


class PdfRenderer:
    """Рендеринг PDF в отдельном процессе

    По таймауту или при отмене запроса процесс убивается и дожидается
    завершения: после ошибки рендер больше не выполняется.
    """

    def __init__(self, timeout: float, command: Optional[Sequence[str]] = None):
        self.timeout = timeout
        self.command = list(command or WORKER_COMMAND)

    async def spawn(self) -> asyncio.subprocess.Process:
        return await asyncio.create_subprocess_exec(
            *self.command,
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE
        )

    async def render(self, document: PdfDocument) -> bytes:
        payload = json.dumps(asdict(document)).encode("utf-8")
        try:
            process = await self.spawn()
        except OSError as exc:
            raise RenderError(f"renderer could not start: {exc}") from exc

        try:
            stdout, stderr = await asyncio.wait_for(process.communicate(payload), timeout=self.timeout)
        except asyncio.TimeoutError:
            raise RenderError(f"renderer timed out after {self.timeout}s")
        finally:
            if process.returncode is None:
                with suppress(ProcessLookupError):
                    process.kill()
                await process.wait()
                logger.debug("Renderer process %s killed", process.pid)

        if process.returncode != 0:
            message = stderr.decode("utf-8", errors="replace").strip()[-500:]
            raise RenderError(f"renderer exited with code {process.returncode}: {message}")
        return stdout
