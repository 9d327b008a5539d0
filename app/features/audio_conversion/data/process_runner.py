import logging
import subprocess
import threading
import time
from dataclasses import dataclass
from typing import List, Sequence

from app.core.execution.context import ExecutionContext
from ..domain.errors import ToolInterrupted

logger = logging.getLogger(__name__)

# How often the runner checks the context while the child is running
POLL_INTERVAL_SECONDS = 0.1


@dataclass(frozen=True)
class ProcessOutcome:
    return_code: int
    stdout: str
    stderr: str
    elapsed_seconds: float


def _drain(stream, sink: List[str]) -> None:
    """Reads a pipe to EOF on a worker thread so the child never blocks on a full pipe."""
    try:
        sink.append(stream.read())
    except (ValueError, OSError) as e:
        # Pipe closed underneath us after a kill
        logger.debug(f"Stopped reading process output: {e}")
    finally:
        stream.close()


def _kill(process: subprocess.Popen, readers: List[threading.Thread]) -> None:
    """Kills and reaps the child, then gives the readers a moment to hit EOF."""
    if process.poll() is None:
        process.kill()
    process.wait()
    for reader in readers:
        reader.join(timeout=2.0)


def run_process(cmd: Sequence[str], context: ExecutionContext, capture_stdout: bool = False) -> ProcessOutcome:
    """
    Runs `cmd` to completion unless `context` ends first.

    stderr is always captured; stdout is captured only on request and
    discarded otherwise.

    Raises:
        ToolInterrupted: The context was cancelled or expired. The child has
            been killed and reaped by the time this is raised.
        OSError: The executable could not be started.
    """
    if context.done:
        raise ToolInterrupted(context.reason())

    start = time.monotonic()
    process = subprocess.Popen(  # nosec B603 - argv list, no shell
        list(cmd),
        stdin=subprocess.DEVNULL,
        stdout=subprocess.PIPE if capture_stdout else subprocess.DEVNULL,
        stderr=subprocess.PIPE,
        text=True,
        encoding="utf-8",
        errors="replace",
    )

    stdout_chunks: List[str] = []
    stderr_chunks: List[str] = []
    readers = [threading.Thread(target=_drain, args=(process.stderr, stderr_chunks), daemon=True)]
    if capture_stdout:
        readers.append(threading.Thread(target=_drain, args=(process.stdout, stdout_chunks), daemon=True))
    for reader in readers:
        reader.start()

    try:
        while True:
            try:
                process.wait(timeout=POLL_INTERVAL_SECONDS)
                break
            except subprocess.TimeoutExpired:
                if context.done:
                    reason = context.reason()
                    logger.warning(f"Killing {cmd[0]} (pid {process.pid}): {reason}")
                    _kill(process, readers)
                    raise ToolInterrupted(reason, diagnostic="".join(stderr_chunks))
    except ToolInterrupted:
        raise
    except BaseException:
        # KeyboardInterrupt and friends: the child must not outlive the caller
        logger.warning(f"Killing {cmd[0]} (pid {process.pid}): runner interrupted")
        _kill(process, readers)
        raise

    for reader in readers:
        reader.join(timeout=5.0)
        if reader.is_alive():
            logger.warning("Output reader thread did not terminate cleanly")

    return ProcessOutcome(
        return_code=process.returncode,
        stdout="".join(stdout_chunks),
        stderr="".join(stderr_chunks),
        elapsed_seconds=time.monotonic() - start,
    )
