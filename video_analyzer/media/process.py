"""
ProcessRunner - runs an external executable (ffmpeg) under a timeout.

stderr is merged into stdout and the combined stream is drained by a separate
task for the whole life of the child, so a chatty encoder can never block on a
full pipe buffer. On timeout the whole process group is killed.
"""

import asyncio
import codecs
import os
import signal
from collections import deque
from typing import Deque, Optional, Sequence

from ..logger import logger
from .types import ProcessExited, ProcessLaunchFailed, ProcessResult, ProcessTimedOut

_POSIX = os.name == "posix"


class ProcessRunner:
    """Async wrapper around one child process per call."""

    def __init__(
        self,
        kill_grace: float = 5.0,
        drain_timeout: float = 5.0,
        keep_lines: int = 200,
        chunk_size: int = 8192,
    ):
        """
        Args:
            kill_grace: Seconds to wait for a killed process to be reaped.
            drain_timeout: Seconds to wait for the output reader after exit.
            keep_lines: Number of trailing output lines kept in the result.
            chunk_size: Read size of the output reader.
        """
        self.kill_grace = kill_grace
        self.drain_timeout = drain_timeout
        self.keep_lines = keep_lines
        self.chunk_size = chunk_size

    async def run(
        self,
        executable: str,
        args: Sequence[str],
        timeout: Optional[float] = None,
    ) -> ProcessResult:
        """Runs ``executable`` with ``args``.

        Args:
            executable: Program name or path.
            args: Argument list, passed without a shell.
            timeout: Seconds before the process tree is killed; None or 0 waits forever.

        Returns:
            ProcessExited with the exit code, ProcessTimedOut, or ProcessLaunchFailed.
        """
        command = [executable, *args]
        logger.info(f"执行命令: {' '.join(command)}")

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=_POSIX,
            )
        except OSError as e:
            logger.error(f"✗ 无法启动进程 {executable}: {e}")
            return ProcessLaunchFailed(reason=f"cannot launch {executable}: {e}")

        lines: Deque[str] = deque(maxlen=self.keep_lines)
        drain = asyncio.create_task(self._drain(process.stdout, lines))

        timed_out = False
        try:
            if timeout and timeout > 0:
                await asyncio.wait_for(process.wait(), timeout=timeout)
            else:
                await process.wait()
        except asyncio.TimeoutError:
            timed_out = True
            logger.error(f"✗ 进程超时（{timeout}秒），终止进程: pid={process.pid}")
            self._kill_tree(process)
            try:
                await asyncio.wait_for(process.wait(), timeout=self.kill_grace)
            except asyncio.TimeoutError:
                logger.warning(f"⚠ 进程在 {self.kill_grace}秒内未退出: pid={process.pid}")
        except asyncio.CancelledError:
            self._kill_tree(process)
            drain.cancel()
            raise

        output = await self._join_drain(drain, lines)

        if timed_out:
            return ProcessTimedOut(timeout=float(timeout), output=output)

        logger.info(f"进程退出: pid={process.pid}, exit_code={process.returncode}")
        return ProcessExited(exit_code=process.returncode, output=output)

    async def is_available(self, executable: str, flag: str = "-version", timeout: float = 10) -> bool:
        """Pre-flight probe: True when ``executable flag`` exits with 0."""
        result = await self.run(executable, [flag], timeout=timeout)
        available = isinstance(result, ProcessExited) and result.exit_code == 0
        if not available:
            logger.warning(f"⚠ {executable} 不可用: {result.status}")
        return available

    async def _drain(self, stream: asyncio.StreamReader, lines: Deque[str]) -> None:
        # ffmpeg rewrites its progress line with \r, so split on both separators
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        pending = ""
        while True:
            chunk = await stream.read(self.chunk_size)
            if not chunk:
                break
            pending += decoder.decode(chunk).replace("\r", "\n")
            *complete, pending = pending.split("\n")
            for line in complete:
                if line.strip():
                    logger.debug(f"进程输出: {line}")
                    lines.append(line)
        if pending.strip():
            lines.append(pending)

    async def _join_drain(self, drain: asyncio.Task, lines: Deque[str]) -> str:
        try:
            await asyncio.wait_for(drain, timeout=self.drain_timeout)
        except asyncio.TimeoutError:
            logger.warning("⚠ 读取进程输出超时，丢弃剩余输出")
        except Exception as e:
            logger.warning(f"⚠ 读取进程输出时发生异常: {e}")
        return "\n".join(lines)

    @staticmethod
    def _kill_tree(process: asyncio.subprocess.Process) -> None:
        if process.returncode is not None:
            return
        try:
            if _POSIX:
                # start_new_session makes the child a group leader
                os.killpg(process.pid, signal.SIGKILL)
            else:
                process.kill()
        except ProcessLookupError:
            pass
