"""Interactive exec into the debug container."""

import codecs
import json
import os
import select
from typing import Any, TextIO

from kubernetes import client
from kubernetes.client.rest import ApiException
from kubernetes.stream import stream
from kubernetes.stream.ws_client import ERROR_CHANNEL, RESIZE_CHANNEL
from websocket import WebSocketException

from kdebug.errors import StreamError, TeardownWarning
from kdebug.terminal import TerminalSizeMonitor, raw_terminal
from kdebug.types import PodHandle, TerminalDimensions

# Seconds to wait for channel traffic per loop iteration
_UPDATE_TIMEOUT = 0.05
_READ_SIZE = 4096
# Exit code reported when the status names an exit but carries no number
_UNKNOWN_EXIT_CODE = 1


def open_exec_channel(
    core_api: client.CoreV1Api, handle: PodHandle, container: str, command: list[str]
) -> Any:
    """Open a tty exec websocket with stdin, stdout and stderr attached.

    The channel runs in binary mode so frames reach us as raw bytes; decoding
    happens once per output stream, not once per frame.
    """
    try:
        return stream(
            core_api.connect_get_namespaced_pod_exec,
            handle.name,
            handle.namespace,
            container=container,
            command=command,
            stdin=True,
            stdout=True,
            stderr=True,
            tty=True,
            binary=True,
            _preload_content=False,
        )
    except (ApiException, WebSocketException, OSError) as e:
        raise StreamError(
            f"could not exec {command} in {handle.name}/{container}: {e}"
        ) from e


def send_resize(channel: Any, dims: TerminalDimensions) -> None:
    channel.write_channel(
        RESIZE_CHANNEL, json.dumps({"Width": dims.columns, "Height": dims.rows})
    )


class OutputForwarder:
    """Copies channel output to local streams.

    A multi-byte character may be split across frames, so each stream keeps
    its own incremental decoder and holds back a partial sequence until the
    rest arrives.
    """

    def __init__(self, stdout: TextIO, stderr: TextIO):
        self._targets = [
            (stdout, codecs.getincrementaldecoder("utf-8")(errors="replace")),
            (stderr, codecs.getincrementaldecoder("utf-8")(errors="replace")),
        ]

    def forward(self, channel: Any, final: bool = False) -> None:
        chunks = [
            channel.read_stdout() if channel.peek_stdout() else b"",
            channel.read_stderr() if channel.peek_stderr() else b"",
        ]
        for (target, decoder), data in zip(self._targets, chunks):
            text = decoder.decode(data, final)
            if text:
                target.write(text)
                target.flush()


def _pump(
    channel: Any,
    stdin: TextIO,
    output: OutputForwarder,
    resize_source: TerminalSizeMonitor,
) -> bool:
    """Shuttle bytes until the remote side closes or stdin hits EOF.

    Returns True when the remote side closed the channel.
    """
    stdin_fd = stdin.fileno()
    while channel.is_open():
        dims = resize_source.poll()
        while dims is not None:
            send_resize(channel, dims)
            dims = resize_source.poll()

        channel.update(timeout=_UPDATE_TIMEOUT)
        output.forward(channel)

        readable, _, _ = select.select([stdin_fd], [], [], 0)
        if readable:
            data = os.read(stdin_fd, _READ_SIZE)
            if not data:
                output.forward(channel, final=True)
                return False
            channel.write_stdin(data)

    output.forward(channel, final=True)
    return True


def exit_code(channel: Any) -> int | None:
    """Read the remote process status from the error channel.

    Returns 0 on success and the exit code for a non-zero exit. A failure
    status that carries no exit code (e.g. the command does not exist) is a
    stream error.
    """
    raw = channel.read_channel(ERROR_CHANNEL)
    if not raw:
        return None
    try:
        status = json.loads(raw)
    except ValueError:
        return None

    if status.get("status") == "Success":
        return 0
    for cause in (status.get("details") or {}).get("causes") or []:
        if cause.get("reason") == "ExitCode":
            try:
                return int(cause.get("message", _UNKNOWN_EXIT_CODE))
            except (TypeError, ValueError):
                return _UNKNOWN_EXIT_CODE
    raise StreamError(status.get("message") or "remote command failed")


def attach(
    core_api: client.CoreV1Api,
    handle: PodHandle,
    container: str,
    command: list[str],
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
    resize_source: TerminalSizeMonitor,
    warnings: list[TeardownWarning] | None = None,
) -> int | None:
    """Run ``command`` in the container with the local terminal attached.

    The terminal stays in raw mode while streaming. When streaming stops the
    resize source is closed first, then the terminal is restored, then the
    channel is closed. A failed terminal restore is appended to ``warnings``.

    Returns:
        The remote exit code, or None if the session ended on local EOF.

    Raises:
        StreamError: If the channel cannot be opened or fails mid-stream.
    """
    channel = open_exec_channel(core_api, handle, container, command)
    try:
        with raw_terminal(stdin, warnings=warnings):
            try:
                remote_closed = _pump(
                    channel, stdin, OutputForwarder(stdout, stderr), resize_source
                )
            except (WebSocketException, OSError) as e:
                raise StreamError(f"exec stream failed: {e}") from e
            finally:
                resize_source.close()
        return exit_code(channel) if remote_closed else None
    finally:
        channel.close()
