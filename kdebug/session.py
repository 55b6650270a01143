"""Run one debug session end to end."""

import sys
from contextlib import ExitStack
from typing import TextIO

from kdebug.attacher import attach
from kdebug.config import RESIZE_POLL_INTERVAL, SessionOptions
from kdebug.scheduler import SessionScheduler
from kdebug.terminal import TerminalSizeMonitor
from kdebug.transform import build_debug_pod
from kdebug.types import Session
from kdebug.ui import (
    print_info,
    print_session_info,
    print_step,
    print_success,
    render_containers_table,
)
from kdebug.workloads import ClusterClients, resolve_pod_template


class DebugSession:
    """Resolve, schedule, attach and always clean up.

    Errors before the pod exists abort with nothing to reclaim. Once the pod
    is created, every exit path runs the teardown stack in reverse order of
    acquisition: resize monitor, terminal mode (inside attach), then the pod.
    Teardown problems land on ``session.warnings`` and never replace the
    primary error.
    """

    def __init__(
        self,
        options: SessionOptions,
        clients: ClusterClients,
        stdin: TextIO = sys.stdin,
        stdout: TextIO = sys.stdout,
        stderr: TextIO = sys.stderr,
        scheduler: SessionScheduler | None = None,
        resize_interval: float = RESIZE_POLL_INTERVAL,
    ):
        self.options = options
        self.clients = clients
        self.stdin = stdin
        self.stdout = stdout
        self.stderr = stderr
        self.scheduler = scheduler or SessionScheduler(clients.core)
        self.resize_interval = resize_interval
        self.session: Session | None = None

    @property
    def warnings(self):
        return self.session.warnings if self.session else []

    def run(self) -> int | None:
        options = self.options
        ref = options.reference

        print_step(f"Fetching {ref} in namespace [blue]{ref.namespace}[/blue]...")
        template = resolve_pod_template(self.clients, ref)

        print_step("Generating spec...")
        spec = build_debug_pod(
            template,
            name=options.name,
            namespace=options.namespace,
            container_selector=options.container_name,
            entrypoint=options.resolved_entrypoint(),
            image=options.image,
        )
        render_containers_table(spec)
        self.session = Session(spec=spec)

        print_step(
            f"Creating pod [cyan]{options.name}[/cyan] in namespace "
            f"[blue]{options.namespace}[/blue]..."
        )
        handle = self.scheduler.create(spec, self.session)

        with ExitStack() as stack:
            stack.callback(self._teardown, handle)

            print_step("Waiting for pod to start...")
            self.scheduler.await_ready(handle, options.ready_timeout, self.session)

            command = options.resolved_command()
            print_session_info(
                handle.name, handle.namespace, spec.target_container, command
            )

            monitor = TerminalSizeMonitor(
                fd=self._stdin_fd(), interval=self.resize_interval
            )
            stack.enter_context(monitor)

            code = attach(
                self.clients.core,
                handle,
                spec.target_container,
                command,
                self.stdin,
                self.stdout,
                self.stderr,
                monitor,
                warnings=self.session.warnings,
            )
            if code:
                print_info(f"Shell exited with status {code}")
            return code

    def _teardown(self, handle) -> None:
        print_step(f"Removing pod [cyan]{handle.name}[/cyan]...", prefix="🧹")
        warning = self.scheduler.terminate(handle, self.session)
        if warning is None:
            print_success("Cleaned up successfully.")

    def _stdin_fd(self) -> int:
        try:
            return self.stdin.fileno()
        except (AttributeError, ValueError, OSError):
            return 0
