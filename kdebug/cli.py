import typer
from rich.markup import escape

from kdebug.config import (
    DEFAULT_NAMESPACE,
    DEFAULT_POD_NAME,
    DEFAULT_TIMEOUT,
    SessionOptions,
)
from kdebug.errors import KdebugError
from kdebug.session import DebugSession
from kdebug.types import WorkloadKind
from kdebug.ui import print_error, print_warning
from kdebug.workloads import load_clients

app = typer.Typer(add_completion=False)


@app.command(
    help="Start a throwaway pod from a workload's pod template and open a shell in it."
)
def debug(
    source: str = typer.Option(
        ..., "--source", "-s", help="Name of the resource to debug."
    ),
    namespace: str = typer.Option(
        DEFAULT_NAMESPACE,
        "--namespace",
        "-n",
        help="Namespace for the resource and the debug pod.",
    ),
    name: str = typer.Option(
        DEFAULT_POD_NAME, "--name", help="Name of the debugging pod created."
    ),
    kind: WorkloadKind = typer.Option(
        WorkloadKind.DEPLOYMENT,
        "--type",
        "-t",
        case_sensitive=False,
        help="Resource type to debug.",
    ),
    container_name: str = typer.Option(
        None,
        "--container-name",
        "-c",
        help="Container to target. Defaults to the first container.",
    ),
    image: str = typer.Option(
        None, "--image", help="Image to run in the target container, if set."
    ),
    entry: list[str] = typer.Option(
        None,
        "--entry",
        help="Entrypoint to run while the shell is connected (repeat to pass arguments).",
    ),
    timeout: str = typer.Option(
        DEFAULT_TIMEOUT,
        "--timeout",
        help="How long the default entrypoint sleeps. Only used if --entry is not set.",
    ),
    command: list[str] = typer.Option(
        None,
        "--command",
        help="Interactive command to exec (repeat to pass arguments). Defaults to /bin/sh.",
    ),
    ready_timeout: int = typer.Option(
        None,
        "--ready-timeout",
        help="Seconds to wait for the pod to be Running. Waits indefinitely if unset.",
    ),
    kubeconfig: str = typer.Option(
        None,
        "--kubeconfig",
        envvar="KUBECONFIG",
        help="Path to the kubeconfig file.",
    ),
    context: str = typer.Option(
        None, "--context", help="Kubeconfig context to use."
    ),
):
    options = SessionOptions(
        source=source,
        namespace=namespace,
        name=name,
        kind=kind,
        container_name=container_name or None,
        image=image or None,
        entrypoint=list(entry or []),
        timeout=timeout,
        command=list(command or []),
        ready_timeout=ready_timeout,
        kubeconfig=kubeconfig or None,
        context=context or None,
    )

    session = None
    try:
        options.validate()
        clients = load_clients(options.kubeconfig, options.context)
        session = DebugSession(options, clients)
        session.run()
    except KdebugError as e:
        print_error(f"{e.label}: {escape(str(e))}")
        raise typer.Exit(code=1)
    finally:
        # Teardown problems never replace the primary outcome
        if session is not None:
            for warning in session.warnings:
                print_warning(f"{warning.label}: {escape(str(warning))}")


if __name__ == "__main__":
    app()
