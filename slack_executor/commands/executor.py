"""Execution engine - resolves a request, renders it and runs it in a shell."""

import asyncio

from slack_executor.commands.command import CommandRequest, ExecutionResult
from slack_executor.commands.registry import CommandRegistry
from slack_executor.commands.template import render
from slack_executor.errors import NoAvailableExecutors


async def run_command(command: str, timeout: float | None = None) -> ExecutionResult:
    """Run a command line through the system shell and capture its output.

    Failures (spawn errors, non-zero exit, timeout) end up in
    `ExecutionResult.error` instead of being raised.
    """
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        return ExecutionResult(command=command, error=f"Failed to start command: {e}")

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return ExecutionResult(
            command=command,
            exit_status=process.returncode,
            error=f"Command timed out after {timeout:g}s",
        )

    result = ExecutionResult(
        command=command,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
        exit_status=process.returncode,
    )
    if process.returncode != 0:
        result.error = f"Command exited with status {process.returncode}"
    return result


async def run(
    request: CommandRequest,
    registry: CommandRegistry,
    timeout: float | None = None,
) -> ExecutionResult:
    """Resolve the request against the registry and execute it.

    Raises:
        NoAvailableExecutors: the registry is empty (configuration problem)
        UnknownExecutor: no executor with the requested name
        TemplateError: the executor's template can't be rendered
    """
    if not len(registry):
        raise NoAvailableExecutors()

    tmpl = registry.lookup(request.name)
    command = render(tmpl.template, request.payload)

    print(f"▶ [EX] {tmpl.name}: {command[:80]}{'...' if len(command) > 80 else ''}", flush=True)
    result = await run_command(command, timeout=timeout)
    if result.ok:
        print(f"  ✅ {tmpl.name} finished ({len(result.stdout)} bytes of output)", flush=True)
    else:
        print(f"  ❌ {tmpl.name}: {result.error}", flush=True)
    return result
