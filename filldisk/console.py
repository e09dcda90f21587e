from dataclasses import asdict

from rich import print as rich_print, print_json as rich_print_json

from .fill_types import FillResult, StopResult

# Output helpers for results printed on stdout


def print_json(data) -> None:
    """Print JSON data with formatting."""
    rich_print_json(data=data)


def print_rich(*args, **kwargs) -> None:
    rich_print(*args, **kwargs)


def print_result(result: FillResult | StopResult, as_json: bool = False) -> None:
    """Print a start/stop result for humans, or as JSON for scripts."""
    if as_json:
        print_json({k: v for k, v in asdict(result).items() if v is not None})
        return

    if isinstance(result, FillResult):
        if result.size_mb is None:
            print_rich(f"[bold]{result.message}[/bold]")
            return
        line = (
            f"[green]filled[/green] {result.directory} with {result.size_mb}M "
            f"via [bold]{result.strategy}[/bold]: {result.message}"
        )
        if result.retained:
            line += " [dim](file handle retained)[/dim]"
        print_rich(line)
    else:
        removed = "removed" if result.artifact_removed else "no artifact"
        pids = ", ".join(str(p) for p in result.killed_pids) or "none"
        print_rich(
            f"[green]stopped[/green] {result.directory}: {removed}, killed pids: {pids}"
        )
