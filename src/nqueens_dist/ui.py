from typing import Optional

from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from nqueens_dist.master import MasterState, RunSnapshot
from nqueens_dist.state_queue import SingleSlotQueue


STATE_STYLE = {
    MasterState.DISPATCHING: "bold yellow",
    MasterState.DRAINING: "cyan",
    MasterState.TERMINATING: "magenta",
    MasterState.DONE: "bold green",
}


def render(state: Optional[RunSnapshot]):
    """Render the master's progress snapshot."""
    if state is None:
        return Panel("Waiting for first update…", title="N-Queens", border_style="dim")

    style = STATE_STYLE.get(state.state, "")
    summary = Table.grid(padding=(0, 2))
    summary.add_column(style="dim", justify="right")
    summary.add_column()
    summary.add_row("State", f"[{style}]{state.state.value}[/{style}]")
    summary.add_row("Board", f"{state.n} x {state.n}, split at row {state.k}")
    summary.add_row("Units", f"{state.units_dispatched} dispatched / {state.reports_received} reported")
    summary.add_row("Busy workers", f"{state.live_workers} / {state.workers}")
    summary.add_row("Solutions", f"[green]{state.solutions}[/green]")

    workers = Table(title="Units per worker", show_edge=False, padding=(0, 1))
    workers.add_column("Rank", justify="right", style="cyan")
    workers.add_column("Units", justify="right")
    for rank, units in state.units_per_worker:
        workers.add_row(str(rank), str(units))

    grid = Table.grid(padding=(0, 4))
    grid.add_row(summary, workers)
    return Panel(grid, title=f"N-Queens  |  v{state.version}", border_style=style or "white")


def ui_loop(state_queue: SingleSlotQueue[RunSnapshot]) -> None:
    """Loop the UI until the run closes the queue."""
    with Live(render(None), refresh_per_second=30, screen=False) as live:
        while True:
            state = state_queue.get()
            if state is None:
                break
            live.update(render(state))


def solutions_table(boards, limit: Optional[int] = None) -> Table:
    t = Table(show_header=True, show_edge=False, padding=(0, 1))
    t.add_column("#", justify="right", style="dim")
    t.add_column("Columns by row", style="green")
    for idx, board in enumerate(boards[:limit] if limit else boards, start=1):
        t.add_row(str(idx), " ".join(str(c) for c in board))
    return t


def print_report(console: Console, result, show_solutions: bool = False) -> None:
    """Print the final solution count and timing."""
    if show_solutions:
        console.print(solutions_table(result.boards()))
    params = f"n={result.n}"
    if result.workers:
        params += f"  k={result.k}  workers={result.workers}  backend={result.backend}"
    lines = [
        params,
        f"[bold]{result.count}[/bold] solutions",
        f"elapsed {result.elapsed:.4f} s",
    ]
    if result.stats is not None:
        lines.append(
            f"{result.stats.units_dispatched} work units, {result.stats.batches_received} result batches"
        )
    console.print(Panel("\n".join(lines), title="N-Queens", expand=False))
