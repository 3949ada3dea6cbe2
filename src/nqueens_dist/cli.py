from concurrent.futures import ThreadPoolExecutor

import click
from rich.console import Console

from nqueens_dist.config import Backend, RunConfig
from nqueens_dist.errors import NQueensError
from nqueens_dist.logs import configure_logging
from nqueens_dist.master import RunSnapshot
from nqueens_dist.runner import RunResult, run_distributed, run_sequential
from nqueens_dist.state_queue import SingleSlotQueue
from nqueens_dist.ui import print_report, ui_loop

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.group(context_settings={"auto_envvar_prefix": "NQUEENS"})
def cli():
    pass


def solver(config: RunConfig) -> RunResult:
    """Run the distributed solver, rendering live progress when asked to."""
    if not config.show_progress:
        return run_distributed(config)

    state_queue: SingleSlotQueue[RunSnapshot] = SingleSlotQueue()

    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(run_distributed, config, state_queue)

        try:
            ui_loop(state_queue)
        except KeyboardInterrupt:
            state_queue.close()

        return future.result()


@cli.command()
@click.argument("n", type=int)
@click.argument("k", type=int)
@click.option("--workers", "-p", default=1, show_default=True, help="Number of worker participants")
@click.option(
    "--backend",
    "-b",
    type=click.Choice([b.value for b in Backend]),
    default=Backend.PROCESS.value,
    show_default=True,
)
@click.option("--poll-interval", default=0.01, show_default=True, help="Worker idle wait in seconds")
@click.option("--output", "-o", is_flag=True, help="Print every solution")
@click.option("--progress/--no-progress", default=False, help="Show a live progress panel")
@click.option("--log-level", type=click.Choice(LOG_LEVELS, case_sensitive=False), default="WARNING")
@click.option("--json-logs", is_flag=True, help="Emit logs as JSON")
def solve(
    n: int,
    k: int,
    workers: int,
    backend: str,
    poll_interval: float,
    output: bool,
    progress: bool,
    log_level: str,
    json_logs: bool,
):
    """Solve n-queens with a master handing out work split at row K."""
    try:
        config = RunConfig.build(
            n=n,
            k=k,
            workers=workers,
            backend=backend,
            poll_interval=poll_interval,
            show_progress=progress,
            output=output,
            log_level=log_level.upper(),
            json_logs=json_logs,
        )
        configure_logging(config.log_level, config.json_logs)
        result = solver(config)
    except NQueensError as e:
        raise click.ClickException(str(e))

    print_report(Console(), result, show_solutions=config.output)


@cli.command()
@click.argument("n", type=int)
@click.option("--output", "-o", is_flag=True, help="Print every solution")
def sequential(n: int, output: bool):
    """Solve n-queens in a single process."""
    if n < 1:
        raise click.BadParameter(f"board size must be at least 1, got {n}", param_hint="N")
    result = run_sequential(n)
    print_report(Console(), result, show_solutions=output)


if __name__ == "__main__":
    cli()
