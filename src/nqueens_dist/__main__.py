"""Main entry point for the nqueens_dist package."""
from nqueens_dist.cli import cli


def main():
    """Run the nqueens command group."""
    cli(prog_name="nqueens")


if __name__ == "__main__":
    main()
