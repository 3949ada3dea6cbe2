from click.testing import CliRunner

from nqueens_dist.cli import cli


class TestCli:
    """Test suite for the nqueens command group"""

    def test_sequential(self):
        """Sequential run reports the solution count"""
        result = CliRunner().invoke(cli, ["sequential", "6"])
        assert result.exit_code == 0, result.output
        assert "4 solutions" in result.output

    def test_sequential_output(self):
        """-o prints every solution"""
        result = CliRunner().invoke(cli, ["sequential", "4", "-o"])
        assert result.exit_code == 0, result.output
        assert "1 3 0 2" in result.output
        assert "2 0 3 1" in result.output

    def test_sequential_rejects_empty_board(self):
        """N must be at least 1"""
        result = CliRunner().invoke(cli, ["sequential", "0"])
        assert result.exit_code != 0

    def test_solve_threads(self):
        """Distributed run over threads reports the solution count"""
        result = CliRunner().invoke(cli, ["solve", "5", "2", "-p", "2", "-b", "thread"])
        assert result.exit_code == 0, result.output
        assert "10 solutions" in result.output

    def test_solve_bad_split(self):
        """k > N is reported as an error"""
        result = CliRunner().invoke(cli, ["solve", "4", "5", "-b", "thread"])
        assert result.exit_code != 0
        assert "split level" in result.output

    def test_env_config(self):
        """Options can come from NQUEENS_* environment variables"""
        result = CliRunner().invoke(
            cli,
            ["solve", "6", "1"],
            env={"NQUEENS_SOLVE_WORKERS": "3", "NQUEENS_SOLVE_BACKEND": "thread"},
        )
        assert result.exit_code == 0, result.output
        assert "workers=3" in result.output
