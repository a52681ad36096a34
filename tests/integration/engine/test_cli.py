"""
CLI 테스트

main() against a temporary database; JSON goes to stdout.
"""

import json
from pathlib import Path

import pytest

from core.ledger.types import CORE_ACCOUNTS
from engine.cli import main


def _run(capsys: pytest.CaptureFixture, config: Path, db: Path, *args: str) -> tuple[int, object]:
    code = main(["--config", str(config), "--db", str(db), "--no-log-file", *args])
    out = capsys.readouterr().out
    return code, json.loads(out) if out.strip() else None


class TestCli:
    def test_init_and_seed(
        self, capsys: pytest.CaptureFixture, temp_config_file: Path, temp_dir: Path
    ) -> None:
        db = temp_dir / "cli.db"

        code, out = _run(capsys, temp_config_file, db, "init-db")
        assert code == 0
        assert out == {"database": str(db)}
        assert db.exists()

        code, out = _run(capsys, temp_config_file, db, "ensure-accounts", "--tenant", "acme")
        assert code == 0
        assert out["created"] == len(CORE_ACCOUNTS)

        code, out = _run(capsys, temp_config_file, db, "ensure-accounts", "--tenant", "acme")
        assert out["created"] == 0

    def test_balance_and_close(
        self, capsys: pytest.CaptureFixture, temp_config_file: Path, temp_dir: Path
    ) -> None:
        db = temp_dir / "cli.db"
        _run(capsys, temp_config_file, db, "ensure-accounts", "--tenant", "acme")

        code, out = _run(capsys, temp_config_file, db, "balance", "--tenant", "acme", "--code", "1010")
        assert code == 0
        assert out["balance"] == "0"

        code, out = _run(
            capsys, temp_config_file, db, "close-period", "--tenant", "acme", "--as-of", "2026-03-31"
        )
        assert code == 0
        assert out["message"] == "Nothing to close"

        code, out = _run(capsys, temp_config_file, db, "entries", "--tenant", "acme", "--code", "1010")
        assert out == []

    def test_run_depreciation_empty(
        self, capsys: pytest.CaptureFixture, temp_config_file: Path, temp_dir: Path
    ) -> None:
        code, out = _run(
            capsys, temp_config_file, temp_dir / "cli.db", "run-depreciation", "--as-of", "2026-03-31"
        )

        assert code == 0
        assert out == {"posted": [], "skipped": [], "failed": [], "total": "0"}

    def test_ledger_error_exit_code(
        self, capsys: pytest.CaptureFixture, temp_config_file: Path, temp_dir: Path
    ) -> None:
        code, _ = _run(
            capsys, temp_config_file, temp_dir / "cli.db", "balance", "--tenant", "acme", "--code", "1010"
        )

        assert code == 2

    def test_config_error_exit_code(
        self,
        capsys: pytest.CaptureFixture,
        temp_config_file_invalid_regime: Path,
        temp_dir: Path,
    ) -> None:
        code, _ = _run(capsys, temp_config_file_invalid_regime, temp_dir / "cli.db", "init-db")

        assert code == 1

    def test_bad_date(self, capsys: pytest.CaptureFixture, temp_config_file: Path, temp_dir: Path) -> None:
        with pytest.raises(SystemExit):
            main([
                "--config", str(temp_config_file),
                "close-period", "--tenant", "acme", "--as-of", "31/03/2026",
            ])
