"""
Tests for the command-line interface.
"""

import json

import pytest

from jobboard.app import main
from jobboard.storage import JobStore


@pytest.fixture
def cli_env(monkeypatch, tmp_path):
    monkeypatch.setenv("JOBBOARD_LOG_DIR", str(tmp_path / "logs"))
    monkeypatch.delenv("DISCORD_WEBHOOK_URL", raising=False)
    for name in ("FEATURED_LIMIT", "MAX_JOB_AGE_DAYS", "REFRESH_RATE_LIMIT_SECONDS"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def jobs_file(tmp_path):
    path = tmp_path / "jobs.json"
    path.write_text(json.dumps({"jobs": [
        {"id": "a1", "title": "Senior Solidity Engineer", "company": "Acme", "tags": ["solidity"]},
        {"id": "a2", "title": "Senior Solidity Engineer (Remote)", "company": "Acme", "tags": ["remote"]},
        {"id": "b1", "title": "Designer", "company": "Beta", "backers": ["a16z"]},
    ]}))
    return path


class TestCli:
    """Test subcommands end to end."""

    def test_import_duplicates_merge(self, cli_env, db_path, jobs_file, capsys):
        main(["--db", str(db_path), "import", "--input", str(jobs_file)])
        assert "imported=3" in capsys.readouterr().out

        main(["--db", str(db_path), "duplicates", "--json"])
        groups = json.loads(capsys.readouterr().out)["groups"]
        assert len(groups) == 1
        assert groups[0]["similarity"] == 75

        main(["--db", str(db_path), "merge", "--keep", "a1", "--delete", "a2"])
        result = json.loads(capsys.readouterr().out)
        assert result == {"success": True, "kept": "a1", "deleted": 1, "tags": ["solidity", "remote"]}

    def test_merge_missing_keep_exits(self, cli_env, db_path, jobs_file):
        main(["--db", str(db_path), "import", "--input", str(jobs_file)])
        with pytest.raises(SystemExit, match="Keep job not found"):
            main(["--db", str(db_path), "merge", "--keep", "ghost", "--delete", "a2"])
        assert JobStore(db_path).get_job("a2") is not None

    def test_refresh_rate_limited(self, cli_env, db_path, jobs_file, capsys):
        main(["--db", str(db_path), "import", "--input", str(jobs_file)])
        main(["--db", str(db_path), "refresh-featured"])
        assert "Jobs scored: 3" in capsys.readouterr().out

        with pytest.raises(SystemExit, match="Rate limited"):
            main(["--db", str(db_path), "refresh-featured"])

        main(["--db", str(db_path), "refresh-featured", "--force"])

    def test_pin_and_featured(self, cli_env, db_path, jobs_file, capsys):
        main(["--db", str(db_path), "import", "--input", str(jobs_file)])
        main(["--db", str(db_path), "pin", "a2"])
        main(["--db", str(db_path), "refresh-featured", "--force"])
        capsys.readouterr()

        main(["--db", str(db_path), "featured", "--json"])
        jobs = json.loads(capsys.readouterr().out)["jobs"]
        assert jobs[0]["id"] == "a2"
        assert len(jobs) == 3

    def test_decay_for_date(self, cli_env, db_path, capsys):
        main([
            "--db", str(db_path), "decay",
            "--posted-date", "2024-01-01T00:00:00Z",
            "--now", "2024-03-01T00:00:00Z",
        ])
        styles = json.loads(capsys.readouterr().out)
        assert styles["daysOld"] == 60
        assert styles["decayLevel"] == 0.75

    def test_cleanup_expired(self, cli_env, db_path, capsys):
        path = db_path.parent / "old.json"
        path.write_text(json.dumps([
            {"id": "old", "title": "T", "company": "C", "postedDate": "2000-01-01T00:00:00Z"},
        ]))
        main(["--db", str(db_path), "import", "--input", str(path)])
        capsys.readouterr()

        main(["--db", str(db_path), "cleanup-expired"])
        result = json.loads(capsys.readouterr().out)
        assert result["ageExpired"] == 1
        assert result["maxAgeDays"] == 90

    def test_dedup_exact_dry_run(self, cli_env, db_path, tmp_path, capsys):
        path = tmp_path / "dupes.json"
        path.write_text(json.dumps([
            {"id": "x1", "title": "Engineer", "company": "Acme", "source": "lever"},
            {"id": "x2", "title": "Engineer", "company": "Acme", "source": "remoteok.com"},
        ]))
        main(["--db", str(db_path), "import", "--input", str(path)])
        capsys.readouterr()

        main(["--db", str(db_path), "dedup-exact", "--dry-run"])
        result = json.loads(capsys.readouterr().out)
        assert result["deactivated"] == 1
        assert JobStore(db_path).count_jobs(active=True) == 2

    def test_import_missing_file(self, cli_env, db_path, tmp_path):
        with pytest.raises(SystemExit, match="not found"):
            main(["--db", str(db_path), "import", "--input", str(tmp_path / "nope.json")])

    def test_session_metrics_logged_after_command(self, cli_env, db_path, jobs_file, capsys):
        main(["--db", str(db_path), "import", "--input", str(jobs_file)])
        err = capsys.readouterr().err
        assert "Moderation Session Metrics" in err
