import shutil
from pathlib import Path

from invoke import task


@task
def clean(_):
    repo_root = Path(__file__).resolve().parent
    for path in (repo_root / "hydra.db", repo_root / ".pytest_cache", repo_root / ".ruff_cache"):
        if path.is_dir():
            shutil.rmtree(path)
        elif path.exists():
            path.unlink()
        else:
            continue
        print(f"Removed {path}")


@task
def lint(c):
    c.run("ruff check .")


@task
def format_check(c):
    c.run("ruff format --check .")


@task
def test(c):
    c.run("pytest")


@task
def ci(c):
    lint(c)
    format_check(c)
    test(c)
