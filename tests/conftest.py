"""Pytest fixtures for immigration tests"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from immigration import FileStore, Migrate


MIGRATION_SOURCE = '''
from pathlib import Path

OUT = Path(__file__).resolve().parent.parent / "out"


def up():
    OUT.mkdir(exist_ok=True)
    (OUT / "{name}").write_text("success")


def down():
    (OUT / "{name}").unlink()
'''


def write_migration(directory: Path, name: str, source: str = None, extension: str = ".py") -> Path:
    """Write a migration file; by default it creates/deletes out/<name>."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{name}{extension}"
    path.write_text(source if source is not None else MIGRATION_SOURCE.format(name=name))
    return path


def out_files(project) -> list:
    """Side effect files left behind by migrations, sorted."""
    out = project["out"]
    if not out.exists():
        return []
    return sorted(p.name for p in out.iterdir())


@pytest.fixture
def project(tmp_path):
    """Temporary project with two migrations: 1_test and 2_test.

    Returns a dict with:
        - root: Project directory (the store lives here)
        - migrations: Migrations directory
        - out: Directory migrations write their side effects to
    """
    migrations = tmp_path / "migrations"
    write_migration(migrations, "1_test")
    write_migration(migrations, "2_test")
    return {
        "root": tmp_path,
        "migrations": migrations,
        "out": tmp_path / "out",
    }


@pytest.fixture
def file_store(project):
    return FileStore(project["root"] / ".migrate.json")


@pytest.fixture
def migrate(project, file_store):
    return Migrate(file_store, project["migrations"])


@pytest.fixture
def recorded_events(migrate):
    """Every event published by the migrate fixture, in order."""
    events = []
    migrate.on("*", events.append)
    return events
