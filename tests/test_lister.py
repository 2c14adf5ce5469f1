"""Migration Lister Tests

Tests for listing migration names from a directory with window selection.
"""
import pytest

from conftest import write_migration

from immigration.errors import ConsistencyError, NotFoundError
from immigration.lister import MigrationLister, to_name
from immigration.models import ListOptions


async def collect(lister, **options):
    return [name async for name in lister.list(ListOptions(**options))]


@pytest.fixture
def lister(tmp_path):
    directory = tmp_path / "migrations"
    for name in ["003_c", "001_a", "002_b", "004_d"]:
        write_migration(directory, name, source="")
    (directory / "README.md").write_text("not a migration")
    (directory / "__pycache__").mkdir()
    return MigrationLister(directory, ".py")


class TestToName:
    """Test extension stripping."""

    def test_strips_extension(self):
        assert to_name("001_init.py") == "001_init"

    def test_strips_only_last_extension(self):
        assert to_name("001_init.sql.py") == "001_init.sql"


class TestList:
    """Test window selection."""

    @pytest.mark.asyncio
    async def test_lists_sorted_and_filtered(self, lister):
        assert await collect(lister) == ["001_a", "002_b", "003_c", "004_d"]

    @pytest.mark.asyncio
    async def test_reverse(self, lister):
        assert await collect(lister, reverse=True) == ["004_d", "003_c", "002_b", "001_a"]

    @pytest.mark.asyncio
    async def test_count_takes_from_front(self, lister):
        assert await collect(lister, count=2) == ["001_a", "002_b"]

    @pytest.mark.asyncio
    async def test_count_in_reverse(self, lister):
        assert await collect(lister, count=1, reverse=True) == ["004_d"]

    @pytest.mark.asyncio
    async def test_inclusive_window(self, lister):
        assert await collect(lister, gte="002_b", lte="003_c") == ["002_b", "003_c"]

    @pytest.mark.asyncio
    async def test_window_reverse_then_count(self, lister):
        names = await collect(lister, gte="002_b", reverse=True, count=2)
        assert names == ["004_d", "003_c"]

    @pytest.mark.asyncio
    async def test_unknown_gte_raises(self, lister):
        with pytest.raises(NotFoundError) as exc_info:
            await collect(lister, gte="009_missing")
        assert "009_missing" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_unknown_lte_raises(self, lister):
        with pytest.raises(NotFoundError):
            await collect(lister, lte="000_missing")

    @pytest.mark.asyncio
    async def test_empty_directory(self, tmp_path):
        directory = tmp_path / "empty"
        directory.mkdir()
        assert await collect(MigrationLister(directory)) == []

    @pytest.mark.asyncio
    async def test_missing_directory_raises(self, tmp_path):
        with pytest.raises(NotFoundError) as exc_info:
            await collect(MigrationLister(tmp_path / "nope"))
        assert exc_info.value.path == str(tmp_path / "nope")

    @pytest.mark.asyncio
    async def test_list_is_restartable(self, lister):
        assert await collect(lister) == await collect(lister)
        write_migration(lister.directory, "005_e", source="")
        assert (await collect(lister))[-1] == "005_e"


class TestNames:
    """Test name resolution."""

    @pytest.mark.asyncio
    async def test_duplicate_names_rejected(self, tmp_path):
        directory = tmp_path / "migrations"
        write_migration(directory, "001_a", source="", extension=".py")
        write_migration(directory, "001_a", source="", extension=".sql")

        lister = MigrationLister(directory, (".py", ".sql"))
        with pytest.raises(ConsistencyError) as exc_info:
            await collect(lister)
        assert "001_a" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_path_resolves_file(self, lister):
        path = await lister.path("002_b")
        assert path == lister.directory / "002_b.py"

    @pytest.mark.asyncio
    async def test_path_unknown_name(self, lister):
        with pytest.raises(NotFoundError):
            await lister.path("nope")
