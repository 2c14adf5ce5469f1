"""
Migration Lister

Enumerates migration names from a directory. A migration name is the file
name with its extension stripped, and plain string ordering of names is the
migration sequence.

Each call to list() re-reads the directory, so the returned iterator always
reflects the files present at the time it is consumed.
"""

import logging
from pathlib import Path
from typing import AsyncIterator, Dict, Sequence, Tuple, Union

import aiofiles.os

from .errors import ConsistencyError, NotFoundError
from .models import ListOptions, window

logger = logging.getLogger(__name__)


def to_name(filename: str) -> str:
    """Strip the final extension from a file name."""
    return Path(filename).stem


class MigrationLister:
    """
    Lists migration files in a directory.

    Example:
        lister = MigrationLister(Path("migrations"), ".py")
        async for name in lister.list(ListOptions(reverse=True, count=5)):
            print(name)
    """

    def __init__(self, directory: Path, extension: Union[str, Sequence[str]] = ".py"):
        self.directory = Path(directory)
        if isinstance(extension, str):
            extension = (extension,)
        self.extensions: Tuple[str, ...] = tuple(extension)

    async def scan(self) -> Dict[str, str]:
        """
        Map every migration name in the directory to its file name.

        Raises:
            NotFoundError: If the directory does not exist
            ConsistencyError: If two files share a name once extensions are stripped
        """
        try:
            entries = await aiofiles.os.listdir(self.directory)
        except FileNotFoundError as e:
            raise NotFoundError(
                f"Migrations directory does not exist: {self.directory}",
                e,
                self.directory,
            ) from e

        files: Dict[str, str] = {}
        for filename in sorted(entries):
            if Path(filename).suffix not in self.extensions:
                continue
            name = to_name(filename)
            if name in files:
                raise ConsistencyError(
                    f"Migration files {files[name]!r} and {filename!r} "
                    f"both resolve to the name {name!r}",
                    path=self.directory / filename,
                )
            files[name] = filename

        logger.debug(f"Found {len(files)} migrations in {self.directory}")
        return files

    async def list(self, options: ListOptions = None) -> AsyncIterator[str]:
        """
        Yield migration names in the requested window.

        Args:
            options: gte/lte are inclusive and must name existing migrations,
                     reverse flips the order, count keeps the first N after that

        Raises:
            NotFoundError: If gte or lte does not name an existing migration
        """
        options = options or ListOptions()
        names = sorted(await self.scan())

        for boundary in (options.gte, options.lte):
            if boundary and boundary not in names:
                raise NotFoundError(
                    f"Migration ({boundary!r}) does not exist in migrations",
                    path=self.directory,
                )

        for name in window(names, options):
            yield name

    async def path(self, name: str) -> Path:
        """
        Resolve a migration name to its file path.

        Raises:
            NotFoundError: If no file matches the name
        """
        files = await self.scan()
        if name not in files:
            raise NotFoundError(
                f"Migration ({name!r}) does not exist in migrations",
                path=self.directory,
            )
        return self.directory / files[name]
