"""Live and pending export directory trees."""

import logging
import re
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Optional

logger = logging.getLogger(__name__)

Role = Literal["live", "pending"]

HTACCESS_CONTENT = "Options -Indexes\nDeny from all\n"

_ID_IN_FILENAME = re.compile(r"-(\d+)\.md$")


@dataclass(frozen=True)
class ExportedFile:
    """A Markdown file published in the live tree."""

    id: int
    type: str
    filename: str
    path: Path
    size: int
    modified: float


class ExportDirectory:
    """
    Manages the published (live) and in-flight (pending) export trees.

    Both trees hold one subdirectory per item type. A batch writes into
    pending; swap() publishes it by replacing live in one step, so readers
    see either the old tree or the new one.

    Example:
        directory = ExportDirectory(Path("./export"), ["post", "page"])
        directory.setup_pending()
        path = directory.write_path("pending", "post", "post-hello-1.md")
        ...
        if not directory.swap():
            directory.cleanup_pending()
    """

    def __init__(
        self,
        base_dir: Path,
        item_types: Iterable[str],
        live_name: str = "pagemark-export",
        pending_name: str = "pagemark-export-pending",
        protect: bool = True,
    ):
        """
        Initialize the directory pair.

        Args:
            base_dir: Directory holding both trees
            item_types: Types that get a subdirectory in each tree
            live_name: Name of the published tree
            pending_name: Name of the in-flight tree
            protect: Write .htaccess and index.html guards into created directories
        """
        self.base_dir = Path(base_dir)
        self.item_types = list(item_types)
        self.live = self.base_dir / live_name
        self.pending = self.base_dir / pending_name
        self.protect = protect

    def _root(self, role: Role) -> Path:
        if role == "live":
            return self.live
        if role == "pending":
            return self.pending
        raise ValueError(f"Unknown export directory role: {role}")

    def _protect(self, directory: Path) -> None:
        if not self.protect:
            return

        htaccess = directory / ".htaccess"
        if not htaccess.exists():
            htaccess.write_text(HTACCESS_CONTENT, encoding="utf-8")

        index = directory / "index.html"
        if not index.exists():
            index.write_text("", encoding="utf-8")

    def _ensure(self, directory: Path) -> None:
        if not directory.exists():
            directory.mkdir(parents=True)
            self._protect(directory)

    def _setup(self, root: Path, item_types: Optional[Iterable[str]] = None) -> Path:
        types = list(self.item_types)
        if item_types is not None:
            types += [t for t in item_types if t not in types]

        for item_type in types:
            if Path(item_type).name != item_type:
                raise ValueError(f"Invalid item type for a directory name: {item_type!r}")

        self._ensure(root)
        for item_type in types:
            self._ensure(root / item_type)
        return root

    def setup_live(self, item_types: Optional[Iterable[str]] = None) -> Path:
        """Create the live tree and its type subdirectories if missing."""
        return self._setup(self.live, item_types)

    def setup_pending(self, item_types: Optional[Iterable[str]] = None) -> Path:
        """
        Create the pending tree and its type subdirectories if missing.

        Args:
            item_types: Types exported by this batch, in addition to the
                        configured ones
        """
        return self._setup(self.pending, item_types)

    def write_path(self, role: Role, item_type: str, filename: str) -> Path:
        """
        Path an artifact should be written to.

        Raises:
            ValueError: If the type or filename would escape the tree
        """
        root = self._root(role)
        target = root / item_type / filename

        if Path(filename).name != filename or Path(item_type).name != item_type:
            raise ValueError(f"Output path {target} is outside {root}")

        return target

    def swap(self) -> bool:
        """
        Publish pending as the new live tree.

        The old live tree is moved aside first and restored if the rename
        fails. On failure pending is left in place for the caller to clean.

        Returns:
            True if pending is now live
        """
        if not self.pending.exists():
            logger.warning(f"Nothing to publish: {self.pending} does not exist")
            return False

        backup: Optional[Path] = None
        if self.live.exists():
            backup = self.live.with_name(f"{self.live.name}-old")
            if backup.exists():
                shutil.rmtree(backup)
            try:
                self.live.rename(backup)
            except OSError as e:
                logger.error(f"Could not move {self.live} aside: {e}")
                return False

        try:
            self.pending.rename(self.live)
        except OSError as e:
            logger.error(f"Could not publish {self.pending}: {e}")
            if backup is not None:
                try:
                    backup.rename(self.live)
                except OSError as restore_error:
                    logger.error(f"Could not restore {self.live} from {backup}: {restore_error}")
            return False

        if backup is not None:
            shutil.rmtree(backup, ignore_errors=True)

        logger.info(f"Published {self.live}")
        return True

    def cleanup_pending(self) -> None:
        """Remove the pending tree if it exists."""
        if self.pending.exists():
            shutil.rmtree(self.pending)
            logger.debug(f"Removed {self.pending}")

    def list_files(self, item_types: Optional[Iterable[str]] = None) -> list[ExportedFile]:
        """List published Markdown files, grouped by type then by filename."""
        files: list[ExportedFile] = []
        types = self.item_types if item_types is None else list(item_types)

        for item_type in types:
            type_dir = self.live / item_type
            if not type_dir.is_dir():
                continue

            for path in sorted(type_dir.glob("*.md")):
                match = _ID_IN_FILENAME.search(path.name)
                if not match:
                    continue
                stat = path.stat()
                files.append(
                    ExportedFile(
                        id=int(match.group(1)),
                        type=item_type,
                        filename=path.name,
                        path=path,
                        size=stat.st_size,
                        modified=stat.st_mtime,
                    )
                )

        return files

    def find_file(self, item_id: int) -> Optional[ExportedFile]:
        """Find the published file for an item id."""
        for exported in self.list_files():
            if exported.id == item_id:
                return exported
        return None
