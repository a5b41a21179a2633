import sys
from pathlib import Path
from typing import Callable, Iterator, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

# Allow running the suite from a checkout without installing the package.
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from PIL import Image  # noqa: E402
from PySide6.QtCore import QCoreApplication  # noqa: E402

from photostore.cache.index_store import PhotoIndex  # noqa: E402
from photostore.config import StoreConfig  # noqa: E402
from photostore.layout import StorageLayout  # noqa: E402


ImageFactory = Callable[..., Path]


@pytest.fixture
def create_image() -> ImageFactory:
    """Write a solid-colour test image and return its path."""

    def _create(path: Path, size: Tuple[int, int] = (64, 48), fmt: str = "JPEG") -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        img = Image.new("RGB", size, color="red")
        img.save(path, format=fmt)
        return path

    return _create


@pytest.fixture
def store_config(tmp_path: Path) -> StoreConfig:
    return StoreConfig.from_app_dirs(
        tmp_path / "files",
        tmp_path / "cache",
        sweep_on_startup=False,
        io_workers=2,
    )


@pytest.fixture
def layout(store_config: StoreConfig) -> StorageLayout:
    layout = StorageLayout(store_config.durable_root, store_config.cache_root)
    layout.ensure_directories()
    return layout


@pytest.fixture
def index(store_config: StoreConfig) -> Iterator[PhotoIndex]:
    index = PhotoIndex(store_config.database_path)
    yield index
    index.close()


@pytest.fixture
def qt_app() -> QCoreApplication:
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app
