"""Test configuration that ensures pelican-plugins/ is importable."""

import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
PLUGINS = ROOT / "pelican-plugins"

sys.path.insert(0, str(PLUGINS))
sys.path.insert(0, str(ROOT))

from fluid_images.service import FileRecord, FluidResult, ImageServiceError  # noqa: E402

DOC_DIR = "/site/content/articles"


class FakeImageService:
    """Returns canned fluid results and records every call."""

    def __init__(self, aspect_ratio=2.0, fail=(), missing=()):
        self.aspect_ratio = aspect_ratio
        self.fail = set(fail)
        self.missing = set(missing)
        self.calls = []

    async def fluid(self, file, options):
        self.calls.append(file.absolute_path)
        name = Path(file.absolute_path).stem
        if name in self.fail:
            raise ImageServiceError(f"cannot read {name}")
        if name in self.missing:
            return None
        return FluidResult(
            original_img=f"/static/fluid/abc/{name}-1200.jpg",
            src=f"/static/fluid/abc/{name}-590.jpg",
            src_set=f"/static/fluid/abc/{name}-295.jpg 295w,\n/static/fluid/abc/{name}-590.jpg 590w",
            presentation_width=590,
            aspect_ratio=self.aspect_ratio,
            sizes="(max-width: 590px) 100vw, 590px",
        )


@pytest.fixture
def service():
    return FakeImageService()


@pytest.fixture
def files():
    return [
        FileRecord(f"{DOC_DIR}/images/cat.jpg"),
        FileRecord(f"{DOC_DIR}/images/dog.png"),
        FileRecord(f"{DOC_DIR}/images/owl.jpg"),
        FileRecord("/site/content/media/goblin.jpg"),
        FileRecord(f"{DOC_DIR}/images/anim.gif"),
        FileRecord(f"{DOC_DIR}/images/logo.svg"),
    ]


@pytest.fixture
def doc_dir():
    return DOC_DIR


@pytest.fixture
def make_service():
    return FakeImageService
