import asyncio
import threading
from pathlib import Path

import pytest
from PIL import Image

from fluid_images.options import merge_options
from fluid_images.service import (
    FileRecord,
    ImageServiceError,
    PillowImageService,
    collect_image_files,
    fluid_widths,
)


def make_image(path: Path, size=(1200, 800), mode="RGB", color=(200, 30, 30)):
    path.parent.mkdir(parents=True, exist_ok=True)
    Image.new(mode, size, color).save(path)
    return FileRecord(path.resolve().as_posix())


def fluid(service, file, **overrides):
    return asyncio.run(service.fluid(file, merge_options(overrides)))


def test_fluid_widths_stop_at_original():
    assert fluid_widths(590, 1200) == [148, 295, 590, 885, 1180, 1200]
    assert fluid_widths(590, 400) == [148, 295, 400]


def test_fluid_writes_variants_and_returns_result(tmp_path):
    file = make_image(tmp_path / "content" / "cat.png")
    service = PillowImageService(tmp_path / "output")

    result = fluid(service, file)

    assert result.presentation_width == 590
    assert result.aspect_ratio == pytest.approx(1.5)
    assert result.src.endswith("/cat-590.jpg")
    assert result.original_img.endswith("/cat-1200.jpg")
    assert result.src.startswith("/static/fluid/")
    assert result.src_set.count("w") >= 5
    assert "590w" in result.src_set
    assert result.sizes == "(max-width: 590px) 100vw, 590px"

    written = sorted(p.name for p in (tmp_path / "output" / "static" / "fluid").rglob("*.jpg"))
    assert written == ["cat-1180.jpg", "cat-1200.jpg", "cat-148.jpg", "cat-295.jpg", "cat-590.jpg", "cat-885.jpg"]
    with Image.open(tmp_path / "output" / result.src.lstrip("/")) as img:
        assert img.size == (590, 393)


def test_small_image_is_presented_at_its_own_width(tmp_path):
    file = make_image(tmp_path / "content" / "small.jpg", size=(300, 300))
    service = PillowImageService(tmp_path / "output")

    result = fluid(service, file)

    assert result.presentation_width == 300
    assert result.aspect_ratio == 1
    assert result.src.endswith("/small-300.jpg")


def test_path_prefix_and_webp(tmp_path):
    file = make_image(tmp_path / "content" / "cat.jpg", size=(800, 400))
    service = PillowImageService(tmp_path / "output", url_prefix="/img/")

    result = fluid(service, file, path_prefix="/blog", with_webp=True)

    assert result.src.startswith("/blog/img/")
    assert result.src_set_webp is not None
    assert ".webp 800w" in result.src_set_webp


def test_transparent_png_is_flattened_for_jpeg(tmp_path):
    file = make_image(tmp_path / "content" / "ghost.png", size=(100, 100), mode="RGBA", color=(0, 0, 0, 0))
    service = PillowImageService(tmp_path / "output")

    result = fluid(service, file, background_color="white", grayscale=True)

    with Image.open(tmp_path / "output" / result.src.lstrip("/")) as img:
        assert img.format == "JPEG"
        assert img.convert("L").getpixel((50, 50)) > 240


def test_keeps_source_format_without_to_format(tmp_path):
    file = make_image(tmp_path / "content" / "cat.png", size=(200, 100))
    service = PillowImageService(tmp_path / "output")

    result = fluid(service, file, to_format="")

    assert result.src.endswith(".png")


def test_missing_file_is_absent(tmp_path):
    service = PillowImageService(tmp_path / "output")

    assert fluid(service, FileRecord((tmp_path / "nope.jpg").as_posix())) is None


def test_unreadable_image_raises_service_error(tmp_path):
    broken = tmp_path / "broken.jpg"
    broken.write_bytes(b"not an image")
    service = PillowImageService(tmp_path / "output")

    with pytest.raises(ImageServiceError):
        fluid(service, FileRecord(broken.as_posix()))


def test_unsupported_format_raises_service_error(tmp_path):
    file = make_image(tmp_path / "content" / "cat.jpg", size=(10, 10))
    service = PillowImageService(tmp_path / "output")

    with pytest.raises(ImageServiceError):
        fluid(service, file, to_format="xyz")


def test_collect_image_files(tmp_path):
    make_image(tmp_path / "articles" / "images" / "cat.jpg", size=(10, 10))
    make_image(tmp_path / "media" / "dog.png", size=(10, 10))
    (tmp_path / "articles" / "post.md").write_text("hi")

    records = collect_image_files(tmp_path)

    assert [r.relative_path for r in records] == ["articles/images/cat.jpg", "media/dog.png"]
    assert records[0].absolute_path == (tmp_path / "articles" / "images" / "cat.jpg").resolve().as_posix()
    assert collect_image_files(tmp_path / "missing") == []


def test_from_settings(tmp_path):
    service = PillowImageService.from_settings({"OUTPUT_PATH": str(tmp_path), "FLUID_IMAGES_OUTPUT_DIR": "media/fluid"})

    assert service.output_path == tmp_path
    assert service.url_prefix == "media/fluid"


def test_decompression_bomb_raises_service_error(tmp_path, monkeypatch):
    file = make_image(tmp_path / "content" / "big.jpg", size=(400, 400))
    monkeypatch.setattr(Image, "MAX_IMAGE_PIXELS", 1000)
    service = PillowImageService(tmp_path / "output")

    with pytest.raises(ImageServiceError):
        fluid(service, file)


def test_fluid_does_not_block_the_event_loop(tmp_path):
    file = make_image(tmp_path / "content" / "cat.jpg", size=(10, 10))
    service = PillowImageService(tmp_path / "output")
    loop_threads = []

    def process(source, options):
        loop_threads.append(threading.current_thread())
        return "done"

    service._process = process

    assert fluid(service, file) == "done"
    assert loop_threads and loop_threads[0] is not threading.main_thread()
