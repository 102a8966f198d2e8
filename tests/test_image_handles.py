"""Unit tests for image handles, the handle factory and analysis state."""

import json
import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from types import SimpleNamespace

from PIL import Image

from OC_Libs.errors import HandleOpenError, InvalidPathError
from OC_Libs.ImageServerLib.analysis_state import AnalysisState, JsonStateSerializer
from OC_Libs.ImageServerLib.handle_factory import (
    ImageHandleBuilder,
    ImageHandleFactory,
    PillowHandleBuilder,
)
from OC_Libs.ImageServerLib.pillow_handle import PillowImageHandle, parse_series, series_uri
from OC_Libs.ImageServerLib.rotated_handle import RotatedImageHandle, Rotation, adapt

from conftest import FakeHandle, make_image, make_multi_frame_tiff


class _ScoredBuilder(ImageHandleBuilder):
    def __init__(self, name, level, error=None):
        self.name = name
        self.level = level
        self.error = error
        self.built = []

    def support_level(self, uri):
        return self.level

    def build(self, uri):
        if self.error is not None:
            raise self.error
        self.built.append(uri)
        return FakeHandle(uri)


class TestPillowImageHandle(unittest.TestCase):
    """Validate PillowImageHandle on single and multi-frame files."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        root = Path(self.temp_dir.name).resolve()
        self.png = make_image(root / "sample.png")
        self.tiff = make_multi_frame_tiff(root / "stack.tif", frames=3)

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_single_frame_png(self):
        with PillowImageHandle(self.png.as_uri()) as handle:
            self.assertEqual((handle.width, handle.height), (4, 3))
            self.assertEqual(handle.display_name, "sample.png")
            self.assertEqual(handle.sub_image_names(), [])

    def test_read_region(self):
        with PillowImageHandle(self.png.as_uri()) as handle:
            region = handle.read_region(1, 1, 2, 2)

        self.assertEqual(region.size, (2, 2))
        self.assertEqual(region.getpixel((0, 0)), (40, 60, 20))

    def test_multi_frame_sub_images(self):
        uri = self.tiff.as_uri()
        with PillowImageHandle(uri) as handle:
            names = handle.sub_image_names()
            paths = [handle.sub_image_path(name) for name in names]

        self.assertEqual(names, ["Series 0", "Series 1", "Series 2"])
        self.assertEqual(paths, [f"{uri}#series={i}" for i in range(3)])

    def test_series_handle(self):
        with PillowImageHandle(f"{self.tiff.as_uri()}#series=2") as handle:
            self.assertEqual(handle.display_name, "stack.tif - Series 2")
            self.assertEqual(handle.sub_image_names(), [])
            self.assertEqual(handle.read_region(0, 0, 1, 1).getpixel((0, 0)), (80, 0, 0))

    def test_series_out_of_range(self):
        with self.assertRaises(ValueError):
            PillowImageHandle(f"{self.tiff.as_uri()}#series=9")

    def test_unknown_sub_image(self):
        with PillowImageHandle(self.tiff.as_uri()) as handle:
            with self.assertRaises(KeyError):
                handle.sub_image_path("Series 7")

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            PillowImageHandle((self.png.parent / "missing.png").as_uri())

    def test_non_file_uri(self):
        with self.assertRaises(ValueError):
            PillowImageHandle("https://example.org/a.png")

    def test_close_is_idempotent(self):
        handle = PillowImageHandle(self.png.as_uri())
        handle.close()
        handle.close()

        with self.assertRaises(ValueError):
            handle.read_region(0, 0, 1, 1)

    def test_series_helpers(self):
        self.assertIsNone(parse_series("file:///a.tif"))
        self.assertIsNone(parse_series("file:///a.tif#other=1"))
        self.assertEqual(parse_series("file:///a.tif#series=4"), 4)
        self.assertEqual(series_uri("file:///a.tif#series=4", 1), "file:///a.tif#series=1")
        with self.assertRaises(ValueError):
            parse_series("file:///a.tif#series=-1")


class TestImageHandleFactory(unittest.TestCase):
    """Validate capability-based builder selection."""

    def test_highest_support_level_wins(self):
        low = _ScoredBuilder("low", 0.2)
        high = _ScoredBuilder("high", 0.9)
        factory = ImageHandleFactory([low, high])

        factory.open("fake://a")

        self.assertIs(factory.select_builder("fake://a"), high)
        self.assertEqual(high.built, ["fake://a"])
        self.assertEqual(low.built, [])

    def test_tie_goes_to_first_builder(self):
        first = _ScoredBuilder("first", 0.5)
        second = _ScoredBuilder("second", 0.5)

        self.assertIs(ImageHandleFactory([first, second]).select_builder("fake://a"), first)

    def test_no_supporting_builder(self):
        factory = ImageHandleFactory([_ScoredBuilder("never", 0.0)])

        with self.assertRaises(HandleOpenError):
            factory.open("fake://a")

    def test_backend_failure_is_wrapped(self):
        factory = ImageHandleFactory([_ScoredBuilder("broken", 1.0, error=RuntimeError("boom"))])

        with self.assertRaises(HandleOpenError) as ctx:
            factory.open("fake://a")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    def test_invalid_path(self):
        with self.assertRaises(InvalidPathError):
            ImageHandleFactory().open("not/a/real/file.png")

    def test_builders_are_immutable(self):
        builders = [_ScoredBuilder("a", 1.0)]
        factory = ImageHandleFactory(builders)
        builders.append(_ScoredBuilder("b", 1.0))

        self.assertEqual(len(factory.builders), 1)

    def test_pillow_builder_support_levels(self):
        builder = PillowHandleBuilder()

        self.assertEqual(builder.support_level("file:///images/a.TIF"), 1.0)
        self.assertEqual(builder.support_level("file:///images/a.xyz"), 0.1)
        self.assertEqual(builder.support_level("https://example.org/a.png"), 0.0)

    def test_default_factory_opens_local_file(self):
        with TemporaryDirectory() as temp:
            path = make_image(Path(temp) / "a.png")
            with ImageHandleFactory().open(str(path)) as handle:
                self.assertIsInstance(handle, PillowImageHandle)
                self.assertEqual(handle.path, path.resolve().as_uri())

    def test_default_factory_rejects_unreadable_file(self):
        with TemporaryDirectory() as temp:
            path = Path(temp) / "not_an_image.png"
            path.write_text("plain text", encoding="utf-8")
            with self.assertRaises(HandleOpenError):
                ImageHandleFactory().open(str(path))


class TestRotatedImageHandle(unittest.TestCase):
    """Validate the 180 degree rotation adapter."""

    def setUp(self):
        self.temp_dir = TemporaryDirectory()
        self.path = make_image(Path(self.temp_dir.name).resolve() / "a.png")

    def tearDown(self):
        self.temp_dir.cleanup()

    def test_adapt_none_returns_same_handle(self):
        handle = FakeHandle("fake://a")

        self.assertIs(adapt(handle, Rotation.ROTATE_NONE), handle)

    def test_adapt_180_wraps(self):
        handle = FakeHandle("fake://a", {"s": "fake://a#s"})
        rotated = adapt(handle, Rotation.ROTATE_180)

        self.assertIsInstance(rotated, RotatedImageHandle)
        self.assertEqual(rotated.path, "fake://a")
        self.assertEqual(rotated.sub_image_names(), ["s"])
        self.assertEqual((rotated.width, rotated.height), (8, 6))

    def test_full_region_is_rotated(self):
        with adapt(PillowImageHandle(self.path.as_uri()), Rotation.ROTATE_180) as handle:
            region = handle.read_region(0, 0, 4, 3)

        with Image.open(self.path) as source:
            expected = source.convert("RGB").transpose(Image.Transpose.ROTATE_180)
        self.assertEqual(list(region.getdata()), list(expected.getdata()))

    def test_top_left_pixel_is_source_bottom_right(self):
        with adapt(PillowImageHandle(self.path.as_uri()), Rotation.ROTATE_180) as handle:
            pixel = handle.read_region(0, 0, 1, 1).getpixel((0, 0))

        with Image.open(self.path) as source:
            self.assertEqual(pixel, source.convert("RGB").getpixel((3, 2)))

    def test_close_closes_wrapped(self):
        inner = FakeHandle("fake://a")

        adapt(inner, Rotation.ROTATE_180).close()

        self.assertTrue(inner.closed)


class TestAnalysisState(unittest.TestCase):
    """Validate AnalysisState and JsonStateSerializer."""

    def test_empty_state(self):
        self.assertTrue(AnalysisState().is_empty())
        self.assertFalse(AnalysisState(properties={"a": 1}).is_empty())

    def test_serializer_round_trip(self):
        serializer = JsonStateSerializer()
        state = AnalysisState("fake://a", [{"type": "point", "x": 1}], {"count": 3})

        self.assertEqual(serializer.loads(serializer.dumps(state)), state)

    def test_dumps_is_json_object(self):
        data = json.loads(JsonStateSerializer().dumps(AnalysisState("fake://a")))

        self.assertEqual(data["image_uri"], "fake://a")
        self.assertEqual(data["version"], 1)

    def test_rejects_bad_shapes(self):
        serializer = JsonStateSerializer()

        for text in ("not json", "[]", '{"annotations": {}}', '{"properties": []}'):
            with self.subTest(text=text):
                with self.assertRaises(ValueError):
                    serializer.loads(text)

    def test_new_state_uses_entry_uri(self):
        entry = SimpleNamespace(uri="fake://a")

        self.assertEqual(JsonStateSerializer().new_state(entry).image_uri, "fake://a")


if __name__ == "__main__":
    unittest.main()
