"""
tests/test_json_file_storage.py

Tests for the local JSON file backend, against a temporary directory and
against an in-memory filesystem for failure injection.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
import unittest

from core.config import parse_options
from core.errors import ParseError, StorageIOError, ValidationError
from core.services.interfaces import StorageStatus
from infrastructure.filesystem import LocalFilesystem
from infrastructure.json_file_storage import (
    JsonFileStorage,
    deserialize_settings,
    serialize_settings,
    settings_file_name,
)
from tests.fakes import FailingPathProvider, FixedPathProvider, InMemoryFilesystem


class TestSerialization(unittest.TestCase):
    def test_compact_by_default(self) -> None:
        raw = serialize_settings({"a": 1, "b": [1, 2], "c": {"d": None}}, parse_options())
        self.assertEqual(raw, '{"a":1,"b":[1,2],"c":{"d":null}}')

    def test_prettify_uses_indent_width(self) -> None:
        settings = {"theme": {"mode": "dark"}}
        raw = serialize_settings(settings, parse_options(prettify=True, indent_width=4))
        self.assertEqual(raw, json.dumps(settings, indent=4))

    def test_non_ascii_is_kept(self) -> None:
        raw = serialize_settings({"name": "Größe"}, parse_options())
        self.assertIn("Größe", raw)

    def test_rejects_non_mapping_root_and_non_json_values(self) -> None:
        config = parse_options()
        for bad in ([1, 2], "text", None):
            with self.subTest(bad=bad):
                with self.assertRaises(ValidationError):
                    serialize_settings(bad, config)  # type: ignore[arg-type]
        with self.assertRaises(ValidationError):
            serialize_settings({"tags": {"a", "b"}}, config)
        with self.assertRaises(ValidationError):
            serialize_settings({"ratio": float("nan")}, config)

    def test_deserialize(self) -> None:
        self.assertEqual(deserialize_settings('{"a": {"b": 1}}', "mem"), {"a": {"b": 1}})
        with self.assertRaises(ParseError) as ctx:
            deserialize_settings("{not json", "mem")
        self.assertEqual(ctx.exception.source, "mem")
        for root in ("[1]", "null", "3", '"s"'):
            with self.subTest(root=root):
                with self.assertRaises(ParseError):
                    deserialize_settings(root, "mem")

    def test_file_identifier_scopes_file_name(self) -> None:
        self.assertEqual(settings_file_name(parse_options()), "settings.json")
        self.assertEqual(settings_file_name(parse_options(file_identifier=7)), "settings-7.json")
        self.assertEqual(
            settings_file_name(parse_options(file_name="prefs", file_identifier="work")),
            "prefs-work.json",
        )


class TestJsonFileStorageOnDisk(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.config_dir = self.root / "nested" / "config"
        self.storage = JsonFileStorage(FixedPathProvider(self.config_dir), LocalFilesystem())

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_ensure_creates_directory_and_empty_file(self) -> None:
        result = await self.storage.ensure(parse_options())
        path = self.config_dir / "settings.json"
        self.assertIs(result.status, StorageStatus.CREATED)
        self.assertEqual(result.handle, path)
        self.assertEqual(result.raw_content, "{}")
        self.assertEqual(path.read_text(encoding="utf-8"), "{}")
        self.assertEqual(os.listdir(self.config_dir), ["settings.json"])

    async def test_ensure_reports_existing_file(self) -> None:
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "settings.json").write_text('{"lang": "en"}', encoding="utf-8")
        result = await self.storage.ensure(parse_options())
        self.assertIs(result.status, StorageStatus.EXISTS)
        self.assertEqual(result.raw_content, '{"lang": "en"}')

    async def test_explicit_directory_skips_path_provider(self) -> None:
        provider = FixedPathProvider(self.config_dir)
        storage = JsonFileStorage(provider, LocalFilesystem())
        target = self.root / "explicit"
        result = await storage.read_all(parse_options(directory=target, file_name="prefs"))
        self.assertEqual(result.handle, target / "prefs.json")
        self.assertEqual(provider.calls, 0)

    async def test_empty_file_created_prettified(self) -> None:
        result = await self.storage.ensure(parse_options(prettify=True, indent_width=4))
        self.assertEqual(result.raw_content, json.dumps({}, indent=4))

    async def test_read_all_then_write_all(self) -> None:
        config = parse_options(prettify=True)
        first = await self.storage.read_all(config)
        self.assertEqual(first.settings, {})
        await self.storage.write_all({"theme": {"mode": "dark"}}, first.handle, config)
        self.assertEqual(
            first.handle.read_text(encoding="utf-8"),
            json.dumps({"theme": {"mode": "dark"}}, indent=2),
        )
        second = await self.storage.read_all(config)
        self.assertIs(second.status, StorageStatus.EXISTS)
        self.assertEqual(second.settings, {"theme": {"mode": "dark"}})
        self.assertEqual(sorted(os.listdir(self.config_dir)), ["settings.json"])

    async def test_write_all_replaces_whole_document(self) -> None:
        config = parse_options()
        result = await self.storage.read_all(config)
        await self.storage.write_all({"a": 1, "b": 2}, result.handle, config)
        await self.storage.write_all({"c": 3}, result.handle, config)
        self.assertEqual((await self.storage.read_all(config)).settings, {"c": 3})

    async def test_malformed_content_is_a_parse_error(self) -> None:
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "settings.json").write_text("{broken", encoding="utf-8")
        with self.assertRaises(ParseError):
            await self.storage.read_all(parse_options())

    async def test_array_root_is_a_parse_error(self) -> None:
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "settings.json").write_text("[]", encoding="utf-8")
        with self.assertRaises(ParseError):
            await self.storage.read_all(parse_options())

    async def test_non_utf8_content_is_a_parse_error(self) -> None:
        self.config_dir.mkdir(parents=True)
        (self.config_dir / "settings.json").write_bytes(b"\xff\xfe{}")
        with self.assertRaises(ParseError):
            await self.storage.read_all(parse_options())

    async def test_path_provider_failure_is_an_io_error(self) -> None:
        storage = JsonFileStorage(FailingPathProvider(), LocalFilesystem())
        with self.assertRaises(StorageIOError) as ctx:
            await storage.ensure(parse_options())
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)


class TestJsonFileStorageFailures(unittest.IsolatedAsyncioTestCase):
    directory = "/virtual/config"

    def setUp(self) -> None:
        self.fs = InMemoryFilesystem()
        self.storage = JsonFileStorage(FixedPathProvider(self.directory), self.fs)
        self.path = Path(self.directory) / "settings.json"

    async def test_permission_denied_on_read(self) -> None:
        self.fs.seed(self.path, "{}")
        self.fs.fail("read_text_file", self.path, PermissionError("denied"))
        with self.assertRaises(StorageIOError) as ctx:
            await self.storage.read_all(parse_options())
        self.assertIsInstance(ctx.exception.__cause__, PermissionError)
        self.assertEqual(self.fs.writes, [])

    async def test_unlistable_directory(self) -> None:
        self.fs.fail("read_dir", self.directory, NotADirectoryError("not a dir"))
        with self.assertRaises(StorageIOError):
            await self.storage.ensure(parse_options())

    async def test_directory_creation_failure(self) -> None:
        self.fs.fail("create_dir_recursive", self.directory, PermissionError("read-only"))
        with self.assertRaises(StorageIOError):
            await self.storage.ensure(parse_options())

    async def test_existing_directory_is_not_recreated(self) -> None:
        self.fs.dirs.add(InMemoryFilesystem.key(self.directory))
        self.fs.fail("create_dir_recursive", self.directory, FileExistsError("exists"))
        result = await self.storage.ensure(parse_options())
        self.assertIs(result.status, StorageStatus.CREATED)

    async def test_write_failure(self) -> None:
        config = parse_options()
        result = await self.storage.read_all(config)
        self.fs.fail("write_file", self.path, OSError(28, "No space left on device"))
        with self.assertRaises(StorageIOError):
            await self.storage.write_all({"a": 1}, result.handle, config)
        self.assertEqual(self.fs.files[str(self.path)], "{}")

    async def test_non_json_value_is_rejected_before_writing(self) -> None:
        config = parse_options()
        result = await self.storage.read_all(config)
        writes_before = len(self.fs.writes)
        with self.assertRaises(ValidationError):
            await self.storage.write_all({"when": object()}, result.handle, config)
        self.assertEqual(len(self.fs.writes), writes_before)

    async def test_file_identifier_uses_scoped_file(self) -> None:
        result = await self.storage.ensure(parse_options(file_identifier=2))
        self.assertEqual(result.handle, Path(self.directory) / "settings-2.json")
        self.assertIn(str(Path(self.directory) / "settings-2.json"), self.fs.files)


class TestLocalFilesystem(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.fs = LocalFilesystem()

    def tearDown(self) -> None:
        self._tmp.cleanup()

    async def test_write_file_leaves_no_temp_file(self) -> None:
        target = self.root / "settings.json"
        await self.fs.write_file(target, '{"a":1}')
        await self.fs.write_file(target, '{"b":2}')
        self.assertEqual(target.read_text(encoding="utf-8"), '{"b":2}')
        self.assertEqual(os.listdir(self.root), ["settings.json"])

    async def test_failed_replace_removes_temp_file(self) -> None:
        target = self.root / "settings.json"
        target.mkdir()
        (target / "keep").write_text("x", encoding="utf-8")
        with self.assertRaises(OSError):
            await self.fs.write_file(target, "{}")
        self.assertEqual(os.listdir(self.root), ["settings.json"])
        self.assertTrue(target.is_dir())


if __name__ == "__main__":
    unittest.main()
