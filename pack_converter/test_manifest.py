import json
import random
import unittest
import uuid

from pack_converter import manifest
from pack_converter.errors import ManifestError, ManifestErrorKind
from pack_converter.identifiers import generate_uuid, is_uuid4


def _mcmeta(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


class SourceManifestTests(unittest.TestCase):
    def test_parses_format_and_description(self) -> None:
        meta = manifest.parse_source_manifest(
            _mcmeta({"pack": {"pack_format": 18, "description": "Test"}})
        )
        self.assertEqual(meta.pack_format, 18)
        self.assertEqual(meta.description, "Test")

    def test_description_defaults_to_empty(self) -> None:
        meta = manifest.parse_source_manifest(_mcmeta({"pack": {"pack_format": 4}}))
        self.assertEqual(meta.description, "")

    def test_text_component_description_is_flattened(self) -> None:
        meta = manifest.parse_source_manifest(
            _mcmeta(
                {
                    "pack": {
                        "pack_format": 15,
                        "description": [{"text": "Faithful", "extra": [{"text": " 32x"}]}, "!"],
                    }
                }
            )
        )
        self.assertEqual(meta.description, "Faithful 32x!")

    def test_format_version_key_is_accepted(self) -> None:
        meta = manifest.parse_source_manifest(
            _mcmeta({"pack": {"format_version": 18, "description": "Test"}})
        )
        self.assertEqual(meta.pack_format, 18)
        self.assertEqual(meta.description, "Test")

    def test_pack_format_wins_over_format_version(self) -> None:
        meta = manifest.parse_source_manifest(
            _mcmeta({"pack": {"pack_format": 34, "format_version": 18}})
        )
        self.assertEqual(meta.pack_format, 34)

    def test_missing_pack_format_is_missing_field(self) -> None:
        for payload in ({"pack": {"description": "x"}}, {"pack": {"pack_format": None}}, {}):
            with self.subTest(payload=payload):
                with self.assertRaises(ManifestError) as ctx:
                    manifest.parse_source_manifest(_mcmeta(payload))
                self.assertEqual(ctx.exception.kind, ManifestErrorKind.MISSING_REQUIRED_FIELD)

    def test_structural_problems_are_malformed(self) -> None:
        for data in (
            b"{not json",
            b"[1, 2, 3]",
            b"\xff\xfe\x00",
            _mcmeta({"pack": "string"}),
            _mcmeta({"pack": {"pack_format": "18"}}),
            _mcmeta({"pack": {"pack_format": True}}),
            _mcmeta({"pack": {"format_version": "18"}}),
        ):
            with self.subTest(data=data):
                with self.assertRaises(ManifestError) as ctx:
                    manifest.parse_source_manifest(data)
                self.assertEqual(ctx.exception.kind, ManifestErrorKind.MALFORMED)

    def test_render_is_reparseable(self) -> None:
        data = manifest.render_source_manifest("ignored", "Converted pack", pack_format=22)
        self.assertEqual(
            json.loads(data),
            {"pack": {"pack_format": 22, "description": "Converted pack"}},
        )
        meta = manifest.parse_source_manifest(data)
        self.assertEqual(meta.pack_format, 22)
        self.assertEqual(meta.description, "Converted pack")

    def test_render_uses_default_pack_format(self) -> None:
        meta = manifest.parse_source_manifest(manifest.render_source_manifest("n", "d"))
        self.assertEqual(meta.pack_format, 18)


class TargetManifestTests(unittest.TestCase):
    def test_render_schema(self) -> None:
        document = json.loads(manifest.render_target_manifest("My Pack", "A description"))
        self.assertEqual(document["format_version"], 2)
        header = document["header"]
        self.assertEqual(header["name"], "My Pack")
        self.assertEqual(header["description"], "A description")
        self.assertEqual(header["version"], [1, 0, 0])
        self.assertEqual(header["min_engine_version"], [1, 20, 0])
        self.assertEqual(len(document["modules"]), 1)
        module = document["modules"][0]
        self.assertEqual(module["type"], "resources")
        self.assertEqual(module["version"], [1, 0, 0])
        self.assertEqual(module["description"], "A description")
        self.assertTrue(is_uuid4(header["uuid"]))
        self.assertTrue(is_uuid4(module["uuid"]))
        self.assertNotEqual(header["uuid"], module["uuid"])

    def test_render_round_trip(self) -> None:
        data = manifest.render_target_manifest("Name é", "Desc", min_engine_version="1.19.80")
        parsed = manifest.parse_target_manifest(data)
        self.assertEqual(parsed.name, "Name é")
        self.assertEqual(parsed.description, "Desc")
        self.assertEqual(parsed.min_engine_version, (1, 19, 80))
        self.assertTrue(is_uuid4(parsed.header_uuid))
        self.assertTrue(is_uuid4(parsed.module_uuid))

    def test_render_is_deterministic_with_seeded_rng(self) -> None:
        first = manifest.render_target_manifest("n", "d", rng=random.Random(7))
        second = manifest.render_target_manifest("n", "d", rng=random.Random(7))
        self.assertEqual(first, second)

    def test_bad_version_strings(self) -> None:
        for version in ("1.20", "1.20.0.1", "1.x.0", "", "1..0", "-1.2.3"):
            with self.subTest(version=version):
                with self.assertRaises(ManifestError) as ctx:
                    manifest.render_target_manifest("n", "d", min_engine_version=version)
                self.assertEqual(ctx.exception.kind, ManifestErrorKind.BAD_VERSION_STRING)

    def test_missing_name_is_missing_field(self) -> None:
        for payload in ({"header": {"description": "x"}}, {"format_version": 2}):
            with self.subTest(payload=payload):
                with self.assertRaises(ManifestError) as ctx:
                    manifest.parse_target_manifest(json.dumps(payload).encode())
                self.assertEqual(ctx.exception.kind, ManifestErrorKind.MISSING_REQUIRED_FIELD)

    def test_malformed_target_manifest(self) -> None:
        for data in (b"", b"null", b'{"header": []}', b'{"header": {"name": 5}}'):
            with self.subTest(data=data):
                with self.assertRaises(ManifestError) as ctx:
                    manifest.parse_target_manifest(data)
                self.assertEqual(ctx.exception.kind, ManifestErrorKind.MALFORMED)

    def test_foreign_manifest_without_optional_fields(self) -> None:
        parsed = manifest.parse_target_manifest(b'{"header": {"name": "Only name"}}')
        self.assertEqual(parsed.name, "Only name")
        self.assertEqual(parsed.description, "")
        self.assertIsNone(parsed.header_uuid)
        self.assertIsNone(parsed.module_uuid)
        self.assertIsNone(parsed.min_engine_version)


class IdentifierTests(unittest.TestCase):
    def test_shape_version_and_variant(self) -> None:
        rng = random.Random(1234)
        for _ in range(200):
            value = generate_uuid(rng)
            self.assertTrue(is_uuid4(value), value)
            self.assertEqual(value[14], "4")
            self.assertIn(value[19], "89ab")

    def test_parses_as_a_standard_version_4_uuid(self) -> None:
        value = generate_uuid(random.Random(7))
        parsed = uuid.UUID(value)
        self.assertEqual(parsed.version, 4)
        self.assertEqual(parsed.variant, uuid.RFC_4122)
        self.assertEqual(value, generate_uuid(random.Random(7)))

    def test_unique_within_process(self) -> None:
        values = {generate_uuid() for _ in range(1000)}
        self.assertEqual(len(values), 1000)

    def test_rejects_other_shapes(self) -> None:
        self.assertFalse(is_uuid4("not-a-uuid"))
        self.assertFalse(is_uuid4("12345678-1234-1234-8234-123456789abc"))
        self.assertFalse(is_uuid4("12345678-1234-4234-c234-123456789abc"))


if __name__ == "__main__":
    unittest.main()
