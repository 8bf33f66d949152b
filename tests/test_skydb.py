"""
test_skydb.py — SkyDB document reads and writes against a fake portal.
"""

import io
import json
import os
import unittest
import unittest.mock as mock
from dataclasses import replace

from portal_mocks import OTHER_SKYLINK, SKYLINK, FakePortal, registry_reply

from skynet import skydb
from skynet.crypto import SkynetKeypair
from skynet.errors import (
    DecodeError,
    EntryNotFoundError,
    InvalidContentReferenceError,
    RegistryPublishError,
    RevisionOverflowError,
    SignatureVerificationError,
)
from skynet.options import default_registry_options, default_upload_options
from skynet.registry import MAX_REVISION, REGISTRY_ENDPOINT, RegistryEntry
from skynet.skydb import get_document, get_json, set_document, set_json, skylink_from_entry

DATA_KEY = "TEST_KEY"
UPLOAD_PATH = "/skynet/skyfile"


class SkyDBTestCase(unittest.TestCase):

    def setUp(self):
        self.kp = SkynetKeypair.generate()
        self.portal = FakePortal()
        patcher = mock.patch("urllib.request.urlopen", self.portal)
        patcher.start()
        self.addCleanup(patcher.stop)


class TestGetDocument(SkyDBTestCase):

    def test_end_to_end_fetches_referenced_blob(self):
        document = b'{"message": "hello skynet"}'
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2))
        self.portal.add("GET", f"/{SKYLINK}", body=document)

        with get_document(self.kp.public_key_hex, DATA_KEY) as stream:
            self.assertEqual(stream.read(), document)
        self.assertTrue(self.portal.is_done)

    def test_get_json(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2))
        self.portal.add("GET", f"/{SKYLINK}", body={"a": [1, 2, 3]})
        self.assertEqual(get_json(self.kp.public_key, DATA_KEY), {"a": [1, 2, 3]})

    def test_get_json_rejects_non_json_document(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2))
        self.portal.add("GET", f"/{SKYLINK}", body=b"\x00\x01 not json")
        with self.assertRaises(DecodeError):
            get_json(self.kp.public_key, DATA_KEY)

    def test_corrupted_entry_never_downloads(self):
        reply = registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2)
        reply["signature"] = reply["signature"][:-8] + "00000000"
        self.portal.add("GET", REGISTRY_ENDPOINT, body=reply)
        self.portal.add("GET", f"/{SKYLINK}", body=b"{}")

        with self.assertRaises(SignatureVerificationError):
            get_document(self.kp.public_key, DATA_KEY)
        self.assertEqual(self.portal.requests_to("GET", f"/{SKYLINK}"), [])

    def test_missing_entry(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, status=404)
        with self.assertRaises(EntryNotFoundError):
            get_document(self.kp.public_key, DATA_KEY)

    def test_invalid_skylink_in_entry(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, b"invalid_skylink", 2))
        with self.assertRaises(InvalidContentReferenceError):
            get_document(self.kp.public_key, DATA_KEY)

    def test_skylink_from_entry(self):
        self.assertEqual(skylink_from_entry(RegistryEntry(DATA_KEY, SKYLINK.encode(), 0)), SKYLINK)
        self.assertEqual(skylink_from_entry(RegistryEntry(DATA_KEY, f"sia://{SKYLINK}".encode(), 0)), SKYLINK)
        with self.assertRaises(InvalidContentReferenceError):
            skylink_from_entry(RegistryEntry(DATA_KEY, b"\xff\xfe", 0))


class TestSetDocument(SkyDBTestCase):

    def _published(self):
        return self.portal.requests_to("POST", REGISTRY_ENDPOINT)[0].json()

    def test_revision_bumped_from_current(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2))
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": OTHER_SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)

        signed = set_document(self.kp.private_key_hex, DATA_KEY, b"test2")

        self.assertEqual(signed.entry.revision, 3)
        body = self._published()
        self.assertEqual(body["revision"], 3)
        self.assertEqual(bytes(body["data"]), OTHER_SKYLINK.encode())
        self.assertTrue(signed.verify(self.kp.public_key))

    def test_explicit_revision_skips_lookup(self):
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)

        set_document(self.kp.private_key, DATA_KEY, b"test2", revision=10)

        self.assertEqual(self.portal.requests_to("GET", REGISTRY_ENDPOINT), [])
        self.assertIn(b'"revision":10', self.portal.requests_to("POST", REGISTRY_ENDPOINT)[0].body)

    def test_new_entry_starts_at_revision_zero(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, status=404)
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)

        signed = set_document(self.kp.private_key, DATA_KEY, io.BytesIO(b"stream content"))

        self.assertEqual(signed.entry.revision, 0)
        self.assertEqual(self._published()["revision"], 0)

    def test_uploaded_content_matches(self):
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)

        set_document(self.kp.private_key, DATA_KEY, b"payload-bytes", revision=1)

        upload_req = self.portal.requests_to("POST", UPLOAD_PATH)[0]
        self.assertIn(b"payload-bytes", upload_req.body)
        self.assertIn(b'name="file"', upload_req.body)

    def test_set_json_serializes_canonically(self):
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)

        set_json(self.kp.private_key, DATA_KEY, {"b": 1, "a": 2}, revision=4)

        self.assertIn(b'{"a":2,"b":1}', self.portal.requests_to("POST", UPLOAD_PATH)[0].body)

    def test_overflow_refused_before_upload(self):
        self.portal.add(
            "GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), MAX_REVISION)
        )
        with self.assertRaises(RevisionOverflowError):
            set_document(self.kp.private_key, DATA_KEY, b"test")
        self.assertEqual(self.portal.requests_to("POST", UPLOAD_PATH), [])

    def test_explicit_overflowing_revision_refused(self):
        with self.assertRaises(RevisionOverflowError):
            set_document(self.kp.private_key, DATA_KEY, b"test", revision=MAX_REVISION + 1)
        self.assertEqual(self.portal.requests, [])

    def test_publish_failure_after_upload_propagates(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2))
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=500, body="test")

        with self.assertRaises(RegistryPublishError):
            set_document(self.kp.private_key, DATA_KEY, b"test2")
        self.assertEqual(self._published()["revision"], 3)

    def test_corrupted_current_entry_blocks_write(self):
        reply = registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2)
        reply["revision"] = 5
        self.portal.add("GET", REGISTRY_ENDPOINT, body=reply)
        with self.assertRaises(SignatureVerificationError):
            set_document(self.kp.private_key, DATA_KEY, b"test")
        self.assertEqual(self.portal.requests_to("POST", UPLOAD_PATH), [])

    def test_staging_file_removed_even_when_upload_fails(self):
        staged_paths = []

        def failing_upload(upload_data, opts=None):
            for handle in upload_data.values():
                staged_paths.append(handle.name)
            raise OSError("disk went away")

        with mock.patch.object(skydb, "upload", failing_upload):
            with self.assertRaises(OSError):
                set_document(self.kp.private_key, DATA_KEY, b"test", revision=1)

        self.assertEqual(len(staged_paths), 1)
        self.assertFalse(os.path.exists(staged_paths[0]))


class TestPortalRouting(SkyDBTestCase):

    PORTAL = "https://my.portal"

    def setUp(self):
        super().setUp()
        self.registry_opts = replace(default_registry_options(), portal_url=self.PORTAL, api_key="secret")

    def assert_all_to_portal(self):
        self.assertTrue(self.portal.requests)
        for req in self.portal.requests:
            self.assertTrue(req.url.startswith(f"{self.PORTAL}/"), req.url)
            self.assertEqual(req.header("Authorization"), "Basic OnNlY3JldA==")

    def test_get_document_downloads_from_registry_portal(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, body=registry_reply(self.kp, DATA_KEY, SKYLINK.encode(), 2))
        self.portal.add("GET", f"/{SKYLINK}", body=b"{}")

        with get_document(self.kp.public_key, DATA_KEY, self.registry_opts) as stream:
            stream.read()
        self.assert_all_to_portal()

    def test_set_document_uploads_to_registry_portal(self):
        self.portal.add("GET", REGISTRY_ENDPOINT, status=404)
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)

        set_document(self.kp.private_key, DATA_KEY, b"doc", registry_opts=self.registry_opts)
        self.assert_all_to_portal()

    def test_explicit_upload_options_win(self):
        self.portal.add("POST", UPLOAD_PATH, body={"skylink": SKYLINK})
        self.portal.add("POST", REGISTRY_ENDPOINT, status=204)
        upload_opts = replace(default_upload_options(), portal_url="https://blobs.portal")

        set_document(
            self.kp.private_key, DATA_KEY, b"doc", revision=1,
            registry_opts=self.registry_opts, upload_opts=upload_opts,
        )

        upload_req, publish_req = self.portal.requests
        self.assertTrue(upload_req.url.startswith("https://blobs.portal/"))
        self.assertTrue(publish_req.url.startswith(f"{self.PORTAL}/"))


if __name__ == "__main__":
    unittest.main()
