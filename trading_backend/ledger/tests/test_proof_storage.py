# ledger/tests/test_proof_storage.py

import os
import tempfile

from django.conf import settings
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from rest_framework.test import APIClient

from ledger.models import Account, Transaction
from ledger.services.exceptions import LedgerValidationError
from ledger.services.proof_storage import store_proof_image, stored_proof, verify_proof_url
from ledger.tests.helpers import make_account, make_user

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32
JPEG_BYTES = b"\xff\xd8\xff\xe0" + b"\x00" * 32


class ProofStorageTests(TestCase):
    def setUp(self):
        media = tempfile.TemporaryDirectory()
        self.addCleanup(media.cleanup)
        override = override_settings(MEDIA_ROOT=media.name, MEDIA_URL="/media/")
        override.enable()
        self.addCleanup(override.disable)

    def test_stores_png_and_returns_url(self):
        upload = SimpleUploadedFile("receipt.png", PNG_BYTES, content_type="image/png")

        url = store_proof_image(upload)

        self.assertTrue(url.startswith("/media/proofs/"))
        self.assertTrue(url.endswith(".png"))

    def test_rejects_non_image_content_type(self):
        upload = SimpleUploadedFile("notes.txt", b"hello", content_type="text/plain")

        with self.assertRaises(LedgerValidationError) as ctx:
            store_proof_image(upload)
        self.assertIn("proof_image", ctx.exception.fields)

    def test_rejects_disguised_content(self):
        upload = SimpleUploadedFile("fake.jpg", b"GIF89a" + b"\x00" * 16, content_type="image/jpeg")

        with self.assertRaises(LedgerValidationError):
            store_proof_image(upload)

    @override_settings(PROOF_IMAGE_MAX_BYTES=16)
    def test_rejects_oversized_upload(self):
        upload = SimpleUploadedFile("big.jpg", JPEG_BYTES, content_type="image/jpeg")

        with self.assertRaises(LedgerValidationError):
            store_proof_image(upload)

    def test_multipart_mutation_keeps_stored_url(self):
        client = APIClient()
        client.force_authenticate(make_user("cashier"))
        customer = make_account(Account.CUSTOMER, "Ali Traders")
        bank = make_account(Account.BANK, "Main Bank", "0.00")

        res = client.post(
            f"/api/ledger/accounts/customer/{customer.pk}/mutations/",
            {
                "operation_kind": "subtract_balance",
                "amount": "75.00",
                "payment_method": "online",
                "bank_id": bank.pk,
                "proof_image": SimpleUploadedFile("slip.jpg", JPEG_BYTES, content_type="image/jpeg"),
            },
            format="multipart",
        )

        self.assertEqual(res.status_code, 200, res.data)
        tx = Transaction.objects.get(account=customer)
        self.assertTrue(tx.proof_image.startswith("/media/proofs/"))

    def test_previously_uploaded_url_is_accepted(self):
        client = APIClient()
        client.force_authenticate(make_user("cashier"))
        customer = make_account(Account.CUSTOMER, "Ali Traders")
        bank = make_account(Account.BANK, "Main Bank", "0.00")
        url = store_proof_image(SimpleUploadedFile("slip.png", PNG_BYTES, content_type="image/png"))

        res = client.post(
            f"/api/ledger/accounts/customer/{customer.pk}/mutations/",
            {
                "operation_kind": "subtract_balance",
                "amount": "50.00",
                "payment_method": "online",
                "bank_id": bank.pk,
                "proof_image_url": url,
            },
            format="json",
        )

        self.assertEqual(res.status_code, 200, res.data)
        self.assertEqual(Transaction.objects.get(account=customer).proof_image, url)

    def test_verify_proof_url(self):
        url = store_proof_image(SimpleUploadedFile("slip.png", PNG_BYTES, content_type="image/png"))

        self.assertEqual(verify_proof_url(url), url)
        self.assertEqual(verify_proof_url(""), "")
        for bad in ("x", "/media/../settings.py", "/media/other/slip.png", "/media/proofs/nope.png"):
            with self.assertRaises(LedgerValidationError):
                verify_proof_url(bad)

    def test_rejected_mutation_removes_uploaded_file(self):
        client = APIClient()
        client.force_authenticate(make_user("cashier"))
        supplier = make_account(Account.SUPPLIER, "Rice Mills")
        bank = make_account(Account.BANK, "Main Bank", "10.00")

        res = client.post(
            f"/api/ledger/accounts/supplier/{supplier.pk}/mutations/",
            {
                "operation_kind": "add_balance",
                "amount": "1000.00",
                "payment_method": "online",
                "bank_id": bank.pk,
                "proof_image": SimpleUploadedFile("slip.png", PNG_BYTES, content_type="image/png"),
            },
            format="multipart",
        )

        self.assertEqual(res.status_code, 409)
        self.assertEqual(res.data["error"]["code"], "INSUFFICIENT_FUNDS")
        self.assertFalse(Transaction.objects.filter(account=supplier).exists())
        self.assertEqual(self._stored_files(), [])

    def test_stored_proof_keeps_file_when_block_succeeds(self):
        data = {"proof_image": SimpleUploadedFile("slip.png", PNG_BYTES, content_type="image/png")}

        with stored_proof(data) as url:
            pass

        self.assertTrue(url.startswith("/media/proofs/"))
        self.assertEqual(len(self._stored_files()), 1)

    def _stored_files(self):
        root = os.path.join(settings.MEDIA_ROOT, "proofs")
        return [name for _, _, files in os.walk(root) for name in files]
