"""Tests for ZohoDeliveryBackend: EmailMessage mapping, attachment staging and failures."""

import os
import sys
import unittest
from email.message import EmailMessage
from pathlib import Path
from unittest import mock

import httpx

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fake_zoho import MAIL_API_URL, TOKEN_URL, UPLOADED, FakeZoho

from zoho_mailer.config import MailerConfig, TokenStoreKind
from zoho_mailer.delivery import ZohoDeliveryBackend, extract_body
from zoho_mailer.delivery import backend as backend_module
from zoho_mailer.errors import ConfigurationError, DeliveryError
from zoho_mailer.mail_provider import ZohoMailClient

SETTINGS = {
    "client_id": "cid",
    "client_secret": "csecret",
    "refresh_token": "rt",
    "from_email": "default@example.com",
    "token_url": TOKEN_URL,
    "mail_api_url": MAIL_API_URL,
    "token_store": "memory",
}


def make_message(**headers) -> EmailMessage:
    message = EmailMessage()
    message["Subject"] = headers.pop("subject", "Hello")
    message["To"] = headers.pop("to", "a@x.com")
    for name, value in headers.items():
        message[name.capitalize()] = value
    message.set_content("plain body")
    return message


class BackendTestCase(unittest.TestCase):
    def setUp(self):
        self.fake = FakeZoho()
        self.client = ZohoMailClient(MailerConfig(), http_client=self.fake.client())
        self.addCleanup(self.client.close)
        self.backend = ZohoDeliveryBackend(SETTINGS, client=self.client, environ={})

    def sent_payload(self) -> dict:
        self.assertEqual(len(self.fake.send_requests), 1)
        return self.fake.json(self.fake.send_requests[0])


class TestConstruction(unittest.TestCase):
    def test_settings_win_over_environment(self):
        client = ZohoMailClient(MailerConfig(), http_client=FakeZoho().client())
        environ = {"ZOHO_CLIENT_ID": "env-id", "ZOHO_TIMEOUT": "7", "ZOHO_FROM_EMAIL": "env@example.com"}
        ZohoDeliveryBackend({**SETTINGS, "from_email": None}, client=client, environ=environ)
        self.assertEqual(client.config.client_id, "cid")
        self.assertEqual(client.config.timeout, 7)
        self.assertEqual(client.config.from_email, "env@example.com")
        self.assertEqual(client.config.token_store, TokenStoreKind.MEMORY)

    def test_reconfigures_on_every_construction(self):
        client = ZohoMailClient(MailerConfig(), http_client=FakeZoho().client())
        ZohoDeliveryBackend(SETTINGS, client=client, environ={})
        ZohoDeliveryBackend({**SETTINGS, "client_id": "second"}, client=client, environ={})
        self.assertEqual(client.config.client_id, "second")

    def test_missing_credentials_fail_construction(self):
        client = ZohoMailClient(MailerConfig(), http_client=FakeZoho().client())
        with self.assertRaises(ConfigurationError):
            ZohoDeliveryBackend({"token_store": "memory"}, client=client, environ={})

    def test_no_client_built_when_config_invalid(self):
        with mock.patch.object(backend_module, "ZohoMailClient") as client_cls:
            with self.assertRaises(ConfigurationError):
                ZohoDeliveryBackend({"token_store": "memory"}, environ={})
        client_cls.assert_not_called()

    def test_builds_client_from_validated_config(self):
        with mock.patch.object(backend_module, "ZohoMailClient") as client_cls:
            backend = ZohoDeliveryBackend(SETTINGS, environ={})
        config = client_cls.call_args.args[0]
        self.assertEqual(config.client_id, "cid")
        self.assertIs(backend.client, client_cls.return_value)

    def test_reconstruction_drops_cached_access_token(self):
        fake = FakeZoho()
        client = ZohoMailClient(MailerConfig(), http_client=fake.client())
        ZohoDeliveryBackend(SETTINGS, client=client, environ={})
        client.token_manager.get_access_token()
        self.assertIsNotNone(client.token_manager.cached_token)

        ZohoDeliveryBackend({**SETTINGS, "client_id": "second"}, client=client, environ={})
        self.assertIsNone(client.token_manager.cached_token)
        client.token_manager.get_access_token()
        self.assertEqual(fake.form(fake.token_requests[-1])["client_id"], "second")


class TestDeliver(BackendTestCase):
    def test_plain_message(self):
        message = make_message(to="A <a@x.com>, b@x.com", cc="c@x.com")
        self.assertTrue(self.backend.deliver(message))
        payload = self.sent_payload()
        self.assertEqual(payload["toAddress"], "a@x.com,b@x.com")
        self.assertEqual(payload["ccAddress"], "c@x.com")
        self.assertNotIn("bccAddress", payload)
        self.assertEqual(payload["fromAddress"], "default@example.com")
        self.assertEqual(payload["subject"], "Hello")
        self.assertEqual(payload["content"].strip(), "plain body")
        self.assertNotIn("attachments", payload)

    def test_from_header_and_bcc(self):
        message = make_message(**{"from": "Team <team@x.com>", "bcc": "hidden@x.com"})
        self.backend.deliver(message)
        payload = self.sent_payload()
        self.assertEqual(payload["fromAddress"], "team@x.com")
        self.assertEqual(payload["bccAddress"], "hidden@x.com")

    def test_html_preferred(self):
        message = make_message()
        message.add_alternative("<p>html body</p>", subtype="html")
        self.backend.deliver(message)
        self.assertEqual(self.sent_payload()["content"].strip(), "<p>html body</p>")

    def test_send_failure_raises_delivery_error(self):
        self.fake.send_status = 503
        with self.assertRaises(DeliveryError):
            self.backend.deliver(make_message())

    def test_missing_subject_raises_delivery_error(self):
        message = EmailMessage()
        message["To"] = "a@x.com"
        message.set_content("no subject")
        with self.assertRaises(DeliveryError):
            self.backend.deliver(message)
        self.assertEqual(self.fake.send_requests, [])


class TestAttachments(BackendTestCase):
    def test_attachments_uploaded_and_temp_files_removed(self):
        message = make_message()
        message.add_attachment(b"%PDF one", maintype="application", subtype="pdf", filename="one.pdf")
        message.add_attachment(b"two", maintype="application", subtype="octet-stream", filename="two.txt")

        staged = []

        def upload(path):
            staged.append(path)
            self.assertTrue(os.path.exists(path))
            return real_upload(path)

        real_upload = self.client.upload_attachment
        with mock.patch.object(self.client, "upload_attachment", side_effect=upload):
            self.backend.deliver(message)

        self.assertEqual([Path(p).name for p in staged], ["one.pdf", "two.txt"])
        for path in staged:
            self.assertFalse(os.path.exists(path))
            self.assertFalse(os.path.exists(os.path.dirname(path)))
        self.assertEqual(len(self.fake.upload_requests), 2)
        self.assertEqual(self.sent_payload()["attachments"], [UPLOADED, UPLOADED])
        self.assertIn(b"%PDF one", self.fake.upload_requests[0].content)

    def test_upload_failure_cleans_up_and_raises(self):
        self.fake.upload_status = 500
        message = make_message()
        message.add_attachment(b"data", maintype="application", subtype="octet-stream", filename="data.bin")

        staged = []
        real_upload = self.client.upload_attachment

        def upload(path):
            staged.append(path)
            return real_upload(path)

        with mock.patch.object(self.client, "upload_attachment", side_effect=upload):
            with self.assertRaises(DeliveryError):
                self.backend.deliver(message)
        self.assertEqual(len(staged), 1)
        self.assertFalse(os.path.exists(staged[0]))
        self.assertEqual(self.fake.send_requests, [])

    def test_transport_error_becomes_delivery_error(self):
        self.fake.raise_on_upload = httpx.ConnectError("refused")
        message = make_message()
        message.add_attachment(b"data", maintype="application", subtype="octet-stream", filename="data.bin")

        staged = []
        real_upload = self.client.upload_attachment

        def upload(path):
            staged.append(path)
            return real_upload(path)

        with mock.patch.object(self.client, "upload_attachment", side_effect=upload):
            with self.assertRaises(DeliveryError) as ctx:
                self.backend.deliver(message)
        self.assertIsInstance(ctx.exception.__cause__, httpx.ConnectError)
        self.assertFalse(os.path.exists(staged[0]))
        self.assertEqual(self.fake.send_requests, [])

    def test_temp_write_error_becomes_delivery_error(self):
        message = make_message()
        message.add_attachment(b"data", maintype="application", subtype="octet-stream", filename="data.bin")
        with mock.patch("builtins.open", side_effect=OSError("disk full")):
            with self.assertRaises(DeliveryError) as ctx:
                self.backend.deliver(message)
        self.assertIsInstance(ctx.exception.__cause__, OSError)
        self.assertEqual(self.fake.upload_requests, [])

    def test_unnamed_attachment_gets_generated_name(self):
        message = make_message()
        message.add_attachment(b"raw", maintype="application", subtype="octet-stream")
        with mock.patch.object(self.client, "upload_attachment", return_value=None) as upload:
            self.backend.deliver(message)
        self.assertTrue(Path(upload.call_args.args[0]).name.startswith("attachment_"))

    def test_cleanup_failure_is_logged_not_raised(self):
        message = make_message()
        message.add_attachment(b"x", maintype="application", subtype="octet-stream", filename="x.txt")
        with mock.patch.object(backend_module.shutil, "rmtree", side_effect=OSError("busy")), \
                mock.patch.object(backend_module, "logger") as log:
            self.assertTrue(self.backend.deliver(message))
        log.error.assert_called_once()
        self.assertEqual(log.error.call_args.args[0], "delivery.temp_cleanup_failed")


class TestSendMessages(BackendTestCase):
    def test_counts_sent_messages(self):
        self.assertEqual(self.backend.send_messages([make_message(), make_message()]), 2)

    def test_fail_silently_skips_failures(self):
        self.fake.send_status = 500
        self.backend.fail_silently = True
        self.assertEqual(self.backend.send_messages([make_message()]), 0)

    def test_failure_raises_by_default(self):
        self.fake.send_status = 500
        with self.assertRaises(DeliveryError):
            self.backend.send_messages([make_message()])

    def test_fail_silently_covers_transport_errors(self):
        self.fake.raise_on_upload = httpx.ConnectError("refused")
        self.backend.fail_silently = True
        message = make_message()
        message.add_attachment(b"x", maintype="application", subtype="octet-stream", filename="x.bin")
        self.assertEqual(self.backend.send_messages([message]), 0)


class TestExtractBody(unittest.TestCase):
    def test_text_only(self):
        message = EmailMessage()
        message.set_content("just text")
        self.assertEqual(extract_body(message).strip(), "just text")

    def test_html_only(self):
        message = EmailMessage()
        message.set_content("<b>hi</b>", subtype="html")
        self.assertEqual(extract_body(message).strip(), "<b>hi</b>")

    def test_empty_message(self):
        self.assertEqual(extract_body(EmailMessage()), "")


if __name__ == "__main__":
    unittest.main()
