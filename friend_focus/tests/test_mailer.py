import unittest
from unittest.mock import MagicMock, patch

from friend_focus.mailer import RESEND_EMAILS_URL, EmailSender


class EmailSenderTests(unittest.TestCase):
    @patch("friend_focus.mailer.requests.post")
    def test_without_api_key_logs_link(self, mock_post):
        sender = EmailSender(api_key=None, from_email="Friend Focus <a@example.com>")
        with self.assertLogs("friend_focus.mailer", level="INFO") as logs:
            sender.send_password_reset_email("me@example.com", "https://x/reset?t=1")
        self.assertIn("https://x/reset?t=1", logs.output[0])
        mock_post.assert_not_called()

    @patch("friend_focus.mailer.requests.post")
    def test_sends_through_resend(self, mock_post):
        mock_post.return_value = MagicMock()
        sender = EmailSender(api_key="re_key", from_email="Friend Focus <a@example.com>")
        sender.send_password_reset_email("me@example.com", "https://x/reset?t=1&u=2")

        args, kwargs = mock_post.call_args
        self.assertEqual(args[0], RESEND_EMAILS_URL)
        self.assertEqual(kwargs["headers"]["Authorization"], "Bearer re_key")
        body = kwargs["json"]
        self.assertEqual(body["to"], "me@example.com")
        self.assertEqual(body["subject"], "Reset your Friend Focus password")
        self.assertIn("https://x/reset?t=1&amp;u=2", body["html"])
        mock_post.return_value.raise_for_status.assert_called_once()


if __name__ == "__main__":
    unittest.main()
