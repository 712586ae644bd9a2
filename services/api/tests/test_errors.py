"""
Tests for user-facing error messages.

Run with: pytest tests/test_errors.py -v
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from core.errors import (
    CONNECTION_MESSAGE,
    CREDENTIALS_MESSAGE,
    GENERIC_MESSAGE,
    PERMISSION_MESSAGE,
    friendly_message,
)


class TestFriendlyMessage:
    """Raw errors must never reach the user."""

    def test_credentials(self):
        assert friendly_message(Exception("Invalid login credentials")) == CREDENTIALS_MESSAGE

    def test_network(self):
        assert friendly_message(Exception("TypeError: Failed to fetch")) == CONNECTION_MESSAGE
        assert friendly_message(ConnectionError("reset by peer")) == CONNECTION_MESSAGE
        assert friendly_message(TimeoutError()) == CONNECTION_MESSAGE

    def test_permission(self):
        assert friendly_message(Exception("new row violates row level security policy")) == PERMISSION_MESSAGE
        assert friendly_message(PermissionError("denied")) == PERMISSION_MESSAGE

    def test_unknown_is_generic(self):
        assert friendly_message(Exception("duplicate key value violates unique constraint")) == GENERIC_MESSAGE
        assert friendly_message(None) == GENERIC_MESSAGE

    def test_upload_messages_pass_through(self):
        msg = "Failed to upload scan.pdf. Please check your connection and try again."
        assert friendly_message(Exception(msg)) == msg
        preview = "File uploaded but preview link failed. Try refreshing."
        assert friendly_message(Exception(preview)) == preview
