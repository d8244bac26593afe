"""
Unit tests for the billing sync client.

Run: pytest tests/unit/test_billing_sync.py -v
"""

import pytest
import requests
from unittest.mock import MagicMock, patch

from integrations.billing_sync import BillingSyncClient
from exceptions import BillingSyncError


class TestBillingSyncClient:
    """Tests for BillingSyncClient.sync."""

    def test_not_configured(self):
        client = BillingSyncClient(url="", api_key="")

        with patch("integrations.billing_sync.requests.post") as post:
            assert client.sync("br-1") is False

        post.assert_not_called()

    def test_posts_payload(self):
        client = BillingSyncClient(url="https://billing.example/sync", api_key="secret", timeout=5)
        response = MagicMock(status_code=202)

        with patch("integrations.billing_sync.requests.post", return_value=response) as post:
            assert client.sync("br-1", "created") is True

        args, kwargs = post.call_args
        assert args[0] == "https://billing.example/sync"
        assert kwargs["json"] == {"billing_request_id": "br-1", "reason": "created"}
        assert kwargs["headers"]["Authorization"] == "Bearer secret"
        assert kwargs["timeout"] == 5

    def test_http_error(self):
        client = BillingSyncClient(url="https://billing.example/sync", api_key="")
        response = MagicMock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500 Server Error")

        with patch("integrations.billing_sync.requests.post", return_value=response):
            with pytest.raises(BillingSyncError) as exc_info:
                client.sync("br-1")

        assert exc_info.value.details["billing_request_id"] == "br-1"
        assert exc_info.value.code == "BILLING_SYNC_ERROR"
