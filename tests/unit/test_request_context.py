"""
Unit tests for the request id context.
"""

import re

from admin_panel.core.request_context import (
    bind_request_id,
    current_request_id,
    new_request_id,
    release_request_id,
)


def test_new_request_id_format():
    assert re.fullmatch(r"req_\d{8}_\d{6}_[0-9a-f]{8}", new_request_id())


def test_bind_and_release():
    assert current_request_id() is None
    token = bind_request_id("req_a")
    assert current_request_id() == "req_a"
    release_request_id(token)
    assert current_request_id() is None


def test_generate_when_unbound():
    assert current_request_id(generate=True).startswith("req_")
    assert current_request_id() is None
