"""
Shared fixtures for the session engine tests.
"""

import pytest

from atp_explorer.catalog import CommandCatalog, CommandSpec, ParameterKind, ParameterSpec
from atp_explorer.errors import ProtocolError
from atp_explorer.response_view import ResponseView
from atp_explorer.session import SessionContext, SessionController

from fakes import FakeClient, FakeClipboard, FakeClock, FakeFiles


def make_catalog():
    """Small catalog: one command with a required and an optional parameter, one without."""
    return CommandCatalog(
        [
            CommandSpec(
                "getProfile",
                "Get a profile",
                (ParameterSpec("handle", "Actor handle", kind=ParameterKind.ACTOR),),
            ),
            CommandSpec(
                "getPost",
                "Get a post",
                (
                    ParameterSpec("uri", "Post URI", kind=ParameterKind.AT_URI),
                    ParameterSpec(
                        "depth", "Reply depth", optional=True, default="6", kind=ParameterKind.INTEGER
                    ),
                ),
            ),
            CommandSpec("describeServer", "Describe server"),
        ]
    )


@pytest.fixture
def catalog():
    return make_catalog()


@pytest.fixture
def client():
    return FakeClient(
        {
            "getProfile": {"handle": "alice.test", "displayName": "Alice"},
            "describeServer": {"availableUserDomains": [".test"]},
            "getPost": ProtocolError("Request failed: timed out after 10.0s"),
        }
    )


@pytest.fixture
def clipboard():
    return FakeClipboard()


@pytest.fixture
def files():
    return FakeFiles()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def controller(catalog, client, clipboard, files, clock):
    response = ResponseView(clipboard, files, export_dir="exports")
    context = SessionContext.build(catalog, client, response, history_capacity=5, clock=clock)
    return SessionController(context, viewport_height=3)
