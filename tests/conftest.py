"""
Pytest configuration and shared fixtures.
"""

import pytest
from unittest.mock import AsyncMock

from sap_b1.core.response import Response
from sap_b1.core.session import B1Config, B1Session, ServiceLayerTransport


BASE = "https://b1.test:50000/b1s/v1/"


def make_response(status=200, body="", headers=None):
    """Build a Response as the transport would hand it back."""
    return Response(status, headers or {"Content-Type": "application/json"}, body)


@pytest.fixture
def cfg():
    return B1Config(
        host="https://b1.test",
        port=50000,
        username="manager",
        password="secret",
        company="SBODEMOUS",
    )


@pytest.fixture
def b1_session():
    return B1Session(b1session="abc", route_id=".node1")


@pytest.fixture
def transport(cfg):
    """Real transport with execute() replaced by an AsyncMock."""
    t = ServiceLayerTransport(cfg)
    t.execute = AsyncMock(return_value=make_response(200, '{"value": []}'))
    yield t
    t.close()


@pytest.fixture
def login_response():
    return make_response(
        200,
        '{"SessionId": "abc", "Version": "1000190", "SessionTimeout": 30}',
        {
            "Content-Type": "application/json",
            "set-cookie": ["B1SESSION=abc; Path=/b1s/v1; Secure; HttpOnly", "ROUTEID=.node1; Path=/"],
        },
    )


@pytest.fixture
def sample_orders_page():
    """Sample Service Layer collection payload."""
    return """{
        "odata.metadata": "$metadata#Orders",
        "value": [
            {"DocEntry": 1, "CardCode": "C20000", "DocTotal": 1500.0},
            {"DocEntry": 2, "CardCode": "C30000", "DocTotal": 80.5}
        ]
    }"""


@pytest.fixture
def sap_error_body():
    return """{
        "error": {
            "code": -2028,
            "message": {"lang": "en-us", "value": "No matching records found (ODBC -2028)"}
        }
    }"""
