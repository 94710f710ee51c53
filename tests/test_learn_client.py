"""Tests for the httpx-backed Learn client."""

import asyncio
import xml.etree.ElementTree as ET

import httpx
import pytest

from learn_bridge.adapters.learn_client import HttpxLearnClient
from learn_bridge.adapters.soap import (
    WSSE_NS,
    LearnFault,
    LearnTransportError,
    build_envelope,
)
from learn_bridge.domain.models import UserFilter

_ENVELOPE = (
    '<soapenv:Envelope xmlns:soapenv="http://schemas.xmlsoap.org/soap/envelope/">'
    "<soapenv:Body>{body}</soapenv:Body></soapenv:Envelope>"
)


def _soap(body: str, status_code: int = 200) -> httpx.Response:
    return httpx.Response(
        status_code,
        content=_ENVELOPE.format(body=body).encode(),
        headers={"content-type": "text/xml; charset=utf-8"},
    )


def _client(handler) -> HttpxLearnClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    return HttpxLearnClient(
        base_url="https://learn.test",
        vendor_id="BbAdmin",
        program_id="myWSClient",
        http_client=httpx.AsyncClient(transport=transport),
    )


def test_envelope_carries_session_token() -> None:
    content = build_envelope("Context", "logout", [], "abc123")

    root = ET.fromstring(content)
    password = root.find(f".//{{{WSSE_NS}}}Password")
    username = root.find(f".//{{{WSSE_NS}}}Username")
    assert password is not None and password.text == "abc123"
    assert username is not None and username.text == "session"


def test_initialize_uses_nosession_then_session_id() -> None:
    passwords: list[str | None] = []

    def handler(request: httpx.Request) -> httpx.Response:
        root = ET.fromstring(request.content)
        password = root.find(f".//{{{WSSE_NS}}}Password")
        passwords.append(password.text if password is not None else None)
        assert request.url.path == "/webapps/ws/services/Context.WS"
        if b"initialize" in request.content:
            return _soap(
                '<ns:initializeResponse xmlns:ns="http://context.ws.blackboard">'
                "<ns:return>sess-1</ns:return></ns:initializeResponse>"
            )
        return _soap(
            '<ns:logoutResponse xmlns:ns="http://context.ws.blackboard">'
            "<ns:return>true</ns:return></ns:logoutResponse>"
        )

    client = _client(handler)

    session_id = asyncio.run(client.initialize())
    logged_out = asyncio.run(client.logout())

    assert session_id == "sess-1"
    assert logged_out is True
    assert passwords == ["nosession", "sess-1"]


def test_register_tool_parses_failure_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        root = ET.fromstring(request.content)
        methods = [
            element
            for element in root.iter()
            if element.tag.endswith("}requiredToolMethods")
        ]
        assert len(methods) == 2
        return _soap(
            '<ns:registerToolResponse xmlns:ns="http://context.ws.blackboard" '
            'xmlns:ax="http://context.ws.blackboard/xsd">'
            "<ns:return><ax:failureErrors>Invalid password</ax:failureErrors>"
            "<ax:status>false</ax:status></ns:return></ns:registerToolResponse>"
        )

    client = _client(handler)

    result = asyncio.run(
        client.register_tool(
            description="tool",
            initial_secret="bad",
            shared_secret="shared",
            tool_methods=["Context.WS:logout", "User.WS:getUser"],
        )
    )

    assert result["status"] is False
    assert client.get_last_error() == "Invalid password"


def test_get_user_sends_filter_and_parses_records() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = request.content.decode()
        if "initializeUserWS" in body:
            return _soap(
                '<ns:initializeUserWSResponse xmlns:ns="http://user.ws.blackboard">'
                "<ns:return>true</ns:return></ns:initializeUserWSResponse>"
            )
        assert "filterType>6<" in body
        assert ">bob<" in body
        return _soap(
            '<ns:getUserResponse xmlns:ns="http://user.ws.blackboard" '
            'xmlns:ax="http://user.ws.blackboard/xsd">'
            "<ns:return><ax:dataSourceId>_2_1</ax:dataSourceId>"
            "<ax:extendedInfo><ax:familyName>Builder</ax:familyName>"
            "<ax:givenName>Bob</ax:givenName></ax:extendedInfo>"
            "<ax:name>bob</ax:name></ns:return></ns:getUserResponse>"
        )

    client = _client(handler)

    async def scenario() -> list[dict[str, object]] | None:
        user_service = await client.get_user_service()
        return await user_service.get_user(UserFilter.for_user("bob"))

    records = asyncio.run(scenario())

    assert records == [
        {
            "dataSourceId": "_2_1",
            "extendedInfo": {"familyName": "Builder", "givenName": "Bob"},
            "name": "bob",
        }
    ]


def test_nil_data_sources_return_none() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        body = request.content.decode()
        if "initializeUtilWS" in body:
            return _soap(
                '<ns:initializeUtilWSResponse xmlns:ns="http://util.ws.blackboard">'
                "<ns:return>true</ns:return></ns:initializeUtilWSResponse>"
            )
        return _soap(
            '<ns:getDataSourcesResponse xmlns:ns="http://util.ws.blackboard" '
            'xmlns:xsi="http://www.w3.org/2001/XMLSchema-instance">'
            '<ns:return xsi:nil="true"/></ns:getDataSourcesResponse>'
        )

    client = _client(handler)

    async def scenario() -> list[dict[str, object]] | None:
        util_service = await client.get_util_service()
        return await util_service.get_data_sources()

    assert asyncio.run(scenario()) is None


def test_soap_fault_raises_and_records_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _soap(
            "<soapenv:Fault><faultcode>soapenv:Server</faultcode>"
            "<faultstring>[WSFW001]Invalid session</faultstring></soapenv:Fault>",
            status_code=500,
        )

    client = _client(handler)

    with pytest.raises(LearnFault):
        asyncio.run(client.logout())
    assert client.get_last_error() == "[WSFW001]Invalid session"


def test_non_soap_error_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(404, text="Not Found")

    client = _client(handler)

    with pytest.raises(LearnTransportError):
        asyncio.run(client.initialize())
    assert "HTTP 404" in client.get_last_error()


def test_connection_error_is_transport_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    client = _client(handler)

    with pytest.raises(LearnTransportError):
        asyncio.run(client.initialize())
