"""SOAP 1.1 envelopes for the Learn web service operations used by the bridge."""

import xml.etree.ElementTree as ET
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime, timedelta

SOAP_ENV_NS = "http://schemas.xmlsoap.org/soap/envelope/"
WSSE_NS = (
    "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-secext-1.0.xsd"
)
WSU_NS = (
    "http://docs.oasis-open.org/wss/2004/01/oasis-200401-wss-wssecurity-utility-1.0.xsd"
)
PASSWORD_TEXT_TYPE = (
    "http://docs.oasis-open.org/wss/2004/01/"
    "oasis-200401-wss-username-token-profile-1.0#PasswordText"
)
XSI_NS = "http://www.w3.org/2001/XMLSchema-instance"

SESSION_USERNAME = "session"
NO_SESSION_PASSWORD = "nosession"
MESSAGE_TTL_SECONDS = 300

ET.register_namespace("soapenv", SOAP_ENV_NS)
ET.register_namespace("wsse", WSSE_NS)
ET.register_namespace("wsu", WSU_NS)

Params = Iterable[tuple[str, object]]


class LearnServiceError(RuntimeError):
    """Base error for failed Learn web service calls."""


class LearnFault(LearnServiceError):
    """The service answered with a SOAP fault or refused the call."""


class LearnTransportError(LearnServiceError):
    """The service could not be reached or answered with a non-SOAP error."""


def service_namespace(service: str) -> str:
    """Return the operation namespace for a service such as ``Context``."""
    return f"http://{service.lower()}.ws.blackboard"


def value_namespace(service: str) -> str:
    """Return the namespace of value object fields for a service."""
    return f"{service_namespace(service)}/xsd"


def build_envelope(
    service: str,
    operation: str,
    params: Params,
    session_id: str | None,
    now: datetime | None = None,
) -> bytes:
    """Build a SOAP request for ``service.operation`` carrying the session token."""
    created = now or datetime.now(tz=UTC)
    envelope = ET.Element(f"{{{SOAP_ENV_NS}}}Envelope")
    header = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Header")
    _append_security(header, session_id, created)
    body = ET.SubElement(envelope, f"{{{SOAP_ENV_NS}}}Body")
    call = ET.SubElement(body, f"{{{service_namespace(service)}}}{operation}")
    for name, value in params:
        _append_value(call, service_namespace(service), service, name, value)
    return ET.tostring(envelope, encoding="utf-8", xml_declaration=True)


def parse_returns(content: bytes) -> list[object]:
    """Return the converted ``return`` values of a SOAP response.

    Raises LearnFault when the body carries a SOAP fault.
    """
    try:
        root = ET.fromstring(content)
    except ET.ParseError as exc:
        raise LearnFault(f"Malformed SOAP response: {exc}") from exc
    body = root.find(f"{{{SOAP_ENV_NS}}}Body")
    if body is None:
        raise LearnFault("SOAP response has no body")
    fault = body.find(f"{{{SOAP_ENV_NS}}}Fault")
    if fault is not None:
        raise LearnFault(_fault_message(fault))
    response = next(iter(body), None)
    if response is None:
        return []
    return [
        element_value(child) for child in response if _local_name(child.tag) == "return"
    ]


def element_value(element: ET.Element) -> object:
    """Convert an XML element into text, a dict of fields, or None for nil."""
    if element.get(f"{{{XSI_NS}}}nil") in {"true", "1"}:
        return None
    children = list(element)
    if not children:
        return element.text or ""
    fields: dict[str, object] = {}
    for child in children:
        name = _local_name(child.tag)
        value = element_value(child)
        if name in fields:
            existing = fields[name]
            if isinstance(existing, list):
                existing.append(value)
            else:
                fields[name] = [existing, value]
        else:
            fields[name] = value
    return fields


def as_bool(value: object) -> bool:
    """Interpret an xsd:boolean value."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"true", "1"}


def as_list(value: object) -> list[object]:
    """Normalize a possibly repeated element into a list."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


def _append_security(
    header: ET.Element, session_id: str | None, created: datetime
) -> None:
    security = ET.SubElement(header, f"{{{WSSE_NS}}}Security")
    security.set(f"{{{SOAP_ENV_NS}}}mustUnderstand", "1")
    timestamp = ET.SubElement(security, f"{{{WSU_NS}}}Timestamp")
    ET.SubElement(timestamp, f"{{{WSU_NS}}}Created").text = _iso(created)
    ET.SubElement(timestamp, f"{{{WSU_NS}}}Expires").text = _iso(
        created + timedelta(seconds=MESSAGE_TTL_SECONDS)
    )
    token = ET.SubElement(security, f"{{{WSSE_NS}}}UsernameToken")
    ET.SubElement(token, f"{{{WSSE_NS}}}Username").text = SESSION_USERNAME
    password = ET.SubElement(token, f"{{{WSSE_NS}}}Password")
    password.set("Type", PASSWORD_TEXT_TYPE)
    password.text = session_id or NO_SESSION_PASSWORD


def _append_value(
    parent: ET.Element, namespace: str, service: str, name: str, value: object
) -> None:
    if value is None:
        return
    if isinstance(value, list | tuple):
        for item in value:
            _append_value(parent, namespace, service, name, item)
        return
    element = ET.SubElement(parent, f"{{{namespace}}}{name}")
    if isinstance(value, Mapping):
        for field_name, field_value in value.items():
            _append_value(
                element, value_namespace(service), service, field_name, field_value
            )
        return
    if isinstance(value, bool):
        element.text = "true" if value else "false"
        return
    element.text = str(value)


def _fault_message(fault: ET.Element) -> str:
    for child in fault.iter():
        if _local_name(child.tag) in {"faultstring", "Text"} and child.text:
            return child.text.strip()
    return "Unknown SOAP fault"


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def _iso(moment: datetime) -> str:
    return moment.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
