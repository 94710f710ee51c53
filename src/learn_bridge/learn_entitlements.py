"""Entitlements requested when registering the proxy tool."""

from enum import Enum


class Entitlement(Enum):
    """Tool methods granted to the proxy tool (single source of truth)."""

    CONTEXT_EMULATE_USER = "Context.WS:emulateUser"
    CONTEXT_LOGOUT = "Context.WS:logout"
    CONTEXT_GET_MEMBERSHIPS = "Context.WS:getMemberships"
    CONTEXT_GET_MY_MEMBERSHIPS = "Context.WS:getMyMemberships"
    UTIL_CHECK_ENTITLEMENT = "Util.WS:checkEntitlement"
    USER_GET_SERVER_VERSION = "User.WS:getServerVersion"
    USER_INITIALIZE = "User.WS:initializeUserWS"
    USER_SAVE = "User.WS:saveUser"
    USER_GET = "User.WS:getUser"
    USER_DELETE = "User.WS:deleteUser"
    USER_SAVE_OBSERVER_ASSOCIATION = "User.WS:saveObserverAssociation"
    USER_GET_OBSERVEE = "User.WS:getObservee"
    USER_DELETE_ADDRESS_BOOK_ENTRY = "User.WS:deleteAddressBookEntry"
    USER_GET_ADDRESS_BOOK_ENTRY = "User.WS:getAddressBookEntry"
    USER_SAVE_ADDRESS_BOOK_ENTRY = "User.WS:saveAddressBookEntry"


def tool_entitlements() -> list[str]:
    """Return entitlement strings formatted for registerTool."""
    return [entry.value for entry in Entitlement]
