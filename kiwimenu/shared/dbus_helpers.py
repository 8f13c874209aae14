from typing import Any, Dict, List, Optional, Tuple

from dbus_fast import Message, MessageType
from dbus_fast.introspection import Node

from kiwimenu.core.errors import TransportError

PROPERTIES_INTERFACE_XML = """
  <interface name="org.freedesktop.DBus.Properties">
    <method name="Get">
      <arg name="interface_name" type="s" direction="in"/>
      <arg name="property_name" type="s" direction="in"/>
      <arg name="value" type="v" direction="out"/>
    </method>
    <method name="GetAll">
      <arg name="interface_name" type="s" direction="in"/>
      <arg name="props" type="a{sv}" direction="out"/>
    </method>
  </interface>
"""

LOGIN1_MANAGER_XML = f"""
<node>
  <interface name="org.freedesktop.login1.Manager">
    <method name="ListSessions">
      <arg name="sessions" type="a(susso)" direction="out"/>
    </method>
    <method name="ActivateSession">
      <arg name="session_id" type="s" direction="in"/>
    </method>
    <signal name="SessionNew">
      <arg name="session_id" type="s"/>
      <arg name="object_path" type="o"/>
    </signal>
    <signal name="SessionRemoved">
      <arg name="session_id" type="s"/>
      <arg name="object_path" type="o"/>
    </signal>
  </interface>
  {PROPERTIES_INTERFACE_XML}
</node>
"""

LOGIN1_SESSION_XML = f"""
<node>
  <interface name="org.freedesktop.login1.Session">
    <property name="Class" type="s" access="read"/>
    <property name="Active" type="b" access="read"/>
  </interface>
  {PROPERTIES_INTERFACE_XML}
</node>
"""

ACCOUNTS_XML = f"""
<node>
  <interface name="org.freedesktop.Accounts">
    <method name="ListCachedUsers">
      <arg name="users" type="ao" direction="out"/>
    </method>
    <signal name="UserAdded">
      <arg name="user" type="o"/>
    </signal>
    <signal name="UserDeleted">
      <arg name="user" type="o"/>
    </signal>
  </interface>
  {PROPERTIES_INTERFACE_XML}
</node>
"""

ACCOUNTS_USER_XML = f"""
<node>
  <interface name="org.freedesktop.Accounts.User">
    <property name="Uid" type="t" access="read"/>
    <property name="UserName" type="s" access="read"/>
    <property name="RealName" type="s" access="read"/>
    <property name="SystemAccount" type="b" access="read"/>
    <property name="IconFile" type="s" access="read"/>
    <signal name="Changed"/>
  </interface>
  {PROPERTIES_INTERFACE_XML}
</node>
"""


class DbusHelpers:
    """
    Proxy cache over a connected dbus_fast ``MessageBus``.
    Uses static interface definitions so creating a proxy costs no
    introspection round trip.
    """

    def __init__(self, bus: Any):
        self.bus = bus
        self._proxy_cache: Dict[Tuple[str, str, str], Any] = {}
        self._nodes: Dict[str, Node] = {}

    def _parse(self, xml: str) -> Node:
        node = self._nodes.get(xml)
        if node is None:
            node = Node.parse(xml)
            self._nodes[xml] = node
        return node

    def get_interface(self, service: str, path: str, iface_name: str, xml: str):
        """Retrieves or creates a cached proxy interface."""
        cache_key = (service, path, iface_name)
        if cache_key in self._proxy_cache:
            return self._proxy_cache[cache_key]
        proxy = self.bus.get_proxy_object(service, path, self._parse(xml))
        iface = proxy.get_interface(iface_name)
        self._proxy_cache[cache_key] = iface
        return iface

    def forget(self, path: str) -> None:
        """Drops every cached proxy for the object at ``path``."""
        for key in [k for k in self._proxy_cache if k[1] == path]:
            del self._proxy_cache[key]

    async def get_all_properties(
        self, service: str, path: str, iface_name: str, xml: str
    ) -> Dict[str, Any]:
        """Unpacks ``Properties.GetAll`` into a plain dictionary."""
        props = self.get_interface(
            service, path, "org.freedesktop.DBus.Properties", xml
        )
        try:
            variants = await props.call_get_all(iface_name)
        except Exception as e:
            raise TransportError(f"{iface_name}.GetAll({path})", e) from e
        return {key: variant.value for key, variant in variants.items()}

    async def call_method(
        self,
        service: str,
        path: str,
        interface: str,
        member: str,
        signature: str = "",
        body: Optional[List[Any]] = None,
    ) -> List[Any]:
        """Sends a raw method call and raises TransportError on an error reply."""
        try:
            reply = await self.bus.call(
                Message(
                    destination=service,
                    path=path,
                    interface=interface,
                    member=member,
                    signature=signature,
                    body=body or [],
                )
            )
        except Exception as e:
            raise TransportError(f"{interface}.{member}", e) from e
        if reply is None or reply.message_type == MessageType.ERROR:
            detail = reply.body[0] if reply is not None and reply.body else None
            error_name = reply.error_name if reply is not None else "no reply"
            raise TransportError(
                f"{interface}.{member}", Exception(f"{error_name}: {detail}")
            )
        return reply.body
