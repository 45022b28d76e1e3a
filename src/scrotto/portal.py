"""Screenshots through xdg-desktop-portal.

Talks to org.freedesktop.portal.Screenshot over the session bus with Gio.
Each request owns a private GLib main context and loop that only live for
the one request/response round trip.
"""

import logging
import uuid
from pathlib import Path
from typing import Optional

import gi
gi.require_version("Gio", "2.0")
from gi.repository import Gio, GLib

from .capture import CaptureCancelled, PortalError

log = logging.getLogger(__name__)

PORTAL_BUS_NAME = "org.freedesktop.portal.Desktop"
PORTAL_OBJECT_PATH = "/org/freedesktop/portal/desktop"
SCREENSHOT_INTERFACE = "org.freedesktop.portal.Screenshot"
REQUEST_INTERFACE = "org.freedesktop.portal.Request"

RESPONSE_SUCCESS = 0
RESPONSE_CANCELLED = 1


def request_path(unique_name: str, token: str) -> str:
    """Object path the portal will use for a request with this handle token."""
    sender = unique_name.lstrip(":").replace(".", "_")
    return f"{PORTAL_OBJECT_PATH}/request/{sender}/{token}"


def uri_to_path(uri: str) -> Path:
    path = Gio.File.new_for_uri(uri).get_path()
    if not path:
        raise PortalError(f"Portal returned a non-local file URI: {uri}")
    return Path(path)


def screenshot(interactive: bool, timeout_ms: int) -> Path:
    """Ask the portal for a screenshot and block until it answers.

    Args:
        interactive: Let the user pick an area (False = whole screen, no dialog)
        timeout_ms: How long to wait for the user/compositor to respond

    Returns:
        Path of the image written by the portal

    Raises:
        CaptureCancelled: If the user dismissed the dialog
        PortalError: If the portal is unavailable, times out or fails
    """
    context = GLib.MainContext.new()
    context.push_thread_default()
    try:
        return _round_trip(context, interactive, timeout_ms)
    finally:
        context.pop_thread_default()


def _round_trip(context: GLib.MainContext, interactive: bool, timeout_ms: int) -> Path:
    try:
        connection = Gio.bus_get_sync(Gio.BusType.SESSION, None)
    except GLib.Error as e:
        raise PortalError(f"Cannot connect to the session bus: {e.message}")

    token = f"scrotto_{uuid.uuid4().hex}"
    loop = GLib.MainLoop.new(context, False)
    response: dict = {}

    def on_response(_conn, _sender, _path, _iface, _signal, params):
        code, results = params.unpack()
        response["code"] = code
        response["results"] = results
        loop.quit()

    def on_timeout():
        response["timed_out"] = True
        loop.quit()
        return GLib.SOURCE_REMOVE

    def subscribe(path: str) -> int:
        return connection.signal_subscribe(
            PORTAL_BUS_NAME,
            REQUEST_INTERFACE,
            "Response",
            path,
            None,
            Gio.DBusSignalFlags.NONE,
            on_response,
        )

    # Subscribe before calling so a fast response cannot be missed
    expected_path = request_path(connection.get_unique_name(), token)
    subscription = subscribe(expected_path)

    timeout_source = GLib.timeout_source_new(timeout_ms)
    timeout_source.set_callback(on_timeout)
    timeout_source.attach(context)

    options = {
        "handle_token": GLib.Variant("s", token),
        "interactive": GLib.Variant("b", interactive),
    }
    try:
        try:
            reply = connection.call_sync(
                PORTAL_BUS_NAME,
                PORTAL_OBJECT_PATH,
                SCREENSHOT_INTERFACE,
                "Screenshot",
                GLib.Variant("(sa{sv})", ("", options)),
                GLib.VariantType.new("(o)"),
                Gio.DBusCallFlags.NONE,
                -1,
                None,
            )
        except GLib.Error as e:
            if "cancel" in e.message.lower():
                raise CaptureCancelled("Screenshot request cancelled")
            raise PortalError(f"Screenshot portal call failed: {e.message}")

        handle = reply.unpack()[0]
        if handle != expected_path:
            # Pre-0.9 portals ignore handle_token
            log.debug("Portal request handle %s differs from %s", handle, expected_path)
            connection.signal_unsubscribe(subscription)
            subscription = subscribe(handle)

        loop.run()
    finally:
        connection.signal_unsubscribe(subscription)
        timeout_source.destroy()

    if response.get("timed_out"):
        raise PortalError(f"Portal did not respond within {timeout_ms} ms")

    code = response.get("code")
    if code == RESPONSE_CANCELLED:
        raise CaptureCancelled("Selection cancelled by user")
    if code != RESPONSE_SUCCESS:
        raise PortalError(f"Portal screenshot failed (response {code})")

    uri: Optional[str] = response.get("results", {}).get("uri")
    if not uri:
        raise PortalError("Portal response did not include an image URI")
    return uri_to_path(uri)
