"""Finding the scanner's websocket server and following the messages it sends."""

from __future__ import annotations

import base64
import binascii
import enum
import json
from dataclasses import dataclass
from typing import Any, Callable, Union

from .configure import _to_bool, _to_int

HEARTBEAT_MESSAGE = "1"
HEARTBEAT_INTERVAL_MS = 4000
RECONNECT_DELAY_MS = 3000
CLIENT_PORTS: tuple[int, ...] = (11109, 11119, 11129)
DEFAULT_DEVICE_ID = "00000000"
SERVER_INFO_TASK = "got_websocket_server_info"


class PadStatus(enum.IntEnum):
    """Scanner actions reported by the tablet."""

    SCANNING = 0x01
    SCAN_FINISH = 0x02
    CLEAR_TEE_CARD = 0x04
    PLEASE_TAKE_OUT = 0x08
    PAD_SERIAL_NOT_CONNECTED = 0x09
    POPUPING = 0x10


class ConnectionStatus(enum.Enum):
    """Life cycle of the websocket connection."""

    STOPPED = "stopped"
    STARTING = "starting"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


@dataclass(frozen=True)
class ServerInfo:
    """Where a tablet's websocket server can be reached."""

    device_id: str
    device_name: str
    ip: str
    port: int


def _to_str(value: Any) -> str:
    return value if isinstance(value, str) else ""


def _decode_json(data: bytes | str) -> Any:
    try:
        return json.loads(data)
    except (ValueError, UnicodeDecodeError) as exc:
        raise ValueError(f"not valid JSON: {exc}") from exc


def parse_server_datagram(datagram: bytes) -> ServerInfo | None:
    """Decode a base64 JSON broadcast from a tablet.

    Returns None for well-formed datagrams that carry no server information;
    raises ValueError when the datagram is not base64 JSON.
    """
    try:
        payload = base64.b64decode(datagram, validate=False)
    except binascii.Error as exc:
        raise ValueError(f"bad base64 datagram: {datagram.hex()}") from exc
    doc = _decode_json(payload)
    if not isinstance(doc, dict) or not doc:
        return None
    if doc.get("task") != SERVER_INFO_TASK:
        return None
    return ServerInfo(
        device_id=_to_str(doc.get("device_id")),
        device_name=_to_str(doc.get("device_name")),
        ip=_to_str(doc.get("websocket_ip")),
        port=_to_int(doc.get("websocket_port")),
    )


@dataclass(frozen=True)
class NewPicture:
    """Raw sensor values of a freshly scanned picture."""

    data: bytes
    width: int
    height: int


@dataclass(frozen=True)
class StatusChanged:
    """The scanner reports a new action, usually one of PadStatus."""

    status: int


@dataclass(frozen=True)
class SerialConnectionChanged:
    """The tablet's serial link to the scanner came up or went down."""

    connected: bool


Message = Union[NewPicture, StatusChanged, SerialConnectionChanged]


def parse_message(text: str) -> Message | None:
    """Parse a websocket text message.

    Heartbeats and unknown messages give None; text that is not a JSON object
    raises ValueError.
    """
    if len(text) == 1:
        return None
    doc = _decode_json(text)
    if not isinstance(doc, dict):
        raise ValueError("message is not a JSON object")
    kind = _to_str(doc.get("message"))
    if kind == "new_picture":
        encoded = _to_str(doc.get("picture_data"))
        try:
            data = base64.b64decode(encoded.encode("latin-1", "replace"), validate=False)
        except binascii.Error as exc:
            raise ValueError("picture data is not base64") from exc
        return NewPicture(
            data=data,
            width=_to_int(doc.get("picture_width")),
            height=_to_int(doc.get("picture_height")),
        )
    if kind == "status_changed":
        return StatusChanged(_to_int(doc.get("status")))
    if kind == "serial_connected_status_changed":
        return SerialConnectionChanged(_to_bool(doc.get("connected")))
    return None


def build_url(ip: str, port: int, mac: str) -> str:
    """The websocket address of a scanner server for this machine."""
    return f"ws://{ip}:{port}/scanner/mac?{mac}"


class ConnectionTracker:
    """Keeps the connection state and dispatches incoming messages.

    The socket itself is owned by the caller, which opens ``url`` after a
    successful ``start_listen`` and reconnects when ``on_disconnected`` says so.
    """

    def __init__(
        self,
        on_connected_changed: Callable[[bool], None] | None = None,
        on_serial_connected_changed: Callable[[bool], None] | None = None,
        on_scanner_action: Callable[[int], None] | None = None,
        on_new_picture: Callable[[NewPicture], None] | None = None,
    ) -> None:
        self.status = ConnectionStatus.STOPPED
        self.url = ""
        self._connected = False
        self._serial_connected = False
        self._old_ip = "12"
        self._old_port = -1
        self._on_connected_changed = on_connected_changed
        self._on_serial_connected_changed = on_serial_connected_changed
        self._on_scanner_action = on_scanner_action
        self._on_new_picture = on_new_picture

    @property
    def connected(self) -> bool:
        return self._connected

    @connected.setter
    def connected(self, value: bool) -> None:
        if self._connected != value:
            self._connected = value
            if self._on_connected_changed is not None:
                self._on_connected_changed(value)

    @property
    def serial_connected(self) -> bool:
        return self._serial_connected

    @serial_connected.setter
    def serial_connected(self, value: bool) -> None:
        if self._serial_connected != value:
            self._serial_connected = value
            if self._on_serial_connected_changed is not None:
                self._on_serial_connected_changed(value)

    def start_listen(self, ip: str, port: int, mac: str) -> bool:
        """Prepare a connection to ip:port; False when the address is unusable or unchanged."""
        if ip == "" or port <= 0:
            return False
        if self._old_ip == ip and self._old_port == port:
            return False
        self.status = ConnectionStatus.STARTING
        self._old_ip = ip
        self._old_port = port
        self.connected = False
        self.url = build_url(ip, port, mac)
        return True

    def stop_listen(self) -> None:
        """Stop for good; a later disconnect will not ask for a reconnect."""
        if self.status != ConnectionStatus.STOPPED:
            self.status = ConnectionStatus.STOPPED
            self.url = ""
        self._old_ip = ""
        self._old_port = -1

    def on_connected(self) -> None:
        """Record that the socket is open."""
        self.connected = True
        self.status = ConnectionStatus.CONNECTED

    def on_disconnected(self) -> bool:
        """Record a dropped socket; returns whether the caller should reconnect."""
        self.connected = False
        if self.status == ConnectionStatus.STOPPED:
            return False
        self.status = ConnectionStatus.DISCONNECTED
        return True

    def handle_message(self, text: str) -> Message | None:
        """Parse a message, update state and notify listeners; returns the parsed message."""
        message = parse_message(text)
        if isinstance(message, NewPicture):
            if self._on_new_picture is not None:
                self._on_new_picture(message)
        elif isinstance(message, StatusChanged):
            if self._on_scanner_action is not None:
                self._on_scanner_action(message.status)
        elif isinstance(message, SerialConnectionChanged):
            self.serial_connected = message.connected
        return message