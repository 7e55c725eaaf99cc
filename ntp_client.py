"""
Minimal NTP Client
Sends a single client-mode request over UDP and reads the server's
transmit timestamp.
"""

import socket
import struct

from sync_errors import NetworkError, ProtocolError

NTP_PORT = 123
NTP_PACKET_SIZE = 48

# Seconds between the NTP epoch (1900-01-01) and the Unix epoch (1970-01-01)
NTP_EPOCH_OFFSET = 2208988800

# Seconds part of the transmit timestamp (bytes 40-43)
TRANSMIT_TIMESTAMP_OFFSET = 40

DEFAULT_TIMEOUT = 5.0

# LI = 0 (no warning), VN = 3, Mode = 3 (client)
CLIENT_REQUEST_BYTE = (0 << 6) | (3 << 3) | 3


def build_ntp_request():
    """
    Build the 48-byte client request.

    Every octet carries the LI/VN/Mode value 0x1B; servers only look at the
    first one for a plain client request.
    """
    return bytes([CLIENT_REQUEST_BYTE]) * NTP_PACKET_SIZE


def ntp_to_unix_seconds(ntp_seconds):
    """
    Convert NTP seconds (since 1900-01-01) to Unix seconds (since 1970-01-01).
    """
    if ntp_seconds < NTP_EPOCH_OFFSET:
        raise ProtocolError(f"NTP timestamp {ntp_seconds} predates the Unix epoch")
    return ntp_seconds - NTP_EPOCH_OFFSET


def parse_ntp_response(data):
    """
    Extract the transmit timestamp seconds from an NTP response packet.

    Returns the value as Unix seconds. Anything shorter than a full
    48-byte header is rejected.
    """
    if len(data) < NTP_PACKET_SIZE:
        raise ProtocolError(
            f"short NTP response: {len(data)} bytes, expected {NTP_PACKET_SIZE}")

    (transmit_seconds,) = struct.unpack_from('!I', data, TRANSMIT_TIMESTAMP_OFFSET)
    return ntp_to_unix_seconds(transmit_seconds)


def split_server_address(server_address):
    """
    Split "host:port", "host" or "[v6addr]:port" into (host, port).
    """
    if server_address.startswith('['):
        host, bracket, rest = server_address[1:].partition(']')
        if not bracket or (rest and not rest.startswith(':')):
            raise NetworkError(f"invalid server address: {server_address}")
        port = rest[1:]
    elif server_address.count(':') == 1:
        host, _, port = server_address.partition(':')
    else:
        # Bare hostname, IPv4 address or unbracketed IPv6 literal
        host, port = server_address, ''

    if not host:
        raise NetworkError(f"invalid server address: {server_address}")
    if not port:
        return host, NTP_PORT
    try:
        port_number = int(port)
    except ValueError:
        raise NetworkError(f"invalid port in server address: {server_address}") from None
    if not 0 < port_number < 65536:
        raise NetworkError(f"invalid port in server address: {server_address}")
    return host, port_number


def fetch_time(server_address, timeout=DEFAULT_TIMEOUT):
    """
    Query an NTP server once and return its time as Unix seconds.

    Args:
        server_address: "host:port" of the server; the port defaults to 123.
        timeout: Seconds to wait for the response before giving up.

    Returns:
        Integer seconds since 1970-01-01T00:00:00Z.

    Raises:
        NetworkError: resolving, connecting, sending or receiving failed.
        ProtocolError: the response was too short or its timestamp unusable.
    """
    host, port = split_server_address(server_address)

    try:
        addr_info = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_DGRAM)
    except (socket.gaierror, UnicodeError) as exc:
        raise NetworkError(f"failed to resolve {server_address}: {exc}") from exc

    family, socktype, proto, _, sockaddr = addr_info[0]

    try:
        client_socket = socket.socket(family, socktype, proto)
    except OSError as exc:
        raise NetworkError(f"failed to open UDP socket: {exc}") from exc

    try:
        # Ephemeral local endpoint on the wildcard address
        try:
            client_socket.bind(('::' if family == socket.AF_INET6 else '0.0.0.0', 0))
        except OSError as exc:
            raise NetworkError(f"failed to bind UDP socket: {exc}") from exc

        try:
            client_socket.connect(sockaddr)
        except OSError as exc:
            raise NetworkError(f"failed to connect to {server_address}: {exc}") from exc

        client_socket.settimeout(timeout)

        request = build_ntp_request()
        try:
            sent = client_socket.send(request)
        except OSError as exc:
            raise NetworkError(f"failed to send request to {server_address}: {exc}") from exc
        if sent != len(request):
            raise NetworkError(f"partial send to {server_address}: {sent} bytes")

        try:
            data = client_socket.recv(NTP_PACKET_SIZE)
        except socket.timeout:
            raise NetworkError(
                f"no response from {server_address} within {timeout}s") from None
        except OSError as exc:
            raise NetworkError(
                f"failed to receive response from {server_address}: {exc}") from exc

        return parse_ntp_response(data)
    finally:
        client_socket.close()
