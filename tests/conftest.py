import socket
import struct
import threading

import pytest

NTP_EPOCH_OFFSET = 2208988800


def build_ntp_response(transmit_seconds, origin=b'\x00' * 8):
    """
    Build a 48-byte server response carrying transmit_seconds (NTP era
    seconds since 1900) in the transmit timestamp.
    """
    # LI = 0, VN = 4, Mode = 4 (server)
    flags = (0 << 6) | (4 << 3) | 4
    stratum = 2
    poll = 1
    precision = -20
    root_delay = int(0.001 * (1 << 16))
    root_dispersion = int(0.001 * (1 << 16))

    packet = struct.pack('!BBBb', flags, stratum, poll, precision)
    packet += struct.pack('!II', root_delay, root_dispersion)
    packet += b'LOCL'
    packet += struct.pack('!II', transmit_seconds, 0)   # Reference timestamp
    packet += origin                                    # Origin timestamp
    packet += struct.pack('!II', transmit_seconds, 0)   # Receive timestamp
    packet += struct.pack('!II', transmit_seconds, 0)   # Transmit timestamp
    return packet


class FakeNtpServer:
    """
    Loopback UDP server answering every datagram with a fixed reply.

    reply=None keeps the server silent so clients run into their timeout.
    """

    def __init__(self, reply):
        self.reply = reply
        self.requests = []
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        self.sock.bind(('127.0.0.1', 0))
        self.sock.settimeout(0.05)
        self.address = '127.0.0.1:%d' % self.sock.getsockname()[1]
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    def _serve(self):
        while not self._stop.is_set():
            try:
                data, addr = self.sock.recvfrom(1024)
            except socket.timeout:
                continue
            self.requests.append(data)
            if self.reply is not None:
                self.sock.sendto(self.reply, addr)

    def start(self):
        self._thread.start()
        return self

    def stop(self):
        self._stop.set()
        self._thread.join()
        self.sock.close()


@pytest.fixture
def ntp_server():
    """Factory fixture: ntp_server(reply) starts a FakeNtpServer."""
    servers = []

    def start(reply):
        server = FakeNtpServer(reply).start()
        servers.append(server)
        return server

    yield start
    for server in servers:
        server.stop()


@pytest.fixture
def closed_port_address():
    """Address of a loopback UDP port nobody listens on."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(('127.0.0.1', 0))
    port = sock.getsockname()[1]
    sock.close()
    return '127.0.0.1:%d' % port
