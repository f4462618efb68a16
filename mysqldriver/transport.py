import logging
from collections import namedtuple

from mysql.connector.utils import int1store, int3store, read_int

from .exceptions import OperationalError, ProtocolError

logger = logging.getLogger(__name__)

MAX_PAYLOAD_LENGTH = 0xFFFFFF
HEADER_LENGTH = 4

Packet = namedtuple("Packet", ["sequence_id", "payload"])


class PacketTransport:
    """
    Frames MySQL packets over a connected, already authenticated socket.

    Every packet carries a 3-byte little-endian payload length and a 1-byte
    sequence id. Payloads of 16 MiB - 1 bytes or more are split into
    continuation packets. The sequence id restarts at 0 with each command.
    """

    def __init__(self, sock):
        """
        Args:
            sock: Socket-like object offering sendall(), recv() and close()
        """
        self.sock = sock
        self.sequence_id = 0
        self._closed = False

    def write_command(self, payload):
        """Start a new command exchange and send its payload."""
        self.sequence_id = 0
        self.write_packet(payload)

    def write_packet(self, payload):
        payload = bytes(payload)
        chunks = []
        offset = 0
        while True:
            chunk = payload[offset:offset + MAX_PAYLOAD_LENGTH]
            chunks.append(bytes(int3store(len(chunk))) + bytes(int1store(self.sequence_id)) + chunk)
            self.sequence_id = (self.sequence_id + 1) % 256
            offset += len(chunk)
            # a full chunk is always followed by another one, possibly empty
            if len(chunk) < MAX_PAYLOAD_LENGTH:
                break

        try:
            self.sock.sendall(b"".join(chunks))
        except OSError as e:
            raise OperationalError(f"failed to send packet: {e}") from e

    def next_packet(self):
        """
        Read one logical packet, joining continuation chunks.

        Returns:
            Packet: sequence id of the first chunk and the full payload

        Raises:
            OperationalError: If the socket fails or is closed by the server
            ProtocolError: If the packet arrives out of sequence
        """
        parts = []
        first_sequence_id = None
        while True:
            header = self._recv_exactly(HEADER_LENGTH)
            rest, length = read_int(header, 3)
            _, sequence_id = read_int(rest, 1)
            if sequence_id != self.sequence_id:
                raise ProtocolError(
                    f"packet out of order: expected sequence id {self.sequence_id}, got {sequence_id}")
            self.sequence_id = (sequence_id + 1) % 256
            if first_sequence_id is None:
                first_sequence_id = sequence_id

            parts.append(self._recv_exactly(length))
            if length < MAX_PAYLOAD_LENGTH:
                break

        payload = b"".join(parts)
        if not payload:
            raise ProtocolError("received an empty packet")
        return Packet(first_sequence_id, payload)

    def _recv_exactly(self, size):
        buf = bytearray()
        while len(buf) < size:
            try:
                data = self.sock.recv(size - len(buf))
            except OSError as e:
                raise OperationalError(f"failed to read packet: {e}") from e
            if not data:
                raise OperationalError("connection closed by server")
            buf.extend(data)
        return bytes(buf)

    def close(self):
        if self._closed:
            return
        self._closed = True
        try:
            self.sock.close()
        except OSError as e:
            logger.warning("Error closing socket: %s", e)

    def is_closed(self):
        return self._closed
