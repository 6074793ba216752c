"""TCP helpers: URL parsing, resolving, connecting and framed reads/writes."""

from __future__ import annotations

import errno
import logging
import select
import selectors
import socket
import struct
import time

log = logging.getLogger(__name__)

PAGESIZE = 4096
_ROUND_TRIP_PORT = "1042"
_CONNECT_TIMEOUT = 5
_WRITE_TIMEOUT = 5
_EAI_AGAIN = getattr(socket, "EAI_AGAIN", None)
_MSG_WAITALL = getattr(socket, "MSG_WAITALL", 0)
_IN_PROGRESS = {errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EAGAIN, 10035}


class SocketError(OSError):
    """Raised when a socket operation cannot be completed."""


def extract_sockaddr(url: str | None) -> tuple[str, str]:
    """Split a URL such as ``stratum+tcp://host:port/path`` into host and port.

    Bracketed IPv6 hosts lose their brackets, ports are cut to five characters
    and at any slash, and the port defaults to "80". Raises ValueError.
    """
    if url is None:
        raise ValueError("null url string passed to extract_sockaddr")
    sep = url.find("//")
    rest = url if sep < 0 else url[sep + 2 :]

    ipv6_begin = rest.find("[")
    ipv6_end = rest.find("]")
    ipv6 = ipv6_begin >= 0 and ipv6_end >= 0 and ipv6_end > ipv6_begin
    colon = rest.find(":", ipv6_end) if ipv6 else rest.find(":")

    port_text = ""
    if colon >= 0:
        url_len = colon
        if len(rest) - url_len - 1 < 1:
            raise ValueError(f"missing port in url {url}")
        port_text = rest[colon + 1 :]
    else:
        url_len = len(rest)

    begin = 0
    if ipv6:
        url_len -= 2
        begin = ipv6_begin + 1
    if url_len < 1:
        raise ValueError(f"null length host in url {url}")
    host = rest[begin : begin + url_len]

    if port_text:
        port = port_text[:5].split("/", 1)[0]
    else:
        port = "80"
    return host, port


def url_from_sockaddr(family: int, addr: tuple) -> tuple[str, str]:
    """Return the numeric host and port text of an IPv4 or IPv6 socket address."""
    if family not in (socket.AF_INET, socket.AF_INET6):
        raise SocketError(f"unsupported address family {family}")
    host = str(addr[0]).split("%", 1)[0]
    host = socket.inet_ntop(family, socket.inet_pton(family, host))
    return host, str(int(addr[1]))


def _getaddrinfo(host: str | None, port: str | int | None) -> list:
    """Resolve for stream sockets, retrying while the resolver says try again."""
    while True:
        try:
            infos = socket.getaddrinfo(host, port, socket.AF_UNSPEC, socket.SOCK_STREAM)
        except socket.gaierror as exc:
            if _EAI_AGAIN is not None and exc.errno == _EAI_AGAIN:
                continue
            raise SocketError(f"failed to resolve {host}:{port}") from exc
        if not infos:
            raise SocketError(f"no addresses for {host}:{port}")
        return infos


def url_from_serverurl(serverurl: str) -> tuple[str, str]:
    """Resolve a server URL into a numeric host and port."""
    try:
        host, port = extract_sockaddr(serverurl)
    except ValueError as exc:
        log.warning("Failed to extract server address from %s", serverurl)
        raise SocketError(str(exc)) from exc
    family, _, _, _, sockaddr = _getaddrinfo(host, port)[0]
    return url_from_sockaddr(family, sockaddr)


def url_from_socket(sock: socket.socket) -> tuple[str, str]:
    """Return the numeric local host and port a socket is bound to."""
    if sock.fileno() < 1:
        raise SocketError("invalid socket")
    try:
        addr = sock.getsockname()
    except OSError as exc:
        raise SocketError("getsockname failed") from exc
    return url_from_sockaddr(sock.family, addr)


def keep_sockalive(sock: socket.socket) -> None:
    """Enable keepalive probing (idle 45s, interval 30s, one probe) and no-delay."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, 1)
    sock.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, 1)
    for name, value in (("TCP_KEEPCNT", 1), ("TCP_KEEPIDLE", 45), ("TCP_KEEPINTVL", 30)):
        option = getattr(socket, name, None)
        if option is not None:
            sock.setsockopt(socket.IPPROTO_TCP, option, value)


def nolinger_socket(sock: socket.socket) -> None:
    """Make close() reset the connection at once instead of lingering."""
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.pack("ii", 1, 0))


def bind_socket(url: str | None, port: str | int) -> socket.socket:
    """Return a socket bound to ``url:port`` with address reuse enabled."""
    try:
        infos = _getaddrinfo(url, port)
    except SocketError:
        log.warning("Failed to resolve (?wrong URL) %s:%s", url, port)
        raise
    for family, type_, proto, _, sockaddr in infos:
        try:
            sock = socket.socket(family, type_, proto)
        except OSError:
            continue
        break
    else:
        raise SocketError(f"failed to open socket for {url}:{port}")
    sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
    try:
        sock.bind(sockaddr)
    except OSError as exc:
        sock.close()
        raise SocketError(f"failed to bind socket for {url}:{port}") from exc
    return sock


def connect_socket(url: str, port: str | int) -> socket.socket:
    """Connect to the first address of ``url:port`` that answers within 5 seconds.

    The returned socket is in blocking mode.
    """
    try:
        infos = _getaddrinfo(url, port)
    except SocketError:
        log.warning("Failed to resolve (?wrong URL) %s:%s", url, port)
        raise
    for family, type_, proto, _, sockaddr in infos:
        try:
            sock = socket.socket(family, type_, proto)
        except OSError:
            log.debug("Failed socket")
            continue
        sock.setblocking(False)
        err = sock.connect_ex(sockaddr)
        if err == 0:
            log.debug("Succeeded immediate connect")
            sock.setblocking(True)
            return sock
        if err not in _IN_PROGRESS:
            sock.close()
            log.debug("Failed sock connect")
            continue
        if wait_write_select(sock, _CONNECT_TIMEOUT):
            if sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR) == 0:
                log.debug("Succeeded delayed connect")
                sock.setblocking(True)
                return sock
        sock.close()
        log.debug("Select timeout/failed connect")
    log.info("Failed to connect to %s:%s", url, port)
    raise SocketError(f"failed to connect to {url}:{port}")


def round_trip(url: str) -> int:
    """Estimate the minimum round trip in milliseconds to ``url``.

    Connects five times to what should be a closed port and times the
    refusal. Returns 0 on failure.
    """
    try:
        infos = _getaddrinfo(url, _ROUND_TRIP_PORT)
    except SocketError:
        log.warning("Failed to resolve (?wrong URL) %s:%s", url, _ROUND_TRIP_PORT)
        return 0
    family, type_, proto, _, sockaddr = infos[0]
    best = 0
    for _ in range(5):
        try:
            sock = socket.socket(family, type_, proto)
        except OSError:
            log.error("Failed socket")
            return best
        with sock:
            start = time.monotonic()
            try:
                sock.connect(sockaddr)
            except ConnectionRefusedError:
                pass
            except OSError:
                log.info("Unable to get round trip due to %s:%s connect not being refused",
                         url, _ROUND_TRIP_PORT)
                return best
            else:
                log.info("Unable to get round trip due to %s:%s connect not being refused",
                         url, _ROUND_TRIP_PORT)
                return best
            diff = int((time.monotonic() - start) * 1000)
        if not best or diff < best:
            best = diff
    if best > 500:
        log.info("Round trip to %s:%s greater than 500ms at %d", url, _ROUND_TRIP_PORT, best)
    log.info("Minimum round trip to %s:%s calculated as %dms", url, _ROUND_TRIP_PORT, best)
    return best


def _wait(sock: socket.socket, events: int, timeout: float | None) -> bool:
    with selectors.DefaultSelector() as selector:
        selector.register(sock, events)
        return bool(selector.select(timeout))


def wait_read_select(sock: socket.socket, timeout: float | None) -> bool:
    """Return whether ``sock`` becomes readable within ``timeout`` seconds."""
    return _wait(sock, selectors.EVENT_READ, timeout)


def wait_write_select(sock: socket.socket, timeout: float | None) -> bool:
    """Return whether ``sock`` becomes writable within ``timeout`` seconds."""
    return _wait(sock, selectors.EVENT_WRITE, timeout)


def wait_close(sock: socket.socket, timeout: float) -> bool:
    """Return whether the peer closes ``sock`` within ``timeout`` seconds."""
    fd = sock.fileno()
    if fd < 0:
        raise SocketError("invalid socket")
    if hasattr(select, "poll"):
        rdhup = getattr(select, "POLLRDHUP", 0)
        poller = select.poll()
        poller.register(fd, rdhup)
        ready = poller.poll(int(timeout * 1000))
        if not ready:
            return False
        return bool(ready[0][1] & (select.POLLHUP | rdhup | select.POLLERR))
    if not wait_read_select(sock, timeout):
        return False
    try:
        return sock.recv(1, socket.MSG_PEEK) == b""
    except OSError:
        return True


def read_length(sock: socket.socket, length: int) -> bytes:
    """Read exactly ``length`` bytes from ``sock``."""
    if length < 1:
        raise ValueError(f"invalid read length of {length} requested")
    if sock.fileno() < 0:
        raise SocketError("attempt to read from invalidated socket")
    chunks = []
    remaining = length
    while remaining:
        chunk = sock.recv(remaining, _MSG_WAITALL)
        if not chunk:
            raise SocketError(f"connection closed with {remaining} bytes unread")
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


def write_length(sock: socket.socket, data: bytes) -> int:
    """Write all of ``data`` to ``sock`` and return the number of bytes written."""
    if len(data) < 1:
        raise ValueError("invalid write length of 0 requested")
    if sock.fileno() < 0:
        raise SocketError("attempt to write to invalidated socket")
    view = memoryview(data)
    written = 0
    while written < len(view):
        try:
            written += sock.send(view[written:])
        except OSError as exc:
            log.error("Failed to write %d bytes in write_length", len(view) - written)
            raise SocketError("write failed") from exc
    return written


def write_socket(sock: socket.socket, data: bytes) -> int:
    """Wait up to 5 seconds for ``sock`` to be writable, then write all of ``data``."""
    if sock.fileno() < 0:
        raise SocketError("attempt to write to invalidated socket")
    if not wait_write_select(sock, _WRITE_TIMEOUT):
        log.info("Select timed out in write_socket")
        raise SocketError("select timed out in write_socket")
    return write_length(sock, data)


def empty_socket(sock: socket.socket) -> bytes:
    """Discard and return whatever is waiting to be read on ``sock`` without blocking."""
    if sock.fileno() < 1:
        return b""
    previous = sock.gettimeout()
    sock.setblocking(False)
    chunks = []
    try:
        while True:
            try:
                chunk = sock.recv(PAGESIZE - 1)
            except OSError:
                break
            if not chunk:
                break
            log.debug("Discarding: %r", chunk)
            chunks.append(chunk)
    finally:
        sock.settimeout(previous)
    return b"".join(chunks)