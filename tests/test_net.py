import socket
import struct

import pytest

from poolkit.net import (
    SocketError,
    bind_socket,
    connect_socket,
    empty_socket,
    extract_sockaddr,
    keep_sockalive,
    nolinger_socket,
    read_length,
    url_from_serverurl,
    url_from_sockaddr,
    url_from_socket,
    wait_close,
    wait_read_select,
    wait_write_select,
    write_length,
    write_socket,
)


@pytest.fixture
def pair():
    a, b = socket.socketpair()
    yield a, b
    a.close()
    b.close()


@pytest.fixture
def listener():
    sock = bind_socket("127.0.0.1", "0")
    sock.listen(1)
    yield sock
    sock.close()


@pytest.mark.parametrize(
    "url, expected",
    [
        ("stratum+tcp://pool.example.com:3333", ("pool.example.com", "3333")),
        ("pool.example.com", ("pool.example.com", "80")),
        ("http://pool.example.com:8332/path", ("pool.example.com", "8332")),
        ("[::1]:3333", ("::1", "3333")),
        ("[::1]", ("::1", "80")),
        ("host:1234567", ("host", "12345")),
    ],
)
def test_extract_sockaddr(url, expected):
    assert extract_sockaddr(url) == expected


@pytest.mark.parametrize("url", ["host:", "://", ":3333", None])
def test_extract_sockaddr_rejects(url):
    with pytest.raises(ValueError):
        extract_sockaddr(url)


def test_url_from_sockaddr_ipv4():
    assert url_from_sockaddr(socket.AF_INET, ("127.0.0.1", 8080)) == ("127.0.0.1", "8080")


def test_url_from_sockaddr_ipv6_normalises():
    host, port = url_from_sockaddr(socket.AF_INET6, ("0:0:0:0:0:0:0:1", 9, 0, 0))
    assert (host, port) == ("::1", "9")


def test_url_from_sockaddr_other_family():
    with pytest.raises(SocketError):
        url_from_sockaddr(socket.AF_UNIX, ("/tmp/x", 0))


def test_url_from_serverurl_numeric():
    assert url_from_serverurl("stratum+tcp://127.0.0.1:3333") == ("127.0.0.1", "3333")


def test_url_from_serverurl_bad():
    with pytest.raises(SocketError):
        url_from_serverurl("host:")


def test_bind_and_connect_round(listener):
    host, port = url_from_socket(listener)
    assert host == "127.0.0.1"
    client = connect_socket(host, port)
    server, _ = listener.accept()
    with client, server:
        assert client.gettimeout() is None
        assert write_socket(client, b"ping") == 4
        assert read_length(server, 4) == b"ping"


def test_connect_refused():
    sock = bind_socket("127.0.0.1", "0")
    _, port = url_from_socket(sock)
    sock.close()
    with pytest.raises(SocketError):
        connect_socket("127.0.0.1", port)


def test_keep_sockalive_and_nolinger():
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        keep_sockalive(sock)
        nolinger_socket(sock)
        assert sock.getsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE) != 0
        assert sock.getsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY) != 0
        raw = sock.getsockopt(socket.SOL_SOCKET, socket.SO_LINGER, struct.calcsize("ii"))
        assert struct.unpack("ii", raw) == (1, 0)


def test_write_and_read_length(pair):
    a, b = pair
    assert write_length(a, b"hello world") == 11
    assert read_length(b, 5) == b"hello"
    assert read_length(b, 6) == b" world"


def test_read_length_invalid(pair):
    a, b = pair
    with pytest.raises(ValueError):
        read_length(b, 0)
    a.close()
    with pytest.raises(SocketError):
        read_length(b, 3)


def test_write_length_invalid(pair):
    a, _ = pair
    with pytest.raises(ValueError):
        write_length(a, b"")
    a.close()
    with pytest.raises(SocketError):
        write_length(a, b"x")


def test_wait_selects(pair):
    a, b = pair
    assert wait_read_select(b, 0.05) is False
    assert wait_write_select(a, 0.05) is True
    a.sendall(b"x")
    assert wait_read_select(b, 1) is True


def test_wait_close(pair):
    a, b = pair
    assert wait_close(b, 0.05) is False
    a.close()
    assert wait_close(b, 1) is True


def test_empty_socket_discards(pair):
    a, b = pair
    a.sendall(b"stale data")
    assert wait_read_select(b, 1) is True
    assert empty_socket(b) == b"stale data"
    assert empty_socket(b) == b""
    assert wait_read_select(b, 0.05) is False


def test_url_from_socket_closed():
    sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    sock.close()
    with pytest.raises(SocketError):
        url_from_socket(sock)