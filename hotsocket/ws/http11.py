"""
Copyright (c) Aymeric Augustin and contributors

Redistribution and use in source and binary forms, with or without
modification, are permitted provided that the following conditions are met:

    * Redistributions of source code must retain the above copyright notice,
      this list of conditions and the following disclaimer.
    * Redistributions in binary form must reproduce the above copyright notice,
      this list of conditions and the following disclaimer in the documentation
      and/or other materials provided with the distribution.
    * Neither the name of the copyright holder nor the names of its contributors
      may be used to endorse or promote products derived from this software
      without specific prior written permission.

THIS SOFTWARE IS PROVIDED BY THE COPYRIGHT HOLDERS AND CONTRIBUTORS "AS IS" AND
ANY EXPRESS OR IMPLIED WARRANTIES, INCLUDING, BUT NOT LIMITED TO, THE IMPLIED
WARRANTIES OF MERCHANTABILITY AND FITNESS FOR A PARTICULAR PURPOSE ARE
DISCLAIMED. IN NO EVENT SHALL THE COPYRIGHT HOLDER OR CONTRIBUTORS BE LIABLE
FOR ANY DIRECT, INDIRECT, INCIDENTAL, SPECIAL, EXEMPLARY, OR CONSEQUENTIAL
DAMAGES (INCLUDING, BUT NOT LIMITED TO, PROCUREMENT OF SUBSTITUTE GOODS OR
SERVICES; LOSS OF USE, DATA, OR PROFITS; OR BUSINESS INTERRUPTION) HOWEVER
CAUSED AND ON ANY THEORY OF LIABILITY, WHETHER IN CONTRACT, STRICT LIABILITY,
OR TORT (INCLUDING NEGLIGENCE OR OTHERWISE) ARISING IN ANY WAY OUT OF THE USE
OF THIS SOFTWARE, EVEN IF ADVISED OF THE POSSIBILITY OF SUCH DAMAGE.
"""


import re
from typing import Dict, Iterator, List, MutableMapping, Tuple

from hotsocket.typings import HeadersLike
from hotsocket.ws.exception import ProtocolError
from hotsocket.ws.streams import StreamReader, StreamWriter

# The handshake response of a WebSocket server is short; anything longer is
# not a WebSocket server.

MAX_HEADERS = 128


# Regex for validating header names.

_token_re = re.compile(r"[-!#$%&\'*+.^_`|~0-9a-zA-Z]+")

# Regex for validating status codes.

_status_re = re.compile(r"[0-9]{3}")


class Headers(MutableMapping[str, str]):
    """
    Case-insensitive HTTP headers that remember every value of repeated names.

    ``headers[name]`` fails when a name appears more than once; use
    :meth:`get_all` to see all of them.
    """

    __slots__ = ["_dict", "_list"]

    # Like dict, Headers accepts an optional "mapping or iterable" argument.
    def __init__(self, *args: HeadersLike, **kwargs: str) -> None:
        self._dict: Dict[str, List[str]] = {}
        self._list: List[Tuple[str, str]] = []
        self.update(*args, **kwargs)

    # Collection methods

    def __contains__(self, key: object) -> bool:
        return isinstance(key, str) and key.lower() in self._dict

    def __iter__(self) -> Iterator[str]:
        return iter(self._dict)

    def __len__(self) -> int:
        return len(self._dict)

    # MutableMapping methods

    def __getitem__(self, key: str) -> str:
        value = self._dict[key.lower()]
        if len(value) == 1:
            return value[0]
        else:
            raise LookupError(f"Multiple values found for {key}")

    def __setitem__(self, key: str, value: str) -> None:
        self._dict.setdefault(key.lower(), []).append(value)
        self._list.append((key, value))

    def __delitem__(self, key: str) -> None:
        # Abstract in MutableMapping; drops every value of the name.
        key = key.lower()
        del self._dict[key]
        self._list = [(name, value) for name, value in self._list if name.lower() != key]

    def update(self, *args: HeadersLike, **kwargs: str) -> None:
        """
        Update from a :class:`Headers` instance and/or keyword arguments.

        """
        args = tuple(
            arg.raw_items() if isinstance(arg, Headers) else arg for arg in args
        )
        super().update(*args, **kwargs)

    # Methods for handling multiple values

    def get_all(self, key: str) -> List[str]:
        """
        Return the (possibly empty) list of all values for a header.

        Args:
            key: header name.

        """
        return self._dict.get(key.lower(), [])

    def raw_items(self) -> Iterator[Tuple[str, str]]:
        """
        Return an iterator of all values as ``(name, value)`` pairs.

        """
        return iter(self._list)


def write_request(writer: StreamWriter, path: str, headers: Headers) -> None:
    """
    Write an HTTP/1.1 GET request with ``headers`` and flush it.

    """
    writer.write_line(f"GET {path} HTTP/1.1")
    for key, value in headers.raw_items():
        writer.write_line(f"{key}: {value}")
    writer.write_line()
    writer.flush()


def read_response(reader: StreamReader) -> Tuple[int, str, Headers]:
    """
    Read an HTTP/1.1 response and return ``(status_code, reason, headers)``.

    :func:`read_response` doesn't attempt to read the response body because
    WebSocket handshake responses don't have one.

    Args:
        reader: input to read the response from

    Raises:
        ProtocolError: ``BadResponse`` if the response isn't well formatted,
            ``EmptyResponse`` if the connection is closed in the middle of it.

    """
    # https://www.rfc-editor.org/rfc/rfc7230.html#section-3.1.2

    status_line = reader.read_line()
    if not status_line:
        raise ProtocolError("BadResponse: wrong HTTP response status line")

    # The reason phrase is optional for lenient servers.
    parts = status_line.split(" ", 2)
    if len(parts) < 2:
        raise ProtocolError(f"BadResponse: invalid HTTP status line: {status_line}")
    version, raw_status_code = parts[0], parts[1]
    reason = parts[2] if len(parts) == 3 else ""

    if not version.startswith("HTTP/"):
        raise ProtocolError(f"BadResponse: unsupported HTTP version: {version}")
    if not _status_re.fullmatch(raw_status_code):
        raise ProtocolError(f"BadResponse: invalid HTTP status code: {raw_status_code}")
    status_code = int(raw_status_code)

    headers = read_headers(reader)

    return status_code, reason, headers


def read_headers(reader: StreamReader) -> Headers:
    """
    Read HTTP headers from ``reader`` until an empty line.

    """
    # https://www.rfc-editor.org/rfc/rfc7230.html#section-3.2

    # We don't attempt to support obsolete line folding.

    headers = Headers()
    for _ in range(MAX_HEADERS + 1):
        line = reader.read_line()
        if line == "":
            break

        try:
            name, value = line.split(":", 1)
        except ValueError:  # not enough values to unpack (expected 2, got 1)
            raise ProtocolError(f"BadResponse: invalid HTTP header line: {line}") from None
        if not _token_re.fullmatch(name):
            raise ProtocolError(f"BadResponse: invalid HTTP header name: {name}")
        headers[name] = value.strip(" \t")

    else:
        raise ProtocolError("BadResponse: too many HTTP headers")

    return headers
