from __future__ import annotations

import logging
import ssl
from typing import Any, Optional, Protocol, Tuple
from urllib.error import HTTPError, URLError
from urllib.request import HTTPSHandler, OpenerDirector, Request, build_opener

from webtoolkit.core.errors import PushError
from webtoolkit.core.json_exchange import encode_json

log = logging.getLogger("webtoolkit.client")


class Opener(Protocol):
    """Anything with urllib's OpenerDirector.open(request) signature."""

    def open(self, fullurl: Request, *args: Any, **kwargs: Any) -> Any: ...


def default_opener() -> OpenerDirector:
    """urllib opener with the default SSL context (verification ON)."""

    return build_opener(HTTPSHandler(context=ssl.create_default_context()))


def push_json_to_remote(uri: str, data: Any, opener: Optional[Opener] = None) -> Tuple[Any, int]:
    """POST data as JSON to uri and return (response, status_code).

    The supplied opener is used if given, else default_opener(). Timeouts
    and proxies belong to the opener.

    Non-2xx answers are returned, not raised: the HTTPError object is itself
    a readable response.

    The caller owns the returned response and must close it.

    Raises:
    - PayloadEncodeError if data cannot be serialized
    - PushError on transport failures (DNS, refused connection, TLS)

    """

    body = encode_json(data)
    client = opener if opener is not None else default_opener()
    try:
        req = Request(url=uri, data=body, method="POST")
        req.add_header("Content-Type", "application/json")
        resp = client.open(req)
    except HTTPError as e:
        log.info("push_json_http_error", extra={"status_code": e.code})
        return e, int(e.code)
    except (URLError, OSError, ValueError) as e:
        raise PushError(f"cannot push JSON to remote: {e}") from e

    status = int(getattr(resp, "status", None) or resp.getcode())
    return resp, status
