from __future__ import annotations

import contextlib
import http.client
import logging
from urllib.error import HTTPError
from urllib.request import Request, urlopen

from .exceptions import NetworkError

logger = logging.getLogger(__name__)

UA = (
    "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/126.0.0.0 Safari/537.36"
)

DEFAULT_TIMEOUT = 30.0


def fetch(url: str, *, timeout: float = DEFAULT_TIMEOUT) -> str:
    """Fetch URL text as UTF-8.

    No retries. Error statuses are not filtered: the body of a 4xx/5xx
    response is returned like any other page.
    """
    logger.debug("GET %s", url)
    try:
        req = Request(url, headers={"User-Agent": UA})
        with contextlib.closing(urlopen(req, timeout=timeout)) as resp:
            data = resp.read()
    except HTTPError as e:
        logger.debug("HTTP %s for %s", e.code, url)
        try:
            data = e.read()
        except (OSError, http.client.HTTPException) as read_err:
            raise NetworkError(url, read_err) from read_err
        finally:
            e.close()
    except (OSError, http.client.HTTPException, ValueError) as e:
        # URLError, timeouts and refused connections are OSError; bad status lines and
        # truncated bodies are HTTPException; malformed URLs are ValueError
        raise NetworkError(url, e) from e
    return data.decode("utf-8", errors="ignore")
