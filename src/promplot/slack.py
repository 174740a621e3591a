"""Posting charts to a Slack channel through the Web API.

A short notice is posted first; its response carries the channel id that
the file upload then targets. Uploads use the external upload flow:
reserve an upload URL, send the bytes, then complete the upload into the
channel.
"""

from pathlib import Path
from typing import Any, Optional

import requests

from .env import get_config
from .errors import SinkError
from . import log

NOTICE_TEMPLATE = "Prometheus plot: {title}"


class _APIError(Exception):
    """Slack answered with ok=false."""


def _call(method: str, token: str, timeout: float, **kwargs: Any) -> dict[str, Any]:
    """Call a Web API method and return its decoded response."""
    url = f"{get_config().slack_api_url.rstrip('/')}/{method}"
    response = requests.post(
        url,
        headers={"Authorization": f"Bearer {token}"},
        timeout=timeout,
        **kwargs,
    )
    response.raise_for_status()
    body = response.json()
    if not isinstance(body, dict):
        raise _APIError(f"unexpected response from {method}")
    if not body.get("ok"):
        raise _APIError(body.get("error", "unknown error"))
    return body


def post_message(token: str, channel: str, text: str, timeout: Optional[float] = None) -> str:
    """Post a text message and return the id of the channel it landed in."""
    if timeout is None:
        timeout = get_config().http_timeout_s
    try:
        body = _call(
            "chat.postMessage", token, timeout,
            json={"channel": channel, "text": text},
        )
    except (requests.RequestException, ValueError, _APIError) as e:
        raise SinkError(f"failed to post message: {e}") from e
    return body.get("channel") or channel


def upload_file(
    token: str,
    channel_id: str,
    source: Path,
    title: str,
    filename: str,
    timeout: Optional[float] = None,
) -> str:
    """Upload a file into a channel and return the Slack file id."""
    if timeout is None:
        timeout = get_config().http_timeout_s
    try:
        content = source.read_bytes()
        reserved = _call(
            "files.getUploadURLExternal", token, timeout,
            data={"filename": filename, "length": str(len(content))},
        )
        upload = requests.post(reserved["upload_url"], data=content, timeout=timeout)
        upload.raise_for_status()
        _call(
            "files.completeUploadExternal", token, timeout,
            json={
                "files": [{"id": reserved["file_id"], "title": title}],
                "channel_id": channel_id,
            },
        )
    except (OSError, KeyError, ValueError, _APIError) as e:
        # requests.RequestException is an OSError
        raise SinkError(f"failed to upload file: {e}") from e
    return reserved["file_id"]


def post_to_slack(token: str, channel: str, source: Path, title: str, filename: str) -> None:
    """Announce the chart in `channel` and attach the staged image file.

    The notice is not retracted if the upload fails.

    Raises:
        SinkError: If either the message or the upload fails
    """
    channel_id = post_message(token, channel, NOTICE_TEMPLATE.format(title=title))
    log.debug(f"Posted notice to {channel} ({channel_id})")
    file_id = upload_file(token, channel_id, source, title, filename)
    log.debug(f"Uploaded {filename} as {file_id}")
