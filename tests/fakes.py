"""Test doubles for the aiohttp session and Telegram objects."""

import asyncio
from types import SimpleNamespace
from typing import Callable, Optional
from unittest.mock import AsyncMock, MagicMock

import aiohttp

from pipeline import PipelineContext


class FakeContent:
    def __init__(self, chunks):
        self._chunks = list(chunks)

    async def iter_chunked(self, size):
        for chunk in self._chunks:
            if isinstance(chunk, BaseException):
                raise chunk
            if isinstance(chunk, asyncio.Event):
                # stall the stream until the test sets the event
                await chunk.wait()
                continue
            yield chunk


class FakeResponse:
    def __init__(
        self,
        status: int = 200,
        json_data=None,
        text: str = "",
        headers: Optional[dict] = None,
        url: Optional[str] = None,
        chunks=(),
    ):
        self.status = status
        self._json = json_data
        self._text = text
        self.headers = headers or {}
        self.url = url
        self.content = FakeContent(chunks)

    async def json(self, content_type=None):
        return self._json

    async def text(self):
        return self._text

    def raise_for_status(self):
        if self.status >= 400:
            raise aiohttp.ClientResponseError(
                request_info=MagicMock(),
                history=(),
                status=self.status,
            )


class _RequestContext:
    def __init__(self, factory):
        self._factory = factory

    async def __aenter__(self):
        return self._factory()

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """
    Minimal stand-in for aiohttp.ClientSession.

    handler(method, url, kwargs) returns a FakeResponse or an exception
    instance to raise when the request context is entered.
    """

    def __init__(self, handler: Optional[Callable] = None):
        self.handler = handler or (lambda method, url, kwargs: FakeResponse(status=404))
        self.calls = []

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url, kwargs))

        def factory():
            result = self.handler(method, url, kwargs)
            if isinstance(result, BaseException):
                raise result
            return result

        return _RequestContext(factory)

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)

    def head(self, url, **kwargs):
        return self._request("HEAD", url, **kwargs)

    def calls_for(self, method):
        return [call for call in self.calls if call[0] == method]


def make_message(text: str, user_id: int = 42, username: Optional[str] = "alice",
                 chat_id: int = 1000, message_id: int = 7):
    """MagicMock shaped like telegram.Message."""
    message = MagicMock()
    message.text = text
    message.chat_id = chat_id
    message.chat.id = chat_id
    message.message_id = message_id
    message.from_user.id = user_id
    message.from_user.username = username
    message.from_user.full_name = "Alice Example"
    message.reply_text = AsyncMock()
    return message


def make_context(message) -> PipelineContext:
    return PipelineContext(update=SimpleNamespace(message=message), context=MagicMock())


def make_chat(status_message_id: int = 555):
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=status_message_id)
    chat.edit_message = AsyncMock()
    chat.delete_message = AsyncMock()
    chat.send_video = AsyncMock()
    return chat


async def no_sleep(delay):
    return None
