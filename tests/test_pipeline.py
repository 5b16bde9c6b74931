import os
import sys
import unittest
from pathlib import Path
from unittest.mock import MagicMock, patch

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

from pipeline import MessagePipeline, PipelineContext, PipelineHandler, configure_handlers
from tests.fakes import make_message


class RecordingHandler(PipelineHandler):
    def __init__(self, name, log, priority=50, stop=False, fail=False, handler_name=None):
        super().__init__(name)
        self.HANDLER_NAME = handler_name
        self.priority = priority
        self.log = log
        self.stop = stop
        self.fail = fail

    async def process(self, ctx: PipelineContext) -> None:
        self.log.append(self.name)
        if self.fail:
            raise RuntimeError("handler exploded")
        if self.stop:
            ctx.stop()


def make_update(text="hello"):
    update = MagicMock()
    update.message = make_message(text)
    return update


class MessagePipelineTests(unittest.IsolatedAsyncioTestCase):
    async def test_stop_prevents_later_handlers(self) -> None:
        log = []
        pipeline = MessagePipeline()
        pipeline.add_handler(RecordingHandler("first", log, stop=True))
        pipeline.add_handler(RecordingHandler("second", log))

        ctx = await pipeline.run(make_update(), MagicMock())

        self.assertEqual(log, ["first"])
        self.assertFalse(ctx.should_continue)

    async def test_error_stops_pipeline(self) -> None:
        log = []
        pipeline = MessagePipeline()
        pipeline.add_handler(RecordingHandler("broken", log, fail=True))
        pipeline.add_handler(RecordingHandler("after", log))

        await pipeline.run(make_update(), MagicMock())
        self.assertEqual(log, ["broken"])

    async def test_context_user_fields(self) -> None:
        update = make_update()
        ctx = PipelineContext(update=update, context=MagicMock())
        self.assertEqual(ctx.user_id, 42)
        self.assertEqual(ctx.username, "@alice")

        update.message.from_user.username = None
        self.assertEqual(ctx.username, "Alice Example")


class ConfigureHandlersTests(unittest.TestCase):
    def test_sorted_by_priority(self) -> None:
        log = []
        handlers = configure_handlers([
            RecordingHandler("low", log, priority=10),
            RecordingHandler("high", log, priority=90),
        ])
        self.assertEqual([h.name for h in handlers], ["high", "low"])

    def test_env_overrides(self) -> None:
        log = []
        env = {"LOW_HANDLER_PRIORITY": "99", "GONE_HANDLER_ENABLED": "false"}
        with patch.dict(os.environ, env):
            handlers = configure_handlers([
                RecordingHandler("low", log, priority=10, handler_name="LOW_HANDLER"),
                RecordingHandler("high", log, priority=90, handler_name="HIGH_HANDLER"),
                RecordingHandler("gone", log, priority=50, handler_name="GONE_HANDLER"),
            ])
        self.assertEqual([h.name for h in handlers], ["low", "high"])
        self.assertEqual(handlers[0].priority, 99)


if __name__ == "__main__":
    unittest.main()
