import json
import unittest

from fakes import FakeDetector, FakeProvider, ManualClock
from translator.emoji_dictionary import translate_to_emojis
from translator.pipeline import PipelineState, TranslationPipeline, recover_text, scrub_surrogates
from translator.rate_limiter import SlidingWindowRateLimiter


def _body(payload) -> bytes:
    return json.dumps(payload).encode("utf-8")


class TestRecoverText(unittest.TestCase):
    def test_truncated_json(self):
        self.assertEqual(recover_text(b'{"text": "I love piz'), "I love piz")

    def test_escapes_are_decoded(self):
        self.assertEqual(recover_text(b'{"text": "say \\"hi\\"'), 'say "hi"')

    def test_nothing_recoverable(self):
        self.assertIsNone(recover_text(b"not json at all"))
        self.assertIsNone(recover_text(b'{"text": {"nested": 1}}'))

    def test_lone_surrogate_escape_is_replaced(self):
        recovered = recover_text(b'{"text": "hi \\ud800 pizza')
        self.assertNotIn("\ud800", recovered)
        recovered.encode("utf-8")


class TestScrubSurrogates(unittest.TestCase):
    def test_lone_surrogates_become_replacement_characters(self):
        self.assertEqual(scrub_surrogates("a\ud800"), "a\ufffd")
        self.assertEqual(scrub_surrogates("\udfff"), "\ufffd")

    def test_regular_text_is_untouched(self):
        self.assertEqual(scrub_surrogates("I ❤️ 🍕 ünïcode"), "I ❤️ 🍕 ünïcode")


class TestTranslationPipeline(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.clock = ManualClock()
        self.limiter = SlidingWindowRateLimiter(max_requests=3, window_ms=60_000, clock=self.clock)
        self.openai = FakeProvider("openai", reply="🇫🇷❤️🍕")
        self.gemini = FakeProvider("gemini", reply="❤️🍕")
        self.detector = FakeDetector("en")

    def _pipeline(self, default_provider="gemini") -> TranslationPipeline:
        return TranslationPipeline(
            rate_limiter=self.limiter,
            detector=self.detector,
            providers={"openai": self.openai, "gemini": self.gemini},
            default_provider=default_provider,
        )

    async def test_english_text_is_translated_by_gemini(self):
        result = await self._pipeline().run("client", _body({"text": "I love pizza"}))

        self.assertEqual(result.state, PipelineState.REMOTE_SUCCEEDED)
        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.payload, {"output": "❤️🍕", "source": "ai", "provider": "gemini"})
        self.assertEqual(result.lang, "en")
        prompt = self.gemini.calls[0]["prompt"]
        self.assertTrue(prompt.endswith("Text: I love pizza"))
        self.assertEqual(self.gemini.calls[0]["temperature"], 0.9)
        self.assertEqual(self.gemini.calls[0]["max_tokens"], 75)
        self.assertEqual(self.openai.calls, [])

    async def test_other_language_is_translated_by_openai(self):
        self.detector.code = "fr"
        result = await self._pipeline().run("client", _body({"text": "J'adore la pizza"}))

        self.assertEqual(result.payload["provider"], "openai")
        self.assertEqual(result.payload["source"], "ai")

    async def test_detection_failure_uses_default_provider(self):
        self.detector.code = None
        result = await self._pipeline(default_provider="openai").run(
            "client", _body({"text": "hola"})
        )

        self.assertEqual(result.state, PipelineState.REMOTE_SUCCEEDED)
        self.assertEqual(result.provider, "openai")
        self.assertIsNone(result.lang)

    async def test_remote_error_falls_back_to_local(self):
        self.gemini.error = RuntimeError("quota exceeded")
        result = await self._pipeline().run("client", _body({"text": "I love pizza"}))

        self.assertEqual(result.state, PipelineState.REMOTE_FAILED_OR_EMPTY)
        self.assertEqual(result.status_code, 200)
        self.assertEqual(
            result.payload,
            {"output": "i ❤️ 🍕", "source": "local", "provider": "gemini", "error": "ai_failed"},
        )

    async def test_blank_completion_falls_back_to_local(self):
        self.gemini.reply = "  \n "
        result = await self._pipeline().run("client", _body({"text": "happy birthday"}))

        self.assertEqual(result.state, PipelineState.REMOTE_FAILED_OR_EMPTY)
        self.assertEqual(result.payload["output"], "😊 🎂")
        self.assertEqual(result.source, "local")

    async def test_input_is_truncated_everywhere(self):
        text = "pizza " * 30
        truncated = text[:100]
        self.gemini.error = RuntimeError("down")

        result = await self._pipeline().run("client", _body({"text": text}))

        self.assertEqual(self.detector.texts, [truncated])
        self.assertTrue(self.gemini.calls[0]["prompt"].endswith("Text: " + truncated))
        self.assertEqual(result.payload["output"], translate_to_emojis(truncated))

    async def test_blank_text_is_rejected(self):
        for payload in ({"text": ""}, {"text": "   "}, {}, {"text": None}):
            result = await self._pipeline().run("client-" + str(len(payload)), _body(payload))
            self.assertEqual(result.state, PipelineState.INVALID_INPUT)
            self.assertEqual(result.status_code, 400)
            self.assertEqual(result.payload, {"error": "Missing text"})
        self.assertEqual(self.gemini.calls, [])

    async def test_whitespace_beyond_cap_is_missing_text(self):
        result = await self._pipeline().run("client", _body({"text": " " * 100 + "pizza"}))
        self.assertEqual(result.state, PipelineState.INVALID_INPUT)

    async def test_numeric_text_is_accepted(self):
        result = await self._pipeline().run("client", _body({"text": 42}))
        self.assertEqual(result.state, PipelineState.REMOTE_SUCCEEDED)
        self.assertTrue(self.gemini.calls[0]["prompt"].endswith("Text: 42"))

    async def test_fourth_request_is_rate_limited(self):
        pipeline = self._pipeline()
        for _ in range(3):
            result = await pipeline.run("client", _body({"text": "hi"}))
            self.assertEqual(result.status_code, 200)

        result = await pipeline.run("client", _body({"text": "hi"}))

        self.assertEqual(result.state, PipelineState.RATE_REJECTED)
        self.assertEqual(result.status_code, 429)
        self.assertEqual(result.payload, {"error": "rate_limited"})
        self.assertEqual(result.headers, {"Retry-After": "60"})
        self.assertTrue(result.rate_limited)
        self.assertEqual(result.provider, "n/a")
        self.assertEqual(len(self.gemini.calls), 3)

    async def test_rate_limit_applies_before_parsing(self):
        pipeline = self._pipeline()
        for _ in range(3):
            await pipeline.run("client", b"garbage")
        result = await pipeline.run("client", _body({"text": "hi"}))
        self.assertEqual(result.status_code, 429)

    async def test_malformed_body_recovers_partial_text(self):
        result = await self._pipeline().run("client", b'{"text": "I love pizza')

        self.assertEqual(result.state, PipelineState.TOTAL_FAILURE)
        self.assertEqual(result.status_code, 200)
        self.assertEqual(
            result.payload,
            {"output": "i ❤️ 🍕", "source": "local", "provider": "n/a", "error": "ai_failed"},
        )
        self.assertEqual(self.gemini.calls, [])

    async def test_unrecoverable_body_is_invalid_request(self):
        for body in (b"", b"not json", b"[1, 2]", b'{"text": ["a"]}'):
            result = await self._pipeline().run("client-" + str(len(body)), body)
            self.assertEqual(result.state, PipelineState.TOTAL_FAILURE)
            self.assertEqual(result.status_code, 400)
            self.assertEqual(result.payload, {"error": "Invalid request"})

    async def test_lone_surrogate_bodies_still_translate_locally(self):
        bodies = (b'{"text": "hi \\ud800 pizza"}', b'{"text": "hi \\ud800 pizza')
        self.gemini.error = RuntimeError("down")
        for index, body in enumerate(bodies):
            result = await self._pipeline().run(f"client-{index}", body)

            self.assertEqual(result.status_code, 200)
            self.assertEqual(result.source, "local")
            output = result.payload["output"]
            self.assertIn("🍕", output)
            self.assertNotIn("\ud800", output)
            json.dumps(result.payload, ensure_ascii=False).encode("utf-8")

    async def test_unexpected_step_error_degrades_to_local(self):
        class BrokenDetector:
            async def detect(self, text):
                raise RuntimeError("detector bug")

        pipeline = TranslationPipeline(
            rate_limiter=self.limiter,
            detector=BrokenDetector(),
            providers={"openai": self.openai, "gemini": self.gemini},
        )

        result = await pipeline.run("client", _body({"text": "coffee time"}))

        self.assertEqual(result.state, PipelineState.TOTAL_FAILURE)
        self.assertEqual(result.status_code, 200)
        self.assertEqual(result.payload["output"], "☕ ⏰")
        self.assertEqual(result.payload["source"], "local")


if __name__ == "__main__":
    unittest.main()
