"""
Tests for AI-assisted rule generation.
"""

import json

import pytest
import pytest_asyncio

from replybot.auto_reply import DispatchQueue, RateLimiter, RetryController
from replybot.errors import ExhaustedRetriesError, ValidationError
from replybot.result import Err, Ok
from replybot.rules import MatchMode, RuleExample, RuleGenerator, RuleScope
from replybot.rules.generator import build_prompt, parse_rule_json

from fakes import FakeBackend, FakeClock, RecordingSleep, backend_down


EXAMPLES = [
    RuleExample(message="what time do you open?", response="We open at 9am, {sender}."),
    RuleExample(message="when do you open", response="We open at 9am, {sender}."),
]


@pytest_asyncio.fixture
async def make_generator(rule_store):
    queues = []

    def factory(script):
        clock = FakeClock()
        sleep = RecordingSleep(clock)
        backend = FakeBackend(script)
        queue = DispatchQueue(
            RateLimiter(min_interval=10, clock=clock, sleep=sleep),
            RetryController(backend, sleep=sleep),
        )
        queues.append(queue)
        return RuleGenerator(rule_store, queue), backend

    yield factory
    for queue in queues:
        await queue.close()


class TestParsing:
    """Tests for prompt building and reply parsing."""

    def test_prompt_lists_examples(self):
        prompt = build_prompt(EXAMPLES)

        assert 'Example 1:\nMessage: "what time do you open?"' in prompt
        assert 'Example 2:\nMessage: "when do you open"' in prompt
        assert "{sender}, {message}, {time}" in prompt

    def test_plain_json(self):
        assert parse_rule_json('{"pattern": "a", "response": "b"}') == {"pattern": "a", "response": "b"}

    def test_json_in_code_fence(self):
        text = 'Here you go:\n```json\n{"pattern": "a*", "response": "b"}\n```'
        assert parse_rule_json(text) == {"pattern": "a*", "response": "b"}

    def test_no_json(self):
        assert parse_rule_json("I could not think of a rule.") is None
        assert parse_rule_json("[1, 2]") is None


class TestRuleGenerator:
    """Tests for RuleGenerator.generate."""

    @pytest.mark.asyncio
    async def test_generates_and_stores_rule(self, make_generator, rule_store):
        reply = json.dumps({
            "pattern": "*open*",
            "response": "We open at 9am, {sender}.",
            "regex": False,
            "exact": False,
            "caseSensitive": False,
        })
        generator, backend = make_generator([reply])

        result = await generator.generate(EXAMPLES, RuleScope.GROUP, group_id="shop@g.us")

        assert isinstance(result, Ok)
        rule = result.value
        assert rule.pattern == "*open*"
        assert rule.match_mode == MatchMode.WILDCARD
        assert rule.scope == RuleScope.GROUP
        assert rule.group_id == "shop@g.us"
        assert rule_store.get(rule.id) == rule
        assert "what time do you open?" in backend.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_regex_and_case_flags(self, make_generator):
        reply = 'Sure! {"pattern": "^(when|what time).*open", "response": "9am", "regex": true, "caseSensitive": true}'
        generator, _ = make_generator([reply])

        rule = (await generator.generate(EXAMPLES, "private")).value

        assert rule.match_mode == MatchMode.REGEX
        assert rule.case_sensitive is True

    @pytest.mark.asyncio
    async def test_exact_flag(self, make_generator):
        generator, _ = make_generator(['{"pattern": "menu", "response": "Here it is", "exact": true}'])

        rule = (await generator.generate(EXAMPLES, "global")).value
        assert rule.match_mode == MatchMode.EXACT

    @pytest.mark.asyncio
    async def test_requires_examples(self, make_generator, rule_store):
        generator, backend = make_generator([])

        result = await generator.generate([], "global")

        assert isinstance(result.error, ValidationError)
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_unparseable_reply(self, make_generator, rule_store):
        generator, _ = make_generator(["no idea, sorry"])

        result = await generator.generate(EXAMPLES, "global")

        assert isinstance(result, Err)
        assert isinstance(result.error, ValidationError)
        assert rule_store.list() == []

    @pytest.mark.asyncio
    async def test_missing_fields(self, make_generator):
        generator, _ = make_generator(['{"pattern": "*open*"}'])

        result = await generator.generate(EXAMPLES, "global")
        assert isinstance(result.error, ValidationError)

    @pytest.mark.asyncio
    async def test_group_scope_validated_by_store(self, make_generator):
        generator, _ = make_generator(['{"pattern": "*open*", "response": "9am"}'])

        result = await generator.generate(EXAMPLES, "group")
        assert isinstance(result.error, ValidationError)

    @pytest.mark.asyncio
    async def test_backend_failure(self, make_generator):
        generator, _ = make_generator([backend_down()] * 3)

        result = await generator.generate(EXAMPLES, "global")
        assert isinstance(result.error, ExhaustedRetriesError)

    @pytest.mark.asyncio
    async def test_accepts_tuples(self, make_generator):
        generator, backend = make_generator(['{"pattern": "menu", "response": "Here it is"}'])

        result = await generator.generate([("menu please", "Here it is")], "global")

        assert isinstance(result, Ok)
        assert 'Message: "menu please"' in backend.calls[0]["prompt"]
