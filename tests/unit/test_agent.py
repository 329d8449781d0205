"""Unit tests for the task façade and JSON extraction."""
from __future__ import annotations

import json
from typing import List

import pytest
from pydantic import BaseModel

from agent import ComputerUseAgent, build_structured_query, last_assistant_text, parse_json_response
from conftest import make_response, text_block
from config import ComputerUseConfig, ToolConfig
from exceptions import LLMResponseError, StructuredResultError
from message_types import assistant_message, user_message


class PageInfo(BaseModel):
    title: str
    links: int


@pytest.fixture
def computer_use_config(agent_config) -> ComputerUseConfig:
    return ComputerUseConfig(agent=agent_config, tools=ToolConfig(screenshot_delay=0))


def _agent(mock_page, config, client):
    return ComputerUseAgent(mock_page, config=config, client=client)


class TestParseJsonResponse:

    def test_fenced_block(self):
        text = 'Here you go:\n```json\n{"title": "Example Domain", "links": 1}\n```'
        assert parse_json_response(text) == {"title": "Example Domain", "links": 1}

    def test_fenced_block_between_prose(self):
        assert parse_json_response('Here:\n```json\n{"a":1}\n```\nthanks') == {"a": 1}

    def test_unlabelled_fence(self):
        assert parse_json_response("```\n[1, 2, 3]\n```") == [1, 2, 3]

    def test_braced_object_in_prose(self):
        text = 'The answer is {"title": "Example", "links": 2} as requested.'
        assert parse_json_response(text) == {"title": "Example", "links": 2}

    def test_whole_text(self):
        assert parse_json_response("  [\"a\", \"b\"]  ") == ["a", "b"]

    def test_falls_through_unparseable_fence(self):
        text = '```\nnot json\n```\n{"ok": true}'
        assert parse_json_response(text) == {"ok": True}

    def test_no_json(self):
        with pytest.raises(StructuredResultError) as exc_info:
            parse_json_response("I could not find it.")
        assert exc_info.value.raw_text == "I could not find it."


class TestHelpers:

    def test_structured_query_embeds_schema(self):
        schema = {"type": "object", "properties": {"title": {"type": "string"}}}
        query = build_structured_query("Read the title", schema)
        assert query.startswith("Read the title\n\n")
        assert json.dumps(schema, indent=2) in query
        assert query.endswith("Respond ONLY with the JSON object, no additional text.")

    def test_last_assistant_text(self):
        messages = [
            user_message("hi"),
            assistant_message([text_block("first")]),
            user_message([{"type": "tool_result", "tool_use_id": "t", "content": []}]),
            assistant_message([text_block("final "), {"type": "tool_use", "id": "x", "name": "computer", "input": {}}, text_block("answer")]),
        ]
        assert last_assistant_text(messages) == "final answer"

    def test_last_assistant_text_requires_reply(self):
        with pytest.raises(LLMResponseError):
            last_assistant_text([user_message("hi")])


class TestExecute:

    @pytest.mark.asyncio
    async def test_text_result(self, mock_page, computer_use_config, scripted_client):
        client = scripted_client(make_response([text_block("Example Domain")], "end_turn"))
        agent = _agent(mock_page, computer_use_config, client)

        assert await agent.execute("What is the title?") == "Example Domain"
        assert client.requests[0]["messages"][0] == user_message("What is the title?")

    @pytest.mark.asyncio
    async def test_structured_result(self, mock_page, computer_use_config, scripted_client):
        client = scripted_client(
            make_response([text_block('```json\n{"title": "Example Domain", "links": 1}\n```')], "end_turn")
        )
        agent = _agent(mock_page, computer_use_config, client)

        result = await agent.execute("Describe the page", PageInfo)

        assert result == PageInfo(title="Example Domain", links=1)
        sent = client.requests[0]["messages"][0]["content"]
        assert sent.startswith("Describe the page\n\n")
        assert '"title"' in sent

    @pytest.mark.asyncio
    async def test_structured_list_result(self, mock_page, computer_use_config, scripted_client):
        client = scripted_client(make_response([text_block('["a", "b"]')], "end_turn"))
        agent = _agent(mock_page, computer_use_config, client)

        assert await agent.execute("List the items", List[str]) == ["a", "b"]

    @pytest.mark.asyncio
    async def test_shape_mismatch(self, mock_page, computer_use_config, scripted_client):
        client = scripted_client(make_response([text_block('{"title": "Example Domain"}')], "end_turn"))
        agent = _agent(mock_page, computer_use_config, client)

        with pytest.raises(StructuredResultError) as exc_info:
            await agent.execute("Describe the page", PageInfo)
        assert exc_info.value.errors
        assert exc_info.value.raw_text == '{"title": "Example Domain"}'

    @pytest.mark.asyncio
    async def test_invalid_json(self, mock_page, computer_use_config, scripted_client):
        client = scripted_client(make_response([text_block("Sorry, no idea.")], "end_turn"))
        agent = _agent(mock_page, computer_use_config, client)

        with pytest.raises(StructuredResultError):
            await agent.execute("Describe the page", PageInfo)

    @pytest.mark.asyncio
    async def test_suffix_reaches_system_prompt(self, mock_page, computer_use_config, scripted_client):
        client = scripted_client(make_response([text_block("ok")], "end_turn"))
        agent = _agent(mock_page, computer_use_config, client)

        await agent.execute("hi", system_prompt_suffix="Answer in French.")

        assert client.requests[0]["system"][0]["text"].endswith("Answer in French.")

    def test_explicit_credentials_override_config(self, mock_page, computer_use_config, scripted_client):
        agent = ComputerUseAgent(
            mock_page,
            api_key="other-key",
            model="claude-3-7-sonnet-20250219",
            config=computer_use_config,
            client=scripted_client(),
        )
        assert agent.agent_config.api_key == "other-key"
        assert agent.agent_config.model == "claude-3-7-sonnet-20250219"
        assert computer_use_config.agent.api_key == "test-key"
