"""Tests for the LLM provider clients, with the network clients stubbed out."""

import asyncio
import io
import json
from types import SimpleNamespace

import pytest

from config.settings import Settings
from llm.providers import BedrockProvider, OpenAIProvider, create_provider


class FakeCompletions:
    def __init__(self, content="", error=None):
        self.content = content
        self.error = error
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error:
            raise self.error
        message = SimpleNamespace(content=self.content)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class FakeBedrockClient:
    def __init__(self, payload):
        self.payload = payload
        self.calls = []

    def invoke_model(self, **kwargs):
        self.calls.append(kwargs)
        return {"body": io.BytesIO(json.dumps(self.payload).encode())}


def _openai(completions):
    provider = OpenAIProvider(api_key="sk-test", max_tokens=300, temperature=0.2)
    provider._async_client = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return provider


class TestOpenAIProvider:
    def test_agenerate(self):
        completions = FakeCompletions(content="  {\"summary\": \"ok\"}  ")
        provider = _openai(completions)

        text = asyncio.run(provider.agenerate("Summarise this lead", system="You are an analyst"))

        assert text == "{\"summary\": \"ok\"}"
        call = completions.calls[0]
        assert call["max_tokens"] == 300
        assert call["temperature"] == 0.2
        assert call["messages"] == [
            {"role": "system", "content": "You are an analyst"},
            {"role": "user", "content": "Summarise this lead"},
        ]

    def test_empty_content(self):
        provider = _openai(FakeCompletions(content=None))
        assert asyncio.run(provider.agenerate("Summarise this lead")) == ""

    def test_errors_propagate(self):
        provider = _openai(FakeCompletions(error=RuntimeError("rate limited")))
        with pytest.raises(RuntimeError):
            asyncio.run(provider.agenerate("Summarise this lead"))


class TestBedrockProvider:
    def test_agenerate(self):
        provider = BedrockProvider(region="eu-west-2", max_tokens=400)
        client = FakeBedrockClient({"content": [{"type": "text", "text": " Call today. "}]})
        provider._client = client

        text = asyncio.run(provider.agenerate("Summarise this lead", system="You are an analyst"))

        assert text == "Call today."
        body = json.loads(client.calls[0]["body"])
        assert body["anthropic_version"] == "bedrock-2023-05-31"
        assert body["max_tokens"] == 400
        assert body["system"] == "You are an analyst"
        assert body["messages"][0]["content"][0]["text"] == "Summarise this lead"

    def test_empty_response(self):
        provider = BedrockProvider(region="eu-west-2")
        provider._client = FakeBedrockClient({"content": []})
        assert provider.generate("Summarise this lead") == ""


class TestCreateProvider:
    def test_none(self):
        assert create_provider(Settings(llm_provider="none")) is None

    def test_openai(self):
        settings = Settings(llm_provider="openai", openai_api_key="sk-test", openai_llm_model="gpt-4o-mini")
        provider = create_provider(settings)
        assert isinstance(provider, OpenAIProvider)
        assert provider.model_id == "gpt-4o-mini"

    def test_bedrock(self):
        provider = create_provider(Settings(llm_provider="bedrock", aws_region="eu-west-2"))
        assert isinstance(provider, BedrockProvider)
        assert provider.region == "eu-west-2"
