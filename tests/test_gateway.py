import pytest
from langchain_core.messages import AIMessage

from calchat.llm import gateway as gateway_module
from calchat.llm.gateway import GatewayError, LanguageModelGateway


class FakeChatModel:
    def __init__(self, reply=None, error=None):
        self.reply = reply
        self.error = error
        self.calls = []

    async def ainvoke(self, messages):
        self.calls.append(messages)
        if self.error:
            raise self.error
        return self.reply


@pytest.fixture
def built(monkeypatch):
    created = []

    def fake_init_chat_model(**kwargs):
        model = FakeChatModel(reply=AIMessage(content="hi there"))
        created.append((kwargs, model))
        return model

    monkeypatch.setattr(gateway_module, "init_chat_model", fake_init_chat_model)
    return created


@pytest.mark.asyncio
async def test_generate_returns_text_and_caches_model(built):
    gateway = LanguageModelGateway(model="gpt-4o-mini", provider="openai", api_key="sk-test")

    assert await gateway.generate("Hello", temperature=0.1) == "hi there"
    await gateway.generate("Again", temperature=0.1)
    await gateway.generate("Warmer", temperature=0.9)

    assert len(built) == 2
    kwargs, model = built[0]
    assert kwargs["model_provider"] == "openai"
    assert kwargs["temperature"] == 0.1
    assert kwargs["api_key"] == "sk-test"
    assert model.calls[0][0].content == "Hello"


@pytest.mark.asyncio
async def test_content_blocks_are_joined(monkeypatch):
    reply = AIMessage(content=[{"type": "text", "text": "a"}, {"type": "text", "text": "b"}])
    monkeypatch.setattr(gateway_module, "init_chat_model", lambda **kwargs: FakeChatModel(reply=reply))

    assert await LanguageModelGateway(api_key="").generate("x") == "ab"


@pytest.mark.asyncio
async def test_provider_failure_raises_gateway_error(monkeypatch):
    monkeypatch.setattr(
        gateway_module, "init_chat_model", lambda **kwargs: FakeChatModel(error=RuntimeError("429 Too Many Requests"))
    )
    gateway = LanguageModelGateway(api_key="")

    with pytest.raises(GatewayError, match="429"):
        await gateway.generate("x")
    assert await gateway.is_available() is False
