from types import SimpleNamespace

import pytest
from openai import OpenAIError

from sitequote.services import categorization
from sitequote.services.categorization import categorize_quotation
from sitequote.services.errors import ValidationFailure


class FakeOpenAI:
    """Stands in for the client; replies with ``reply`` or raises ``error``."""

    reply = '{"category": "Steel", "templateName": "steel-quotation"}'
    error = None
    calls = []

    def __init__(self, **kwargs):
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    def _create(self, **kwargs):
        FakeOpenAI.calls.append(kwargs)
        if FakeOpenAI.error is not None:
            raise FakeOpenAI.error
        message = SimpleNamespace(content=FakeOpenAI.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def fake_model(ctx, monkeypatch):
    ctx.config["OPENAI_API_KEY"] = "sk-test"
    FakeOpenAI.calls = []
    FakeOpenAI.error = None
    FakeOpenAI.reply = '{"category": "Steel", "templateName": "steel-quotation"}'
    monkeypatch.setattr(categorization, "OpenAI", FakeOpenAI)
    return FakeOpenAI


def test_keywords_without_api_key(ctx):
    result = categorize_quotation("50 bags OPC cement, free unloading", "Building material")
    assert result == {"category": "Cement", "template_name": "cement-quotation", "source": "keywords"}


def test_keywords_fall_back_to_requirement_category(ctx):
    result = categorize_quotation("Best price guaranteed", "Roofing Sheets")
    assert result["category"] == "Roofing Sheets"
    assert result["template_name"] == "roofing-sheets-quotation"

    assert categorize_quotation("Best price guaranteed")["category"] == categorization.DEFAULT_CATEGORY


def test_empty_text_is_rejected(ctx):
    with pytest.raises(ValidationFailure) as exc:
        categorize_quotation("   ", "Cement")
    assert exc.value.field == "quotation_text"


def test_uses_model_when_configured(fake_model):
    result = categorize_quotation("TMT rods 12mm, 2 tonnes", "Steel")
    assert result == {"category": "Steel", "template_name": "steel-quotation", "source": "model"}
    (call,) = fake_model.calls
    assert call["response_format"] == {"type": "json_object"}
    assert "TMT rods 12mm" in call["messages"][0]["content"]


def test_model_error_falls_back_to_keywords(fake_model):
    fake_model.error = OpenAIError("rate limited")
    result = categorize_quotation("PVC pipes and valves", "Plumbing")
    assert result["category"] == "Plumbing"
    assert result["source"] == "keywords"


def test_unusable_model_reply_falls_back(fake_model):
    fake_model.reply = "not json"
    assert categorize_quotation("Emulsion paint 20L", "Paint")["source"] == "keywords"

    fake_model.reply = '{"templateName": "x"}'
    assert categorize_quotation("Emulsion paint 20L", "Paint")["source"] == "keywords"


def test_categorize_endpoint(login, accounts):
    client = login(accounts["s1"]["email"])
    resp = client.post("/shop-owner/quotations/categorize",
                       json={"quotation_text": "Vitrified tiles 2x2", "requirement_category": "Flooring"})
    assert resp.status_code == 200
    assert resp.get_json()["category"] == "Tiles"

    resp = client.post("/shop-owner/quotations/categorize", json={})
    assert resp.status_code == 422
