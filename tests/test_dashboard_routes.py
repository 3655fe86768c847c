"""
Tests for the dashboard API: tools, generation, exports, content and language
"""

import sys
from pathlib import Path
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).parent.parent))

from idealab.auth import UserInfo
from idealab.dashboard import app, get_functions_client, require_auth
from idealab.i18n import translate

PROFILE = {"plan": "entrepreneur", "credits": 15, "first_analysis_done": True, "language": "en"}

IDEA = {"id": "idea-1", "title": "Pet Sitter", "description": "Vetted local pet sitters"}

CONTENT = [
    {"id": "c1", "title": "Pitch Deck - Pet Sitter", "content_type": "pitch-deck",
     "content_data": {"slides": [{"title": "Problem", "content": "Lonely pets"}]}},
    {"id": "c2", "title": "Market Analysis - Bakery", "content_type": "market-analysis",
     "content_data": {"marketSize": "USD 5M", "trends": ["artisan"]}},
]


class RecordingFunctions:
    def __init__(self, response):
        self.response = response
        self.invocations = []
        self.deductions = []

    async def invoke(self, name, body):
        self.invocations.append((name, body))
        return self.response

    async def deduct_credits_and_log(self, **kwargs):
        self.deductions.append(kwargs)
        return 11


async def mock_require_auth():
    return UserInfo(uid="dash-user", email="dash@example.com", access_token="token")


async def mock_get_profile(user_id):
    return dict(PROFILE, uid=user_id)


@pytest.fixture
def client():
    app.dependency_overrides[require_auth] = mock_require_auth
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def functions():
    fake = RecordingFunctions({"analysis": {"marketSize": "USD 1B"}})
    app.dependency_overrides[get_functions_client] = lambda: fake
    return fake


def test_user_status(client):
    with patch("idealab.dashboard.db.get_profile", side_effect=mock_get_profile):
        response = client.get("/api/user/status")
    assert response.status_code == 200
    data = response.json()
    assert data["plan"] == "entrepreneur"
    assert data["credits"] == 15
    assert data["plan_credits"] == {"initial": 50, "monthly": 50}


def test_plans_are_public(client):
    data = client.get("/api/plans").json()
    assert [plan["id"] for plan in data["plans"]] == ["free", "entrepreneur", "business"]
    assert data["feature_costs"]["pitch-deck"] == 10


def test_tool_list_reports_cost_and_affordability(client):
    with patch("idealab.dashboard.db.get_profile", side_effect=mock_get_profile):
        response = client.get("/api/tools?lang=en")
    assert response.status_code == 200
    tools = {tool["id"]: tool for tool in response.json()["tools"]}
    assert len(tools) == 28
    assert tools["pitch-deck"]["cost"] == 10
    assert tools["pitch-deck"]["affordable"] is True
    assert tools["landing-page-generator"]["affordable"] is False
    assert tools["cac-ltv"]["name"] == "CAC/LTV Calculator"


def test_tool_list_by_category(client):
    with patch("idealab.dashboard.db.get_profile", side_effect=mock_get_profile):
        marketing = client.get("/api/tools?category=marketing").json()["tools"]
        bad = client.get("/api/tools?category=astrology")
    assert {tool["category"] for tool in marketing} == {"marketing"}
    assert bad.status_code == 400


def test_tool_detail_and_unknown_tool(client):
    with patch("idealab.dashboard.db.get_profile", side_effect=mock_get_profile):
        detail = client.get("/api/tools/invoice-generator")
        unknown = client.get("/api/tools/logo-generator")
    assert detail.status_code == 200
    tool = detail.json()["tool"]
    assert tool["idea_input"] is False
    assert "client_name" in [option["name"] for option in tool["options"]]
    assert unknown.status_code == 404


def test_generate_success(client, functions):
    async def mock_get_idea(user_id, idea_id):
        return dict(IDEA)

    async def mock_save(*args, **kwargs):
        return "content-9"

    with patch("idealab.dashboard.db.get_profile", side_effect=mock_get_profile), \
         patch("idealab.dashboard.db.get_idea", side_effect=mock_get_idea), \
         patch("idealab.dashboard.db.save_generated_content", side_effect=mock_save):
        response = client.post("/api/tools/market-analysis/generate", json={"idea_id": "idea-1"})

    assert response.status_code == 200
    result = response.json()["result"]
    assert result["status"] == "generated"
    assert result["result"] == {"marketSize": "USD 1B"}
    assert result["credits_remaining"] == 11
    assert result["content_id"] == "content-9"
    assert functions.invocations[0][0] == "generate-market-analysis"


def test_generate_blank_idea_makes_no_calls(client, functions):
    with patch("idealab.dashboard.db.get_profile", side_effect=mock_get_profile):
        response = client.post("/api/tools/market-analysis/generate",
                               json={"use_custom_idea": True, "custom_idea": ""})
    assert response.status_code == 400
    assert response.json()["result"]["notices"][0]["level"] == "error"
    assert functions.invocations == []
    assert functions.deductions == []


def test_generate_without_credits_is_402(client, functions):
    async def poor_profile(user_id):
        return dict(PROFILE, credits=1)

    with patch("idealab.dashboard.db.get_profile", side_effect=poor_profile):
        response = client.post("/api/tools/pitch-deck/generate?lang=pt", json={"idea_id": "idea-1"})
    assert response.status_code == 402
    notice = response.json()["result"]["notices"][0]["message"]
    assert notice == translate("tools.notEnoughCredits", "pt", cost=10)
    assert functions.deductions == []


def test_export_in_memory_result(client):
    result = {"cac": 40, "ltv": 300, "recommendations": ["Referrals"]}
    response = client.post("/api/tools/cac-ltv/export",
                           json={"title": "Pet Sitter", "result": result, "format": "txt"})
    assert response.status_code == 200
    assert 'filename="cac_ltv_pet_sitter.txt"' in response.headers["content-disposition"]
    for label in ["Cac", "Ltv", "Recommendations", "Referrals"]:
        assert label in response.text

    bad = client.post("/api/tools/cac-ltv/export", json={"result": result, "format": "docx"})
    assert bad.status_code == 400


def test_clipboard(client):
    response = client.post("/api/tools/business-name-generator/clipboard?lang=en",
                           json={"result": "PawPal"})
    assert response.json() == {"status": "success", "text": "PawPal", "message": translate("tools.copied", "en")}


def test_ideas(client):
    async def mock_list_ideas(user_id):
        assert user_id == "dash-user"
        return [dict(IDEA)]

    with patch("idealab.dashboard.db.list_ideas", side_effect=mock_list_ideas):
        response = client.get("/api/ideas")
    assert response.json()["ideas"][0]["title"] == "Pet Sitter"


def test_content_search_and_filter(client):
    seen = {}

    async def mock_list_content(user_id, content_type=None):
        seen["content_type"] = content_type
        return [dict(item) for item in CONTENT]

    with patch("idealab.dashboard.db.list_generated_content", side_effect=mock_list_content):
        response = client.get("/api/content?search=BAKERY&content_type=market-analysis")
    data = response.json()
    assert seen["content_type"] == "market-analysis"
    assert [item["id"] for item in data["items"]] == ["c2"]


def test_content_detail_delete_and_export(client):
    async def mock_get_content(user_id, content_id):
        return next((dict(item) for item in CONTENT if item["id"] == content_id), None)

    async def mock_delete(user_id, content_id):
        return content_id == "c1"

    with patch("idealab.dashboard.db.get_generated_content", side_effect=mock_get_content), \
         patch("idealab.dashboard.db.delete_generated_content", side_effect=mock_delete):
        assert client.get("/api/content/c1").status_code == 200
        assert client.get("/api/content/nope").status_code == 404

        exported = client.get("/api/content/c1/export?format=txt")
        assert exported.status_code == 200
        assert "pitch_deck_pitch_deck_-_pet_sitter.txt" in exported.headers["content-disposition"]
        assert "Slide 1: Problem" in exported.text

        as_json = client.get("/api/content/c2/export?format=json")
        assert as_json.json() == CONTENT[1]["content_data"]
        assert client.get("/api/content/c2/export?format=pdf").status_code == 400

        assert client.delete("/api/content/c1").status_code == 200
        assert client.delete("/api/content/c2").status_code == 404


def test_language_switch_changes_strings(client):
    english = client.get("/api/i18n/en").json()["strings"]
    portuguese = client.get("/api/i18n/pt-BR").json()
    assert portuguese["language"] == "pt"
    assert english["tools"]["copied"] != portuguese["strings"]["tools"]["copied"]

    saved = {}

    async def mock_save_language(user_id, language):
        saved[user_id] = language

    with patch("idealab.dashboard.db.save_language_preference", side_effect=mock_save_language):
        response = client.post("/api/settings/language", json={"language": "en-US"})
        unsupported = client.post("/api/settings/language", json={"language": "klingon"})

    assert response.status_code == 200
    assert saved == {"dash-user": "en"}
    assert response.json()["message"] == translate("settings.languageSaved", "en")
    assert unsupported.status_code == 400


def test_export_title_outside_latin1_and_with_quotes(client):
    result = {"cac": 40, "ltv": 300}

    response = client.post("/api/tools/cac-ltv/export",
                           json={"title": "Café ☕ 東京", "result": result, "format": "json"})
    assert response.status_code == 200
    disposition = response.headers["content-disposition"]
    assert 'filename="cac_ltv_cafe__.json"' in disposition
    assert "filename*=UTF-8''cac_ltv_caf%C3%A9_%E2%98%95_%E6%9D%B1%E4%BA%AC.json" in disposition
    assert response.json() == result

    quoted = client.post("/api/tools/cac-ltv/export",
                         json={"title": 'My "best" idea', "result": result, "format": "txt"})
    assert quoted.status_code == 200
    disposition = quoted.headers["content-disposition"]
    assert 'filename="cac_ltv_my_best_idea.txt";' in disposition
    assert "filename*=UTF-8''cac_ltv_my_%22best%22_idea.txt" in disposition
