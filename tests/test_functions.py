"""Tests for the FastAPI request handlers."""

import pytest
from fastapi.testclient import TestClient

import emails
import functions
from fake_supabase import FakeSupabase

VELD = {"id": 3, "name": "Veldkosten", "amount": 40, "category": "match_cost", "is_active": True}
SCHEIDS = {"id": 4, "name": "Scheidsrechterkosten", "amount": 20, "category": "match_cost", "is_active": True}
GELE = {"id": 1, "name": "Gele kaart", "amount": 10, "category": "penalty", "is_active": True}


@pytest.fixture
def db():
    return FakeSupabase({
        "costs": [GELE, VELD, SCHEIDS],
        "users": [{"user_id": 1, "username": "jan", "email": "jan@example.com"}],
    })


@pytest.fixture
def client(db):
    functions.app.dependency_overrides[functions.get_client] = lambda: db
    yield TestClient(functions.app)
    functions.app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "functions"}


class TestKostenEndpoints:
    """Cost synchronisation endpoints."""

    def test_sync_card_penalties(self, client, db):
        response = client.post("/sync-card-penalties", json={
            "matchId": 1, "homeTeamId": 10, "awayTeamId": 20, "matchDateISO": "2025-01-10T20:00:00Z",
            "homePlayers": [{"playerId": 5, "cardType": "yellow"}, {"playerId": 6, "cardType": "none"}],
            "awayPlayers": [],
        })
        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Kaartboetes gesynchroniseerd",
                                   "processedCounts": {"10:1": 1}}
        boete = db.rows("team_costs")[0]
        assert (boete["team_id"], boete["amount"], boete["transaction_date"]) == (10, 10, "2025-01-10")

    def test_sync_card_penalties_failure(self, client, db):
        db.faal("costs", "select", "verbinding verbroken")
        response = client.post("/sync-card-penalties", json={"matchId": 1, "homeTeamId": 10, "awayTeamId": 20})
        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "message": "Fout bij synchroniseren kaartboetes: verbinding verbroken",
        }

    def test_missing_match_id_is_rejected(self, client):
        assert client.post("/sync-card-penalties", json={"homeTeamId": 10, "awayTeamId": 20}).status_code == 422

    def test_sync_match_costs_not_submitted(self, client, db):
        response = client.post("/sync-match-costs", json={"matchId": 1, "homeTeamId": 10, "awayTeamId": 20})
        assert response.json() == {
            "success": True,
            "message": "Wedstrijd niet ingediend, kosten niet gesynchroniseerd",
            "skipped": True,
        }
        assert db.rows("team_costs") == []

    def test_sync_match_costs(self, client, db):
        response = client.post("/sync-match-costs", json={
            "matchId": 1, "homeTeamId": 10, "awayTeamId": 20, "isSubmitted": True, "referee": "ref_jan",
        })
        body = response.json()
        assert body["message"] == "Wedstrijdkosten gesynchroniseerd"
        assert body["referee"] == "ref_jan"
        assert set(body["processedCosts"]) == {"field_team_10", "field_team_20", "referee_team_10", "referee_team_20"}
        assert len(db.rows("team_costs")) == 4

    def test_sync_all_match_costs(self, client, db):
        db.tables["matches"] = [
            {"match_id": 1, "home_team_id": 10, "away_team_id": 20, "home_score": 2, "away_score": 1,
             "match_date": "2025-01-10T20:00:00Z", "is_submitted": True},
            {"match_id": 2, "home_team_id": 10, "away_team_id": 20, "home_score": None, "away_score": None},
        ]
        body = client.post("/sync-all-match-costs").json()
        assert (body["success"], body["syncedCount"], body["updatedCount"], body["skippedCount"]) == (True, 4, 0, 0)

    def test_sync_all_without_referee_cost(self, client, db):
        db.tables["costs"] = [GELE, VELD]
        db.tables["matches"] = [
            {"match_id": 1, "home_team_id": 10, "away_team_id": 20, "home_score": 2, "away_score": 1},
        ]
        response = client.post("/sync-all-match-costs")
        assert response.status_code == 500
        assert "Veldkosten of Scheidsrechterkosten niet gevonden" in response.json()["message"]


class TestPollEndpoint:
    """Monthly poll generation."""

    def test_month_required(self, client):
        response = client.post("/generate-monthly-polls", json={})
        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_invalid_month(self, client):
        response = client.post("/generate-monthly-polls", json={"month": "2025-13"})
        assert response.status_code == 400
        assert "YYYY-MM" in response.json()["error"]

    def test_generates(self, client, db):
        db.tables["matches"] = [
            {"match_id": 1, "match_date": "2025-01-10T19:30:00Z", "location": "Hal", "poll_group_id": None},
            {"match_id": 2, "match_date": "2025-01-17T19:30:00Z", "location": "Hal", "poll_group_id": None},
        ]
        body = client.post("/generate-monthly-polls", json={"month": "2025-01"}).json()
        assert body["success"] is True
        assert body["groups_created"] == 1
        assert body["month"] == "2025-01"

    def test_database_error(self, client, db):
        db.faal("matches", "select", "down")
        response = client.post("/generate-monthly-polls", json={"month": "2025-01"})
        assert response.status_code == 500
        assert response.json()["error"].startswith("Fout bij genereren polls")


class TestEmailEndpoints:
    """Password reset and welcome mail."""

    def test_reset_requires_email(self, client):
        response = client.post("/send-password-reset", json={"email": " "})
        assert response.status_code == 400
        assert response.json() == {"error": "Email is verplicht"}

    def test_reset_unknown_address(self, client):
        response = client.post("/send-password-reset", json={"email": "niemand@example.com"})
        assert response.status_code == 200
        assert response.json() == {"message": emails.NEUTRAAL_ANTWOORD}

    def test_reset_uses_origin_header(self, client, db, monkeypatch):
        monkeypatch.setenv("RESEND_API_KEY", "re_test")
        verzonden = []

        class _Antwoord:
            def raise_for_status(self):
                pass

            def json(self):
                return {"id": "email-1"}

        def _post(url, headers=None, json=None, timeout=None):
            verzonden.append(json)
            return _Antwoord()

        monkeypatch.setattr(emails.requests, "post", _post)
        response = client.post("/send-password-reset", json={"email": "jan@example.com"},
                               headers={"origin": "https://liga.example.com"})
        assert response.json() == {"message": emails.NEUTRAAL_ANTWOORD}
        assert "https://liga.example.com/?pagina=reset&token=" in verzonden[0]["html"]

    def test_reset_mail_failure(self, client):
        response = client.post("/send-password-reset", json={"email": "jan@example.com"})
        assert response.status_code == 500
        assert "RESEND_API_KEY" in response.json()["error"]

    @pytest.mark.parametrize("payload", [{"email": "a@b.be"}, {"userId": 3}])
    def test_welcome_requires_fields(self, client, payload):
        response = client.post("/send-welcome-email", json=payload)
        assert response.status_code == 400
        assert response.json() == {"error": "Email en userId zijn verplicht"}

    def test_welcome_mail_failure(self, client, db):
        response = client.post("/send-welcome-email", json={"email": "nieuw@example.com", "userId": 3})
        assert response.status_code == 500
        assert len(db.rows("password_reset_tokens")) == 1
