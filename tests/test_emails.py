"""Tests for password reset and welcome e-mails (Resend API mocked)."""

from datetime import datetime, timedelta, timezone

import pytest
import requests

import database
import emails
from fake_supabase import FakeSupabase


class _Antwoord:
    def __init__(self, status=200):
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error")

    def json(self):
        return {"id": "email-1"}


@pytest.fixture
def verzonden(monkeypatch):
    """Vangt requests.post op en geeft de verstuurde payloads terug."""
    monkeypatch.setenv("RESEND_API_KEY", "re_test")
    berichten = []

    def _post(url, headers=None, json=None, timeout=None):
        berichten.append({"url": url, "headers": headers, **json})
        return _Antwoord()

    monkeypatch.setattr(emails.requests, "post", _post)
    return berichten


def _db():
    return FakeSupabase({"users": [
        {"user_id": 1, "username": "jan", "email": "jan@example.com", "password": "x"},
        {"user_id": 2, "username": "piet", "email": None, "password": "x"},
    ]})


class TestVerstuurEmail:
    """Low-level Resend call."""

    def test_missing_api_key(self):
        with pytest.raises(emails.EmailFout, match="RESEND_API_KEY"):
            emails.verstuur_email(["a@b.be"], "Test", "<p>hallo</p>")

    def test_payload(self, verzonden, monkeypatch):
        monkeypatch.setenv("EMAIL_FROM", "Liga <liga@example.com>")
        emails.verstuur_email(["a@b.be"], "Test", "<p>hallo</p>")
        bericht = verzonden[0]
        assert bericht["url"] == emails.RESEND_URL
        assert bericht["headers"]["Authorization"] == "Bearer re_test"
        assert (bericht["from"], bericht["to"], bericht["subject"]) == ("Liga <liga@example.com>", ["a@b.be"], "Test")

    def test_api_error_raises(self, monkeypatch):
        monkeypatch.setenv("RESEND_API_KEY", "re_test")
        monkeypatch.setattr(emails.requests, "post", lambda *a, **kw: _Antwoord(422))
        with pytest.raises(emails.EmailFout, match="mislukt"):
            emails.verstuur_email(["a@b.be"], "Test", "<p>hallo</p>")


class TestWachtwoordReset:
    """Requesting a reset link."""

    def test_unknown_address_gets_neutral_answer(self, verzonden):
        db = _db()
        assert emails.verstuur_wachtwoord_reset(db, "onbekend@example.com") == emails.NEUTRAAL_ANTWOORD
        assert verzonden == []
        assert db.rows("password_reset_tokens") == []

    def test_known_address_gets_link(self, verzonden):
        db = _db()
        antwoord = emails.verstuur_wachtwoord_reset(db, " jan@example.com ", origin="https://liga.example.com/")
        assert antwoord == emails.NEUTRAAL_ANTWOORD

        token = db.rows("password_reset_tokens")[0]
        assert token["user_id"] == 1
        assert token["requested_email"] == "jan@example.com"
        assert verzonden[0]["to"] == ["jan@example.com"]
        assert f"https://liga.example.com/?pagina=reset&token={token['token']}" in verzonden[0]["html"]

    def test_lookup_by_username(self, verzonden):
        db = _db()
        emails.verstuur_wachtwoord_reset(db, "jan")
        assert verzonden[0]["to"] == ["jan@example.com"]

    def test_configured_base_url_wins_over_origin(self, verzonden, monkeypatch):
        monkeypatch.setenv("APP_BASE_URL", "https://portaal.minivoetbal.be")
        db = _db()
        emails.verstuur_wachtwoord_reset(db, "jan@example.com", origin="https://aanvaller.example.net")
        assert "https://portaal.minivoetbal.be/?pagina=reset&token=" in verzonden[0]["html"]
        assert "aanvaller" not in verzonden[0]["html"]

    def test_account_without_email_notifies_admin(self, verzonden, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAIL", "admin@example.com")
        db = _db()
        assert emails.verstuur_wachtwoord_reset(db, "piet") == emails.GEEN_EMAIL_ANTWOORD
        assert verzonden[0]["to"] == ["admin@example.com"]
        assert "piet" in verzonden[0]["html"]
        assert db.rows("password_reset_tokens") == []

    def test_admin_mail_failure_does_not_change_answer(self, monkeypatch):
        monkeypatch.setenv("ADMIN_EMAIL", "admin@example.com")
        assert emails.verstuur_wachtwoord_reset(_db(), "piet") == emails.GEEN_EMAIL_ANTWOORD

    def test_empty_email(self):
        with pytest.raises(ValueError):
            emails.verstuur_wachtwoord_reset(_db(), "  ")

    def test_token_storage_failure(self, verzonden):
        db = _db()
        db.faal("password_reset_tokens", "insert", "permission denied")
        with pytest.raises(emails.EmailFout, match="reset link"):
            emails.verstuur_wachtwoord_reset(db, "jan@example.com")
        assert verzonden == []


class TestWelkomstmail:
    """Welcome mail for new accounts."""

    def test_sends_set_password_link(self, verzonden):
        db = _db()
        emails.verstuur_welkomstmail(db, "nieuw@example.com", 3, gebruikersnaam="<nieuw>",
                                     login_url="https://liga.example.com")
        token = db.rows("password_reset_tokens")[0]
        verloopt = datetime.fromisoformat(token["expires_at"])
        assert verloopt - datetime.now(timezone.utc) > timedelta(days=6)
        assert "&lt;nieuw&gt;" in verzonden[0]["html"]
        assert f"https://liga.example.com/?pagina=reset&token={token['token']}" in verzonden[0]["html"]

    def test_configured_base_url_wins_over_request(self, verzonden, monkeypatch):
        monkeypatch.setenv("APP_BASE_URL", "https://portaal.minivoetbal.be/")
        emails.verstuur_welkomstmail(_db(), "nieuw@example.com", 3, login_url="https://elders.example.net",
                                     origin="https://aanvaller.example.net")
        assert "https://portaal.minivoetbal.be/?pagina=reset&token=" in verzonden[0]["html"]
        assert "example.net" not in verzonden[0]["html"]

    @pytest.mark.parametrize("email, user_id", [("", 3), ("nieuw@example.com", None)])
    def test_required_fields(self, email, user_id):
        with pytest.raises(ValueError):
            emails.verstuur_welkomstmail(_db(), email, user_id)


class TestResetWachtwoord:
    """Using a reset token."""

    NU = datetime(2025, 1, 15, 12, 0, tzinfo=timezone.utc)

    def _db_met_token(self, **token):
        db = _db()
        db.tables["password_reset_tokens"] = [{
            "id": 1, "user_id": 1, "token": "abc", "used_at": None,
            "expires_at": "2025-01-15T12:30:00+00:00", **token,
        }]
        return db

    def test_sets_password_and_marks_used(self):
        db = self._db_met_token()
        emails.reset_wachtwoord(db, "abc", "geheim123", nu=self.NU)
        assert db.rows("users")[0]["password"] == database.hash_wachtwoord("geheim123")
        assert db.rows("password_reset_tokens")[0]["used_at"] == self.NU.isoformat()

        with pytest.raises(ValueError, match="al gebruikt"):
            emails.reset_wachtwoord(db, "abc", "anders123", nu=self.NU)

    def test_expired(self):
        db = self._db_met_token(expires_at="2025-01-15T11:00:00Z")
        with pytest.raises(ValueError, match="verlopen"):
            emails.reset_wachtwoord(db, "abc", "geheim123", nu=self.NU)
        assert db.rows("users")[0]["password"] == "x"

    def test_unknown_token(self):
        with pytest.raises(ValueError, match="Ongeldige"):
            emails.reset_wachtwoord(_db(), "bestaat-niet", "geheim123", nu=self.NU)

    def test_short_password_keeps_token_unused(self):
        db = self._db_met_token()
        with pytest.raises(ValueError, match="6 tekens"):
            emails.reset_wachtwoord(db, "abc", "kort", nu=self.NU)
        assert db.rows("password_reset_tokens")[0]["used_at"] is None
