"""Shared test fixtures."""

import pytest
import streamlit as st

import database
from fake_supabase import FakeSupabase


@pytest.fixture(autouse=True)
def leeg_caches():
    """st.cache_data overleeft anders tussen tests."""
    st.cache_data.clear()
    st.session_state.clear()
    yield
    st.cache_data.clear()
    st.session_state.clear()


@pytest.fixture(autouse=True)
def geen_secrets(monkeypatch):
    """Tests lezen nooit echte configuratie."""
    for naam in ("SUPABASE_URL", "SUPABASE_KEY", "SUPABASE_SERVICE_ROLE_KEY", "RESEND_API_KEY",
                 "EMAIL_FROM", "ADMIN_EMAIL", "APP_BASE_URL", "ADMIN_PASSWORD"):
        monkeypatch.delenv(naam, raising=False)


@pytest.fixture
def fake_db(monkeypatch):
    """Lege FakeSupabase die database.get_supabase_client vervangt."""
    db = FakeSupabase()
    monkeypatch.setattr(database, "get_supabase_client", lambda: db)
    return db


@pytest.fixture
def maak_db(monkeypatch):
    """Factory: FakeSupabase met startdata, ook gekoppeld aan database.get_supabase_client."""
    def _maak(tables=None, schemas=None):
        db = FakeSupabase(tables, schemas)
        monkeypatch.setattr(database, "get_supabase_client", lambda: db)
        return db
    return _maak
