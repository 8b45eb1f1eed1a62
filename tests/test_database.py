"""Tests for database: configuration, login, teams, players, matches and settings."""

from datetime import date

import pytest

import database


def _team_db(maak_db, schemas=None):
    return maak_db({
        "teams": [
            {"team_id": 1, "team_name": "Zulte", "balance": 0, "contact_person": "An"},
            {"team_id": 2, "team_name": "Bavikhove", "balance": 0, "contact_person": "Bert"},
        ],
    }, schemas)


class TestConfiguratie:
    """Secrets first, environment second."""

    def test_missing_config_raises(self):
        with pytest.raises(database.ConfiguratieFout):
            database.get_supabase_config()

    def test_environment_values(self, monkeypatch):
        monkeypatch.setenv("SUPABASE_URL", "https://x.supabase.co")
        monkeypatch.setenv("SUPABASE_KEY", "anon")
        assert database.get_supabase_config() == ("https://x.supabase.co", "anon")

    def test_lees_secret_default(self):
        assert database.lees_secret("BESTAAT_NIET", "standaard") == "standaard"


class TestMetRetry:
    """Retry with exponential wait."""

    def test_succeeds_after_failures(self, monkeypatch):
        wachttijden = []
        monkeypatch.setattr(database.time, "sleep", wachttijden.append)
        pogingen = iter([RuntimeError("1"), RuntimeError("2"), "ok"])

        def functie():
            waarde = next(pogingen)
            if isinstance(waarde, Exception):
                raise waarde
            return waarde

        assert database.met_retry(functie, pogingen=3, basis_wachttijd=0.5) == "ok"
        assert wachttijden == [0.5, 1.0]

    def test_reraises_last_error(self, monkeypatch):
        monkeypatch.setattr(database.time, "sleep", lambda _: None)
        fouten = iter([ValueError("eerste"), ValueError("laatste")])

        def functie():
            raise next(fouten)

        with pytest.raises(ValueError, match="laatste"):
            database.met_retry(functie, pogingen=2)


class TestLogin:
    """Password check, roles and bootstrap admin."""

    def test_valid_login_includes_team(self, maak_db):
        maak_db({
            "users": [{"user_id": 5, "username": "kapitein", "role": "player_manager",
                       "password": database.hash_wachtwoord("geheim123")}],
            "team_users": [{"id": 1, "user_id": 5, "team_id": 2}],
        })
        gebruiker = database.verifieer_login("kapitein", "geheim123")
        assert gebruiker["team_id"] == 2
        assert "password" not in gebruiker

    def test_wrong_password(self, maak_db):
        maak_db({"users": [{"user_id": 5, "username": "kapitein", "role": "player_manager",
                            "password": database.hash_wachtwoord("geheim123")}]})
        assert database.verifieer_login("kapitein", "fout") is None

    def test_bootstrap_admin_only_without_admin_user(self, maak_db, monkeypatch):
        monkeypatch.setenv("ADMIN_PASSWORD", "start")
        maak_db({"users": []})
        gebruiker = database.verifieer_login("admin", "start")
        assert gebruiker["role"] == database.ROL_ADMIN

        maak_db({"users": [{"user_id": 1, "username": "beheer", "role": "admin", "password": "x"}]})
        assert database.verifieer_login("admin", "start") is None

    def test_heeft_rol(self):
        assert database.heeft_rol({"role": "admin"}, "admin", "referee")
        assert not database.heeft_rol(None, "admin")

    def test_wijzig_wachtwoord_too_short(self, fake_db):
        with pytest.raises(ValueError):
            database.wijzig_wachtwoord(1, "kort")


class TestTeams:
    """Team loading with the basic-column fallback."""

    def test_laad_teams_sorted(self, maak_db):
        _team_db(maak_db)
        assert [t["team_name"] for t in database.laad_teams()] == ["Bavikhove", "Zulte"]

    def test_fallback_to_basic_columns(self, maak_db):
        _team_db(maak_db, schemas={"teams": {"team_id", "team_name", "balance"}})
        teams = database.laad_teams()
        assert [t["team_name"] for t in teams] == ["Bavikhove", "Zulte"]
        for veld in database.TEAM_CONTACT_VELDEN:
            assert all(t[veld] is None for t in teams)

    def test_fallback_failure_raises(self, maak_db):
        db = _team_db(maak_db)
        db.faal("teams", "select", "netwerkfout", keer=2)
        with pytest.raises(Exception, match="netwerkfout"):
            database.laad_teams()

    def test_laad_team_missing(self, maak_db):
        _team_db(maak_db)
        assert database.laad_team(99) is None

    def test_maak_team_aan_without_contact_columns(self, maak_db):
        db = _team_db(maak_db, schemas={"teams": {"team_id", "team_name", "balance"}})
        team = database.maak_team_aan({"team_name": "Kuurne", "contact_person": "Cas"})
        assert team["team_name"] == "Kuurne"
        assert team["contact_person"] is None
        assert db.rows("teams")[-1] == {"team_id": 3, "team_name": "Kuurne"}

    def test_maak_team_aan_surfaces_database_message(self, maak_db):
        db = _team_db(maak_db)
        db.faal("teams", "insert", 'duplicate key value violates unique constraint "teams_team_name_key"')
        with pytest.raises(Exception, match="duplicate key"):
            database.maak_team_aan({"team_name": "Zulte"})

    def test_maak_team_aan_requires_name(self, maak_db):
        _team_db(maak_db)
        with pytest.raises(ValueError):
            database.maak_team_aan({"team_name": "  "})

    def test_werk_team_bij_unknown(self, maak_db):
        _team_db(maak_db)
        with pytest.raises(LookupError):
            database.werk_team_bij(42, {"team_name": "Nieuw"})


class TestSpelers:
    """Player validation, soft delete and list lock."""

    def test_valideer_speler_accepts_date(self):
        record = database.valideer_speler({"first_name": " Tom ", "last_name": "Peeters", "birth_date": date(1990, 5, 1)})
        assert record["first_name"] == "Tom"
        assert record["birth_date"] == "1990-05-01"

    @pytest.mark.parametrize("datum", ["1990-02-30", "01/05/1990", "", None])
    def test_valideer_speler_rejects_bad_dates(self, datum):
        with pytest.raises(ValueError):
            database.valideer_speler({"first_name": "Tom", "last_name": "Peeters", "birth_date": datum})

    def test_verwijder_speler_is_soft_delete(self, maak_db):
        db = maak_db({"players": [{"player_id": 1, "first_name": "Tom", "last_name": "Peeters",
                                   "team_id": 1, "is_active": True}]})
        assert database.verwijder_speler(1) is True
        assert db.rows("players")[0]["is_active"] is False
        assert database.laad_spelers(1) == []
        assert len(database.laad_spelers(1, alleen_actief=False)) == 1

    def test_spelerslijst_slot_roundtrip(self, fake_db):
        database.zet_spelerslijst_slot("2025-03-01", True)
        database.zet_spelerslijst_slot("2025-04-01", True)
        assert len(fake_db.rows("application_settings")) == 1
        assert database.laad_spelerslijst_slot() == {"lock_from_date": "2025-04-01", "is_active": True}

    @pytest.mark.parametrize("slot, vandaag, verwacht", [
        ({"is_active": False, "lock_from_date": "2025-01-01"}, date(2025, 6, 1), False),
        ({"is_active": True, "lock_from_date": None}, date(2025, 6, 1), True),
        ({"is_active": True, "lock_from_date": "2025-06-01"}, date(2025, 5, 31), False),
        ({"is_active": True, "lock_from_date": "2025-06-01"}, date(2025, 6, 1), True),
    ])
    def test_is_spelerslijst_vergrendeld(self, slot, vandaag, verwacht):
        assert database.is_spelerslijst_vergrendeld(slot, vandaag) is verwacht


class TestWedstrijden:
    """Match loading and the match form."""

    WEDSTRIJDEN = [
        {"match_id": 1, "home_team_id": 1, "away_team_id": 2, "match_date": "2025-01-10T19:30:00Z",
         "is_cup_match": False, "is_playoff_match": None, "is_locked": False},
        {"match_id": 2, "home_team_id": 2, "away_team_id": 3, "match_date": "2025-01-03T20:00:00Z",
         "is_cup_match": True, "is_playoff_match": False, "is_locked": True},
        {"match_id": 3, "home_team_id": 3, "away_team_id": 1, "match_date": "2025-02-01T18:00:00Z",
         "is_cup_match": None, "is_playoff_match": True, "is_locked": False},
    ]

    def test_filters_by_kind(self, maak_db):
        maak_db({"matches": self.WEDSTRIJDEN})
        assert [w["match_id"] for w in database.laad_wedstrijden(soort="competitie")] == [1]
        assert [w["match_id"] for w in database.laad_wedstrijden(soort="beker")] == [2]
        assert [w["match_id"] for w in database.laad_wedstrijden(soort="playoff")] == [3]

    def test_filters_by_team_and_adds_local_time(self, maak_db):
        maak_db({"matches": self.WEDSTRIJDEN})
        wedstrijden = database.laad_wedstrijden(team_id=1)
        assert [w["match_id"] for w in wedstrijden] == [1, 3]
        assert (wedstrijden[0]["datum"], wedstrijden[0]["tijd"]) == ("2025-01-10", "19:30")

    def test_maak_wedstrijd_aan_stores_wall_clock_time(self, fake_db):
        wedstrijd = database.maak_wedstrijd_aan({"home_team_id": 1, "away_team_id": 2,
                                                 "datum": "2025-07-01", "tijd": "18:30"})
        assert wedstrijd["match_date"] == "2025-07-01T18:30:00Z"

    def test_maak_wedstrijd_aan_same_team(self, fake_db):
        with pytest.raises(ValueError):
            database.maak_wedstrijd_aan({"home_team_id": 1, "away_team_id": 1})

    def test_submit_locks_form(self, maak_db):
        db = maak_db({"matches": self.WEDSTRIJDEN})
        bijgewerkt = database.sla_wedstrijdformulier_op(
            {"match_id": 1, "home_score": 3, "away_score": 2, "is_submitted": True,
             "home_players": [{"playerId": 7, "cardType": "yellow"}]},
            {"username": "kapitein", "role": "player_manager"},
        )
        assert bijgewerkt["is_submitted"] is True
        assert bijgewerkt["is_locked"] is True
        assert db.rows("matches")[0]["home_players"] == [{"playerId": 7, "cardType": "yellow"}]

    def test_submit_requires_scores(self, maak_db):
        maak_db({"matches": self.WEDSTRIJDEN})
        with pytest.raises(ValueError):
            database.sla_wedstrijdformulier_op({"match_id": 1, "home_score": 3, "is_submitted": True},
                                               {"role": "player_manager"})

    def test_locked_form_only_for_admin(self, maak_db):
        maak_db({"matches": self.WEDSTRIJDEN})
        with pytest.raises(PermissionError):
            database.sla_wedstrijdformulier_op({"match_id": 2, "home_score": 1, "away_score": 1},
                                               {"role": "player_manager"})
        bijgewerkt = database.sla_wedstrijdformulier_op(
            {"match_id": 2, "home_score": 1, "away_score": 1, "is_locked": False}, {"role": "admin"}
        )
        assert bijgewerkt["is_locked"] is False

    def test_unknown_match(self, maak_db):
        maak_db({"matches": []})
        with pytest.raises(LookupError):
            database.sla_wedstrijdformulier_op({"match_id": 9}, {"role": "admin"})

    def test_negative_score(self, maak_db):
        maak_db({"matches": self.WEDSTRIJDEN})
        with pytest.raises(ValueError):
            database.sla_wedstrijdformulier_op({"match_id": 1, "home_score": -1, "away_score": 0},
                                               {"role": "admin"})


class TestGebruikers:
    """User management and team link."""

    def test_player_manager_linked_to_team(self, fake_db):
        gebruiker = database.maak_gebruiker_aan("kapitein", "geheim123", "player_manager", "k@x.be", team_id=4)
        assert gebruiker["team_id"] == 4
        assert fake_db.rows("team_users") == [{"id": 1, "user_id": gebruiker["user_id"], "team_id": 4}]
        assert fake_db.rows("users")[0]["password"] == database.hash_wachtwoord("geheim123")

    def test_unknown_role(self, fake_db):
        with pytest.raises(ValueError):
            database.maak_gebruiker_aan("x", "geheim123", "voorzitter")

    def test_laad_gebruikers_with_team(self, fake_db):
        database.maak_gebruiker_aan("kapitein", "geheim123", "player_manager", team_id=4)
        database.maak_gebruiker_aan("scheids", "geheim123", "referee")
        gebruikers = {g["username"]: g for g in database.laad_gebruikers()}
        assert gebruikers["kapitein"]["team_id"] == 4
        assert gebruikers["scheids"]["team_id"] is None
        assert "password" not in gebruikers["scheids"]

    def test_verwijder_gebruiker_removes_link(self, fake_db):
        gebruiker = database.maak_gebruiker_aan("kapitein", "geheim123", "player_manager", team_id=4)
        database.verwijder_gebruiker(gebruiker["user_id"])
        assert fake_db.rows("users") == []
        assert fake_db.rows("team_users") == []


class TestTabZichtbaarheid:
    """Tab visibility settings."""

    def test_defaults_without_rows(self, fake_db):
        namen = [i["setting_name"] for i in database.laad_tab_zichtbaarheid()]
        assert namen == list(database.STANDAARD_TABS)

    def test_zichtbare_tabs(self):
        instellingen = [
            {"setting_name": "algemeen", "is_visible": True, "requires_login": False},
            {"setting_name": "beker", "is_visible": False, "requires_login": False},
            {"setting_name": "schorsingen", "is_visible": True, "requires_login": True},
        ]
        assert database.zichtbare_tabs(instellingen, None) == ["algemeen"]
        assert database.zichtbare_tabs(instellingen, {"role": "referee"}) == ["algemeen", "schorsingen"]
        assert database.zichtbare_tabs(instellingen, {"role": "admin"}) == ["algemeen", "beker", "schorsingen"]

    def test_zet_tab_zichtbaarheid_upserts(self, fake_db):
        database.zet_tab_zichtbaarheid("beker", False)
        database.zet_tab_zichtbaarheid("beker", True, requires_login=True)
        [rij] = fake_db.rows("tab_visibility_settings")
        assert (rij["is_visible"], rij["requires_login"]) == (True, True)


class TestVakantieEnBlog:
    """Vacation periods and blog posts."""

    def test_vakantie_start_after_end(self, fake_db):
        with pytest.raises(ValueError):
            database.maak_vakantieperiode_aan("Kerst", "2025-01-05", "2024-12-20")

    def test_blog_newest_first(self, fake_db):
        database.maak_blogbericht_aan("Oud", "tekst", datum="2024-09-01")
        database.maak_blogbericht_aan("Nieuw", "tekst", ["beker"], datum="2025-01-01")
        assert [b["title"] for b in database.laad_blogberichten()] == ["Nieuw", "Oud"]
        assert [b["title"] for b in database.laad_blogberichten(limiet=1)] == ["Nieuw"]

    def test_blog_requires_title(self, fake_db):
        with pytest.raises(ValueError):
            database.maak_blogbericht_aan("", "tekst")
