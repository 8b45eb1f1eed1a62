"""Tests for cost settings, team transactions, balances and reports."""

from datetime import date

import pytest

import database
import financien
import kosten_sync


def _transactie(datum, bedrag, soort, naam=None, team_id=1):
    return {"transaction_date": datum, "amount": bedrag, "transaction_type": soort, "cost_name": naam,
            "team_id": team_id}


class TestTeamfinancien:
    """Balance breakdown for one team."""

    def test_balance_formula(self):
        overzicht = financien.bereken_teamfinancien([
            _transactie("2024-09-01", 200, "deposit", "Storting"),
            _transactie("2024-09-05", 25, "match_cost", "Veldkosten"),
            _transactie("2024-09-05", 20, "match_cost", "Scheidsrechterkosten"),
            _transactie("2024-09-12", 10, "penalty", "Gele kaart"),
            _transactie("2024-09-20", -5, "adjustment", "Correctie"),
        ])
        assert overzicht == {
            "startkapitaal": 200.0, "veldkosten": 25.0, "scheidsrechterkosten": 20.0,
            "boetes": 10.0, "correcties": -5.0, "saldo": 140.0,
        }

    def test_type_from_cost_category(self):
        overzicht = financien.bereken_teamfinancien([
            {"amount": "50", "cost_category": "deposit"},
            {"amount": 7.5, "cost_category": "penalty"},
            {"amount": 3, "cost_category": None},
        ])
        assert (overzicht["startkapitaal"], overzicht["boetes"], overzicht["correcties"]) == (50.0, 7.5, 3.0)
        assert overzicht["saldo"] == 45.5

    def test_no_transactions(self):
        assert financien.bereken_teamfinancien([])["saldo"] == 0

    def test_match_costs_recognised_by_description(self):
        overzicht = financien.bereken_teamfinancien([
            {"amount": 30, "transaction_type": "match_cost", "cost_name": "Zaalhuur", "cost_description": "huur veld"},
            {"amount": 20, "transaction_type": "match_cost", "cost_name": "Referee fee"},
            {"amount": 15, "transaction_type": "match_cost", "cost_name": "Diversen",
             "description": "Scheidsrechter beker"},
        ])
        assert (overzicht["veldkosten"], overzicht["scheidsrechterkosten"]) == (30.0, 35.0)
        assert overzicht["saldo"] == -65.0

    @pytest.mark.parametrize("transactie, soort", [
        ({"cost_name": "Field rental"}, "veld"),
        ({"cost_name": "Zaalhuur", "cost_description": "Huur veld"}, "veld"),
        ({"cost_name": "Referee fee"}, "scheids"),
        ({"cost_name": "Kosten", "description": "scheids"}, "scheids"),
        ({"cost_name": "Drank"}, None),
        ({}, None),
    ])
    def test_wedstrijdkost_soort(self, transactie, soort):
        assert financien.wedstrijdkost_soort(transactie) == soort


class TestSeizoenen:
    """July to June seasons."""

    @pytest.mark.parametrize("datum, seizoen", [
        ("2024-09-01", "2024/2025"),
        ("2025-06-30", "2024/2025"),
        (date(2025, 7, 1), "2025/2026"),
    ])
    def test_seizoen_van(self, datum, seizoen):
        assert financien.seizoen_van(datum) == seizoen

    def test_periode(self):
        assert financien.seizoen_periode("2024/2025") == ("2024-07-01", "2025-06-30")

    def test_available_seasons_include_current(self):
        transacties = [{"transaction_date": "2023-10-01"}, {"transaction_date": "2024-02-01"}, {}]
        assert financien.beschikbare_seizoenen(transacties, vandaag=date(2025, 9, 1)) == ["2025/2026", "2023/2024"]


class TestMaandrapport:
    """Monthly cost report."""

    TRANSACTIES = [
        _transactie("2024-09-05", 25, "match_cost", "Veldkosten"),
        _transactie("2024-09-05", 20, "match_cost", "Scheidsrechterkosten"),
        _transactie("2024-10-01", 10, "penalty", "Gele kaart"),
        _transactie("2024-10-02", 100, "deposit", "Storting"),
        _transactie("2025-08-01", 25, "match_cost", "Veldkosten"),
    ]
    WEDSTRIJDEN = [
        {"is_submitted": True, "match_date": "2024-09-05T20:00:00Z"},
        {"is_submitted": False, "match_date": "2024-09-12T20:00:00Z"},
        {"is_submitted": True, "match_date": "2024-11-07T20:00:00Z"},
    ]

    def test_costs_per_month(self):
        rapport = financien.maandrapport(self.TRANSACTIES, self.WEDSTRIJDEN, "2024/2025")
        assert list(rapport.columns) == financien.RAPPORT_KOLOMMEN
        assert rapport["maand"].tolist() == ["2024-09", "2024-10", "2024-11"]
        assert rapport["totaal"].tolist() == [45.0, 10.0, 0.0]
        assert rapport["aantal_boetes"].tolist() == [0, 1, 0]
        assert rapport["wedstrijden"].tolist() == [1, 0, 1]

    def test_single_month(self):
        rapport = financien.maandrapport(self.TRANSACTIES, self.WEDSTRIJDEN, "2024/2025", maand=10)
        assert rapport["maand"].tolist() == ["2024-10"]
        assert rapport.loc[0, "boetes"] == 10.0

    def test_match_costs_recognised_by_description(self):
        transacties = [
            {"transaction_date": "2024-09-05", "amount": 30, "transaction_type": "match_cost",
             "cost_name": "Zaalhuur", "cost_description": "huur veld"},
            {"transaction_date": "2024-09-05", "amount": 20, "transaction_type": "match_cost",
             "cost_name": "Referee fee"},
        ]
        rapport = financien.maandrapport(transacties, [], "2024/2025")
        assert (rapport.loc[0, "veldkosten"], rapport.loc[0, "scheidsrechterkosten"]) == (30.0, 20.0)
        assert rapport.loc[0, "totaal"] == 50.0

    def test_empty(self):
        rapport = financien.maandrapport([], [], "2024/2025")
        assert rapport.empty
        assert list(rapport.columns) == financien.RAPPORT_KOLOMMEN


class TestKostinstellingen:
    """Cost settings CRUD."""

    def test_validation(self, fake_db):
        with pytest.raises(ValueError, match="Naam"):
            financien.maak_kostinstelling_aan({"name": " ", "category": "penalty", "amount": 5})
        with pytest.raises(ValueError, match="categorie"):
            financien.maak_kostinstelling_aan({"name": "Boete", "category": "bar", "amount": 5})
        with pytest.raises(ValueError, match="negatief"):
            financien.maak_kostinstelling_aan({"name": "Boete", "category": "penalty", "amount": -1})

    def test_create_and_update(self, fake_db):
        kost = financien.maak_kostinstelling_aan({"name": " Gele kaart ", "category": "penalty", "amount": "7.5"})
        assert (kost["name"], kost["amount"], kost["is_active"]) == ("Gele kaart", 7.5, True)

        bijgewerkt = financien.werk_kostinstelling_bij(kost["id"], {"name": "Gele kaart", "category": "penalty",
                                                                    "amount": 10})
        assert bijgewerkt["amount"] == 10.0
        assert financien.laad_kostinstellingen(categorie="penalty")[0]["amount"] == 10.0

    def test_update_unknown(self, fake_db):
        with pytest.raises(LookupError):
            financien.werk_kostinstelling_bij(42, {"name": "X", "category": "other", "amount": 1})

    def test_delete_with_transactions_deactivates(self, maak_db):
        db = maak_db({
            "costs": [{"id": 1, "name": "Veldkosten", "category": "match_cost", "amount": 25, "is_active": True},
                      {"id": 2, "name": "Oud", "category": "other", "amount": 1, "is_active": True}],
            "team_costs": [{"id": 1, "team_id": 1, "cost_setting_id": 1, "amount": 25}],
        })
        financien.verwijder_kostinstelling(1)
        financien.verwijder_kostinstelling(2)
        assert db.rows("costs") == [{"id": 1, "name": "Veldkosten", "category": "match_cost", "amount": 25,
                                     "is_active": False}]


class TestTransacties:
    """Team transactions."""

    def test_deposits_share_one_cost_setting(self, fake_db):
        financien.voeg_transactie_toe(1, "deposit", 100, "2024-09-01")
        financien.voeg_transactie_toe(2, "deposit", 50, "2024-09-02")
        kosten = fake_db.rows("costs")
        assert [k["name"] for k in kosten] == ["Storting"]
        assert {t["cost_setting_id"] for t in fake_db.rows("team_costs")} == {kosten[0]["id"]}

    def test_penalty_without_setting_creates_one(self, fake_db):
        transactie = financien.voeg_transactie_toe(1, "penalty", 15, "2024-09-01", omschrijving="Forfait")
        kost = fake_db.rows("costs")[0]
        assert (kost["name"], kost["category"], kost["amount"]) == ("Forfait", "penalty", 15.0)
        assert transactie["cost_setting_id"] == kost["id"]

    def test_adjustment_may_be_negative(self, fake_db):
        transactie = financien.voeg_transactie_toe(1, "adjustment", -12.5, "2024-09-01T10:00:00")
        assert transactie["amount"] == -12.5
        assert transactie["transaction_date"] == "2024-09-01"
        assert fake_db.rows("costs")[0]["category"] == "other"

    @pytest.mark.parametrize("soort, bedrag", [("deposit", 0), ("penalty", -5), ("cadeau", 5)])
    def test_rejected(self, fake_db, soort, bedrag):
        with pytest.raises(ValueError):
            financien.voeg_transactie_toe(1, soort, bedrag)
        assert fake_db.rows("team_costs") == []

    def test_load_enriches_rows(self, maak_db):
        maak_db({
            "costs": [{"id": 1, "name": "Veldkosten", "category": "match_cost"},
                      {"id": 2, "name": "Storting", "category": "deposit"}],
            "matches": [{"match_id": 7, "unique_number": "A12", "match_date": "2024-09-05T20:00:00Z"}],
            "team_costs": [
                {"id": 1, "team_id": 1, "cost_setting_id": 2, "amount": 100, "transaction_date": "2024-09-01"},
                {"id": 2, "team_id": 1, "cost_setting_id": 1, "amount": 25, "transaction_date": "2024-09-05",
                 "match_id": 7},
                {"id": 3, "team_id": 2, "cost_setting_id": 1, "amount": 25, "transaction_date": "2024-09-05",
                 "match_id": 7},
            ],
        })
        transacties = financien.laad_transacties(team_id=1)
        assert [t["id"] for t in transacties] == [2, 1]
        assert transacties[0]["transaction_type"] == "match_cost"
        assert transacties[0]["match_unique_number"] == "A12"
        assert transacties[1]["cost_name"] == "Storting"
        assert transacties[1]["match_unique_number"] is None

    def test_synced_costs_count_in_balance(self, maak_db):
        maak_db({
            "costs": [
                {"id": 1, "name": "Zaalhuur", "description": "huur veld", "amount": 30, "category": "match_cost",
                 "is_active": True},
                {"id": 2, "name": "Referee fee", "description": None, "amount": 20, "category": "match_cost",
                 "is_active": True},
            ],
        })
        kosten_sync.synchroniseer_wedstrijdkosten(database.get_supabase_client(), 5, 1, 2, True,
                                                  "2024-09-05T20:00:00Z")
        transacties = financien.laad_transacties(team_id=1)
        assert sorted((t["cost_name"], t["cost_description"]) for t in transacties) == [
            ("Referee fee", None), ("Zaalhuur", "huur veld"),
        ]
        overzicht = financien.bereken_teamfinancien(transacties)
        assert (overzicht["veldkosten"], overzicht["scheidsrechterkosten"], overzicht["saldo"]) == (30.0, 20.0, -50.0)

    def test_update_and_delete(self, maak_db):
        db = maak_db({"team_costs": [{"id": 1, "team_id": 1, "amount": 25, "transaction_date": "2024-09-05"}]})
        financien.werk_transactie_bij(1, bedrag="30", omschrijving="Gecorrigeerd")
        assert db.rows("team_costs")[0]["amount"] == 30.0
        financien.werk_transactie_bij(1)
        financien.verwijder_transactie(1)
        assert db.rows("team_costs") == []

    def test_team_balances(self, maak_db):
        maak_db({
            "teams": [{"team_id": 1, "team_name": "Zulte"}, {"team_id": 2, "team_name": "Kuurne"}],
            "costs": [{"id": 1, "name": "Storting", "category": "deposit"},
                      {"id": 2, "name": "Veldkosten", "category": "match_cost"}],
            "team_costs": [
                {"id": 1, "team_id": 1, "cost_setting_id": 1, "amount": 100, "transaction_date": "2024-09-01"},
                {"id": 2, "team_id": 1, "cost_setting_id": 2, "amount": 25, "transaction_date": "2024-09-05"},
            ],
        })
        saldi = financien.laad_teamsaldi().set_index("team")
        assert saldi.loc["Zulte", "saldo"] == 75.0
        assert saldi.loc["Kuurne", "saldo"] == 0.0
