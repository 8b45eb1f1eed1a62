"""
Financiën - kostinstellingen, teamtransacties, saldo's en maandrapporten

Tabellen:
- costs: kostinstellingen (categorie match_cost, penalty, deposit, other)
- team_costs: transacties per team, gekoppeld aan een kostinstelling
"""

from datetime import date, datetime

import pandas as pd
import streamlit as st

import database
from kosten_sync import SCHEIDS_TERMEN, VELD_TERMEN
from logging_config import get_logger

logger = get_logger(__name__)

CATEGORIEEN = ("match_cost", "penalty", "deposit", "other")
TRANSACTIE_TYPES = ("deposit", "penalty", "match_cost", "adjustment")
STORTING_NAAM = "Storting"

# categorie van de kostinstelling -> transactietype
_TYPE_PER_CATEGORIE = {
    "deposit": "deposit",
    "penalty": "penalty",
    "match_cost": "match_cost",
    "other": "adjustment",
}


# ============================================================
# KOSTINSTELLINGEN
# ============================================================

def laad_kostinstellingen(categorie: str | None = None, alleen_actief: bool = False) -> list:
    """Laad kostinstellingen, gesorteerd op categorie en naam"""
    try:
        supabase = database.get_supabase_client()
        query = supabase.table("costs").select("*")
        if categorie:
            query = query.eq("category", categorie)
        if alleen_actief:
            query = query.eq("is_active", True)
        return query.order("category").order("name").execute().data or []
    except Exception as e:
        logger.error(f"Fout bij laden kostinstellingen: {e}")
        st.error(f"Fout bij laden kostinstellingen: {e}")
        return []


def _valideer_kostinstelling(data: dict) -> dict:
    naam = (data.get("name") or "").strip()
    if not naam:
        raise ValueError("Naam is verplicht")
    categorie = data.get("category")
    if categorie not in CATEGORIEEN:
        raise ValueError(f"Onbekende categorie: {categorie}")
    bedrag = float(data.get("amount") or 0)
    if bedrag < 0:
        raise ValueError("Bedrag kan niet negatief zijn")
    return {
        "name": naam,
        "description": (data.get("description") or "").strip() or None,
        "amount": bedrag,
        "category": categorie,
        "is_active": bool(data.get("is_active", True)),
    }


def maak_kostinstelling_aan(data: dict) -> dict:
    supabase = database.get_supabase_client()
    return supabase.table("costs").insert(_valideer_kostinstelling(data)).execute().data[0]


def werk_kostinstelling_bij(cost_id: int, data: dict) -> dict:
    """Werk een kostinstelling bij; bestaande transacties behouden hun bedrag"""
    record = _valideer_kostinstelling(data)
    record["updated_at"] = datetime.now().isoformat()
    supabase = database.get_supabase_client()
    response = supabase.table("costs").update(record).eq("id", cost_id).execute()
    if not response.data:
        raise LookupError(f"Kostinstelling {cost_id} niet gevonden")
    return response.data[0]


def verwijder_kostinstelling(cost_id: int) -> None:
    """Verwijder een kostinstelling; met gekoppelde transacties wordt ze enkel gedeactiveerd"""
    supabase = database.get_supabase_client()
    gekoppeld = supabase.table("team_costs").select("id").eq("cost_setting_id", cost_id).limit(1).execute().data
    if gekoppeld:
        supabase.table("costs").update({"is_active": False}).eq("id", cost_id).execute()
        logger.info(f"Kostinstelling {cost_id} gedeactiveerd (heeft transacties)")
    else:
        supabase.table("costs").delete().eq("id", cost_id).execute()


# ============================================================
# TRANSACTIES
# ============================================================

def transactie_type(kost: dict | None) -> str:
    if not kost:
        return "adjustment"
    return _TYPE_PER_CATEGORIE.get(kost.get("category"), "adjustment")


def wedstrijdkost_soort(transactie: dict) -> str | None:
    """
    'veld' of 'scheids' voor een wedstrijdkost, None als niets herkend wordt.

    Zelfde termen als de kostensync, achtereenvolgens op de naam en de
    omschrijving van de kostinstelling en de omschrijving van de transactie.
    """
    for veld in ("cost_name", "cost_description", "description"):
        tekst = (transactie.get(veld) or "").lower()
        if any(term in tekst for term in VELD_TERMEN):
            return "veld"
        if any(term in tekst for term in SCHEIDS_TERMEN):
            return "scheids"
    return None


def laad_transacties(team_id: int | None = None, client=None) -> list:
    """
    Transacties met naam/categorie van de kostinstelling en wedstrijdinfo,
    nieuwste eerst.
    """
    supabase = client or database.get_supabase_client()
    query = supabase.table("team_costs").select("*")
    if team_id is not None:
        query = query.eq("team_id", team_id)
    transacties = query.order("transaction_date", desc=True).execute().data or []

    kost_ids = sorted({t["cost_setting_id"] for t in transacties if t.get("cost_setting_id")})
    match_ids = sorted({t["match_id"] for t in transacties if t.get("match_id")})
    kosten = {}
    if kost_ids:
        rijen = supabase.table("costs").select("id, name, description, category").in_("id", kost_ids).execute().data
        kosten = {k["id"]: k for k in rijen or []}
    wedstrijden = {}
    if match_ids:
        rijen = (
            supabase.table("matches")
            .select("match_id, unique_number, match_date")
            .in_("match_id", match_ids)
            .execute()
        ).data
        wedstrijden = {w["match_id"]: w for w in rijen or []}

    for t in transacties:
        kost = kosten.get(t.get("cost_setting_id"))
        t["cost_name"] = kost.get("name") if kost else None
        t["cost_category"] = kost.get("category") if kost else None
        t["cost_description"] = kost.get("description") if kost else None
        t["transaction_type"] = transactie_type(kost)
        wedstrijd = wedstrijden.get(t.get("match_id"))
        t["match_unique_number"] = wedstrijd.get("unique_number") if wedstrijd else None
    return transacties


def _storting_kost_id(supabase) -> int:
    rijen = (
        supabase.table("costs")
        .select("id")
        .eq("name", STORTING_NAAM)
        .eq("category", "deposit")
        .limit(1)
        .execute()
    ).data
    if rijen:
        return rijen[0]["id"]
    nieuw = supabase.table("costs").insert({
        "name": STORTING_NAAM,
        "description": "Storting van geld",
        "amount": 0,
        "category": "deposit",
        "is_active": True,
    }).execute().data[0]
    return nieuw["id"]


def voeg_transactie_toe(team_id: int, soort: str, bedrag: float, transactie_datum: str | None = None,
                        omschrijving: str | None = None, cost_setting_id: int | None = None) -> dict:
    """
    Voeg een transactie toe aan een team.

    - deposit: onder de gedeelde kostinstelling 'Storting'
    - penalty/match_cost met kostinstelling: direct gekoppeld
    - penalty zonder kostinstelling: nieuwe penalty-instelling met de omschrijving
    - adjustment: nieuwe instelling in categorie 'other' (bedrag mag negatief zijn)
    """
    if soort not in TRANSACTIE_TYPES:
        raise ValueError(f"Onbekend transactietype: {soort}")
    bedrag = float(bedrag)
    if soort != "adjustment" and bedrag <= 0:
        raise ValueError("Bedrag moet groter zijn dan 0")

    transactie_datum = str(transactie_datum or date.today().isoformat())[:10]
    supabase = database.get_supabase_client()

    if soort == "deposit":
        cost_setting_id = _storting_kost_id(supabase)
    elif not cost_setting_id:
        categorie = "penalty" if soort == "penalty" else "other"
        standaard = {"penalty": "Boete", "match_cost": "Transactie", "adjustment": "Correctie"}[soort]
        cost_setting_id = supabase.table("costs").insert({
            "name": omschrijving or f"{standaard} {transactie_datum}",
            "description": omschrijving or standaard,
            "amount": abs(bedrag),
            "category": categorie,
            "is_active": True,
        }).execute().data[0]["id"]

    response = supabase.table("team_costs").insert({
        "team_id": team_id,
        "cost_setting_id": cost_setting_id,
        "amount": bedrag,
        "transaction_date": transactie_datum,
        "description": omschrijving,
    }).execute()
    logger.info(f"Transactie {soort} van €{bedrag:.2f} voor team {team_id}")
    return response.data[0]


def werk_transactie_bij(transactie_id: int, bedrag: float | None = None,
                        transactie_datum: str | None = None, omschrijving: str | None = None) -> None:
    update = {}
    if bedrag is not None:
        update["amount"] = float(bedrag)
    if transactie_datum is not None:
        update["transaction_date"] = str(transactie_datum)[:10]
    if omschrijving is not None:
        update["description"] = omschrijving
    if not update:
        return
    supabase = database.get_supabase_client()
    supabase.table("team_costs").update(update).eq("id", transactie_id).execute()


def verwijder_transactie(transactie_id: int) -> None:
    supabase = database.get_supabase_client()
    supabase.table("team_costs").delete().eq("id", transactie_id).execute()


# ============================================================
# SALDO
# ============================================================

def bereken_teamfinancien(transacties: list) -> dict:
    """
    Financieel overzicht van één team.

    saldo = startkapitaal (stortingen) - veldkosten - scheidsrechterkosten
            - boetes + correcties
    """
    overzicht = {
        "startkapitaal": 0.0,
        "veldkosten": 0.0,
        "scheidsrechterkosten": 0.0,
        "boetes": 0.0,
        "correcties": 0.0,
    }
    for t in transacties:
        bedrag = float(t.get("amount") or 0)
        soort = t.get("transaction_type") or transactie_type({"category": t.get("cost_category")})
        if soort == "deposit":
            overzicht["startkapitaal"] += bedrag
        elif soort == "penalty":
            overzicht["boetes"] += bedrag
        elif soort == "match_cost":
            kostsoort = wedstrijdkost_soort(t)
            if kostsoort == "veld":
                overzicht["veldkosten"] += bedrag
            elif kostsoort == "scheids":
                overzicht["scheidsrechterkosten"] += bedrag
            else:
                logger.warning(f"Wedstrijdkost {t.get('id')} niet herkend als veld- of scheidsrechterkost")
        else:
            overzicht["correcties"] += bedrag

    overzicht["saldo"] = round(
        overzicht["startkapitaal"]
        - overzicht["veldkosten"]
        - overzicht["scheidsrechterkosten"]
        - overzicht["boetes"]
        + overzicht["correcties"],
        2,
    )
    return overzicht


def laad_teamsaldi() -> pd.DataFrame:
    """Saldo per team als DataFrame (voor st.dataframe)"""
    teams = database.laad_teams()
    transacties = laad_transacties()
    rijen = []
    for team in teams:
        eigen = [t for t in transacties if t.get("team_id") == team["team_id"]]
        overzicht = bereken_teamfinancien(eigen)
        rijen.append({"team": team["team_name"], **overzicht})
    return pd.DataFrame(rijen, columns=[
        "team", "startkapitaal", "veldkosten", "scheidsrechterkosten", "boetes", "correcties", "saldo",
    ])


# ============================================================
# SEIZOENEN EN MAANDRAPPORT
# ============================================================

def seizoen_van(datum) -> str:
    """Seizoen loopt van juli tot juni: 2024-09-01 -> '2024/2025'"""
    if isinstance(datum, str):
        datum = date.fromisoformat(datum[:10])
    jaar = datum.year if datum.month >= 7 else datum.year - 1
    return f"{jaar}/{jaar + 1}"


def seizoen_periode(seizoen: str) -> tuple[str, str]:
    start_jaar = int(seizoen.split("/")[0])
    return f"{start_jaar}-07-01", f"{start_jaar + 1}-06-30"


def beschikbare_seizoenen(transacties: list, vandaag: date | None = None) -> list:
    """Seizoenen met transacties plus het huidige, nieuwste eerst"""
    seizoenen = {seizoen_van(vandaag or date.today())}
    for t in transacties:
        if t.get("transaction_date"):
            seizoenen.add(seizoen_van(t["transaction_date"]))
    return sorted(seizoenen, reverse=True)


RAPPORT_KOLOMMEN = ["maand", "veldkosten", "scheidsrechterkosten", "boetes", "aantal_boetes", "wedstrijden", "totaal"]


def maandrapport(transacties: list, wedstrijden: list, seizoen: str, maand: int | None = None) -> pd.DataFrame:
    """
    Kosten per maand binnen een seizoen.

    Args:
        transacties: uit laad_transacties()
        wedstrijden: alle wedstrijden (alleen ingediende tellen mee)
        seizoen: '2024/2025'
        maand: 1-12 om op één maand te filteren
    """
    start, eind = seizoen_periode(seizoen)

    df = pd.DataFrame(
        [{**t, "kostsoort": wedstrijdkost_soort(t)} for t in transacties],
        columns=["transaction_date", "amount", "transaction_type", "kostsoort"],
    )
    if not df.empty:
        df = df[(df["transaction_date"].str[:10] >= start) & (df["transaction_date"].str[:10] <= eind)].copy()
        df["maand"] = df["transaction_date"].str[:7]
        df["amount"] = df["amount"].astype(float)
        wedstrijdkost = df["transaction_type"] == "match_cost"
        df["veldkosten"] = df["amount"].where(wedstrijdkost & (df["kostsoort"] == "veld"), 0.0)
        df["scheidsrechterkosten"] = df["amount"].where(wedstrijdkost & (df["kostsoort"] == "scheids"), 0.0)
        df["boetes"] = df["amount"].where(df["transaction_type"] == "penalty", 0.0)
        df["aantal_boetes"] = (df["transaction_type"] == "penalty").astype(int)
        kosten = df.groupby("maand")[["veldkosten", "scheidsrechterkosten", "boetes", "aantal_boetes"]].sum()
    else:
        kosten = pd.DataFrame(columns=["veldkosten", "scheidsrechterkosten", "boetes", "aantal_boetes"])

    gespeeld = pd.DataFrame(
        [w for w in wedstrijden if w.get("is_submitted") and w.get("match_date")],
        columns=["match_date"],
    )
    if not gespeeld.empty:
        gespeeld = gespeeld[(gespeeld["match_date"].str[:10] >= start) & (gespeeld["match_date"].str[:10] <= eind)]
        aantallen = gespeeld.groupby(gespeeld["match_date"].str[:7]).size().rename("wedstrijden")
    else:
        aantallen = pd.Series(dtype=int, name="wedstrijden")

    rapport = kosten.join(aantallen, how="outer").fillna(0)
    rapport.index.name = "maand"
    rapport = rapport.reset_index()
    if rapport.empty:
        return pd.DataFrame(columns=RAPPORT_KOLOMMEN)

    if maand is not None:
        rapport = rapport[rapport["maand"].str[5:7].astype(int) == maand]

    rapport["aantal_boetes"] = rapport["aantal_boetes"].astype(int)
    rapport["wedstrijden"] = rapport["wedstrijden"].astype(int)
    rapport["totaal"] = rapport["veldkosten"] + rapport["scheidsrechterkosten"] + rapport["boetes"]
    return rapport.sort_values("maand")[RAPPORT_KOLOMMEN].reset_index(drop=True)
