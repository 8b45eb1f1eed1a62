"""
Schorsingen - kaarten tellen en schorsingsregels toepassen

Regels staan in application_settings (categorie suspension_rules) en kunnen
door een admin aangepast worden. Zonder geldige rij gelden STANDAARD_REGELS.
"""

import copy
from collections import defaultdict
from datetime import datetime, timedelta

import streamlit as st

import database
from kosten_sync import normaliseer_kaart
from logging_config import get_logger

logger = get_logger(__name__)

REGELS_CATEGORIE = "suspension_rules"
REGELS_NAAM = "rules"
HANDMATIG_CATEGORIE = "manual_suspensions"

STANDAARD_REGELS = {
    "yellow_card_rules": [
        {"min_cards": 2, "max_cards": 3, "suspension_matches": 1},
        {"min_cards": 4, "max_cards": 5, "suspension_matches": 2},
        {"min_cards": 6, "max_cards": 99, "suspension_matches": 3},
    ],
    "red_card_rules": {
        "default_suspension_matches": 1,
        "max_suspension_matches": 5,
    },
}


# ============================================================
# REGELS
# ============================================================

@st.cache_data(ttl=300)
def _laad_regels_uit_database() -> dict | None:
    supabase = database.get_supabase_client()
    response = (
        supabase.table("application_settings")
        .select("setting_value")
        .eq("setting_category", REGELS_CATEGORIE)
        .eq("setting_name", REGELS_NAAM)
        .eq("is_active", True)
        .limit(1)
        .execute()
    )
    return response.data[0]["setting_value"] if response.data else None


def laad_schorsingsregels() -> dict:
    """Huidige schorsingsregels (5 minuten gecached), standaardregels bij een fout"""
    try:
        regels = _laad_regels_uit_database()
        if regels:
            valideer_regels(regels)
            return regels
    except Exception as e:
        logger.warning(f"Schorsingsregels laden mislukt, standaardregels gebruikt: {e}")
    return copy.deepcopy(STANDAARD_REGELS)


def valideer_regels(regels: dict) -> None:
    """ValueError als de regels niet bruikbaar zijn"""
    gele = regels.get("yellow_card_rules")
    rode = regels.get("red_card_rules")
    if not isinstance(gele, list) or not isinstance(rode, dict):
        raise ValueError("yellow_card_rules en red_card_rules zijn verplicht")

    vorige_max = None
    for regel in sorted(gele, key=lambda r: r["min_cards"]):
        minimum, maximum, wedstrijden = regel["min_cards"], regel["max_cards"], regel["suspension_matches"]
        if minimum < 0 or wedstrijden < 0:
            raise ValueError("Aantallen kunnen niet negatief zijn")
        if minimum > maximum:
            raise ValueError(f"Minimum ({minimum}) groter dan maximum ({maximum})")
        if vorige_max is not None and minimum <= vorige_max:
            raise ValueError(f"Regel vanaf {minimum} kaarten overlapt met de vorige regel")
        vorige_max = maximum

    standaard = rode.get("default_suspension_matches")
    maximum = rode.get("max_suspension_matches")
    if standaard is None or standaard < 0:
        raise ValueError("Standaard schorsing voor rode kaart ontbreekt")
    if maximum is not None and maximum < standaard:
        raise ValueError("Maximum schorsing kleiner dan standaard schorsing")


def sla_schorsingsregels_op(regels: dict) -> None:
    """Valideer en bewaar de regels; de cache wordt geleegd"""
    valideer_regels(regels)
    supabase = database.get_supabase_client()
    supabase.table("application_settings").upsert(
        {
            "setting_category": REGELS_CATEGORIE,
            "setting_name": REGELS_NAAM,
            "setting_value": regels,
            "is_active": True,
        },
        on_conflict="setting_category,setting_name",
    ).execute()
    _laad_regels_uit_database.clear()
    logger.info("Schorsingsregels bijgewerkt")


def schorsing_voor_gele_kaarten(aantal: int, regels: dict | None = None) -> int:
    """Aantal speeldagen schorsing voor een aantal gele kaarten (0 als geen regel past)"""
    regels = regels or STANDAARD_REGELS
    for regel in regels["yellow_card_rules"]:
        if regel["min_cards"] <= aantal <= regel["max_cards"]:
            return regel["suspension_matches"]
    return 0


def schorsing_voor_rode_kaarten(aantal: int, regels: dict | None = None) -> int:
    """Rode kaarten x standaard schorsing, begrensd door het maximum"""
    if aantal <= 0:
        return 0
    rode = (regels or STANDAARD_REGELS)["red_card_rules"]
    wedstrijden = aantal * rode["default_suspension_matches"]
    maximum = rode.get("max_suspension_matches")
    return min(wedstrijden, maximum) if maximum else wedstrijden


# ============================================================
# KAARTEN EN SCHORSINGEN
# ============================================================

def tel_kaarten(wedstrijden: list) -> dict:
    """
    Tel kaarten per speler uit ingediende wedstrijdformulieren.

    Returns:
        {player_id: {"yellow": n, "red": n, "laatste_geel": datum, "laatste_rood": datum}}
        Een dubbele gele kaart telt als rode kaart.
    """
    kaarten = defaultdict(lambda: {"yellow": 0, "red": 0, "laatste_geel": None, "laatste_rood": None})
    for wedstrijd in wedstrijden:
        if not wedstrijd.get("is_submitted"):
            continue
        datum = (wedstrijd.get("match_date") or "")[:10] or None
        for speler in (wedstrijd.get("home_players") or []) + (wedstrijd.get("away_players") or []):
            if not isinstance(speler, dict) or not speler.get("playerId"):
                continue
            kaart = normaliseer_kaart(speler.get("cardType"))
            if kaart is None:
                continue
            telling = kaarten[speler["playerId"]]
            if kaart == "yellow":
                telling["yellow"] += 1
                if datum and (telling["laatste_geel"] is None or datum > telling["laatste_geel"]):
                    telling["laatste_geel"] = datum
            elif kaart in ("red", "double_yellow"):
                telling["red"] += 1
                if datum and (telling["laatste_rood"] is None or datum > telling["laatste_rood"]):
                    telling["laatste_rood"] = datum
    return dict(kaarten)


def volgende_wedstrijden_per_team(wedstrijden: list, teamnamen: dict, vanaf: str) -> dict:
    """Eerstvolgende niet-ingediende wedstrijd per team: {team_id: {"date", "opponent"}}"""
    volgende = {}
    kandidaten = sorted(
        (w for w in wedstrijden if not w.get("is_submitted") and (w.get("match_date") or "") >= vanaf),
        key=lambda w: w["match_date"],
    )
    for w in kandidaten:
        for team_id, tegenstander in ((w.get("home_team_id"), w.get("away_team_id")),
                                      (w.get("away_team_id"), w.get("home_team_id"))):
            if team_id and team_id not in volgende:
                volgende[team_id] = {
                    "date": w["match_date"][:10],
                    "opponent": teamnamen.get(tegenstander, "Onbekend"),
                }
    return volgende


def _teamwedstrijden_na(team_id, kaartdatum: str | None, wedstrijden: list) -> list:
    """Wedstrijden van het team na de kaartdatum, op datum gesorteerd"""
    grens = kaartdatum or ""
    return sorted(
        (w for w in wedstrijden
         if team_id in (w.get("home_team_id"), w.get("away_team_id"))
         and (w.get("match_date") or "")[:10] > grens),
        key=lambda w: w["match_date"],
    )


def _met_verloop(schorsing: dict, wedstrijden: list) -> dict | None:
    """
    Vul uitgezeten en geschorst_op in; None als de schorsing uitgezeten is.

    Een schorsing van n wedstrijden geldt voor de eerste n wedstrijden van het
    team na de kaartdatum en is uitgezeten zodra n daarvan ingediend zijn.
    """
    na_kaart = _teamwedstrijden_na(schorsing["team_id"], schorsing["kaartdatum"], wedstrijden)
    uitgezeten = sum(1 for w in na_kaart if w.get("is_submitted"))
    if uitgezeten >= schorsing["wedstrijden"]:
        return None
    schorsing["uitgezeten"] = uitgezeten
    schorsing["geschorst_op"] = [w["match_date"][:10] for w in na_kaart[:schorsing["wedstrijden"]]]
    return schorsing


def bereken_schorsingen(spelers: list, kaarten: dict, regels: dict, volgende_wedstrijden: dict,
                        wedstrijden: list | None = None) -> list:
    """
    Actieve schorsingen op basis van kaarttellingen.

    Gele kaarten volgen de bereikregels, rode kaarten geven aantal x standaard
    schorsing. Elke schorsing krijgt de datum van de laatste kaart en de
    eerstvolgende wedstrijd van het team mee. Met de wedstrijdenlijst vallen
    uitgezeten schorsingen weg.
    """
    kandidaten = _schorsingen_uit_kaarten(spelers, kaarten, regels, volgende_wedstrijden)
    if wedstrijden is None:
        for schorsing in kandidaten:
            schorsing["uitgezeten"] = 0
            schorsing["geschorst_op"] = []
        return kandidaten
    return [s for s in (_met_verloop(s, wedstrijden) for s in kandidaten) if s is not None]


def _schorsingen_uit_kaarten(spelers: list, kaarten: dict, regels: dict, volgende_wedstrijden: dict) -> list:
    schorsingen = []
    for speler in spelers:
        telling = kaarten.get(speler["player_id"])
        if not telling:
            continue
        naam = f"{speler.get('first_name', '')} {speler.get('last_name', '')}".strip()
        basis = {
            "player_id": speler["player_id"],
            "speler": naam,
            "team_id": speler.get("team_id"),
            "status": "active",
            "volgende_wedstrijd": volgende_wedstrijden.get(speler.get("team_id")),
        }

        geel = telling["yellow"]
        if geel >= 2:
            wedstrijden = schorsing_voor_gele_kaarten(geel, regels)
            if wedstrijden > 0:
                schorsingen.append({
                    **basis,
                    "reden": f"{geel} gele kaarten",
                    "wedstrijden": wedstrijden,
                    "kaartdatum": telling["laatste_geel"],
                })

        rood = telling["red"]
        if rood > 0:
            schorsingen.append({
                **basis,
                "reden": f"{rood} rode kaart{'en' if rood > 1 else ''}",
                "wedstrijden": schorsing_voor_rode_kaarten(rood, regels),
                "kaartdatum": telling["laatste_rood"],
            })
    return schorsingen


def laad_actieve_schorsingen() -> list:
    """Schorsingen voor de publieke tab en het admin overzicht"""
    regels = laad_schorsingsregels()
    spelers = database.laad_spelers()
    wedstrijden = database.laad_wedstrijden()
    teamnamen = {t["team_id"]: t["team_name"] for t in database.laad_teams()}
    kaarten = tel_kaarten(wedstrijden)
    volgende = volgende_wedstrijden_per_team(wedstrijden, teamnamen, datetime.now().strftime("%Y-%m-%d"))
    schorsingen = bereken_schorsingen(spelers, kaarten, regels, volgende, wedstrijden)
    for schorsing in schorsingen:
        schorsing["team"] = teamnamen.get(schorsing["team_id"], "Onbekend Team")
    return schorsingen


# ============================================================
# HANDMATIGE SCHORSINGEN
# ============================================================

def voeg_handmatige_schorsing_toe(player_id: int, reden: str, wedstrijden: int,
                                  notities: str | None = None, aangemaakt_door: str = "admin",
                                  start: datetime | None = None) -> dict:
    """Handmatige schorsing; einddatum is een schatting van één week per wedstrijd"""
    if wedstrijden < 1:
        raise ValueError("Een schorsing duurt minstens één wedstrijd")
    if not (reden or "").strip():
        raise ValueError("Reden is verplicht")
    start = start or datetime.now()
    supabase = database.get_supabase_client()
    response = supabase.table("application_settings").insert({
        "setting_category": HANDMATIG_CATEGORIE,
        "setting_name": str(player_id),
        "setting_value": {
            "reason": reden.strip(),
            "matches": wedstrijden,
            "start_date": start.isoformat(),
            "end_date": (start + timedelta(weeks=wedstrijden)).isoformat(),
            "notes": notities,
            "created_by": aangemaakt_door,
            "type": "manual",
        },
        "is_active": True,
    }).execute()
    is_speler_speelgerechtigd.clear()
    return response.data[0]


def _handmatige_schorsing(rij: dict) -> dict:
    waarde = rij.get("setting_value") or {}
    return {
        "id": rij["id"],
        "player_id": int(rij["setting_name"]),
        "reden": waarde.get("reason", ""),
        "wedstrijden": waarde.get("matches", 0),
        "start_date": waarde.get("start_date", ""),
        "end_date": waarde.get("end_date", ""),
        "notities": waarde.get("notes") or "",
        "is_active": bool(rij.get("is_active")),
    }


def laad_handmatige_schorsingen() -> list:
    try:
        supabase = database.get_supabase_client()
        response = (
            supabase.table("application_settings")
            .select("id, setting_name, setting_value, created_at, is_active")
            .eq("setting_category", HANDMATIG_CATEGORIE)
            .order("created_at", desc=True)
            .execute()
        )
        return [_handmatige_schorsing(r) for r in response.data or []]
    except Exception as e:
        logger.error(f"Fout bij laden handmatige schorsingen: {e}")
        st.error(f"Fout bij laden schorsingen: {e}")
        return []


def werk_handmatige_schorsing_bij(schorsing_id: int, waarde: dict, actief: bool) -> None:
    supabase = database.get_supabase_client()
    supabase.table("application_settings").update(
        {"setting_value": waarde, "is_active": actief}
    ).eq("id", schorsing_id).execute()
    is_speler_speelgerechtigd.clear()


def verwijder_handmatige_schorsing(schorsing_id: int) -> None:
    supabase = database.get_supabase_client()
    supabase.table("application_settings").delete().eq("id", schorsing_id).execute()
    is_speler_speelgerechtigd.clear()


# ============================================================
# SPEELGERECHTIGHEID
# ============================================================

@st.cache_data(ttl=300)
def is_speler_speelgerechtigd(player_id: int, wedstrijddatum: str) -> bool:
    """
    Mag de speler spelen op deze datum (YYYY-MM-DD)?

    Niet speelgerechtigd bij een actieve handmatige schorsing die de datum
    omvat, of als de wedstrijd valt binnen een kaartschorsing die nog niet
    uitgezeten is. Staan er minder wedstrijden gepland dan de schorsing lang
    is, dan geldt ze ook voor elke latere datum.
    """
    datum = str(wedstrijddatum)[:10]
    for schorsing in laad_handmatige_schorsingen():
        if schorsing["player_id"] != player_id or not schorsing["is_active"]:
            continue
        if schorsing["start_date"][:10] <= datum <= schorsing["end_date"][:10]:
            return False

    for schorsing in laad_actieve_schorsingen():
        if schorsing["player_id"] != player_id:
            continue
        geschorst_op = schorsing.get("geschorst_op") or []
        if datum in geschorst_op:
            return False
        laatste = max(geschorst_op + [schorsing.get("kaartdatum") or ""])
        if len(geschorst_op) < schorsing["wedstrijden"] and datum > laatste:
            return False
    return True
