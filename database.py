"""
Database module voor Supabase connectie
Harelbeekse Minivoetbal - competitieportaal

Inclusief:
- Configuratie (Streamlit secrets, daarna environment variables)
- Login met rollen (admin, scheidsrechter, teamverantwoordelijke)
- Teams, spelers, wedstrijden en gebruikers
- Tab zichtbaarheid, vakantieperiodes en blogberichten
"""

import os
import re
import time
import hashlib
import hmac
from datetime import datetime, date

import streamlit as st
from supabase import create_client, Client

from logging_config import get_logger
import speelschema

logger = get_logger(__name__)


class ConfiguratieFout(Exception):
    """Verplichte configuratie (Supabase URL/keys) ontbreekt."""


def lees_secret(naam: str, default=None):
    """Lees een instelling uit Streamlit secrets, anders uit de environment."""
    try:
        waarde = st.secrets.get(naam)
        if waarde:
            return waarde
    except Exception:
        # Geen secrets.toml aanwezig (lokaal draaien of tests)
        pass
    return os.environ.get(naam, default)


def get_supabase_config() -> tuple[str, str]:
    """Haal Supabase URL en (anon) key op uit secrets of environment"""
    url = lees_secret("SUPABASE_URL")
    key = lees_secret("SUPABASE_KEY")
    if url and key:
        return url, key
    raise ConfiguratieFout("SUPABASE_URL en SUPABASE_KEY moeten geconfigureerd zijn in Streamlit Secrets")


@st.cache_resource
def get_supabase_client() -> Client:
    """Maak een Supabase client (cached)"""
    url, key = get_supabase_config()
    return create_client(url, key)


@st.cache_resource
def get_service_client() -> Client:
    """Supabase client met service role key (omzeilt row level security)"""
    url = lees_secret("SUPABASE_URL")
    key = lees_secret("SUPABASE_SERVICE_ROLE_KEY")
    if not url or not key:
        raise ConfiguratieFout("SUPABASE_URL en SUPABASE_SERVICE_ROLE_KEY moeten geconfigureerd zijn")
    return create_client(url, key)


def met_retry(functie, pogingen: int = 3, basis_wachttijd: float = 0.5):
    """
    Voer functie uit en probeer opnieuw bij een fout.

    Wachttijd na poging n (vanaf 0) is basis_wachttijd * 2 ** n.
    Na de laatste poging wordt de laatste fout opnieuw opgegooid.
    """
    laatste_fout = None
    for poging in range(pogingen):
        try:
            return functie()
        except Exception as e:
            laatste_fout = e
            if poging < pogingen - 1:
                wacht = basis_wachttijd * 2 ** poging
                logger.warning(f"Poging {poging + 1}/{pogingen} mislukt ({e}), opnieuw over {wacht:.1f}s")
                time.sleep(wacht)
    raise laatste_fout


# ============================================================
# AUTHENTICATIE EN ROLLEN
# ============================================================

ROL_ADMIN = "admin"
ROL_SCHEIDSRECHTER = "referee"
ROL_TEAMVERANTWOORDELIJKE = "player_manager"
ROLLEN = (ROL_ADMIN, ROL_SCHEIDSRECHTER, ROL_TEAMVERANTWOORDELIJKE)


def hash_wachtwoord(wachtwoord: str) -> str:
    """Hash een wachtwoord met SHA-256"""
    return hashlib.sha256(wachtwoord.encode()).hexdigest()


def heeft_rol(gebruiker: dict | None, *rollen: str) -> bool:
    """Check of de ingelogde gebruiker een van de rollen heeft"""
    if not gebruiker:
        return False
    return gebruiker.get("role") in rollen


def _admin_bestaat(supabase) -> bool:
    response = supabase.table("users").select("user_id").eq("role", ROL_ADMIN).limit(1).execute()
    return bool(response.data)


def verifieer_login(gebruikersnaam: str, wachtwoord: str) -> dict | None:
    """
    Controleer gebruikersnaam en wachtwoord.

    Zolang er nog geen admin in de database staat kan 'admin' inloggen met
    ADMIN_PASSWORD uit de secrets.

    Returns:
        gebruiker (zonder wachtwoord) met team_id, of None
    """
    gebruikersnaam = (gebruikersnaam or "").strip()
    if not gebruikersnaam or not wachtwoord:
        return None

    supabase = get_supabase_client()
    response = supabase.table("users").select("*").eq("username", gebruikersnaam).limit(1).execute()

    if not response.data:
        standaard = lees_secret("ADMIN_PASSWORD")
        if gebruikersnaam == "admin" and standaard and not _admin_bestaat(supabase):
            if hmac.compare_digest(wachtwoord, str(standaard)):
                logger.warning("Ingelogd met ADMIN_PASSWORD: maak een echte admin gebruiker aan")
                return {"user_id": None, "username": "admin", "role": ROL_ADMIN, "team_id": None}
        return None

    gebruiker = response.data[0]
    if not hmac.compare_digest(gebruiker.get("password") or "", hash_wachtwoord(wachtwoord)):
        logger.info(f"Mislukte login voor {gebruikersnaam}")
        return None

    gebruiker.pop("password", None)
    gebruiker["team_id"] = laad_team_van_gebruiker(gebruiker["user_id"])
    logger.info(f"Login {gebruikersnaam} ({gebruiker.get('role')})")
    return gebruiker


def wijzig_wachtwoord(user_id: int, nieuw_wachtwoord: str, client=None) -> None:
    """Sla een nieuw wachtwoord op (gehasht)"""
    if not nieuw_wachtwoord or len(nieuw_wachtwoord) < 6:
        raise ValueError("Wachtwoord moet minstens 6 tekens bevatten")
    supabase = client or get_supabase_client()
    supabase.table("users").update({"password": hash_wachtwoord(nieuw_wachtwoord)}).eq("user_id", user_id).execute()


# ============================================================
# TEAMS
# ============================================================

TEAM_KOLOMMEN = (
    "team_id, team_name, balance, contact_person, contact_phone, "
    "contact_email, club_colors, preferred_play_moments"
)
TEAM_BASIS_KOLOMMEN = "team_id, team_name, balance"
TEAM_CONTACT_VELDEN = ("contact_person", "contact_phone", "contact_email", "club_colors", "preferred_play_moments")


def _is_kolom_fout(fout: Exception) -> bool:
    tekst = str(fout).lower()
    return "column" in tekst or getattr(fout, "code", None) == "42703"


def _basis_team(rij: dict) -> dict:
    team = dict(rij)
    for veld in TEAM_CONTACT_VELDEN:
        team.setdefault(veld, None)
    return team


def laad_teams() -> list:
    """
    Laad alle teams, gesorteerd op naam.

    Oudere databases missen de contactkolommen; dan wordt teruggevallen op de
    basiskolommen en staan de contactvelden op None. Faalt ook dat, dan wordt
    de fout doorgegeven.
    """
    cache_key = "_db_cache_teams"
    if cache_key in st.session_state:
        return st.session_state[cache_key]

    supabase = get_supabase_client()
    try:
        response = supabase.table("teams").select(TEAM_KOLOMMEN).order("team_name").execute()
        teams = response.data or []
    except Exception as e:
        logger.warning(f"Teams met contactgegevens laden mislukt ({e}), terugvallen op basiskolommen")
        response = supabase.table("teams").select(TEAM_BASIS_KOLOMMEN).order("team_name").execute()
        teams = [_basis_team(rij) for rij in response.data or []]

    st.session_state[cache_key] = teams
    return teams


def _wis_team_cache():
    if "_db_cache_teams" in st.session_state:
        del st.session_state["_db_cache_teams"]


def laad_team(team_id: int) -> dict | None:
    """Laad één team, None als het niet bestaat"""
    supabase = get_supabase_client()
    try:
        response = supabase.table("teams").select(TEAM_KOLOMMEN).eq("team_id", team_id).limit(1).execute()
        return response.data[0] if response.data else None
    except Exception as e:
        if not _is_kolom_fout(e):
            raise
        response = supabase.table("teams").select(TEAM_BASIS_KOLOMMEN).eq("team_id", team_id).limit(1).execute()
        return _basis_team(response.data[0]) if response.data else None


def _team_record(data: dict) -> dict:
    naam = (data.get("team_name") or "").strip()
    if not naam:
        raise ValueError("Teamnaam is verplicht")
    record = {"team_name": naam}
    for veld in TEAM_CONTACT_VELDEN:
        if veld in data:
            record[veld] = data[veld] or None
    return record


def maak_team_aan(data: dict) -> dict:
    """
    Maak een team aan. Bij ontbrekende contactkolommen wordt alleen de naam
    opgeslagen; elke andere databasefout wordt met de melding van de database
    opgegooid.
    """
    record = _team_record(data)
    supabase = get_supabase_client()
    try:
        response = supabase.table("teams").insert(record).execute()
    except Exception as e:
        if not _is_kolom_fout(e):
            logger.error(f"Team aanmaken mislukt: {e}")
            raise
        logger.warning("Contactkolommen ontbreken, team aangemaakt met basisgegevens")
        response = supabase.table("teams").insert({"team_name": record["team_name"]}).execute()

    _wis_team_cache()
    logger.info(f"Team '{record['team_name']}' aangemaakt")
    return _basis_team(response.data[0])


def werk_team_bij(team_id: int, data: dict) -> dict:
    """Werk teamgegevens bij; fouten van de database worden opgegooid"""
    record = _team_record(data)
    supabase = get_supabase_client()
    response = supabase.table("teams").update(record).eq("team_id", team_id).execute()
    if not response.data:
        raise LookupError(f"Team {team_id} niet gevonden")
    _wis_team_cache()
    return _basis_team(response.data[0])


def verwijder_team(team_id: int) -> None:
    """Verwijder een team"""
    supabase = get_supabase_client()
    supabase.table("teams").delete().eq("team_id", team_id).execute()
    _wis_team_cache()
    logger.info(f"Team {team_id} verwijderd")


# ============================================================
# SPELERS
# ============================================================

DATUM_PATROON = re.compile(r"^\d{4}-\d{2}-\d{2}$")
SPELERSLIJST_SLOT_CATEGORIE = "player_list_lock"


def laad_spelers(team_id: int | None = None, alleen_actief: bool = True) -> list:
    """Laad spelers (optioneel van één team), gesorteerd op naam"""
    try:
        supabase = get_supabase_client()
        query = supabase.table("players").select("*")
        if team_id is not None:
            query = query.eq("team_id", team_id)
        if alleen_actief:
            query = query.eq("is_active", True)
        response = query.order("last_name").order("first_name").execute()
        return response.data or []
    except Exception as e:
        logger.error(f"Fout bij laden spelers: {e}")
        st.error(f"Fout bij laden spelers: {e}")
        return []


def valideer_speler(data: dict) -> dict:
    """Controleer verplichte velden; geeft een schoon record terug"""
    voornaam = (data.get("first_name") or "").strip()
    achternaam = (data.get("last_name") or "").strip()
    if not voornaam or not achternaam:
        raise ValueError("Voornaam en achternaam zijn verplicht")

    geboortedatum = data.get("birth_date")
    if isinstance(geboortedatum, date):
        geboortedatum = geboortedatum.isoformat()
    if not geboortedatum or not DATUM_PATROON.match(str(geboortedatum)):
        raise ValueError("Geboortedatum moet het formaat JJJJ-MM-DD hebben")
    try:
        datetime.strptime(geboortedatum, "%Y-%m-%d")
    except ValueError:
        raise ValueError(f"Ongeldige geboortedatum: {geboortedatum}")

    return {
        "first_name": voornaam,
        "last_name": achternaam,
        "birth_date": geboortedatum,
        "team_id": data.get("team_id"),
    }


def sla_speler_op(data: dict, player_id: int | None = None) -> dict:
    """Maak een speler aan of werk hem bij (ValueError bij ongeldige invoer)"""
    record = valideer_speler(data)
    supabase = get_supabase_client()
    if player_id is None:
        record["is_active"] = True
        response = supabase.table("players").insert(record).execute()
    else:
        response = supabase.table("players").update(record).eq("player_id", player_id).execute()
    return response.data[0] if response.data else record


def verwijder_speler(player_id: int) -> bool:
    """Zet een speler op inactief (blijft bewaard voor kaarten en historiek)"""
    try:
        supabase = get_supabase_client()
        supabase.table("players").update({"is_active": False}).eq("player_id", player_id).execute()
        return True
    except Exception as e:
        st.error(f"Fout bij verwijderen speler: {e}")
        return False


def laad_spelerslijst_slot() -> dict:
    """Instelling voor het vergrendelen van spelerslijsten"""
    try:
        supabase = get_supabase_client()
        response = (
            supabase.table("application_settings")
            .select("setting_value, is_active")
            .eq("setting_category", SPELERSLIJST_SLOT_CATEGORIE)
            .eq("setting_name", "lock")
            .limit(1)
            .execute()
        )
        if response.data:
            waarde = response.data[0].get("setting_value") or {}
            return {
                "lock_from_date": waarde.get("lock_from_date"),
                "is_active": bool(response.data[0].get("is_active")),
            }
    except Exception as e:
        logger.error(f"Fout bij laden spelerslijst slot: {e}")
    return {"lock_from_date": None, "is_active": False}


def zet_spelerslijst_slot(lock_from_date: str | None, actief: bool) -> None:
    """Sla de spelerslijst vergrendeling op"""
    supabase = get_supabase_client()
    supabase.table("application_settings").upsert(
        {
            "setting_category": SPELERSLIJST_SLOT_CATEGORIE,
            "setting_name": "lock",
            "setting_value": {"lock_from_date": lock_from_date},
            "is_active": actief,
        },
        on_conflict="setting_category,setting_name",
    ).execute()


def is_spelerslijst_vergrendeld(slot: dict, vandaag: date | None = None) -> bool:
    """True als spelerslijsten niet meer door teamverantwoordelijken gewijzigd mogen worden"""
    if not slot.get("is_active"):
        return False
    vanaf = slot.get("lock_from_date")
    if not vanaf:
        return True
    vandaag = vandaag or date.today()
    return vandaag.isoformat() >= str(vanaf)[:10]


# ============================================================
# WEDSTRIJDEN
# ============================================================

WEDSTRIJD_SOORTEN = ("competitie", "beker", "playoff")


def _met_lokale_tijd(wedstrijd: dict) -> dict:
    datum, tijd = speelschema.iso_naar_lokaal(wedstrijd.get("match_date"))
    wedstrijd["datum"] = datum
    wedstrijd["tijd"] = tijd
    return wedstrijd


def laad_wedstrijden(team_id: int | None = None, soort: str | None = None) -> list:
    """
    Laad wedstrijden gesorteerd op datum.

    Args:
        team_id: alleen wedstrijden van dit team (thuis of uit)
        soort: 'competitie', 'beker' of 'playoff'
    """
    try:
        supabase = get_supabase_client()
        query = supabase.table("matches").select("*")
        if team_id is not None:
            query = query.or_(f"home_team_id.eq.{team_id},away_team_id.eq.{team_id}")
        if soort == "beker":
            query = query.eq("is_cup_match", True)
        elif soort == "playoff":
            query = query.eq("is_playoff_match", True)
        elif soort == "competitie":
            query = query.or_("is_cup_match.is.null,is_cup_match.eq.false")
            query = query.or_("is_playoff_match.is.null,is_playoff_match.eq.false")
        response = query.order("match_date").execute()
        return [_met_lokale_tijd(w) for w in response.data or []]
    except Exception as e:
        logger.error(f"Fout bij laden wedstrijden: {e}")
        st.error(f"Fout bij laden wedstrijden: {e}")
        return []


def laad_wedstrijd(match_id: int) -> dict | None:
    """Laad één wedstrijd"""
    supabase = get_supabase_client()
    response = supabase.table("matches").select("*").eq("match_id", match_id).limit(1).execute()
    return _met_lokale_tijd(response.data[0]) if response.data else None


def maak_wedstrijd_aan(data: dict) -> dict:
    """Maak een wedstrijd aan; datum en tijd worden als Belgische tijd opgeslagen"""
    record = dict(data)
    if "datum" in record:
        record["match_date"] = speelschema.lokaal_naar_iso(record.pop("datum"), record.pop("tijd", None))
    if record.get("home_team_id") and record.get("home_team_id") == record.get("away_team_id"):
        raise ValueError("Thuis- en uitploeg moeten verschillend zijn")
    supabase = get_supabase_client()
    response = supabase.table("matches").insert(record).execute()
    return response.data[0]


def werk_wedstrijd_bij(match_id: int, data: dict) -> dict:
    """Werk planning/gegevens van een wedstrijd bij (admin)"""
    record = dict(data)
    if "datum" in record:
        record["match_date"] = speelschema.lokaal_naar_iso(record.pop("datum"), record.pop("tijd", None))
    supabase = get_supabase_client()
    response = supabase.table("matches").update(record).eq("match_id", match_id).execute()
    if not response.data:
        raise LookupError(f"Wedstrijd {match_id} niet gevonden")
    return response.data[0]


def verwijder_wedstrijd(match_id: int) -> None:
    """Verwijder een wedstrijd"""
    supabase = get_supabase_client()
    supabase.table("matches").delete().eq("match_id", match_id).execute()


def _score(waarde):
    if waarde is None or waarde == "":
        return None
    score = int(waarde)
    if score < 0:
        raise ValueError("Score kan niet negatief zijn")
    return score


def sla_wedstrijdformulier_op(formulier: dict, gebruiker: dict | None) -> dict:
    """
    Sla een wedstrijdformulier op (score, opstelling, kaarten, scheidsrechter).

    Een vergrendelde wedstrijd kan alleen door een admin gewijzigd worden.
    Indienen vergrendelt het formulier.

    Returns:
        de bijgewerkte wedstrijd
    """
    match_id = formulier["match_id"]
    huidig = laad_wedstrijd(match_id)
    if huidig is None:
        raise LookupError(f"Wedstrijd {match_id} niet gevonden")
    if huidig.get("is_locked") and not heeft_rol(gebruiker, ROL_ADMIN):
        raise PermissionError("Dit wedstrijdformulier is vergrendeld")

    record = {
        "home_score": _score(formulier.get("home_score")),
        "away_score": _score(formulier.get("away_score")),
        "home_players": formulier.get("home_players") or [],
        "away_players": formulier.get("away_players") or [],
    }
    for veld in ("referee", "referee_notes"):
        if veld in formulier:
            record[veld] = formulier[veld]

    if formulier.get("is_submitted"):
        if record["home_score"] is None or record["away_score"] is None:
            raise ValueError("Vul beide scores in voor het indienen")
        record["is_submitted"] = True
        record["is_locked"] = True
    if heeft_rol(gebruiker, ROL_ADMIN) and "is_locked" in formulier:
        record["is_locked"] = bool(formulier["is_locked"])

    supabase = get_supabase_client()
    response = supabase.table("matches").update(record).eq("match_id", match_id).execute()
    logger.info(f"Wedstrijdformulier {match_id} opgeslagen door {(gebruiker or {}).get('username')}")
    return response.data[0]


def vergrendel_wedstrijd(match_id: int, vergrendeld: bool = True) -> None:
    """(Ont)grendel een wedstrijdformulier"""
    supabase = get_supabase_client()
    supabase.table("matches").update({"is_locked": vergrendeld}).eq("match_id", match_id).execute()


# ============================================================
# GEBRUIKERS
# ============================================================

def laad_gebruikers() -> list:
    """Laad alle gebruikers (zonder wachtwoord) met hun team"""
    try:
        supabase = get_supabase_client()
        gebruikers = supabase.table("users").select("user_id, username, email, role").order("username").execute().data or []
        koppelingen = supabase.table("team_users").select("user_id, team_id").execute().data or []
        team_per_gebruiker = {k["user_id"]: k["team_id"] for k in koppelingen}
        for gebruiker in gebruikers:
            gebruiker["team_id"] = team_per_gebruiker.get(gebruiker["user_id"])
        return gebruikers
    except Exception as e:
        st.error(f"Fout bij laden gebruikers: {e}")
        return []


def laad_team_van_gebruiker(user_id: int) -> int | None:
    supabase = get_supabase_client()
    response = supabase.table("team_users").select("team_id").eq("user_id", user_id).limit(1).execute()
    return response.data[0]["team_id"] if response.data else None


def _koppel_team(supabase, user_id: int, team_id: int | None):
    supabase.table("team_users").delete().eq("user_id", user_id).execute()
    if team_id:
        supabase.table("team_users").insert({"user_id": user_id, "team_id": team_id}).execute()


def maak_gebruiker_aan(gebruikersnaam: str, wachtwoord: str, rol: str,
                       email: str | None = None, team_id: int | None = None) -> dict:
    """Maak een gebruiker aan; teamverantwoordelijken worden aan hun team gekoppeld"""
    gebruikersnaam = (gebruikersnaam or "").strip()
    if not gebruikersnaam:
        raise ValueError("Gebruikersnaam is verplicht")
    if rol not in ROLLEN:
        raise ValueError(f"Onbekende rol: {rol}")
    if not wachtwoord or len(wachtwoord) < 6:
        raise ValueError("Wachtwoord moet minstens 6 tekens bevatten")

    supabase = get_supabase_client()
    response = supabase.table("users").insert({
        "username": gebruikersnaam,
        "password": hash_wachtwoord(wachtwoord),
        "role": rol,
        "email": (email or "").strip() or None,
    }).execute()
    gebruiker = response.data[0]
    gebruiker.pop("password", None)
    if rol == ROL_TEAMVERANTWOORDELIJKE and team_id:
        _koppel_team(supabase, gebruiker["user_id"], team_id)
    gebruiker["team_id"] = team_id if rol == ROL_TEAMVERANTWOORDELIJKE else None
    logger.info(f"Gebruiker {gebruikersnaam} ({rol}) aangemaakt")
    return gebruiker


def werk_gebruiker_bij(user_id: int, data: dict) -> None:
    """Werk rol, email en/of teamkoppeling bij"""
    supabase = get_supabase_client()
    record = {}
    if "username" in data:
        record["username"] = data["username"].strip()
    if "email" in data:
        record["email"] = (data["email"] or "").strip() or None
    if "role" in data:
        if data["role"] not in ROLLEN:
            raise ValueError(f"Onbekende rol: {data['role']}")
        record["role"] = data["role"]
    if record:
        supabase.table("users").update(record).eq("user_id", user_id).execute()
    if "team_id" in data:
        _koppel_team(supabase, user_id, data["team_id"])


def verwijder_gebruiker(user_id: int) -> None:
    """Verwijder een gebruiker en zijn teamkoppeling"""
    supabase = get_supabase_client()
    supabase.table("team_users").delete().eq("user_id", user_id).execute()
    supabase.table("users").delete().eq("user_id", user_id).execute()


# ============================================================
# TAB ZICHTBAARHEID
# ============================================================

STANDAARD_TABS = ("algemeen", "competitie", "playoff", "beker", "schorsingen", "reglement")


def _standaard_tab_instellingen() -> list:
    return [{"setting_name": naam, "is_visible": True, "requires_login": False} for naam in STANDAARD_TABS]


def laad_tab_zichtbaarheid() -> list:
    """Laad tab instellingen; zonder rijen of bij een fout gelden de standaard tabs"""
    try:
        supabase = get_supabase_client()
        response = supabase.table("tab_visibility_settings").select("*").order("setting_name").execute()
        if response.data:
            return response.data
    except Exception as e:
        logger.error(f"Fout bij laden tab zichtbaarheid: {e}")
    return _standaard_tab_instellingen()


def zet_tab_zichtbaarheid(setting_name: str, is_visible: bool, requires_login: bool = False) -> None:
    """Zet zichtbaarheid van één tab"""
    supabase = get_supabase_client()
    supabase.table("tab_visibility_settings").upsert(
        {
            "setting_name": setting_name,
            "is_visible": is_visible,
            "requires_login": requires_login,
            "updated_at": datetime.now().isoformat(),
        },
        on_conflict="setting_name",
    ).execute()


def zichtbare_tabs(instellingen: list, gebruiker: dict | None) -> list:
    """
    Namen van de tabs die deze bezoeker mag zien.

    Een admin ziet alles; tabs met requires_login zijn verborgen voor
    anonieme bezoekers.
    """
    if heeft_rol(gebruiker, ROL_ADMIN):
        return [i["setting_name"] for i in instellingen]
    zichtbaar = []
    for instelling in instellingen:
        if not instelling.get("is_visible", True):
            continue
        if instelling.get("requires_login") and not gebruiker:
            continue
        zichtbaar.append(instelling["setting_name"])
    return zichtbaar


# ============================================================
# VAKANTIEPERIODES
# ============================================================

def laad_vakantieperiodes() -> list:
    """Laad alle vakantieperiodes"""
    try:
        supabase = get_supabase_client()
        return supabase.table("vacation_periods").select("*").order("start_date").execute().data or []
    except Exception as e:
        st.error(f"Fout bij laden vakantieperiodes: {e}")
        return []


def maak_vakantieperiode_aan(naam: str, start_date: str, end_date: str, actief: bool = True) -> dict:
    if not (naam or "").strip():
        raise ValueError("Naam is verplicht")
    if str(start_date) > str(end_date):
        raise ValueError("Startdatum moet voor de einddatum liggen")
    supabase = get_supabase_client()
    response = supabase.table("vacation_periods").insert({
        "name": naam.strip(),
        "start_date": str(start_date),
        "end_date": str(end_date),
        "is_active": actief,
    }).execute()
    return response.data[0]


def verwijder_vakantieperiode(periode_id: int) -> None:
    supabase = get_supabase_client()
    supabase.table("vacation_periods").delete().eq("id", periode_id).execute()


# ============================================================
# BLOG
# ============================================================

def laad_blogberichten(limiet: int | None = None) -> list:
    """Laad blogberichten, nieuwste eerst"""
    try:
        supabase = get_supabase_client()
        query = supabase.table("blog_posts").select("*").order("date", desc=True)
        if limiet:
            query = query.limit(limiet)
        return query.execute().data or []
    except Exception as e:
        st.error(f"Fout bij laden berichten: {e}")
        return []


def maak_blogbericht_aan(titel: str, inhoud: str, tags: list | None = None, datum: str | None = None) -> dict:
    if not (titel or "").strip() or not (inhoud or "").strip():
        raise ValueError("Titel en inhoud zijn verplicht")
    supabase = get_supabase_client()
    response = supabase.table("blog_posts").insert({
        "title": titel.strip(),
        "content": inhoud.strip(),
        "tags": tags or [],
        "date": datum or date.today().isoformat(),
    }).execute()
    return response.data[0]


def verwijder_blogbericht(bericht_id: int) -> None:
    supabase = get_supabase_client()
    supabase.table("blog_posts").delete().eq("id", bericht_id).execute()
