"""
Meldingen - berichten voor ingelogde gebruikers

Admin meldingen staan in application_settings (categorie notifications);
systeemmeldingen (bv. nieuwe polls) in categorie admin_notifications.
"""

import time
from datetime import datetime

import streamlit as st

import database
from logging_config import get_logger

logger = get_logger(__name__)

CATEGORIE = "notifications"
SYSTEEM_CATEGORIE = "admin_notifications"
MELDING_TYPES = ("info", "warning", "success", "error")
STANDAARD_DUUR = 8


def _normaliseer(rij: dict) -> dict:
    waarde = rij.get("setting_value") or {}
    return {
        "id": rij.get("id"),
        "categorie": rij.get("setting_category"),
        "message": waarde.get("message", ""),
        "type": waarde.get("type") or "info",
        "target_roles": waarde.get("target_roles") or [],
        "player_manager_mode": waarde.get("player_manager_mode") or "all",
        "player_manager_teams": waarde.get("player_manager_teams") or [],
        "start_date": waarde.get("start_date"),
        "end_date": waarde.get("end_date"),
        "duration": waarde.get("duration") or STANDAARD_DUUR,
        "is_active": bool(rij.get("is_active")),
        "created_at": rij.get("created_at") or waarde.get("created_at"),
    }


def laad_meldingen(alleen_actief: bool = False) -> list:
    """Admin- en systeemmeldingen, nieuwste eerst"""
    try:
        supabase = database.get_supabase_client()
        query = supabase.table("application_settings").select("*").in_(
            "setting_category", [CATEGORIE, SYSTEEM_CATEGORIE]
        )
        if alleen_actief:
            query = query.eq("is_active", True)
        rijen = query.order("created_at", desc=True).execute().data or []
        return [_normaliseer(r) for r in rijen]
    except Exception as e:
        logger.error(f"Fout bij laden meldingen: {e}")
        st.error(f"Fout bij laden meldingen: {e}")
        return []


def _waarde(data: dict) -> dict:
    bericht = (data.get("message") or "").strip()
    if not bericht:
        raise ValueError("Bericht is verplicht")
    rollen = [r for r in data.get("target_roles") or [] if r in database.ROLLEN]
    if not rollen:
        raise ValueError("Kies minstens één doelgroep")
    soort = data.get("type") or "info"
    if soort not in MELDING_TYPES:
        raise ValueError(f"Onbekend type: {soort}")
    start, eind = data.get("start_date"), data.get("end_date")
    if start and eind and str(start) > str(eind):
        raise ValueError("Startdatum moet voor de einddatum liggen")
    return {
        "message": bericht,
        "type": soort,
        "target_roles": rollen,
        "player_manager_mode": data.get("player_manager_mode") or "all",
        "player_manager_teams": list(data.get("player_manager_teams") or []),
        "start_date": str(start) if start else None,
        "end_date": str(eind) if eind else None,
        "duration": int(data.get("duration") or STANDAARD_DUUR),
    }


def maak_melding_aan(data: dict) -> dict:
    supabase = database.get_supabase_client()
    response = supabase.table("application_settings").insert({
        "setting_category": CATEGORIE,
        "setting_name": f"notification_{int(time.time() * 1000)}",
        "setting_value": _waarde(data),
        "is_active": bool(data.get("is_active", True)),
    }).execute()
    return _normaliseer(response.data[0])


def werk_melding_bij(melding_id: int, data: dict) -> None:
    supabase = database.get_supabase_client()
    supabase.table("application_settings").update({
        "setting_value": _waarde(data),
        "is_active": bool(data.get("is_active", True)),
        "updated_at": datetime.now().isoformat(),
    }).eq("id", melding_id).execute()


def zet_melding_actief(melding_id: int, actief: bool) -> None:
    supabase = database.get_supabase_client()
    supabase.table("application_settings").update({"is_active": actief}).eq("id", melding_id).execute()


def verwijder_melding(melding_id: int) -> None:
    supabase = database.get_supabase_client()
    supabase.table("application_settings").delete().eq("id", melding_id).execute()


def actieve_meldingen_voor(meldingen: list, gebruiker: dict | None, nu: datetime | None = None) -> list:
    """
    Meldingen die deze gebruiker nu moet zien.

    Filtert op actief, doelrol, start/eind venster en, voor
    teamverantwoordelijken in modus 'specific_teams', op hun team.
    """
    if not gebruiker:
        return []
    nu = (nu or datetime.now()).isoformat()
    rol = (gebruiker.get("role") or "").lower()
    zichtbaar = []
    for melding in meldingen:
        if not melding["is_active"] or rol not in melding["target_roles"]:
            continue
        if melding["start_date"] and melding["start_date"] > nu:
            continue
        eind = melding["end_date"]
        # een einddatum zonder tijd geldt tot het einde van die dag
        if eind and (eind < nu[:10] if len(eind) == 10 else eind < nu):
            continue
        if (
            rol == database.ROL_TEAMVERANTWOORDELIJKE
            and melding["player_manager_mode"] == "specific_teams"
            and gebruiker.get("team_id") not in melding["player_manager_teams"]
        ):
            continue
        zichtbaar.append(melding)
    return zichtbaar
