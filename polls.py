"""
Scheidsrechter polls
Wedstrijden van een maand worden gegroepeerd per locatie en tijdslot zodat
scheidsrechters in één keer hun beschikbaarheid voor een groep opgeven.
Daarna wijst de admin scheidsrechters toe aan wedstrijden.
"""

import re
import time
from datetime import datetime

import speelschema
from logging_config import get_logger

logger = get_logger(__name__)

MAAND_PATROON = re.compile(r"^\d{4}-\d{2}$")
POLL_STATUSSEN = ("draft", "open", "closed")
TOEWIJZING_STATUSSEN = ("pending", "confirmed", "declined", "cancelled")


class PollFout(Exception):
    """Actie op een poll of toewijzing niet toegestaan."""


def _valideer_maand(maand: str) -> str:
    if not maand or not MAAND_PATROON.match(maand):
        raise ValueError("Ongeldig maandformaat. Gebruik YYYY-MM.")
    nummer = int(maand.split("-")[1])
    if not 1 <= nummer <= 12:
        raise ValueError("Ongeldig maandformaat. Gebruik YYYY-MM.")
    return maand


def _volgende_maand(maand: str) -> str:
    jaar, nummer = (int(d) for d in maand.split("-"))
    if nummer == 12:
        return f"{jaar + 1}-01"
    return f"{jaar}-{nummer + 1:02d}"


# ============================================================
# GROEPEREN EN GENEREREN
# ============================================================

def groep_sleutel(wedstrijd: dict) -> str:
    """Locatie + tijdslot, bv. 'Sporthal De Dageraad_19:30'"""
    _, tijd = speelschema.iso_naar_lokaal(wedstrijd.get("match_date"))
    return f"{wedstrijd.get('location') or 'Onbekend'}_{tijd or '00:00'}"


def groepeer_wedstrijden(wedstrijden: list) -> dict:
    """Groepeer per locatie en tijdslot; alleen groepen met minstens 2 wedstrijden"""
    groepen = {}
    for wedstrijd in wedstrijden:
        groepen.setdefault(groep_sleutel(wedstrijd), []).append(wedstrijd)
    return {sleutel: groep for sleutel, groep in groepen.items() if len(groep) >= 2}


def genereer_maandpolls(client, maand: str) -> dict:
    """
    Maak poll groepen voor alle wedstrijden van een maand die nog geen groep hebben.

    Returns:
        {"groups_created": n, "month": maand, "message": ...}
    """
    _valideer_maand(maand)
    logger.info(f"Polls genereren voor {maand}")

    wedstrijden = (
        client.table("matches")
        .select("match_id, match_date, location, poll_group_id")
        .gte("match_date", f"{maand}-01")
        .lt("match_date", f"{_volgende_maand(maand)}-01")
        .is_("poll_group_id", "null")
        .order("match_date")
        .execute()
    ).data or []

    if not wedstrijden:
        return {"groups_created": 0, "month": maand, "message": "Geen wedstrijden gevonden om te groeperen"}

    groepen = groepeer_wedstrijden(wedstrijden)
    if not groepen:
        return {
            "groups_created": 0,
            "month": maand,
            "message": "Geen geldige groepen gevonden (minimum 2 wedstrijden per groep)",
        }

    aangemaakt = 0
    for sleutel, groep in groepen.items():
        poll_group_id = f"{maand}_{sleutel}_{int(time.time() * 1000)}"
        match_ids = [w["match_id"] for w in groep]
        try:
            client.table("matches").update(
                {"poll_group_id": poll_group_id, "poll_month": maand}
            ).in_("match_id", match_ids).execute()
        except Exception as e:
            logger.error(f"Bijwerken van groep {poll_group_id} mislukt: {e}")
            continue
        logger.info(f"Poll groep {poll_group_id} met {len(groep)} wedstrijden")
        aangemaakt += 1

    if aangemaakt:
        try:
            client.table("application_settings").insert({
                "setting_category": "admin_notifications",
                "setting_name": f"poll_generated_{int(time.time() * 1000)}",
                "setting_value": {
                    "message": (f"Nieuwe scheidsrechter polls gegenereerd voor {maand}. "
                                f"{aangemaakt} groep(en) aangemaakt."),
                    "target_roles": ["referee", "admin"],
                    "created_at": datetime.now().isoformat(),
                    "type": "poll_generated",
                },
                "is_active": True,
            }).execute()
        except Exception as e:
            logger.warning(f"Melding voor gegenereerde polls van {maand} niet opgeslagen: {e}")

    return {
        "groups_created": aangemaakt,
        "month": maand,
        "message": f"{aangemaakt} poll groep(en) aangemaakt voor {maand}",
    }


# ============================================================
# MAANDPOLLS
# ============================================================

def laad_poll(client, maand: str) -> dict | None:
    rijen = client.table("monthly_polls").select("*").eq("poll_month", maand).limit(1).execute().data
    return rijen[0] if rijen else None


def laad_polls(client) -> list:
    return client.table("monthly_polls").select("*").order("poll_month", desc=True).execute().data or []


def laad_open_polls(client) -> list:
    return client.table("monthly_polls").select("*").eq("status", "open").order("poll_month").execute().data or []


def maak_poll_aan(client, maand: str, deadline: str | None = None,
                  aangemaakt_door: int | None = None, notities: str | None = None) -> dict:
    """Nieuwe poll (status draft); per maand bestaat er maximaal één"""
    _valideer_maand(maand)
    if laad_poll(client, maand):
        raise PollFout(f"Poll voor {maand} bestaat al")
    response = client.table("monthly_polls").insert({
        "poll_month": maand,
        "deadline": deadline,
        "status": "draft",
        "created_by": aangemaakt_door,
        "notes": notities,
    }).execute()
    return response.data[0]


def zet_poll_status(client, poll_id: int, status: str) -> None:
    if status not in POLL_STATUSSEN:
        raise ValueError(f"Onbekende status: {status}")
    client.table("monthly_polls").update({"status": status}).eq("id", poll_id).execute()
    logger.info(f"Poll {poll_id} -> {status}")


def open_poll(client, poll_id: int) -> None:
    zet_poll_status(client, poll_id, "open")


def sluit_poll(client, poll_id: int) -> None:
    zet_poll_status(client, poll_id, "closed")


def sluit_verlopen_polls(client, nu: datetime | None = None) -> int:
    """Sluit open polls waarvan de deadline voorbij is; geeft het aantal terug"""
    nu = (nu or datetime.now()).isoformat()
    response = (
        client.table("monthly_polls")
        .update({"status": "closed"})
        .eq("status", "open")
        .lt("deadline", nu)
        .execute()
    )
    aantal = len(response.data or [])
    if aantal:
        logger.info(f"{aantal} verlopen poll(s) gesloten")
    return aantal


def laad_pollgroepen(client, maand: str) -> dict:
    """Wedstrijden van de maand gegroepeerd per poll_group_id"""
    wedstrijden = (
        client.table("matches")
        .select("*")
        .eq("poll_month", maand)
        .order("match_date")
        .execute()
    ).data or []
    groepen = {}
    for wedstrijd in wedstrijden:
        if wedstrijd.get("poll_group_id"):
            groepen.setdefault(wedstrijd["poll_group_id"], []).append(wedstrijd)
    return groepen


# ============================================================
# BESCHIKBAARHEID
# ============================================================

def _controleer_poll_open(client, maand: str) -> None:
    poll = laad_poll(client, maand)
    if not poll or poll.get("status") != "open":
        raise PollFout("Poll is niet open voor indiening")


def dien_beschikbaarheid_in(client, referee_id: int, maand: str, beschikbaarheden: list) -> None:
    """
    Sla de beschikbaarheid van een scheidsrechter op.

    beschikbaarheden: lijst van {"poll_group_id", "is_available", "match_id"?, "notes"?}
    """
    _controleer_poll_open(client, maand)
    rijen = [
        {
            "user_id": referee_id,
            "poll_month": maand,
            "match_id": b.get("match_id"),
            "poll_group_id": b.get("poll_group_id") or f"{maand}_{b.get('match_id') or 'general'}",
            "is_available": bool(b.get("is_available")),
            "notes": b.get("notes") or None,
        }
        for b in beschikbaarheden
    ]
    if rijen:
        client.table("referee_availability").upsert(
            rijen, on_conflict="user_id,poll_group_id,poll_month"
        ).execute()


def wis_beschikbaarheid(client, referee_id: int, maand: str) -> None:
    _controleer_poll_open(client, maand)
    client.table("referee_availability").delete().eq("user_id", referee_id).eq("poll_month", maand).execute()


def laad_beschikbaarheid(client, maand: str, referee_id: int | None = None) -> list:
    query = client.table("referee_availability").select("*").eq("poll_month", maand)
    if referee_id is not None:
        query = query.eq("user_id", referee_id)
    return query.execute().data or []


def beschikbaarheid_per_groep(client, maand: str) -> dict:
    """{poll_group_id: {"beschikbaar": [usernames], "niet_beschikbaar": [usernames]}}"""
    scheidsrechters = client.table("users").select("user_id, username").eq("role", "referee").execute().data or []
    namen = {s["user_id"]: s["username"] for s in scheidsrechters}
    overzicht = {}
    for rij in laad_beschikbaarheid(client, maand):
        groep = overzicht.setdefault(rij["poll_group_id"], {"beschikbaar": [], "niet_beschikbaar": []})
        naam = namen.get(rij["user_id"], f"#{rij['user_id']}")
        groep["beschikbaar" if rij.get("is_available") else "niet_beschikbaar"].append(naam)
    return overzicht


# ============================================================
# TOEWIJZINGEN
# ============================================================

def _heeft_conflict(client, referee_id: int, wedstrijd: dict) -> bool:
    """Scheidsrechter heeft al een actieve toewijzing op dezelfde dag"""
    dag = (wedstrijd.get("match_date") or "")[:10]
    toewijzingen = (
        client.table("referee_assignments")
        .select("match_id, status")
        .eq("referee_id", referee_id)
        .execute()
    ).data or []
    andere_ids = [
        t["match_id"] for t in toewijzingen
        if t["match_id"] != wedstrijd["match_id"] and t.get("status") not in ("declined", "cancelled")
    ]
    if not andere_ids or not dag:
        return False
    andere = client.table("matches").select("match_id, match_date").in_("match_id", andere_ids).execute().data or []
    return any((w.get("match_date") or "")[:10] == dag for w in andere)


def wijs_scheidsrechter_toe(client, match_id: int, referee_id: int,
                            toegewezen_door: int | None = None, notities: str | None = None) -> dict:
    """
    Wijs een scheidsrechter toe aan een wedstrijd.

    Geweigerd als de wedstrijd al een (actieve) toewijzing heeft of als de
    scheidsrechter die dag al een andere wedstrijd fluit.
    """
    wedstrijden = client.table("matches").select("match_id, match_date").eq("match_id", match_id).execute().data
    if not wedstrijden:
        raise PollFout(f"Wedstrijd {match_id} niet gevonden")
    wedstrijd = wedstrijden[0]

    bestaand = (
        client.table("referee_assignments")
        .select("id, status")
        .eq("match_id", match_id)
        .execute()
    ).data or []
    if any(t.get("status") not in ("declined", "cancelled") for t in bestaand):
        raise PollFout("Wedstrijd heeft al een scheidsrechter toegewezen")

    if _heeft_conflict(client, referee_id, wedstrijd):
        raise PollFout("Scheidsrechter is al toegewezen aan een andere wedstrijd op deze dag")

    toewijzing = client.table("referee_assignments").insert({
        "match_id": match_id,
        "referee_id": referee_id,
        "assigned_by": toegewezen_door,
        "status": "pending",
        "notes": notities,
    }).execute().data[0]

    scheidsrechter = client.table("users").select("username").eq("user_id", referee_id).execute().data
    if scheidsrechter:
        client.table("matches").update({
            "assigned_referee_id": referee_id,
            "referee": scheidsrechter[0]["username"],
        }).eq("match_id", match_id).execute()

    logger.info(f"Scheidsrechter {referee_id} toegewezen aan wedstrijd {match_id}")
    return toewijzing


def zet_toewijzing_status(client, toewijzing_id: int, status: str, notities: str | None = None) -> None:
    """Bevestig, weiger of annuleer; bij weigeren/annuleren wordt de wedstrijd vrijgegeven"""
    if status not in TOEWIJZING_STATUSSEN:
        raise ValueError(f"Onbekende status: {status}")
    update = {"status": status}
    if status == "confirmed":
        update["confirmed_at"] = datetime.now().isoformat()
    if notities is not None:
        update["notes"] = notities
    response = client.table("referee_assignments").update(update).eq("id", toewijzing_id).execute()

    if status in ("declined", "cancelled") and response.data:
        client.table("matches").update(
            {"assigned_referee_id": None, "referee": None}
        ).eq("match_id", response.data[0]["match_id"]).execute()


def verwijder_toewijzing(client, toewijzing_id: int) -> None:
    rijen = client.table("referee_assignments").select("match_id").eq("id", toewijzing_id).execute().data
    client.table("referee_assignments").delete().eq("id", toewijzing_id).execute()
    if rijen:
        client.table("matches").update(
            {"assigned_referee_id": None, "referee": None}
        ).eq("match_id", rijen[0]["match_id"]).execute()


def laad_toewijzingen(client, referee_id: int | None = None) -> list:
    query = client.table("referee_assignments").select("*")
    if referee_id is not None:
        query = query.eq("referee_id", referee_id)
    return query.order("id").execute().data or []
