"""
Speelschema hulpfuncties
- datum/tijd opslag (vaste wandkloktijd, opgeslagen als UTC ISO)
- sortering van competitie- en bekerwedstrijden
- klassement
- iCal export
"""

import re
from datetime import datetime, timezone, timedelta

ICAL_DOMEIN = "harelbeekse-minivoetbal.be"
STANDAARD_DUUR = 90

BEKERRONDES = (
    ("1/8-", "Achtste Finales", 1),
    ("QF-", "Kwart Finales", 2),
    ("SF-", "Halve Finales", 3),
)
FINALE = "FINAL"
RONDE_VOLGORDE = {"Achtste Finales": 1, "Kwart Finales": 2, "Halve Finales": 3, "Finale": 4, "Andere": 99}


# ============================================================
# DATUM EN TIJD
# ============================================================

def lokaal_naar_iso(datum, tijd=None) -> str:
    """
    Zet een Belgische datum + tijd om naar een ISO string voor de database.

    De tijd wordt als UTC opgeslagen zodat 18:30 altijd 18:30 blijft,
    ongeacht zomer- of winteruur.
    """
    datum = str(datum)[:10]
    tijd = str(tijd or "00:00")[:5]
    try:
        dt = datetime.strptime(f"{datum} {tijd}", "%Y-%m-%d %H:%M")
    except ValueError:
        raise ValueError(f"Ongeldige datum/tijd: {datum} {tijd}")
    return dt.replace(tzinfo=timezone.utc).isoformat().replace("+00:00", "Z")


def iso_naar_lokaal(iso: str | None) -> tuple[str | None, str | None]:
    """ISO string uit de database naar (YYYY-MM-DD, HH:MM)"""
    if not iso:
        return None, None
    tekst = str(iso).replace("Z", "+00:00")
    if len(tekst) == 10:
        return tekst, None
    dt = datetime.fromisoformat(tekst)
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%d"), dt.strftime("%H:%M")


def is_geldige_datum_tijd(datum: str, tijd: str) -> bool:
    try:
        lokaal_naar_iso(datum, tijd)
        return True
    except ValueError:
        return False


def formatteer_datum(iso: str | None) -> str:
    """Korte Belgische notatie DD/MM/YYYY"""
    datum, _ = iso_naar_lokaal(iso)
    if not datum:
        return "Ongeldige datum"
    jaar, maand, dag = datum.split("-")
    return f"{dag}/{maand}/{jaar}"


# ============================================================
# SORTERING
# ============================================================

def _datum_tijd(wedstrijd: dict) -> tuple:
    datum = wedstrijd.get("datum")
    tijd = wedstrijd.get("tijd")
    if datum is None and wedstrijd.get("match_date"):
        datum, tijd = iso_naar_lokaal(wedstrijd["match_date"])
    return (datum or "", tijd or "")


def sorteer_op_datum_tijd(wedstrijden: list) -> list:
    """Vroegste datum eerst, bij gelijke datum vroegste tijd eerst"""
    return sorted(wedstrijden, key=_datum_tijd)


def bekerronde_volgorde(unique_number: str | None) -> int:
    nummer = unique_number or ""
    for prefix, _, volgorde in BEKERRONDES:
        if nummer.startswith(prefix):
            return volgorde
    if nummer == FINALE:
        return 4
    return 99


def ronde_subnummer(unique_number: str | None) -> int:
    match = re.search(r"-(\d+)$", unique_number or "")
    return int(match.group(1)) if match else 0


def bekerronde_naam(unique_number: str | None) -> str:
    nummer = unique_number or ""
    for prefix, naam, _ in BEKERRONDES:
        if nummer.startswith(prefix):
            return naam
    if nummer == FINALE:
        return "Finale"
    return "Andere"


def speeldag_nummer(speeldag) -> int:
    match = re.search(r"\d+", str(speeldag or ""))
    return int(match.group(0)) if match else 0


def sorteer_bekerwedstrijden(wedstrijden: list) -> list:
    """Per ronde (1/8, kwart, halve, finale), dan datum, tijd en volgnummer"""
    return sorted(
        wedstrijden,
        key=lambda w: (
            bekerronde_volgorde(w.get("unique_number")),
            *_datum_tijd(w),
            ronde_subnummer(w.get("unique_number")),
        ),
    )


def sorteer_competitiewedstrijden(wedstrijden: list) -> list:
    """Per speeldag, dan datum, tijd en wedstrijdnummer"""
    return sorted(
        wedstrijden,
        key=lambda w: (
            speeldag_nummer(w.get("speeldag")),
            *_datum_tijd(w),
            w.get("unique_number") or "",
        ),
    )


def groepeer_per_ronde(wedstrijden: list, beker: bool) -> dict:
    """
    Groepeer wedstrijden per bekerronde of speeldag.

    Groepen staan in toernooivolgorde (of oplopende speeldag); binnen een
    groep op datum en tijd.
    """
    groepen = {}
    for wedstrijd in wedstrijden:
        if beker:
            sleutel = bekerronde_naam(wedstrijd.get("unique_number"))
        else:
            sleutel = wedstrijd.get("speeldag") or "Onbekend"
        groepen.setdefault(sleutel, []).append(wedstrijd)

    return {sleutel: sorteer_op_datum_tijd(groepen[sleutel]) for sleutel in sorteer_groepsleutels(groepen, beker)}


def sorteer_groepsleutels(sleutels, beker: bool) -> list:
    if beker:
        return sorted(sleutels, key=lambda s: RONDE_VOLGORDE.get(s, 99))
    return sorted(sleutels, key=speeldag_nummer)


# ============================================================
# KLASSEMENT
# ============================================================

def bereken_stand(wedstrijden: list, teams: list) -> list:
    """
    Klassement op basis van ingediende wedstrijden met score.

    3 punten voor winst, 1 voor gelijkspel. Sortering: punten, doelsaldo,
    gescoorde doelpunten, naam.
    """
    stand = {
        t["team_id"]: {
            "team_id": t["team_id"], "team_name": t.get("team_name"),
            "gespeeld": 0, "winst": 0, "gelijk": 0, "verlies": 0,
            "voor": 0, "tegen": 0, "saldo": 0, "punten": 0,
        }
        for t in teams
    }

    for w in wedstrijden:
        if not w.get("is_submitted"):
            continue
        thuis, uit = w.get("home_team_id"), w.get("away_team_id")
        ts, us = w.get("home_score"), w.get("away_score")
        if thuis not in stand or uit not in stand or ts is None or us is None:
            continue
        for team_id, voor, tegen in ((thuis, ts, us), (uit, us, ts)):
            rij = stand[team_id]
            rij["gespeeld"] += 1
            rij["voor"] += voor
            rij["tegen"] += tegen
            if voor > tegen:
                rij["winst"] += 1
                rij["punten"] += 3
            elif voor == tegen:
                rij["gelijk"] += 1
                rij["punten"] += 1
            else:
                rij["verlies"] += 1

    for rij in stand.values():
        rij["saldo"] = rij["voor"] - rij["tegen"]

    return sorted(stand.values(), key=lambda r: (-r["punten"], -r["saldo"], -r["voor"], r["team_name"] or ""))


# ============================================================
# ICAL EXPORT
# ============================================================

def _ical_tekst(tekst: str) -> str:
    return (
        str(tekst)
        .replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def _ical_datum_tijd(datum: str, tijd: str) -> str:
    return datetime.strptime(f"{datum[:10]} {tijd[:5]}", "%Y-%m-%d %H:%M").strftime("%Y%m%dT%H%M%S")


def _ical_event(event: dict, stempel: str) -> list:
    duur = event.get("duration") or STANDAARD_DUUR
    datum = str(event["date"]).split("T")[0]
    tijd = event.get("time") or "00:00"
    start = datetime.strptime(f"{datum} {tijd[:5]}", "%Y-%m-%d %H:%M")
    # eindtijd na middernacht blijft op de startdatum
    eind_tijd = (start + timedelta(minutes=duur)).strftime("%H:%M")

    regels = [
        "BEGIN:VEVENT",
        f"UID:match-{event['id']}@{ICAL_DOMEIN}",
        f"DTSTAMP:{stempel}",
        f"DTSTART:{_ical_datum_tijd(datum, tijd)}",
        f"DTEND:{_ical_datum_tijd(datum, eind_tijd)}",
        f"SUMMARY:{_ical_tekst(event['title'])}",
        f"LOCATION:{_ical_tekst(event.get('location') or 'Harelbeekse Minivoetbal')}",
    ]
    if event.get("description"):
        regels.append(f"DESCRIPTION:{_ical_tekst(event['description'])}")
    regels.append("END:VEVENT")
    return regels


def genereer_ical(events: list, kalendernaam: str = "Speelschema", nu: datetime | None = None) -> str:
    """
    Maak een .ics bestand (tekst) van een lijst events.

    Elk event is een dict met id, title, date (YYYY-MM-DD of ISO), time (HH:MM),
    location en optioneel description en duration (minuten, standaard 90).
    """
    nu = nu or datetime.now(timezone.utc)
    stempel = nu.astimezone(timezone.utc).strftime("%Y%m%dT%H%M%SZ")

    regels = [
        "BEGIN:VCALENDAR",
        "VERSION:2.0",
        "PRODID:-//Harelbeekse Minivoetbal//NL",
        "CALSCALE:GREGORIAN",
        "METHOD:PUBLISH",
        f"X-WR-CALNAME:{_ical_tekst(kalendernaam)}",
    ]
    for event in events:
        regels.extend(_ical_event(event, stempel))
    regels.append("END:VCALENDAR")
    return "\r\n".join(regels)


def wedstrijden_naar_events(wedstrijden: list, teamnamen: dict) -> list:
    """Wedstrijden (met datum/tijd) omzetten naar iCal events"""
    events = []
    for w in wedstrijden:
        datum, tijd = _datum_tijd(w)
        if not datum:
            continue
        thuis = teamnamen.get(w.get("home_team_id"), "Onbekend")
        uit = teamnamen.get(w.get("away_team_id"), "Onbekend")
        omschrijving = w.get("speeldag") or (bekerronde_naam(w.get("unique_number")) if w.get("is_cup_match") else None)
        events.append({
            "id": w.get("match_id"),
            "title": f"{thuis} - {uit}",
            "date": datum,
            "time": tijd or "00:00",
            "location": w.get("location"),
            "description": omschrijving,
        })
    return events
