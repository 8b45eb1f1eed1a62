"""
Beker - doorstroming van winnaars naar de volgende ronde

Vaste tabelstructuur op wedstrijdnummer:
    1/8-1 en 1/8-2 -> QF-1, 1/8-3 en 1/8-4 -> QF-2, ...
    QF-1 en QF-2 -> SF-1, QF-3 en QF-4 -> SF-2
    SF-1 en SF-2 -> FINAL

Een bekerwedstrijd kan niet op een gelijkspel eindigen: er worden meteen
strafschoppen genomen. De winnaar krijgt één doelpunt extra op de uitslag en
de strafschopreeks komt in de scheidsrechtersnotities.

Net als kosten_sync krijgen alle functies de Supabase client mee.
"""

from logging_config import get_logger
from speelschema import FINALE, ronde_subnummer

logger = get_logger(__name__)

ACHTSTE = "1/8-"
KWART = "QF-"
HALVE = "SF-"


class BekerFout(Exception):
    """Doorstroming naar de volgende ronde is mislukt"""


# ============================================================
# TABELSTRUCTUUR
# ============================================================

def volgende_bekerwedstrijd(unique_number: str | None) -> str | None:
    """Wedstrijdnummer waar de winnaar naartoe gaat, None na de finale"""
    nummer = unique_number or ""
    plaats = (ronde_subnummer(nummer) + 1) // 2
    if nummer.startswith(ACHTSTE):
        return f"{KWART}{plaats}"
    if nummer.startswith(KWART):
        return f"{HALVE}{plaats}"
    if nummer.startswith(HALVE):
        return FINALE
    return None


def speelt_thuis_in_volgende_ronde(unique_number: str) -> bool:
    """
    Thuis- of uitplaats in de volgende wedstrijd.

    In de achtste finales krijgt de tweede wedstrijd van elk paar (even
    nummer) de thuisplaats, in de latere rondes de eerste (oneven nummer).
    """
    nummer = ronde_subnummer(unique_number)
    if unique_number.startswith(ACHTSTE):
        return nummer % 2 == 0
    return nummer % 2 == 1


def _plaats(unique_number: str) -> str:
    return "home_team_id" if speelt_thuis_in_volgende_ronde(unique_number) else "away_team_id"


# ============================================================
# WINNAAR
# ============================================================

def bepaal_winnaar(wedstrijd: dict) -> int | None:
    """team_id van de winnaar, None zonder uitslag of bij gelijkspel"""
    thuis, uit = wedstrijd.get("home_score"), wedstrijd.get("away_score")
    if thuis is None or uit is None or thuis == uit:
        return None
    return wedstrijd.get("home_team_id") if thuis > uit else wedstrijd.get("away_team_id")


def verwerk_strafschoppen(thuis_score: int, uit_score: int, thuis_strafschoppen: int, uit_strafschoppen: int,
                          thuisnaam: str, uitnaam: str, notities: str | None = None) -> dict:
    """
    Beslis een gelijkspel met strafschoppen.

    Returns:
        {"home_score", "away_score", "referee_notes"} met één doelpunt extra
        voor de winnaar van de reeks

    Raises:
        ValueError bij een reguliere uitslag die geen gelijkspel is, negatieve
        aantallen of een gelijke strafschopreeks
    """
    if thuis_score != uit_score:
        raise ValueError("Strafschoppen zijn alleen nodig bij een gelijkspel")
    if thuis_strafschoppen is None or uit_strafschoppen is None:
        raise ValueError("Vul de strafschoppen voor beide teams in")
    thuis_strafschoppen, uit_strafschoppen = int(thuis_strafschoppen), int(uit_strafschoppen)
    if thuis_strafschoppen < 0 or uit_strafschoppen < 0:
        raise ValueError("Strafschoppen kunnen niet negatief zijn")
    if thuis_strafschoppen == uit_strafschoppen:
        raise ValueError("Strafschoppen moeten een winnaar opleveren")

    thuis_wint = thuis_strafschoppen > uit_strafschoppen
    verslag = (
        "Strafschoppen:\n"
        f"{thuisnaam} {thuis_strafschoppen} - {uit_strafschoppen} {uitnaam}\n"
        f"Winnaar: {thuisnaam if thuis_wint else uitnaam}"
    )
    return {
        "home_score": thuis_score + 1 if thuis_wint else thuis_score,
        "away_score": uit_score if thuis_wint else uit_score + 1,
        "referee_notes": f"{notities}\n\n{verslag}" if notities else verslag,
    }


# ============================================================
# DOORSTROMING
# ============================================================

def _laad_bekerwedstrijd(client, unique_number: str) -> dict | None:
    rijen = (
        client.table("matches")
        .select("match_id, unique_number, home_team_id, away_team_id, home_score, away_score")
        .eq("unique_number", unique_number)
        .eq("is_cup_match", True)
        .limit(1)
        .execute()
    ).data
    return rijen[0] if rijen else None


def _haal_uit_latere_rondes(client, unique_number: str, team_id: int) -> None:
    """Een team dat niet meer doorgaat verdwijnt uit alle rondes na unique_number"""
    volgende_nr = volgende_bekerwedstrijd(unique_number)
    while volgende_nr:
        volgende = _laad_bekerwedstrijd(client, volgende_nr)
        if not volgende:
            return
        update = {k: None for k in ("home_team_id", "away_team_id") if volgende.get(k) == team_id}
        if not update:
            return
        client.table("matches").update(update).eq("match_id", volgende["match_id"]).execute()
        logger.info(f"Team {team_id} verwijderd uit {volgende_nr}")
        volgende_nr = volgende_bekerwedstrijd(volgende_nr)


def schuif_winnaar_door(client, wedstrijd: dict) -> dict:
    """
    Zet de winnaar van een bekerwedstrijd op zijn plaats in de volgende ronde.

    Een gewijzigde uitslag vervangt de vorige winnaar, die ook uit de latere
    rondes verdwijnt. Zonder winnaar (geen uitslag of gelijkspel) wordt de
    plaats leeggemaakt.

    Returns:
        {"status": "doorgeschoven" | "gewist" | "finale", "volgende": nummer, "team_id": winnaar}
    """
    unique_number = wedstrijd.get("unique_number") or ""
    volgende_nr = volgende_bekerwedstrijd(unique_number)
    if not volgende_nr:
        return {"status": "finale", "volgende": None, "team_id": bepaal_winnaar(wedstrijd)}

    winnaar = bepaal_winnaar(wedstrijd)
    if winnaar is None:
        wis_doorstroming(client, unique_number)
        return {"status": "gewist", "volgende": volgende_nr, "team_id": None}

    try:
        volgende = _laad_bekerwedstrijd(client, volgende_nr)
        if not volgende:
            raise BekerFout(f"Volgende wedstrijd {volgende_nr} niet gevonden")

        plaats = _plaats(unique_number)
        andere = "away_team_id" if plaats == "home_team_id" else "home_team_id"
        verliezer = (
            wedstrijd.get("away_team_id") if winnaar == wedstrijd.get("home_team_id")
            else wedstrijd.get("home_team_id")
        )
        vorige = volgende.get(plaats)

        update = {plaats: winnaar}
        if verliezer is not None and volgende.get(andere) == verliezer:
            update[andere] = None
        client.table("matches").update(update).eq("match_id", volgende["match_id"]).execute()

        if vorige is not None and vorige != winnaar:
            _haal_uit_latere_rondes(client, volgende_nr, vorige)
    except BekerFout:
        raise
    except Exception as e:
        logger.error(f"Doorstroming van {unique_number} mislukt", exc_info=True)
        raise BekerFout(str(e)) from e

    logger.info(f"Winnaar {winnaar} van {unique_number} doorgeschoven naar {volgende_nr}")
    return {"status": "doorgeschoven", "volgende": volgende_nr, "team_id": winnaar}


def wis_doorstroming(client, unique_number: str) -> bool:
    """Maak de plaats van deze wedstrijd in de volgende ronde leeg; True als er iets gewist werd"""
    volgende_nr = volgende_bekerwedstrijd(unique_number)
    if not volgende_nr:
        return False
    try:
        volgende = _laad_bekerwedstrijd(client, volgende_nr)
        if not volgende:
            return False
        plaats = _plaats(unique_number)
        team_id = volgende.get(plaats)
        if team_id is None:
            return False
        client.table("matches").update({plaats: None}).eq("match_id", volgende["match_id"]).execute()
        _haal_uit_latere_rondes(client, volgende_nr, team_id)
    except Exception as e:
        logger.error(f"Wissen van doorstroming na {unique_number} mislukt", exc_info=True)
        raise BekerFout(str(e)) from e

    logger.info(f"Doorstroming van {unique_number} naar {volgende_nr} gewist")
    return True


def wijs_team_toe(client, unique_number: str, team_id: int, thuis: bool) -> dict:
    """Zet een team handmatig in een bekerwedstrijd, bv. een team met een bye"""
    wedstrijd = _laad_bekerwedstrijd(client, unique_number)
    if not wedstrijd:
        raise LookupError(f"Bekerwedstrijd {unique_number} niet gevonden")
    plaats = "home_team_id" if thuis else "away_team_id"
    response = client.table("matches").update({plaats: team_id}).eq("match_id", wedstrijd["match_id"]).execute()
    logger.info(f"Team {team_id} toegewezen aan {unique_number} ({'thuis' if thuis else 'uit'})")
    return response.data[0]
