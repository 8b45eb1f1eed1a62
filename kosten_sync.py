"""
Kosten synchronisatie - Harelbeekse Minivoetbal
Boekt kaartboetes, veldkosten en scheidsrechterkosten op de teamrekeningen
(tabel team_costs) op basis van de kostinstellingen (tabel costs), en start na
het indienen van een bekerwedstrijd de doorstroming (beker.py).

Alle functies krijgen de Supabase client mee zodat ze zowel vanuit de
Streamlit app (anon client) als vanuit functions.py (service role) werken.
"""

from collections import Counter
from datetime import date, datetime
import time

import beker
import database
from logging_config import get_logger

logger = get_logger(__name__)

KAART_TYPES = ("yellow", "double_yellow", "red")

# Nederlandse benamingen zoals ze in wedstrijdformulieren voorkomen
KAART_ALIASSEN = {
    "geel": "yellow",
    "gele": "yellow",
    "dubbel_geel": "double_yellow",
    "2x_geel": "double_yellow",
    "rood": "red",
    "rode": "red",
}

PENALTY_NAAM_PATRONEN = ("geel", "gele", "yellow", "rood", "rode", "red")
VELD_TERMEN = ("veld", "field")
SCHEIDS_TERMEN = ("scheidsrechter", "scheids", "referee")

NEVENEFFECT_CATEGORIE = "failed_side_effects"


class SyncFout(Exception):
    """Synchronisatie van teamkosten mislukt (mogelijk gedeeltelijk toegepast)."""


def _transactie_datum(match_date: str | None) -> str:
    if match_date:
        return str(match_date)[:10]
    return date.today().isoformat()


def normaliseer_kaart(kaart: str | None) -> str | None:
    """Zet een kaartwaarde om naar yellow/double_yellow/red, of None voor geen kaart."""
    if not kaart:
        return None
    kaart = str(kaart).strip().lower()
    if kaart in ("none", "geen", ""):
        return None
    return KAART_ALIASSEN.get(kaart, kaart)


# ============================================================
# KAARTBOETES
# ============================================================

def _is_dubbel_geel_naam(naam: str) -> bool:
    return ("2x" in naam and "geel" in naam) or "dubbel" in naam or "double" in naam


def vind_tarief_voor_kaart(tarieven: list, kaart: str) -> dict | None:
    """Zoek de boete-instelling die bij een kaarttype hoort (op naam)."""
    for tarief in tarieven:
        naam = (tarief.get("name") or "").lower()
        if kaart == "yellow":
            if _is_dubbel_geel_naam(naam):
                continue
            if "geel" in naam or "gele" in naam or "yellow" in naam:
                return tarief
        elif kaart == "double_yellow":
            if _is_dubbel_geel_naam(naam):
                return tarief
        elif kaart == "red":
            if "rood" in naam or "rode" in naam or "red" in naam:
                return tarief
    return None


def kaart_kosten(tarieven: list, kaart: str) -> tuple[dict, int] | None:
    """
    Geef (instelling, aantal) voor een kaart.

    Een dubbele gele kaart zonder eigen instelling telt als twee gele kaarten.
    """
    direct = vind_tarief_voor_kaart(tarieven, kaart)
    if direct:
        return direct, 1
    if kaart == "double_yellow":
        geel = vind_tarief_voor_kaart(tarieven, "yellow")
        if geel:
            return geel, 2
    return None


def gewenste_boetes(tarieven: list, home_team_id: int, away_team_id: int,
                    home_players=(), away_players=()) -> Counter:
    """Tel het gewenste aantal boetes per (team_id, cost_setting_id)."""
    gewenst = Counter()
    for team_id, spelers in ((home_team_id, home_players), (away_team_id, away_players)):
        for speler in spelers or []:
            if not speler:
                continue
            if not (speler.get("playerId") or speler.get("player_id")):
                continue
            kaart = normaliseer_kaart(speler.get("cardType") or speler.get("card_type"))
            if kaart is None:
                continue
            if kaart not in KAART_TYPES:
                logger.warning(f"Onbekend kaarttype '{kaart}' genegeerd (team {team_id})")
                continue
            resultaat = kaart_kosten(tarieven, kaart)
            if resultaat is None:
                logger.info(f"Geen kostinstelling gevonden voor kaarttype {kaart}")
                continue
            tarief, aantal = resultaat
            gewenst[(team_id, tarief["id"])] += aantal
    return gewenst


def _alle_penalty_ids(client) -> list:
    response = client.table("costs").select("id").eq("category", "penalty").execute()
    ids = [c["id"] for c in response.data or []]
    if ids:
        return ids

    # Oudere instellingen hebben soms geen categorie; herken ze aan de naam
    filter_expr = ",".join(f"name.ilike.%{patroon}%" for patroon in PENALTY_NAAM_PATRONEN)
    response = client.table("costs").select("id, name").or_(filter_expr).execute()
    return [c["id"] for c in response.data or []]


def synchroniseer_kaartboetes(client, match_id: int, home_team_id: int, away_team_id: int,
                              home_players=(), away_players=(), match_date: str | None = None) -> dict:
    """
    Breng de automatische kaartboetes van een wedstrijd in lijn met de kaarten
    op het wedstrijdformulier.

    Per (team, boete-instelling) worden rijen toegevoegd of verwijderd tot het
    aantal klopt. Alleen rijen met is_auto_card_penalty worden aangeraakt;
    handmatig ingevoerde boetes blijven staan.

    Returns:
        dict met het gewenste aantal per "team_id:cost_setting_id"
    """
    logger.info(f"Kaartboetes synchroniseren voor wedstrijd {match_id} ({home_team_id} - {away_team_id})")
    try:
        response = (
            client.table("costs")
            .select("id, name, amount")
            .eq("category", "penalty")
            .eq("is_active", True)
            .execute()
        )
        tarieven = response.data or []
        alle_penalty_ids = _alle_penalty_ids(client)

        gewenst = gewenste_boetes(tarieven, home_team_id, away_team_id, home_players, away_players)
        logger.info(f"Gewenste boetes: {dict(gewenst)}")

        tarief_per_id = {t["id"]: t for t in tarieven}
        transactie_datum = _transactie_datum(match_date)

        for (team_id, cost_id), gewenst_aantal in gewenst.items():
            tarief = tarief_per_id.get(cost_id)
            if not tarief:
                logger.info(f"Kostinstelling {cost_id} niet gevonden, overgeslagen")
                continue

            bestaand = (
                client.table("team_costs")
                .select("id")
                .eq("team_id", team_id)
                .eq("match_id", match_id)
                .eq("cost_setting_id", cost_id)
                .eq("is_auto_card_penalty", True)
                .execute()
            ).data or []

            if len(bestaand) < gewenst_aantal:
                rijen = [
                    {
                        "team_id": team_id,
                        "cost_setting_id": cost_id,
                        "amount": tarief.get("amount") or 0,
                        "transaction_date": transactie_datum,
                        "match_id": match_id,
                        "is_auto_card_penalty": True,
                    }
                    for _ in range(gewenst_aantal - len(bestaand))
                ]
                logger.info(f"{len(rijen)} boete(s) '{tarief['name']}' toevoegen voor team {team_id}")
                client.table("team_costs").insert(rijen).execute()
            elif len(bestaand) > gewenst_aantal:
                te_verwijderen = [r["id"] for r in bestaand[: len(bestaand) - gewenst_aantal]]
                logger.info(f"{len(te_verwijderen)} overtollige boete(s) verwijderen: {te_verwijderen}")
                client.table("team_costs").delete().in_("id", te_verwijderen).execute()

        if alle_penalty_ids:
            _ruim_boetes_op(client, match_id, alle_penalty_ids, gewenst)

    except Exception as e:
        logger.error(f"Fout bij synchroniseren kaartboetes voor wedstrijd {match_id}", exc_info=True)
        raise SyncFout(str(e)) from e

    return {f"{team}:{cost}": aantal for (team, cost), aantal in gewenst.items()}


def _ruim_boetes_op(client, match_id: int, penalty_ids: list, gewenst: Counter) -> None:
    """Verwijder automatische boetes van (team, instelling) paren die niet meer gewenst zijn."""
    query = (
        client.table("team_costs")
        .select("id, team_id, cost_setting_id")
        .eq("match_id", match_id)
        .eq("is_auto_card_penalty", True)
    )
    if gewenst:
        query = query.in_("cost_setting_id", penalty_ids)
    rijen = query.execute().data or []

    overbodig = [r["id"] for r in rijen if gewenst.get((r["team_id"], r["cost_setting_id"]), 0) == 0]
    if overbodig:
        logger.info(f"Opruimen van {len(overbodig)} verouderde boete(s) voor wedstrijd {match_id}")
        client.table("team_costs").delete().in_("id", overbodig).execute()


# ============================================================
# WEDSTRIJDKOSTEN (VELD + SCHEIDSRECHTER)
# ============================================================

def vind_wedstrijdkost(tarieven: list, termen: tuple) -> dict | None:
    """Eerste instelling waarvan naam of omschrijving een van de termen bevat."""
    for tarief in tarieven:
        naam = (tarief.get("name") or "").lower()
        omschrijving = (tarief.get("description") or "").lower()
        if any(term in naam or term in omschrijving for term in termen):
            return tarief
    return None


def _laad_wedstrijdkost_tarieven(client) -> list:
    response = (
        client.table("costs")
        .select("id, name, amount, description")
        .eq("category", "match_cost")
        .eq("is_active", True)
        .execute()
    )
    return response.data or []


def synchroniseer_wedstrijdkosten(client, match_id: int, home_team_id: int, away_team_id: int,
                                  is_submitted: bool, match_date: str | None = None,
                                  referee: str | None = None) -> dict:
    """
    Zorg dat elk team van een ingediende wedstrijd precies één veldkost en één
    scheidsrechterkost heeft.
    """
    if not is_submitted:
        logger.info(f"Wedstrijd {match_id} niet ingediend, kosten niet gesynchroniseerd")
        return {"skipped": True, "processed": {}, "referee": referee}

    verwerkt = {}
    try:
        tarieven = _laad_wedstrijdkost_tarieven(client)
        veld = vind_wedstrijdkost(tarieven, VELD_TERMEN)
        scheids = vind_wedstrijdkost(tarieven, SCHEIDS_TERMEN)
        transactie_datum = _transactie_datum(match_date)

        for soort, tarief in (("field", veld), ("referee", scheids)):
            if not tarief:
                logger.info(f"Geen {soort} kostinstelling gevonden, overgeslagen")
                continue
            for team_id in (home_team_id, away_team_id):
                verwerkt[f"{soort}_team_{team_id}"] = _zorg_voor_een_kost(
                    client, match_id, team_id, tarief, transactie_datum
                )
    except Exception as e:
        logger.error(f"Fout bij synchroniseren wedstrijdkosten voor wedstrijd {match_id}", exc_info=True)
        raise SyncFout(str(e)) from e

    logger.info(f"Wedstrijdkosten gesynchroniseerd voor wedstrijd {match_id}")
    return {"skipped": False, "processed": verwerkt, "referee": referee}


def _zorg_voor_een_kost(client, match_id: int, team_id: int, tarief: dict, transactie_datum: str) -> dict:
    bestaand = (
        client.table("team_costs")
        .select("id")
        .eq("team_id", team_id)
        .eq("match_id", match_id)
        .eq("cost_setting_id", tarief["id"])
        .eq("is_auto_card_penalty", False)
        .execute()
    ).data or []

    if not bestaand:
        client.table("team_costs").insert({
            "team_id": team_id,
            "cost_setting_id": tarief["id"],
            "amount": tarief.get("amount") or 0,
            "transaction_date": transactie_datum,
            "match_id": match_id,
            "is_auto_card_penalty": False,
        }).execute()
        logger.info(f"Kost '{tarief['name']}' toegevoegd voor team {team_id}")
        return {"inserted": True, "amount": tarief.get("amount")}

    if len(bestaand) > 1:
        dubbel = [r["id"] for r in bestaand[1:]]
        client.table("team_costs").delete().in_("id", dubbel).execute()
        logger.info(f"{len(dubbel)} dubbele kost(en) '{tarief['name']}' verwijderd voor team {team_id}")
        return {"exists": True, "cleaned": len(dubbel)}

    return {"exists": True}


def synchroniseer_alle_wedstrijdkosten(client) -> dict:
    """
    Batch: controleer veld- en scheidsrechterkosten voor alle gespeelde wedstrijden.

    Ontbrekende kosten worden toegevoegd, bedragen die afwijken van het huidige
    tarief worden bijgewerkt.

    Returns:
        dict met synced, updated, skipped en een leesbare message
    """
    resultaat = {"synced": 0, "updated": 0, "skipped": 0}
    try:
        wedstrijden = (
            client.table("matches")
            .select("match_id, home_team_id, away_team_id, match_date, home_score, away_score, is_submitted")
            .not_.is_("home_score", "null")
            .not_.is_("away_score", "null")
            .not_.is_("home_team_id", "null")
            .not_.is_("away_team_id", "null")
            .execute()
        ).data or []

        if not wedstrijden:
            return {**resultaat, "message": "Geen wedstrijden met scores gevonden"}

        tarieven = _laad_wedstrijdkost_tarieven(client)
        if not tarieven:
            return {**resultaat, "message": "Geen actieve wedstrijdkosten gevonden"}

        veld = vind_wedstrijdkost(tarieven, VELD_TERMEN)
        scheids = vind_wedstrijdkost(tarieven, SCHEIDS_TERMEN)
        if not veld or not scheids:
            raise SyncFout("Veldkosten of Scheidsrechterkosten niet gevonden")

        for wedstrijd in wedstrijden:
            _synchroniseer_wedstrijd_batch(client, wedstrijd, veld, scheids, resultaat)

    except SyncFout:
        raise
    except Exception as e:
        logger.error("Fout bij batch synchronisatie wedstrijdkosten", exc_info=True)
        raise SyncFout(str(e)) from e

    logger.info(
        f"Batch sync klaar: {resultaat['synced']} toegevoegd, "
        f"{resultaat['updated']} bijgewerkt, {resultaat['skipped']} overgeslagen"
    )
    resultaat["message"] = (
        f"Synchronisatie voltooid: {resultaat['synced']} kosten toegevoegd, "
        f"{resultaat['updated']} bijgewerkt, {resultaat['skipped']} overgeslagen"
    )
    return resultaat


def _synchroniseer_wedstrijd_batch(client, wedstrijd: dict, veld: dict, scheids: dict, resultaat: dict) -> None:
    team_ids = [
        t for t in (wedstrijd.get("home_team_id"), wedstrijd.get("away_team_id"))
        if isinstance(t, int) and t > 0
    ]
    if len(team_ids) != 2:
        resultaat["skipped"] += 1
        return

    match_id = wedstrijd["match_id"]
    bestaand = (
        client.table("team_costs")
        .select("id, team_id, cost_setting_id, amount")
        .eq("match_id", match_id)
        .in_("cost_setting_id", [veld["id"], scheids["id"]])
        .execute()
    ).data or []
    per_sleutel = {(r["team_id"], r["cost_setting_id"]): r for r in bestaand}

    toevoegen, bijwerken = [], []
    transactie_datum = _transactie_datum(wedstrijd.get("match_date"))
    for team_id in team_ids:
        for tarief in (veld, scheids):
            rij = per_sleutel.get((team_id, tarief["id"]))
            bedrag = tarief.get("amount") or 0
            if rij is None:
                toevoegen.append({
                    "team_id": team_id,
                    "cost_setting_id": tarief["id"],
                    "amount": bedrag,
                    "transaction_date": transactie_datum,
                    "match_id": match_id,
                    "is_auto_card_penalty": False,
                })
            elif rij.get("amount") != bedrag:
                bijwerken.append((rij["id"], bedrag))

    if toevoegen:
        client.table("team_costs").insert(toevoegen).execute()
        resultaat["synced"] += len(toevoegen)
    for kost_id, bedrag in bijwerken:
        client.table("team_costs").update({"amount": bedrag}).eq("id", kost_id).execute()
        resultaat["updated"] += 1
    if not toevoegen and not bijwerken:
        resultaat["skipped"] += 1


# ============================================================
# NEVENEFFECTEN NA INDIENEN
# ============================================================

def _voer_uit_met_herkansing(naam: str, match_id: int, operatie, wachttijd: float) -> dict:
    start = time.monotonic()
    try:
        database.met_retry(operatie, pogingen=2, basis_wachttijd=wachttijd)
        return {"naam": naam, "gelukt": True, "duur": round(time.monotonic() - start, 3)}
    except Exception as e:
        logger.error(f"Neveneffect {naam} voor wedstrijd {match_id} mislukt na herkansing: {e}")
        return {"naam": naam, "gelukt": False, "fout": str(e), "duur": round(time.monotonic() - start, 3)}


def _registreer_mislukking(client, match_id: int, naam: str, fout: str) -> None:
    """Leg een mislukt neveneffect vast zodat een admin het opnieuw kan starten."""
    try:
        client.table("application_settings").insert({
            "setting_category": NEVENEFFECT_CATEGORIE,
            "setting_name": f"{naam}_{match_id}_{int(time.time() * 1000)}",
            "setting_value": {
                "matchId": match_id,
                "sideEffect": naam,
                "error": fout[:500],
                "timestamp": datetime.now().isoformat(),
                "canRetry": True,
            },
            "is_active": True,
        }).execute()
    except Exception:
        # Het neveneffect zelf is al gelogd; dit is alleen de administratie
        logger.error(f"Kon mislukking van {naam} voor wedstrijd {match_id} niet vastleggen", exc_info=True)


def verwerk_ingediende_wedstrijd(client, wedstrijd: dict, home_players=None, away_players=None,
                                 wachttijd: float = 1.0) -> list[dict]:
    """
    Voer de neveneffecten uit nadat een wedstrijdformulier is opgeslagen.

    - kaartboetes als er spelerslijsten zijn meegegeven
    - veld- en scheidsrechterkosten als de wedstrijd is ingediend
    - doorstroming naar de volgende ronde voor een ingediende bekerwedstrijd

    Elk neveneffect krijgt één herkansing. Wat dan nog faalt wordt vastgelegd
    in application_settings en breekt het opslaan van het formulier niet af.
    """
    match_id = wedstrijd["match_id"]
    resultaten = []

    if home_players is not None or away_players is not None:
        resultaten.append(_voer_uit_met_herkansing(
            "card_penalties", match_id,
            lambda: synchroniseer_kaartboetes(
                client, match_id,
                wedstrijd.get("home_team_id"), wedstrijd.get("away_team_id"),
                home_players or [], away_players or [],
                wedstrijd.get("match_date"),
            ),
            wachttijd,
        ))

    if wedstrijd.get("is_submitted"):
        resultaten.append(_voer_uit_met_herkansing(
            "match_costs", match_id,
            lambda: synchroniseer_wedstrijdkosten(
                client, match_id,
                wedstrijd.get("home_team_id"), wedstrijd.get("away_team_id"),
                True, wedstrijd.get("match_date"), wedstrijd.get("referee"),
            ),
            wachttijd,
        ))

    if wedstrijd.get("is_submitted") and wedstrijd.get("is_cup_match"):
        resultaten.append(_voer_uit_met_herkansing(
            "cup_advancement", match_id,
            lambda: beker.schuif_winnaar_door(client, wedstrijd),
            wachttijd,
        ))

    for resultaat in resultaten:
        if not resultaat["gelukt"]:
            _registreer_mislukking(client, match_id, resultaat["naam"], resultaat["fout"])

    return resultaten


def laad_mislukte_neveneffecten(client, match_id: int | None = None) -> list:
    """Openstaande mislukte neveneffecten, nieuwste eerst."""
    response = (
        client.table("application_settings")
        .select("*")
        .eq("setting_category", NEVENEFFECT_CATEGORIE)
        .eq("is_active", True)
        .order("created_at", desc=True)
        .limit(50)
        .execute()
    )
    rijen = response.data or []
    if match_id is not None:
        rijen = [r for r in rijen if (r.get("setting_value") or {}).get("matchId") == match_id]
    return rijen


def herhaal_neveneffect(client, failure_id: int) -> bool:
    """Start een eerder mislukt neveneffect opnieuw; markeert het record als opgelost bij succes."""
    rijen = client.table("application_settings").select("*").eq("id", failure_id).execute().data
    if not rijen:
        logger.error(f"Mislukkingsrecord {failure_id} niet gevonden")
        return False

    waarde = rijen[0].get("setting_value") or {}
    match_id = waarde.get("matchId")
    naam = waarde.get("sideEffect")
    if not match_id or not naam:
        logger.error(f"Ongeldig mislukkingsrecord {failure_id}")
        return False

    wedstrijden = client.table("matches").select("*").eq("match_id", match_id).execute().data
    if not wedstrijden:
        logger.error(f"Wedstrijd {match_id} niet gevonden")
        return False
    wedstrijd = wedstrijden[0]

    try:
        if naam == "card_penalties":
            synchroniseer_kaartboetes(
                client, match_id, wedstrijd.get("home_team_id"), wedstrijd.get("away_team_id"),
                wedstrijd.get("home_players") or [], wedstrijd.get("away_players") or [],
                wedstrijd.get("match_date"),
            )
        elif naam == "match_costs":
            synchroniseer_wedstrijdkosten(
                client, match_id, wedstrijd.get("home_team_id"), wedstrijd.get("away_team_id"),
                bool(wedstrijd.get("is_submitted")), wedstrijd.get("match_date"), wedstrijd.get("referee"),
            )
        elif naam == "cup_advancement":
            beker.schuif_winnaar_door(client, wedstrijd)
        else:
            logger.error(f"Onbekend neveneffect: {naam}")
            return False
    except (SyncFout, beker.BekerFout) as e:
        logger.error(f"Herhalen van {naam} voor wedstrijd {match_id} mislukt: {e}")
        return False

    client.table("application_settings").update({"is_active": False}).eq("id", failure_id).execute()
    logger.info(f"Neveneffect {naam} voor wedstrijd {match_id} alsnog gelukt")
    return True
