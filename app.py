"""
Competitieportaal
Harelbeekse Minivoetbal

Publieke tabs (speelschema, klassement, beker, schorsingen, reglement) en
drie ingelogde views:
1. Teamverantwoordelijke: spelerslijst en wedstrijdformulieren
2. Scheidsrechter: beschikbaarheid en toewijzingen
3. Beheerder: teams, wedstrijden, financiën, schorsingen, polls en instellingen
"""

import json
from datetime import date, datetime, time

import pandas as pd
import streamlit as st

import beker
import database
import emails
import financien
import kosten_sync
import meldingen
import polls
import schorsingen
import speelschema
from logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

KAART_LABELS = {
    "none": "Geen",
    "yellow": "🟨 Geel",
    "double_yellow": "🟨🟨 Dubbel geel",
    "red": "🟥 Rood",
}

TAB_TITELS = {
    "algemeen": "🏠 Algemeen",
    "competitie": "📅 Competitie",
    "playoff": "🏆 Playoff",
    "beker": "🏆 Beker",
    "schorsingen": "🚫 Schorsingen",
    "reglement": "📖 Reglement",
}


def inject_custom_css():
    st.markdown("""
    <style>
    .wedstrijd-kaart {
        background-color: #f0f2f6;
        padding: 0.75rem;
        border-radius: 0.5rem;
        margin-bottom: 0.5rem;
    }
    .wedstrijd-vergrendeld {
        border-left: 4px solid #28a745;
    }
    .wedstrijd-open {
        border-left: 4px solid #ffc107;
    }
    button[kind="primary"],
    button[data-testid="baseButton-primary"] {
        background-color: #1e88e5 !important;
        border-color: #1e88e5 !important;
        color: white !important;
    }
    </style>
    """, unsafe_allow_html=True)


# ============================================================
# HULPFUNCTIES
# ============================================================

def huidige_gebruiker() -> dict | None:
    return st.session_state.get("gebruiker")


def teamnamen() -> dict:
    return {t["team_id"]: t["team_name"] for t in database.laad_teams()}


def euro(bedrag) -> str:
    return f"€ {float(bedrag or 0):,.2f}".replace(",", "X").replace(".", ",").replace("X", ".")


def spelernaam(speler: dict) -> str:
    return f"{speler.get('first_name', '')} {speler.get('last_name', '')}".strip()


def wedstrijd_label(wedstrijd: dict, namen: dict) -> str:
    thuis = namen.get(wedstrijd.get("home_team_id"), "?")
    uit = namen.get(wedstrijd.get("away_team_id"), "?")
    datum = speelschema.formatteer_datum(wedstrijd.get("match_date"))
    tijd = wedstrijd.get("tijd") or ""
    return f"{datum} {tijd} - {thuis} vs {uit}".strip()


def score_tekst(wedstrijd: dict) -> str:
    if wedstrijd.get("home_score") is None or wedstrijd.get("away_score") is None:
        return "-"
    return f"{wedstrijd['home_score']} - {wedstrijd['away_score']}"


def wedstrijden_tabel(wedstrijden: list, namen: dict) -> pd.DataFrame:
    return pd.DataFrame([
        {
            "Nr": w.get("unique_number") or "",
            "Datum": speelschema.formatteer_datum(w.get("match_date")),
            "Tijd": w.get("tijd") or "",
            "Thuis": namen.get(w.get("home_team_id"), "?"),
            "Uit": namen.get(w.get("away_team_id"), "?"),
            "Score": score_tekst(w),
            "Locatie": w.get("location") or "",
        }
        for w in wedstrijden
    ])


def toon_meldingen(gebruiker: dict | None):
    for melding in meldingen.actieve_meldingen_voor(meldingen.laad_meldingen(alleen_actief=True), gebruiker):
        toon = {"warning": st.warning, "success": st.success, "error": st.error}.get(melding["type"], st.info)
        toon(melding["message"])


# ============================================================
# PUBLIEKE TABS
# ============================================================

def toon_algemeen(gebruiker: dict | None):
    st.subheader("Nieuws")
    toon_meldingen(gebruiker)

    berichten = database.laad_blogberichten(limiet=10)
    if not berichten:
        st.info("Nog geen berichten.")
    for bericht in berichten:
        with st.container(border=True):
            st.markdown(f"### {bericht['title']}")
            st.caption(speelschema.formatteer_datum(bericht.get("date")) + (
                "  ·  " + ", ".join(bericht["tags"]) if bericht.get("tags") else ""
            ))
            st.markdown(bericht["content"])

    vakanties = [v for v in database.laad_vakantieperiodes() if v.get("is_active")]
    if vakanties:
        st.subheader("Vakantieperiodes")
        for v in vakanties:
            st.write(f"**{v['name']}**: {speelschema.formatteer_datum(v['start_date'])} "
                     f"t/m {speelschema.formatteer_datum(v['end_date'])}")


def toon_ical_download(wedstrijden: list, namen: dict, kalendernaam: str, sleutel: str):
    events = speelschema.wedstrijden_naar_events(wedstrijden, namen)
    if not events:
        return
    st.download_button(
        "📆 Download kalender (.ics)",
        data=speelschema.genereer_ical(events, kalendernaam),
        file_name=f"{sleutel}.ics",
        mime="text/calendar",
        key=f"ical_{sleutel}",
    )


def toon_competitie():
    namen = teamnamen()
    wedstrijden = database.laad_wedstrijden(soort="competitie")

    st.subheader("Klassement")
    stand = speelschema.bereken_stand(wedstrijden, database.laad_teams())
    if stand:
        df = pd.DataFrame(stand)[["team_name", "gespeeld", "winst", "gelijk", "verlies", "voor", "tegen", "saldo", "punten"]]
        df.columns = ["Team", "GS", "W", "G", "V", "DV", "DT", "+/-", "Punten"]
        df.index = range(1, len(df) + 1)
        st.dataframe(df, use_container_width=True)

    st.subheader("Speelschema")
    team_filter = st.selectbox(
        "Team", options=[None] + sorted(namen, key=lambda t: namen[t]),
        format_func=lambda t: "Alle teams" if t is None else namen[t],
        key="competitie_team",
    )
    if team_filter is not None:
        wedstrijden = [w for w in wedstrijden if team_filter in (w.get("home_team_id"), w.get("away_team_id"))]

    kalendernaam = f"Speelschema {namen[team_filter]}" if team_filter is not None else "Speelschema"
    toon_ical_download(wedstrijden, namen, kalendernaam, f"competitie_{team_filter or 'alle'}")

    for speeldag, groep in speelschema.groepeer_per_ronde(wedstrijden, beker=False).items():
        with st.expander(f"Speeldag {speeldag}" if str(speeldag).isdigit() else str(speeldag)):
            st.dataframe(wedstrijden_tabel(groep, namen), hide_index=True, use_container_width=True)


def toon_beker(soort: str = "beker"):
    namen = teamnamen()
    wedstrijden = database.laad_wedstrijden(soort=soort)
    if not wedstrijden:
        st.info("Nog geen wedstrijden gepland.")
        return

    toon_ical_download(wedstrijden, namen, soort.capitalize(), soort)
    for ronde, groep in speelschema.groepeer_per_ronde(wedstrijden, beker=soort == "beker").items():
        st.markdown(f"#### {ronde}")
        for w in groep:
            thuis = namen.get(w.get("home_team_id"), "Nog te bepalen")
            uit = namen.get(w.get("away_team_id"), "Nog te bepalen")
            st.write(f"{speelschema.formatteer_datum(w.get('match_date'))} {w.get('tijd') or ''} · "
                     f"**{thuis}** {score_tekst(w)} **{uit}**")


def toon_schorsingen():
    actief = schorsingen.laad_actieve_schorsingen()
    st.subheader("Actieve schorsingen")
    if actief:
        st.dataframe(pd.DataFrame([
            {
                "Speler": s["speler"],
                "Team": s["team"],
                "Reden": s["reden"],
                "Wedstrijden": s["wedstrijden"],
                "Uitgezeten": f"{s.get('uitgezeten', 0)}/{s['wedstrijden']}",
                "Laatste kaart": speelschema.formatteer_datum(s["kaartdatum"]) if s.get("kaartdatum") else "-",
                "Volgende wedstrijd": (
                    f"{speelschema.formatteer_datum(s['volgende_wedstrijd']['date'])} "
                    f"vs {s['volgende_wedstrijd']['opponent']}"
                    if s.get("volgende_wedstrijd") else "-"
                ),
            }
            for s in actief
        ]), hide_index=True, use_container_width=True)
    else:
        st.success("Geen actieve schorsingen.")

    spelers = {s["player_id"]: s for s in database.laad_spelers()}
    handmatig = [s for s in schorsingen.laad_handmatige_schorsingen() if s["is_active"]]
    if handmatig:
        st.subheader("Schorsingen door de competitieleiding")
        for s in handmatig:
            speler = spelers.get(s["player_id"])
            st.write(f"**{spelernaam(speler) if speler else s['player_id']}**: {s['reden']} "
                     f"({s['wedstrijden']} wedstrijd(en), tot {speelschema.formatteer_datum(s['end_date'])})")

    st.subheader("Kaarten")
    namen = teamnamen()
    kaarten = schorsingen.tel_kaarten(database.laad_wedstrijden())
    rijen = [
        {
            "Speler": spelernaam(spelers[pid]),
            "Team": namen.get(spelers[pid].get("team_id"), "-"),
            "Geel": telling["yellow"],
            "Rood": telling["red"],
        }
        for pid, telling in kaarten.items() if pid in spelers
    ]
    if rijen:
        st.dataframe(
            pd.DataFrame(rijen).sort_values(["Rood", "Geel"], ascending=False),
            hide_index=True, use_container_width=True,
        )
    else:
        st.caption("Nog geen kaarten dit seizoen.")


def toon_reglement():
    regels = schorsingen.laad_schorsingsregels()
    st.subheader("Schorsingen")
    st.write("**Gele kaarten** (opgeteld over het seizoen):")
    for regel in regels["yellow_card_rules"]:
        bovengrens = "of meer" if regel["max_cards"] >= 99 else f"t/m {regel['max_cards']}"
        st.write(f"- {regel['min_cards']} {bovengrens} gele kaarten: {regel['suspension_matches']} speeldag(en) schorsing")
    rode = regels["red_card_rules"]
    st.write(f"**Rode kaart**: {rode['default_suspension_matches']} speeldag(en) schorsing per rode kaart, "
             f"maximaal {rode.get('max_suspension_matches', '-')}. Een dubbele gele kaart telt als rode kaart.")

    boetes = financien.laad_kostinstellingen(categorie="penalty", alleen_actief=True)
    if boetes:
        st.subheader("Boetes")
        for boete in boetes:
            st.write(f"- {boete['name']}: {euro(boete['amount'])}")


# ============================================================
# LOGIN EN WACHTWOORD
# ============================================================

def toon_login():
    gebruiker = huidige_gebruiker()
    with st.sidebar:
        if gebruiker:
            st.write(f"Ingelogd als **{gebruiker['username']}** ({gebruiker['role']})")
            if st.button("Uitloggen"):
                for sleutel in [k for k in st.session_state if k == "gebruiker" or k.startswith("_db_cache_")]:
                    del st.session_state[sleutel]
                st.rerun()
            return

        st.subheader("🔐 Login")
        with st.form("login"):
            gebruikersnaam = st.text_input("Gebruikersnaam")
            wachtwoord = st.text_input("Wachtwoord", type="password")
            if st.form_submit_button("Inloggen"):
                gebruiker = database.verifieer_login(gebruikersnaam, wachtwoord)
                if gebruiker:
                    st.session_state.gebruiker = gebruiker
                    st.rerun()
                else:
                    st.error("Onjuiste gebruikersnaam of wachtwoord")

        with st.expander("Wachtwoord vergeten?"):
            adres = st.text_input("Email of gebruikersnaam", key="reset_adres")
            if st.button("Stuur reset link"):
                try:
                    boodschap = emails.verstuur_wachtwoord_reset(database.get_supabase_client(), adres)
                    st.info(boodschap)
                except ValueError as e:
                    st.error(str(e))
                except emails.EmailFout as e:
                    st.error(f"Versturen mislukt: {e}")


def toon_reset_pagina(token: str):
    st.title("🔑 Nieuw wachtwoord instellen")
    with st.form("reset_wachtwoord"):
        nieuw = st.text_input("Nieuw wachtwoord", type="password")
        herhaal = st.text_input("Herhaal wachtwoord", type="password")
        if st.form_submit_button("Opslaan"):
            if nieuw != herhaal:
                st.error("Wachtwoorden komen niet overeen")
                return
            try:
                emails.reset_wachtwoord(database.get_supabase_client(), token, nieuw)
            except ValueError as e:
                st.error(str(e))
                return
            st.success("Wachtwoord ingesteld. Je kan nu inloggen.")
            st.query_params.clear()


# ============================================================
# WEDSTRIJDFORMULIER
# ============================================================

def _kies_spelers(kant: str, wedstrijd: dict, spelers: list, huidige: list, uitgeschakeld: bool) -> list:
    """Opstelling plus kaart per speler; geeft [{playerId, cardType}] terug"""
    match_id = wedstrijd["match_id"]
    per_id = {s["player_id"]: s for s in spelers}
    huidige_kaarten = {}
    for p in huidige or []:
        if isinstance(p, dict):
            kaart = kosten_sync.normaliseer_kaart(p.get("cardType"))
            huidige_kaarten[p.get("playerId")] = kaart if kaart in KAART_LABELS else "none"
    gekozen = st.multiselect(
        "Opstelling",
        options=list(per_id),
        default=[pid for pid in huidige_kaarten if pid in per_id],
        format_func=lambda pid: spelernaam(per_id[pid]),
        disabled=uitgeschakeld,
        key=f"opstelling_{kant}_{match_id}",
    )

    datum = (wedstrijd.get("match_date") or "")[:10]
    resultaat = []
    for pid in gekozen:
        if datum and not schorsingen.is_speler_speelgerechtigd(pid, datum):
            st.warning(f"{spelernaam(per_id[pid])} is geschorst voor deze wedstrijd")
        kaart = st.selectbox(
            spelernaam(per_id[pid]),
            options=list(KAART_LABELS),
            index=list(KAART_LABELS).index(huidige_kaarten.get(pid, "none")),
            format_func=KAART_LABELS.get,
            disabled=uitgeschakeld,
            key=f"kaart_{kant}_{match_id}_{pid}",
        )
        resultaat.append({"playerId": pid, "cardType": kaart})
    return resultaat


def toon_wedstrijdformulier(wedstrijd: dict, gebruiker: dict, namen: dict):
    """Formulier voor score, opstelling en kaarten van één wedstrijd."""
    is_admin = database.heeft_rol(gebruiker, database.ROL_ADMIN)
    vergrendeld = bool(wedstrijd.get("is_locked")) and not is_admin
    match_id = wedstrijd["match_id"]

    if wedstrijd.get("is_locked"):
        st.caption("🔒 Formulier ingediend en vergrendeld" + (" (admin kan wijzigen)" if is_admin else ""))

    col_thuis, col_uit = st.columns(2)
    with col_thuis:
        st.markdown(f"**{namen.get(wedstrijd.get('home_team_id'), '?')}**")
        thuis_score = st.number_input("Score thuis", min_value=0, step=1,
                                      value=int(wedstrijd.get("home_score") or 0),
                                      disabled=vergrendeld, key=f"thuis_score_{match_id}")
        thuis_spelers = _kies_spelers("thuis", wedstrijd,
                                      database.laad_spelers(wedstrijd.get("home_team_id")),
                                      wedstrijd.get("home_players"), vergrendeld)
    with col_uit:
        st.markdown(f"**{namen.get(wedstrijd.get('away_team_id'), '?')}**")
        uit_score = st.number_input("Score uit", min_value=0, step=1,
                                    value=int(wedstrijd.get("away_score") or 0),
                                    disabled=vergrendeld, key=f"uit_score_{match_id}")
        uit_spelers = _kies_spelers("uit", wedstrijd,
                                    database.laad_spelers(wedstrijd.get("away_team_id")),
                                    wedstrijd.get("away_players"), vergrendeld)

    scheidsrechter = st.text_input("Scheidsrechter", value=wedstrijd.get("referee") or "",
                                   disabled=vergrendeld, key=f"scheids_{match_id}")
    notities = st.text_area("Opmerkingen scheidsrechter", value=wedstrijd.get("referee_notes") or "",
                            disabled=vergrendeld, key=f"notities_{match_id}")
    indienen = st.checkbox("Formulier indienen (vergrendelt het formulier)",
                           value=bool(wedstrijd.get("is_submitted")),
                           disabled=vergrendeld, key=f"indienen_{match_id}")
    strafschoppen = None
    if wedstrijd.get("is_cup_match") and indienen and thuis_score == uit_score:
        st.info("Gelijkspel in de beker: vul de strafschoppenreeks in.")
        col_thuis, col_uit = st.columns(2)
        strafschoppen = (
            col_thuis.number_input("Strafschoppen thuis", min_value=0, step=1, value=0,
                                   disabled=vergrendeld, key=f"strafschoppen_thuis_{match_id}"),
            col_uit.number_input("Strafschoppen uit", min_value=0, step=1, value=0,
                                 disabled=vergrendeld, key=f"strafschoppen_uit_{match_id}"),
        )
    if is_admin:
        slot = st.checkbox("Vergrendeld", value=bool(wedstrijd.get("is_locked")), key=f"slot_{match_id}")

    if vergrendeld or not st.button("💾 Opslaan", type="primary", key=f"opslaan_{match_id}"):
        return

    formulier = {
        "match_id": match_id,
        "home_score": thuis_score,
        "away_score": uit_score,
        "home_players": thuis_spelers,
        "away_players": uit_spelers,
        "referee": scheidsrechter or None,
        "referee_notes": notities or None,
        "is_submitted": indienen,
    }
    if is_admin:
        formulier["is_locked"] = slot or indienen

    try:
        if strafschoppen is not None:
            formulier.update(beker.verwerk_strafschoppen(
                thuis_score, uit_score, *strafschoppen,
                namen.get(wedstrijd.get("home_team_id"), "Thuis"),
                namen.get(wedstrijd.get("away_team_id"), "Uit"),
                notities or None,
            ))
        bijgewerkt = database.sla_wedstrijdformulier_op(formulier, gebruiker)
    except (ValueError, PermissionError, LookupError) as e:
        st.error(str(e))
        return

    resultaten = kosten_sync.verwerk_ingediende_wedstrijd(
        database.get_supabase_client(), bijgewerkt, thuis_spelers, uit_spelers
    )
    mislukt = [r for r in resultaten if not r["gelukt"]]
    if mislukt:
        st.warning("Formulier opgeslagen, maar niet alles kon verwerkt worden: "
                   + ", ".join(r["naam"] for r in mislukt) + ". De beheerder kan dit opnieuw starten.")
    else:
        st.success("Wedstrijdformulier opgeslagen!")
    st.rerun()


# ============================================================
# TEAMVERANTWOORDELIJKE
# ============================================================

def toon_spelerslijst(team_id: int, bewerkbaar: bool):
    spelers = database.laad_spelers(team_id)
    if spelers:
        st.dataframe(pd.DataFrame([
            {"Naam": spelernaam(s), "Geboortedatum": speelschema.formatteer_datum(s.get("birth_date"))}
            for s in spelers
        ]), hide_index=True, use_container_width=True)
    else:
        st.info("Nog geen spelers.")

    if not bewerkbaar:
        st.info("🔒 De spelerslijsten zijn vergrendeld. Contacteer de competitieleiding voor wijzigingen.")
        return

    with st.form(f"nieuwe_speler_{team_id}"):
        st.write("**Speler toevoegen**")
        col1, col2, col3 = st.columns(3)
        voornaam = col1.text_input("Voornaam")
        achternaam = col2.text_input("Achternaam")
        geboortedatum = col3.date_input("Geboortedatum", value=date(2000, 1, 1),
                                        min_value=date(1940, 1, 1), max_value=date.today())
        if st.form_submit_button("Toevoegen"):
            try:
                database.sla_speler_op({
                    "first_name": voornaam, "last_name": achternaam,
                    "birth_date": geboortedatum, "team_id": team_id,
                })
                st.success("Speler toegevoegd!")
                st.rerun()
            except ValueError as e:
                st.error(str(e))

    if spelers:
        te_verwijderen = st.selectbox("Speler verwijderen", options=[s["player_id"] for s in spelers],
                                      format_func=lambda pid: spelernaam(next(s for s in spelers if s["player_id"] == pid)),
                                      key=f"verwijder_speler_{team_id}")
        if st.button("🗑️ Verwijderen", key=f"verwijder_speler_knop_{team_id}"):
            if database.verwijder_speler(te_verwijderen):
                st.success("Speler verwijderd")
                st.rerun()


def toon_teamverantwoordelijke_view(gebruiker: dict):
    team_id = gebruiker.get("team_id")
    if not team_id:
        st.warning("Je account is nog niet aan een team gekoppeld.")
        return

    namen = teamnamen()
    st.header(f"⚽ {namen.get(team_id, 'Mijn team')}")
    slot = database.laad_spelerslijst_slot()

    tab_spelers, tab_wedstrijden, tab_financien = st.tabs(["👥 Spelers", "📝 Wedstrijden", "💶 Financiën"])
    with tab_spelers:
        toon_spelerslijst(team_id, bewerkbaar=not database.is_spelerslijst_vergrendeld(slot))

    with tab_wedstrijden:
        wedstrijden = speelschema.sorteer_op_datum_tijd(database.laad_wedstrijden(team_id=team_id))
        if not wedstrijden:
            st.info("Geen wedstrijden gevonden.")
        for w in wedstrijden:
            status = "🔒" if w.get("is_locked") else "📝"
            with st.expander(f"{status} {wedstrijd_label(w, namen)}"):
                toon_wedstrijdformulier(w, gebruiker, namen)

    with tab_financien:
        transacties = financien.laad_transacties(team_id)
        overzicht = financien.bereken_teamfinancien(transacties)
        cols = st.columns(4)
        cols[0].metric("Saldo", euro(overzicht["saldo"]))
        cols[1].metric("Veldkosten", euro(overzicht["veldkosten"]))
        cols[2].metric("Scheidsrechter", euro(overzicht["scheidsrechterkosten"]))
        cols[3].metric("Boetes", euro(overzicht["boetes"]))
        toon_transacties(transacties, namen, met_team=False)


# ============================================================
# SCHEIDSRECHTER
# ============================================================

def toon_scheidsrechter_view(gebruiker: dict):
    client = database.get_supabase_client()
    namen = teamnamen()
    st.header("🟨 Scheidsrechter")

    tab_beschikbaarheid, tab_toewijzingen = st.tabs(["🗓️ Beschikbaarheid", "📋 Mijn wedstrijden"])

    with tab_beschikbaarheid:
        open_polls = polls.laad_open_polls(client)
        if not open_polls:
            st.info("Er staat momenteel geen poll open.")
        for poll in open_polls:
            maand = poll["poll_month"]
            st.subheader(f"Poll {maand}")
            if poll.get("deadline"):
                st.caption(f"Deadline: {speelschema.formatteer_datum(poll['deadline'])}")
            groepen = polls.laad_pollgroepen(client, maand)
            eerder = {
                b["poll_group_id"]: b["is_available"]
                for b in polls.laad_beschikbaarheid(client, maand, gebruiker["user_id"])
            }
            with st.form(f"beschikbaarheid_{maand}"):
                keuzes = {}
                for groep_id, groep in groepen.items():
                    eerste = groep[0]
                    label = (f"{speelschema.formatteer_datum(eerste.get('match_date'))} "
                             f"{eerste.get('tijd') or ''} · {eerste.get('location') or 'Onbekend'} "
                             f"({len(groep)} wedstrijden)")
                    keuzes[groep_id] = st.checkbox(label, value=eerder.get(groep_id, False), key=f"groep_{groep_id}")
                if st.form_submit_button("Beschikbaarheid opslaan"):
                    try:
                        polls.dien_beschikbaarheid_in(client, gebruiker["user_id"], maand, [
                            {"poll_group_id": groep_id, "is_available": beschikbaar}
                            for groep_id, beschikbaar in keuzes.items()
                        ])
                        st.success("Beschikbaarheid opgeslagen!")
                    except polls.PollFout as e:
                        st.error(str(e))

    with tab_toewijzingen:
        toewijzingen = polls.laad_toewijzingen(client, gebruiker["user_id"])
        if not toewijzingen:
            st.info("Nog geen toewijzingen.")
        for t in toewijzingen:
            wedstrijd = database.laad_wedstrijd(t["match_id"])
            if not wedstrijd:
                continue
            with st.container(border=True):
                st.write(f"**{wedstrijd_label(wedstrijd, namen)}** · status: {t['status']}")
                if t["status"] == "pending":
                    col1, col2 = st.columns(2)
                    if col1.button("✅ Bevestigen", key=f"bevestig_{t['id']}"):
                        polls.zet_toewijzing_status(client, t["id"], "confirmed")
                        st.rerun()
                    if col2.button("❌ Weigeren", key=f"weiger_{t['id']}"):
                        polls.zet_toewijzing_status(client, t["id"], "declined")
                        st.rerun()
                if t["status"] in ("pending", "confirmed"):
                    with st.expander("Wedstrijdformulier"):
                        toon_wedstrijdformulier(wedstrijd, gebruiker, namen)


# ============================================================
# BEHEERDER
# ============================================================

def toon_teams_beheer():
    teams = database.laad_teams()
    for team in teams:
        with st.expander(f"{team['team_name']}"):
            with st.form(f"team_{team['team_id']}"):
                naam = st.text_input("Teamnaam", value=team["team_name"])
                col1, col2 = st.columns(2)
                contact = col1.text_input("Contactpersoon", value=team.get("contact_person") or "")
                telefoon = col1.text_input("Telefoon", value=team.get("contact_phone") or "")
                email = col2.text_input("Email", value=team.get("contact_email") or "")
                kleuren = col2.text_input("Clubkleuren", value=team.get("club_colors") or "")
                momenten = st.text_input("Voorkeur speelmomenten", value=team.get("preferred_play_moments") or "")
                col_opslaan, col_verwijder = st.columns(2)
                if col_opslaan.form_submit_button("💾 Opslaan"):
                    try:
                        database.werk_team_bij(team["team_id"], {
                            "team_name": naam, "contact_person": contact, "contact_phone": telefoon,
                            "contact_email": email, "club_colors": kleuren, "preferred_play_moments": momenten,
                        })
                        st.success("Team bijgewerkt!")
                        st.rerun()
                    except Exception as e:
                        st.error(f"Opslaan mislukt: {e}")
                if col_verwijder.form_submit_button("🗑️ Verwijderen"):
                    try:
                        database.verwijder_team(team["team_id"])
                        st.rerun()
                    except Exception as e:
                        st.error(f"Verwijderen mislukt: {e}")

    st.subheader("➕ Nieuw team")
    with st.form("nieuw_team"):
        naam = st.text_input("Teamnaam")
        contact = st.text_input("Contactpersoon")
        email = st.text_input("Email")
        if st.form_submit_button("Toevoegen"):
            try:
                database.maak_team_aan({"team_name": naam, "contact_person": contact, "contact_email": email})
                st.success("Team toegevoegd!")
                st.rerun()
            except Exception as e:
                st.error(f"Team aanmaken mislukt: {e}")


def toon_spelers_beheer():
    namen = teamnamen()
    if not namen:
        st.info("Maak eerst een team aan.")
        return

    slot = database.laad_spelerslijst_slot()
    with st.expander("🔒 Vergrendeling spelerslijsten"):
        with st.form("spelerslijst_slot"):
            actief = st.checkbox("Vergrendeling actief", value=slot["is_active"])
            vanaf = st.date_input(
                "Vergrendeld vanaf",
                value=date.fromisoformat(slot["lock_from_date"][:10]) if slot.get("lock_from_date") else date.today(),
            )
            if st.form_submit_button("Opslaan"):
                database.zet_spelerslijst_slot(vanaf.isoformat(), actief)
                st.success("Instelling opgeslagen")

    team_id = st.selectbox("Team", options=sorted(namen, key=lambda t: namen[t]),
                           format_func=namen.get, key="beheer_spelers_team")
    toon_spelerslijst(team_id, bewerkbaar=True)


def toon_wedstrijden_beheer(gebruiker: dict):
    namen = teamnamen()
    soort = st.radio("Soort", options=list(database.WEDSTRIJD_SOORTEN), horizontal=True, key="beheer_soort")
    wedstrijden = database.laad_wedstrijden(soort=soort)
    if soort == "beker":
        wedstrijden = speelschema.sorteer_bekerwedstrijden(wedstrijden)
    else:
        wedstrijden = speelschema.sorteer_competitiewedstrijden(wedstrijden)

    for w in wedstrijden:
        status = "🔒" if w.get("is_locked") else ("✅" if w.get("is_submitted") else "📝")
        with st.expander(f"{status} {w.get('unique_number') or ''} {wedstrijd_label(w, namen)}"):
            toon_wedstrijdformulier(w, gebruiker, namen)
            st.divider()
            col1, col2 = st.columns(2)
            if w.get("is_locked") and col1.button("🔓 Ontgrendelen", key=f"ontgrendel_{w['match_id']}"):
                database.vergrendel_wedstrijd(w["match_id"], False)
                st.rerun()
            if col2.button("🗑️ Wedstrijd verwijderen", key=f"verwijder_wed_{w['match_id']}"):
                database.verwijder_wedstrijd(w["match_id"])
                st.rerun()

    if soort == "beker" and wedstrijden:
        st.subheader("🏆 Team toewijzen (bye)")
        with st.form("beker_toewijzen"):
            col1, col2, col3 = st.columns(3)
            nummer = col1.selectbox("Wedstrijd", options=[w["unique_number"] for w in wedstrijden
                                                          if w.get("unique_number")])
            team_id = col2.selectbox("Team", options=sorted(namen, key=lambda t: namen[t]), format_func=namen.get)
            thuis = col3.radio("Plaats", options=[True, False], format_func=lambda t: "Thuis" if t else "Uit")
            if st.form_submit_button("Toewijzen"):
                try:
                    beker.wijs_team_toe(database.get_supabase_client(), nummer, team_id, thuis)
                    st.success("Team toegewezen")
                    st.rerun()
                except LookupError as e:
                    st.error(str(e))

    st.subheader("➕ Nieuwe wedstrijd")
    with st.form("nieuwe_wedstrijd"):
        team_ids = sorted(namen, key=lambda t: namen[t])
        col1, col2 = st.columns(2)
        thuis = col1.selectbox("Thuisploeg", options=team_ids, format_func=namen.get)
        uit = col2.selectbox("Uitploeg", options=team_ids, format_func=namen.get)
        datum = col1.date_input("Datum")
        tijd = col2.time_input("Tijd", value=time(20, 0))
        nummer = col1.text_input("Wedstrijdnummer (bv. A12, 1/8-1, FINAL)")
        speeldag = col2.text_input("Speeldag")
        locatie = st.text_input("Locatie")
        if st.form_submit_button("Toevoegen"):
            try:
                database.maak_wedstrijd_aan({
                    "home_team_id": thuis, "away_team_id": uit,
                    "datum": datum.isoformat(), "tijd": tijd.strftime("%H:%M"),
                    "unique_number": nummer or None, "speeldag": speeldag or None,
                    "location": locatie or None,
                    "is_cup_match": soort == "beker", "is_playoff_match": soort == "playoff",
                })
                st.success("Wedstrijd toegevoegd!")
                st.rerun()
            except ValueError as e:
                st.error(str(e))


def toon_transacties(transacties: list, namen: dict, met_team: bool = True):
    if not transacties:
        st.caption("Geen transacties.")
        return
    rijen = []
    for t in transacties:
        rij = {
            "Datum": speelschema.formatteer_datum(t.get("transaction_date")),
            "Type": t.get("transaction_type"),
            "Omschrijving": t.get("description") or t.get("cost_name") or "",
            "Wedstrijd": t.get("match_unique_number") or "",
            "Bedrag": float(t.get("amount") or 0),
        }
        if met_team:
            rij = {"Team": namen.get(t.get("team_id"), "?"), **rij}
        rijen.append(rij)
    st.dataframe(pd.DataFrame(rijen), hide_index=True, use_container_width=True,
                 column_config={"Bedrag": st.column_config.NumberColumn(format="€ %.2f")})


def toon_financien_beheer():
    namen = teamnamen()
    client = database.get_supabase_client()
    tab_saldi, tab_transacties, tab_kosten, tab_rapport, tab_sync = st.tabs([
        "💶 Saldi", "🧾 Transacties", "⚙️ Kostinstellingen", "📊 Maandrapport", "🔄 Synchronisatie",
    ])

    with tab_saldi:
        saldi = financien.laad_teamsaldi()
        st.dataframe(saldi, hide_index=True, use_container_width=True)

    with tab_transacties:
        team_id = st.selectbox("Team", options=[None] + sorted(namen, key=lambda t: namen[t]),
                               format_func=lambda t: "Alle teams" if t is None else namen[t],
                               key="transacties_team")
        toon_transacties(financien.laad_transacties(team_id), namen)

        st.subheader("➕ Transactie toevoegen")
        boetes = financien.laad_kostinstellingen(categorie="penalty", alleen_actief=True)
        with st.form("nieuwe_transactie"):
            col1, col2 = st.columns(2)
            doel = col1.selectbox("Team", options=sorted(namen, key=lambda t: namen[t]), format_func=namen.get)
            soort = col2.selectbox("Type", options=list(financien.TRANSACTIE_TYPES))
            bedrag = col1.number_input("Bedrag", value=0.0, step=5.0)
            datum = col2.date_input("Datum", value=date.today())
            boete = st.selectbox("Boete (alleen voor type penalty)", options=[None] + [b["id"] for b in boetes],
                                 format_func=lambda b: "-" if b is None else next(x["name"] for x in boetes if x["id"] == b))
            omschrijving = st.text_input("Omschrijving")
            if st.form_submit_button("Toevoegen"):
                try:
                    financien.voeg_transactie_toe(doel, soort, bedrag, datum.isoformat(), omschrijving or None,
                                                  boete if soort == "penalty" else None)
                    st.success("Transactie toegevoegd!")
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))

    with tab_kosten:
        for kost in financien.laad_kostinstellingen():
            with st.expander(f"{kost['name']} ({kost['category']}) · {euro(kost['amount'])}"
                             + ("" if kost.get("is_active") else " · inactief")):
                with st.form(f"kost_{kost['id']}"):
                    naam = st.text_input("Naam", value=kost["name"])
                    omschrijving = st.text_input("Omschrijving", value=kost.get("description") or "")
                    bedrag = st.number_input("Bedrag", min_value=0.0, value=float(kost.get("amount") or 0), step=1.0)
                    categorie = st.selectbox("Categorie", options=list(financien.CATEGORIEEN),
                                             index=list(financien.CATEGORIEEN).index(kost["category"])
                                             if kost["category"] in financien.CATEGORIEEN else 0)
                    actief = st.checkbox("Actief", value=bool(kost.get("is_active")))
                    col1, col2 = st.columns(2)
                    if col1.form_submit_button("💾 Opslaan"):
                        try:
                            financien.werk_kostinstelling_bij(kost["id"], {
                                "name": naam, "description": omschrijving, "amount": bedrag,
                                "category": categorie, "is_active": actief,
                            })
                            st.rerun()
                        except (ValueError, LookupError) as e:
                            st.error(str(e))
                    if col2.form_submit_button("🗑️ Verwijderen"):
                        financien.verwijder_kostinstelling(kost["id"])
                        st.rerun()

        with st.form("nieuwe_kost"):
            st.write("**Nieuwe kostinstelling**")
            naam = st.text_input("Naam")
            omschrijving = st.text_input("Omschrijving")
            bedrag = st.number_input("Bedrag", min_value=0.0, step=1.0)
            categorie = st.selectbox("Categorie", options=list(financien.CATEGORIEEN))
            if st.form_submit_button("Toevoegen"):
                try:
                    financien.maak_kostinstelling_aan({
                        "name": naam, "description": omschrijving, "amount": bedrag, "category": categorie,
                    })
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))

    with tab_rapport:
        transacties = financien.laad_transacties()
        seizoen = st.selectbox("Seizoen", options=financien.beschikbare_seizoenen(transacties))
        maand = st.selectbox("Maand", options=[None] + list(range(1, 13)),
                             format_func=lambda m: "Hele seizoen" if m is None else f"{m:02d}")
        rapport = financien.maandrapport(transacties, database.laad_wedstrijden(), seizoen, maand)
        st.dataframe(rapport, hide_index=True, use_container_width=True)
        if not rapport.empty:
            st.download_button("📥 Download CSV", data=rapport.to_csv(index=False),
                               file_name=f"maandrapport_{seizoen.replace('/', '-')}.csv", mime="text/csv")

    with tab_sync:
        st.write("Controleer veld- en scheidsrechterkosten voor alle gespeelde wedstrijden.")
        if st.button("🔄 Synchroniseer alle wedstrijdkosten"):
            try:
                resultaat = kosten_sync.synchroniseer_alle_wedstrijdkosten(client)
                st.success(resultaat["message"])
            except kosten_sync.SyncFout as e:
                st.error(f"Fout bij synchroniseren: {e}")

        st.subheader("Mislukte verwerkingen")
        mislukt = kosten_sync.laad_mislukte_neveneffecten(client)
        if not mislukt:
            st.caption("Geen openstaande fouten.")
        for rij in mislukt:
            waarde = rij.get("setting_value") or {}
            col1, col2 = st.columns([4, 1])
            col1.write(f"Wedstrijd {waarde.get('matchId')} · {waarde.get('sideEffect')} · "
                       f"{(waarde.get('timestamp') or '')[:16]}: {waarde.get('error')}")
            if col2.button("Opnieuw", key=f"herhaal_{rij['id']}"):
                if kosten_sync.herhaal_neveneffect(client, rij["id"]):
                    st.success("Opnieuw uitgevoerd")
                    st.rerun()
                else:
                    st.error("Opnieuw uitvoeren mislukt")


def toon_schorsingen_beheer():
    regels = schorsingen.laad_schorsingsregels()
    st.subheader("Schorsingsregels")
    with st.form("schorsingsregels"):
        st.caption("Gele kaart regels als JSON: [{min_cards, max_cards, suspension_matches}, ...]")
        gele = st.text_area("Gele kaarten", value=json.dumps(regels["yellow_card_rules"], indent=2), height=200)
        col1, col2 = st.columns(2)
        standaard = col1.number_input("Rode kaart: speeldagen per kaart", min_value=0,
                                      value=int(regels["red_card_rules"]["default_suspension_matches"]))
        maximum = col2.number_input("Rode kaart: maximum", min_value=0,
                                    value=int(regels["red_card_rules"].get("max_suspension_matches") or 0))
        if st.form_submit_button("💾 Regels opslaan"):
            try:
                schorsingen.sla_schorsingsregels_op({
                    "yellow_card_rules": json.loads(gele),
                    "red_card_rules": {"default_suspension_matches": standaard, "max_suspension_matches": maximum},
                })
                st.success("Regels opgeslagen!")
            except (ValueError, KeyError, TypeError) as e:
                st.error(f"Ongeldige regels: {e}")

    st.subheader("Handmatige schorsingen")
    spelers = {s["player_id"]: s for s in database.laad_spelers()}
    for s in schorsingen.laad_handmatige_schorsingen():
        speler = spelers.get(s["player_id"])
        col1, col2, col3 = st.columns([4, 1, 1])
        col1.write(f"{'🟢' if s['is_active'] else '⚪'} **{spelernaam(speler) if speler else s['player_id']}**: "
                   f"{s['reden']} ({s['wedstrijden']} wed., tot {speelschema.formatteer_datum(s['end_date'])})")
        if col2.button("Aan/uit", key=f"toggle_schorsing_{s['id']}"):
            schorsingen.werk_handmatige_schorsing_bij(s["id"], {
                "reason": s["reden"], "matches": s["wedstrijden"], "start_date": s["start_date"],
                "end_date": s["end_date"], "notes": s["notities"], "type": "manual",
            }, not s["is_active"])
            st.rerun()
        if col3.button("🗑️", key=f"verwijder_schorsing_{s['id']}"):
            schorsingen.verwijder_handmatige_schorsing(s["id"])
            st.rerun()

    if spelers:
        with st.form("nieuwe_schorsing"):
            speler_id = st.selectbox("Speler", options=list(spelers), format_func=lambda pid: spelernaam(spelers[pid]))
            reden = st.text_input("Reden")
            aantal = st.number_input("Aantal wedstrijden", min_value=1, value=1)
            notities = st.text_area("Notities")
            if st.form_submit_button("Schorsing toevoegen"):
                try:
                    schorsingen.voeg_handmatige_schorsing_toe(speler_id, reden, int(aantal), notities or None,
                                                              huidige_gebruiker()["username"])
                    st.success("Schorsing toegevoegd!")
                    st.rerun()
                except ValueError as e:
                    st.error(str(e))


def toon_polls_beheer(gebruiker: dict):
    client = database.get_supabase_client()
    namen = teamnamen()
    gesloten = polls.sluit_verlopen_polls(client)
    if gesloten:
        st.info(f"{gesloten} verlopen poll(s) gesloten")

    col1, col2 = st.columns(2)
    with col1:
        st.subheader("Groepen genereren")
        maand = st.text_input("Maand (YYYY-MM)", value=date.today().strftime("%Y-%m"), key="poll_maand")
        if st.button("⚙️ Genereer poll groepen"):
            try:
                resultaat = polls.genereer_maandpolls(client, maand)
                st.success(resultaat["message"])
            except ValueError as e:
                st.error(str(e))
    with col2:
        st.subheader("Nieuwe poll")
        with st.form("nieuwe_poll"):
            poll_maand = st.text_input("Maand (YYYY-MM)")
            deadline = st.date_input("Deadline")
            if st.form_submit_button("Aanmaken"):
                try:
                    polls.maak_poll_aan(client, poll_maand, deadline.isoformat(), gebruiker.get("user_id"))
                    st.rerun()
                except (ValueError, polls.PollFout) as e:
                    st.error(str(e))

    st.divider()
    scheidsrechters = [g for g in database.laad_gebruikers() if g["role"] == database.ROL_SCHEIDSRECHTER]
    scheids_namen = {s["user_id"]: s["username"] for s in scheidsrechters}

    for poll in polls.laad_polls(client):
        maand = poll["poll_month"]
        with st.expander(f"Poll {maand} · {poll['status']}"):
            col_open, col_dicht = st.columns(2)
            if poll["status"] != "open" and col_open.button("Openen", key=f"open_{poll['id']}"):
                polls.open_poll(client, poll["id"])
                st.rerun()
            if poll["status"] == "open" and col_dicht.button("Sluiten", key=f"sluit_{poll['id']}"):
                polls.sluit_poll(client, poll["id"])
                st.rerun()

            overzicht = polls.beschikbaarheid_per_groep(client, maand)
            for groep_id, groep in polls.laad_pollgroepen(client, maand).items():
                beschikbaar = overzicht.get(groep_id, {}).get("beschikbaar", [])
                st.markdown(f"**{groep_id}** · beschikbaar: {', '.join(beschikbaar) or '-'}")
                for w in groep:
                    c1, c2, c3 = st.columns([3, 2, 1])
                    c1.write(wedstrijd_label(w, namen))
                    if w.get("referee"):
                        c2.write(f"👤 {w['referee']}")
                        continue
                    keuze = c2.selectbox("Scheidsrechter", options=list(scheids_namen), format_func=scheids_namen.get,
                                         key=f"kies_scheids_{w['match_id']}", label_visibility="collapsed")
                    if c3.button("Toewijzen", key=f"wijs_toe_{w['match_id']}") and keuze:
                        try:
                            polls.wijs_scheidsrechter_toe(client, w["match_id"], keuze, gebruiker.get("user_id"))
                            st.rerun()
                        except polls.PollFout as e:
                            st.error(str(e))

    st.subheader("Toewijzingen")
    for t in polls.laad_toewijzingen(client):
        c1, c2 = st.columns([5, 1])
        c1.write(f"Wedstrijd {t['match_id']} · {scheids_namen.get(t['referee_id'], t['referee_id'])} · {t['status']}")
        if c2.button("🗑️", key=f"verwijder_toewijzing_{t['id']}"):
            polls.verwijder_toewijzing(client, t["id"])
            st.rerun()


def toon_instellingen_beheer():
    st.subheader("Zichtbaarheid tabs")
    instellingen = {i["setting_name"]: i for i in database.laad_tab_zichtbaarheid()}
    for naam in database.STANDAARD_TABS:
        huidig = instellingen.get(naam, {"is_visible": True, "requires_login": False})
        col1, col2, col3 = st.columns([2, 1, 1])
        col1.write(TAB_TITELS.get(naam, naam))
        zichtbaar = col2.checkbox("Zichtbaar", value=bool(huidig.get("is_visible", True)), key=f"tab_zichtbaar_{naam}")
        login = col3.checkbox("Login vereist", value=bool(huidig.get("requires_login")), key=f"tab_login_{naam}")
        if zichtbaar != huidig.get("is_visible", True) or login != bool(huidig.get("requires_login")):
            database.zet_tab_zichtbaarheid(naam, zichtbaar, login)
            st.rerun()

    st.subheader("Vakantieperiodes")
    for v in database.laad_vakantieperiodes():
        col1, col2 = st.columns([5, 1])
        col1.write(f"**{v['name']}**: {speelschema.formatteer_datum(v['start_date'])} - "
                   f"{speelschema.formatteer_datum(v['end_date'])}")
        if col2.button("🗑️", key=f"verwijder_vakantie_{v['id']}"):
            database.verwijder_vakantieperiode(v["id"])
            st.rerun()
    with st.form("nieuwe_vakantie"):
        naam = st.text_input("Naam")
        col1, col2 = st.columns(2)
        start = col1.date_input("Van")
        eind = col2.date_input("Tot en met")
        if st.form_submit_button("Toevoegen"):
            try:
                database.maak_vakantieperiode_aan(naam, start.isoformat(), eind.isoformat())
                st.rerun()
            except ValueError as e:
                st.error(str(e))


def toon_meldingen_beheer():
    namen = teamnamen()
    for m in meldingen.laad_meldingen():
        col1, col2, col3 = st.columns([5, 1, 1])
        col1.write(f"{'🟢' if m['is_active'] else '⚪'} [{m['type']}] {m['message']} "
                   f"→ {', '.join(m['target_roles']) or '-'}")
        if m["categorie"] == meldingen.CATEGORIE and col2.button("Aan/uit", key=f"melding_toggle_{m['id']}"):
            meldingen.zet_melding_actief(m["id"], not m["is_active"])
            st.rerun()
        if col3.button("🗑️", key=f"melding_verwijder_{m['id']}"):
            meldingen.verwijder_melding(m["id"])
            st.rerun()

    with st.form("nieuwe_melding"):
        st.write("**Nieuwe melding**")
        bericht = st.text_area("Bericht")
        col1, col2 = st.columns(2)
        soort = col1.selectbox("Type", options=list(meldingen.MELDING_TYPES))
        rollen = col2.multiselect("Doelgroep", options=list(database.ROLLEN), default=[database.ROL_TEAMVERANTWOORDELIJKE])
        teams = st.multiselect("Alleen voor teams (leeg = alle teams)", options=list(namen), format_func=namen.get)
        start = col1.date_input("Vanaf", value=None)
        eind = col2.date_input("Tot en met", value=None)
        if st.form_submit_button("Toevoegen"):
            try:
                meldingen.maak_melding_aan({
                    "message": bericht, "type": soort, "target_roles": rollen,
                    "player_manager_mode": "specific_teams" if teams else "all",
                    "player_manager_teams": teams,
                    "start_date": start.isoformat() if start else None,
                    "end_date": eind.isoformat() if eind else None,
                })
                st.rerun()
            except ValueError as e:
                st.error(str(e))


def toon_gebruikers_beheer():
    namen = teamnamen()
    for g in database.laad_gebruikers():
        with st.expander(f"{g['username']} ({g['role']})"):
            with st.form(f"gebruiker_{g['user_id']}"):
                email = st.text_input("Email", value=g.get("email") or "")
                rol = st.selectbox("Rol", options=list(database.ROLLEN),
                                   index=list(database.ROLLEN).index(g["role"]) if g["role"] in database.ROLLEN else 0)
                team = st.selectbox("Team", options=[None] + list(namen),
                                    index=([None] + list(namen)).index(g.get("team_id")) if g.get("team_id") in namen else 0,
                                    format_func=lambda t: "-" if t is None else namen[t])
                col1, col2 = st.columns(2)
                if col1.form_submit_button("💾 Opslaan"):
                    try:
                        database.werk_gebruiker_bij(g["user_id"], {"email": email, "role": rol, "team_id": team})
                        st.rerun()
                    except ValueError as e:
                        st.error(str(e))
                if col2.form_submit_button("🗑️ Verwijderen"):
                    database.verwijder_gebruiker(g["user_id"])
                    st.rerun()

    st.subheader("➕ Nieuwe gebruiker")
    with st.form("nieuwe_gebruiker"):
        col1, col2 = st.columns(2)
        gebruikersnaam = col1.text_input("Gebruikersnaam")
        wachtwoord = col2.text_input("Tijdelijk wachtwoord", type="password")
        email = col1.text_input("Email")
        rol = col2.selectbox("Rol", options=list(database.ROLLEN))
        team = st.selectbox("Team (teamverantwoordelijke)", options=[None] + list(namen),
                            format_func=lambda t: "-" if t is None else namen[t])
        welkom = st.checkbox("Stuur welkomstmail", value=True)
        if st.form_submit_button("Aanmaken"):
            try:
                nieuw = database.maak_gebruiker_aan(gebruikersnaam, wachtwoord, rol, email, team)
            except ValueError as e:
                st.error(str(e))
                return
            if welkom and email:
                try:
                    emails.verstuur_welkomstmail(database.get_supabase_client(), email, nieuw["user_id"], gebruikersnaam)
                    st.success("Gebruiker aangemaakt en welkomstmail verstuurd")
                except emails.EmailFout as e:
                    st.warning(f"Gebruiker aangemaakt, maar welkomstmail mislukt: {e}")
            else:
                st.success("Gebruiker aangemaakt")


def toon_blog_beheer():
    for bericht in database.laad_blogberichten():
        col1, col2 = st.columns([5, 1])
        col1.write(f"**{bericht['title']}** · {speelschema.formatteer_datum(bericht.get('date'))}")
        if col2.button("🗑️", key=f"blog_verwijder_{bericht['id']}"):
            database.verwijder_blogbericht(bericht["id"])
            st.rerun()

    with st.form("nieuw_bericht"):
        titel = st.text_input("Titel")
        inhoud = st.text_area("Inhoud (markdown)", height=200)
        tags = st.text_input("Tags (komma gescheiden)")
        if st.form_submit_button("Publiceren"):
            try:
                database.maak_blogbericht_aan(titel, inhoud, [t.strip() for t in tags.split(",") if t.strip()])
                st.rerun()
            except ValueError as e:
                st.error(str(e))


def toon_beheerder_view(gebruiker: dict):
    """Toon het beheerderspaneel."""
    st.header("🔧 Beheer")

    wedstrijden = database.laad_wedstrijden()
    nu = datetime.now().strftime("%Y-%m-%d")
    te_spelen = [w for w in wedstrijden if (w.get("match_date") or "") >= nu]
    niet_ingediend = [w for w in wedstrijden if (w.get("match_date") or "") < nu and not w.get("is_submitted")]
    col1, col2, col3 = st.columns(3)
    col1.metric("Wedstrijden te spelen", len(te_spelen))
    col2.metric("Formulieren niet ingediend", len(niet_ingediend))
    col3.metric("Teams", len(database.laad_teams()))

    tabs = st.tabs([
        "👥 Teams", "🏃 Spelers", "📅 Wedstrijden", "💶 Financiën", "🚫 Schorsingen",
        "🗳️ Polls", "⚙️ Instellingen", "📣 Meldingen", "🔑 Gebruikers", "📰 Blog",
    ])
    with tabs[0]:
        toon_teams_beheer()
    with tabs[1]:
        toon_spelers_beheer()
    with tabs[2]:
        toon_wedstrijden_beheer(gebruiker)
    with tabs[3]:
        toon_financien_beheer()
    with tabs[4]:
        toon_schorsingen_beheer()
    with tabs[5]:
        toon_polls_beheer(gebruiker)
    with tabs[6]:
        toon_instellingen_beheer()
    with tabs[7]:
        toon_meldingen_beheer()
    with tabs[8]:
        toon_gebruikers_beheer()
    with tabs[9]:
        toon_blog_beheer()


# ============================================================
# MAIN
# ============================================================

def toon_publieke_tabs(gebruiker: dict | None):
    namen = database.zichtbare_tabs(database.laad_tab_zichtbaarheid(), gebruiker)
    namen = [n for n in namen if n in TAB_TITELS]
    if not namen:
        st.info("Er zijn momenteel geen publieke pagina's beschikbaar.")
        return

    weergave = {
        "algemeen": lambda: toon_algemeen(gebruiker),
        "competitie": toon_competitie,
        "playoff": lambda: toon_beker("playoff"),
        "beker": lambda: toon_beker("beker"),
        "schorsingen": toon_schorsingen,
        "reglement": toon_reglement,
    }
    for naam, tab in zip(namen, st.tabs([TAB_TITELS[n] for n in namen])):
        with tab:
            weergave[naam]()


def main():
    st.set_page_config(
        page_title="Harelbeekse Minivoetbal",
        page_icon="⚽",
        layout="wide"
    )
    inject_custom_css()

    try:
        database.get_supabase_client()
    except database.ConfiguratieFout as e:
        st.error(str(e))
        st.stop()

    query_params = st.query_params
    if query_params.get("pagina") == "reset" and "token" in query_params:
        toon_reset_pagina(query_params["token"])
        return

    st.title("⚽ Harelbeekse Minivoetbal")
    toon_login()
    gebruiker = huidige_gebruiker()

    if database.heeft_rol(gebruiker, database.ROL_ADMIN):
        toon_beheerder_view(gebruiker)
        st.divider()
    elif database.heeft_rol(gebruiker, database.ROL_TEAMVERANTWOORDELIJKE):
        toon_teamverantwoordelijke_view(gebruiker)
        st.divider()
    elif database.heeft_rol(gebruiker, database.ROL_SCHEIDSRECHTER):
        toon_scheidsrechter_view(gebruiker)
        st.divider()

    toon_publieke_tabs(gebruiker)


if __name__ == "__main__":
    main()
