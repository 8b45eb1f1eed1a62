"""
E-mails via de Resend API
- wachtwoord reset (link 1 uur geldig)
- welkomstmail voor nieuwe gebruikers (link 7 dagen geldig)
"""

import html
import secrets
from datetime import datetime, timedelta, timezone
from urllib.parse import quote

import requests

import database
from logging_config import get_logger

logger = get_logger(__name__)

RESEND_URL = "https://api.resend.com/emails"
STANDAARD_AFZENDER = "Harelbeekse Minivoetbal <noreply@resend.dev>"
NEUTRAAL_ANTWOORD = "Als dit email adres bestaat, zal je een reset link ontvangen."
GEEN_EMAIL_ANTWOORD = (
    "Je account heeft geen email adres gekoppeld. "
    "De beheerder is op de hoogte gesteld van je wachtwoord reset verzoek."
)
RESET_GELDIGHEID = timedelta(hours=1)
WELKOM_GELDIGHEID = timedelta(days=7)


class EmailFout(Exception):
    """Versturen van een e-mail of aanmaken van een token mislukt."""


def verstuur_email(aan: list, onderwerp: str, inhoud_html: str) -> dict:
    """Verstuur een HTML e-mail; EmailFout als de API weigert of onbereikbaar is"""
    api_key = database.lees_secret("RESEND_API_KEY")
    if not api_key:
        raise EmailFout("RESEND_API_KEY is niet geconfigureerd")
    afzender = database.lees_secret("EMAIL_FROM", STANDAARD_AFZENDER)
    try:
        response = requests.post(
            RESEND_URL,
            headers={"Authorization": f"Bearer {api_key}", "Content-Type": "application/json"},
            json={"from": afzender, "to": aan, "subject": onderwerp, "html": inhoud_html},
            timeout=10,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"E-mail '{onderwerp}' naar {aan} mislukt: {e}")
        raise EmailFout(f"E-mail versturen mislukt: {e}") from e
    logger.info(f"E-mail '{onderwerp}' verstuurd naar {aan}")
    return response.json()


def _maak_token(client, user_id: int, email: str, geldigheid: timedelta) -> str:
    token = secrets.token_urlsafe(32)
    verloopt = datetime.now(timezone.utc) + geldigheid
    try:
        client.table("password_reset_tokens").insert({
            "user_id": user_id,
            "token": token,
            "expires_at": verloopt.isoformat(),
            "requested_email": email,
        }).execute()
    except Exception as e:
        logger.error(f"Reset token opslaan mislukt voor gebruiker {user_id}: {e}")
        raise EmailFout("Er is een fout opgetreden bij het aanmaken van de reset link") from e
    return token


# ============================================================
# WACHTWOORD RESET
# ============================================================

def _zoek_gebruiker(client, email_of_naam: str) -> dict | None:
    rijen = client.table("users").select("user_id, username, email").eq("email", email_of_naam).limit(1).execute().data
    if rijen:
        return rijen[0]
    rijen = client.table("users").select("user_id, username, email").eq("username", email_of_naam).limit(1).execute().data
    return rijen[0] if rijen else None


def _meld_aan_admin(gebruiker: dict, gevraagd: str) -> None:
    admin_email = database.lees_secret("ADMIN_EMAIL")
    if not admin_email:
        logger.warning(f"Geen ADMIN_EMAIL ingesteld; reset verzoek van {gebruiker['username']} niet doorgestuurd")
        return
    tijdstip = datetime.now().strftime("%d/%m/%Y %H:%M")
    inhoud = f"""
        <h2>Wachtwoord Reset Verzoek</h2>
        <p>Een gebruiker zonder gekoppeld email adres heeft een wachtwoord reset aangevraagd.</p>
        <ul>
          <li><strong>Gebruikersnaam:</strong> {html.escape(gebruiker['username'])}</li>
          <li><strong>User ID:</strong> {gebruiker['user_id']}</li>
          <li><strong>Aangevraagd voor:</strong> {html.escape(gevraagd)}</li>
          <li><strong>Tijdstip:</strong> {tijdstip}</li>
        </ul>
        <p>Voeg een email adres toe aan het account of reset het wachtwoord handmatig.</p>
    """
    try:
        verstuur_email([admin_email], "Wachtwoord Reset Verzoek - Gebruiker zonder Email", inhoud)
    except EmailFout:
        # de gebruiker krijgt hoe dan ook hetzelfde antwoord
        logger.error(f"Admin melding voor {gebruiker['username']} niet verstuurd", exc_info=True)


def verstuur_wachtwoord_reset(client, email: str, origin: str | None = None) -> str:
    """
    Start een wachtwoord reset en geef de boodschap voor de gebruiker terug.

    Een onbekend adres krijgt dezelfde neutrale boodschap als een bekend adres.
    """
    email = (email or "").strip()
    if not email:
        raise ValueError("Email is verplicht")

    gebruiker = _zoek_gebruiker(client, email)
    if not gebruiker:
        logger.info("Reset aangevraagd voor onbekend adres")
        return NEUTRAAL_ANTWOORD

    if not (gebruiker.get("email") or "").strip():
        _meld_aan_admin(gebruiker, email)
        return GEEN_EMAIL_ANTWOORD

    token = _maak_token(client, gebruiker["user_id"], gebruiker["email"], RESET_GELDIGHEID)
    basis = database.lees_secret("APP_BASE_URL") or origin or "http://localhost:8501"
    link = f"{basis.rstrip('/')}/?pagina=reset&token={token}&email={quote(gebruiker['email'])}"
    inhoud = f"""
        <h2>Wachtwoord Reset</h2>
        <p>Hallo {html.escape(gebruiker.get('username') or 'gebruiker')},</p>
        <p>Je hebt een wachtwoord reset aangevraagd. Klik op de link om een nieuw wachtwoord te kiezen:</p>
        <p><a href="{link}">Wachtwoord Resetten</a></p>
        <p>Deze link is 1 uur geldig en kan maar één keer gebruikt worden.
        Als je dit niet hebt aangevraagd, kun je deze email negeren.</p>
    """
    verstuur_email([gebruiker["email"]], "Wachtwoord Reset", inhoud)
    return NEUTRAAL_ANTWOORD


# ============================================================
# WELKOMSTMAIL
# ============================================================

def verstuur_welkomstmail(client, email: str, user_id: int, gebruikersnaam: str | None = None,
                          login_url: str | None = None, origin: str | None = None) -> None:
    """Welkomstmail met link om een wachtwoord in te stellen (7 dagen geldig)"""
    if not email:
        raise ValueError("Email is verplicht")
    if not user_id:
        raise ValueError("User ID is verplicht")

    basis = database.lees_secret("APP_BASE_URL") or login_url or origin or "http://localhost:8501"
    token = _maak_token(client, user_id, email, WELKOM_GELDIGHEID)
    link = f"{basis.rstrip('/')}/?pagina=reset&token={token}"
    naam = html.escape(gebruikersnaam or "gebruiker")
    inhoud = f"""
        <h2>Welkom bij Harelbeekse Minivoetbal</h2>
        <p>Hallo {naam},</p>
        <p>Je account werd aangemaakt. <strong>Gebruikersnaam:</strong> {naam}</p>
        <p>Klik op de link om je wachtwoord in te stellen en je account te activeren:</p>
        <p><a href="{link}">Wachtwoord instellen</a></p>
        <p>Deze link is 7 dagen geldig.</p>
    """
    verstuur_email([email], "Welkom bij Harelbeekse Minivoetbal - Activeer je account", inhoud)


# ============================================================
# TOKEN GEBRUIKEN
# ============================================================

def _parse_tijd(waarde: str) -> datetime:
    tijd = datetime.fromisoformat(str(waarde).replace("Z", "+00:00"))
    return tijd if tijd.tzinfo else tijd.replace(tzinfo=timezone.utc)


def reset_wachtwoord(client, token: str, nieuw_wachtwoord: str, nu: datetime | None = None) -> None:
    """Stel een nieuw wachtwoord in met een geldig, ongebruikt token"""
    rijen = client.table("password_reset_tokens").select("*").eq("token", token).limit(1).execute().data
    if not rijen:
        raise ValueError("Ongeldige of verlopen reset link")
    rij = rijen[0]
    nu = nu or datetime.now(timezone.utc)
    if rij.get("used_at"):
        raise ValueError("Deze reset link is al gebruikt")
    if _parse_tijd(rij["expires_at"]) < nu:
        raise ValueError("Ongeldige of verlopen reset link")

    database.wijzig_wachtwoord(rij["user_id"], nieuw_wachtwoord, client=client)
    client.table("password_reset_tokens").update({"used_at": nu.isoformat()}).eq("token", token).execute()
    logger.info(f"Wachtwoord gereset voor gebruiker {rij['user_id']}")
