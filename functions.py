"""
Request handlers (FastAPI)
Harelbeekse Minivoetbal - competitieportaal

Dunne HTTP laag rond kosten_sync, polls en emails zodat de UI en externe
taken dezelfde logica aanroepen. Starten met:

    uvicorn functions:app --port 8000
"""

import os

from fastapi import Depends, FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

import database
import emails
import kosten_sync
import polls
from logging_config import get_logger, setup_logging

setup_logging()
logger = get_logger(__name__)

app = FastAPI(title="Harelbeekse Minivoetbal functies", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=[o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()],
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["authorization", "x-client-info", "apikey", "content-type"],
)


def get_client():
    """Supabase client met service role key; in tests overschreven via dependency_overrides."""
    return database.get_service_client()


def _fout(status: int, **inhoud) -> JSONResponse:
    return JSONResponse(status_code=status, content=inhoud)


# ============================================================
# REQUEST BODIES
# ============================================================

class SpelerKaart(BaseModel):
    playerId: int | None = None
    cardType: str | None = None


class KaartboetesVerzoek(BaseModel):
    matchId: int
    matchDateISO: str | None = None
    homeTeamId: int
    awayTeamId: int
    homePlayers: list[SpelerKaart] = Field(default_factory=list)
    awayPlayers: list[SpelerKaart] = Field(default_factory=list)


class WedstrijdkostenVerzoek(BaseModel):
    matchId: int
    matchDateISO: str | None = None
    homeTeamId: int
    awayTeamId: int
    isSubmitted: bool = False
    referee: str | None = None


class PollVerzoek(BaseModel):
    month: str | None = None


class ResetVerzoek(BaseModel):
    email: str | None = None


class WelkomVerzoek(BaseModel):
    email: str | None = None
    userId: int | None = None
    username: str | None = None
    loginUrl: str | None = None


# ============================================================
# KOSTEN
# ============================================================

@app.post("/sync-card-penalties")
def sync_card_penalties(verzoek: KaartboetesVerzoek, client=Depends(get_client)):
    try:
        aantallen = kosten_sync.synchroniseer_kaartboetes(
            client,
            verzoek.matchId,
            verzoek.homeTeamId,
            verzoek.awayTeamId,
            [s.model_dump() for s in verzoek.homePlayers],
            [s.model_dump() for s in verzoek.awayPlayers],
            verzoek.matchDateISO,
        )
    except kosten_sync.SyncFout as e:
        return _fout(500, success=False, message=f"Fout bij synchroniseren kaartboetes: {e}")
    return {"success": True, "message": "Kaartboetes gesynchroniseerd", "processedCounts": aantallen}


@app.post("/sync-match-costs")
def sync_match_costs(verzoek: WedstrijdkostenVerzoek, client=Depends(get_client)):
    try:
        resultaat = kosten_sync.synchroniseer_wedstrijdkosten(
            client,
            verzoek.matchId,
            verzoek.homeTeamId,
            verzoek.awayTeamId,
            verzoek.isSubmitted,
            verzoek.matchDateISO,
            verzoek.referee,
        )
    except kosten_sync.SyncFout as e:
        return _fout(500, success=False, message=f"Fout bij synchroniseren wedstrijdkosten: {e}")

    if resultaat["skipped"]:
        return {
            "success": True,
            "message": "Wedstrijd niet ingediend, kosten niet gesynchroniseerd",
            "skipped": True,
        }
    return {
        "success": True,
        "message": "Wedstrijdkosten gesynchroniseerd",
        "processedCosts": resultaat["processed"],
        "referee": resultaat["referee"],
    }


@app.post("/sync-all-match-costs")
def sync_all_match_costs(client=Depends(get_client)):
    try:
        resultaat = kosten_sync.synchroniseer_alle_wedstrijdkosten(client)
    except kosten_sync.SyncFout as e:
        return _fout(500, success=False, message=f"Fout bij synchroniseren wedstrijdkosten: {e}")
    return {
        "success": True,
        "message": resultaat["message"],
        "syncedCount": resultaat["synced"],
        "updatedCount": resultaat["updated"],
        "skippedCount": resultaat["skipped"],
    }


# ============================================================
# POLLS
# ============================================================

@app.post("/generate-monthly-polls")
def generate_monthly_polls(verzoek: PollVerzoek, client=Depends(get_client)):
    if not verzoek.month:
        return _fout(400, success=False, error="Maand is verplicht (YYYY-MM)")
    try:
        resultaat = polls.genereer_maandpolls(client, verzoek.month)
    except ValueError as e:
        return _fout(400, success=False, error=str(e))
    except Exception as e:
        logger.error(f"Polls genereren voor {verzoek.month} mislukt", exc_info=True)
        return _fout(500, success=False, error=f"Fout bij genereren polls: {e}")
    return {"success": True, **resultaat}


# ============================================================
# E-MAILS
# ============================================================

@app.post("/send-password-reset")
def send_password_reset(verzoek: ResetVerzoek, request: Request, client=Depends(get_client)):
    if not (verzoek.email or "").strip():
        return _fout(400, error="Email is verplicht")
    try:
        boodschap = emails.verstuur_wachtwoord_reset(client, verzoek.email, request.headers.get("origin"))
    except emails.EmailFout as e:
        return _fout(500, error=str(e))
    return {"message": boodschap}


@app.post("/send-welcome-email")
def send_welcome_email(verzoek: WelkomVerzoek, request: Request, client=Depends(get_client)):
    if not verzoek.email or not verzoek.userId:
        return _fout(400, error="Email en userId zijn verplicht")
    try:
        emails.verstuur_welkomstmail(
            client,
            verzoek.email,
            verzoek.userId,
            verzoek.username,
            verzoek.loginUrl,
            request.headers.get("origin"),
        )
    except emails.EmailFout as e:
        return _fout(500, error=str(e))
    return {"success": True}


@app.get("/health")
def health():
    return {"status": "ok", "service": "functions"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("functions:app", host="0.0.0.0", port=int(os.environ.get("PORT", "8000")))
