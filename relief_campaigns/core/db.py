"""SQLite store for campaigns, platforms, candidate profiles, and auto-responses.

Records are kept as pydantic JSON alongside the columns we filter on.
"""

import sqlite3
from pathlib import Path

from relief_campaigns.core.schemas import (
    AutoResponse,
    Campaign,
    Platform,
    ResponseProfile,
    ResponseStatus,
)

_CAMPAIGNS_TABLE = """
CREATE TABLE IF NOT EXISTS campaigns (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'draft',
    created_at  TEXT NOT NULL,
    data        TEXT NOT NULL
);
"""

_PLATFORMS_TABLE = """
CREATE TABLE IF NOT EXISTS platforms (
    id          TEXT PRIMARY KEY,
    position    INTEGER NOT NULL,
    data        TEXT NOT NULL
);
"""

_PROFILES_TABLE = """
CREATE TABLE IF NOT EXISTS profiles (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    email       TEXT NOT NULL DEFAULT '',
    data        TEXT NOT NULL
);
"""

_AUTO_RESPONSES_TABLE = """
CREATE TABLE IF NOT EXISTS auto_responses (
    id          TEXT PRIMARY KEY,
    campaign_id TEXT NOT NULL,
    profile_id  TEXT NOT NULL,
    status      TEXT NOT NULL DEFAULT 'pending',
    created_at  TEXT NOT NULL,
    data        TEXT NOT NULL
);
"""

_AUTO_RESPONSES_INDEX = """
CREATE INDEX IF NOT EXISTS ix_auto_responses_campaign ON auto_responses (campaign_id);
"""


def init_db(path: str | Path) -> sqlite3.Connection:
    """Create the database and tables, returning a connection."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(path))
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute(_CAMPAIGNS_TABLE)
    conn.execute(_PLATFORMS_TABLE)
    conn.execute(_PROFILES_TABLE)
    conn.execute(_AUTO_RESPONSES_TABLE)
    conn.execute(_AUTO_RESPONSES_INDEX)
    conn.commit()
    return conn


# ---------------------------------------------------------------------------
# Campaigns
# ---------------------------------------------------------------------------


def save_campaign(conn: sqlite3.Connection, campaign: Campaign) -> Campaign:
    """Insert a campaign, or replace the stored one with the same id."""
    conn.execute(
        """
        INSERT INTO campaigns (id, name, status, created_at, data)
        VALUES (?, ?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            status = excluded.status,
            data = excluded.data
        """,
        (
            campaign.id,
            campaign.name,
            campaign.status,
            campaign.created_at.isoformat(),
            campaign.model_dump_json(),
        ),
    )
    conn.commit()
    return campaign


def get_campaign(conn: sqlite3.Connection, campaign_id: str) -> Campaign | None:
    row = conn.execute("SELECT data FROM campaigns WHERE id = ?", (campaign_id,)).fetchone()
    if row is None:
        return None
    return Campaign.model_validate_json(row["data"])


def list_campaigns(conn: sqlite3.Connection) -> list[Campaign]:
    """Return all campaigns, oldest first."""
    rows = conn.execute("SELECT data FROM campaigns ORDER BY created_at, rowid").fetchall()
    return [Campaign.model_validate_json(r["data"]) for r in rows]


def delete_campaign(conn: sqlite3.Connection, campaign_id: str) -> bool:
    """Delete a campaign. Returns True if a row was removed."""
    cursor = conn.execute("DELETE FROM campaigns WHERE id = ?", (campaign_id,))
    conn.commit()
    return cursor.rowcount > 0


# ---------------------------------------------------------------------------
# Platforms
# ---------------------------------------------------------------------------


def get_platforms(
    conn: sqlite3.Connection,
    defaults: list[Platform] | None = None,
) -> list[Platform]:
    """Return stored platforms, seeding ``defaults`` on first read."""
    rows = conn.execute("SELECT data FROM platforms ORDER BY position").fetchall()
    if not rows and defaults:
        for platform in defaults:
            update_platform(conn, platform)
        rows = conn.execute("SELECT data FROM platforms ORDER BY position").fetchall()
    return [Platform.model_validate_json(r["data"]) for r in rows]


def update_platform(conn: sqlite3.Connection, platform: Platform) -> Platform:
    """Insert or replace a platform, keeping its original position."""
    conn.execute(
        """
        INSERT INTO platforms (id, position, data)
        VALUES (?, (SELECT COUNT(*) FROM platforms), ?)
        ON CONFLICT(id) DO UPDATE SET data = excluded.data
        """,
        (platform.id, platform.model_dump_json()),
    )
    conn.commit()
    return platform


# ---------------------------------------------------------------------------
# Profiles and auto-responses
# ---------------------------------------------------------------------------


def save_profile(conn: sqlite3.Connection, profile: ResponseProfile) -> ResponseProfile:
    conn.execute(
        """
        INSERT INTO profiles (id, name, email, data)
        VALUES (?, ?, ?, ?)
        ON CONFLICT(id) DO UPDATE SET
            name = excluded.name,
            email = excluded.email,
            data = excluded.data
        """,
        (profile.id, profile.name, profile.email, profile.model_dump_json()),
    )
    conn.commit()
    return profile


def list_profiles(
    conn: sqlite3.Connection,
    campaign_id: str | None = None,
) -> list[ResponseProfile]:
    """Return saved profiles.

    With ``campaign_id``, return the profiles that received an auto-response
    for that campaign instead, in response order.
    """
    if campaign_id is None:
        rows = conn.execute("SELECT data FROM profiles ORDER BY rowid").fetchall()
        return [ResponseProfile.model_validate_json(r["data"]) for r in rows]
    return [r.respondent_profile for r in list_auto_responses(conn, campaign_id)]


def save_auto_response(conn: sqlite3.Connection, response: AutoResponse) -> AutoResponse:
    conn.execute(
        """
        INSERT INTO auto_responses (id, campaign_id, profile_id, status, created_at, data)
        VALUES (?, ?, ?, ?, ?, ?)
        """,
        (
            response.id,
            response.campaign_id,
            response.respondent_profile.id,
            response.status,
            response.timestamp.isoformat(),
            response.model_dump_json(),
        ),
    )
    conn.commit()
    return response


def list_auto_responses(
    conn: sqlite3.Connection,
    campaign_id: str | None = None,
) -> list[AutoResponse]:
    if campaign_id is None:
        rows = conn.execute("SELECT data FROM auto_responses ORDER BY rowid").fetchall()
    else:
        rows = conn.execute(
            "SELECT data FROM auto_responses WHERE campaign_id = ? ORDER BY rowid",
            (campaign_id,),
        ).fetchall()
    return [AutoResponse.model_validate_json(r["data"]) for r in rows]


def update_auto_response_status(
    conn: sqlite3.Connection,
    response_id: str,
    status: ResponseStatus,
) -> AutoResponse | None:
    """Move an auto-response to a new status. Returns None for unknown ids."""
    row = conn.execute(
        "SELECT data FROM auto_responses WHERE id = ?", (response_id,),
    ).fetchone()
    if row is None:
        return None
    updated = AutoResponse.model_validate_json(row["data"]).model_copy(update={"status": status})
    conn.execute(
        "UPDATE auto_responses SET status = ?, data = ? WHERE id = ?",
        (status, updated.model_dump_json(), response_id),
    )
    conn.commit()
    return updated
