"""
PostgreSQL schema for the durable triage store
"""

TABLE_NAME = "triage_records"

SCHEMA_QUERIES = [
    f"""
    CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
        cve_id          TEXT PRIMARY KEY,
        path            TEXT NOT NULL DEFAULT '',
        blob_hash       TEXT NOT NULL DEFAULT '',
        commit_hash     TEXT NOT NULL DEFAULT '',
        cve_state       TEXT NOT NULL DEFAULT '',
        triage_state    TEXT NOT NULL DEFAULT 'unclassified',
        triage_reason   JSONB,
        version         BIGINT NOT NULL DEFAULT 1,
        created_at      TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP,
        updated_at      TIMESTAMPTZ NOT NULL DEFAULT CURRENT_TIMESTAMP
    )
    """,
    f"""
    CREATE INDEX IF NOT EXISTS idx_{TABLE_NAME}_triage_state
        ON {TABLE_NAME} (triage_state)
    """,
]

SELECT_COLUMNS = (
    "cve_id, path, blob_hash, commit_hash, cve_state, "
    "triage_state, triage_reason, version, updated_at"
)

SELECT_ONE = f"SELECT {SELECT_COLUMNS} FROM {TABLE_NAME} WHERE cve_id = $1"

# COLLATE "C" keeps the order identical to Python string ordering
SELECT_ALL = f'SELECT {SELECT_COLUMNS} FROM {TABLE_NAME} ORDER BY cve_id COLLATE "C"'

COUNT_ALL = f"SELECT COUNT(*) FROM {TABLE_NAME}"

INSERT_RECORD = f"""
    INSERT INTO {TABLE_NAME} (
        cve_id, path, blob_hash, commit_hash, cve_state,
        triage_state, triage_reason
    ) VALUES ($1, $2, $3, $4, $5, $6, $7::jsonb)
    ON CONFLICT (cve_id) DO NOTHING
    RETURNING updated_at
"""

UPDATE_RECORD = f"""
    UPDATE {TABLE_NAME} SET
        path = $2,
        blob_hash = $3,
        commit_hash = $4,
        cve_state = $5,
        triage_state = $6,
        triage_reason = $7::jsonb,
        version = version + 1,
        updated_at = CURRENT_TIMESTAMP
    WHERE cve_id = $1 AND version = $8
    RETURNING updated_at
"""
