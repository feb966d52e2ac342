"""
Migration: Create crash triage tables.

Creates the three tables used by the triage engine:
1. signatures - externally authored catalog, catalog order = id order
2. crash_records - one row per ingested report
3. release_statuses - shipping state per fix version (version is unique)

Safe to re-run: existing tables are left in place; crash_records text
columns are widened to TEXT.
"""
from sqlalchemy import create_engine, text
import os

# Use same DB URL pattern as main app
DATABASE_URL = os.getenv(
    "DATABASE_URL",
    f"postgresql://{os.getenv('USER', 'postgres')}@localhost:5432/crash_triage"
)


def table_exists(conn, table_name: str) -> bool:
    """Check if a table exists in the database."""
    result = conn.execute(text("""
        SELECT EXISTS (
            SELECT FROM information_schema.tables
            WHERE table_name = :table_name
        )
    """), {"table_name": table_name})
    return result.fetchone()[0]


def run_migration():
    """Create all crash triage tables."""
    engine = create_engine(DATABASE_URL)

    with engine.connect() as conn:
        # =================================================================
        # TABLE 1: signatures
        # =================================================================
        if table_exists(conn, "signatures"):
            print("signatures table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE signatures (
                    id SERIAL PRIMARY KEY,
                    pattern TEXT NOT NULL,
                    fix_version VARCHAR(255) DEFAULT '',
                    affected_version_pattern VARCHAR(255) NOT NULL DEFAULT '',
                    occurrence_count INTEGER NOT NULL DEFAULT 0 CHECK (occurrence_count >= 0),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))
            print("Created signatures table")

        # =================================================================
        # TABLE 2: crash_records
        # =================================================================
        if table_exists(conn, "crash_records"):
            print("crash_records table already exists")
            # Submitted fields are bounded only by the parser cap
            for column in ("contact", "app_version", "start_memory", "end_memory"):
                conn.execute(text(f"ALTER TABLE crash_records ALTER COLUMN {column} TYPE TEXT"))
            print("Widened crash_records text columns")
        else:
            conn.execute(text("""
                CREATE TABLE crash_records (
                    id SERIAL PRIMARY KEY,
                    contact TEXT DEFAULT '',
                    app_version TEXT NOT NULL,
                    crash_app_version VARCHAR(255) DEFAULT '',
                    start_memory TEXT DEFAULT '',
                    end_memory TEXT DEFAULT '',
                    log_text TEXT NOT NULL,
                    resolved BOOLEAN NOT NULL DEFAULT FALSE,
                    signature_id INTEGER REFERENCES signatures(id),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
                    resolved_at TIMESTAMP,
                    CHECK (resolved = (signature_id IS NOT NULL))
                )
            """))
            conn.execute(text("""
                CREATE INDEX idx_crash_records_unresolved ON crash_records(resolved, app_version)
            """))
            conn.execute(text("""
                CREATE INDEX idx_crash_records_signature ON crash_records(signature_id)
            """))
            print("Created crash_records table")

        # =================================================================
        # TABLE 3: release_statuses
        # =================================================================
        if table_exists(conn, "release_statuses"):
            print("release_statuses table already exists")
        else:
            conn.execute(text("""
                CREATE TABLE release_statuses (
                    id SERIAL PRIMARY KEY,
                    version VARCHAR(255) NOT NULL UNIQUE,
                    status INTEGER NOT NULL DEFAULT 0,
                    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """))
            print("Created release_statuses table")

        conn.commit()
        print("\nCrash triage migration completed successfully!")


if __name__ == "__main__":
    run_migration()
