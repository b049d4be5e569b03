"""
sql_queries.py
--------------

Centralized DuckDB statements for the goal / activity / user_stats views.

All statements are constants imported by `store.py` (writes) and
`vouchind.api.read` (queries). Amount columns are HUGEINT: uint256 on-chain,
but real stakes stay far below 2**127.

Primary keys carry the unique indexes. Listing filters (goal creator,
activity user / timestamp / type) carry plain indexes. Indexed columns are
never updated: goal updates touch lifecycle and creation fields only, and
activity rows are never updated at all.
"""

# =====================================================================
# SCHEMA
# =====================================================================

CREATE_GOAL_TABLE = """
CREATE TABLE IF NOT EXISTS goal (
  id            HUGEINT PRIMARY KEY,
  creator       VARCHAR NOT NULL,
  stake_amount  HUGEINT NOT NULL,
  deadline      BIGINT  NOT NULL,
  description   VARCHAR NOT NULL,
  is_solo       BOOLEAN NOT NULL,
  resolved      BOOLEAN NOT NULL,
  successful    BOOLEAN NOT NULL,
  created_at    BIGINT  NOT NULL,
  resolved_at   BIGINT
);
"""

CREATE_ACTIVITY_TABLE = """
CREATE TABLE IF NOT EXISTS activity (
  id            VARCHAR PRIMARY KEY,   -- "<tx_hash>-<log_index>"
  type          VARCHAR NOT NULL,
  "user"        VARCHAR NOT NULL,
  goal_id       HUGEINT,
  goal_title    VARCHAR,               -- description as of the event
  stake_amount  HUGEINT,
  deadline      BIGINT,
  is_solo       BOOLEAN,
  successful    BOOLEAN,
  is_valid      BOOLEAN,
  claim_amount  HUGEINT,
  "timestamp"   BIGINT  NOT NULL,
  block_number  BIGINT  NOT NULL
);
"""

CREATE_USER_STATS_TABLE = """
CREATE TABLE IF NOT EXISTS user_stats (
  id              VARCHAR PRIMARY KEY,  -- lowercased address
  goals_created   INTEGER NOT NULL DEFAULT 0,
  goals_completed INTEGER NOT NULL DEFAULT 0,
  goals_failed    INTEGER NOT NULL DEFAULT 0,
  total_staked    HUGEINT NOT NULL DEFAULT 0,
  total_saved     HUGEINT NOT NULL DEFAULT 0,
  total_lost      HUGEINT NOT NULL DEFAULT 0,
  current_streak  INTEGER NOT NULL DEFAULT 0,
  longest_streak  INTEGER NOT NULL DEFAULT 0,
  last_goal_at    BIGINT
);
"""

CREATE_SYNC_STATE_TABLE = """
CREATE TABLE IF NOT EXISTS sync_state (
  id            INTEGER PRIMARY KEY,
  block_number  BIGINT NOT NULL,
  log_index     BIGINT NOT NULL,
  updated_at    DOUBLE NOT NULL
);
"""

CREATE_INDEXES = (
    "CREATE INDEX IF NOT EXISTS goal_creator_idx ON goal (creator);",
    'CREATE INDEX IF NOT EXISTS activity_user_idx ON activity ("user");',
    'CREATE INDEX IF NOT EXISTS activity_timestamp_idx ON activity ("timestamp");',
    "CREATE INDEX IF NOT EXISTS activity_type_idx ON activity (type);",
)

SCHEMA = (
    CREATE_GOAL_TABLE,
    CREATE_ACTIVITY_TABLE,
    CREATE_USER_STATS_TABLE,
    CREATE_SYNC_STATE_TABLE,
    *CREATE_INDEXES,
)


# =====================================================================
# COLUMN LISTS (row <-> dataclass order)
# =====================================================================

GOAL_COLUMNS = (
    "id, creator, stake_amount, deadline, description, is_solo, "
    "resolved, successful, created_at, resolved_at"
)

ACTIVITY_COLUMNS = (
    'id, type, "user", goal_id, goal_title, stake_amount, deadline, '
    'is_solo, successful, is_valid, claim_amount, "timestamp", block_number'
)

USER_STATS_COLUMNS = (
    "id, goals_created, goals_completed, goals_failed, total_staked, "
    "total_saved, total_lost, current_streak, longest_streak, last_goal_at"
)


# =====================================================================
# GOAL
# =====================================================================

SELECT_GOAL = f"SELECT {GOAL_COLUMNS} FROM goal WHERE id = ?;"

# Creation fields only; lifecycle fields of an existing row survive a
# replayed GoalCreated. `creator` never changes for a goal id.
UPSERT_GOAL = f"""
INSERT INTO goal ({GOAL_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, false, false, ?, NULL)
ON CONFLICT (id) DO UPDATE SET
  stake_amount = excluded.stake_amount,
  deadline     = excluded.deadline,
  description  = excluded.description,
  is_solo      = excluded.is_solo,
  created_at   = excluded.created_at;
"""

MARK_GOAL_RESOLVED = """
UPDATE goal SET resolved = true, successful = ?, resolved_at = ? WHERE id = ?;
"""

UPDATE_GOAL_DEADLINE = "UPDATE goal SET deadline = ? WHERE id = ?;"

LIST_GOALS_BY_CREATOR = f"""
SELECT {GOAL_COLUMNS}
FROM goal
WHERE creator = ?
ORDER BY created_at DESC, id DESC
LIMIT ?;
"""


# =====================================================================
# ACTIVITY
# =====================================================================

ACTIVITY_EXISTS = "SELECT 1 FROM activity WHERE id = ?;"

INSERT_ACTIVITY = f"""
INSERT INTO activity ({ACTIVITY_COLUMNS})
VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
ON CONFLICT (id) DO NOTHING;
"""

LIST_ACTIVITIES = f"""
SELECT {ACTIVITY_COLUMNS}
FROM activity
ORDER BY "timestamp" DESC, block_number DESC, id DESC
LIMIT ? OFFSET ?;
"""

LIST_ACTIVITIES_BY_TYPE = f"""
SELECT {ACTIVITY_COLUMNS}
FROM activity
WHERE type = ?
ORDER BY "timestamp" DESC, block_number DESC, id DESC
LIMIT ? OFFSET ?;
"""

LIST_ACTIVITIES_BY_USER = f"""
SELECT {ACTIVITY_COLUMNS}
FROM activity
WHERE "user" = ?
ORDER BY "timestamp" DESC, block_number DESC, id DESC
LIMIT ?;
"""


# =====================================================================
# USER STATS
# =====================================================================

# Single atomic insert-if-absent; no read-then-insert race.
ENSURE_USER_STATS = "INSERT INTO user_stats (id) VALUES (?) ON CONFLICT (id) DO NOTHING;"

SELECT_USER_STATS = f"SELECT {USER_STATS_COLUMNS} FROM user_stats WHERE id = ?;"

UPDATE_USER_STATS = """
UPDATE user_stats SET
  goals_created   = ?,
  goals_completed = ?,
  goals_failed    = ?,
  total_staked    = ?,
  total_saved     = ?,
  total_lost      = ?,
  current_streak  = ?,
  longest_streak  = ?,
  last_goal_at    = ?
WHERE id = ?;
"""

LEADERBOARD_BY_STREAK = f"""
SELECT {USER_STATS_COLUMNS}
FROM user_stats
ORDER BY current_streak DESC, id ASC
LIMIT ?;
"""

LEADERBOARD_BY_SAVED = f"""
SELECT {USER_STATS_COLUMNS}
FROM user_stats
ORDER BY total_saved DESC, id ASC
LIMIT ?;
"""


# =====================================================================
# SYNC CURSOR
# =====================================================================

SELECT_CURSOR = "SELECT block_number, log_index, updated_at FROM sync_state WHERE id = 1;"

UPSERT_CURSOR = """
INSERT INTO sync_state (id, block_number, log_index, updated_at)
VALUES (1, ?, ?, ?)
ON CONFLICT (id) DO UPDATE SET
  block_number = excluded.block_number,
  log_index    = excluded.log_index,
  updated_at   = excluded.updated_at;
"""


# =====================================================================
# EXPORT
# =====================================================================

EXPORT_QUERIES = {
    "goal": f"SELECT {GOAL_COLUMNS} FROM goal ORDER BY id;",
    "activity": f'SELECT {ACTIVITY_COLUMNS} FROM activity ORDER BY block_number, id;',
    "user_stats": f"SELECT {USER_STATS_COLUMNS} FROM user_stats ORDER BY id;",
}
