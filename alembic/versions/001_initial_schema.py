"""Initial schema.

Creates users, auth token tables, gamification (user_gamification,
user_badges, points_ledger), study plans with their topics, weekly goals,
milestones and insights, tasks with pomodoro sessions and reminders,
timer sessions, and notes.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-18
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id BIGSERIAL PRIMARY KEY,
            name VARCHAR(100) NOT NULL,
            email VARCHAR(320) NOT NULL UNIQUE,
            password_hash VARCHAR(256),
            google_id VARCHAR(128) UNIQUE,
            avatar_url TEXT,
            email_verified BOOLEAN NOT NULL DEFAULT false,
            daily_study_hours DOUBLE PRECISION NOT NULL DEFAULT 4,
            preferred_study_time VARCHAR(16) NOT NULL DEFAULT 'evening',
            session_minutes INTEGER NOT NULL DEFAULT 25,
            break_minutes INTEGER NOT NULL DEFAULT 15,
            subjects JSONB NOT NULL DEFAULT '[]',
            settings JSONB NOT NULL DEFAULT '{}',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            last_login TIMESTAMPTZ
        )
    """)

    # --- Auth tokens ---
    for table in ("email_verification_tokens", "password_reset_tokens"):
        op.execute(f"""
            CREATE TABLE IF NOT EXISTS {table} (
                id VARCHAR(36) PRIMARY KEY,
                user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
                token_hash VARCHAR(128) NOT NULL,
                created_at TIMESTAMPTZ NOT NULL,
                expires_at TIMESTAMPTZ NOT NULL,
                used_at TIMESTAMPTZ
            )
        """)
        op.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_hash ON {table}(token_hash)")

    # --- Gamification ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_gamification (
            user_id BIGINT PRIMARY KEY REFERENCES users(id) ON DELETE CASCADE,
            total_points INTEGER NOT NULL DEFAULT 0,
            level INTEGER NOT NULL DEFAULT 1,
            current_streak INTEGER NOT NULL DEFAULT 0,
            longest_streak INTEGER NOT NULL DEFAULT 0,
            last_study_date DATE,
            updated_at TIMESTAMPTZ DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS user_badges (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES user_gamification(user_id) ON DELETE CASCADE,
            name VARCHAR(64) NOT NULL,
            description VARCHAR(256) NOT NULL DEFAULT '',
            icon VARCHAR(32) NOT NULL DEFAULT '',
            earned_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT user_badges_user_id_name_key UNIQUE (user_id, name)
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS points_ledger (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            amount INTEGER NOT NULL,
            source VARCHAR(32) NOT NULL,
            source_id VARCHAR(128),
            description VARCHAR(256),
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_points_ledger_user ON points_ledger(user_id, created_at DESC)")

    # --- Study plans ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS study_plans (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            subject VARCHAR(100) NOT NULL,
            exam_date TIMESTAMPTZ NOT NULL,
            total_hours DOUBLE PRECISION NOT NULL DEFAULT 0,
            daily_hours DOUBLE PRECISION NOT NULL DEFAULT 2,
            difficulty VARCHAR(16) NOT NULL DEFAULT 'medium',
            priority VARCHAR(16) NOT NULL DEFAULT 'medium',
            status VARCHAR(16) NOT NULL DEFAULT 'active',
            ai_generated BOOLEAN NOT NULL DEFAULT false,
            topics_completed INTEGER NOT NULL DEFAULT 0,
            topics_total INTEGER NOT NULL DEFAULT 0,
            percentage_complete INTEGER NOT NULL DEFAULT 0,
            hours_studied DOUBLE PRECISION NOT NULL DEFAULT 0,
            days_remaining INTEGER NOT NULL DEFAULT 0,
            on_track BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_study_plans_user ON study_plans(user_id)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS plan_topics (
            id BIGSERIAL PRIMARY KEY,
            plan_id BIGINT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
            position INTEGER NOT NULL DEFAULT 0,
            name VARCHAR(200) NOT NULL,
            subtopics JSONB DEFAULT '[]',
            estimated_hours DOUBLE PRECISION NOT NULL DEFAULT 0,
            difficulty VARCHAR(16) NOT NULL DEFAULT 'medium',
            priority INTEGER NOT NULL DEFAULT 5,
            completed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ,
            notes TEXT
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS weekly_goals (
            id BIGSERIAL PRIMARY KEY,
            plan_id BIGINT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
            week_number INTEGER NOT NULL,
            start_date DATE,
            end_date DATE,
            target_hours DOUBLE PRECISION NOT NULL DEFAULT 0,
            actual_hours DOUBLE PRECISION NOT NULL DEFAULT 0,
            allocations JSONB DEFAULT '[]',
            completed BOOLEAN NOT NULL DEFAULT false
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS milestones (
            id BIGSERIAL PRIMARY KEY,
            plan_id BIGINT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
            position INTEGER NOT NULL DEFAULT 0,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            target_date TIMESTAMPTZ,
            target_percentage INTEGER NOT NULL DEFAULT 100,
            completed BOOLEAN NOT NULL DEFAULT false,
            completed_at TIMESTAMPTZ
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS plan_insights (
            id BIGSERIAL PRIMARY KEY,
            plan_id BIGINT NOT NULL REFERENCES study_plans(id) ON DELETE CASCADE,
            kind VARCHAR(16) NOT NULL DEFAULT 'tip',
            message TEXT NOT NULL,
            priority VARCHAR(16) NOT NULL DEFAULT 'medium',
            dismissed BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    for table in ("plan_topics", "weekly_goals", "milestones", "plan_insights"):
        op.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_plan ON {table}(plan_id)")

    # --- Tasks ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS tasks (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            study_plan_id BIGINT REFERENCES study_plans(id) ON DELETE CASCADE,
            title VARCHAR(200) NOT NULL,
            description TEXT,
            subject VARCHAR(100) NOT NULL,
            topic VARCHAR(200),
            kind VARCHAR(16) NOT NULL DEFAULT 'study',
            priority VARCHAR(16) NOT NULL DEFAULT 'medium',
            difficulty VARCHAR(16) NOT NULL DEFAULT 'medium',
            status VARCHAR(16) NOT NULL DEFAULT 'pending',
            scheduled_date DATE NOT NULL,
            scheduled_start VARCHAR(5) NOT NULL,
            scheduled_end VARCHAR(5) NOT NULL,
            estimated_duration INTEGER NOT NULL,
            actual_duration INTEGER NOT NULL DEFAULT 0,
            completion_percentage INTEGER NOT NULL DEFAULT 0,
            completed_at TIMESTAMPTZ,
            completion_notes TEXT,
            completion_rating INTEGER,
            recurrence JSONB,
            tags JSONB DEFAULT '[]',
            color VARCHAR(16) NOT NULL DEFAULT '#3B82F6',
            ai_generated BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_tasks_user ON tasks(user_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_tasks_plan ON tasks(study_plan_id)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_tasks_status ON tasks(status)")
    op.execute("CREATE INDEX IF NOT EXISTS idx_tasks_scheduled_date ON tasks(scheduled_date)")

    op.execute("""
        CREATE TABLE IF NOT EXISTS pomodoro_sessions (
            id BIGSERIAL PRIMARY KEY,
            task_id BIGINT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            position INTEGER NOT NULL DEFAULT 0,
            start_time TIMESTAMPTZ NOT NULL,
            end_time TIMESTAMPTZ,
            duration INTEGER NOT NULL DEFAULT 25,
            completed BOOLEAN NOT NULL DEFAULT false,
            kind VARCHAR(16) NOT NULL DEFAULT 'work'
        )
    """)
    op.execute("""
        CREATE TABLE IF NOT EXISTS task_reminders (
            id BIGSERIAL PRIMARY KEY,
            task_id BIGINT NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
            time TIMESTAMPTZ NOT NULL,
            message VARCHAR(256),
            sent BOOLEAN NOT NULL DEFAULT false
        )
    """)
    for table in ("pomodoro_sessions", "task_reminders"):
        op.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_task ON {table}(task_id)")

    # --- Focus timer ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS timer_sessions (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            task_id BIGINT REFERENCES tasks(id) ON DELETE SET NULL,
            kind VARCHAR(16) NOT NULL DEFAULT 'pomodoro',
            duration INTEGER NOT NULL,
            actual_duration INTEGER,
            start_time TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            end_time TIMESTAMPTZ,
            completed BOOLEAN NOT NULL DEFAULT false,
            paused BOOLEAN NOT NULL DEFAULT false,
            paused_at TIMESTAMPTZ,
            paused_minutes DOUBLE PRECISION NOT NULL DEFAULT 0
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_timer_sessions_user ON timer_sessions(user_id, start_time DESC)")

    # --- Notes ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notes (
            id BIGSERIAL PRIMARY KEY,
            user_id BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            study_plan_id BIGINT REFERENCES study_plans(id) ON DELETE SET NULL,
            title VARCHAR(200) NOT NULL,
            content TEXT NOT NULL,
            subject VARCHAR(100) NOT NULL,
            topic VARCHAR(200),
            tags JSONB DEFAULT '[]',
            kind VARCHAR(16) NOT NULL DEFAULT 'note',
            is_public BOOLEAN NOT NULL DEFAULT false,
            attachments JSONB DEFAULT '[]',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("CREATE INDEX IF NOT EXISTS idx_notes_user ON notes(user_id, updated_at DESC)")


def downgrade() -> None:
    for table in (
        "notes",
        "timer_sessions",
        "task_reminders",
        "pomodoro_sessions",
        "tasks",
        "plan_insights",
        "milestones",
        "weekly_goals",
        "plan_topics",
        "study_plans",
        "points_ledger",
        "user_badges",
        "user_gamification",
        "password_reset_tokens",
        "email_verification_tokens",
        "users",
    ):
        op.execute(f"DROP TABLE IF EXISTS {table} CASCADE")
