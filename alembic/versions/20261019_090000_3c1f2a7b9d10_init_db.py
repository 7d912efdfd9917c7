"""init db

Revision ID: 3c1f2a7b9d10
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from typing import Sequence, Union

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "3c1f2a7b9d10"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = (
    "tutorial_categories",
    "tutorials",
    "skillups",
    "activation_codes",
    "subscriptions",
    "users",
    "topic_assignments",
    "questions",
    "content",
    "subject_availability",
    "topics",
    "tracks",
    "subjects",
    "sub_categories",
    "exams",
)


def upgrade() -> None:
    # Taxonomy
    op.execute("""
        CREATE TABLE exams (
            id SERIAL PRIMARY KEY,
            name VARCHAR(100) NOT NULL UNIQUE,
            display_name VARCHAR(200) NOT NULL,
            description TEXT,
            icon VARCHAR(255),
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP
        )
    """)

    op.execute("""
        CREATE TABLE sub_categories (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            name VARCHAR(100) NOT NULL,
            display_name VARCHAR(200) NOT NULL,
            description TEXT,
            route_path VARCHAR(200) NOT NULL,
            content_type VARCHAR(20) NOT NULL DEFAULT 'json',
            icon VARCHAR(255),
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP,
            CONSTRAINT uq_sub_categories_exam_name UNIQUE (exam_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_sub_categories_exam_id ON sub_categories (exam_id)")

    op.execute("""
        CREATE TABLE subjects (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            name VARCHAR(100) NOT NULL,
            display_name VARCHAR(200) NOT NULL,
            description TEXT,
            icon VARCHAR(255),
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP,
            CONSTRAINT uq_subjects_exam_name UNIQUE (exam_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_subjects_exam_id ON subjects (exam_id)")

    op.execute("""
        CREATE TABLE tracks (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            sub_category_id INTEGER NOT NULL,
            name VARCHAR(100) NOT NULL,
            display_name VARCHAR(200) NOT NULL,
            description TEXT,
            track_type VARCHAR(20) NOT NULL,
            duration INTEGER,
            year INTEGER,
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP,
            CONSTRAINT uq_tracks_exam_subcategory_name UNIQUE (exam_id, sub_category_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_tracks_exam_id ON tracks (exam_id)")
    op.execute("CREATE INDEX ix_tracks_sub_category_id ON tracks (sub_category_id)")

    op.execute("""
        CREATE TABLE topics (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            subject_id INTEGER NOT NULL,
            name VARCHAR(200) NOT NULL,
            display_name VARCHAR(200) NOT NULL,
            description TEXT,
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP,
            CONSTRAINT uq_topics_exam_subject_name UNIQUE (exam_id, subject_id, name)
        )
    """)
    op.execute("CREATE INDEX ix_topics_exam_id ON topics (exam_id)")
    op.execute("CREATE INDEX ix_topics_subject_id ON topics (subject_id)")

    op.execute("""
        CREATE TABLE subject_availability (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            subject_id INTEGER NOT NULL,
            sub_category_id INTEGER NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            CONSTRAINT uq_subject_availability_scope UNIQUE (exam_id, subject_id, sub_category_id)
        )
    """)
    op.execute(
        "CREATE INDEX ix_subject_availability_exam_id ON subject_availability (exam_id)"
    )

    # Learning material
    op.execute("""
        CREATE TABLE content (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            subject_id INTEGER NOT NULL,
            track_id INTEGER NOT NULL,
            sub_category_id INTEGER NOT NULL,
            topic_id INTEGER,
            name VARCHAR(255) NOT NULL,
            display_name VARCHAR(255) NOT NULL,
            description TEXT,
            order_index INTEGER NOT NULL DEFAULT 0,
            metadata JSON NOT NULL DEFAULT '{}',
            file_path VARCHAR(500),
            file_type VARCHAR(50),
            file_size INTEGER,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP
        )
    """)
    for column in ("exam_id", "subject_id", "track_id", "sub_category_id", "topic_id"):
        op.execute(f"CREATE INDEX ix_content_{column} ON content ({column})")

    op.execute("""
        CREATE TABLE questions (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            subject_id INTEGER NOT NULL,
            track_id INTEGER NOT NULL,
            topic_id INTEGER,
            year INTEGER,
            question TEXT NOT NULL,
            question_diagram VARCHAR(500) NOT NULL DEFAULT 'assets/images/noDiagram.png',
            correct_answer TEXT NOT NULL,
            incorrect_answers JSON NOT NULL DEFAULT '[]',
            explanation TEXT,
            difficulty VARCHAR(10) NOT NULL DEFAULT 'medium',
            order_index INTEGER NOT NULL DEFAULT 0,
            is_active BOOLEAN NOT NULL DEFAULT true,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP
        )
    """)
    for column in ("exam_id", "subject_id", "track_id", "topic_id", "year"):
        op.execute(f"CREATE INDEX ix_questions_{column} ON questions ({column})")

    op.execute("""
        CREATE TABLE topic_assignments (
            id SERIAL PRIMARY KEY,
            exam_id INTEGER NOT NULL,
            subject_id INTEGER NOT NULL,
            track_id INTEGER NOT NULL,
            sub_category_id INTEGER NOT NULL,
            period_type VARCHAR(20) NOT NULL,
            period_number INTEGER NOT NULL,
            topic_ids JSON NOT NULL DEFAULT '[]',
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP,
            CONSTRAINT uq_topic_assignments_period UNIQUE (
                exam_id, subject_id, track_id, sub_category_id, period_type, period_number
            )
        )
    """)
    op.execute("CREATE INDEX ix_topic_assignments_exam_id ON topic_assignments (exam_id)")

    # Accounts
    op.execute("""
        CREATE TABLE users (
            id SERIAL PRIMARY KEY,
            email VARCHAR(255) NOT NULL UNIQUE,
            name VARCHAR(200) NOT NULL,
            password_hash VARCHAR(255) NOT NULL,
            country VARCHAR(100),
            interest VARCHAR(200),
            role VARCHAR(10) NOT NULL DEFAULT 'user',
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP
        )
    """)

    op.execute("""
        CREATE TABLE subscriptions (
            id SERIAL PRIMARY KEY,
            user_id INTEGER NOT NULL,
            plan VARCHAR(20) NOT NULL,
            total_days INTEGER NOT NULL,
            active BOOLEAN NOT NULL DEFAULT true,
            activated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            expires_at TIMESTAMP NOT NULL,
            activation_method VARCHAR(20) NOT NULL,
            payment_reference VARCHAR(200),
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP
        )
    """)
    for column in ("user_id", "active", "expires_at"):
        op.execute(f"CREATE INDEX ix_subscriptions_{column} ON subscriptions ({column})")

    op.execute("""
        CREATE TABLE activation_codes (
            id SERIAL PRIMARY KEY,
            code VARCHAR(10) NOT NULL UNIQUE,
            plan VARCHAR(20) NOT NULL,
            is_used BOOLEAN NOT NULL DEFAULT false,
            used_by INTEGER,
            used_at TIMESTAMP,
            batch_name VARCHAR(100),
            expires_at TIMESTAMP,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute(
        "CREATE INDEX ix_activation_codes_batch_name ON activation_codes (batch_name)"
    )

    # Skill-up courses
    op.execute("""
        CREATE TABLE skillups (
            id SERIAL PRIMARY KEY,
            category VARCHAR(100) NOT NULL,
            year VARCHAR(20) NOT NULL,
            subject VARCHAR(200) NOT NULL,
            subject_description TEXT,
            thumbnail VARCHAR(500),
            author VARCHAR(200),
            batches JSON NOT NULL DEFAULT '[]',
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP,
            CONSTRAINT uq_skillups_category_year_subject UNIQUE (category, year, subject)
        )
    """)
    op.execute("CREATE INDEX ix_skillups_category ON skillups (category)")

    # Tutorial catalogue
    op.execute("""
        CREATE TABLE tutorials (
            id VARCHAR(100) PRIMARY KEY,
            title VARCHAR(255) NOT NULL,
            description TEXT NOT NULL,
            thumbnail VARCHAR(500),
            category VARCHAR(100) NOT NULL,
            cat_name VARCHAR(100) NOT NULL,
            duration VARCHAR(50) NOT NULL DEFAULT 'weekly',
            level VARCHAR(50) NOT NULL DEFAULT 'Beginner',
            author VARCHAR(200) NOT NULL DEFAULT 'Admin',
            time VARCHAR(50) NOT NULL DEFAULT 'N/A',
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP
        )
    """)
    op.execute("CREATE INDEX ix_tutorials_category ON tutorials (category)")
    op.execute("""
        CREATE TABLE tutorial_categories (
            name VARCHAR(100) PRIMARY KEY,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """)
    op.execute("""
        INSERT INTO tutorial_categories (name)
        VALUES ('Jupeb Night Class'), ('Jupeb Past Question Videos')
    """)


def downgrade() -> None:
    for table in TABLES:
        op.execute(f"DROP TABLE IF EXISTS {table}")
