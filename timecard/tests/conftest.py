import os
_default_test_secret = "test-jwt-secret-for-pytest-only-0000000000000000"
if len(os.environ.get("JWT_SECRET", "")) < 32:
    os.environ["JWT_SECRET"] = _default_test_secret
os.environ.setdefault("ENV", "test")

import subprocess
import tempfile
from datetime import date, datetime, timezone
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, text
from sqlalchemy.engine import make_url

_SQLITE_PATH = Path(tempfile.gettempdir()) / f"timecard_test_{os.getpid()}.db"
TEST_DATABASE_URL = os.getenv("DATABASE_URL") or f"sqlite:///{_SQLITE_PATH}"
os.environ["DATABASE_URL"] = TEST_DATABASE_URL

from timecard import database, models  # noqa: E402
from timecard.main import app  # noqa: E402
from timecard.services.payment_immutability import install_payment_immutability  # noqa: E402

EMPLOYER_USER_ID = "employer-1"


def _is_postgres() -> bool:
    return make_url(TEST_DATABASE_URL).drivername.startswith("postgresql")


def _ensure_database_exists(database_url: str) -> None:
    url = make_url(database_url)

    if not url.drivername.startswith("postgresql"):
        return

    db_name = url.database
    admin_url = url.set(database="postgres")
    admin_engine = create_engine(admin_url, isolation_level="AUTOCOMMIT")

    try:
        with admin_engine.connect() as conn:
            exists = conn.execute(
                text("SELECT 1 FROM pg_database WHERE datname = :name"),
                {"name": db_name},
            ).scalar()
            if not exists:
                safe_db_name = db_name.replace('"', '""')
                conn.execute(text(f'CREATE DATABASE "{safe_db_name}"'))
    finally:
        admin_engine.dispose()


def _truncate_postgres() -> None:
    with database.engine.begin() as conn:
        rows = conn.execute(
            text(
                """
                SELECT tablename
                FROM pg_tables
                WHERE schemaname = 'public'
                  AND tablename <> 'alembic_version'
                """
            )
        ).fetchall()

        table_names = [row[0] for row in rows]
        if table_names:
            quoted = ", ".join([f'"public"."{name}"' for name in table_names])
            conn.execute(text(f"TRUNCATE TABLE {quoted} RESTART IDENTITY CASCADE"))


def _recreate_sqlite() -> None:
    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    install_payment_immutability(database.engine)


@pytest.fixture(scope="session", autouse=True)
def _prepare_test_database():
    if _is_postgres():
        _ensure_database_exists(TEST_DATABASE_URL)

        env = os.environ.copy()
        env["DATABASE_URL"] = TEST_DATABASE_URL

        subprocess.run(
            ["alembic", "upgrade", "head"],
            check=True,
            cwd=Path(__file__).resolve().parents[2],
            env=env,
        )

    database.configure_database()
    yield

    if not _is_postgres():
        database.engine.dispose()
        _SQLITE_PATH.unlink(missing_ok=True)


@pytest.fixture(scope="function", autouse=True)
def _reset_tables_between_tests():
    if _is_postgres():
        _truncate_postgres()
    else:
        _recreate_sqlite()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def db():
    session = database.SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


def _get_access_token(client, user_id: str, role: str) -> str:
    resp = client.post("/auth/token", json={"user_id": user_id, "role": role})
    assert resp.status_code == 200, f"token request failed: {resp.status_code} {resp.text}"
    data = resp.json()
    assert "access_token" in data, f"token response missing access_token: {data}"
    return data["access_token"]


@pytest.fixture
def auth_headers(client):
    def _headers(user_id: str = EMPLOYER_USER_ID, role: str = "employer") -> dict:
        return {"Authorization": f"Bearer {_get_access_token(client, user_id, role)}"}

    return _headers


def _commit(row):
    session = database.SessionLocal()
    try:
        session.add(row)
        session.commit()
        session.refresh(row)
        return row
    finally:
        session.close()


@pytest.fixture
def business_factory():
    def _create(employer_id: str = EMPLOYER_USER_ID, name: str = "Corner Cafe", timezone_name=None):
        return _commit(models.Business(name=name, employer_id=employer_id, timezone=timezone_name))

    return _create


@pytest.fixture
def employee_factory():
    counter = {"n": 0}

    def _create(business, user_id=None, full_name=None):
        counter["n"] += 1
        employee = _commit(
            models.Employee(
                user_id=user_id or f"worker-{counter['n']}",
                full_name=full_name or f"Worker {counter['n']}",
            )
        )
        _commit(models.BusinessEmployee(business_id=business.business_id, employee_id=employee.id))
        return employee

    return _create


@pytest.fixture
def schedule_factory():
    """Insert a schedule directly, bypassing the editable window, so past weeks can be seeded."""

    def _create(business, week_start: date, shifts=(), posted: bool = True):
        session = database.SessionLocal()
        try:
            schedule = models.WeeklySchedule(
                business_id=business.business_id,
                week_start_date=week_start,
                status="posted" if posted else "draft",
                posted_at=datetime.now(timezone.utc) if posted else None,
            )
            session.add(schedule)
            session.flush()
            for employee_id, day_of_week, start_min, end_min in shifts:
                session.add(
                    models.Shift(
                        schedule_id=schedule.id,
                        employee_id=employee_id,
                        day_of_week=day_of_week,
                        start_min=start_min,
                        end_min=end_min,
                    )
                )
            session.commit()
            session.refresh(schedule)
            return schedule
        finally:
            session.close()

    return _create


@pytest.fixture
def rate_factory():
    def _create(business, employee, hourly_rate="15.00", effective_from: date = date(2024, 1, 1)):
        return _commit(
            models.EmployeeRate(
                business_id=business.business_id,
                employee_id=employee.id,
                hourly_rate=Decimal(str(hourly_rate)),
                effective_from=effective_from,
                created_by=EMPLOYER_USER_ID,
            )
        )

    return _create
