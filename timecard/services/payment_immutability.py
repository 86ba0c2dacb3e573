from sqlalchemy import inspect, text


def table_exists(engine, table_name: str) -> bool:
    if engine is None:
        return False
    return inspect(engine).has_table(table_name)


POSTGRES_DDL = """
CREATE OR REPLACE FUNCTION payment_records_block_paid_mutation()
RETURNS trigger AS $$
BEGIN
    IF OLD.status = 'paid' THEN
        RAISE EXCEPTION 'paid payment records are immutable';
    END IF;
    IF TG_OP = 'DELETE' THEN
        RAISE EXCEPTION 'payment records are never deleted';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql;

DROP TRIGGER IF EXISTS trg_payment_records_block_update ON payment_records;
CREATE TRIGGER trg_payment_records_block_update
BEFORE UPDATE ON payment_records
FOR EACH ROW
EXECUTE FUNCTION payment_records_block_paid_mutation();

DROP TRIGGER IF EXISTS trg_payment_records_block_delete ON payment_records;
CREATE TRIGGER trg_payment_records_block_delete
BEFORE DELETE ON payment_records
FOR EACH ROW
EXECUTE FUNCTION payment_records_block_paid_mutation();
"""

# SQLite runs one statement per execute().
SQLITE_DDL = (
    """
    CREATE TRIGGER IF NOT EXISTS trg_payment_records_block_update
    BEFORE UPDATE ON payment_records
    FOR EACH ROW WHEN OLD.status = 'paid'
    BEGIN
        SELECT RAISE(ABORT, 'paid payment records are immutable');
    END
    """,
    """
    CREATE TRIGGER IF NOT EXISTS trg_payment_records_block_delete
    BEFORE DELETE ON payment_records
    FOR EACH ROW
    BEGIN
        SELECT RAISE(ABORT, 'payment records are never deleted');
    END
    """,
)


def install_payment_immutability(engine) -> None:
    """
    Install triggers that freeze paid payment rows and block deletes.
    PostgreSQL and SQLite; idempotent.
    """
    if engine is None:
        return

    dialect = getattr(getattr(engine, "dialect", None), "name", "")
    if dialect not in ("postgresql", "sqlite"):
        return

    if not table_exists(engine, "payment_records"):
        return

    with engine.begin() as conn:
        if dialect == "postgresql":
            conn.execute(text(POSTGRES_DDL))
        else:
            for statement in SQLITE_DDL:
                conn.execute(text(statement))
